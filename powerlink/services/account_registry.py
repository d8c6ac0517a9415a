"""Account number registry: the fixed pool of C001-C160 identifiers."""

import logging
import re
from dataclasses import dataclass

from powerlink.clock import Clock, SystemClock
from powerlink.config import Settings, get_settings
from powerlink.errors import AccountNumberNotFoundError, AlreadyAssignedError, NotFoundError
from powerlink.services.storage import Storage

logger = logging.getLogger(__name__)

ACCOUNT_NUMBER_PATTERN = re.compile(r"^C\d{3}$")


def format_account_number(number: int, prefix: str = "C") -> str:
    """Render a pool slot number as an identifier: 7 -> "C007"."""
    return f"{prefix}{number:03d}"


def normalize_account_number(raw: str | None) -> str | None:
    """Canonicalize user input to uppercase, or None if it is not C + 3 digits."""
    if raw is None:
        return None
    candidate = raw.strip().upper()
    if not ACCOUNT_NUMBER_PATTERN.match(candidate):
        return None
    return candidate


def account_number_range(settings: Settings | None = None) -> str:
    """Human-readable accepted range, e.g. "C001 to C160"."""
    settings = settings or get_settings()
    first = format_account_number(1)
    last = format_account_number(settings.account_pool_size)
    return f"{first} to {last}"


@dataclass(frozen=True)
class PoolEntryLookup:
    """Result of looking an identifier up in the pool."""

    exists: bool
    is_assigned: bool


class AccountRegistry:
    """Owns the pool of account numbers and their assignment state."""

    def __init__(
        self,
        storage: Storage,
        settings: Settings | None = None,
        clock: Clock | None = None,
    ):
        self.storage = storage
        self.settings = settings or get_settings()
        self.clock = clock or SystemClock.from_settings(self.settings)

    def provision_pool(self) -> int:
        """Insert every pool identifier that does not exist yet.

        Returns:
            Number of newly created entries (0 when the pool is complete)
        """
        numbers = [
            format_account_number(n)
            for n in range(1, self.settings.account_pool_size + 1)
        ]
        created = self.storage.insert_pool_entries(numbers)
        self.storage.commit()
        logger.info("Account number pool provisioned: %d new of %d", created, len(numbers))
        return created

    def lookup(self, account_number: str) -> PoolEntryLookup:
        """Look an identifier up. Identifiers never inserted are reported as not existing."""
        normalized = normalize_account_number(account_number)
        if normalized is None:
            return PoolEntryLookup(exists=False, is_assigned=False)
        entry = self.storage.read_account_pool_entry(normalized)
        if entry is None:
            return PoolEntryLookup(exists=False, is_assigned=False)
        return PoolEntryLookup(exists=True, is_assigned=entry.is_assigned)

    def reserve(self, account_number: str, consumer_id: int | None) -> None:
        """Mark an unassigned pool entry as assigned to a consumer.

        Does not commit; callers reserve inside their own transaction.

        Raises:
            AccountNumberNotFoundError: identifier is not part of the pool
            AlreadyAssignedError: entry is already assigned (entry left unchanged)
        """
        normalized = normalize_account_number(account_number)
        if normalized is None or self.storage.read_account_pool_entry(normalized) is None:
            raise AccountNumberNotFoundError(account_number)

        # Conditional update: only one concurrent caller can flip the flag
        if not self.storage.mark_account_assigned(normalized, consumer_id, self.clock.now()):
            raise AlreadyAssignedError(normalized)
        logger.info("Account number %s reserved for consumer %s", normalized, consumer_id)

    def release(self, account_number: str) -> None:
        """Return an assigned entry to the unassigned state.

        Raises:
            AccountNumberNotFoundError: identifier is not part of the pool
            NotFoundError: entry is not currently assigned
        """
        normalized = normalize_account_number(account_number)
        if normalized is None or self.storage.read_account_pool_entry(normalized) is None:
            raise AccountNumberNotFoundError(account_number)
        if not self.storage.mark_account_released(normalized):
            raise NotFoundError(
                f"Account number {normalized} is not assigned", "account_number_not_assigned"
            )
        logger.info("Account number %s released", normalized)

    def list_available(self, limit: int = 20) -> list[str]:
        """Unassigned identifiers in pool order."""
        return self.storage.list_unassigned_account_numbers(limit)


__all__ = [
    "ACCOUNT_NUMBER_PATTERN",
    "AccountRegistry",
    "PoolEntryLookup",
    "account_number_range",
    "format_account_number",
    "normalize_account_number",
]
