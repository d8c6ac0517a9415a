"""Account validator: is this account number usable, and by whom.

Read-only composition of the account number pool and the applications
linked to it. Negative outcomes (bad format, unknown number, application
still pending) are returned as results, never raised.
"""

import logging
from dataclasses import asdict, dataclass
from enum import Enum

from powerlink.config import Settings, get_settings
from powerlink.errors import TransientStorageError
from powerlink.models import ApplicationStatus
from powerlink.services.account_registry import account_number_range, normalize_account_number
from powerlink.services.storage import Storage

logger = logging.getLogger(__name__)


class AccountStatus(str, Enum):
    """Validation status reported for an account number."""

    PENDING = "pending"
    APPROVED = "approved"
    DECLINED = "declined"
    INVALID = "invalid"


STATUS_MESSAGES = {
    ApplicationStatus.APPROVED: "Account number verified and approved. You can now create your account.",
    ApplicationStatus.DECLINED: "This application has been declined. Please submit a new application.",
    ApplicationStatus.PENDING: "Your application is still being reviewed. Please try again later.",
}
UNLINKED_MESSAGE = (
    "This account number has not been assigned to any application yet. Contact administrator."
)
TRANSIENT_MESSAGE = "Unable to verify account number at this time. Please try again later."


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of validating an account number.

    `transient` is True only when storage could not be reached: the caller
    should retry instead of rejecting the number.
    """

    is_valid: bool
    exists: bool
    is_assigned: bool
    is_approved: bool
    status: AccountStatus
    message: str
    account_number: str | None = None
    application_id: str | None = None
    full_name: str | None = None
    email: str | None = None
    transient: bool = False

    def to_dict(self) -> dict:
        data = asdict(self)
        data["status"] = self.status.value
        return data


class AccountValidator:
    """Validates account numbers against the pool and linked applications."""

    def __init__(self, storage: Storage, settings: Settings | None = None):
        self.storage = storage
        self.settings = settings or get_settings()

    def validate(self, account_number: str) -> ValidationResult:
        """Run the ordered checks, stopping at the first failure.

        1. Format: C + exactly 3 digits (case-insensitive)
        2. Pool membership
        3. Linked application lookup
        4. Application status decides validity
        """
        normalized = normalize_account_number(account_number)
        if normalized is None:
            return ValidationResult(
                is_valid=False,
                exists=False,
                is_assigned=False,
                is_approved=False,
                status=AccountStatus.INVALID,
                message=f"Invalid account number format. Must be {account_number_range(self.settings)}.",
            )

        try:
            pool_entry = self.storage.read_account_pool_entry(normalized)
        except TransientStorageError:
            logger.warning("Pool lookup failed for %s, reporting transient failure", normalized)
            return self._transient(normalized, exists=False, is_assigned=False)

        if pool_entry is None:
            return ValidationResult(
                is_valid=False,
                exists=False,
                is_assigned=False,
                is_approved=False,
                status=AccountStatus.INVALID,
                message=(
                    f"This account number does not exist in the system "
                    f"({account_number_range(self.settings).replace(' to ', '-')})."
                ),
                account_number=normalized,
            )

        try:
            application = self.storage.read_application_by_account_number(normalized)
        except TransientStorageError:
            logger.warning("Application lookup failed for %s, reporting transient failure", normalized)
            return self._transient(normalized, exists=True, is_assigned=pool_entry.is_assigned)

        if application is None:
            return ValidationResult(
                is_valid=False,
                exists=True,
                is_assigned=pool_entry.is_assigned,
                is_approved=False,
                status=AccountStatus.PENDING,
                message=UNLINKED_MESSAGE,
                account_number=normalized,
            )

        approved = application.status == ApplicationStatus.APPROVED
        return ValidationResult(
            is_valid=approved,
            exists=True,
            is_assigned=pool_entry.is_assigned,
            is_approved=approved,
            status=AccountStatus(application.status.value),
            message=STATUS_MESSAGES[application.status],
            account_number=normalized,
            application_id=application.application_id,
            full_name=application.full_name,
            email=application.email,
        )

    def is_account_number_in_pool(self, account_number: str) -> bool:
        """True if the identifier was provisioned into the pool.

        Raises:
            TransientStorageError: If storage is unavailable
        """
        normalized = normalize_account_number(account_number)
        if normalized is None:
            return False
        return self.storage.read_account_pool_entry(normalized) is not None

    @staticmethod
    def _transient(account_number: str, exists: bool, is_assigned: bool) -> ValidationResult:
        return ValidationResult(
            is_valid=False,
            exists=exists,
            is_assigned=is_assigned,
            is_approved=False,
            status=AccountStatus.INVALID,
            message=TRANSIENT_MESSAGE,
            account_number=account_number,
            transient=True,
        )


__all__ = ["AccountStatus", "AccountValidator", "ValidationResult"]
