"""Principals, credential checks and the password reset workflow.

Admins log in with a username, consumers with their account number. Both
are resolved through storage into a typed Principal.
"""

import logging
import secrets
from dataclasses import dataclass
from datetime import timedelta
from enum import Enum
from typing import Callable, ClassVar

from powerlink.clock import Clock, SystemClock
from powerlink.config import Settings, get_settings
from powerlink.errors import AuthenticationError, NotFoundError, ValidationError
from powerlink.models import Admin, Consumer
from powerlink.services.account_registry import normalize_account_number
from powerlink.services.security import get_password_hash, verify_password
from powerlink.services.storage import Storage
from powerlink.services.verification_codes import (
    InMemoryVerificationCodeStore,
    VerificationCodeStore,
)

logger = logging.getLogger(__name__)

RESET_REQUESTED_MESSAGE = "If an account exists with this email, a verification code has been sent."


class Role(str, Enum):
    ADMIN = "admin"
    CONSUMER = "consumer"


@dataclass(frozen=True)
class Principal:
    """Authenticated party."""

    id: int
    email: str | None
    full_name: str | None

    role: ClassVar[Role]

    @property
    def identifier(self) -> str:
        raise NotImplementedError


@dataclass(frozen=True)
class AdminPrincipal(Principal):
    username: str

    role: ClassVar[Role] = Role.ADMIN

    @property
    def identifier(self) -> str:
        return self.username


@dataclass(frozen=True)
class ConsumerPrincipal(Principal):
    account_number: str

    role: ClassVar[Role] = Role.CONSUMER

    @property
    def identifier(self) -> str:
        return self.account_number


def _to_principal(record: Admin | Consumer) -> Principal:
    if isinstance(record, Admin):
        return AdminPrincipal(
            id=record.id,
            email=record.email,
            full_name=record.full_name,
            username=record.username,
        )
    return ConsumerPrincipal(
        id=record.id,
        email=record.email,
        full_name=record.full_name,
        account_number=record.account_number,
    )


def _log_code(email: str, code: str) -> None:
    logger.info("Password reset code issued for %s", email)


class AuthService:
    """Resolves principals and manages credentials.

    The verification-code store and the code sender are injected; the
    default sender only logs that a code was issued.
    """

    def __init__(
        self,
        storage: Storage,
        code_store: VerificationCodeStore | None = None,
        settings: Settings | None = None,
        clock: Clock | None = None,
        send_code: Callable[[str, str], None] | None = None,
    ):
        self.storage = storage
        self.settings = settings or get_settings()
        self.clock = clock or SystemClock.from_settings(self.settings)
        self.code_store = code_store or InMemoryVerificationCodeStore(
            ttl=timedelta(minutes=self.settings.verification_code_ttl_minutes),
            clock=self.clock,
        )
        self.send_code = send_code or _log_code

    def _find_record(self, identifier: str) -> Admin | Consumer | None:
        """Account-number shaped identifiers are consumers, anything else is an admin username."""
        account_number = normalize_account_number(identifier)
        if account_number is not None:
            return self.storage.read_consumer_by_account_number(account_number)
        return self.storage.read_admin_by_username(identifier.strip())

    def _find_record_by_email(self, email: str) -> Admin | Consumer | None:
        return self.storage.read_consumer_by_email(email) or self.storage.read_admin_by_email(email)

    def resolve_principal(self, identifier: str) -> Principal | None:
        record = self._find_record(identifier)
        return _to_principal(record) if record is not None else None

    def authenticate(
        self,
        identifier: str,
        password: str,
        expected_role: Role | None = None,
    ) -> Principal:
        """Check credentials and return the principal.

        Raises:
            AuthenticationError: Unknown identifier, wrong password or wrong portal
        """
        record = self._find_record(identifier)
        if record is None or not verify_password(password, record.password_hash):
            logger.info("Authentication failed for identifier %s", identifier)
            raise AuthenticationError()

        principal = _to_principal(record)
        if expected_role is not None and principal.role != expected_role:
            logger.info(
                "%s %s tried to log in on the %s portal",
                principal.role.value,
                principal.identifier,
                expected_role.value,
            )
            raise AuthenticationError()

        logger.info("%s %s authenticated", principal.role.value, principal.identifier)
        return principal

    def request_password_reset(self, email: str) -> str:
        """Issue a 6-digit code if the email belongs to an account.

        The returned message is the same whether or not the account exists.
        """
        record = self._find_record_by_email(email)
        if record is None:
            logger.debug("Password reset requested for unknown email")
            return RESET_REQUESTED_MESSAGE

        code = f"{secrets.randbelow(900000) + 100000}"
        self.code_store.put(email, code)
        self.send_code(email, code)
        return RESET_REQUESTED_MESSAGE

    def verify_reset_code(self, email: str, code: str) -> bool:
        stored = self.code_store.get(email)
        return stored is not None and secrets.compare_digest(stored, code)

    def reset_password(self, email: str, code: str, new_password: str) -> None:
        """Replace the password after a successful code check.

        Raises:
            AuthenticationError: Code missing, expired or wrong
            ValidationError: New password too short
            NotFoundError: Account no longer exists
        """
        if not self.verify_reset_code(email, code):
            raise AuthenticationError("Invalid or expired verification code", "invalid_verification_code")
        if len(new_password) < self.settings.min_password_length:
            raise ValidationError(
                f"Password must be at least {self.settings.min_password_length} characters long"
            )

        record = self._find_record_by_email(email)
        if record is None:
            raise NotFoundError("User not found.", "user_not_found")

        record.password_hash = get_password_hash(new_password)
        self.storage.commit()
        self.code_store.discard(email)
        logger.info("Password reset completed for %s", email)


__all__ = [
    "AdminPrincipal",
    "AuthService",
    "ConsumerPrincipal",
    "Principal",
    "RESET_REQUESTED_MESSAGE",
    "Role",
]
