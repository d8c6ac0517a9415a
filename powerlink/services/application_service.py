"""Application lifecycle: submission and the pending -> approved/declined decision."""

import logging
import re
from dataclasses import dataclass

from email_validator import EmailNotValidError, validate_email

from powerlink.clock import Clock, SystemClock
from powerlink.config import Settings, get_settings
from powerlink.errors import (
    AccountNumberNotFoundError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from powerlink.models import Application, ApplicationStatus
from powerlink.services.account_registry import account_number_range, normalize_account_number
from powerlink.services.audit_service import AuditService
from powerlink.services.security import get_password_hash
from powerlink.services.storage import Storage

logger = logging.getLogger(__name__)

CONTACT_NUMBER_PATTERN = re.compile(r"^\+?\d{7,15}$")

DECISION_OUTCOMES = (ApplicationStatus.APPROVED, ApplicationStatus.DECLINED)


@dataclass
class ApplicantData:
    """Fields an applicant submits when requesting service."""

    full_name: str
    contact_number: str
    email: str
    password: str
    address: str = ""
    service_type: str = "residential"
    account_number: str | None = None
    valid_id_url: str | None = None
    proof_of_residency_url: str | None = None


class ApplicationService:
    """Service for submitting and deciding applications.

    On approval this service only records the decision; creating the consumer
    and reserving the account number is done by ProvisioningService.
    """

    def __init__(
        self,
        storage: Storage,
        settings: Settings | None = None,
        clock: Clock | None = None,
    ):
        self.storage = storage
        self.settings = settings or get_settings()
        self.clock = clock or SystemClock.from_settings(self.settings)

    def _validate(self, data: ApplicantData) -> str | None:
        """Check required fields; return the normalized account number if one was given."""
        missing = [
            label
            for label, value in (
                ("full name", data.full_name),
                ("contact number", data.contact_number),
                ("email", data.email),
                ("password", data.password),
            )
            if not value or not value.strip()
        ]
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

        try:
            validate_email(data.email.strip(), check_deliverability=False)
        except EmailNotValidError as e:
            raise ValidationError(f"Invalid email address: {data.email}") from e

        contact = re.sub(r"[\s-]", "", data.contact_number)
        if not CONTACT_NUMBER_PATTERN.match(contact):
            raise ValidationError("Contact number must contain 7 to 15 digits")

        if len(data.password) < self.settings.min_password_length:
            raise ValidationError(
                f"Password must be at least {self.settings.min_password_length} characters long"
            )

        if data.account_number:
            normalized = normalize_account_number(data.account_number)
            if normalized is None:
                raise ValidationError(
                    f"Invalid account number format. Must be {account_number_range(self.settings)}."
                )
            return normalized
        return None

    def submit(self, data: ApplicantData) -> Application:
        """Create a pending application.

        Args:
            data: Applicant fields

        Returns:
            Created Application with a generated application_id

        Raises:
            ValidationError: If required fields are missing or malformed
        """
        account_number = self._validate(data)

        application = self.storage.insert_application(
            {
                "full_name": data.full_name.strip(),
                "contact_number": re.sub(r"[\s-]", "", data.contact_number),
                "email": data.email.strip().lower(),
                "password_hash": get_password_hash(data.password),
                "address": data.address.strip(),
                "service_type": data.service_type or "residential",
                "account_number": account_number,
                "status": ApplicationStatus.PENDING,
                "submitted_at": self.clock.now(),
                "valid_id_url": data.valid_id_url or None,
                "proof_of_residency_url": data.proof_of_residency_url or None,
            }
        )
        self.storage.commit()

        logger.info("Application %s submitted", application.application_id)
        return application

    def get(self, application_id: str) -> Application:
        """Get application by public id.

        Raises:
            NotFoundError: If no application has this id
        """
        application = self.storage.read_application(application_id)
        if application is None:
            raise NotFoundError(f"Application {application_id} not found", "application_not_found")
        return application

    def list_by_status(self, status: ApplicationStatus | None = None) -> list[Application]:
        return self.storage.list_applications(status)

    def decide(
        self, application_id: str, outcome: ApplicationStatus | str, reviewer: str
    ) -> Application:
        """Approve or decline a pending application.

        Args:
            application_id: Public application id (APP000123)
            outcome: ApplicationStatus.APPROVED or ApplicationStatus.DECLINED
            reviewer: Username of the reviewing admin

        Returns:
            The decided Application

        Raises:
            ValueError: If outcome is not approved/declined (caller bug)
            NotFoundError: If the application does not exist
            InvalidTransitionError: If the application is no longer pending
            ConflictError: If approving would give an account number a second approved application
        """
        outcome = ApplicationStatus(outcome)
        if outcome not in DECISION_OUTCOMES:
            raise ValueError(f"Unsupported decision outcome: {outcome.value}")

        application = self.get(application_id)
        if application.status != ApplicationStatus.PENDING:
            raise InvalidTransitionError(application_id, application.status.value)

        reviewed_at = self.clock.now()
        # Conditional update guards against a concurrent decision
        if not self.storage.update_application_status(application_id, outcome, reviewer, reviewed_at):
            self.storage.rollback()
            current = self.get(application_id)
            raise InvalidTransitionError(application_id, current.status.value)

        AuditService.log(
            db=self.storage.db,
            entity_type="application",
            entity_id=application.id,
            action="approve" if outcome == ApplicationStatus.APPROVED else "decline",
            actor=reviewer,
            changes={"status": outcome, "account_number": application.account_number},
        )
        self.storage.commit()

        logger.info("Application %s %s by %s", application_id, outcome.value, reviewer)
        return self.get(application_id)

    def assign_account_number(self, application_id: str, account_number: str) -> Application:
        """Link a pending application to a pool account number.

        Raises:
            ValidationError: If the account number is malformed
            NotFoundError: If the application or the pool entry does not exist
            InvalidTransitionError: If the application is no longer pending
        """
        normalized = normalize_account_number(account_number)
        if normalized is None:
            raise ValidationError(
                f"Invalid account number format. Must be {account_number_range(self.settings)}."
            )

        application = self.get(application_id)
        if application.status != ApplicationStatus.PENDING:
            raise InvalidTransitionError(application_id, application.status.value)
        if self.storage.read_account_pool_entry(normalized) is None:
            raise AccountNumberNotFoundError(normalized)

        self.storage.update_application_account_number(application_id, normalized)
        self.storage.commit()
        return self.get(application_id)


__all__ = ["ApplicantData", "ApplicationService", "DECISION_OUTCOMES"]
