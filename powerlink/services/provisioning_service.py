"""Provisioning workflow: turn an approved application into a billable consumer."""

import logging
from datetime import date

from powerlink.clock import Clock, SystemClock
from powerlink.config import Settings, get_settings
from powerlink.errors import ConflictError, NotFoundError, PowerlinkError, ValidationError
from powerlink.models import ApplicationStatus, Consumer, ConsumerStatus
from powerlink.services.account_registry import AccountRegistry, normalize_account_number
from powerlink.services.audit_service import AuditService
from powerlink.services.storage import Storage

logger = logging.getLogger(__name__)


def meter_number_for(account_number: str) -> str:
    """Meter numbers follow the account number slot: C004 -> MT-004."""
    return f"MT-{account_number[1:]}"


class ProvisioningService:
    """Creates consumers from approved applications.

    Reserving the account number and inserting the consumer happen in one
    transaction: either both are stored or neither is.
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
        self.registry = AccountRegistry(storage, self.settings, self.clock)

    def provision(
        self,
        application_id: str,
        actor: str | None = None,
        connection_date: date | None = None,
    ) -> Consumer:
        """Create the consumer for an approved application.

        Args:
            application_id: Public application id
            actor: Admin username (for audit logging)
            connection_date: Service connection date (default: today)

        Returns:
            Created Consumer

        Raises:
            NotFoundError: If the application does not exist
            ValidationError: If the application has no account number linked
            ConflictError: If the application is not approved, or the consumer
                email/account number is already taken
            AlreadyAssignedError: If the account number is already assigned
            AccountNumberNotFoundError: If the account number is not in the pool
        """
        application = self.storage.read_application(application_id)
        if application is None:
            raise NotFoundError(f"Application {application_id} not found", "application_not_found")
        if application.status != ApplicationStatus.APPROVED:
            raise ConflictError(
                f"Application {application_id} is {application.status.value}; only approved "
                "applications can be provisioned",
                "application_not_approved",
            )

        account_number = normalize_account_number(application.account_number)
        if account_number is None:
            raise ValidationError(
                f"Application {application_id} has no account number linked",
                "account_number_missing",
            )

        try:
            self.registry.reserve(account_number, None)
            consumer = self.storage.insert_consumer(
                {
                    "account_number": account_number,
                    "email": application.email,
                    "password_hash": application.password_hash,
                    "full_name": application.full_name,
                    "address": application.address,
                    "contact_number": application.contact_number,
                    "meter_number": meter_number_for(account_number),
                    "connection_date": connection_date or self.clock.today(),
                    "status": ConsumerStatus.ACTIVE,
                    "service_type": application.service_type,
                    "application_id": application.id,
                }
            )
            # Back-reference now that the consumer has an id
            entry = self.storage.read_account_pool_entry(account_number)
            entry.assigned_to = consumer.id

            AuditService.log(
                db=self.storage.db,
                entity_type="consumer",
                entity_id=consumer.id,
                action="provision",
                actor=actor,
                changes={
                    "application_id": application_id,
                    "account_number": account_number,
                    "meter_number": consumer.meter_number,
                },
            )
            self.storage.commit()
        except PowerlinkError:
            self.storage.rollback()
            raise

        logger.info(
            "Consumer %d provisioned from %s with account %s",
            consumer.id,
            application_id,
            account_number,
        )
        return consumer

    def deactivate(self, consumer_id: int, actor: str | None = None) -> None:
        """Delete a consumer (readings and bills go with it) and release its number.

        The originating application is kept for audit.
        """
        consumer = self.storage.read_consumer(consumer_id)
        if consumer is None:
            raise NotFoundError(f"Consumer {consumer_id} not found", "consumer_not_found")

        account_number = consumer.account_number
        try:
            self.storage.delete_consumer(consumer)
            self.registry.release(account_number)
            AuditService.log(
                db=self.storage.db,
                entity_type="consumer",
                entity_id=consumer_id,
                action="deactivate",
                actor=actor,
                changes={"account_number": account_number},
            )
            self.storage.commit()
        except PowerlinkError:
            self.storage.rollback()
            raise
        logger.info("Consumer %d deactivated, account %s released", consumer_id, account_number)


__all__ = ["ProvisioningService", "meter_number_for"]
