"""Bill issuing, payment settlement and consumer standing."""

import logging
from decimal import Decimal

from powerlink.clock import Clock, SystemClock
from powerlink.config import Settings, get_settings
from powerlink.errors import ConflictError, MeterReadingAnomalyError, NotFoundError, ValidationError
from powerlink.models import Bill, BillStatus, Consumer, ConsumerStatus, Payment
from powerlink.services.audit_service import AuditService
from powerlink.services.billing_cycle import (
    BillingSchedule,
    consumer_status_for,
    generate_next_due_date,
    get_billing_status,
    resolve_bill_status,
)
from powerlink.services.meter_billing import MeterBillingService
from powerlink.services.storage import Storage

logger = logging.getLogger(__name__)


class BillService:
    """Service for bill lifecycle operations.

    Bills are issued from the two latest meter readings, follow the billing
    cycle while unpaid and become paid once a payment settles them.
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
        self.schedule = BillingSchedule.from_settings(self.settings)
        self.meter_billing = MeterBillingService(storage, self.settings)

    def _get_consumer(self, consumer_id: int) -> Consumer:
        consumer = self.storage.read_consumer(consumer_id)
        if consumer is None:
            raise NotFoundError(f"Consumer {consumer_id} not found", "consumer_not_found")
        return consumer

    def issue_bill(self, consumer_id: int, actor: str | None = None) -> Bill:
        """Persist a bill for the period between the two latest readings.

        With a single reading the period starts at the connection date.

        Raises:
            NotFoundError: If the consumer does not exist
            ValidationError: If the consumer has no meter readings yet
            MeterReadingAnomalyError: If the meter went backwards
            ConflictError: If a bill for this period was already issued
        """
        consumer = self._get_consumer(consumer_id)
        computation = self.meter_billing.receipt_for(consumer_id)

        if computation.current_reading_date is None:
            raise ValidationError(
                f"Consumer {consumer_id} has no meter readings to bill", "no_meter_readings"
            )
        if computation.is_anomalous:
            raise MeterReadingAnomalyError(
                f"Meter for {consumer.account_number} decreased from "
                f"{computation.previous_reading} to {computation.current_reading}"
            )

        period_start = computation.previous_reading_date or consumer.connection_date
        period_end = computation.current_reading_date
        today = self.clock.today()

        bill = self.storage.insert_bill(
            {
                "bill_number": f"B-{consumer.account_number}-{period_end:%Y%m%d}",
                "consumer_id": consumer_id,
                "billing_period_start": period_start,
                "billing_period_end": period_end,
                "previous_reading": computation.previous_reading,
                "current_reading": computation.current_reading,
                "kwh_used": computation.kwh_used,
                "rate_per_kwh": computation.rate_per_kwh,
                "amount_due": computation.amount_due,
                "due_date": generate_next_due_date(today, self.schedule),
                "status": BillStatus.PENDING,
            }
        )
        AuditService.log(
            db=self.storage.db,
            entity_type="bill",
            entity_id=bill.id,
            action="create",
            actor=actor,
            changes={
                "bill_number": bill.bill_number,
                "kwh_used": bill.kwh_used,
                "amount_due": bill.amount_due,
                "due_date": bill.due_date,
            },
        )
        self.storage.commit()

        logger.info(
            "Bill %s issued: %s kWh, amount due %s",
            bill.bill_number,
            bill.kwh_used,
            bill.amount_due,
        )
        return bill

    def current_status(self, bill: Bill) -> BillStatus:
        """Bill status as of today (does not write)."""
        return resolve_bill_status(bill.paid_at is not None, bill.due_date, self.clock.today(), self.schedule)

    def record_payment(
        self,
        bill_id: int,
        amount: Decimal,
        payment_method: str,
        payment_reference: str | None = None,
    ) -> Payment:
        """Settle a bill in full.

        Raises:
            NotFoundError: If the bill does not exist
            ConflictError: If the bill is already paid
            ValidationError: If the amount does not cover the amount due
        """
        bill = self.storage.read_bill(bill_id)
        if bill is None:
            raise NotFoundError(f"Bill {bill_id} not found", "bill_not_found")
        if bill.status == BillStatus.PAID:
            raise ConflictError(f"Bill {bill.bill_number} is already paid", "bill_already_paid")

        amount = Decimal(amount)
        if amount < bill.amount_due:
            raise ValidationError(
                f"Payment of {amount} does not cover amount due {bill.amount_due}",
                "insufficient_payment",
            )

        bill_number = bill.bill_number
        paid_at = self.clock.now()
        # Conditional flip; a concurrent settlement leaves zero rows to update
        if not self.storage.mark_bill_paid(bill.id, paid_at):
            self.storage.rollback()
            raise ConflictError(f"Bill {bill_number} is already paid", "bill_already_paid")

        try:
            payment = self.storage.insert_payment(
                {
                    "bill_id": bill.id,
                    "consumer_id": bill.consumer_id,
                    "amount": amount,
                    "payment_method": payment_method,
                    "payment_reference": payment_reference,
                    "paid_at": paid_at,
                }
            )
        except ConflictError as e:
            raise ConflictError(f"Bill {bill_number} is already paid", "bill_already_paid") from e

        AuditService.log(
            db=self.storage.db,
            entity_type="bill",
            entity_id=bill.id,
            action="pay",
            changes={"amount": amount, "payment_method": payment_method},
        )
        self.storage.flush()
        self._apply_consumer_status(bill.consumer_id)
        self.storage.commit()

        logger.info("Bill %s paid via %s", bill.bill_number, payment_method)
        return payment

    def refresh_consumer_status(self, consumer_id: int) -> ConsumerStatus:
        """Recompute stored bill statuses and the consumer standing for today."""
        self._get_consumer(consumer_id)
        status = self._apply_consumer_status(consumer_id)
        self.storage.commit()
        return status

    def _apply_consumer_status(self, consumer_id: int) -> ConsumerStatus:
        """Update unpaid bill statuses; the oldest unpaid bill sets the consumer status."""
        consumer = self._get_consumer(consumer_id)
        today = self.clock.today()

        unpaid = self.storage.list_unpaid_bills(consumer_id)
        for bill in unpaid:
            bill.status = self.current_status(bill)

        if unpaid:
            oldest = unpaid[0]
            status = consumer_status_for(get_billing_status(oldest.due_date, today, self.schedule))
        else:
            status = ConsumerStatus.ACTIVE

        if consumer.status != status:
            logger.info(
                "Consumer %s status %s -> %s",
                consumer.account_number,
                consumer.status.value,
                status.value,
            )
            consumer.status = status
        return status


__all__ = ["BillService"]
