"""Meter-reading billing computer: consumption and amount due from readings."""

import logging
from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Sequence

from powerlink.config import Settings, get_settings
from powerlink.errors import MeterReadingAnomalyError, NotFoundError, ValidationError
from powerlink.models import MeterReading
from powerlink.services.audit_service import AuditService
from powerlink.services.storage import Storage

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")


@dataclass(frozen=True)
class BillComputation:
    """Consumption and amount due for the latest billing period.

    `is_anomalous` is True when the meter went backwards; kwh_used is then
    negative and reported as is.
    """

    current_reading: Decimal
    previous_reading: Decimal
    kwh_used: Decimal
    rate_per_kwh: Decimal
    amount_due: Decimal
    current_reading_date: date | None = None
    previous_reading_date: date | None = None

    @property
    def is_anomalous(self) -> bool:
        return self.kwh_used < 0

    def to_dict(self) -> dict:
        return {
            "currentReading": self.current_reading,
            "previousReading": self.previous_reading,
            "kwhUsed": self.kwh_used,
            "ratePerKwh": self.rate_per_kwh,
            "totalAmountDue": self.amount_due,
            "isAnomalous": self.is_anomalous,
        }


def compute_bill(readings: Sequence[MeterReading], rate_per_kwh: Decimal) -> BillComputation:
    """Compute a bill from readings ordered newest first.

    - Two or more readings: newest minus second newest
    - One reading: the whole register value since connection
    - No readings: a zero bill
    """
    if len(readings) >= 2:
        newest, previous = readings[0], readings[1]
        current_value = Decimal(newest.meter_reading)
        previous_value = Decimal(previous.meter_reading)
        current_date, previous_date = newest.reading_date, previous.reading_date
    elif len(readings) == 1:
        current_value = Decimal(readings[0].meter_reading)
        previous_value = Decimal(0)
        current_date, previous_date = readings[0].reading_date, None
    else:
        current_value = previous_value = Decimal(0)
        current_date = previous_date = None

    kwh_used = current_value - previous_value
    amount_due = (kwh_used * rate_per_kwh).quantize(CENTS, rounding=ROUND_HALF_UP)

    return BillComputation(
        current_reading=current_value,
        previous_reading=previous_value,
        kwh_used=kwh_used,
        rate_per_kwh=rate_per_kwh,
        amount_due=amount_due,
        current_reading_date=current_date,
        previous_reading_date=previous_date,
    )


class MeterBillingService:
    """Records meter readings and computes receipts from them."""

    def __init__(self, storage: Storage, settings: Settings | None = None):
        self.storage = storage
        self.settings = settings or get_settings()

    def receipt_for(self, consumer_id: int) -> BillComputation:
        """Bill computed from the consumer's two most recent readings.

        Always returns a computation (zero when there are no readings).
        """
        readings = self.storage.read_latest_meter_readings(consumer_id, limit=2)
        computation = compute_bill(readings, self.settings.rate_per_kwh)
        if computation.is_anomalous:
            logger.warning(
                "Meter for consumer %d decreased: %s -> %s",
                consumer_id,
                computation.previous_reading,
                computation.current_reading,
            )
        return computation

    def record_reading(
        self,
        consumer_id: int,
        reading_date: date,
        value: Decimal,
        actor: str | None = None,
    ) -> MeterReading:
        """Store a new meter reading.

        Args:
            consumer_id: Consumer the meter belongs to
            reading_date: Date the meter was read
            value: Cumulative register value (kWh)
            actor: Admin username entering the reading (for audit logging)

        Raises:
            NotFoundError: If the consumer does not exist
            ValidationError: If the value is negative
            MeterReadingAnomalyError: If the value is below the previous reading
                or above the next one
            ConflictError: If a reading for this date already exists
        """
        value = Decimal(value)
        if value < 0:
            raise ValidationError("Meter reading cannot be negative")

        if self.storage.read_consumer(consumer_id) is None:
            raise NotFoundError(f"Consumer {consumer_id} not found", "consumer_not_found")

        previous = self.storage.read_previous_meter_reading(consumer_id, reading_date)
        if previous is not None and value < previous.meter_reading:
            raise MeterReadingAnomalyError(
                f"Reading value ({value}) must be greater than or equal to previous reading "
                f"({previous.meter_reading} on {previous.reading_date.isoformat()})"
            )

        # Backdated readings must also fit below the next recorded one
        following = self.storage.read_next_meter_reading(consumer_id, reading_date)
        if following is not None and value > following.meter_reading:
            raise MeterReadingAnomalyError(
                f"Reading value ({value}) must be less than or equal to later reading "
                f"({following.meter_reading} on {following.reading_date.isoformat()})"
            )

        reading = self.storage.insert_meter_reading(consumer_id, reading_date, value)
        AuditService.log(
            db=self.storage.db,
            entity_type="meter_reading",
            entity_id=reading.id,
            action="create",
            actor=actor,
            changes={
                "consumer_id": consumer_id,
                "reading_date": reading_date,
                "reading_value": value,
                "previous_value": previous.meter_reading if previous else None,
            },
        )
        self.storage.commit()
        return reading


__all__ = ["BillComputation", "MeterBillingService", "compute_bill"]
