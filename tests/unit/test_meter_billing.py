"""Unit tests for the meter-reading billing computer."""

from datetime import date
from decimal import Decimal

import pytest

from powerlink.errors import ConflictError, MeterReadingAnomalyError, NotFoundError, ValidationError
from powerlink.models import AuditLog, MeterReading
from powerlink.services.meter_billing import MeterBillingService, compute_bill

RATE = Decimal("12.50")


def _reading(value: str, day: int) -> MeterReading:
    return MeterReading(consumer_id=1, reading_date=date(2025, 1, day), meter_reading=Decimal(value))


class TestComputeBill:
    """Pure computation from readings ordered newest first."""

    def test_two_readings(self):
        result = compute_bill([_reading("1000", 31), _reading("80", 1)], RATE)

        assert result.current_reading == Decimal("1000")
        assert result.previous_reading == Decimal("80")
        assert result.kwh_used == Decimal("920")
        assert result.amount_due == Decimal("11500.00")
        assert result.is_anomalous is False
        assert result.current_reading_date == date(2025, 1, 31)
        assert result.previous_reading_date == date(2025, 1, 1)

    def test_hundred_to_one_eighty(self):
        result = compute_bill([_reading("180", 31), _reading("100", 1)], RATE)

        assert result.kwh_used == Decimal("80")
        assert result.amount_due == Decimal("1000.00")

    def test_single_reading_bills_whole_register(self):
        result = compute_bill([_reading("50", 31)], RATE)

        assert result.previous_reading == Decimal("0")
        assert result.kwh_used == Decimal("50")
        assert result.amount_due == Decimal("625.00")
        assert result.previous_reading_date is None

    def test_no_readings(self):
        result = compute_bill([], RATE)

        assert result.kwh_used == Decimal("0")
        assert result.amount_due == Decimal("0.00")
        assert result.current_reading_date is None

    def test_only_latest_two_readings_count(self):
        readings = [_reading("300", 31), _reading("200", 15), _reading("100", 1)]
        assert compute_bill(readings, RATE).kwh_used == Decimal("100")

    def test_decreasing_meter_is_flagged(self):
        result = compute_bill([_reading("90", 31), _reading("100", 1)], RATE)

        assert result.kwh_used == Decimal("-10")
        assert result.is_anomalous is True

    def test_amount_rounds_half_up_to_cents(self):
        result = compute_bill([_reading("0.05", 31)], Decimal("0.1"))
        assert result.amount_due == Decimal("0.01")

    def test_to_dict_keys(self):
        data = compute_bill([_reading("1000", 31), _reading("80", 1)], RATE).to_dict()

        assert data == {
            "currentReading": Decimal("1000"),
            "previousReading": Decimal("80"),
            "kwhUsed": Decimal("920"),
            "ratePerKwh": RATE,
            "totalAmountDue": Decimal("11500.00"),
            "isAnomalous": False,
        }


class TestMeterBillingService:
    """Recording readings and computing receipts from storage."""

    def test_receipt_without_readings_is_zero(self, storage, settings, consumer):
        result = MeterBillingService(storage, settings).receipt_for(consumer.id)
        assert result.amount_due == Decimal("0.00")

    def test_two_readings_bill_the_difference(self, storage, settings, consumer):
        service = MeterBillingService(storage, settings)
        service.record_reading(consumer.id, date(2025, 1, 1), Decimal("100"))
        service.record_reading(consumer.id, date(2025, 2, 1), Decimal("180"))

        result = service.receipt_for(consumer.id)

        assert result.kwh_used == Decimal("80")
        assert result.amount_due == Decimal("1000.00")

    def test_record_and_receipt(self, storage, settings, consumer, db_session):
        service = MeterBillingService(storage, settings)
        service.record_reading(consumer.id, date(2025, 1, 1), Decimal("80"), actor="admin")
        service.record_reading(consumer.id, date(2025, 2, 1), Decimal("1000"), actor="admin")

        result = service.receipt_for(consumer.id)

        assert result.kwh_used == Decimal("920")
        assert result.amount_due == Decimal("11500.00")
        assert db_session.query(AuditLog).filter_by(entity_type="meter_reading").count() == 2

    def test_reading_below_previous_is_rejected(self, storage, settings, consumer):
        service = MeterBillingService(storage, settings)
        service.record_reading(consumer.id, date(2025, 1, 1), Decimal("100"))

        with pytest.raises(MeterReadingAnomalyError) as exc_info:
            service.record_reading(consumer.id, date(2025, 2, 1), Decimal("90"))

        assert exc_info.value.http_status == 400
        assert len(storage.read_latest_meter_readings(consumer.id)) == 1

    def test_backdated_reading_above_later_one_is_rejected(self, storage, settings, consumer):
        service = MeterBillingService(storage, settings)
        service.record_reading(consumer.id, date(2025, 1, 1), Decimal("100"))
        service.record_reading(consumer.id, date(2025, 1, 31), Decimal("200"))

        with pytest.raises(MeterReadingAnomalyError):
            service.record_reading(consumer.id, date(2025, 1, 15), Decimal("300"))

        readings = storage.read_latest_meter_readings(consumer.id, limit=10)
        values = [r.meter_reading for r in reversed(readings)]
        assert values == sorted(values)
        assert service.receipt_for(consumer.id).kwh_used == Decimal("100")

    def test_backdated_reading_between_neighbours_is_accepted(self, storage, settings, consumer):
        service = MeterBillingService(storage, settings)
        service.record_reading(consumer.id, date(2025, 1, 1), Decimal("100"))
        service.record_reading(consumer.id, date(2025, 1, 31), Decimal("200"))

        service.record_reading(consumer.id, date(2025, 1, 15), Decimal("150"))

        assert len(storage.read_latest_meter_readings(consumer.id, limit=10)) == 3

    def test_duplicate_date_conflicts(self, storage, settings, consumer):
        service = MeterBillingService(storage, settings)
        service.record_reading(consumer.id, date(2025, 1, 1), Decimal("100"))

        with pytest.raises(ConflictError):
            service.record_reading(consumer.id, date(2025, 1, 1), Decimal("120"))

    def test_negative_value(self, storage, settings, consumer):
        with pytest.raises(ValidationError):
            MeterBillingService(storage, settings).record_reading(
                consumer.id, date(2025, 1, 1), Decimal("-1")
            )

    def test_unknown_consumer(self, storage, settings, pool):
        with pytest.raises(NotFoundError):
            MeterBillingService(storage, settings).record_reading(999, date(2025, 1, 1), Decimal("1"))
