"""Integration tests: approved application -> consumer with a reserved account number."""

from datetime import date
from decimal import Decimal

import pytest

from powerlink.errors import AlreadyAssignedError, ConflictError, NotFoundError, ValidationError
from powerlink.models import AuditLog, Bill, Consumer, ConsumerStatus, MeterReading
from powerlink.services.account_validator import AccountStatus, AccountValidator
from powerlink.services.bill_service import BillService
from powerlink.services.meter_billing import MeterBillingService
from powerlink.services.provisioning_service import ProvisioningService, meter_number_for


@pytest.fixture
def provisioning(storage, settings, clock) -> ProvisioningService:
    return ProvisioningService(storage, settings, clock)


def test_meter_number_follows_account_number():
    assert meter_number_for("C004") == "MT-004"


class TestProvision:
    """Provisioning an approved application."""

    def test_submit_approve_validate_provision(
        self, application_service, make_applicant, provisioning, pool, storage, settings, db_session
    ):
        application = application_service.submit(make_applicant(account_number="C007"))
        validator = AccountValidator(storage, settings)
        assert validator.validate("C007").status == AccountStatus.PENDING

        application_service.decide(application.application_id, "approved", "admin")
        assert validator.validate("C007").is_valid is True

        consumer = provisioning.provision(application.application_id, actor="admin")

        assert consumer.account_number == "C007"
        assert consumer.meter_number == "MT-007"
        assert consumer.status == ConsumerStatus.ACTIVE
        assert consumer.connection_date == date(2025, 1, 10)
        assert consumer.email == application.email
        assert consumer.password_hash == application.password_hash

        entry = storage.read_account_pool_entry("C007")
        assert entry.is_assigned is True
        assert entry.assigned_to == consumer.id
        assert validator.validate("C007").is_assigned is True
        assert db_session.query(AuditLog).filter_by(action="provision").count() == 1

    def test_pending_application_cannot_be_provisioned(
        self, application_service, make_applicant, provisioning, pool
    ):
        application = application_service.submit(make_applicant())

        with pytest.raises(ConflictError) as exc_info:
            provisioning.provision(application.application_id)
        assert exc_info.value.code == "application_not_approved"

    def test_application_without_account_number(
        self, application_service, make_applicant, provisioning, pool
    ):
        application = application_service.submit(make_applicant(account_number=None))
        application_service.decide(application.application_id, "approved", "admin")

        with pytest.raises(ValidationError):
            provisioning.provision(application.application_id)

    def test_unknown_application(self, provisioning, pool):
        with pytest.raises(NotFoundError):
            provisioning.provision("APP000404")

    def test_provisioning_twice_keeps_one_consumer(
        self, application_service, make_applicant, provisioning, pool, db_session, storage
    ):
        application = application_service.submit(make_applicant())
        application_service.decide(application.application_id, "approved", "admin")
        first = provisioning.provision(application.application_id)

        with pytest.raises(AlreadyAssignedError):
            provisioning.provision(application.application_id)

        assert db_session.query(Consumer).count() == 1
        assert storage.read_account_pool_entry("C001").assigned_to == first.id

    def test_failed_insert_leaves_number_unassigned(
        self, application_service, make_applicant, provisioning, pool, storage
    ):
        first = application_service.submit(make_applicant(email="same@example.com"))
        second = application_service.submit(
            make_applicant(email="same@example.com", account_number="C002")
        )
        application_service.decide(first.application_id, "approved", "admin")
        application_service.decide(second.application_id, "approved", "admin")
        provisioning.provision(first.application_id)

        with pytest.raises(ConflictError):
            provisioning.provision(second.application_id)

        assert storage.read_account_pool_entry("C002").is_assigned is False


class TestDeactivate:
    """Deleting a consumer removes its readings and bills and frees the number."""

    def test_deactivate(self, consumer, provisioning, storage, settings, clock, db_session):
        MeterBillingService(storage, settings).record_reading(
            consumer.id, date(2025, 1, 10), Decimal("50")
        )
        BillService(storage, settings, clock).issue_bill(consumer.id)
        consumer_id = consumer.id

        provisioning.deactivate(consumer_id, actor="admin")

        assert storage.read_consumer(consumer_id) is None
        assert db_session.query(MeterReading).count() == 0
        assert db_session.query(Bill).count() == 0
        assert storage.read_account_pool_entry("C001").is_assigned is False
        # The originating application is kept
        assert storage.read_application("APP000001") is not None

    def test_deactivate_unknown_consumer(self, provisioning, pool):
        with pytest.raises(NotFoundError):
            provisioning.deactivate(404)
