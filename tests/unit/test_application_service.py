"""Unit tests for application submission and decisions."""

import pytest

from powerlink.errors import (
    AccountNumberNotFoundError,
    ConflictError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from powerlink.models import ApplicationStatus, AuditLog
from powerlink.services.security import verify_password


class TestSubmit:
    """Application submission and field validation."""

    def test_submit_creates_pending_application(self, application_service, make_applicant, clock):
        application = application_service.submit(make_applicant(email="Juan@Example.com"))

        assert application.status == ApplicationStatus.PENDING
        assert application.application_id == f"APP{application.id:06d}"
        assert application.email == "juan@example.com"
        assert application.account_number == "C001"
        assert application.service_type == "residential"
        assert application.submitted_at.replace(tzinfo=None) == clock.now().replace(tzinfo=None)
        assert application.reviewed_at is None

    def test_password_is_stored_hashed(self, application_service, make_applicant):
        application = application_service.submit(make_applicant())

        assert application.password_hash != "s3cretpass"
        assert verify_password("s3cretpass", application.password_hash)

    def test_account_number_is_normalized(self, application_service, make_applicant):
        application = application_service.submit(make_applicant(account_number=" c045 "))
        assert application.account_number == "C045"

    def test_account_number_is_optional(self, application_service, make_applicant):
        application = application_service.submit(make_applicant(account_number=None))
        assert application.account_number is None

    def test_application_ids_are_unique(self, application_service, make_applicant):
        first = application_service.submit(make_applicant(email="a@example.com"))
        second = application_service.submit(make_applicant(email="b@example.com"))
        assert first.application_id != second.application_id

    @pytest.mark.parametrize("field", ["full_name", "contact_number", "email", "password"])
    def test_required_fields(self, application_service, make_applicant, field):
        with pytest.raises(ValidationError) as exc_info:
            application_service.submit(make_applicant(**{field: "  "}))
        assert "Missing required fields" in exc_info.value.message

    @pytest.mark.parametrize("email", ["not-an-email", "juan@", "juan@@example.com", "juan@localhost"])
    def test_invalid_email(self, application_service, make_applicant, email):
        with pytest.raises(ValidationError) as exc_info:
            application_service.submit(make_applicant(email=email))
        assert exc_info.value.message.startswith("Invalid email address")

    def test_contact_number_allows_separators(self, application_service, make_applicant):
        application = application_service.submit(make_applicant(contact_number="+63 917-123-4567"))
        assert application.contact_number == "+639171234567"

    def test_contact_number_must_be_digits(self, application_service, make_applicant):
        with pytest.raises(ValidationError):
            application_service.submit(make_applicant(contact_number="call me"))

    def test_short_password(self, application_service, make_applicant):
        with pytest.raises(ValidationError) as exc_info:
            application_service.submit(make_applicant(password="short"))
        assert "at least 8 characters" in exc_info.value.message

    def test_malformed_account_number(self, application_service, make_applicant):
        with pytest.raises(ValidationError) as exc_info:
            application_service.submit(make_applicant(account_number="ABC"))
        assert exc_info.value.message == "Invalid account number format. Must be C001 to C160."


class TestDecide:
    """Pending -> approved/declined transitions."""

    def test_approve(self, application_service, make_applicant, clock, db_session):
        application = application_service.submit(make_applicant())

        decided = application_service.decide(application.application_id, "approved", "admin")

        assert decided.status == ApplicationStatus.APPROVED
        assert decided.reviewed_by == "admin"
        assert decided.reviewed_at is not None
        audit = db_session.query(AuditLog).filter_by(entity_type="application").one()
        assert audit.action == "approve"
        assert audit.actor == "admin"

    def test_decline(self, application_service, make_applicant):
        application = application_service.submit(make_applicant())

        decided = application_service.decide(
            application.application_id, ApplicationStatus.DECLINED, "admin"
        )

        assert decided.status == ApplicationStatus.DECLINED

    def test_decision_is_final(self, application_service, make_applicant):
        application = application_service.submit(make_applicant())
        application_service.decide(application.application_id, "declined", "admin")

        with pytest.raises(InvalidTransitionError) as exc_info:
            application_service.decide(application.application_id, "approved", "admin")

        assert exc_info.value.current_status == "declined"
        assert application_service.get(application.application_id).status == ApplicationStatus.DECLINED

    def test_pending_is_not_a_decision(self, application_service, make_applicant):
        application = application_service.submit(make_applicant())

        with pytest.raises(ValueError):
            application_service.decide(application.application_id, "pending", "admin")

    def test_unknown_application(self, application_service):
        with pytest.raises(NotFoundError):
            application_service.decide("APP999999", "approved", "admin")

    def test_second_approval_for_same_account_number(self, application_service, make_applicant):
        first = application_service.submit(make_applicant(email="a@example.com"))
        second = application_service.submit(make_applicant(email="b@example.com"))
        application_service.decide(first.application_id, "approved", "admin")

        with pytest.raises(ConflictError):
            application_service.decide(second.application_id, "approved", "admin")

        assert application_service.get(second.application_id).status == ApplicationStatus.PENDING

    def test_list_by_status(self, application_service, make_applicant):
        first = application_service.submit(make_applicant(email="a@example.com"))
        application_service.submit(make_applicant(email="b@example.com", account_number="C002"))
        application_service.decide(first.application_id, "approved", "admin")

        pending = application_service.list_by_status(ApplicationStatus.PENDING)
        assert [app.email for app in pending] == ["b@example.com"]
        assert len(application_service.list_by_status()) == 2


class TestAssignAccountNumber:
    """Linking a pool number to a pending application."""

    def test_assign(self, application_service, make_applicant, pool):
        application = application_service.submit(make_applicant(account_number=None))

        updated = application_service.assign_account_number(application.application_id, "c012")

        assert updated.account_number == "C012"

    def test_assign_outside_pool(self, application_service, make_applicant, pool):
        application = application_service.submit(make_applicant(account_number=None))

        with pytest.raises(AccountNumberNotFoundError):
            application_service.assign_account_number(application.application_id, "C999")

    def test_assign_after_decision(self, application_service, make_applicant, pool):
        application = application_service.submit(make_applicant())
        application_service.decide(application.application_id, "declined", "admin")

        with pytest.raises(InvalidTransitionError):
            application_service.assign_account_number(application.application_id, "C002")
