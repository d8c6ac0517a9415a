"""Unit tests for principals, login and password reset."""

from datetime import timedelta

import pytest

from powerlink.errors import AuthenticationError, ValidationError
from powerlink.services.auth_service import (
    RESET_REQUESTED_MESSAGE,
    AdminPrincipal,
    AuthService,
    ConsumerPrincipal,
    Role,
)
from powerlink.services.security import get_password_hash
from powerlink.services.verification_codes import InMemoryVerificationCodeStore


@pytest.fixture
def admin(storage):
    admin = storage.insert_admin(
        {
            "username": "admin",
            "password_hash": get_password_hash("adminpass1"),
            "email": "admin@powerlink-bapa.com",
            "full_name": "System Administrator",
            "role": "admin",
        }
    )
    storage.commit()
    return admin


@pytest.fixture
def sent_codes():
    return []


@pytest.fixture
def auth(storage, settings, clock, sent_codes) -> AuthService:
    store = InMemoryVerificationCodeStore(ttl=timedelta(minutes=15), clock=clock)
    return AuthService(
        storage,
        code_store=store,
        settings=settings,
        clock=clock,
        send_code=lambda email, code: sent_codes.append((email, code)),
    )


class TestAuthenticate:
    """Credential checks for both portals."""

    def test_admin_login(self, auth, admin):
        principal = auth.authenticate("admin", "adminpass1", Role.ADMIN)

        assert isinstance(principal, AdminPrincipal)
        assert principal.role == Role.ADMIN
        assert principal.identifier == "admin"

    def test_consumer_login_with_account_number(self, auth, consumer):
        principal = auth.authenticate("c001", "s3cretpass", Role.CONSUMER)

        assert isinstance(principal, ConsumerPrincipal)
        assert principal.account_number == "C001"
        assert principal.email == "juan@example.com"

    def test_wrong_password(self, auth, admin):
        with pytest.raises(AuthenticationError):
            auth.authenticate("admin", "wrong-password")

    def test_unknown_identifier(self, auth):
        with pytest.raises(AuthenticationError):
            auth.authenticate("nobody", "whatever1")

    def test_wrong_portal(self, auth, admin):
        with pytest.raises(AuthenticationError):
            auth.authenticate("admin", "adminpass1", Role.CONSUMER)

    def test_resolve_principal(self, auth, admin):
        assert auth.resolve_principal("admin").id == admin.id
        assert auth.resolve_principal("C042") is None


class TestPasswordReset:
    """Email verification code workflow."""

    def test_unknown_email_gets_the_same_message(self, auth, sent_codes):
        assert auth.request_password_reset("ghost@example.com") == RESET_REQUESTED_MESSAGE
        assert sent_codes == []

    def test_full_reset(self, auth, consumer, sent_codes):
        assert auth.request_password_reset("juan@example.com") == RESET_REQUESTED_MESSAGE
        email, code = sent_codes[0]
        assert email == "juan@example.com"
        assert len(code) == 6 and code.isdigit()

        assert auth.verify_reset_code("juan@example.com", code) is True
        auth.reset_password("juan@example.com", code, "newpassword1")

        assert auth.authenticate("C001", "newpassword1").account_number == "C001"
        # The code is single use
        assert auth.verify_reset_code("juan@example.com", code) is False

    def test_wrong_code(self, auth, consumer, sent_codes):
        auth.request_password_reset("juan@example.com")

        with pytest.raises(AuthenticationError) as exc_info:
            auth.reset_password("juan@example.com", "000000", "newpassword1")
        assert exc_info.value.code == "invalid_verification_code"

    def test_expired_code(self, auth, consumer, sent_codes, clock):
        auth.request_password_reset("juan@example.com")
        _, code = sent_codes[0]

        clock.advance(minutes=16)

        assert auth.verify_reset_code("juan@example.com", code) is False

    def test_new_password_too_short(self, auth, consumer, sent_codes):
        auth.request_password_reset("juan@example.com")
        _, code = sent_codes[0]

        with pytest.raises(ValidationError):
            auth.reset_password("juan@example.com", code, "short")

    def test_admin_reset(self, auth, admin, sent_codes):
        auth.request_password_reset("ADMIN@powerlink-bapa.com")
        _, code = sent_codes[0]

        auth.reset_password("admin@powerlink-bapa.com", code, "rotated-pass")

        assert auth.authenticate("admin", "rotated-pass").username == "admin"
