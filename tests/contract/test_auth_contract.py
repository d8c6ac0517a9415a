"""Contract tests for /api/auth endpoints."""

from powerlink.api.app import app
from powerlink.models import Application, ApplicationStatus


def _register_payload(**overrides):
    payload = {
        "fullName": "Maria Santos",
        "email": "maria@example.com",
        "phone": "09181234567",
        "password": "mariapass1",
        "address": "Sitio Ilaya",
        "accountNumber": "C002",
    }
    payload.update(overrides)
    return payload


def test_register(client, pool, db_session):
    response = client.post("/api/auth/register", json=_register_payload())

    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["applicationId"].startswith("APP")

    application = db_session.query(Application).one()
    assert application.status == ApplicationStatus.PENDING
    assert application.account_number == "C002"


def test_register_missing_fields(client, pool):
    response = client.post("/api/auth/register", json=_register_payload(fullName="", password=""))

    assert response.status_code == 400
    error = response.json()["error"]
    assert error["code"] == "validation_error"
    assert "full name" in error["message"]
    assert "password" in error["message"]


def test_register_invalid_email(client, pool):
    response = client.post("/api/auth/register", json=_register_payload(email="maria@localhost"))

    assert response.status_code == 400
    assert response.json()["error"]["message"].startswith("Invalid email address")


def test_register_bad_account_number(client, pool):
    response = client.post("/api/auth/register", json=_register_payload(accountNumber="2"))

    assert response.status_code == 400
    assert response.json()["error"]["message"] == "Invalid account number format. Must be C001 to C160."


def test_consumer_login(client, consumer):
    response = client.post(
        "/api/auth/login",
        json={"identifier": "C001", "password": "s3cretpass", "role": "consumer"},
    )

    assert response.status_code == 200
    user = response.json()["user"]
    assert user["role"] == "consumer"
    assert user["accountNumber"] == "C001"


def test_login_rejected(client, consumer):
    response = client.post(
        "/api/auth/login", json={"identifier": "C001", "password": "wrong-pass"}
    )

    assert response.status_code == 401
    assert response.json()["error"]["code"] == "authentication_failed"


def test_login_unknown_role(client, consumer):
    response = client.post(
        "/api/auth/login",
        json={"identifier": "C001", "password": "s3cretpass", "role": "superuser"},
    )
    assert response.status_code == 400


def test_password_reset_flow(client, consumer):
    response = client.post("/api/auth/password-reset/request", json={"email": "juan@example.com"})
    assert response.status_code == 200
    assert response.json()["success"] is True

    code = app.state.code_store.get("juan@example.com")
    assert code is not None

    verify = client.post(
        "/api/auth/password-reset/verify",
        json={"email": "juan@example.com", "verificationCode": code},
    )
    assert verify.json() == {"success": True}

    confirm = client.post(
        "/api/auth/password-reset/confirm",
        json={"email": "juan@example.com", "verificationCode": code, "newPassword": "brand-new-1"},
    )
    assert confirm.status_code == 200

    login = client.post("/api/auth/login", json={"identifier": "C001", "password": "brand-new-1"})
    assert login.status_code == 200


def test_password_reset_with_wrong_code(client, consumer):
    client.post("/api/auth/password-reset/request", json={"email": "juan@example.com"})

    response = client.post(
        "/api/auth/password-reset/confirm",
        json={"email": "juan@example.com", "verificationCode": "000000", "newPassword": "brand-new-1"},
    )

    assert response.status_code == 401
    assert response.json()["error"]["code"] == "invalid_verification_code"


def test_password_reset_rejects_malformed_email(client, consumer):
    response = client.post("/api/auth/password-reset/request", json={"email": "juan-at-example"})

    assert response.status_code == 422
