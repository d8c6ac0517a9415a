"""Contract tests for GET /api/applications/check-status."""

from unittest.mock import patch

from powerlink.errors import TransientStorageError
from powerlink.services.storage import Storage


def test_missing_account_number(client):
    response = client.get("/api/applications/check-status")

    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["status"]["isValid"] is False
    assert body["status"]["message"] == "Account number is required"


def test_malformed_account_number(client, pool):
    response = client.get("/api/applications/check-status", params={"accountNumber": "XYZ"})

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is False
    assert body["status"]["status"] == "invalid"
    assert body["status"]["message"] == "Invalid account number format. Must be C001 to C160."


def test_unlinked_account_number(client, pool):
    response = client.get("/api/applications/check-status", params={"accountNumber": "C045"})

    body = response.json()
    assert body["success"] is False
    assert body["status"]["exists"] is True
    assert body["status"]["status"] == "pending"


def test_approved_account_number(client, pool, application_service, make_applicant):
    application = application_service.submit(make_applicant())
    application_service.decide(application.application_id, "approved", "admin")

    response = client.get("/api/applications/check-status", params={"accountNumber": "c001"})

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["status"] == {
        "isApproved": True,
        "isValid": True,
        "exists": True,
        "isAssigned": False,
        "accountNumber": "C001",
        "applicationId": application.application_id,
        "fullName": "Juan Dela Cruz",
        "email": "juan@example.com",
        "status": "approved",
        "message": "Account number verified and approved. You can now create your account.",
        "retryable": False,
    }


def test_storage_outage_is_retryable(client, pool):
    with patch.object(Storage, "read_account_pool_entry", side_effect=TransientStorageError()):
        response = client.get("/api/applications/check-status", params={"accountNumber": "C001"})

    assert response.status_code == 503
    body = response.json()
    assert body["success"] is False
    assert body["status"]["retryable"] is True
    assert "try again later" in body["status"]["message"]
