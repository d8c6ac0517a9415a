"""Account number status check used by the consumer sign-up page."""

import logging

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse

from powerlink.api.deps import get_app_settings, get_storage
from powerlink.config import Settings
from powerlink.services.account_validator import AccountValidator
from powerlink.services.storage import Storage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/applications", tags=["applications"])


@router.get("/check-status")
def check_status(
    account_number: str | None = Query(default=None, alias="accountNumber"),
    storage: Storage = Depends(get_storage),
    settings: Settings = Depends(get_app_settings),
):
    """
    Validate an account number and report the linked application's status.

    Returns:
        200: Validation result (success mirrors isValid)
        400: accountNumber missing
        503: Storage temporarily unavailable (retry later)
    """
    if not account_number:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={
                "success": False,
                "status": {
                    "message": "Account number is required",
                    "isValid": False,
                    "isApproved": False,
                    "status": "invalid",
                },
            },
        )

    result = AccountValidator(storage, settings).validate(account_number)
    body = {
        "success": result.is_valid,
        "status": {
            "isApproved": result.is_approved,
            "isValid": result.is_valid,
            "exists": result.exists,
            "isAssigned": result.is_assigned,
            "accountNumber": result.account_number,
            "applicationId": result.application_id,
            "fullName": result.full_name,
            "email": result.email,
            "status": result.status.value,
            "message": result.message,
            "retryable": result.transient,
        },
    }
    if result.transient:
        return JSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content=body)
    return body
