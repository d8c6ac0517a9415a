"""Registration, login and password reset endpoints."""

import logging

from fastapi import APIRouter, Depends, status

from powerlink.api.deps import get_app_settings, get_clock, get_code_store, get_storage
from powerlink.api.schemas import (
    LoginRequest,
    PasswordResetConfirmRequest,
    PasswordResetRequest,
    PasswordResetVerifyRequest,
    RegisterRequest,
    RegisterResponse,
)
from powerlink.clock import Clock
from powerlink.config import Settings
from powerlink.errors import ValidationError
from powerlink.services.application_service import ApplicantData, ApplicationService
from powerlink.services.auth_service import AdminPrincipal, AuthService, Role
from powerlink.services.storage import Storage
from powerlink.services.verification_codes import VerificationCodeStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


def get_auth_service(
    storage: Storage = Depends(get_storage),
    code_store: VerificationCodeStore = Depends(get_code_store),
    settings: Settings = Depends(get_app_settings),
    clock: Clock = Depends(get_clock),
) -> AuthService:
    return AuthService(storage, code_store=code_store, settings=settings, clock=clock)


@router.post("/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
def register(
    payload: RegisterRequest,
    storage: Storage = Depends(get_storage),
    settings: Settings = Depends(get_app_settings),
    clock: Clock = Depends(get_clock),
) -> RegisterResponse:
    """
    Submit a service application for admin review.

    Returns:
        201: Application created with status pending
        400: Missing or malformed fields
    """
    application = ApplicationService(storage, settings, clock).submit(
        ApplicantData(
            full_name=payload.full_name,
            contact_number=payload.phone,
            email=payload.email,
            password=payload.password,
            address=payload.address,
            account_number=payload.account_number,
            valid_id_url=payload.valid_id_url,
            proof_of_residency_url=payload.proof_of_residency_url,
        )
    )
    return RegisterResponse(
        success=True,
        message="Registration submitted successfully! Your application will be reviewed by our admin team.",
        application_id=application.application_id,
    )


@router.post("/login")
def login(payload: LoginRequest, auth: AuthService = Depends(get_auth_service)) -> dict:
    """
    Check credentials for the admin (username) or consumer (account number) portal.

    Returns:
        200: Principal details
        400: Unknown role
        401: Invalid credentials
    """
    expected_role = None
    if payload.role:
        try:
            expected_role = Role(payload.role)
        except ValueError as e:
            raise ValidationError(f"Unknown role: {payload.role}") from e

    principal = auth.authenticate(payload.identifier, payload.password, expected_role)
    user = {
        "id": principal.id,
        "email": principal.email,
        "fullName": principal.full_name,
        "role": principal.role.value,
    }
    if isinstance(principal, AdminPrincipal):
        user["username"] = principal.username
    else:
        user["accountNumber"] = principal.account_number
    return {"success": True, "user": user}


@router.post("/password-reset/request")
def request_password_reset(
    payload: PasswordResetRequest, auth: AuthService = Depends(get_auth_service)
) -> dict:
    return {"success": True, "message": auth.request_password_reset(payload.email)}


@router.post("/password-reset/verify")
def verify_reset_code(
    payload: PasswordResetVerifyRequest, auth: AuthService = Depends(get_auth_service)
) -> dict:
    return {"success": auth.verify_reset_code(payload.email, payload.verification_code)}


@router.post("/password-reset/confirm")
def confirm_password_reset(
    payload: PasswordResetConfirmRequest, auth: AuthService = Depends(get_auth_service)
) -> dict:
    auth.reset_password(payload.email, payload.verification_code, payload.new_password)
    return {"success": True, "message": "Password has been reset successfully."}
