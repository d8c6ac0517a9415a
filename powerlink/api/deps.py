"""FastAPI dependencies shared by the routers."""

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from powerlink.clock import Clock, SystemClock
from powerlink.config import Settings, get_settings
from powerlink.services import get_db
from powerlink.services.storage import Storage
from powerlink.services.verification_codes import VerificationCodeStore


def get_storage(db: Session = Depends(get_db)) -> Storage:
    return Storage(db)


def get_app_settings() -> Settings:
    return get_settings()


def get_clock(settings: Settings = Depends(get_app_settings)) -> Clock:
    return SystemClock.from_settings(settings)


def get_code_store(request: Request) -> VerificationCodeStore:
    """Verification-code store created with the app (see create_app)."""
    return request.app.state.code_store
