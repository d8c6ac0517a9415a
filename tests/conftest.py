"""Pytest configuration and shared fixtures."""

import os
from datetime import datetime, timedelta, timezone

# Keep the module-level engine off the developer database BEFORE importing powerlink
os.environ.setdefault("POWERLINK_DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from passlib.context import CryptContext
from sqlalchemy.orm import sessionmaker

from powerlink.api.app import app
from powerlink.api.deps import get_app_settings, get_clock
from powerlink.clock import FixedClock
from powerlink.config import Settings
from powerlink.models import Base
from powerlink.services import build_engine, get_db
from powerlink.services import security
from powerlink.services.account_registry import AccountRegistry
from powerlink.services.application_service import ApplicantData, ApplicationService
from powerlink.services.provisioning_service import ProvisioningService
from powerlink.services.storage import Storage
from powerlink.services.verification_codes import InMemoryVerificationCodeStore


@pytest.fixture(autouse=True)
def fast_password_hashing(monkeypatch):
    """Minimum bcrypt cost so hashing does not dominate test time."""
    monkeypatch.setattr(
        security, "pwd_context", CryptContext(schemes=["bcrypt"], bcrypt__rounds=4)
    )


@pytest.fixture
def test_engine():
    """In-memory SQLite engine with all tables created, dropped after the test."""
    engine = build_engine("sqlite://")
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db_session(test_engine):
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)
    session = TestingSessionLocal()
    yield session
    session.close()


@pytest.fixture
def storage(db_session) -> Storage:
    return Storage(db_session)


@pytest.fixture
def settings() -> Settings:
    """Settings with defaults only (no .env, no environment overrides)."""
    return Settings(
        _env_file=None,
        database_url="sqlite://",
        account_pool_size=160,
        admin_password="",
    )


@pytest.fixture
def clock() -> FixedClock:
    """Frozen at 10 Jan 2025, 09:00 UTC."""
    return FixedClock(datetime(2025, 1, 10, 9, 0, tzinfo=timezone.utc))


@pytest.fixture
def pool(storage, settings, clock) -> AccountRegistry:
    """Registry with the C001-C160 pool provisioned."""
    registry = AccountRegistry(storage, settings, clock)
    registry.provision_pool()
    return registry


@pytest.fixture
def application_service(storage, settings, clock) -> ApplicationService:
    return ApplicationService(storage, settings, clock)


@pytest.fixture
def make_applicant():
    """Factory for valid applicant data; keyword arguments override fields."""

    def _make(**overrides) -> ApplicantData:
        fields = {
            "full_name": "Juan Dela Cruz",
            "contact_number": "09171234567",
            "email": "juan@example.com",
            "password": "s3cretpass",
            "address": "Purok 3, Barangay Poblacion",
            "account_number": "C001",
        }
        fields.update(overrides)
        return ApplicantData(**fields)

    return _make


@pytest.fixture
def consumer(pool, application_service, make_applicant, storage, settings, clock):
    """Consumer provisioned on C001 from an approved application."""
    application = application_service.submit(make_applicant())
    application_service.decide(application.application_id, "approved", "admin")
    return ProvisioningService(storage, settings, clock).provision(application.application_id)


@pytest.fixture
def client(db_session, settings, clock):
    """FastAPI test client bound to the test session, settings and clock."""

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_app_settings] = lambda: settings
    app.dependency_overrides[get_clock] = lambda: clock
    original_store = app.state.code_store
    app.state.code_store = InMemoryVerificationCodeStore(ttl=timedelta(minutes=15), clock=clock)

    yield TestClient(app)

    app.state.code_store = original_store
    app.dependency_overrides.clear()
