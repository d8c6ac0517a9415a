"""Admin routes: application review, provisioning, meter readings and bills."""

import logging

from fastapi import APIRouter, Depends, Query, status

from powerlink.api.deps import get_app_settings, get_clock, get_storage
from powerlink.api.schemas import (
    ApplicationResponse,
    AssignAccountNumberRequest,
    BillResponse,
    ConsumerResponse,
    DecisionRequest,
    MeterReadingRequest,
    MeterReadingResponse,
    ProvisionRequest,
)
from powerlink.clock import Clock
from powerlink.config import Settings
from powerlink.errors import ValidationError
from powerlink.models import Application, ApplicationStatus, Consumer
from powerlink.services.account_registry import AccountRegistry
from powerlink.services.application_service import DECISION_OUTCOMES, ApplicationService
from powerlink.services.bill_service import BillService
from powerlink.services.meter_billing import MeterBillingService
from powerlink.services.provisioning_service import ProvisioningService
from powerlink.services.storage import Storage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["admin"])


def _application_response(application: Application) -> ApplicationResponse:
    return ApplicationResponse(
        application_id=application.application_id,
        full_name=application.full_name,
        email=application.email,
        contact_number=application.contact_number,
        account_number=application.account_number,
        status=application.status.value,
        submitted_at=application.submitted_at,
        reviewed_at=application.reviewed_at,
        reviewed_by=application.reviewed_by,
    )


def _consumer_response(consumer: Consumer) -> ConsumerResponse:
    return ConsumerResponse(
        id=consumer.id,
        account_number=consumer.account_number,
        full_name=consumer.full_name,
        email=consumer.email,
        meter_number=consumer.meter_number,
        connection_date=consumer.connection_date,
        status=consumer.status.value,
        service_type=consumer.service_type,
    )


@router.get("/applications", response_model=list[ApplicationResponse])
def list_applications(
    status_filter: str | None = Query(default=None, alias="status"),
    storage: Storage = Depends(get_storage),
    settings: Settings = Depends(get_app_settings),
    clock: Clock = Depends(get_clock),
) -> list[ApplicationResponse]:
    """
    List applications, optionally filtered by status.

    Returns:
        200: Applications, newest first
        400: Unknown status
    """
    application_status = None
    if status_filter:
        try:
            application_status = ApplicationStatus(status_filter)
        except ValueError as e:
            raise ValidationError(f"Unknown application status: {status_filter}") from e

    applications = ApplicationService(storage, settings, clock).list_by_status(application_status)
    return [_application_response(app) for app in applications]


@router.post("/applications/{application_id}/decision", response_model=ApplicationResponse)
def decide_application(
    application_id: str,
    payload: DecisionRequest,
    storage: Storage = Depends(get_storage),
    settings: Settings = Depends(get_app_settings),
    clock: Clock = Depends(get_clock),
) -> ApplicationResponse:
    """
    Approve or decline a pending application.

    Returns:
        200: Decided application
        400: Outcome is not approved/declined
        404: Application not found
        409: Application already decided
    """
    if payload.outcome not in {outcome.value for outcome in DECISION_OUTCOMES}:
        raise ValidationError("Outcome must be 'approved' or 'declined'")

    application = ApplicationService(storage, settings, clock).decide(
        application_id, payload.outcome, payload.reviewer
    )
    return _application_response(application)


@router.post("/applications/{application_id}/account-number", response_model=ApplicationResponse)
def assign_account_number(
    application_id: str,
    payload: AssignAccountNumberRequest,
    storage: Storage = Depends(get_storage),
    settings: Settings = Depends(get_app_settings),
    clock: Clock = Depends(get_clock),
) -> ApplicationResponse:
    application = ApplicationService(storage, settings, clock).assign_account_number(
        application_id, payload.account_number
    )
    return _application_response(application)


@router.post(
    "/applications/{application_id}/provision",
    response_model=ConsumerResponse,
    status_code=status.HTTP_201_CREATED,
)
def provision_consumer(
    application_id: str,
    payload: ProvisionRequest,
    storage: Storage = Depends(get_storage),
    settings: Settings = Depends(get_app_settings),
    clock: Clock = Depends(get_clock),
) -> ConsumerResponse:
    """
    Create the consumer for an approved application.

    Returns:
        201: Consumer created, account number reserved
        404: Application or account number not found
        409: Application not approved, or account number already assigned
    """
    consumer = ProvisioningService(storage, settings, clock).provision(
        application_id, actor=payload.actor, connection_date=payload.connection_date
    )
    return _consumer_response(consumer)


@router.get("/account-numbers/available")
def list_available_account_numbers(
    limit: int = Query(default=20, ge=1, le=200),
    storage: Storage = Depends(get_storage),
    settings: Settings = Depends(get_app_settings),
    clock: Clock = Depends(get_clock),
) -> dict:
    available = AccountRegistry(storage, settings, clock).list_available(limit)
    return {"success": True, "accountNumbers": available}


@router.delete("/consumers/{consumer_id}", status_code=status.HTTP_204_NO_CONTENT)
def deactivate_consumer(
    consumer_id: int,
    actor: str | None = Query(default=None),
    storage: Storage = Depends(get_storage),
    settings: Settings = Depends(get_app_settings),
    clock: Clock = Depends(get_clock),
) -> None:
    ProvisioningService(storage, settings, clock).deactivate(consumer_id, actor=actor)


@router.post(
    "/consumers/{consumer_id}/meter-readings",
    response_model=MeterReadingResponse,
    status_code=status.HTTP_201_CREATED,
)
def record_meter_reading(
    consumer_id: int,
    payload: MeterReadingRequest,
    storage: Storage = Depends(get_storage),
    settings: Settings = Depends(get_app_settings),
) -> MeterReadingResponse:
    """
    Record a cumulative meter reading.

    Returns:
        201: Reading stored
        400: Reading below the previous one
        404: Consumer not found
        409: A reading for this date already exists
    """
    reading = MeterBillingService(storage, settings).record_reading(
        consumer_id, payload.reading_date, payload.value, actor=payload.actor
    )
    return MeterReadingResponse(
        id=reading.id,
        consumer_id=reading.consumer_id,
        reading_date=reading.reading_date,
        meter_reading=reading.meter_reading,
    )


@router.post(
    "/consumers/{consumer_id}/bills",
    response_model=BillResponse,
    status_code=status.HTTP_201_CREATED,
)
def issue_bill(
    consumer_id: int,
    actor: str | None = Query(default=None),
    storage: Storage = Depends(get_storage),
    settings: Settings = Depends(get_app_settings),
    clock: Clock = Depends(get_clock),
) -> BillResponse:
    bill = BillService(storage, settings, clock).issue_bill(consumer_id, actor=actor)
    return BillResponse.from_bill(bill)


@router.post("/consumers/{consumer_id}/refresh-status")
def refresh_consumer_status(
    consumer_id: int,
    storage: Storage = Depends(get_storage),
    settings: Settings = Depends(get_app_settings),
    clock: Clock = Depends(get_clock),
) -> dict:
    consumer_status = BillService(storage, settings, clock).refresh_consumer_status(consumer_id)
    return {"success": True, "status": consumer_status.value}
