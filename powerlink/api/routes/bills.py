"""Consumer-facing bill routes."""

import logging

from fastapi import APIRouter, Depends, Header, status

from powerlink.api.deps import get_app_settings, get_clock, get_storage
from powerlink.api.schemas import BillResponse, PaymentRequest
from powerlink.clock import Clock
from powerlink.config import Settings
from powerlink.errors import NotFoundError, ValidationError
from powerlink.models import Consumer
from powerlink.services.account_registry import account_number_range, normalize_account_number
from powerlink.services.bill_service import BillService
from powerlink.services.billing_cycle import get_consumer_status_based_on_billing
from powerlink.services.locale_service import format_amount
from powerlink.services.meter_billing import MeterBillingService
from powerlink.services.storage import Storage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/bills", tags=["bills"])


def _consumer_for_header(storage: Storage, settings: Settings, raw_account_number: str | None) -> Consumer:
    account_number = normalize_account_number(raw_account_number)
    if account_number is None:
        raise ValidationError(
            f"X-Account-Number header must be an account number ({account_number_range(settings)})"
        )
    consumer = storage.read_consumer_by_account_number(account_number)
    if consumer is None:
        raise NotFoundError("Consumer not found", "consumer_not_found")
    return consumer


@router.get("/receipt-data")
def receipt_data(
    x_account_number: str | None = Header(default=None),
    storage: Storage = Depends(get_storage),
    settings: Settings = Depends(get_app_settings),
) -> dict:
    """
    Consumption and amount due computed from the two latest meter readings.

    Returns:
        200: Receipt data (zero amounts when no readings exist)
        400: Missing or malformed X-Account-Number header
        404: No consumer with that account number
    """
    consumer = _consumer_for_header(storage, settings, x_account_number)
    computation = MeterBillingService(storage, settings).receipt_for(consumer.id)
    data = computation.to_dict()
    data["formattedAmountDue"] = format_amount(computation.amount_due)
    return {"success": True, "data": data}


@router.get("/outstanding")
def outstanding_bills(
    x_account_number: str | None = Header(default=None),
    storage: Storage = Depends(get_storage),
    settings: Settings = Depends(get_app_settings),
    clock: Clock = Depends(get_clock),
) -> dict:
    """Unpaid bills with their status as of today, plus the consumer standing."""
    consumer = _consumer_for_header(storage, settings, x_account_number)
    service = BillService(storage, settings, clock)
    bills = storage.list_unpaid_bills(consumer.id)

    oldest_due = bills[0].due_date if bills else None
    standing = (
        get_consumer_status_based_on_billing(oldest_due, clock.today(), service.schedule)
        if oldest_due is not None
        else "Active"
    )
    items = []
    for bill in bills:
        item = BillResponse.from_bill(bill).model_dump(by_alias=True, mode="json")
        item["status"] = service.current_status(bill).value
        items.append(item)
    return {"success": True, "consumerStatus": standing, "bills": items}


@router.post("/{bill_id}/payments", status_code=status.HTTP_201_CREATED)
def pay_bill(
    bill_id: int,
    payload: PaymentRequest,
    storage: Storage = Depends(get_storage),
    settings: Settings = Depends(get_app_settings),
    clock: Clock = Depends(get_clock),
) -> dict:
    """
    Settle a bill in full.

    Returns:
        201: Payment recorded, bill marked paid
        400: Amount below the amount due
        404: Bill not found
        409: Bill already paid
    """
    payment = BillService(storage, settings, clock).record_payment(
        bill_id, payload.amount, payload.payment_method, payload.payment_reference
    )
    return {
        "success": True,
        "payment": {
            "id": payment.id,
            "billId": payment.bill_id,
            "amount": str(payment.amount),
            "paymentMethod": payment.payment_method,
            "paidAt": payment.paid_at.isoformat(),
        },
    }
