"""Request and response schemas for the HTTP API (camelCase on the wire)."""

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel

from powerlink.services.billing_cycle import format_billing_period
from powerlink.services.locale_service import get_locale


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class RegisterRequest(CamelModel):
    """Applicant registration payload."""

    full_name: str = ""
    email: str = ""
    phone: str = ""
    password: str = ""
    address: str = ""
    account_number: str | None = None
    valid_id_url: str | None = None
    proof_of_residency_url: str | None = None


class RegisterResponse(CamelModel):
    success: bool
    message: str
    application_id: str


class ApplicationResponse(CamelModel):
    application_id: str
    full_name: str
    email: str
    contact_number: str
    account_number: str | None
    status: str
    submitted_at: datetime
    reviewed_at: datetime | None = None
    reviewed_by: str | None = None


class DecisionRequest(CamelModel):
    outcome: str
    reviewer: str


class AssignAccountNumberRequest(CamelModel):
    account_number: str


class ProvisionRequest(CamelModel):
    actor: str | None = None
    connection_date: date | None = None


class ConsumerResponse(CamelModel):
    id: int
    account_number: str
    full_name: str
    email: str
    meter_number: str
    connection_date: date
    status: str
    service_type: str


class MeterReadingRequest(CamelModel):
    reading_date: date
    value: Decimal = Field(ge=0)
    actor: str | None = None


class MeterReadingResponse(CamelModel):
    id: int
    consumer_id: int
    reading_date: date
    meter_reading: Decimal


class BillResponse(CamelModel):
    id: int
    bill_number: str
    billing_period_start: date
    billing_period_end: date
    billing_period: str
    kwh_used: Decimal
    rate_per_kwh: Decimal
    amount_due: Decimal
    due_date: date
    status: str

    @classmethod
    def from_bill(cls, bill) -> "BillResponse":
        return cls(
            id=bill.id,
            bill_number=bill.bill_number,
            billing_period_start=bill.billing_period_start,
            billing_period_end=bill.billing_period_end,
            billing_period=format_billing_period(
                bill.billing_period_start, bill.billing_period_end, get_locale()
            ),
            kwh_used=bill.kwh_used,
            rate_per_kwh=bill.rate_per_kwh,
            amount_due=bill.amount_due,
            due_date=bill.due_date,
            status=bill.status.value,
        )


class PaymentRequest(CamelModel):
    amount: Decimal = Field(gt=0)
    payment_method: str
    payment_reference: str | None = None


class LoginRequest(CamelModel):
    identifier: str
    password: str
    role: str | None = None


class PasswordResetRequest(CamelModel):
    email: EmailStr


class PasswordResetVerifyRequest(CamelModel):
    email: EmailStr
    verification_code: str


class PasswordResetConfirmRequest(CamelModel):
    email: EmailStr
    verification_code: str
    new_password: str
