"""Billing cycle calculator.

Billing dates:
- Due date: 5th of each month
- Overdue period: 6th to 14th of the month
- Suspended / cut off: from the 15th of the month

Every function takes "today" explicitly so results are deterministic.
"""

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum

from powerlink.config import BillingStatusPolicy, Settings
from powerlink.models import BillStatus, ConsumerStatus
from powerlink.services.locale_service import DEFAULT_LOCALE, format_period_date


class CycleStatus(str, Enum):
    """Position of an unpaid bill in the billing cycle."""

    PENDING = "pending"
    OVERDUE = "overdue"
    SUSPENDED = "suspended"


CONSUMER_STATUS_BY_CYCLE = {
    CycleStatus.PENDING: ConsumerStatus.ACTIVE,
    CycleStatus.OVERDUE: ConsumerStatus.OVERDUE,
    CycleStatus.SUSPENDED: ConsumerStatus.SUSPENDED,
}

CONSUMER_STATUS_LABELS = {
    ConsumerStatus.ACTIVE: "Active",
    ConsumerStatus.OVERDUE: "Overdue",
    ConsumerStatus.SUSPENDED: "Suspended",
}


@dataclass(frozen=True)
class BillingSchedule:
    """Day boundaries of the billing cycle and the status policy."""

    due_day: int = 5
    suspension_day: int = 15
    policy: BillingStatusPolicy = BillingStatusPolicy.CALENDAR_POSITION
    suspension_after_days: int = 10

    @classmethod
    def from_settings(cls, settings: Settings) -> "BillingSchedule":
        return cls(
            due_day=settings.due_day,
            suspension_day=settings.suspension_day,
            policy=settings.billing_status_policy,
            suspension_after_days=settings.suspension_after_days,
        )


DEFAULT_SCHEDULE = BillingSchedule()


def to_date(value: date | datetime | str) -> date:
    """Normalize a date, datetime or ISO string to a calendar date (midnight)."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return datetime.fromisoformat(value).date()


def get_due_date_for_month(base: date | datetime | str, schedule: BillingSchedule = DEFAULT_SCHEDULE) -> date:
    """Due date (the 5th) of the month containing `base`."""
    return to_date(base).replace(day=schedule.due_day)


def get_billing_status(
    due_date: date | datetime | str,
    today: date | datetime | str,
    schedule: BillingSchedule = DEFAULT_SCHEDULE,
) -> CycleStatus:
    """Billing cycle status of an unpaid bill.

    CALENDAR_POSITION looks only at today's day of month, whichever month
    the due date belongs to. ELAPSED_SINCE_DUE counts days since the bill's
    own due date.
    """
    today = to_date(today)

    if schedule.policy == BillingStatusPolicy.ELAPSED_SINCE_DUE:
        days_late = (today - to_date(due_date)).days
        if days_late <= 0:
            return CycleStatus.PENDING
        if days_late < schedule.suspension_after_days:
            return CycleStatus.OVERDUE
        return CycleStatus.SUSPENDED

    day_of_month = today.day
    if day_of_month <= schedule.due_day:
        return CycleStatus.PENDING
    if day_of_month < schedule.suspension_day:
        return CycleStatus.OVERDUE
    return CycleStatus.SUSPENDED


def consumer_status_for(cycle_status: CycleStatus) -> ConsumerStatus:
    return CONSUMER_STATUS_BY_CYCLE[cycle_status]


def get_consumer_status_based_on_billing(
    due_date: date | datetime | str,
    today: date | datetime | str,
    schedule: BillingSchedule = DEFAULT_SCHEDULE,
) -> str:
    """Display label for the consumer: "Active", "Overdue" or "Suspended"."""
    status = consumer_status_for(get_billing_status(due_date, today, schedule))
    return CONSUMER_STATUS_LABELS[status]


def generate_next_due_date(today: date | datetime | str, schedule: BillingSchedule = DEFAULT_SCHEDULE) -> date:
    """Next due date: this month's 5th if it is still ahead, otherwise next month's."""
    today = to_date(today)
    if today.day < schedule.due_day:
        return today.replace(day=schedule.due_day)
    if today.month == 12:
        return date(today.year + 1, 1, schedule.due_day)
    return date(today.year, today.month + 1, schedule.due_day)


def is_bill_past_due_date(due_date: date | datetime | str, today: date | datetime | str) -> bool:
    """True once today is a later calendar day than the due date."""
    return to_date(today) > to_date(due_date)


def format_billing_period(
    start: date | datetime | str,
    end: date | datetime | str,
    locale: str = DEFAULT_LOCALE,
) -> str:
    """Render a period as "Jan 5, 2025 - Feb 4, 2025"."""
    return f"{format_period_date(to_date(start), locale)} - {format_period_date(to_date(end), locale)}"


def resolve_bill_status(
    is_paid: bool,
    due_date: date | datetime | str,
    today: date | datetime | str,
    schedule: BillingSchedule = DEFAULT_SCHEDULE,
) -> BillStatus:
    """Stored bill status: paid bills stay paid, others follow the cycle."""
    if is_paid:
        return BillStatus.PAID
    return BillStatus(get_billing_status(due_date, today, schedule).value)


__all__ = [
    "BillingSchedule",
    "CycleStatus",
    "DEFAULT_SCHEDULE",
    "consumer_status_for",
    "format_billing_period",
    "generate_next_due_date",
    "get_billing_status",
    "get_consumer_status_based_on_billing",
    "get_due_date_for_month",
    "is_bill_past_due_date",
    "resolve_bill_status",
    "to_date",
]
