"""SQLAlchemy base model with common fields and model exports."""

from datetime import datetime, timezone
from enum import Enum as PyEnum

from sqlalchemy import DateTime
from sqlalchemy.orm import Mapped, declarative_base, mapped_column

# Base class for all models
Base = declarative_base()


class BaseModel:
    """Base model with common timestamp fields."""

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )


def enum_values(enum_cls: type[PyEnum]) -> list[str]:
    """Persist enums by value ("approved") rather than by member name."""
    return [member.value for member in enum_cls]


# Import models to register them with Base (after Base is defined)
from powerlink.models.admin import Admin  # noqa: E402
from powerlink.models.account_number import AccountNumber  # noqa: E402
from powerlink.models.application import Application, ApplicationStatus  # noqa: E402
from powerlink.models.consumer import Consumer, ConsumerStatus  # noqa: E402
from powerlink.models.meter_reading import MeterReading  # noqa: E402
from powerlink.models.bill import Bill, BillStatus  # noqa: E402
from powerlink.models.payment import Payment  # noqa: E402
from powerlink.models.audit_log import AuditLog  # noqa: E402

__all__ = [
    "Base",
    "BaseModel",
    "enum_values",
    "Admin",
    "AccountNumber",
    "Application",
    "ApplicationStatus",
    "Consumer",
    "ConsumerStatus",
    "MeterReading",
    "Bill",
    "BillStatus",
    "Payment",
    "AuditLog",
]
