"""Bill ORM model: invoice derived from two consecutive meter readings."""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum as PyEnum

from sqlalchemy import Date, DateTime, Enum, ForeignKey, Index, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from powerlink.models import Base, BaseModel, enum_values


class BillStatus(str, PyEnum):
    """Billing cycle status of a bill."""

    PENDING = "pending"
    OVERDUE = "overdue"
    SUSPENDED = "suspended"
    PAID = "paid"


class Bill(Base, BaseModel):
    """
    Invoice for one billing period of one consumer.

    kwh_used = current_reading - previous_reading and
    amount_due = kwh_used * rate_per_kwh. Status follows the billing cycle
    until a payment settles the bill.
    """

    __tablename__ = "bills"

    bill_number: Mapped[str] = mapped_column(String(30), unique=True, nullable=False)
    consumer_id: Mapped[int] = mapped_column(
        ForeignKey("consumers.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    billing_period_start: Mapped[date] = mapped_column(Date, nullable=False)
    billing_period_end: Mapped[date] = mapped_column(Date, nullable=False)

    previous_reading: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    current_reading: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    kwh_used: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    rate_per_kwh: Mapped[Decimal] = mapped_column(Numeric(10, 4), nullable=False)
    amount_due: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)

    due_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    status: Mapped[BillStatus] = mapped_column(
        Enum(BillStatus, native_enum=False, values_callable=enum_values, length=20),
        default=BillStatus.PENDING,
        nullable=False,
        index=True,
    )
    paid_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    consumer: Mapped["Consumer"] = relationship(  # noqa: F821
        "Consumer", back_populates="bills"
    )
    payments: Mapped[list["Payment"]] = relationship(  # noqa: F821
        "Payment",
        back_populates="bill",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (Index("idx_bills_consumer_status", "consumer_id", "status"),)

    def __repr__(self) -> str:
        return (
            f"<Bill(bill_number={self.bill_number}, consumer_id={self.consumer_id}, "
            f"amount_due={self.amount_due}, due_date={self.due_date}, status={self.status.value})>"
        )


__all__ = ["Bill", "BillStatus"]
