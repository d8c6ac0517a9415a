"""Consumer ORM model: a provisioned, billable account holder."""

from datetime import date
from enum import Enum as PyEnum

from sqlalchemy import Date, Enum, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from powerlink.models import Base, BaseModel, enum_values


class ConsumerStatus(str, PyEnum):
    """Account standing, derived from the consumer's unpaid bills."""

    ACTIVE = "active"
    OVERDUE = "overdue"
    SUSPENDED = "suspended"


class Consumer(Base, BaseModel):
    """
    Approved applicant materialized into a billable account.

    Owns its meter readings and bills: deleting a consumer removes both.
    """

    __tablename__ = "consumers"

    account_number: Mapped[str] = mapped_column(
        String(20),
        ForeignKey("account_numbers.account_number"),
        unique=True,
        nullable=False,
        comment="Pool account number held by this consumer",
    )
    email: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    full_name: Mapped[str] = mapped_column(String(100), nullable=False)
    address: Mapped[str] = mapped_column(Text, nullable=False, default="")
    contact_number: Mapped[str | None] = mapped_column(String(20), nullable=True)
    meter_number: Mapped[str] = mapped_column(String(20), unique=True, nullable=False)
    connection_date: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[ConsumerStatus] = mapped_column(
        Enum(ConsumerStatus, native_enum=False, values_callable=enum_values, length=20),
        default=ConsumerStatus.ACTIVE,
        nullable=False,
        index=True,
    )
    service_type: Mapped[str] = mapped_column(String(20), default="residential", nullable=False)
    application_id: Mapped[int | None] = mapped_column(
        ForeignKey("applications.id", ondelete="SET NULL"),
        nullable=True,
        comment="Application this consumer was provisioned from",
    )

    meter_readings: Mapped[list["MeterReading"]] = relationship(  # noqa: F821
        "MeterReading",
        back_populates="consumer",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    bills: Mapped[list["Bill"]] = relationship(  # noqa: F821
        "Bill",
        back_populates="consumer",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return (
            f"<Consumer(id={self.id}, account_number={self.account_number}, "
            f"meter_number={self.meter_number}, status={self.status.value})>"
        )


__all__ = ["Consumer", "ConsumerStatus"]
