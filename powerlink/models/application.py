"""Application ORM model for service requests awaiting admin review."""

from datetime import datetime
from enum import Enum as PyEnum

from sqlalchemy import DateTime, Enum, Index, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from powerlink.models import Base, BaseModel, enum_values


class ApplicationStatus(str, PyEnum):
    """Enumeration for application status."""

    PENDING = "pending"
    APPROVED = "approved"
    DECLINED = "declined"


class Application(Base, BaseModel):
    """
    One applicant's request for electric service.

    Status only moves pending -> approved or pending -> declined. Applications
    are kept for audit after the consumer they produced is deactivated.

    Timestamps:
    - submitted_at: When the applicant submitted the request
    - reviewed_at: When an admin approved or declined it
    """

    __tablename__ = "applications"

    application_id: Mapped[str | None] = mapped_column(
        String(20), unique=True, nullable=True, comment="Public id, APP + 6 digits"
    )
    full_name: Mapped[str] = mapped_column(String(100), nullable=False)
    address: Mapped[str] = mapped_column(Text, nullable=False, default="")
    contact_number: Mapped[str] = mapped_column(String(20), nullable=False)
    email: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    service_type: Mapped[str] = mapped_column(String(20), default="residential", nullable=False)
    password_hash: Mapped[str] = mapped_column(
        String(255), nullable=False, comment="Credential carried over to the consumer"
    )
    account_number: Mapped[str | None] = mapped_column(
        String(20), nullable=True, comment="Linked pool account number (nullable until assigned)"
    )
    status: Mapped[ApplicationStatus] = mapped_column(
        Enum(
            ApplicationStatus,
            native_enum=False,
            values_callable=enum_values,
            length=20,
        ),
        default=ApplicationStatus.PENDING,
        nullable=False,
        index=True,
        comment="Status: pending/approved/declined",
    )

    submitted_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    reviewed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    reviewed_by: Mapped[str | None] = mapped_column(
        String(50), nullable=True, comment="Reviewer username"
    )
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Supporting documents
    valid_id_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    proof_of_residency_url: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        Index("idx_applications_account_number", "account_number"),
        # At most one approved application may hold a given account number,
        # enforced by the store so that concurrent processes cannot race.
        Index(
            "uq_applications_approved_account_number",
            "account_number",
            unique=True,
            sqlite_where=text("status = 'approved'"),
            postgresql_where=text("status = 'approved'"),
        ),
    )

    def __repr__(self) -> str:
        return (
            f"<Application(application_id={self.application_id}, "
            f"account_number={self.account_number}, status={self.status.value})>"
        )


__all__ = ["Application", "ApplicationStatus"]
