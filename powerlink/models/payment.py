"""Payment ORM model for settled bills."""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import DateTime, ForeignKey, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from powerlink.models import Base, BaseModel


class Payment(Base, BaseModel):
    """Model representing a payment that settles a bill."""

    __tablename__ = "payments"

    bill_id: Mapped[int] = mapped_column(
        ForeignKey("bills.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        unique=True,
        comment="Bill being settled; one payment per bill",
    )
    consumer_id: Mapped[int] = mapped_column(
        ForeignKey("consumers.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    payment_method: Mapped[str] = mapped_column(String(50), nullable=False)
    payment_reference: Mapped[str | None] = mapped_column(String(100), nullable=True)
    paid_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    bill: Mapped["Bill"] = relationship("Bill", back_populates="payments")  # noqa: F821

    def __repr__(self) -> str:
        return (
            f"<Payment(id={self.id}, bill_id={self.bill_id}, amount={self.amount}, "
            f"payment_method={self.payment_method})>"
        )


__all__ = ["Payment"]
