"""AccountNumber ORM model: the fixed pool of cooperative account identifiers."""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from powerlink.models import Base, BaseModel


class AccountNumber(Base, BaseModel):
    """
    One slot of the pre-provisioned account number pool (C001 to C160).

    Slots are inserted once when the pool is provisioned. A slot goes from
    unassigned to assigned exactly once; only an explicit release returns it.
    """

    __tablename__ = "account_numbers"

    account_number: Mapped[str] = mapped_column(
        String(20), unique=True, nullable=False, comment="Canonical identifier, e.g. C001"
    )
    is_assigned: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False, index=True, comment="True once reserved"
    )
    assigned_to: Mapped[int | None] = mapped_column(
        nullable=True, comment="Consumer id holding this number"
    )
    assigned_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    def __repr__(self) -> str:
        return (
            f"<AccountNumber(account_number={self.account_number}, "
            f"is_assigned={self.is_assigned}, assigned_to={self.assigned_to})>"
        )


__all__ = ["AccountNumber"]
