"""Admin ORM model for cooperative staff who review applications."""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from powerlink.models import Base, BaseModel


class Admin(Base, BaseModel):
    """Administrator account (username + password hash)."""

    __tablename__ = "admins"

    username: Mapped[str] = mapped_column(
        String(50), unique=True, nullable=False, index=True, comment="Login name"
    )
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str | None] = mapped_column(String(100), nullable=True)
    full_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    role: Mapped[str] = mapped_column(String(20), default="admin", nullable=False)

    def __repr__(self) -> str:
        return f"<Admin(id={self.id}, username={self.username}, role={self.role})>"


__all__ = ["Admin"]
