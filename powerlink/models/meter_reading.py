"""MeterReading ORM model: one kWh register value per consumer per date."""

from datetime import date
from decimal import Decimal

from sqlalchemy import Date, ForeignKey, Index, Numeric, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from powerlink.models import Base, BaseModel


class MeterReading(Base, BaseModel):
    """Meter register value taken on a given date."""

    __tablename__ = "meter_readings"

    consumer_id: Mapped[int] = mapped_column(
        ForeignKey("consumers.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    reading_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    meter_reading: Mapped[Decimal] = mapped_column(
        Numeric(10, 2), nullable=False, comment="Cumulative kWh register value"
    )

    consumer: Mapped["Consumer"] = relationship(  # noqa: F821
        "Consumer", back_populates="meter_readings"
    )

    __table_args__ = (
        UniqueConstraint("consumer_id", "reading_date", name="uq_meter_readings_consumer_date"),
        Index("idx_meter_readings_consumer_date", "consumer_id", "reading_date"),
    )

    def __repr__(self) -> str:
        return (
            f"<MeterReading(consumer_id={self.consumer_id}, reading_date={self.reading_date}, "
            f"meter_reading={self.meter_reading})>"
        )


__all__ = ["MeterReading"]
