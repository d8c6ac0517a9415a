"""Current-time providers injected into date-based computations.

Instants are kept in UTC; "today" is the calendar date in the clock's
timezone, which is the cooperative's local time in production.
"""

from datetime import date, datetime, timedelta, timezone, tzinfo
from typing import Protocol
from zoneinfo import ZoneInfo


class Clock(Protocol):
    """Anything that can tell the current time."""

    def now(self) -> datetime: ...

    def today(self) -> date: ...


class SystemClock:
    """Wall clock; today() is the local date in `tz` (UTC if not given)."""

    def __init__(self, tz: tzinfo | None = None):
        self.tz = tz or timezone.utc

    @classmethod
    def from_settings(cls, settings) -> "SystemClock":
        return cls(ZoneInfo(settings.timezone))

    def now(self) -> datetime:
        return datetime.now(timezone.utc)

    def today(self) -> date:
        return self.now().astimezone(self.tz).date()


class FixedClock:
    """Clock frozen at a given instant; advance() moves it forward."""

    def __init__(self, current: datetime | date, tz: tzinfo | None = None):
        if not isinstance(current, datetime):
            current = datetime(current.year, current.month, current.day, tzinfo=timezone.utc)
        elif current.tzinfo is None:
            current = current.replace(tzinfo=timezone.utc)
        self._current = current
        self.tz = tz or timezone.utc

    def now(self) -> datetime:
        return self._current

    def today(self) -> date:
        return self._current.astimezone(self.tz).date()

    def advance(self, **kwargs: float) -> None:
        """Move the clock forward by a timedelta built from kwargs."""
        self._current = self._current + timedelta(**kwargs)


__all__ = ["Clock", "SystemClock", "FixedClock"]
