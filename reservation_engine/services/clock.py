"""Hotel clock."""

from datetime import date, datetime, time, tzinfo
from typing import Protocol
from zoneinfo import ZoneInfo


class Clock(Protocol):
    """Source of the current instant and calendar date."""

    @property
    def tz(self) -> tzinfo: ...

    def now(self) -> datetime: ...

    def today(self) -> date: ...


class SystemClock:
    """Wall clock evaluated in the hotel's time zone."""

    def __init__(self, timezone_name: str = "UTC"):
        self._tz = ZoneInfo(timezone_name)

    @property
    def tz(self) -> tzinfo:
        return self._tz

    def now(self) -> datetime:
        return datetime.now(self._tz)

    def today(self) -> date:
        return self.now().date()


def start_of_day(day: date, tz: tzinfo) -> datetime:
    """Midnight at the start of ``day`` in ``tz``."""
    return datetime.combine(day, time.min, tzinfo=tz)
