"""
Clock -- injectable time source.

Services never call ``datetime.now()`` or ``date.today()``; they ask the
clock they were constructed with.  Timestamps are always UTC.  Business
dates (an order's ``order_date``, an allowance's date when none is given)
are the calendar date in the clock's ``business_tz``, so a sale at 01:00
local time lands on the local day even while UTC is still on the previous
one.
"""

from abc import ABC, abstractmethod
from datetime import UTC, date, datetime, timedelta, tzinfo


class Clock(ABC):
    """Source of the current instant and the current business date."""

    def __init__(self, business_tz: tzinfo = UTC):
        self.business_tz = business_tz

    @abstractmethod
    def now(self) -> datetime:
        """Current instant, timezone-aware, in UTC."""

    def today(self) -> date:
        return self.now().astimezone(self.business_tz).date()


class SystemClock(Clock):
    """Wall-clock time."""

    def now(self) -> datetime:
        return datetime.now(UTC)


class DeterministicClock(Clock):
    """
    Clock for tests: time only moves when told to.

    Starts at 2024-01-01 12:00 UTC unless given ``start``.
    """

    DEFAULT_START = datetime(2024, 1, 1, 12, 0, tzinfo=UTC)

    def __init__(self, start: datetime | None = None, business_tz: tzinfo = UTC):
        super().__init__(business_tz)
        self._now = start or self.DEFAULT_START

    def now(self) -> datetime:
        return self._now

    def set_time(self, moment: datetime) -> None:
        self._now = moment

    def advance(self, seconds: float = 1) -> datetime:
        self._now += timedelta(seconds=seconds)
        return self._now
