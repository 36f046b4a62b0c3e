"""
Clock -- injectable source of "now".

Responsibility:
    State machines, the orchestrator and the valuation service take a
    ``Clock`` instead of calling ``datetime.now()``/``date.today()``, so
    transition dates, valuation dates and audit timestamps are reproducible
    under test.

Architecture position:
    Kernel > Domain.  ``SystemClock`` is the only place the wall clock is
    read.
"""

from abc import ABC, abstractmethod
from datetime import date, datetime, time, timedelta, timezone

_NOON = time(12, 0, tzinfo=timezone.utc)


class Clock(ABC):
    """
    ``now()`` is timezone-aware UTC; ``today()`` is its calendar date.

    Lifecycle dates (assign_date, completed_on, valuation_date) come from
    ``today()``; audit timestamps (recorded_at) from ``now()``.
    """

    @abstractmethod
    def now(self) -> datetime: ...

    def today(self) -> date:
        return self.now().date()


class SystemClock(Clock):
    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class DeterministicClock(Clock):
    """
    A clock that only moves when told to.

    Starts at noon UTC on ``start`` (a date or datetime; default
    2026-01-01), which keeps ``today()`` stable however far tests
    ``advance()`` within a day.
    """

    def __init__(self, start: date | datetime | None = None):
        self._now = self._at(start or date(2026, 1, 1))

    @staticmethod
    def _at(moment: date | datetime) -> datetime:
        if isinstance(moment, datetime):
            return moment if moment.tzinfo else moment.replace(tzinfo=timezone.utc)
        return datetime.combine(moment, _NOON)

    def now(self) -> datetime:
        return self._now

    def set_time(self, moment: datetime) -> None:
        self._now = self._at(moment)

    def set_date(self, day: date) -> None:
        self._now = self._at(day)

    def advance(self, seconds: int = 1) -> None:
        self._now += timedelta(seconds=seconds)

    def advance_days(self, days: int) -> None:
        self._now += timedelta(days=days)
