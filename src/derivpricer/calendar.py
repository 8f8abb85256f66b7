# calendar.py
# Trading-day arithmetic used by every engine to turn calendar dates into
# year fractions. Weekends are never trading days; holidays are supplied
# by the caller. Backed by numpy's business-day routines.

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, timedelta
from functools import cached_property

import numpy as np

__all__ = ["TradingCalendar"]

_WEEKMASK = "1111100"


def _as_day(d: date) -> np.datetime64:
    return np.datetime64(d, "D")


@dataclass(frozen=True)
class TradingCalendar:
    """Holiday set plus the number of trading days in a year.

    Parameters
    ----------
    holidays : iterable of date
        Non-weekend dates on which the market is closed.
    annual_trading_days : int
        Trading days per year, the denominator of :meth:`year_fraction`.
    """
    holidays: frozenset = field(default_factory=frozenset)
    annual_trading_days: int = 252

    def __post_init__(self):
        if self.annual_trading_days <= 0:
            raise ValueError(
                f"annual_trading_days must be positive, got {self.annual_trading_days}"
            )
        object.__setattr__(self, "holidays", frozenset(self.holidays))

    @cached_property
    def _busdaycal(self) -> np.busdaycalendar:
        days = np.array(sorted(self.holidays), dtype="datetime64[D]")
        return np.busdaycalendar(weekmask=_WEEKMASK, holidays=days)

    def is_trading_day(self, d: date) -> bool:
        return bool(np.is_busday(_as_day(d), busdaycal=self._busdaycal))

    def count_trading_days(self, start: date, end: date) -> int:
        """Trading days in the half-open interval ``[start, end)``."""
        return int(np.busday_count(_as_day(start), _as_day(end), busdaycal=self._busdaycal))

    def trading_days(self, start: date, end: date) -> list[date]:
        """Trading days in the closed interval ``[start, end]``, increasing."""
        days = np.arange(_as_day(start), _as_day(end + timedelta(days=1)), dtype="datetime64[D]")
        mask = np.is_busday(days, busdaycal=self._busdaycal)
        return days[mask].tolist()

    def year_fraction(self, start: date, end: date) -> float:
        return self.count_trading_days(start, end) / self.annual_trading_days
