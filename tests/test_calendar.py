"""Tests for the trading calendar."""

from datetime import date

import pytest
from derivpricer import TradingCalendar

MON = date(2024, 1, 1)
SAT = date(2024, 1, 6)
HOLIDAY = date(2024, 1, 15)


class TestTradingDays:
    def test_weekend_is_not_trading(self):
        cal = TradingCalendar()
        assert cal.is_trading_day(MON)
        assert not cal.is_trading_day(SAT)
        assert not cal.is_trading_day(date(2024, 1, 7))

    def test_holiday_is_not_trading(self):
        cal = TradingCalendar(holidays={HOLIDAY})
        assert not cal.is_trading_day(HOLIDAY)
        assert TradingCalendar().is_trading_day(HOLIDAY)

    def test_closed_interval(self):
        days = TradingCalendar().trading_days(MON, date(2024, 1, 8))
        assert len(days) == 6
        assert days[0] == MON
        assert days[-1] == date(2024, 1, 8)
        assert all(isinstance(d, date) for d in days)
        assert SAT not in days

    def test_closed_interval_skips_holidays(self):
        days = TradingCalendar(holidays=[HOLIDAY]).trading_days(MON, date(2024, 1, 31))
        assert HOLIDAY not in days
        assert len(days) == 22


class TestCounting:
    def test_half_open_week(self):
        cal = TradingCalendar()
        assert cal.count_trading_days(MON, date(2024, 1, 8)) == 5
        assert cal.count_trading_days(MON, MON) == 0

    def test_holiday_reduces_count(self):
        plain = TradingCalendar().count_trading_days(MON, date(2024, 2, 1))
        with_hol = TradingCalendar(holidays={HOLIDAY}).count_trading_days(MON, date(2024, 2, 1))
        assert plain == 23
        assert with_hol == plain - 1

    def test_weekend_holiday_ignored(self):
        cal = TradingCalendar(holidays={SAT})
        assert cal.count_trading_days(MON, date(2024, 1, 8)) == 5

    def test_year_fraction(self):
        cal = TradingCalendar(annual_trading_days=260)
        # 52 full weeks
        assert cal.year_fraction(MON, date(2024, 12, 30)) == pytest.approx(1.0)
        assert TradingCalendar().year_fraction(MON, date(2024, 1, 8)) == pytest.approx(5 / 252)


class TestValidation:
    def test_non_positive_annual_days(self):
        with pytest.raises(ValueError):
            TradingCalendar(annual_trading_days=0)

    def test_holidays_frozen(self):
        cal = TradingCalendar(holidays=[HOLIDAY, HOLIDAY])
        assert cal.holidays == frozenset({HOLIDAY})
        assert hash(cal) == hash(TradingCalendar(holidays={HOLIDAY}))
