"""Tests for the risk reports."""

from datetime import date

import numpy as np
import pytest
from derivpricer import (
    CALL, GREEKS, TradingCalendar, VanillaContract, AutocallableNote,
    AnalyticEuropeanEngine, CrrBinomialEngine, McAutocallableEngine,
)
from derivpricer.risk import greeks_report, spot_ladder

VAL = date(2024, 1, 1)
MAT = date(2024, 12, 30)
CAL = TradingCalendar(annual_trading_days=260)

MONTH_ENDS = [(1, 31), (2, 29), (3, 29), (4, 30), (5, 31), (6, 28),
              (7, 31), (8, 30), (9, 30), (10, 31), (11, 29), (12, 30)]

OPT = VanillaContract(MAT, 0.2, 0.05, 0.0, CALL, 100.0)
NOTE = AutocallableNote(
    MAT, 0.2, 0.03, 0.0,
    annual_coupon_rate=0.15, autocall_barrier=1.03, knock_in_barrier=0.75,
    initial_margin=0.2, margin_interest_rate=0.05, min_nav=0.0,
    observation_dates=[date(2024, m, d) for m, d in MONTH_ENDS],
)


class TestGreeksReport:
    def test_all_keys(self):
        report = greeks_report(AnalyticEuropeanEngine(OPT, CAL, VAL), 100.0)
        assert tuple(report) == GREEKS

    def test_matches_engine(self):
        eng = AnalyticEuropeanEngine(OPT, CAL, VAL)
        report = greeks_report(eng, 100.0)
        assert report["value"] == pytest.approx(eng.value_at(100.0))
        assert report["vanna"] == pytest.approx(eng.vanna_at(100.0))

    def test_unsupported_are_nan(self):
        eng = McAutocallableEngine(NOTE, CAL, VAL, 2_000, seed=5)
        report = greeks_report(eng, 1.0)
        for m in GREEKS:
            assert np.isnan(report[m]) != eng.supports(m)


class TestSpotLadder:
    def test_output_shape(self):
        spots = np.array([90.0, 100.0, 110.0])
        result = spot_ladder(AnalyticEuropeanEngine(OPT, CAL, VAL), spots)
        assert set(result) == {"spot_values", *GREEKS}
        assert all(result[m].shape == (3,) for m in GREEKS)

    def test_call_monotone_in_spot(self):
        spots = np.linspace(80, 120, 5)
        result = spot_ladder(CrrBinomialEngine(OPT, CAL, VAL, num_steps=200), spots,
                             measures=("value", "delta"))
        assert np.all(np.diff(result["value"]) > 0)
        assert np.all(np.diff(result["delta"]) > 0)
        assert "gamma" not in result

    def test_spot_values_copied(self):
        spots = np.array([95.0, 105.0])
        result = spot_ladder(AnalyticEuropeanEngine(OPT, CAL, VAL), spots, measures=("value",))
        spots[0] = 0.0
        assert result["spot_values"][0] == 95.0

    def test_unknown_measure(self):
        with pytest.raises(ValueError):
            spot_ladder(AnalyticEuropeanEngine(OPT, CAL, VAL), [100.0], measures=("speed",))
