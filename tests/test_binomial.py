"""Tests for the CRR binomial lattice engine."""

from concurrent.futures import ThreadPoolExecutor
from datetime import date

import numpy as np
import pytest
from derivpricer import (
    CALL, PUT, EUROPEAN, AMERICAN, TradingCalendar, VanillaContract,
    AnalyticEuropeanEngine, CrrBinomialEngine, UnsupportedOperationError,
    crr_lattice, crr_price, bsm_price,
)

VAL = date(2024, 1, 1)
MAT = date(2024, 12, 30)
CAL = TradingCalendar(annual_trading_days=260)
N = 500


def _contract(kind=CALL, exercise=EUROPEAN, q=0.0):
    return VanillaContract(MAT, 0.2, 0.05, q, kind, 100.0, exercise)


def _pair(kind=CALL, exercise=EUROPEAN, q=0.0, steps=N):
    c = _contract(kind, exercise, q)
    return CrrBinomialEngine(c, CAL, VAL, num_steps=steps), c


class TestEuropean:
    @pytest.mark.parametrize("kind", [CALL, PUT])
    def test_vs_analytic(self, kind):
        tree, c = _pair(kind)
        bs = AnalyticEuropeanEngine(c, CAL, VAL).value_at(100.0)
        assert abs(tree.value_at(100.0) - bs) < 1e-2

    def test_convergence(self):
        bs = float(bsm_price(100.0, 100.0, 1.0, 0.05, 0.0, 0.2, CALL))
        errors = [abs(crr_price(100.0, 100.0, 1.0, 0.05, 0.0, 0.2, CALL, n) - bs)
                  for n in (50, 200, 800)]
        assert errors[1] < errors[0]
        assert errors[2] < errors[1]

    def test_delta_bounds(self):
        call, _ = _pair(CALL)
        put, _ = _pair(PUT)
        for s in (70.0, 100.0, 130.0):
            assert 0.0 <= call.delta_at(s) <= 1.0
            assert -1.0 <= put.delta_at(s) <= 0.0

    def test_lattice_levels(self):
        lt = crr_lattice(100.0, 100.0, 1.0, 0.05, 0.0, 0.2, CALL, 10)
        assert lt.level1.shape == (2,)
        assert lt.level2.shape == (3,)
        assert lt.u * lt.d == pytest.approx(1.0)
        assert lt.dt == pytest.approx(0.1)


class TestGreeks:
    def test_vs_analytic(self):
        tree, c = _pair(CALL)
        bs = AnalyticEuropeanEngine(c, CAL, VAL)
        assert abs(tree.delta_at(100.0) - bs.delta_at(100.0)) < 5e-3
        assert abs(tree.gamma_at(100.0) - bs.gamma_at(100.0)) < 1e-3
        assert abs(tree.theta_at(100.0) - bs.theta_at(100.0)) < 0.1

    def test_vega_rho_vs_analytic(self):
        tree, c = _pair(CALL)
        bs = AnalyticEuropeanEngine(c, CAL, VAL)
        assert abs(tree.vega_at(100.0) - bs.vega_at(100.0)) < 0.5
        assert abs(tree.rho_at(100.0) - bs.rho_at(100.0)) < 0.5

    def test_bumps_leave_contract_untouched(self):
        tree, c = _pair(CALL)
        price = tree.value_at(100.0)
        tree.vega_at(100.0)
        tree.rho_at(100.0)
        assert c.volatility == 0.2
        assert c.risk_free_rate == 0.05
        assert tree.contract is c
        assert tree.value_at(100.0) == price

    def test_gamma_consistent_with_delta(self):
        tree, _ = _pair(PUT)
        h = 5.0
        fd = (tree.delta_at(100.0 + h) - tree.delta_at(100.0 - h)) / (2 * h)
        assert abs(tree.gamma_at(100.0) - fd) < 2e-3

    def test_cross_greeks_unsupported(self):
        tree, _ = _pair(CALL)
        assert np.isnan(tree.vanna_at(100.0))
        assert np.isnan(tree.charm_at(100.0))
        assert not CrrBinomialEngine.supports("vanna")
        assert CrrBinomialEngine.supports("rho")


class TestSharedEngine:
    def test_interleaved_spots_match_fresh_engines(self):
        tree, c = _pair(CALL, steps=100)
        spots = [90.0, 100.0, 90.0, 110.0, 100.0]
        got = [tree.delta_at(s) for s in spots]
        want = [CrrBinomialEngine(c, CAL, VAL, num_steps=100).delta_at(s) for s in spots]
        assert got == want

    def test_concurrent_spot_queries(self):
        tree, c = _pair(PUT, steps=100)
        spots = np.linspace(80.0, 120.0, 41)
        with ThreadPoolExecutor(max_workers=8) as pool:
            got = list(pool.map(lambda s: (tree.delta_at(s), tree.gamma_at(s)), spots))
        fresh = CrrBinomialEngine(c, CAL, VAL, num_steps=100)
        assert got == [(fresh.delta_at(s), fresh.gamma_at(s)) for s in spots]


class TestAmerican:
    def test_put_geq_european(self):
        eu, _ = _pair(PUT, EUROPEAN)
        am, _ = _pair(PUT, AMERICAN)
        assert am.value_at(100.0) >= eu.value_at(100.0)

    def test_put_geq_intrinsic(self):
        am, _ = _pair(PUT, AMERICAN)
        for s in (60.0, 80.0, 100.0):
            assert am.value_at(s) >= max(100.0 - s, 0.0) - 1e-12

    def test_put_reference_value(self):
        am, _ = _pair(PUT, AMERICAN)
        assert 6.05 < am.value_at(100.0) < 6.13

    def test_call_no_dividend_eq_european(self):
        """With q=0, early exercise of a call is never optimal."""
        eu, _ = _pair(CALL, EUROPEAN)
        am, _ = _pair(CALL, AMERICAN)
        assert abs(am.value_at(100.0) - eu.value_at(100.0)) < 1e-8

    def test_call_with_dividend_premium(self):
        eu, _ = _pair(CALL, EUROPEAN, q=0.08)
        am, _ = _pair(CALL, AMERICAN, q=0.08)
        assert am.value_at(100.0) > eu.value_at(100.0)


class TestFaults:
    def test_too_few_steps(self):
        with pytest.raises(ValueError):
            _pair(steps=1)
        with pytest.raises(ValueError):
            crr_lattice(100.0, 100.0, 1.0, 0.05, 0.0, 0.2, CALL, 1)

    def test_unsupported_exercise(self):
        tree, c = _pair()
        c.exercise_type = "bermudan"
        with pytest.raises(UnsupportedOperationError):
            tree.value_at(100.0)
