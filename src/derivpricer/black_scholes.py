# black_scholes.py
# Closed-form Black-Scholes-Merton with continuous dividend yield, written
# in cost-of-carry form (b = r - q). The vectorised functions accept scalars
# *or* NumPy arrays and broadcast; AnalyticEuropeanEngine wraps them.

from __future__ import annotations

from datetime import date

import numpy as np
from scipy.stats import norm

from .calendar import TradingCalendar
from .core import CALL, EUROPEAN, VanillaContract
from .engine import PricingEngine

__all__ = ["bsm_price", "bsm_greeks", "AnalyticEuropeanEngine"]

_N = norm.cdf   # vectorised standard-normal CDF
_n = norm.pdf   # vectorised standard-normal PDF


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------
def _d1_d2(S, K, T, r, q, sigma):
    """Compute d1, d2 arrays.  All inputs broadcast."""
    S, K, T, r, q, sigma = (np.asarray(x, dtype=float) for x in (S, K, T, r, q, sigma))
    b = r - q
    sig_sqrt_T = sigma * np.sqrt(T)
    d1 = (np.log(S / K) + (b + 0.5 * sigma * sigma) * T) / sig_sqrt_T
    d2 = d1 - sig_sqrt_T
    return d1, d2


def _is_call(kind) -> np.ndarray:
    """Return boolean mask: True where kind == 'call'."""
    kind = np.asarray(kind)
    if kind.ndim == 0:
        return np.bool_(str(kind) == CALL)
    return np.array([str(k) == CALL for k in kind.flat], dtype=bool).reshape(kind.shape)


# ---------------------------------------------------------------------------
# Vectorised price
# ---------------------------------------------------------------------------
def bsm_price(S, K, T, r, q, sigma, kind) -> np.ndarray:
    """Vectorised Black-Scholes-Merton price.

    Parameters accept scalars or arrays; NumPy broadcasting rules apply.

    Returns
    -------
    np.ndarray
        Option prices (same shape as broadcasted inputs).
    """
    S, K, T, r, q, sigma = (np.asarray(x, dtype=float) for x in (S, K, T, r, q, sigma))
    d1, d2 = _d1_d2(S, K, T, r, q, sigma)
    carry = np.exp(-q * T)      # e^((b - r) t)
    disc_r = np.exp(-r * T)

    call_px = S * carry * _N(d1) - K * disc_r * _N(d2)
    put_px  = K * disc_r * _N(-d2) - S * carry * _N(-d1)

    return np.where(_is_call(kind), call_px, put_px)


# ---------------------------------------------------------------------------
# Vectorised Greeks
# ---------------------------------------------------------------------------
def bsm_greeks(S, K, T, r, q, sigma, kind) -> dict[str, np.ndarray]:
    """Vectorised Black-Scholes-Merton Greeks.

    Returns dict with keys: delta, gamma, theta, vega, rho, vanna, charm.
    Vega is dPrice/dSigma (absolute), theta is -dPrice/dT (per year) and
    charm is -d(delta)/dT.
    """
    S, K, T, r, q, sigma = (np.asarray(x, dtype=float) for x in (S, K, T, r, q, sigma))
    d1, d2 = _d1_d2(S, K, T, r, q, sigma)
    b = r - q
    carry = np.exp((b - r) * T)
    disc_r = np.exp(-r * T)
    sqrt_T = np.sqrt(T)
    n_d1 = _n(d1)
    is_call = _is_call(kind)

    # Common
    gamma = n_d1 * carry / (S * sigma * sqrt_T)
    vega  = S * sqrt_T * n_d1 * carry
    vanna = -carry * d2 / sigma * n_d1
    decay = -S * n_d1 * sigma * carry / (2 * sqrt_T)
    charm_common = n_d1 * (b / (sigma * sqrt_T) - d2 / (2 * T))

    # Call-specific
    delta_c = carry * _N(d1)
    theta_c = decay - (b - r) * S * _N(d1) * carry - r * K * disc_r * _N(d2)
    rho_c   = K * T * disc_r * _N(d2)
    charm_c = -carry * (charm_common + (b - r) * _N(d1))

    # Put-specific
    delta_p = carry * (_N(d1) - 1.0)
    theta_p = decay + (b - r) * S * _N(-d1) * carry + r * K * disc_r * _N(-d2)
    rho_p   = -K * T * disc_r * _N(-d2)
    charm_p = -carry * (charm_common - (b - r) * _N(-d1))

    return {
        "delta": np.where(is_call, delta_c, delta_p),
        "gamma": gamma,
        "theta": np.where(is_call, theta_c, theta_p),
        "vega": vega,
        "rho": np.where(is_call, rho_c, rho_p),
        "vanna": vanna,
        "charm": np.where(is_call, charm_c, charm_p),
    }


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------
class AnalyticEuropeanEngine(PricingEngine):
    """Closed-form engine for European vanilla contracts.

    Early exercise has no closed form here, so American contracts are
    rejected at construction.
    """

    def __init__(self, contract: VanillaContract, calendar: TradingCalendar, valuation_date: date):
        if contract.exercise_type != EUROPEAN:
            raise ValueError(
                f"AnalyticEuropeanEngine supports European options only, got {contract.exercise_type!r}"
            )
        super().__init__(contract, calendar, valuation_date)

    def _inputs(self, s: float) -> tuple:
        c = self.contract
        t = self.years_to_maturity(c.maturity_date)
        return s, c.strike, t, c.risk_free_rate, c.dividend_yield, c.volatility, c.option_type

    def _greek(self, s: float, key: str) -> float:
        return float(bsm_greeks(*self._inputs(s))[key])

    def value_at(self, s: float) -> float:
        return float(bsm_price(*self._inputs(s)))

    def delta_at(self, s: float) -> float:
        return self._greek(s, "delta")

    def gamma_at(self, s: float) -> float:
        return self._greek(s, "gamma")

    def theta_at(self, s: float) -> float:
        return self._greek(s, "theta")

    def vega_at(self, s: float) -> float:
        return self._greek(s, "vega")

    def rho_at(self, s: float) -> float:
        return self._greek(s, "rho")

    def vanna_at(self, s: float) -> float:
        return self._greek(s, "vanna")

    def charm_at(self, s: float) -> float:
        return self._greek(s, "charm")
