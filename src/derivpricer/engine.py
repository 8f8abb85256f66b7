"""Common interface of the pricing engines.

Every engine binds one contract, one trading calendar and a valuation date,
and exposes eight measures as functions of the spot level.  Measures an
engine does not implement return ``nan``; :meth:`PricingEngine.supports`
tells callers which ones are real before the sentinel leaks into a sum.
"""

from __future__ import annotations

import copy
from datetime import date

from .calendar import TradingCalendar
from .core import Contract, bumped

__all__ = ["PricingEngine", "GREEKS"]

GREEKS = ("value", "delta", "gamma", "theta", "vega", "rho", "vanna", "charm")

_NAN = float("nan")


class PricingEngine:
    """Base class; subclasses override the measures they support."""

    def __init__(self, contract: Contract, calendar: TradingCalendar, valuation_date: date):
        self.contract = contract
        self.calendar = calendar
        self.valuation_date = valuation_date

    def value_at(self, s: float) -> float:
        return _NAN

    def delta_at(self, s: float) -> float:
        return _NAN

    def gamma_at(self, s: float) -> float:
        return _NAN

    def theta_at(self, s: float) -> float:
        return _NAN

    def vega_at(self, s: float) -> float:
        return _NAN

    def rho_at(self, s: float) -> float:
        return _NAN

    def vanna_at(self, s: float) -> float:
        return _NAN

    def charm_at(self, s: float) -> float:
        return _NAN

    @classmethod
    def supports(cls, measure: str) -> bool:
        """True if *measure* (one of :data:`GREEKS`) is implemented by ``cls``."""
        if measure not in GREEKS:
            raise ValueError(f"unknown measure {measure!r}; expected one of {GREEKS}")
        name = f"{measure}_at"
        return getattr(cls, name) is not getattr(PricingEngine, name)

    def years_to_maturity(self, maturity_date: date) -> float:
        return self.calendar.year_fraction(self.valuation_date, maturity_date)

    # ------------------------------------------------------------------
    # Bump-and-reval support
    # ------------------------------------------------------------------
    def _reset(self) -> None:
        """Drop lazily built state that depends on the contract terms."""

    def _bumped(self, **changes) -> "PricingEngine":
        engine = copy.copy(self)
        engine.contract = bumped(self.contract, **changes)
        engine._reset()
        return engine
