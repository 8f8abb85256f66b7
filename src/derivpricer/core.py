from __future__ import annotations
from dataclasses import dataclass, field, replace
from datetime import date
from typing import TYPE_CHECKING, Optional

from .errors import EngineNotSetError

if TYPE_CHECKING:
    from .engine import PricingEngine


CALL = "call"
PUT  = "put"

EUROPEAN = "european"
AMERICAN = "american"


# ---------------------------------------------------------------------------
# Economic terms shared by every contract
# ---------------------------------------------------------------------------
@dataclass
class Contract:
    """Valuation inputs common to all contracts.

    Volatility, rates and dates are not range-checked: degenerate inputs
    (zero volatility, zero time to maturity) flow through the engines as
    NaN / inf.

    Parameters
    ----------
    maturity_date : date
        Final date of the contract.
    volatility : float
        Lognormal volatility of the underlying.
    risk_free_rate : float
        Continuously-compounded risk-free rate.
    dividend_yield : float
        Continuous dividend yield.
    """
    maturity_date: date
    volatility: float
    risk_free_rate: float
    dividend_yield: float
    _pricing_engine: Optional[PricingEngine] = field(
        default=None, init=False, repr=False, compare=False
    )

    @property
    def pricing_engine(self) -> PricingEngine:
        if self._pricing_engine is None:
            raise EngineNotSetError("pricing engine not set")
        return self._pricing_engine

    @pricing_engine.setter
    def pricing_engine(self, engine: PricingEngine) -> None:
        self._pricing_engine = engine

    def value_at(self, s: float) -> float:
        return self.pricing_engine.value_at(s)

    # dV/dS
    def delta_at(self, s: float) -> float:
        return self.pricing_engine.delta_at(s)

    # d2V/dS2
    def gamma_at(self, s: float) -> float:
        return self.pricing_engine.gamma_at(s)

    # -dV/dT
    def theta_at(self, s: float) -> float:
        return self.pricing_engine.theta_at(s)

    # dV/dsigma
    def vega_at(self, s: float) -> float:
        return self.pricing_engine.vega_at(s)

    # dV/dr
    def rho_at(self, s: float) -> float:
        return self.pricing_engine.rho_at(s)

    # d2V/dSdsigma
    def vanna_at(self, s: float) -> float:
        return self.pricing_engine.vanna_at(s)

    # -d2V/dSdT
    def charm_at(self, s: float) -> float:
        return self.pricing_engine.charm_at(s)


# ---------------------------------------------------------------------------
# Vanilla call / put
# ---------------------------------------------------------------------------
@dataclass
class VanillaContract(Contract):
    """Plain call or put with European or American exercise.

    Parameters
    ----------
    option_type : str
        ``"call"`` or ``"put"``.
    strike : float
        Strike price.
    exercise_type : str
        ``"european"`` (default) or ``"american"``.
    """
    option_type: str
    strike: float
    exercise_type: str = EUROPEAN

    def __post_init__(self):
        if self.option_type not in (CALL, PUT):
            raise ValueError(f"option_type must be 'call' or 'put', got {self.option_type!r}")
        if self.strike <= 0:
            raise ValueError(f"strike must be positive, got {self.strike}")
        if self.exercise_type not in (EUROPEAN, AMERICAN):
            raise ValueError(
                f"exercise_type must be 'european' or 'american', got {self.exercise_type!r}"
            )


# ---------------------------------------------------------------------------
# Autocallable ("snowball") note
# ---------------------------------------------------------------------------
@dataclass
class AutocallableNote(Contract):
    """Snowball note on an underlying normalised to 1 at inception.

    Redeems early with the accrued coupon at the first observation date on
    which the underlying closes above ``autocall_barrier``.  If it never
    autocalls and trades below ``knock_in_barrier`` at any point, the holder
    bears the downside, floored at ``min_nav``.

    Parameters
    ----------
    annual_coupon_rate : float
    autocall_barrier : float
    knock_in_barrier : float
        Must lie below ``autocall_barrier``.
    initial_margin : float
    margin_interest_rate : float
        Financing rate charged on ``initial_margin``.
    min_nav : float
        Floor of the terminal level after a knock-in.
    observation_dates : sequence of date
        Autocall observation schedule, strictly increasing, on or before
        ``maturity_date``.
    skip_months : int
        Leading coupon periods with no payout.
    """
    annual_coupon_rate: float
    autocall_barrier: float
    knock_in_barrier: float
    initial_margin: float
    margin_interest_rate: float
    min_nav: float
    observation_dates: tuple
    skip_months: int = 0

    def __post_init__(self):
        self.observation_dates = tuple(self.observation_dates)
        if self.knock_in_barrier >= self.autocall_barrier:
            raise ValueError(
                f"knock_in_barrier ({self.knock_in_barrier}) must be below "
                f"autocall_barrier ({self.autocall_barrier})"
            )
        if not self.observation_dates:
            raise ValueError("observation_dates must not be empty")
        if any(a >= b for a, b in zip(self.observation_dates, self.observation_dates[1:])):
            raise ValueError("observation_dates must be strictly increasing")
        if self.observation_dates[-1] > self.maturity_date:
            raise ValueError(
                f"observation date {self.observation_dates[-1]} falls after "
                f"maturity {self.maturity_date}"
            )
        if self.skip_months < 0:
            raise ValueError(f"skip_months must be non-negative, got {self.skip_months}")


def bumped(contract: Contract, **changes) -> Contract:
    """Copy of *contract* with some fields overridden.

    The copy has no pricing engine bound; the original is left untouched so
    that concurrent readers never see a bumped value.
    """
    return replace(contract, **changes)
