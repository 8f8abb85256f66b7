import logging
from dataclasses import dataclass
from datetime import date
from math import exp, sqrt

import numpy as np

from .calendar import TradingCalendar
from .core import CALL, EUROPEAN, AMERICAN, VanillaContract
from .engine import PricingEngine
from .errors import UnsupportedOperationError

__all__ = ["CrrLattice", "crr_lattice", "crr_price", "CrrBinomialEngine"]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CrrLattice:
    """Root price of a CRR tree plus the node values kept for the Greeks.

    ``level1`` holds the two nodes one step from the root (down, up) and
    ``level2`` the three nodes two steps from the root (down-down,
    up-down, up-up).
    """
    price: float
    level1: np.ndarray
    level2: np.ndarray
    S0: float
    u: float
    d: float
    dt: float


def crr_lattice(S0: float, K: float, T: float, r: float, q: float, sigma: float,
                kind: str = CALL, N: int = 500, *, american: bool = False) -> CrrLattice:
    """Cox-Ross-Rubinstein tree for European or American exercise (q handled in p)."""
    if N < 2:
        raise ValueError(f"N must be at least 2, got {N}")
    dt = T / N
    u  = exp(sigma * sqrt(dt))
    d  = 1.0 / u
    disc = exp(-r * dt)
    p = (exp((r - q) * dt) - d) / (u - d)
    omega = 1.0 if kind == CALL else -1.0

    # Payoff at maturity
    j = np.arange(N + 1)
    ST = S0 * (u ** j) * (d ** (N - j))
    V = np.maximum(omega * (ST - K), 0.0)

    level1 = level2 = None

    # Backward induction
    for k in range(N - 1, -1, -1):
        V = disc * (p * V[1:] + (1.0 - p) * V[:-1])
        if american:
            j = np.arange(k + 1)
            S_k = S0 * (u ** j) * (d ** (k - j))
            V = np.maximum(V, omega * (S_k - K))
        if k == 2:
            level2 = V.copy()
        elif k == 1:
            level1 = V.copy()

    return CrrLattice(float(V[0]), level1, level2, S0, u, d, dt)


def crr_price(S0: float, K: float, T: float, r: float, q: float, sigma: float,
              kind: str = CALL, N: int = 500, *, american: bool = False) -> float:
    return crr_lattice(S0, K, T, r, q, sigma, kind, N, american=american).price


class CrrBinomialEngine(PricingEngine):
    """CRR lattice engine for vanilla contracts.

    Delta, gamma and theta come off the first two levels of the same tree
    that gives the price; vega and rho are central differences over full
    revaluations with a bumped copy of the contract.
    """

    VOL_BUMP = 1e-4
    RATE_BUMP = 1e-4

    def __init__(self, contract: VanillaContract, calendar: TradingCalendar,
                 valuation_date: date, num_steps: int = 500):
        if num_steps < 2:
            raise ValueError(f"num_steps must be at least 2, got {num_steps}")
        super().__init__(contract, calendar, valuation_date)
        self.num_steps = num_steps
        self._cached = None

    def _reset(self) -> None:
        self._cached = None

    def _lattice(self, s: float) -> CrrLattice:
        cached = self._cached
        if cached is not None and cached.S0 == s:
            return cached

        c = self.contract
        if c.exercise_type == EUROPEAN:
            american = False
        elif c.exercise_type == AMERICAN:
            american = True
        else:
            raise UnsupportedOperationError(f"unsupported exercise type {c.exercise_type!r}")

        t = self.years_to_maturity(c.maturity_date)
        lattice = crr_lattice(
            s, c.strike, t, c.risk_free_rate, c.dividend_yield, c.volatility,
            c.option_type, self.num_steps, american=american,
        )
        logger.debug("CRR tree built: S=%g steps=%d price=%.6f", s, self.num_steps, lattice.price)
        self._cached = lattice
        return lattice

    def value_at(self, s: float) -> float:
        return self._lattice(s).price

    def delta_at(self, s: float) -> float:
        lt = self._lattice(s)
        V = lt.level1
        return float((V[1] - V[0]) / (s * lt.u - s * lt.d))

    def gamma_at(self, s: float) -> float:
        lt = self._lattice(s)
        V, u, d = lt.level2, lt.u, lt.d
        up = (V[2] - V[1]) / (s * u * u - s)
        down = (V[1] - V[0]) / (s - s * d * d)
        return float((up - down) / (0.5 * (s * u * u - s * d * d)))

    def theta_at(self, s: float) -> float:
        # middle node two steps out sits at the same spot, 2*dt later
        lt = self._lattice(s)
        return float((lt.level2[1] - lt.price) / (2 * lt.dt))

    def vega_at(self, s: float) -> float:
        dv = self.VOL_BUMP
        v = self.contract.volatility
        up = self._bumped(volatility=v + dv).value_at(s)
        down = self._bumped(volatility=v - dv).value_at(s)
        return (up - down) / (2 * dv)

    def rho_at(self, s: float) -> float:
        dr = self.RATE_BUMP
        r = self.contract.risk_free_rate
        up = self._bumped(risk_free_rate=r + dr).value_at(s)
        down = self._bumped(risk_free_rate=r - dr).value_at(s)
        return (up - down) / (2 * dr)
