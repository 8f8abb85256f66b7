# monte_carlo.py
# Monte Carlo engine for the autocallable (snowball) note.
#
# The trading-day schedule and the normal draws are built once, on first
# use; every valuation after that (including the bumped revaluations behind
# the Greeks) replays the same draws, so only the level and drift move
# between bumps. Payoffs are evaluated on the whole path tensor at once.

from __future__ import annotations

import logging
from datetime import date
from math import exp
from typing import Optional

import numpy as np

from .calendar import TradingCalendar
from .core import AutocallableNote
from .engine import PricingEngine
from .processes import MonteCarloSimulation

__all__ = ["McAutocallableEngine"]

logger = logging.getLogger(__name__)


class McAutocallableEngine(PricingEngine):
    """Simulation engine for :class:`AutocallableNote`.

    Path outcomes, checked in order:

    1. **autocall**: the level closes above ``autocall_barrier`` on an
       observation date; pays the coupon accrued to the first such date,
       discounted from that date.
    2. **knock-in**: never autocalled and traded below
       ``knock_in_barrier`` at any step; pays ``S_T - 1`` clipped to
       ``[min_nav - 1, 0]`` less the margin financing cost.
    3. **expiry**: neither; pays the last coupon less the margin financing
       cost.

    Knock-in and expiry payoffs are discounted from the last observation
    date.

    Parameters
    ----------
    contract : AutocallableNote
    calendar : TradingCalendar
    valuation_date : date
    n_paths : int
        Number of simulated paths (rounded up to even).
    seed : int, optional
        Seed of the normal draws.
    antithetic : bool
        Mirror the draws.  Default True.
    """

    SPOT_BUMP = 0.001
    VOL_BUMP = 1e-4
    RATE_BUMP = 1e-4

    def __init__(
        self,
        contract: AutocallableNote,
        calendar: TradingCalendar,
        valuation_date: date,
        n_paths: int = 100_000,
        *,
        seed: Optional[int] = None,
        antithetic: bool = True,
    ):
        super().__init__(contract, calendar, valuation_date)
        self.n_paths = n_paths
        self.seed = seed
        self.antithetic = antithetic
        self._simulation: Optional[MonteCarloSimulation] = None
        self._trading_dates: Optional[list[date]] = None
        self._obs_index: Optional[np.ndarray] = None

    # ------------------------------------------------------------------
    # Lazy set-up
    # ------------------------------------------------------------------
    def _initialize(self) -> MonteCarloSimulation:
        if self._simulation is None:
            c = self.contract
            trading_dates = self.calendar.trading_days(self.valuation_date, c.maturity_date)
            position = {d: i for i, d in enumerate(trading_dates)}
            missing = [d for d in c.observation_dates if d not in position]
            if missing:
                raise ValueError(f"observation dates are not trading days: {missing}")

            simulation = MonteCarloSimulation(
                self.n_paths, len(trading_dates), antithetic=self.antithetic, seed=self.seed,
            )
            simulation.generate_random_samples()
            logger.debug(
                "autocallable simulation ready: %d paths x %d trading days, %d observations",
                simulation.n_paths, len(trading_dates), len(c.observation_dates),
            )
            self._trading_dates = trading_dates
            self._obs_index = np.array([position[d] for d in c.observation_dates])
            self._simulation = simulation
        return self._simulation

    # ------------------------------------------------------------------
    # Schedules
    # ------------------------------------------------------------------
    def coupons(self) -> np.ndarray:
        """Accrued coupon, net of margin financing, per observation date."""
        c = self.contract
        t = self.years_to_maturity(c.maturity_date)
        net_rate = c.annual_coupon_rate - c.margin_interest_rate * c.initial_margin
        schedule = np.linspace(net_rate / 12, net_rate * t, int(round(12 * t)))[c.skip_months:]
        if schedule.size != len(c.observation_dates):
            raise ValueError(
                f"coupon schedule has {schedule.size} entries but there are "
                f"{len(c.observation_dates)} observation dates"
            )
        return schedule

    def discount_factors(self) -> np.ndarray:
        r = self.contract.risk_free_rate
        return np.array([
            exp(-r * (d - self.valuation_date).days / 365)
            for d in self.contract.observation_dates
        ])

    # ------------------------------------------------------------------
    # Payoff
    # ------------------------------------------------------------------
    def _outcomes(self, s: float):
        """Discounted payoff per path and the autocall / knock-in masks."""
        simulation = self._initialize()
        c = self.contract
        t = self.years_to_maturity(c.maturity_date)

        paths = s * simulation.geometric_brownian_motion(
            t, c.risk_free_rate - c.dividend_yield, c.volatility
        )
        margin_cost = c.margin_interest_rate * c.initial_margin * t
        coupons = self.coupons()
        dfs = self.discount_factors()

        payoff = np.empty(simulation.n_paths)

        # autocall triggered, at the first observation above the barrier
        ac_points = paths[self._obs_index, :] > c.autocall_barrier
        ac_paths = ac_points.any(axis=0)
        first_ac = ac_points.argmax(axis=0)
        payoff[ac_paths] = (coupons * dfs)[first_ac[ac_paths]]

        # knocked in, autocall never triggered
        ki_paths = (paths < c.knock_in_barrier).any(axis=0)
        ki = ki_paths & ~ac_paths
        final = paths[-1, ki]
        payoff[ki] = (np.clip(final - 1.0, c.min_nav - 1.0, 0.0) - margin_cost) * dfs[-1]

        # expired naturally
        expired = ~ki_paths & ~ac_paths
        payoff[expired] = (coupons[-1] - margin_cost) * dfs[-1]

        return payoff, ac_paths, ki

    # ------------------------------------------------------------------
    # Measures
    # ------------------------------------------------------------------
    def value_at(self, s: float) -> float:
        payoff, _, _ = self._outcomes(s)
        return float(payoff.sum() / self._simulation.n_paths)

    def value_with_stderr(self, s: float) -> tuple[float, float]:
        """Return ``(price, stderr)``."""
        payoff, _, _ = self._outcomes(s)
        return float(payoff.mean()), self._simulation.standard_error(payoff)

    def outcome_probabilities(self, s: float) -> dict[str, float]:
        """Fraction of paths that autocall, knock in, or run to expiry."""
        _, ac_paths, ki = self._outcomes(s)
        n = self._simulation.n_paths
        autocall = float(ac_paths.sum() / n)
        knock_in = float(ki.sum() / n)
        return {"autocall": autocall, "knock_in": knock_in, "expiry": 1.0 - autocall - knock_in}

    def delta_at(self, s: float) -> float:
        ds = self.SPOT_BUMP
        vu = self.value_at(s + ds)
        vd = self.value_at(s - ds)
        return (vu - vd) / (2 * ds)

    def gamma_at(self, s: float) -> float:
        ds = self.SPOT_BUMP
        vm = self.value_at(s)
        vu = self.value_at(s + ds)
        vd = self.value_at(s - ds)
        return (vu - 2 * vm + vd) / (ds * ds)

    def vega_at(self, s: float) -> float:
        self._initialize()
        dv = self.VOL_BUMP
        v = self.contract.volatility
        up = self._bumped(volatility=v + dv).value_at(s)
        down = self._bumped(volatility=v - dv).value_at(s)
        return (up - down) / (2 * dv)

    def rho_at(self, s: float) -> float:
        self._initialize()
        dr = self.RATE_BUMP
        r = self.contract.risk_free_rate
        up = self._bumped(risk_free_rate=r + dr).value_at(s)
        down = self._bumped(risk_free_rate=r - dr).value_at(s)
        return (up - down) / (2 * dr)
