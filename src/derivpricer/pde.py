"""Finite-difference PDE solver for the Black-Scholes-Merton equation.

Works directly in spot ``S`` on a uniform grid ``[0, S_max]`` with
``S_max`` a multiple of the strike.  Time runs forward on the grid, from
valuation (column 0) to maturity (last column); the solve sweeps backward
from the terminal payoff.  The interior coefficients of the fully-implicit
scheme are

.. math::

    L_i = \\tfrac12 \\frac{S_i}{\\Delta S}\\left(b - \\sigma^2\\frac{S_i}{\\Delta S}\\right)\\Delta t,\\quad
    C_i = 1 + \\left(\\sigma^2\\frac{S_i^2}{\\Delta S^2} + r\\right)\\Delta t,\\quad
    U_i = -\\tfrac12 \\frac{S_i}{\\Delta S}\\left(b + \\sigma^2\\frac{S_i}{\\Delta S}\\right)\\Delta t

with ``b = r - q``.  Crank-Nicolson weights the same operator half
implicit, half explicit.  The coefficients do not depend on time, so the
tridiagonal matrix is factorised once (sparse LU) and reused at every step.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date

import numpy as np
from scipy.sparse import diags
from scipy.sparse.linalg import splu

from .calendar import TradingCalendar
from .core import CALL, PUT, EUROPEAN, AMERICAN, VanillaContract
from .engine import PricingEngine
from .errors import UnsupportedOperationError

__all__ = [
    "FULLY_IMPLICIT",
    "CRANK_NICOLSON",
    "PdeGrid",
    "build_grid",
    "solve_bsm_pde",
    "FdVanillaEngine",
]

logger = logging.getLogger(__name__)

FULLY_IMPLICIT = "implicit"
CRANK_NICOLSON = "crank-nicolson"

_SCHEME_THETA = {FULLY_IMPLICIT: 1.0, CRANK_NICOLSON: 0.5}


# ---------------------------------------------------------------------------
# Grid
# ---------------------------------------------------------------------------

@dataclass
class PdeGrid:
    """Space/time discretisation with its value matrix.

    ``values[i, j]`` is the option value at ``spots[i]`` and ``times[j]``.
    """
    spots: np.ndarray
    times: np.ndarray
    values: np.ndarray
    K: float
    kind: str

    @property
    def ds(self) -> float:
        return float(self.spots[1] - self.spots[0])

    @property
    def dt(self) -> float:
        return float(self.times[1] - self.times[0])

    @property
    def t_max(self) -> float:
        return float(self.times[-1])


def _payoff(S: np.ndarray, K: float, kind: str) -> np.ndarray:
    if kind == CALL:
        return np.maximum(S - K, 0.0)
    return np.maximum(K - S, 0.0)


def build_grid(
    K: float,
    T: float,
    r: float,
    q: float,
    kind: str,
    n_space: int,
    n_time: int,
    S_max_mult: float = 4.0,
) -> PdeGrid:
    """Lay out the grid and fill the terminal column and both boundary rows.

    Boundaries use the asymptotic value of the option: worthless at one
    end, a discounted forward minus discounted strike at the other.
    """
    if n_space < 3:
        raise ValueError(f"n_space must be at least 3, got {n_space}")
    if n_time < 2:
        raise ValueError(f"n_time must be at least 2, got {n_time}")

    S_min = 0.0
    S_max = S_max_mult * K
    spots = np.linspace(S_min, S_max, n_space)
    times = np.linspace(0.0, T, n_time)
    tau = T - times

    V = np.empty((n_space, n_time))

    # Terminal condition
    V[:, -1] = _payoff(spots, K, kind)

    # Boundary conditions
    if kind == CALL:
        V[0, :] = 0.0
        V[-1, :] = S_max * np.exp(-q * tau) - K * np.exp(-r * tau)
    elif kind == PUT:
        V[0, :] = K * np.exp(-r * tau) - S_min * np.exp(-q * tau)
        V[-1, :] = 0.0
    else:
        raise UnsupportedOperationError(f"unsupported option type {kind!r}")

    return PdeGrid(spots, times, V, K, kind)


# ---------------------------------------------------------------------------
# Solver
# ---------------------------------------------------------------------------

def _coefficients(S: np.ndarray, ds: float, dt: float, sigma: float, r: float, q: float):
    b = r - q
    sigma2 = sigma * sigma
    x = S / ds
    L = 0.5 * x * (b - sigma2 * x) * dt
    C = 1.0 + (sigma2 * x * x + r) * dt
    U = -0.5 * x * (b + sigma2 * x) * dt
    return L, C, U


def solve_bsm_pde(
    grid: PdeGrid,
    sigma: float,
    r: float,
    q: float,
    scheme: str = FULLY_IMPLICIT,
    *,
    american: bool = False,
) -> PdeGrid:
    """Backward sweep over ``grid`` in place; returns the same grid.

    Parameters
    ----------
    grid : PdeGrid
        Output of :func:`build_grid`; interior columns are overwritten.
    sigma, r, q : float
        Volatility, risk-free rate and dividend yield.
    scheme : str
        ``"implicit"`` (default) or ``"crank-nicolson"``.
    american : bool
        Project onto the intrinsic value after every step.
    """
    try:
        theta = _SCHEME_THETA[scheme]
    except KeyError:
        raise UnsupportedOperationError(f"unsupported finite-difference scheme {scheme!r}") from None

    V = grid.values
    n_time = V.shape[1]
    L, C, U = _coefficients(grid.spots[1:-1], grid.ds, grid.dt, sigma, r, q)
    m = L.size

    # A V_j = rhs, with A = I + theta * (implicit operator - I)
    A = diags(
        [theta * L[1:], 1.0 + theta * (C - 1.0), theta * U[:-1]],
        [-1, 0, 1],
        shape=(m, m),
        format="csc",
    )
    lu = splu(A)

    intrinsic = None
    if american:
        intrinsic = _payoff(grid.spots, grid.K, grid.kind)
        np.maximum(V[0, :], intrinsic[0], out=V[0, :])
        np.maximum(V[-1, :], intrinsic[-1], out=V[-1, :])

    explicit = 1.0 - theta
    rhs = np.empty(m)

    for j in range(n_time - 2, -1, -1):
        nxt = V[:, j + 1]
        rhs[:] = nxt[1:-1]
        if explicit:
            rhs -= explicit * (L * nxt[:-2] + (C - 1.0) * nxt[1:-1] + U * nxt[2:])

        # fold the known boundary values of column j into the end equations
        rhs[0] -= theta * L[0] * V[0, j]
        rhs[-1] -= theta * U[-1] * V[-1, j]

        V[1:-1, j] = lu.solve(rhs)

        if american:
            np.maximum(V[:, j], intrinsic, out=V[:, j])

    return grid


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------

class FdVanillaEngine(PricingEngine):
    """Finite-difference engine for vanilla contracts.

    The grid is solved once, on first use or by :meth:`calculate`; every
    query afterwards interpolates the valuation-date column linearly.
    """

    def __init__(
        self,
        contract: VanillaContract,
        calendar: TradingCalendar,
        valuation_date: date,
        n_space: int = 401,
        n_time: int = 401,
        *,
        scheme: str = FULLY_IMPLICIT,
        S_max_mult: float = 4.0,
    ):
        if n_space < 3:
            raise ValueError(f"n_space must be at least 3, got {n_space}")
        if n_time < 2:
            raise ValueError(f"n_time must be at least 2, got {n_time}")
        super().__init__(contract, calendar, valuation_date)
        self.n_space = n_space
        self.n_time = n_time
        self.scheme = scheme
        self.S_max_mult = S_max_mult
        self._grid = None

    def _reset(self) -> None:
        self._grid = None

    def calculate(self) -> PdeGrid:
        c = self.contract
        if c.exercise_type == EUROPEAN:
            american = False
        elif c.exercise_type == AMERICAN:
            american = True
        else:
            raise UnsupportedOperationError(f"unsupported exercise type {c.exercise_type!r}")

        t = self.years_to_maturity(c.maturity_date)
        grid = build_grid(
            c.strike, t, c.risk_free_rate, c.dividend_yield, c.option_type,
            self.n_space, self.n_time, self.S_max_mult,
        )
        solve_bsm_pde(grid, c.volatility, c.risk_free_rate, c.dividend_yield,
                      self.scheme, american=american)
        logger.debug(
            "PDE grid solved: n_space=%d n_time=%d scheme=%s T=%.6f",
            self.n_space, self.n_time, self.scheme, t,
        )
        self._grid = grid
        return grid

    @property
    def grid(self) -> PdeGrid:
        if self._grid is None:
            self.calculate()
        return self._grid

    def _interp(self, s: float, column: int = 0) -> float:
        g = self.grid
        return float(np.interp(s, g.spots, g.values[:, column]))

    def value_at(self, s: float) -> float:
        return self._interp(s)

    def delta_at(self, s: float) -> float:
        ds = self.grid.ds
        return (self._interp(s + ds) - self._interp(s - ds)) / (2 * ds)

    def gamma_at(self, s: float) -> float:
        ds = self.grid.ds
        vm = self._interp(s)
        vu = self._interp(s + ds)
        vd = self._interp(s - ds)
        return (vu - 2 * vm + vd) / (ds * ds)

    def theta_at(self, s: float) -> float:
        # value one time step later at the same spot
        return (self._interp(s, 1) - self._interp(s)) / self.grid.dt
