"""Model validation helpers.

Cross-engine benchmarking and convergence analysis for vanilla contracts:
the closed form is the reference, the lattice and the PDE grid must agree
with it and converge towards it as their resolution grows.
"""

from __future__ import annotations

from datetime import date
from typing import Optional

import numpy as np

from .binomial import CrrBinomialEngine
from .black_scholes import AnalyticEuropeanEngine
from .calendar import TradingCalendar
from .core import EUROPEAN, VanillaContract
from .pde import FdVanillaEngine

__all__ = [
    "cross_validate",
    "convergence_analysis",
]


# ---------------------------------------------------------------------------
# Cross-engine benchmarking
# ---------------------------------------------------------------------------

def cross_validate(
    contract: VanillaContract,
    spot: float,
    *,
    calendar: TradingCalendar,
    valuation_date: date,
    methods: Optional[list[str]] = None,
    tree_steps: int = 500,
    fd_n_space: int = 401,
    fd_n_time: int = 401,
) -> dict:
    """Price one contract with every available engine.

    Parameters
    ----------
    contract : VanillaContract
    spot : float
    methods : list of str, optional
        Subset of ``{"analytic", "tree", "fdm"}``.  Default: all.  The
        closed form is skipped for American contracts.

    Returns
    -------
    dict
        ``"analytic"``, ``"tree"``, ``"fdm"``, ``"max_discrepancy"``
        (vs analytic, NaN without it).
    """
    if methods is None:
        methods = ["analytic", "tree", "fdm"]

    env = dict(calendar=calendar, valuation_date=valuation_date)
    results: dict = {}

    if "analytic" in methods and contract.exercise_type == EUROPEAN:
        results["analytic"] = AnalyticEuropeanEngine(contract, **env).value_at(spot)

    if "tree" in methods:
        results["tree"] = CrrBinomialEngine(contract, num_steps=tree_steps, **env).value_at(spot)

    if "fdm" in methods:
        engine = FdVanillaEngine(contract, n_space=fd_n_space, n_time=fd_n_time, **env)
        results["fdm"] = engine.value_at(spot)

    ref = results.get("analytic")
    if ref is not None:
        discs = [abs(v - ref) for k, v in results.items() if k != "analytic"]
        results["max_discrepancy"] = max(discs) if discs else 0.0
    else:
        results["max_discrepancy"] = float("nan")

    return results


# ---------------------------------------------------------------------------
# Convergence analysis
# ---------------------------------------------------------------------------

def convergence_analysis(
    contract: VanillaContract,
    spot: float,
    method: str,
    resolutions: list | np.ndarray,
    *,
    calendar: TradingCalendar,
    valuation_date: date,
    reference: Optional[float] = None,
) -> dict:
    """Analyse convergence of a numerical engine as its resolution grows.

    Parameters
    ----------
    method : str
        ``"tree"`` (resolution = number of steps) or ``"fdm"``
        (resolution = number of space and time nodes).
    resolutions : array-like
        Values to test.
    reference : float, optional
        True price for error computation.  Default: closed form.

    Returns
    -------
    dict
        ``"params"``, ``"prices"``, ``"errors"``, ``"order"`` (estimated).
    """
    resolutions = [int(n) for n in resolutions]
    env = dict(calendar=calendar, valuation_date=valuation_date)

    if reference is None:
        reference = AnalyticEuropeanEngine(contract, **env).value_at(spot)

    prices = []
    for n in resolutions:
        if method == "tree":
            engine = CrrBinomialEngine(contract, num_steps=n, **env)
        elif method == "fdm":
            engine = FdVanillaEngine(contract, n_space=n, n_time=n, **env)
        else:
            raise ValueError(f"Unknown method: {method}")
        prices.append(engine.value_at(spot))

    errors = [abs(p - reference) for p in prices]

    # Estimate convergence order from log-log regression
    order = float("nan")
    valid = [(n, e) for n, e in zip(resolutions, errors) if e > 0]
    if len(valid) >= 2:
        log_n = np.log([n for n, _ in valid])
        log_e = np.log([e for _, e in valid])
        # error ~ C / n^order  => log(e) = -order * log(n) + const
        coeffs = np.polyfit(log_n, log_e, 1)
        order = -float(coeffs[0])

    return {
        "params": resolutions,
        "prices": prices,
        "errors": errors,
        "order": order,
    }
