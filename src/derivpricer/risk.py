"""Risk reports built on any pricing engine.

Collects the eight measures of an engine at one spot, or along a ladder of
spot levels.  Unsupported measures come through as NaN; check
``engine.supports(measure)`` before aggregating them.
"""

from __future__ import annotations

import numpy as np

from .engine import GREEKS, PricingEngine

__all__ = [
    "greeks_report",
    "spot_ladder",
]


def greeks_report(engine: PricingEngine, spot: float) -> dict[str, float]:
    """Every measure of *engine* at *spot*, keyed by name."""
    return {m: float(getattr(engine, f"{m}_at")(spot)) for m in GREEKS}


def spot_ladder(
    engine: PricingEngine,
    spots: np.ndarray,
    measures: tuple[str, ...] = GREEKS,
) -> dict:
    """Evaluate measures of *engine* across a range of spot levels.

    Parameters
    ----------
    engine : PricingEngine
    spots : array, shape (n_spot,)
        Spot values to evaluate.
    measures : tuple of str
        Subset of :data:`GREEKS` (default: all).

    Returns
    -------
    dict
        ``"spot_values"`` plus one array of shape (n_spot,) per measure.
    """
    unknown = [m for m in measures if m not in GREEKS]
    if unknown:
        raise ValueError(f"unknown measures {unknown}; expected a subset of {GREEKS}")

    spots = np.asarray(spots, dtype=float)
    result = {"spot_values": spots.copy()}
    for m in measures:
        fn = getattr(engine, f"{m}_at")
        result[m] = np.array([fn(float(s)) for s in spots])
    return result
