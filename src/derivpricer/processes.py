# processes.py
# Path generator for Monte Carlo pricing.
# Paths are arrays of shape (n_steps, n_paths) whose first row is the
# path start. The normal draws are generated once and kept, so that
# revaluations at bumped inputs reuse exactly the same randomness.

from __future__ import annotations

import logging
from typing import Optional

import numpy as np

from .errors import PricingError

__all__ = ["MonteCarloSimulation"]

logger = logging.getLogger(__name__)


class MonteCarloSimulation:
    """Stored normal draws plus a GBM path builder on top of them.

    Parameters
    ----------
    n_paths : int
        Number of paths; an odd request is rounded up to the next even
        number so that antithetic pairs are complete.
    n_steps : int
        Number of points per path, including the start.
    antithetic : bool
        Mirror the draws (``Z`` and ``-Z``).  Default True.
    seed : int, optional
        Seed for ``numpy.random.default_rng``.
    """

    def __init__(
        self,
        n_paths: int,
        n_steps: int,
        *,
        antithetic: bool = True,
        seed: Optional[int] = None,
    ):
        if n_paths <= 0:
            raise ValueError(f"n_paths must be positive, got {n_paths}")
        if n_steps < 2:
            raise ValueError(f"n_steps must be at least 2, got {n_steps}")
        self.n_paths = n_paths + 1 if n_paths % 2 == 1 else n_paths
        self.n_steps = n_steps
        self.antithetic = antithetic
        self.seed = seed
        self.random_samples: Optional[np.ndarray] = None

    def generate_random_samples(self) -> np.ndarray:
        rng = np.random.default_rng(self.seed)
        if self.antithetic:
            Z = rng.standard_normal((self.n_steps - 1, self.n_paths // 2))
            Z = np.concatenate([Z, -Z], axis=1)
        else:
            Z = rng.standard_normal((self.n_steps - 1, self.n_paths))
        logger.debug(
            "drew %d x %d normals (antithetic=%s, seed=%s)",
            Z.shape[0], Z.shape[1], self.antithetic, self.seed,
        )
        self.random_samples = Z
        return Z

    def geometric_brownian_motion(self, T: float, mu: float, sigma: float) -> np.ndarray:
        """
        Unit-start GBM paths on the stored draws:
            ln S_{k+1} - ln S_k = (mu - 0.5*sigma^2) dt + sigma * sqrt(dt) * Z_k
        with dt = T / (n_steps - 1). Multiply by the spot to scale.
        """
        if self.random_samples is None:
            raise PricingError("random samples not generated")

        dt = T / (self.n_steps - 1)
        log_increments = (mu - 0.5 * sigma * sigma) * dt + sigma * np.sqrt(dt) * self.random_samples
        log_paths = np.vstack([np.zeros((1, self.n_paths)), log_increments])
        return np.exp(np.cumsum(log_paths, axis=0))

    def standard_error(self, values: np.ndarray) -> float:
        """Standard error of the mean of per-path *values*.

        Antithetic partners are not independent, so they are averaged
        pairwise first and the error is taken over the pair means.
        """
        X = np.asarray(values, dtype=float)
        if self.antithetic:
            half = self.n_paths // 2
            X = 0.5 * (X[:half] + X[half:])
        n = X.size
        return float(X.std(ddof=1) / np.sqrt(n)) if n > 1 else 0.0
