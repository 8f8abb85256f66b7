# derivpricer: derivatives pricing engines
# Public API

import logging

# Calendar & contracts
from .calendar import TradingCalendar
from .core import (
    CALL, PUT, EUROPEAN, AMERICAN,
    Contract, VanillaContract, AutocallableNote, bumped,
)
from .errors import PricingError, EngineNotSetError, UnsupportedOperationError

# Engine interface
from .engine import PricingEngine, GREEKS

# Closed form
from .black_scholes import bsm_price, bsm_greeks, AnalyticEuropeanEngine

# Binomial lattice
from .binomial import CrrLattice, crr_lattice, crr_price, CrrBinomialEngine

# PDE (Finite Difference)
from .pde import (
    FULLY_IMPLICIT, CRANK_NICOLSON,
    PdeGrid, build_grid, solve_bsm_pde, FdVanillaEngine,
)

# Monte Carlo
from .processes import MonteCarloSimulation
from .monte_carlo import McAutocallableEngine

# Risk & validation
from .risk import greeks_report, spot_ladder
from .validation import cross_validate, convergence_analysis

__all__ = [
    # Calendar & contracts
    "TradingCalendar",
    "CALL", "PUT", "EUROPEAN", "AMERICAN",
    "Contract", "VanillaContract", "AutocallableNote", "bumped",
    "PricingError", "EngineNotSetError", "UnsupportedOperationError",
    # Engine interface
    "PricingEngine", "GREEKS",
    # Closed form
    "bsm_price", "bsm_greeks", "AnalyticEuropeanEngine",
    # Binomial
    "CrrLattice", "crr_lattice", "crr_price", "CrrBinomialEngine",
    # PDE (Finite Difference)
    "FULLY_IMPLICIT", "CRANK_NICOLSON",
    "PdeGrid", "build_grid", "solve_bsm_pde", "FdVanillaEngine",
    # Monte Carlo
    "MonteCarloSimulation", "McAutocallableEngine",
    # Risk & validation
    "greeks_report", "spot_ladder",
    "cross_validate", "convergence_analysis",
]

__version__ = "0.1.0"

logging.getLogger(__name__).addHandler(logging.NullHandler())
