"""
Numerical building blocks (advanced API).

Top-level package `numerical_pricing` exposes the everyday pricing API.
This subpackage exposes reusable numerical primitives.
"""

from .grids import normal_integration_grid
from .root_finding import (
    NoBracketError,
    NoConvergenceError,
    NotBracketedError,
    RootFindingError,
    RootResult,
    bracket_root,
    ridder_method,
)

__all__ = [
    # Root finding
    "RootResult",
    "RootFindingError",
    "NotBracketedError",
    "NoBracketError",
    "NoConvergenceError",
    "bracket_root",
    "ridder_method",
    # Grids
    "normal_integration_grid",
]
