from __future__ import annotations

from dataclasses import dataclass

from numerical_pricing.exceptions import InvalidParameterError


@dataclass(frozen=True, slots=True)
class BondFuturesConfig:
    """Numerical settings of the Hull-White bond futures engine.

    Parameters
    ----------
    nb_points : int, default 81
        Number of points of the standard normal integration grid.
    root_accuracy : float, default 1e-8
        Absolute accuracy of the crossing point between two bonds.
    bracket_growth : float, default 1.6
        Geometric growth factor used when a crossing interval must be widened.
    max_bracket_steps : int, default 50
        Maximum number of widening steps before giving up.
    """

    nb_points: int = 81
    root_accuracy: float = 1e-8
    bracket_growth: float = 1.6
    max_bracket_steps: int = 50

    def __post_init__(self) -> None:
        if self.nb_points < 3:
            raise InvalidParameterError("nb_points must be >= 3")
        if self.root_accuracy <= 0:
            raise InvalidParameterError("root_accuracy must be > 0")
        if self.bracket_growth <= 1.0:
            raise InvalidParameterError("bracket_growth must be > 1")
        if self.max_bracket_steps <= 0:
            raise InvalidParameterError("max_bracket_steps must be > 0")


@dataclass(frozen=True, slots=True)
class BatchConfig:
    max_workers: int | None = None  # None -> executor default

    def __post_init__(self) -> None:
        if self.max_workers is not None and self.max_workers <= 0:
            raise InvalidParameterError("max_workers must be > 0")
