"""Hull-White one-factor model with piecewise constant volatility.

Only the two functions needed by the bond futures engine are provided:

- :func:`alpha` : the standard deviation of the (rescaled) bond price at expiry
- :func:`futures_convexity_factor` : the futures-versus-forward adjustment
"""

from __future__ import annotations

import bisect
import math
from collections.abc import Sequence
from dataclasses import dataclass

from ..exceptions import InvalidParameterError

__all__ = [
    "VOLATILITY_TIME_MAX",
    "HullWhiteOneFactorPiecewiseConstantParameters",
    "alpha",
    "futures_convexity_factor",
]

# right end of the last volatility bucket
VOLATILITY_TIME_MAX = 1000.0


@dataclass(frozen=True, slots=True)
class HullWhiteOneFactorPiecewiseConstantParameters:
    """
    Mean reversion and piecewise constant volatility.

    Parameters
    ----------
    mean_reversion : float
        Mean reversion speed ``a > 0``.
    volatility : sequence of float
        ``volatility[k]`` applies on ``[time_grid[k], time_grid[k + 1])``.
    volatility_time : sequence of float
        Interior breaks, strictly increasing and positive, one fewer than
        ``volatility``. The full grid is ``[0, *volatility_time, 1000]``.
    """

    mean_reversion: float
    volatility: tuple[float, ...]
    volatility_time: tuple[float, ...] = ()

    def __post_init__(self) -> None:
        vol = tuple(float(v) for v in self.volatility)
        breaks = tuple(float(t) for t in self.volatility_time)
        if self.mean_reversion <= 0.0:
            raise InvalidParameterError("mean_reversion must be positive")
        if not vol:
            raise InvalidParameterError("volatility must not be empty")
        if any(v < 0.0 for v in vol):
            raise InvalidParameterError("volatility must be >= 0")
        if len(breaks) != len(vol) - 1:
            raise InvalidParameterError(
                "volatility_time must have one element fewer than volatility"
            )
        grid = (0.0, *breaks, VOLATILITY_TIME_MAX)
        if any(b <= a for a, b in zip(grid, grid[1:])):
            raise InvalidParameterError(
                f"volatility_time must be strictly increasing within (0, {VOLATILITY_TIME_MAX})"
            )
        object.__setattr__(self, "volatility", vol)
        object.__setattr__(self, "volatility_time", breaks)

    @property
    def time_grid(self) -> tuple[float, ...]:
        return (0.0, *self.volatility_time, VOLATILITY_TIME_MAX)


def alpha(
    parameters: HullWhiteOneFactorPiecewiseConstantParameters,
    start_expiry: float,
    end_expiry: float,
    numeraire_time: float,
    bond_maturity: float,
) -> float:
    """
    Volatility of ``P(t, bond_maturity) / P(t, numeraire_time)`` integrated
    from ``start_expiry`` to ``end_expiry``.
    """
    a = parameters.mean_reversion
    vol = parameters.volatility
    grid = parameters.time_grid
    factor1 = math.exp(-a * numeraire_time) - math.exp(-a * bond_maturity)
    num_factor = 2.0 * a * a * a

    index_start = bisect.bisect_right(grid, start_expiry)
    index_end = bisect.bisect_right(grid, end_expiry)
    s: Sequence[float] = [start_expiry, *grid[index_start:index_end], end_expiry]

    factor2 = 0.0
    for k in range(len(s) - 1):
        sigma = vol[index_start - 1 + k]
        factor2 += sigma * sigma * (math.exp(2.0 * a * s[k + 1]) - math.exp(2.0 * a * s[k]))
    return factor1 * math.sqrt(factor2 / num_factor)


def futures_convexity_factor(
    parameters: HullWhiteOneFactorPiecewiseConstantParameters,
    t0: float,
    t1: float,
    t2: float,
) -> float:
    """
    Ratio between futures and forward prices of a zero-coupon bond.

    ``t0`` is the futures expiry, ``t1`` the zero-coupon maturity and ``t2``
    the futures delivery time.
    """
    a = parameters.mean_reversion
    vol = parameters.volatility
    grid = parameters.time_grid
    factor1 = math.exp(-a * t1) - math.exp(-a * t2)
    num_factor = 2.0 * a * a * a

    # bucket containing t0: grid[index_t0 - 1] <= t0 <= grid[index_t0]
    index_t0 = 1
    while t0 > grid[index_t0]:
        index_t0 += 1
    s = [*grid[:index_t0], t0]

    factor2 = 0.0
    for k in range(index_t0):
        sigma = vol[k]
        factor2 += (
            sigma
            * sigma
            * (math.exp(a * s[k + 1]) - math.exp(a * s[k]))
            * (2.0 - math.exp(-a * (t2 - s[k + 1])) - math.exp(-a * (t2 - s[k])))
        )
    return math.exp(factor1 / num_factor * factor2)
