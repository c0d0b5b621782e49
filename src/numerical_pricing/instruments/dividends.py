"""Discrete dividend schedules for the lattice engines.

Both providers build the tree on an adjusted spot and recover the actual asset
price at each node from the dividends not yet paid:

- cash dividends (escrowed model): tree on ``S - sum D_k exp(-r t_k)``; a node
  at step ``i`` adds back ``D_k exp(-r (t_k - i dt))`` for every unpaid dividend
- proportional dividends: tree on ``S * prod(1 - q_k)``; a node at step ``i``
  divides by ``(1 - q_k)`` for every unpaid dividend

A dividend paid at time ``t`` is unpaid at the steps ``i <= floor(t / dt)``.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from ..exceptions import InvalidParameterError
from ..typing import FloatArray

# t / dt computed in floating point must not drop a dividend sitting on a step
_STEP_EPS = 1e-9


@runtime_checkable
class DividendFunctionProvider(Protocol):
    @property
    def dividend_times(self) -> tuple[float, ...]: ...

    def check_times(self, time_to_expiry: float) -> None: ...

    def spot_modifier(self, spot: float, rate: float) -> float: ...

    def asset_prices(
        self, tree_prices: FloatArray, step: int, dt: float, rate: float
    ) -> FloatArray: ...


def _sorted_schedule(
    times: Sequence[float], amounts: Sequence[float]
) -> tuple[tuple[float, ...], tuple[float, ...]]:
    if len(times) != len(amounts):
        raise InvalidParameterError(
            "dividend_times and dividends must have the same length"
        )
    if len(times) == 0:
        raise InvalidParameterError("dividend schedule must not be empty")
    pairs = sorted(zip((float(t) for t in times), (float(a) for a in amounts)))
    return tuple(t for t, _ in pairs), tuple(a for _, a in pairs)


def dividend_step(time: float, dt: float) -> int:
    """Last lattice step at which a dividend paid at ``time`` is still unpaid."""
    return int(math.floor(time / dt + _STEP_EPS))


def _check_times(times: tuple[float, ...], time_to_expiry: float) -> None:
    for t in times:
        if not (0.0 < t < time_to_expiry):
            raise InvalidParameterError(
                f"dividend time {t} must lie strictly within (0, {time_to_expiry})"
            )


@dataclass(frozen=True, slots=True)
class CashDividendFunctionProvider:
    dividend_times: tuple[float, ...]
    dividends: tuple[float, ...]

    def __post_init__(self) -> None:
        times, amounts = _sorted_schedule(self.dividend_times, self.dividends)
        if any(a < 0.0 for a in amounts):
            raise InvalidParameterError("cash dividends must be >= 0")
        object.__setattr__(self, "dividend_times", times)
        object.__setattr__(self, "dividends", amounts)

    def check_times(self, time_to_expiry: float) -> None:
        _check_times(self.dividend_times, time_to_expiry)

    def spot_modifier(self, spot: float, rate: float) -> float:
        pv = sum(d * math.exp(-rate * t) for t, d in zip(self.dividend_times, self.dividends))
        modified = spot - pv
        if modified <= 0.0:
            raise InvalidParameterError(
                "present value of cash dividends exceeds the spot"
            )
        return modified

    def asset_prices(
        self, tree_prices: FloatArray, step: int, dt: float, rate: float
    ) -> FloatArray:
        now = step * dt
        escrow = 0.0
        for t, d in zip(self.dividend_times, self.dividends):
            if step <= dividend_step(t, dt):
                escrow += d * math.exp(-rate * (t - now))
        return tree_prices + escrow


@dataclass(frozen=True, slots=True)
class ProportionalDividendFunctionProvider:
    dividend_times: tuple[float, ...]
    dividends: tuple[float, ...]

    def __post_init__(self) -> None:
        times, amounts = _sorted_schedule(self.dividend_times, self.dividends)
        if any(not (0.0 <= a < 1.0) for a in amounts):
            raise InvalidParameterError("proportional dividends must lie in [0, 1)")
        object.__setattr__(self, "dividend_times", times)
        object.__setattr__(self, "dividends", amounts)

    def check_times(self, time_to_expiry: float) -> None:
        _check_times(self.dividend_times, time_to_expiry)

    def spot_modifier(self, spot: float, rate: float) -> float:
        return spot * math.prod(1.0 - q for q in self.dividends)

    def asset_prices(
        self, tree_prices: FloatArray, step: int, dt: float, rate: float
    ) -> FloatArray:
        factor = 1.0
        for t, q in zip(self.dividend_times, self.dividends):
            if step <= dividend_step(t, dt):
                factor *= 1.0 - q
        return tree_prices / factor
