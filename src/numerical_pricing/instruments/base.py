"""Lightweight interfaces consumed by the lattice engines.

The engines only need three things from an option:

- a strike and a step count (the lattice is sized from the latter)
- a vectorised payoff of the asset prices at expiry
- an exercise policy applied to the continuation values at every interior step

Concrete providers live in :mod:`.vanilla` and :mod:`.exotic`. New payoff
shapes are added by implementing :class:`OptionFunctionProvider`; the engines
do not change.
"""

from __future__ import annotations

from enum import Enum
from typing import Protocol, runtime_checkable

import numpy as np

from ..exceptions import InvalidParameterError
from ..typing import FloatArray


class ExerciseStyle(str, Enum):
    """Exercise style."""

    EUROPEAN = "european"
    AMERICAN = "american"


@runtime_checkable
class OptionFunctionProvider(Protocol):
    @property
    def strike(self) -> float: ...

    @property
    def n_steps(self) -> int: ...

    def payoff(self, asset_prices: FloatArray) -> FloatArray:
        """Option value at every terminal node."""
        ...

    def exercise(
        self, asset_prices: FloatArray, continuation: FloatArray, step: int
    ) -> FloatArray:
        """Node values at ``step`` given the discounted continuation values."""
        ...


def validate_provider(strike: float, n_steps: int) -> None:
    if strike <= 0.0:
        raise InvalidParameterError(f"strike must be positive, got {strike}")
    if n_steps < 1:
        raise InvalidParameterError(f"n_steps must be >= 1, got {n_steps}")


def early_exercise(
    style: ExerciseStyle, intrinsic: FloatArray, continuation: FloatArray
) -> FloatArray:
    if style == ExerciseStyle.AMERICAN:
        return np.maximum(continuation, intrinsic)
    return continuation
