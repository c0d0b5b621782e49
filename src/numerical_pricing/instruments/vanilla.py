"""Vanilla (call/put) option function providers.

- :class:`EuropeanVanillaOptionFunctionProvider` : no early exercise
- :class:`AmericanVanillaOptionFunctionProvider` : exercise at every node
- :class:`BermudanVanillaOptionFunctionProvider` : exercise on a set of steps
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass
from typing import overload

import numpy as np

from ..exceptions import InvalidParameterError
from ..types import OptionType
from ..typing import FloatArray
from .base import ExerciseStyle, early_exercise, validate_provider


@overload
def call_payoff(ST: float, K: float) -> float: ...
@overload
def call_payoff(ST: FloatArray, K: float) -> FloatArray: ...
def call_payoff(ST: float | FloatArray, K: float) -> float | FloatArray:
    return np.maximum(ST - K, 0.0)


@overload
def put_payoff(ST: float, K: float) -> float: ...
@overload
def put_payoff(ST: FloatArray, K: float) -> FloatArray: ...
def put_payoff(ST: float | FloatArray, K: float) -> float | FloatArray:
    return np.maximum(K - ST, 0.0)


def vanilla_payoff(kind: OptionType, ST: FloatArray, K: float) -> FloatArray:
    if kind == OptionType.CALL:
        return call_payoff(ST, K)
    if kind == OptionType.PUT:
        return put_payoff(ST, K)
    raise InvalidParameterError(f"Unsupported option kind: {kind}")


@dataclass(frozen=True, slots=True)
class EuropeanVanillaOptionFunctionProvider:
    strike: float
    n_steps: int
    kind: OptionType

    def __post_init__(self) -> None:
        validate_provider(self.strike, self.n_steps)

    def payoff(self, asset_prices: FloatArray) -> FloatArray:
        return vanilla_payoff(self.kind, asset_prices, self.strike)

    def exercise(
        self, asset_prices: FloatArray, continuation: FloatArray, step: int
    ) -> FloatArray:
        return continuation


@dataclass(frozen=True, slots=True)
class AmericanVanillaOptionFunctionProvider:
    strike: float
    n_steps: int
    kind: OptionType

    def __post_init__(self) -> None:
        validate_provider(self.strike, self.n_steps)

    def payoff(self, asset_prices: FloatArray) -> FloatArray:
        return vanilla_payoff(self.kind, asset_prices, self.strike)

    def exercise(
        self, asset_prices: FloatArray, continuation: FloatArray, step: int
    ) -> FloatArray:
        return early_exercise(
            ExerciseStyle.AMERICAN, self.payoff(asset_prices), continuation
        )


@dataclass(frozen=True, slots=True)
class BermudanVanillaOptionFunctionProvider:
    """Vanilla option exercisable only at the lattice steps in ``exercise_steps``.

    Use :meth:`from_times` to map calendar exercise times onto steps.
    """

    strike: float
    n_steps: int
    kind: OptionType
    exercise_steps: frozenset[int]

    def __post_init__(self) -> None:
        validate_provider(self.strike, self.n_steps)
        if any(s < 0 or s > self.n_steps for s in self.exercise_steps):
            raise InvalidParameterError("exercise_steps must lie in [0, n_steps]")

    @classmethod
    def from_times(
        cls,
        *,
        strike: float,
        time_to_expiry: float,
        n_steps: int,
        kind: OptionType,
        exercise_times: Sequence[float],
    ) -> BermudanVanillaOptionFunctionProvider:
        if time_to_expiry <= 0.0:
            raise InvalidParameterError("time_to_expiry must be positive")
        dt = time_to_expiry / n_steps
        steps = set()
        for t in exercise_times:
            if not (0.0 < t <= time_to_expiry):
                raise InvalidParameterError(
                    f"exercise time {t} outside (0, {time_to_expiry}]"
                )
            # nearest lattice step
            steps.add(int(math.floor(t / dt + 0.5)))
        return cls(
            strike=strike, n_steps=n_steps, kind=kind, exercise_steps=frozenset(steps)
        )

    def payoff(self, asset_prices: FloatArray) -> FloatArray:
        return vanilla_payoff(self.kind, asset_prices, self.strike)

    def exercise(
        self, asset_prices: FloatArray, continuation: FloatArray, step: int
    ) -> FloatArray:
        if step in self.exercise_steps:
            return np.maximum(continuation, self.payoff(asset_prices))
        return continuation
