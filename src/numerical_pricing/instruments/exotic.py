"""Barrier, digital and power-type option function providers."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

import numpy as np

from ..exceptions import InvalidParameterError
from ..types import OptionType
from ..typing import FloatArray
from .base import ExerciseStyle, early_exercise, validate_provider
from .vanilla import vanilla_payoff


class BarrierType(str, Enum):
    DOWN_AND_OUT = "down_and_out"
    UP_AND_OUT = "up_and_out"


@dataclass(frozen=True, slots=True)
class KnockOutBarrierOptionFunctionProvider:
    """Vanilla option that dies (paying ``rebate``) once the barrier is touched.

    The barrier is monitored at the lattice nodes only, so prices converge
    to the continuously monitored value slowly and non-monotonically.
    """

    strike: float
    n_steps: int
    kind: OptionType
    barrier: float
    barrier_type: BarrierType
    rebate: float = 0.0
    exercise_style: ExerciseStyle = ExerciseStyle.EUROPEAN

    def __post_init__(self) -> None:
        validate_provider(self.strike, self.n_steps)
        if self.barrier <= 0.0:
            raise InvalidParameterError("barrier must be positive")
        if self.rebate < 0.0:
            raise InvalidParameterError("rebate must be >= 0")

    def _knocked(self, asset_prices: FloatArray) -> FloatArray:
        if self.barrier_type == BarrierType.DOWN_AND_OUT:
            return asset_prices <= self.barrier
        return asset_prices >= self.barrier

    def payoff(self, asset_prices: FloatArray) -> FloatArray:
        values = vanilla_payoff(self.kind, asset_prices, self.strike)
        return np.where(self._knocked(asset_prices), self.rebate, values)

    def exercise(
        self, asset_prices: FloatArray, continuation: FloatArray, step: int
    ) -> FloatArray:
        intrinsic = vanilla_payoff(self.kind, asset_prices, self.strike)
        values = early_exercise(self.exercise_style, intrinsic, continuation)
        return np.where(self._knocked(asset_prices), self.rebate, values)


@dataclass(frozen=True, slots=True)
class DoubleKnockOutBarrierOptionFunctionProvider:
    strike: float
    n_steps: int
    kind: OptionType
    lower_barrier: float
    upper_barrier: float
    rebate: float = 0.0
    exercise_style: ExerciseStyle = ExerciseStyle.EUROPEAN

    def __post_init__(self) -> None:
        validate_provider(self.strike, self.n_steps)
        if not (0.0 < self.lower_barrier < self.upper_barrier):
            raise InvalidParameterError("Need 0 < lower_barrier < upper_barrier")
        if self.rebate < 0.0:
            raise InvalidParameterError("rebate must be >= 0")

    def _knocked(self, asset_prices: FloatArray) -> FloatArray:
        return (asset_prices <= self.lower_barrier) | (
            asset_prices >= self.upper_barrier
        )

    def payoff(self, asset_prices: FloatArray) -> FloatArray:
        values = vanilla_payoff(self.kind, asset_prices, self.strike)
        return np.where(self._knocked(asset_prices), self.rebate, values)

    def exercise(
        self, asset_prices: FloatArray, continuation: FloatArray, step: int
    ) -> FloatArray:
        intrinsic = vanilla_payoff(self.kind, asset_prices, self.strike)
        values = early_exercise(self.exercise_style, intrinsic, continuation)
        return np.where(self._knocked(asset_prices), self.rebate, values)


@dataclass(frozen=True, slots=True)
class CashOrNothingOptionFunctionProvider:
    """European digital paying ``cash`` when the option finishes in the money."""

    strike: float
    n_steps: int
    kind: OptionType
    cash: float = 1.0

    def __post_init__(self) -> None:
        validate_provider(self.strike, self.n_steps)

    def payoff(self, asset_prices: FloatArray) -> FloatArray:
        if self.kind == OptionType.CALL:
            itm = asset_prices > self.strike
        else:
            itm = asset_prices < self.strike
        return np.where(itm, self.cash, 0.0)

    def exercise(
        self, asset_prices: FloatArray, continuation: FloatArray, step: int
    ) -> FloatArray:
        return continuation


@dataclass(frozen=True, slots=True)
class AssetOrNothingOptionFunctionProvider:
    """European digital delivering the asset when the option finishes in the money."""

    strike: float
    n_steps: int
    kind: OptionType

    def __post_init__(self) -> None:
        validate_provider(self.strike, self.n_steps)

    def payoff(self, asset_prices: FloatArray) -> FloatArray:
        if self.kind == OptionType.CALL:
            itm = asset_prices > self.strike
        else:
            itm = asset_prices < self.strike
        return np.where(itm, asset_prices, 0.0)

    def exercise(
        self, asset_prices: FloatArray, continuation: FloatArray, step: int
    ) -> FloatArray:
        return continuation


@dataclass(frozen=True, slots=True)
class CappedPowerOptionFunctionProvider:
    """Payoff ``min(max(S**power - K, 0), cap)`` (call) or ``min(max(K - S**power, 0), cap)`` (put)."""

    strike: float
    n_steps: int
    kind: OptionType
    power: float
    cap: float
    exercise_style: ExerciseStyle = ExerciseStyle.EUROPEAN

    def __post_init__(self) -> None:
        validate_provider(self.strike, self.n_steps)
        if self.power <= 0.0:
            raise InvalidParameterError("power must be positive")
        if self.cap <= 0.0:
            raise InvalidParameterError("cap must be positive")

    def payoff(self, asset_prices: FloatArray) -> FloatArray:
        raw = vanilla_payoff(self.kind, np.power(asset_prices, self.power), self.strike)
        return np.minimum(raw, self.cap)

    def exercise(
        self, asset_prices: FloatArray, continuation: FloatArray, step: int
    ) -> FloatArray:
        return early_exercise(
            self.exercise_style, self.payoff(asset_prices), continuation
        )


@dataclass(frozen=True, slots=True)
class LogOptionFunctionProvider:
    """European log option, payoff ``max(ln(S/K), 0)``."""

    strike: float
    n_steps: int

    def __post_init__(self) -> None:
        validate_provider(self.strike, self.n_steps)

    def payoff(self, asset_prices: FloatArray) -> FloatArray:
        return np.maximum(np.log(asset_prices / self.strike), 0.0)

    def exercise(
        self, asset_prices: FloatArray, continuation: FloatArray, step: int
    ) -> FloatArray:
        return continuation
