from __future__ import annotations

import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

import numpy as np

from ..exceptions import InvalidParameterError
from ..models.hull_white import HullWhiteOneFactorPiecewiseConstantParameters
from ..typing import FloatArray


@runtime_checkable
class DiscountCurve(Protocol):
    @property
    def name(self) -> str: ...

    def df(self, T: float) -> float: ...

    def node_times(self) -> FloatArray: ...

    def node_weights(self, T: float) -> FloatArray: ...

    def shifted(self, shift: float) -> DiscountCurve: ...

    def __call__(self, T: float) -> float: ...


@dataclass(frozen=True, slots=True)
class FlatDiscountCurve:
    """Constant continuously compounded zero rate ``r``."""

    r: float
    name: str = "flat"

    def df(self, T: float) -> float:
        T = float(T)
        if T < 0:
            raise InvalidParameterError("T must be >= 0")
        return math.exp(-self.r * T)

    def zero_rate(self, T: float) -> float:
        return self.r

    def node_times(self) -> FloatArray:
        return np.zeros(1)

    def node_weights(self, T: float) -> FloatArray:
        return np.ones(1)

    def shifted(self, shift: float) -> FlatDiscountCurve:
        return FlatDiscountCurve(r=self.r + shift, name=self.name)

    def __call__(self, T: float) -> float:
        return self.df(T)


@dataclass(frozen=True, slots=True, eq=False)
class InterpolatedZeroCurve:
    """
    Zero-rate curve, linear in the continuously compounded rate between nodes
    and flat beyond the first and last node.

    ``df(T) = exp(-r(T) T)``.
    """

    name: str
    times: FloatArray
    rates: FloatArray

    def __post_init__(self) -> None:
        times = np.asarray(self.times, dtype=float)
        rates = np.asarray(self.rates, dtype=float)
        if times.ndim != 1 or times.size == 0:
            raise InvalidParameterError("times must be a non-empty 1d array")
        if times.shape != rates.shape:
            raise InvalidParameterError("times and rates must have the same length")
        if times[0] < 0.0 or np.any(np.diff(times) <= 0.0):
            raise InvalidParameterError("times must be >= 0 and strictly increasing")
        object.__setattr__(self, "times", times)
        object.__setattr__(self, "rates", rates)

    def zero_rate(self, T: float) -> float:
        return float(np.interp(T, self.times, self.rates))

    def df(self, T: float) -> float:
        T = float(T)
        if T < 0:
            raise InvalidParameterError("T must be >= 0")
        return math.exp(-self.zero_rate(T) * T)

    def node_times(self) -> FloatArray:
        return self.times.copy()

    def node_weights(self, T: float) -> FloatArray:
        """Derivative of ``zero_rate(T)`` with respect to each node rate."""
        w = np.zeros(self.times.size)
        if T <= self.times[0]:
            w[0] = 1.0
        elif T >= self.times[-1]:
            w[-1] = 1.0
        else:
            j = int(np.searchsorted(self.times, T, side="right"))
            t0, t1 = self.times[j - 1], self.times[j]
            w[j - 1] = (t1 - T) / (t1 - t0)
            w[j] = (T - t0) / (t1 - t0)
        return w

    def shifted(self, shift: float) -> InterpolatedZeroCurve:
        return InterpolatedZeroCurve(
            name=self.name, times=self.times, rates=self.rates + shift
        )

    def __call__(self, T: float) -> float:
        return self.df(T)


# ----------------------------
# Providers
# ----------------------------


@dataclass(frozen=True, slots=True)
class IssuerProvider:
    """Discount curves keyed by issuer name."""

    curves: Mapping[str, DiscountCurve] = field(default_factory=dict)

    def curve(self, issuer: str) -> DiscountCurve:
        try:
            return self.curves[issuer]
        except KeyError:
            raise InvalidParameterError(f"No discount curve for issuer {issuer!r}") from None

    def discount_factor(self, issuer: str, T: float) -> float:
        return self.curve(issuer).df(T)

    def curve_name(self, issuer: str) -> str:
        return self.curve(issuer).name

    def curves_by_name(self) -> dict[str, DiscountCurve]:
        return {c.name: c for c in self.curves.values()}

    def shifted(self, shift: float) -> IssuerProvider:
        """Every curve moved in parallel by ``shift`` (in rate units)."""
        return IssuerProvider(
            curves={issuer: c.shifted(shift) for issuer, c in self.curves.items()}
        )


@dataclass(frozen=True, slots=True)
class HullWhiteIssuerProvider:
    issuer_provider: IssuerProvider
    parameters: HullWhiteOneFactorPiecewiseConstantParameters
    currency: str = "USD"

    def shifted(self, shift: float) -> HullWhiteIssuerProvider:
        return HullWhiteIssuerProvider(
            issuer_provider=self.issuer_provider.shifted(shift),
            parameters=self.parameters,
            currency=self.currency,
        )


def zero_curve(name: str, times: Sequence[float], rates: Sequence[float]) -> InterpolatedZeroCurve:
    return InterpolatedZeroCurve(
        name=name, times=np.asarray(times, dtype=float), rates=np.asarray(rates, dtype=float)
    )
