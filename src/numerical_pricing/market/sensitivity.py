from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import TypeAlias

import numpy as np

from ..exceptions import InvalidParameterError
from ..typing import FloatArray
from .curves import DiscountCurve

PointSensitivity: TypeAlias = tuple[float, float]


@dataclass(frozen=True, slots=True)
class MulticurveSensitivity:
    """
    Point sensitivities to continuously compounded zero rates.

    ``sensitivities[curve_name]`` is a list of ``(time, value)`` pairs where
    ``value`` is the derivative of the measure with respect to the zero rate
    of that curve at ``time``. Equal times may repeat until :meth:`cleaned`.
    """

    sensitivities: Mapping[str, tuple[PointSensitivity, ...]] = field(
        default_factory=dict
    )

    @classmethod
    def of_curve(
        cls, name: str, points: Iterable[PointSensitivity]
    ) -> MulticurveSensitivity:
        return cls({name: tuple((float(t), float(v)) for t, v in points)})

    def curve_names(self) -> tuple[str, ...]:
        return tuple(self.sensitivities)

    def get(self, name: str) -> tuple[PointSensitivity, ...]:
        return self.sensitivities.get(name, ())

    def plus(self, other: MulticurveSensitivity) -> MulticurveSensitivity:
        merged: dict[str, tuple[PointSensitivity, ...]] = dict(self.sensitivities)
        for name, points in other.sensitivities.items():
            merged[name] = merged.get(name, ()) + tuple(points)
        return MulticurveSensitivity(merged)

    def multiplied_by(self, factor: float) -> MulticurveSensitivity:
        return MulticurveSensitivity(
            {
                name: tuple((t, v * factor) for t, v in points)
                for name, points in self.sensitivities.items()
            }
        )

    def cleaned(self, tolerance: float = 0.0) -> MulticurveSensitivity:
        """Sorted by time, equal times summed, ``|value| <= tolerance`` dropped."""
        out: dict[str, tuple[PointSensitivity, ...]] = {}
        for name, points in self.sensitivities.items():
            acc: dict[float, float] = {}
            for t, v in points:
                acc[t] = acc.get(t, 0.0) + v
            out[name] = tuple(
                (t, v) for t, v in sorted(acc.items()) if abs(v) > tolerance
            )
        return MulticurveSensitivity(out)

    def total(self, name: str | None = None) -> float:
        if name is not None:
            return float(sum(v for _, v in self.get(name)))
        return float(sum(v for points in self.sensitivities.values() for _, v in points))

    def parameter_sensitivity(
        self, curves: Mapping[str, DiscountCurve]
    ) -> dict[str, FloatArray]:
        """Sensitivities to the node rates of each curve, keyed by curve name."""
        out: dict[str, FloatArray] = {}
        for name, points in self.sensitivities.items():
            if name not in curves:
                raise InvalidParameterError(f"No curve named {name!r} to project onto")
            curve = curves[name]
            acc = np.zeros(curve.node_times().size)
            for t, v in points:
                acc += v * curve.node_weights(t)
            out[name] = acc
        return out
