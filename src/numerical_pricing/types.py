from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from numerical_pricing.exceptions import InvalidParameterError


class OptionType(str, Enum):
    """Option contract type.

    Attributes
    ----------
    CALL : str
        Call option ("call").
    PUT : str
        Put option ("put").
    """

    CALL = "call"
    PUT = "put"


def _check_probability(name: str, value: float) -> None:
    # NaN fails both comparisons and is rejected too
    if not (0.0 <= value <= 1.0):
        raise InvalidParameterError(
            f"{name} out of bounds: {value:.6g}. "
            "Try increasing n_steps or check rate/dividend/volatility."
        )


@dataclass(frozen=True, slots=True)
class LatticeParameters:
    """One step of a recombining binomial lattice.

    Parameters
    ----------
    up : float
        Up factor :math:`u`.
    down : float
        Down factor :math:`d`.
    up_probability : float
        Risk-neutral probability of an up move.

    Raises
    ------
    InvalidParameterError
        If ``up_probability`` is outside ``[0, 1]`` or ``up <= down``.
    """

    up: float
    down: float
    up_probability: float

    def __post_init__(self) -> None:
        if not (0.0 < self.down < self.up):
            raise InvalidParameterError("Need 0 < down < up")
        _check_probability("up_probability", self.up_probability)

    @property
    def down_probability(self) -> float:
        return 1.0 - self.up_probability


@dataclass(frozen=True, slots=True)
class TrinomialParameters:
    """One step of a recombining trinomial lattice (``up * down == middle**2``)."""

    up: float
    middle: float
    down: float
    up_probability: float
    middle_probability: float
    down_probability: float

    def __post_init__(self) -> None:
        if not (0.0 < self.down < self.middle < self.up):
            raise InvalidParameterError("Need 0 < down < middle < up")
        _check_probability("up_probability", self.up_probability)
        _check_probability("middle_probability", self.middle_probability)
        _check_probability("down_probability", self.down_probability)


@dataclass(frozen=True, slots=True)
class GreekResult:
    """Price and lattice Greeks.

    ``delta`` and ``gamma`` are divided differences on the first lattice steps;
    ``theta`` is the time decay between the root and the middle node two
    binomial steps (one trinomial step) later, taken at the root's spot.
    """

    price: float
    delta: float
    gamma: float
    theta: float

    def to_dict(self) -> dict[str, float]:
        return {
            "price": self.price,
            "delta": self.delta,
            "gamma": self.gamma,
            "theta": self.theta,
        }
