"""Lattice specifications.

A lattice specification maps market inputs to the step sizes and
probabilities of one step of a recombining tree. Every specification here is
an immutable, stateless object; calling it twice with the same inputs returns
the same parameters.

Binomial specifications implement :class:`LatticeSpecification`, trinomial
ones :class:`TrinomialLatticeSpecification`. Drift always uses the cost of
carry ``b = rate - dividend_yield``; discounting is left to the engine.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

import numpy as np

from ..exceptions import InvalidParameterError
from ..types import LatticeParameters, TrinomialParameters
from ..typing import FloatArray

__all__ = [
    "LatticeSpecification",
    "TrinomialLatticeSpecification",
    "CoxRossRubinsteinLatticeSpecification",
    "JarrowRuddLatticeSpecification",
    "TrigeorgisLatticeSpecification",
    "TianLatticeSpecification",
    "JabbourKraminYoungLatticeSpecification",
    "LeisenReimerLatticeSpecification",
    "TimeVaryingLatticeSpecification",
    "CoxRossRubinsteinTrinomialSpecification",
    "TrigeorgisTrinomialSpecification",
    "KamradRitchkenTrinomialSpecification",
]


@runtime_checkable
class LatticeSpecification(Protocol):
    def get_parameters(
        self,
        *,
        spot: float,
        strike: float,
        time_to_expiry: float,
        volatility: float,
        rate: float,
        dividend_yield: float,
        n_steps: int,
    ) -> LatticeParameters: ...


@runtime_checkable
class TrinomialLatticeSpecification(Protocol):
    def get_trinomial_parameters(
        self,
        *,
        time_to_expiry: float,
        volatility: float,
        rate: float,
        dividend_yield: float,
        n_steps: int,
    ) -> TrinomialParameters: ...


def _require_positive_volatility(volatility: float, scheme: str) -> None:
    if volatility <= 0.0:
        raise InvalidParameterError(
            f"{scheme} lattice is degenerate for volatility={volatility!r}; need > 0"
        )


def _risk_neutral(growth: float, up: float, down: float) -> LatticeParameters:
    # p solves p*u + (1-p)*d = growth
    if up <= down:
        raise InvalidParameterError("Need down < up to build a lattice step")
    return LatticeParameters(
        up=up, down=down, up_probability=(growth - down) / (up - down)
    )


# ----------------------------
# Binomial specifications
# ----------------------------


@dataclass(frozen=True, slots=True)
class CoxRossRubinsteinLatticeSpecification:
    """Symmetric tree ``u = exp(sigma sqrt(dt))``, ``d = 1/u``."""

    def get_parameters(
        self,
        *,
        spot: float,
        strike: float,
        time_to_expiry: float,
        volatility: float,
        rate: float,
        dividend_yield: float,
        n_steps: int,
    ) -> LatticeParameters:
        _require_positive_volatility(volatility, "Cox-Ross-Rubinstein")
        dt = time_to_expiry / n_steps
        up = math.exp(volatility * math.sqrt(dt))
        growth = math.exp((rate - dividend_yield) * dt)
        return _risk_neutral(growth, up, 1.0 / up)


@dataclass(frozen=True, slots=True)
class JarrowRuddLatticeSpecification:
    """Equal-probability tree centred on the log drift ``b - sigma^2/2``."""

    def get_parameters(
        self,
        *,
        spot: float,
        strike: float,
        time_to_expiry: float,
        volatility: float,
        rate: float,
        dividend_yield: float,
        n_steps: int,
    ) -> LatticeParameters:
        _require_positive_volatility(volatility, "Jarrow-Rudd")
        dt = time_to_expiry / n_steps
        drift = (rate - dividend_yield - 0.5 * volatility * volatility) * dt
        diffusion = volatility * math.sqrt(dt)
        return LatticeParameters(
            up=math.exp(drift + diffusion),
            down=math.exp(drift - diffusion),
            up_probability=0.5,
        )


@dataclass(frozen=True, slots=True)
class TrigeorgisLatticeSpecification:
    """Log-space tree matching mean and variance of ``ln S`` over ``dt``."""

    def get_parameters(
        self,
        *,
        spot: float,
        strike: float,
        time_to_expiry: float,
        volatility: float,
        rate: float,
        dividend_yield: float,
        n_steps: int,
    ) -> LatticeParameters:
        _require_positive_volatility(volatility, "Trigeorgis")
        dt = time_to_expiry / n_steps
        nu = rate - dividend_yield - 0.5 * volatility * volatility
        dx = math.sqrt(volatility * volatility * dt + nu * nu * dt * dt)
        return LatticeParameters(
            up=math.exp(dx),
            down=math.exp(-dx),
            up_probability=0.5 + 0.5 * nu * dt / dx,
        )


@dataclass(frozen=True, slots=True)
class TianLatticeSpecification:
    """Tree matching the first three moments of the lognormal step."""

    def get_parameters(
        self,
        *,
        spot: float,
        strike: float,
        time_to_expiry: float,
        volatility: float,
        rate: float,
        dividend_yield: float,
        n_steps: int,
    ) -> LatticeParameters:
        _require_positive_volatility(volatility, "Tian")
        dt = time_to_expiry / n_steps
        v = math.exp(volatility * volatility * dt)
        growth = math.exp((rate - dividend_yield) * dt)
        root = math.sqrt(v * v + 2.0 * v - 3.0)
        up = 0.5 * growth * v * (v + 1.0 + root)
        down = 0.5 * growth * v * (v + 1.0 - root)
        return _risk_neutral(growth, up, down)


@dataclass(frozen=True, slots=True)
class JabbourKraminYoungLatticeSpecification:
    """Equal-probability tree matching the discrete mean and variance exactly.

    ``u, d = exp(b dt) (1 +/- sqrt(exp(sigma^2 dt) - 1))`` with ``p = 1/2``.
    """

    def get_parameters(
        self,
        *,
        spot: float,
        strike: float,
        time_to_expiry: float,
        volatility: float,
        rate: float,
        dividend_yield: float,
        n_steps: int,
    ) -> LatticeParameters:
        _require_positive_volatility(volatility, "Jabbour-Kramin-Young")
        dt = time_to_expiry / n_steps
        growth = math.exp((rate - dividend_yield) * dt)
        spread = math.sqrt(math.expm1(volatility * volatility * dt))
        if spread >= 1.0:
            raise InvalidParameterError(
                "Jabbour-Kramin-Young down factor is not positive; increase n_steps"
            )
        return LatticeParameters(
            up=growth * (1.0 + spread),
            down=growth * (1.0 - spread),
            up_probability=0.5,
        )


def _peizer_pratt_inversion(z: float, n_steps: int) -> float:
    # Peizer-Pratt method 2: binomial probability whose terminal CDF matches Phi(z)
    denom = n_steps + 1.0 / 3.0 + 0.1 / (n_steps + 1.0)
    tmp = (z / denom) ** 2 * (n_steps + 1.0 / 6.0)
    return 0.5 + math.copysign(0.5, z) * math.sqrt(-math.expm1(-tmp))


@dataclass(frozen=True, slots=True)
class LeisenReimerLatticeSpecification:
    """Leisen-Reimer tree.

    The up probability inverts the terminal binomial CDF against the
    Black-Scholes :math:`\\Phi(d_2)` at the strike, which gives :math:`O(1/n)`
    convergence for vanilla payoffs. Intended for odd step counts.
    """

    def get_parameters(
        self,
        *,
        spot: float,
        strike: float,
        time_to_expiry: float,
        volatility: float,
        rate: float,
        dividend_yield: float,
        n_steps: int,
    ) -> LatticeParameters:
        _require_positive_volatility(volatility, "Leisen-Reimer")
        dt = time_to_expiry / n_steps
        carry = rate - dividend_yield
        vol_sqrt_t = volatility * math.sqrt(time_to_expiry)
        d1 = (
            math.log(spot / strike) + (carry + 0.5 * volatility * volatility) * time_to_expiry
        ) / vol_sqrt_t
        d2 = d1 - vol_sqrt_t
        p = _peizer_pratt_inversion(d2, n_steps)
        p_prime = _peizer_pratt_inversion(d1, n_steps)
        growth = math.exp(carry * dt)
        up = growth * p_prime / p
        down = (growth - p * up) / (1.0 - p)
        return LatticeParameters(up=up, down=down, up_probability=p)


@dataclass(frozen=True, slots=True)
class TimeVaryingLatticeSpecification:
    """Trigeorgis-type tree that also supports per-step volatility, rate and dividend.

    With constant inputs it coincides with :class:`TrigeorgisLatticeSpecification`.
    With per-step inputs the space step ``dx`` is kept constant so the tree
    recombines, and each time step ``dt_i`` solves
    ``sigma_i^2 dt_i + nu_i^2 dt_i^2 = dx^2``.
    """

    def get_parameters(
        self,
        *,
        spot: float,
        strike: float,
        time_to_expiry: float,
        volatility: float,
        rate: float,
        dividend_yield: float,
        n_steps: int,
    ) -> LatticeParameters:
        return TrigeorgisLatticeSpecification().get_parameters(
            spot=spot,
            strike=strike,
            time_to_expiry=time_to_expiry,
            volatility=volatility,
            rate=rate,
            dividend_yield=dividend_yield,
            n_steps=n_steps,
        )

    def space_step(
        self, time_to_expiry: float, volatility: FloatArray, nu: FloatArray
    ) -> float:
        dt = time_to_expiry / volatility.size
        dx = math.sqrt(float(np.mean(volatility * volatility * dt + nu * nu * dt * dt)))
        if dx <= 0.0:
            raise InvalidParameterError("Degenerate time-varying lattice: zero space step")
        return dx

    def time_steps(
        self, space_step: float, volatility: FloatArray, nu: FloatArray
    ) -> FloatArray:
        # Stable root of nu^2 dt^2 + sigma^2 dt - dx^2 = 0 (also valid for nu == 0)
        var = volatility * volatility
        dx2 = space_step * space_step
        return 2.0 * dx2 / (var + np.sqrt(var * var + 4.0 * nu * nu * dx2))

    def probabilities(
        self, space_step: float, time_steps: FloatArray, nu: FloatArray
    ) -> FloatArray:
        p = 0.5 + 0.5 * nu * time_steps / space_step
        if np.any((p < 0.0) | (p > 1.0)) or not np.all(np.isfinite(p)):
            raise InvalidParameterError(
                "Time-varying lattice probability out of bounds; "
                "check the volatility/rate/dividend arrays."
            )
        return p

    @staticmethod
    def drifts(
        volatility: Sequence[float], rate: Sequence[float], dividend: Sequence[float]
    ) -> FloatArray:
        vol = np.asarray(volatility, dtype=float)
        return (
            np.asarray(rate, dtype=float)
            - np.asarray(dividend, dtype=float)
            - 0.5 * vol * vol
        )


# ----------------------------
# Trinomial specifications
# ----------------------------


@dataclass(frozen=True, slots=True)
class CoxRossRubinsteinTrinomialSpecification:
    """Trinomial tree with ``u = exp(sigma sqrt(2 dt))`` (Boyle / Hull)."""

    def get_trinomial_parameters(
        self,
        *,
        time_to_expiry: float,
        volatility: float,
        rate: float,
        dividend_yield: float,
        n_steps: int,
    ) -> TrinomialParameters:
        _require_positive_volatility(volatility, "Cox-Ross-Rubinstein trinomial")
        dt = time_to_expiry / n_steps
        half_up = math.exp(volatility * math.sqrt(0.5 * dt))
        half_down = 1.0 / half_up
        half_growth = math.exp(0.5 * (rate - dividend_yield) * dt)
        pu = ((half_growth - half_down) / (half_up - half_down)) ** 2
        pd = ((half_up - half_growth) / (half_up - half_down)) ** 2
        up = half_up * half_up
        return TrinomialParameters(
            up=up,
            middle=1.0,
            down=1.0 / up,
            up_probability=pu,
            middle_probability=1.0 - pu - pd,
            down_probability=pd,
        )


@dataclass(frozen=True, slots=True)
class TrigeorgisTrinomialSpecification:
    """Log-space trinomial tree with ``dx = sigma sqrt(3 dt)``."""

    def get_trinomial_parameters(
        self,
        *,
        time_to_expiry: float,
        volatility: float,
        rate: float,
        dividend_yield: float,
        n_steps: int,
    ) -> TrinomialParameters:
        _require_positive_volatility(volatility, "Trigeorgis trinomial")
        dt = time_to_expiry / n_steps
        nu = rate - dividend_yield - 0.5 * volatility * volatility
        dx = volatility * math.sqrt(3.0 * dt)
        second = (volatility * volatility * dt + nu * nu * dt * dt) / (dx * dx)
        first = nu * dt / dx
        return TrinomialParameters(
            up=math.exp(dx),
            middle=1.0,
            down=math.exp(-dx),
            up_probability=0.5 * (second + first),
            middle_probability=1.0 - second,
            down_probability=0.5 * (second - first),
        )


@dataclass(frozen=True, slots=True)
class KamradRitchkenTrinomialSpecification:
    """Kamrad-Ritchken trinomial tree with stretch parameter ``lambda_``."""

    lambda_: float = math.sqrt(1.5)

    def __post_init__(self) -> None:
        if self.lambda_ < 1.0:
            raise InvalidParameterError("lambda_ must be >= 1")

    def get_trinomial_parameters(
        self,
        *,
        time_to_expiry: float,
        volatility: float,
        rate: float,
        dividend_yield: float,
        n_steps: int,
    ) -> TrinomialParameters:
        _require_positive_volatility(volatility, "Kamrad-Ritchken")
        dt = time_to_expiry / n_steps
        nu = rate - dividend_yield - 0.5 * volatility * volatility
        lam = self.lambda_
        dx = lam * volatility * math.sqrt(dt)
        base = 1.0 / (2.0 * lam * lam)
        tilt = nu * math.sqrt(dt) / (2.0 * lam * volatility)
        return TrinomialParameters(
            up=math.exp(dx),
            middle=1.0,
            down=math.exp(-dx),
            up_probability=base + tilt,
            middle_probability=1.0 - 1.0 / (lam * lam),
            down_probability=base - tilt,
        )
