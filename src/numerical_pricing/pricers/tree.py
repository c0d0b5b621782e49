from __future__ import annotations

import logging
import math
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Literal, overload

import numpy as np

from ..exceptions import InvalidParameterError
from ..instruments.base import OptionFunctionProvider, validate_provider
from ..instruments.dividends import DividendFunctionProvider
from ..models.lattice import LatticeSpecification, TimeVaryingLatticeSpecification
from ..types import GreekResult, LatticeParameters
from ..typing import FloatArray

logger = logging.getLogger(__name__)

__all__ = [
    "LatticeTree",
    "binomial_price",
    "binomial_greeks",
    "binomial_price_time_varying",
    "binomial_greeks_time_varying",
]

# ----------------------------
# Tree structures
# ----------------------------


@dataclass(slots=True)
class LatticeTree:
    """Asset prices and option values of one pricing call.

    ``asset_prices[step]`` and ``option_values[step]`` hold the nodes of a
    step, lowest asset price first. Built only on request and owned by the
    caller; the engines never reuse it.
    """

    asset_prices: list[FloatArray] = field(default_factory=list)
    option_values: list[FloatArray] = field(default_factory=list)

    @property
    def n_steps(self) -> int:
        return len(self.option_values) - 1

    @property
    def price(self) -> float:
        return float(self.option_values[0][0])

    def node(self, step: int, index: int) -> tuple[float, float]:
        return (
            float(self.asset_prices[step][index]),
            float(self.option_values[step][index]),
        )


@dataclass(slots=True)
class _Sweep:
    price: float
    # step -> (asset prices, option values), kept for steps 1 and 2 only
    early: dict[int, tuple[FloatArray, FloatArray]]
    tree: LatticeTree | None


def _binomial_layer(spot: float, up: float, down: float, step: int) -> FloatArray:
    j = np.arange(step + 1)
    return spot * up**j * down ** (step - j)


def _validate_market(
    function: OptionFunctionProvider | None,
    spot: float,
    time_to_expiry: float,
) -> OptionFunctionProvider:
    if function is None:
        raise InvalidParameterError("option function provider is required")
    validate_provider(function.strike, function.n_steps)
    if spot <= 0.0:
        raise InvalidParameterError(f"spot must be positive, got {spot}")
    if time_to_expiry <= 0.0:
        raise InvalidParameterError(
            f"time_to_expiry must be positive, got {time_to_expiry}"
        )
    return function


def _sweep(
    function: OptionFunctionProvider,
    *,
    tree_spot: float,
    up: float,
    down: float,
    up_probabilities: FloatArray,
    discounts: FloatArray,
    asset_at: Callable[[FloatArray, int], FloatArray],
    keep_tree: bool,
) -> _Sweep:
    """Backward induction on a recombining binomial tree.

    ``up_probabilities[i]`` and ``discounts[i]`` apply between steps ``i`` and
    ``i + 1``.
    """
    n = function.n_steps
    tree = LatticeTree() if keep_tree else None
    early: dict[int, tuple[FloatArray, FloatArray]] = {}

    assets = asset_at(_binomial_layer(tree_spot, up, down, n), n)
    values = function.payoff(assets)
    if n <= 2:
        early[n] = (assets, values)
    if tree is not None:
        tree.asset_prices.append(assets)
        tree.option_values.append(values)

    for step in range(n - 1, -1, -1):
        p = up_probabilities[step]
        values = discounts[step] * (p * values[1:] + (1.0 - p) * values[:-1])
        assets = asset_at(_binomial_layer(tree_spot, up, down, step), step)
        values = function.exercise(assets, values, step)
        if step <= 2:
            early[step] = (assets, values)
        if tree is not None:
            tree.asset_prices.append(assets)
            tree.option_values.append(values)

    if tree is not None:
        tree.asset_prices.reverse()
        tree.option_values.reverse()
    return _Sweep(price=float(values[0]), early=early, tree=tree)


def _greeks_from_sweep(sweep: _Sweep, two_step_time: float) -> GreekResult:
    """Finite-difference Greeks from the nodes of steps 1 and 2.

    The middle node of step 2 sits at ``spot * u * d``, which is only the
    spot when ``u * d == 1``. Theta removes that displacement to second order
    with the delta and gamma of the same tree, so it measures time decay at
    constant spot for every scheme.
    """
    spot = float(sweep.early[0][0][0])
    s1, v1 = sweep.early[1]
    s2, v2 = sweep.early[2]
    delta = (v1[1] - v1[0]) / (s1[1] - s1[0])
    gamma = (
        2.0
        * ((v2[2] - v2[1]) / (s2[2] - s2[1]) - (v2[1] - v2[0]) / (s2[1] - s2[0]))
        / (s2[2] - s2[0])
    )
    ds = s2[1] - spot
    theta = (v2[1] - delta * ds - 0.5 * gamma * ds * ds - sweep.price) / two_step_time
    return GreekResult(
        price=sweep.price, delta=float(delta), gamma=float(gamma), theta=float(theta)
    )


def _identity(prices: FloatArray, step: int) -> FloatArray:
    return prices


def _dividend_inputs(
    dividend: float | DividendFunctionProvider,
    spot: float,
    time_to_expiry: float,
    rate: float,
    dt: float,
) -> tuple[float, float, Callable[[FloatArray, int], FloatArray]]:
    """Tree spot, continuous yield and node-to-asset map for a dividend input."""
    if isinstance(dividend, DividendFunctionProvider):
        dividend.check_times(time_to_expiry)

        def asset_at(prices: FloatArray, step: int) -> FloatArray:
            return dividend.asset_prices(prices, step, dt, rate)

        return dividend.spot_modifier(spot, rate), 0.0, asset_at
    return spot, float(dividend), _identity


def _constant_sweep(
    lattice: LatticeSpecification,
    function: OptionFunctionProvider | None,
    spot: float,
    time_to_expiry: float,
    volatility: float,
    rate: float,
    dividend: float | DividendFunctionProvider,
    *,
    keep_tree: bool,
) -> tuple[_Sweep, float]:
    if lattice is None:
        raise InvalidParameterError("lattice specification is required")
    function = _validate_market(function, spot, time_to_expiry)
    if volatility < 0.0:
        raise InvalidParameterError(f"volatility must be >= 0, got {volatility}")

    n = function.n_steps
    dt = time_to_expiry / n
    tree_spot, yield_, asset_at = _dividend_inputs(
        dividend, spot, time_to_expiry, rate, dt
    )

    params: LatticeParameters = lattice.get_parameters(
        spot=tree_spot,
        strike=function.strike,
        time_to_expiry=time_to_expiry,
        volatility=volatility,
        rate=rate,
        dividend_yield=yield_,
        n_steps=n,
    )
    logger.debug(
        "%s: n=%d u=%.8g d=%.8g p=%.8g",
        type(lattice).__name__,
        n,
        params.up,
        params.down,
        params.up_probability,
    )
    sweep = _sweep(
        function,
        tree_spot=tree_spot,
        up=params.up,
        down=params.down,
        up_probabilities=np.full(n, params.up_probability),
        discounts=np.full(n, math.exp(-rate * dt)),
        asset_at=asset_at,
        keep_tree=keep_tree,
    )
    return sweep, dt


# ----------------------------
# Pricing engines (with overloads)
# ----------------------------


@overload
def binomial_price(
    lattice: LatticeSpecification,
    function: OptionFunctionProvider,
    spot: float,
    time_to_expiry: float,
    volatility: float,
    rate: float,
    dividend: float | DividendFunctionProvider = 0.0,
    *,
    return_tree: Literal[False] = False,
) -> float: ...


@overload
def binomial_price(
    lattice: LatticeSpecification,
    function: OptionFunctionProvider,
    spot: float,
    time_to_expiry: float,
    volatility: float,
    rate: float,
    dividend: float | DividendFunctionProvider = 0.0,
    *,
    return_tree: Literal[True],
) -> LatticeTree: ...


def binomial_price(
    lattice: LatticeSpecification,
    function: OptionFunctionProvider,
    spot: float,
    time_to_expiry: float,
    volatility: float,
    rate: float,
    dividend: float | DividendFunctionProvider = 0.0,
    *,
    return_tree: bool = False,
) -> float | LatticeTree:
    """
    Option price by backward induction on a recombining binomial tree.

    Parameters
    ----------
    lattice
        Scheme producing the up/down factors and probability.
    function
        Payoff and exercise policy; its ``n_steps`` sizes the tree.
    spot, time_to_expiry, volatility, rate
        Market inputs (continuous compounding).
    dividend
        Either a continuous dividend yield or a discrete dividend schedule.
    return_tree
        Return the full :class:`LatticeTree` instead of the root value.

    Raises
    ------
    InvalidParameterError
        On non-positive spot/strike/maturity, negative volatility, fewer than
        one step, or lattice probabilities outside ``[0, 1]``.
    """
    sweep, _ = _constant_sweep(
        lattice,
        function,
        spot,
        time_to_expiry,
        volatility,
        rate,
        dividend,
        keep_tree=return_tree,
    )
    if return_tree:
        assert sweep.tree is not None
        return sweep.tree
    return sweep.price


def binomial_greeks(
    lattice: LatticeSpecification,
    function: OptionFunctionProvider,
    spot: float,
    time_to_expiry: float,
    volatility: float,
    rate: float,
    dividend: float | DividendFunctionProvider = 0.0,
) -> GreekResult:
    """Price, delta, gamma and theta from the first two steps of the tree."""
    if function is not None and function.n_steps < 2:
        raise InvalidParameterError("Greeks need at least 2 lattice steps")
    sweep, dt = _constant_sweep(
        lattice,
        function,
        spot,
        time_to_expiry,
        volatility,
        rate,
        dividend,
        keep_tree=False,
    )
    return _greeks_from_sweep(sweep, 2.0 * dt)


# ----------------------------
# Time-varying parameters
# ----------------------------


def _time_varying_sweep(
    function: OptionFunctionProvider | None,
    spot: float,
    time_to_expiry: float,
    volatility: Sequence[float],
    rate: Sequence[float],
    dividend: Sequence[float],
    lattice: TimeVaryingLatticeSpecification,
    *,
    keep_tree: bool,
) -> tuple[_Sweep, FloatArray]:
    function = _validate_market(function, spot, time_to_expiry)
    n = function.n_steps
    vol = np.asarray(volatility, dtype=float)
    rates = np.asarray(rate, dtype=float)
    divs = np.asarray(dividend, dtype=float)
    for name, arr in (("volatility", vol), ("rate", rates), ("dividend", divs)):
        if arr.shape != (n,):
            raise InvalidParameterError(
                f"{name} must have one entry per step ({n}), got shape {arr.shape}"
            )
    if np.any(vol < 0.0):
        raise InvalidParameterError("volatility must be >= 0 at every step")

    nu = lattice.drifts(vol, rates, divs)
    dx = lattice.space_step(time_to_expiry, vol, nu)
    dts = lattice.time_steps(dx, vol, nu)
    probs = lattice.probabilities(dx, dts, nu)
    logger.debug(
        "time-varying lattice: n=%d dx=%.8g sum(dt)=%.8g", n, dx, float(dts.sum())
    )

    sweep = _sweep(
        function,
        tree_spot=spot,
        up=math.exp(dx),
        down=math.exp(-dx),
        up_probabilities=probs,
        discounts=np.exp(-rates * dts),
        asset_at=_identity,
        keep_tree=keep_tree,
    )
    return sweep, dts


def binomial_price_time_varying(
    function: OptionFunctionProvider,
    spot: float,
    time_to_expiry: float,
    volatility: Sequence[float],
    rate: Sequence[float],
    dividend: Sequence[float],
    *,
    lattice: TimeVaryingLatticeSpecification | None = None,
) -> float:
    """Binomial price with one volatility, rate and dividend yield per step."""
    sweep, _ = _time_varying_sweep(
        function,
        spot,
        time_to_expiry,
        volatility,
        rate,
        dividend,
        lattice or TimeVaryingLatticeSpecification(),
        keep_tree=False,
    )
    return sweep.price


def binomial_greeks_time_varying(
    function: OptionFunctionProvider,
    spot: float,
    time_to_expiry: float,
    volatility: Sequence[float],
    rate: Sequence[float],
    dividend: Sequence[float],
    *,
    lattice: TimeVaryingLatticeSpecification | None = None,
) -> GreekResult:
    if function is not None and function.n_steps < 2:
        raise InvalidParameterError("Greeks need at least 2 lattice steps")
    sweep, dts = _time_varying_sweep(
        function,
        spot,
        time_to_expiry,
        volatility,
        rate,
        dividend,
        lattice or TimeVaryingLatticeSpecification(),
        keep_tree=False,
    )
    return _greeks_from_sweep(sweep, float(dts[0] + dts[1]))
