from __future__ import annotations

import logging
import math
from typing import Literal, overload

import numpy as np

from ..exceptions import InvalidParameterError
from ..instruments.base import OptionFunctionProvider, validate_provider
from ..instruments.dividends import DividendFunctionProvider
from ..models.lattice import TrinomialLatticeSpecification
from ..types import GreekResult, TrinomialParameters
from ..typing import FloatArray
from .tree import LatticeTree, _dividend_inputs

logger = logging.getLogger(__name__)

__all__ = ["trinomial_price", "trinomial_greeks"]


def _trinomial_layer(spot: float, params: TrinomialParameters, step: int) -> FloatArray:
    # node k (k = -step..step) sits at spot * middle**step * (up/middle)**k
    k = np.arange(-step, step + 1)
    return spot * params.middle**step * (params.up / params.middle) ** k


def _sweep(
    lattice: TrinomialLatticeSpecification,
    function: OptionFunctionProvider,
    spot: float,
    time_to_expiry: float,
    volatility: float,
    rate: float,
    dividend: float | DividendFunctionProvider,
    *,
    keep_tree: bool,
) -> tuple[float, dict[int, tuple[FloatArray, FloatArray]], LatticeTree | None, float]:
    if lattice is None:
        raise InvalidParameterError("lattice specification is required")
    if function is None:
        raise InvalidParameterError("option function provider is required")
    validate_provider(function.strike, function.n_steps)
    if spot <= 0.0:
        raise InvalidParameterError(f"spot must be positive, got {spot}")
    if time_to_expiry <= 0.0:
        raise InvalidParameterError(
            f"time_to_expiry must be positive, got {time_to_expiry}"
        )
    if volatility < 0.0:
        raise InvalidParameterError(f"volatility must be >= 0, got {volatility}")

    n = function.n_steps
    dt = time_to_expiry / n
    tree_spot, yield_, asset_at = _dividend_inputs(
        dividend, spot, time_to_expiry, rate, dt
    )
    params = lattice.get_trinomial_parameters(
        time_to_expiry=time_to_expiry,
        volatility=volatility,
        rate=rate,
        dividend_yield=yield_,
        n_steps=n,
    )
    logger.debug(
        "%s: n=%d u=%.8g pu=%.8g pm=%.8g pd=%.8g",
        type(lattice).__name__,
        n,
        params.up,
        params.up_probability,
        params.middle_probability,
        params.down_probability,
    )
    disc = math.exp(-rate * dt)
    pu, pm, pd = (
        params.up_probability,
        params.middle_probability,
        params.down_probability,
    )

    tree = LatticeTree() if keep_tree else None
    early: dict[int, tuple[FloatArray, FloatArray]] = {}

    assets = asset_at(_trinomial_layer(tree_spot, params, n), n)
    values = function.payoff(assets)
    if n == 1:
        early[1] = (assets, values)
    if tree is not None:
        tree.asset_prices.append(assets)
        tree.option_values.append(values)

    for step in range(n - 1, -1, -1):
        values = disc * (pu * values[2:] + pm * values[1:-1] + pd * values[:-2])
        assets = asset_at(_trinomial_layer(tree_spot, params, step), step)
        values = function.exercise(assets, values, step)
        if step <= 1:
            early[step] = (assets, values)
        if tree is not None:
            tree.asset_prices.append(assets)
            tree.option_values.append(values)

    if tree is not None:
        tree.asset_prices.reverse()
        tree.option_values.reverse()
    return float(values[0]), early, tree, dt


@overload
def trinomial_price(
    lattice: TrinomialLatticeSpecification,
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
def trinomial_price(
    lattice: TrinomialLatticeSpecification,
    function: OptionFunctionProvider,
    spot: float,
    time_to_expiry: float,
    volatility: float,
    rate: float,
    dividend: float | DividendFunctionProvider = 0.0,
    *,
    return_tree: Literal[True],
) -> LatticeTree: ...


def trinomial_price(
    lattice: TrinomialLatticeSpecification,
    function: OptionFunctionProvider,
    spot: float,
    time_to_expiry: float,
    volatility: float,
    rate: float,
    dividend: float | DividendFunctionProvider = 0.0,
    *,
    return_tree: bool = False,
) -> float | LatticeTree:
    """Option price on a recombining trinomial tree.

    Step ``i`` has ``2 i + 1`` nodes. ``dividend`` is either a continuous
    yield or a discrete dividend schedule, handled as in the binomial engine.
    """
    price, _, tree, _ = _sweep(
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
        assert tree is not None
        return tree
    return price


def trinomial_greeks(
    lattice: TrinomialLatticeSpecification,
    function: OptionFunctionProvider,
    spot: float,
    time_to_expiry: float,
    volatility: float,
    rate: float,
    dividend: float | DividendFunctionProvider = 0.0,
) -> GreekResult:
    """Price, delta, gamma and theta read off the three nodes of the first step."""
    price, early, _, dt = _sweep(
        lattice,
        function,
        spot,
        time_to_expiry,
        volatility,
        rate,
        dividend,
        keep_tree=False,
    )
    s1, v1 = early[1]
    delta = (v1[2] - v1[0]) / (s1[2] - s1[0])
    gamma = (
        2.0
        * ((v1[2] - v1[1]) / (s1[2] - s1[1]) - (v1[1] - v1[0]) / (s1[1] - s1[0]))
        / (s1[2] - s1[0])
    )
    # the middle node drifts off the spot when unpaid cash dividends accrue
    ds = s1[1] - float(early[0][0][0])
    theta = (v1[1] - delta * ds - 0.5 * gamma * ds * ds - price) / dt
    return GreekResult(
        price=price, delta=float(delta), gamma=float(gamma), theta=float(theta)
    )
