"""Pricing many independent positions.

Every pricing function in this package is pure, so positions can be priced
concurrently without locks. Parallelism is across calls only; a single
backward induction or backward sweep always runs on one thread.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, TypeVar

from ..config import BatchConfig
from ..exceptions import UnsupportedTypeError
from ..instruments.base import OptionFunctionProvider
from ..instruments.bond_futures import BondFuturesSecurity
from ..instruments.dividends import DividendFunctionProvider
from ..market.curves import HullWhiteIssuerProvider, IssuerProvider
from ..models.lattice import LatticeSpecification, TrinomialLatticeSpecification
from . import bond_futures_discounting, bond_futures_hw
from .tree import binomial_price
from .trinomial import trinomial_price

logger = logging.getLogger(__name__)

T = TypeVar("T")

__all__ = [
    "OptionPosition",
    "BondFuturesPosition",
    "price_many",
    "price_position",
    "price_positions",
]

_NO_DEFAULT = object()


@dataclass(frozen=True, slots=True)
class OptionPosition:
    lattice: LatticeSpecification | TrinomialLatticeSpecification
    function: OptionFunctionProvider
    spot: float
    time_to_expiry: float
    volatility: float
    rate: float
    dividend: float | DividendFunctionProvider = 0.0
    quantity: float = 1.0


@dataclass(frozen=True, slots=True)
class BondFuturesPosition:
    """``quantity`` contracts; the value is ``price * notional * quantity``."""

    futures: BondFuturesSecurity
    data: HullWhiteIssuerProvider | IssuerProvider
    quantity: float = 1.0


def price_many(
    tasks: Iterable[Callable[[], T]], config: BatchConfig | None = None
) -> list[T]:
    """
    Run independent zero-argument pricing calls, results in input order.

    ``max_workers == 1`` runs serially in the calling thread. The first
    exception raised by a task propagates.
    """
    cfg = config or BatchConfig()
    tasks = list(tasks)
    if cfg.max_workers == 1 or len(tasks) <= 1:
        return [task() for task in tasks]
    logger.debug("pricing %d tasks on a thread pool (max_workers=%s)", len(tasks), cfg.max_workers)
    with ThreadPoolExecutor(max_workers=cfg.max_workers) as ex:
        return list(ex.map(lambda task: task(), tasks))


def _price_option(position: OptionPosition) -> float:
    if isinstance(position.lattice, TrinomialLatticeSpecification):
        value = trinomial_price(
            position.lattice,
            position.function,
            position.spot,
            position.time_to_expiry,
            position.volatility,
            position.rate,
            position.dividend,
        )
    elif isinstance(position.lattice, LatticeSpecification):
        value = binomial_price(
            position.lattice,
            position.function,
            position.spot,
            position.time_to_expiry,
            position.volatility,
            position.rate,
            position.dividend,
        )
    else:
        raise UnsupportedTypeError(
            f"unsupported lattice specification {type(position.lattice).__name__}"
        )
    return value * position.quantity


def _price_bond_futures(position: BondFuturesPosition) -> float:
    if isinstance(position.data, HullWhiteIssuerProvider):
        unit = bond_futures_hw.price(position.futures, position.data)
    elif isinstance(position.data, IssuerProvider):
        unit = bond_futures_discounting.price(position.futures, position.data)
    else:
        raise UnsupportedTypeError(
            f"unsupported market data {type(position.data).__name__} for bond futures"
        )
    return unit * position.futures.notional * position.quantity


def price_position(position: Any, *, default: Any = _NO_DEFAULT) -> float:
    """
    Value of one position.

    Raises
    ------
    UnsupportedTypeError
        If the position type (or its market data) is not supported and no
        ``default`` was given. With ``default`` the default is returned instead.
    """
    try:
        if isinstance(position, OptionPosition):
            return _price_option(position)
        if isinstance(position, BondFuturesPosition):
            return _price_bond_futures(position)
        raise UnsupportedTypeError(f"cannot price {type(position).__name__}")
    except UnsupportedTypeError:
        if default is _NO_DEFAULT:
            raise
        logger.debug("returning default for unsupported position %r", type(position).__name__)
        return default


def price_positions(
    positions: Sequence[Any], config: BatchConfig | None = None
) -> list[float]:
    return price_many(
        [lambda p=p: price_position(p) for p in positions], config
    )
