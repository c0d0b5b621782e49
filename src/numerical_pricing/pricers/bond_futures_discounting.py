"""Bond futures figures from discounting, without convexity adjustment.

The futures price is the minimum over the basket of the forward clean price
at delivery divided by the conversion factor.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

import numpy as np

from ..exceptions import InvalidParameterError, NumericalFailureError
from ..instruments.bond_futures import BondFuturesSecurity, FixedCouponBond
from ..market.curves import IssuerProvider
from ..market.sensitivity import MulticurveSensitivity
from ..typing import FloatArray

logger = logging.getLogger(__name__)

__all__ = [
    "dirty_price_from_curves",
    "dirty_price_curve_sensitivity",
    "price",
    "price_curve_sensitivity",
    "net_basis_all_bonds",
    "net_basis_cheapest",
    "price_from_net_basis",
    "gross_basis_from_prices",
]


def dirty_price_from_curves(bond: FixedCouponBond, provider: IssuerProvider) -> float:
    """Dirty price at the bond settlement time, from the issuer curve."""
    settle_df = provider.discount_factor(bond.issuer, bond.settlement_time)
    pv = sum(
        cf.amount * provider.discount_factor(bond.issuer, cf.time)
        for cf in bond.cash_flow_equivalent()
    )
    return pv / settle_df


def dirty_price_curve_sensitivity(
    bond: FixedCouponBond, provider: IssuerProvider
) -> MulticurveSensitivity:
    settle = bond.settlement_time
    settle_df = provider.discount_factor(bond.issuer, settle)
    points: list[tuple[float, float]] = []
    pv = 0.0
    for cf in bond.cash_flow_equivalent():
        df = provider.discount_factor(bond.issuer, cf.time)
        pv += cf.amount * df
        points.append((cf.time, -cf.time * df * cf.amount / settle_df))
    # d(1 / df(settle)) / d r(settle) = settle / df(settle)
    points.append((settle, settle * pv / settle_df))
    return MulticurveSensitivity.of_curve(provider.curve_name(bond.issuer), points)


def _check_basket(futures: BondFuturesSecurity | None, provider: IssuerProvider | None) -> BondFuturesSecurity:
    if futures is None:
        raise InvalidParameterError("futures is required")
    if provider is None:
        raise InvalidParameterError("issuer provider is required")
    if futures.n_bonds == 0:
        raise NumericalFailureError("delivery basket is empty")
    return futures


def _forward_clean_prices(
    futures: BondFuturesSecurity, provider: IssuerProvider
) -> FloatArray:
    return np.array(
        [
            dirty_price_from_curves(bond, provider) - bond.accrued_interest
            for bond in futures.delivery_basket
        ]
    )


def _cheapest(futures: BondFuturesSecurity, provider: IssuerProvider) -> tuple[int, FloatArray]:
    clean = _forward_clean_prices(futures, provider)
    adjusted = clean / np.asarray(futures.conversion_factors)
    ctd = int(np.argmin(adjusted))
    logger.debug("discounting CTD index %d, adjusted prices %s", ctd, adjusted)
    return ctd, clean


def price(futures: BondFuturesSecurity, provider: IssuerProvider) -> float:
    futures = _check_basket(futures, provider)
    ctd, clean = _cheapest(futures, provider)
    return float(clean[ctd] / futures.conversion_factors[ctd])


def price_curve_sensitivity(
    futures: BondFuturesSecurity, provider: IssuerProvider
) -> MulticurveSensitivity:
    """Sensitivity of :func:`price`: the CTD dirty price sensitivity over its conversion factor."""
    futures = _check_basket(futures, provider)
    ctd, _ = _cheapest(futures, provider)
    sensi = dirty_price_curve_sensitivity(futures.delivery_basket[ctd], provider)
    return sensi.multiplied_by(1.0 / futures.conversion_factors[ctd])


def net_basis_all_bonds(
    futures: BondFuturesSecurity, provider: IssuerProvider, futures_price: float
) -> FloatArray:
    """Forward dirty price minus the invoice amount ``F * CF + AI`` for each bond."""
    futures = _check_basket(futures, provider)
    return np.array(
        [
            dirty_price_from_curves(bond, provider)
            - (futures_price * cf + bond.accrued_interest)
            for bond, cf in zip(futures.delivery_basket, futures.conversion_factors)
        ]
    )


def net_basis_cheapest(
    futures: BondFuturesSecurity, provider: IssuerProvider, futures_price: float
) -> float:
    return float(np.min(net_basis_all_bonds(futures, provider, futures_price)))


def price_from_net_basis(
    futures: BondFuturesSecurity, provider: IssuerProvider, net_basis: float
) -> float:
    """Futures price at which the CTD has the given net basis."""
    futures = _check_basket(futures, provider)
    ctd, clean = _cheapest(futures, provider)
    return float((clean[ctd] - net_basis) / futures.conversion_factors[ctd])


def gross_basis_from_prices(
    futures: BondFuturesSecurity, clean_prices: Sequence[float], futures_price: float
) -> FloatArray:
    """``clean_price - F * CF`` for each bond of the basket."""
    if futures is None:
        raise InvalidParameterError("futures is required")
    prices = np.asarray(clean_prices, dtype=float)
    if prices.shape != (futures.n_bonds,):
        raise InvalidParameterError(
            f"need one clean price per basket bond ({futures.n_bonds}), got {prices.shape}"
        )
    return prices - futures_price * np.asarray(futures.conversion_factors)
