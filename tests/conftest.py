"""Pytest helpers for the numerical_pricing library."""

from __future__ import annotations

import math

import pytest
from scipy.stats import norm

from numerical_pricing.instruments.bond_futures import BondFuturesSecurity, FixedCouponBond
from numerical_pricing.instruments.vanilla import (
    AmericanVanillaOptionFunctionProvider,
    EuropeanVanillaOptionFunctionProvider,
)
from numerical_pricing.market.curves import HullWhiteIssuerProvider, IssuerProvider, zero_curve
from numerical_pricing.models.hull_white import HullWhiteOneFactorPiecewiseConstantParameters
from numerical_pricing.types import OptionType

ISSUER = "US GOVT"
EXPIRY = 0.25
DELIVERY = 0.27


@pytest.fixture
def make_vanilla():
    """Factory fixture for vanilla option function providers."""

    def _make(
        *,
        K: float = 100.0,
        n_steps: int = 100,
        kind: OptionType = OptionType.PUT,
        american: bool = False,
    ):
        cls = (
            AmericanVanillaOptionFunctionProvider
            if american
            else EuropeanVanillaOptionFunctionProvider
        )
        return cls(strike=K, n_steps=n_steps, kind=kind)

    return _make


@pytest.fixture
def bs_price():
    """Black-Scholes price with a continuous dividend yield."""

    def _price(*, S, K, T, r, sigma, q=0.0, kind=OptionType.CALL) -> float:
        d1 = (math.log(S / K) + (r - q + 0.5 * sigma * sigma) * T) / (sigma * math.sqrt(T))
        d2 = d1 - sigma * math.sqrt(T)
        if kind == OptionType.CALL:
            return S * math.exp(-q * T) * norm.cdf(d1) - K * math.exp(-r * T) * norm.cdf(d2)
        return K * math.exp(-r * T) * norm.cdf(-d2) - S * math.exp(-q * T) * norm.cdf(-d1)

    return _price


@pytest.fixture
def issuer_provider() -> IssuerProvider:
    curve = zero_curve(
        "US GOVT curve",
        [0.25, 1.0, 2.0, 5.0, 10.0],
        [0.010, 0.012, 0.015, 0.020, 0.025],
    )
    return IssuerProvider(curves={ISSUER: curve})


@pytest.fixture
def make_hw_data(issuer_provider):
    """Factory fixture for Hull-White issuer providers."""

    def _make(
        *, volatility=(0.01, 0.011, 0.012), breaks=(0.5, 1.0), mean_reversion=0.01
    ) -> HullWhiteIssuerProvider:
        parameters = HullWhiteOneFactorPiecewiseConstantParameters(
            mean_reversion=mean_reversion,
            volatility=tuple(volatility),
            volatility_time=tuple(breaks),
        )
        return HullWhiteIssuerProvider(
            issuer_provider=issuer_provider, parameters=parameters
        )

    return _make


@pytest.fixture
def basket() -> list[FixedCouponBond]:
    """Deliverable bonds of a 5-year note contract, settling at delivery."""
    coupons = [0.01375, 0.02125, 0.0200, 0.02125, 0.0225, 0.0200, 0.0175]
    maturities = [4.45, 4.53, 4.62, 4.70, 4.78, 4.87, 4.95]
    return [
        FixedCouponBond.regular(
            issuer=ISSUER,
            coupon_rate=c,
            maturity=m,
            settlement_time=DELIVERY,
        )
        for c, m in zip(coupons, maturities)
    ]


@pytest.fixture
def make_futures():
    """Factory fixture for a bond futures contract on a basket."""

    def _make(bonds, conversion_factors) -> BondFuturesSecurity:
        return BondFuturesSecurity.from_basket(
            expiry=EXPIRY,
            delivery=DELIVERY,
            basket=bonds,
            conversion_factors=conversion_factors,
        )

    return _make


@pytest.fixture
def conversion_factors() -> list[float]:
    return [0.8317, 0.8565, 0.8493, 0.8516, 0.8540, 0.8417, 0.8292]
