"""numerical_pricing.instruments

What is being priced: option function providers (payoff plus exercise
policy), dividend schedules, and bonds / bond futures.

Instruments know nothing about lattices or models; the engines in
``pricers`` consume them through small protocols.
"""

from .base import ExerciseStyle, OptionFunctionProvider
from .bond_futures import BondFuturesSecurity, CashFlow, FixedCouponBond
from .dividends import (
    CashDividendFunctionProvider,
    DividendFunctionProvider,
    ProportionalDividendFunctionProvider,
)
from .exotic import (
    AssetOrNothingOptionFunctionProvider,
    BarrierType,
    CappedPowerOptionFunctionProvider,
    CashOrNothingOptionFunctionProvider,
    DoubleKnockOutBarrierOptionFunctionProvider,
    KnockOutBarrierOptionFunctionProvider,
    LogOptionFunctionProvider,
)
from .vanilla import (
    AmericanVanillaOptionFunctionProvider,
    BermudanVanillaOptionFunctionProvider,
    EuropeanVanillaOptionFunctionProvider,
)

__all__ = [
    "ExerciseStyle",
    "OptionFunctionProvider",
    "EuropeanVanillaOptionFunctionProvider",
    "AmericanVanillaOptionFunctionProvider",
    "BermudanVanillaOptionFunctionProvider",
    "BarrierType",
    "KnockOutBarrierOptionFunctionProvider",
    "DoubleKnockOutBarrierOptionFunctionProvider",
    "CashOrNothingOptionFunctionProvider",
    "AssetOrNothingOptionFunctionProvider",
    "CappedPowerOptionFunctionProvider",
    "LogOptionFunctionProvider",
    "DividendFunctionProvider",
    "CashDividendFunctionProvider",
    "ProportionalDividendFunctionProvider",
    "CashFlow",
    "FixedCouponBond",
    "BondFuturesSecurity",
]
