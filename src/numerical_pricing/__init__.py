"""
numerical_pricing

Lattice option pricing and Hull-White bond futures pricing.

The main entry points are re-exported at the top level, so you can write,
for example:

    from numerical_pricing import binomial_price, LeisenReimerLatticeSpecification
"""

# Re-export pricing entrypoints (nice public names)
from .config import BatchConfig, BondFuturesConfig
from .exceptions import InvalidParameterError, NumericalFailureError, UnsupportedTypeError
from .instruments.base import ExerciseStyle, OptionFunctionProvider
from .instruments.dividends import (
    CashDividendFunctionProvider,
    DividendFunctionProvider,
    ProportionalDividendFunctionProvider,
)
from .instruments.vanilla import (
    AmericanVanillaOptionFunctionProvider,
    BermudanVanillaOptionFunctionProvider,
    EuropeanVanillaOptionFunctionProvider,
)
from .models.lattice import (
    CoxRossRubinsteinLatticeSpecification,
    JabbourKraminYoungLatticeSpecification,
    JarrowRuddLatticeSpecification,
    LatticeSpecification,
    LeisenReimerLatticeSpecification,
    TianLatticeSpecification,
    TimeVaryingLatticeSpecification,
    TrigeorgisLatticeSpecification,
)
from .pricers.batch import price_many, price_position
from .pricers.tree import (
    LatticeTree,
    binomial_greeks,
    binomial_greeks_time_varying,
    binomial_price,
    binomial_price_time_varying,
)
from .pricers.trinomial import trinomial_greeks, trinomial_price
from .types import GreekResult, LatticeParameters, OptionType, TrinomialParameters

__all__ = [
    # Types
    "OptionType",
    "ExerciseStyle",
    "LatticeParameters",
    "TrinomialParameters",
    "GreekResult",
    "LatticeTree",
    # Config / errors
    "BondFuturesConfig",
    "BatchConfig",
    "InvalidParameterError",
    "NumericalFailureError",
    "UnsupportedTypeError",
    # Lattice specifications
    "LatticeSpecification",
    "CoxRossRubinsteinLatticeSpecification",
    "JarrowRuddLatticeSpecification",
    "TrigeorgisLatticeSpecification",
    "TianLatticeSpecification",
    "JabbourKraminYoungLatticeSpecification",
    "LeisenReimerLatticeSpecification",
    "TimeVaryingLatticeSpecification",
    # Providers
    "OptionFunctionProvider",
    "EuropeanVanillaOptionFunctionProvider",
    "AmericanVanillaOptionFunctionProvider",
    "BermudanVanillaOptionFunctionProvider",
    "DividendFunctionProvider",
    "CashDividendFunctionProvider",
    "ProportionalDividendFunctionProvider",
    # Pricers
    "binomial_price",
    "binomial_greeks",
    "binomial_price_time_varying",
    "binomial_greeks_time_varying",
    "trinomial_price",
    "trinomial_greeks",
    "price_many",
    "price_position",
]
