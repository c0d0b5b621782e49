"""Discount curves, issuer providers and curve sensitivities."""

from .curves import (
    DiscountCurve,
    FlatDiscountCurve,
    HullWhiteIssuerProvider,
    InterpolatedZeroCurve,
    IssuerProvider,
    zero_curve,
)
from .sensitivity import MulticurveSensitivity

__all__ = [
    "DiscountCurve",
    "FlatDiscountCurve",
    "InterpolatedZeroCurve",
    "zero_curve",
    "IssuerProvider",
    "HullWhiteIssuerProvider",
    "MulticurveSensitivity",
]
