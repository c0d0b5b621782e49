import math

import pytest

from numerical_pricing.exceptions import InvalidParameterError
from numerical_pricing.models.hull_white import (
    VOLATILITY_TIME_MAX,
    HullWhiteOneFactorPiecewiseConstantParameters,
    alpha,
    futures_convexity_factor,
)

A = 0.05
SIGMA = 0.01


def constant(sigma=SIGMA, a=A):
    return HullWhiteOneFactorPiecewiseConstantParameters(mean_reversion=a, volatility=(sigma,))


def alpha_closed_form(start, end, numeraire, maturity, sigma=SIGMA, a=A):
    factor1 = math.exp(-a * numeraire) - math.exp(-a * maturity)
    factor2 = sigma * sigma * (math.exp(2 * a * end) - math.exp(2 * a * start))
    return factor1 * math.sqrt(factor2 / (2 * a**3))


def convexity_closed_form(t0, t1, t2, sigma=SIGMA, a=A):
    factor1 = math.exp(-a * t1) - math.exp(-a * t2)
    factor2 = (
        sigma
        * sigma
        * (math.exp(a * t0) - 1.0)
        * (2.0 - math.exp(-a * (t2 - t0)) - math.exp(-a * t2))
    )
    return math.exp(factor1 / (2 * a**3) * factor2)


def test_parameters_time_grid():
    p = HullWhiteOneFactorPiecewiseConstantParameters(
        mean_reversion=0.01, volatility=(0.01, 0.012), volatility_time=(2.0,)
    )
    assert p.time_grid == (0.0, 2.0, VOLATILITY_TIME_MAX)


@pytest.mark.parametrize(
    "kwargs",
    [
        dict(mean_reversion=0.0, volatility=(0.01,)),
        dict(mean_reversion=0.01, volatility=()),
        dict(mean_reversion=0.01, volatility=(-0.01,)),
        dict(mean_reversion=0.01, volatility=(0.01, 0.01), volatility_time=()),
        dict(mean_reversion=0.01, volatility=(0.01, 0.01, 0.01), volatility_time=(2.0, 1.0)),
        dict(mean_reversion=0.01, volatility=(0.01, 0.01), volatility_time=(0.0,)),
    ],
)
def test_invalid_parameters_raise(kwargs):
    with pytest.raises(InvalidParameterError):
        HullWhiteOneFactorPiecewiseConstantParameters(**kwargs)


@pytest.mark.parametrize("start, end", [(0.0, 0.25), (0.0, 3.0), (0.5, 1.5)])
def test_alpha_constant_volatility(start, end):
    got = alpha(constant(), start, end, 1.0, 5.0)
    assert got == pytest.approx(alpha_closed_form(start, end, 1.0, 5.0), rel=1e-12)


def test_alpha_piecewise_with_equal_buckets_is_constant():
    split = HullWhiteOneFactorPiecewiseConstantParameters(
        mean_reversion=A, volatility=(SIGMA, SIGMA, SIGMA), volatility_time=(0.5, 1.0)
    )
    for end in (0.25, 0.75, 2.0):
        assert alpha(split, 0.0, end, 0.3, 4.0) == pytest.approx(
            alpha(constant(), 0.0, end, 0.3, 4.0), rel=1e-12
        )


def test_alpha_adds_variance_over_buckets():
    split = HullWhiteOneFactorPiecewiseConstantParameters(
        mean_reversion=A, volatility=(0.01, 0.02), volatility_time=(0.5,)
    )
    first = alpha_closed_form(0.0, 0.5, 1.0, 5.0, sigma=0.01)
    second = alpha_closed_form(0.5, 1.2, 1.0, 5.0, sigma=0.02)
    got = alpha(split, 0.0, 1.2, 1.0, 5.0)
    assert got == pytest.approx(math.sqrt(first**2 + second**2), rel=1e-12)


def test_alpha_sign_and_zero_volatility():
    # positive when the bond matures after the numeraire
    assert alpha(constant(), 0.0, 1.0, 1.0, 5.0) > 0.0
    assert alpha(constant(), 0.0, 1.0, 1.0, 1.0) == 0.0
    assert alpha(constant(sigma=0.0), 0.0, 1.0, 1.0, 5.0) == 0.0


@pytest.mark.parametrize("t0, t1, t2", [(0.25, 3.0, 0.27), (1.0, 10.0, 1.1), (0.25, 0.27, 0.27)])
def test_convexity_factor_constant_volatility(t0, t1, t2):
    got = futures_convexity_factor(constant(), t0, t1, t2)
    assert got == pytest.approx(convexity_closed_form(t0, t1, t2), rel=1e-12)


def test_convexity_factor_is_below_one_for_long_bonds():
    assert futures_convexity_factor(constant(), 0.25, 5.0, 0.27) < 1.0
    assert futures_convexity_factor(constant(), 0.25, 0.27, 0.27) == 1.0
    assert futures_convexity_factor(constant(sigma=0.0), 0.25, 5.0, 0.27) == 1.0


def test_convexity_factor_piecewise_with_equal_buckets_is_constant():
    split = HullWhiteOneFactorPiecewiseConstantParameters(
        mean_reversion=A, volatility=(SIGMA, SIGMA), volatility_time=(0.1,)
    )
    # expiry on a bucket boundary and strictly inside the last bucket
    for t0 in (0.1, 0.25):
        assert futures_convexity_factor(split, t0, 5.0, 0.27) == pytest.approx(
            futures_convexity_factor(constant(), t0, 5.0, 0.27), rel=1e-12
        )
