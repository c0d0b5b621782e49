import math

import numpy as np
import pytest
from scipy.stats import norm

from numerical_pricing.exceptions import InvalidParameterError
from numerical_pricing.instruments.base import ExerciseStyle
from numerical_pricing.instruments.exotic import (
    AssetOrNothingOptionFunctionProvider,
    BarrierType,
    CappedPowerOptionFunctionProvider,
    CashOrNothingOptionFunctionProvider,
    DoubleKnockOutBarrierOptionFunctionProvider,
    KnockOutBarrierOptionFunctionProvider,
    LogOptionFunctionProvider,
)
from numerical_pricing.instruments.vanilla import BermudanVanillaOptionFunctionProvider
from numerical_pricing.models.lattice import (
    CoxRossRubinsteinLatticeSpecification,
    TrigeorgisLatticeSpecification,
)
from numerical_pricing.pricers.tree import binomial_price
from numerical_pricing.types import OptionType

CRR = CoxRossRubinsteinLatticeSpecification()
MARKET = dict(spot=100.0, time_to_expiry=1.0, volatility=0.2, rate=0.05)


def _price(function, spec=CRR, **overrides):
    m = {**MARKET, **overrides}
    return binomial_price(
        spec, function, m["spot"], m["time_to_expiry"], m["volatility"], m["rate"]
    )


# ----------------------------
# Barriers
# ----------------------------


def test_down_and_out_with_unreachable_barrier_is_vanilla(make_vanilla):
    barrier = KnockOutBarrierOptionFunctionProvider(
        strike=100.0,
        n_steps=200,
        kind=OptionType.CALL,
        barrier=1.0,
        barrier_type=BarrierType.DOWN_AND_OUT,
    )
    vanilla = make_vanilla(n_steps=200, kind=OptionType.CALL)
    assert _price(barrier) == pytest.approx(_price(vanilla), rel=1e-12)


def test_knocked_at_inception_pays_rebate():
    barrier = KnockOutBarrierOptionFunctionProvider(
        strike=100.0,
        n_steps=50,
        kind=OptionType.PUT,
        barrier=110.0,
        barrier_type=BarrierType.DOWN_AND_OUT,
        rebate=2.5,
    )
    assert _price(barrier) == pytest.approx(2.5)


@pytest.mark.parametrize("style", list(ExerciseStyle))
def test_up_and_out_call_is_cheaper_than_vanilla(make_vanilla, style):
    barrier = KnockOutBarrierOptionFunctionProvider(
        strike=100.0,
        n_steps=200,
        kind=OptionType.CALL,
        barrier=130.0,
        barrier_type=BarrierType.UP_AND_OUT,
        exercise_style=style,
    )
    vanilla = make_vanilla(
        n_steps=200, kind=OptionType.CALL, american=style == ExerciseStyle.AMERICAN
    )
    ko = _price(barrier)
    assert 0.0 < ko < _price(vanilla)


def test_down_and_out_call_close_to_continuous_formula():
    # Merton/Reiner-Rubinstein with the barrier shifted by 0.5826 sigma sqrt(dt)
    s, k, h, t, sigma, r = 100.0, 100.0, 90.0, 1.0, 0.2, 0.05
    n = 400
    shifted = h * math.exp(-0.5826 * sigma * math.sqrt(t / n))
    lam = (r + 0.5 * sigma * sigma) / (sigma * sigma)
    y = math.log(shifted * shifted / (s * k)) / (sigma * math.sqrt(t)) + lam * sigma * math.sqrt(t)
    d1 = (math.log(s / k) + (r + 0.5 * sigma * sigma) * t) / (sigma * math.sqrt(t))
    d2 = d1 - sigma * math.sqrt(t)
    vanilla = s * norm.cdf(d1) - k * math.exp(-r * t) * norm.cdf(d2)
    down_in = s * (shifted / s) ** (2 * lam) * norm.cdf(y) - k * math.exp(-r * t) * (
        shifted / s
    ) ** (2 * lam - 2) * norm.cdf(y - sigma * math.sqrt(t))
    ref = vanilla - down_in

    barrier = KnockOutBarrierOptionFunctionProvider(
        strike=k,
        n_steps=n,
        kind=OptionType.CALL,
        barrier=h,
        barrier_type=BarrierType.DOWN_AND_OUT,
    )
    assert _price(barrier) == pytest.approx(ref, rel=0.05)


def test_double_knock_out_is_below_each_single_barrier():
    kwargs = dict(strike=100.0, n_steps=200, kind=OptionType.PUT)
    double = DoubleKnockOutBarrierOptionFunctionProvider(
        lower_barrier=80.0, upper_barrier=120.0, **kwargs
    )
    down = KnockOutBarrierOptionFunctionProvider(
        barrier=80.0, barrier_type=BarrierType.DOWN_AND_OUT, **kwargs
    )
    up = KnockOutBarrierOptionFunctionProvider(
        barrier=120.0, barrier_type=BarrierType.UP_AND_OUT, **kwargs
    )
    p = _price(double)
    assert 0.0 < p <= min(_price(down), _price(up)) + 1e-12


def test_double_knock_out_needs_ordered_barriers():
    with pytest.raises(InvalidParameterError):
        DoubleKnockOutBarrierOptionFunctionProvider(
            strike=100.0,
            n_steps=10,
            kind=OptionType.CALL,
            lower_barrier=120.0,
            upper_barrier=80.0,
        )


# ----------------------------
# Digitals
# ----------------------------


def test_cash_or_nothing_call_plus_put_is_discounted_cash():
    kwargs = dict(strike=100.0, n_steps=201, cash=3.0)
    call = CashOrNothingOptionFunctionProvider(kind=OptionType.CALL, **kwargs)
    put = CashOrNothingOptionFunctionProvider(kind=OptionType.PUT, **kwargs)
    total = _price(call) + _price(put)
    assert total == pytest.approx(3.0 * math.exp(-0.05), rel=1e-12)


def test_asset_minus_cash_or_nothing_is_vanilla_call(make_vanilla):
    n = 150
    aon = AssetOrNothingOptionFunctionProvider(strike=95.0, n_steps=n, kind=OptionType.CALL)
    con = CashOrNothingOptionFunctionProvider(
        strike=95.0, n_steps=n, kind=OptionType.CALL, cash=95.0
    )
    vanilla = make_vanilla(K=95.0, n_steps=n, kind=OptionType.CALL)
    assert _price(aon) - _price(con) == pytest.approx(_price(vanilla), rel=1e-10)


def test_cash_or_nothing_close_to_black_scholes():
    n = 1001
    function = CashOrNothingOptionFunctionProvider(
        strike=105.0, n_steps=n, kind=OptionType.CALL
    )
    d2 = (math.log(100.0 / 105.0) + (0.05 - 0.02) * 1.0) / 0.2
    ref = math.exp(-0.05) * norm.cdf(d2)
    assert _price(function, spec=TrigeorgisLatticeSpecification()) == pytest.approx(
        ref, abs=1e-2
    )


# ----------------------------
# Power and log payoffs
# ----------------------------


def test_capped_power_with_unit_power_and_loose_cap_is_vanilla(make_vanilla):
    capped = CappedPowerOptionFunctionProvider(
        strike=100.0, n_steps=120, kind=OptionType.PUT, power=1.0, cap=1e6
    )
    assert _price(capped) == pytest.approx(_price(make_vanilla(n_steps=120)), rel=1e-12)


def test_capped_power_is_bounded_by_discounted_cap():
    capped = CappedPowerOptionFunctionProvider(
        strike=10000.0, n_steps=120, kind=OptionType.CALL, power=2.0, cap=50.0
    )
    p = _price(capped)
    assert 0.0 < p <= 50.0 * math.exp(-0.05) + 1e-12


def test_american_capped_power_pays_cap_when_deep_in_the_money():
    capped = CappedPowerOptionFunctionProvider(
        strike=100.0,
        n_steps=60,
        kind=OptionType.CALL,
        power=2.0,
        cap=20.0,
        exercise_style=ExerciseStyle.AMERICAN,
    )
    assert _price(capped) == pytest.approx(20.0)


def test_log_option_close_to_closed_form():
    s, k, t, sigma, r = 100.0, 95.0, 1.0, 0.25, 0.03
    mu = math.log(s / k) + (r - 0.5 * sigma * sigma) * t
    sd = sigma * math.sqrt(t)
    ref = math.exp(-r * t) * (sd * norm.pdf(mu / sd) + mu * norm.cdf(mu / sd))
    function = LogOptionFunctionProvider(strike=k, n_steps=500)
    price = binomial_price(TrigeorgisLatticeSpecification(), function, s, t, sigma, r)
    assert price == pytest.approx(ref, abs=1e-3)


def test_invalid_exotic_parameters_raise():
    with pytest.raises(InvalidParameterError):
        CappedPowerOptionFunctionProvider(
            strike=100.0, n_steps=10, kind=OptionType.CALL, power=0.0, cap=1.0
        )
    with pytest.raises(InvalidParameterError):
        KnockOutBarrierOptionFunctionProvider(
            strike=100.0,
            n_steps=10,
            kind=OptionType.CALL,
            barrier=90.0,
            barrier_type=BarrierType.DOWN_AND_OUT,
            rebate=-1.0,
        )


# ----------------------------
# Bermudan
# ----------------------------


def test_bermudan_bounds(make_vanilla):
    n = 100
    kwargs = dict(strike=110.0, n_steps=n, kind=OptionType.PUT)
    never = BermudanVanillaOptionFunctionProvider(exercise_steps=frozenset(), **kwargs)
    always = BermudanVanillaOptionFunctionProvider(
        exercise_steps=frozenset(range(n + 1)), **kwargs
    )
    quarterly = BermudanVanillaOptionFunctionProvider.from_times(
        time_to_expiry=1.0, exercise_times=[0.25, 0.5, 0.75], **kwargs
    )
    eu = make_vanilla(K=110.0, n_steps=n)
    am = make_vanilla(K=110.0, n_steps=n, american=True)

    assert _price(never) == pytest.approx(_price(eu), rel=1e-12)
    assert _price(always) == pytest.approx(_price(am), rel=1e-12)
    assert _price(eu) < _price(quarterly) < _price(am)


def test_bermudan_times_map_to_nearest_step():
    function = BermudanVanillaOptionFunctionProvider.from_times(
        strike=100.0,
        time_to_expiry=1.0,
        n_steps=10,
        kind=OptionType.CALL,
        exercise_times=[0.24, 0.5, 1.0],
    )
    assert function.exercise_steps == frozenset({2, 5, 10})


def test_bermudan_exercise_only_on_listed_steps():
    function = BermudanVanillaOptionFunctionProvider(
        strike=100.0, n_steps=4, kind=OptionType.PUT, exercise_steps=frozenset({2})
    )
    assets = np.array([80.0, 100.0, 120.0])
    continuation = np.array([5.0, 3.0, 1.0])
    np.testing.assert_array_equal(function.exercise(assets, continuation, 1), continuation)
    np.testing.assert_array_equal(
        function.exercise(assets, continuation, 2), [20.0, 3.0, 1.0]
    )


def test_bermudan_rejects_times_outside_life():
    with pytest.raises(InvalidParameterError):
        BermudanVanillaOptionFunctionProvider.from_times(
            strike=100.0,
            time_to_expiry=1.0,
            n_steps=10,
            kind=OptionType.CALL,
            exercise_times=[1.5],
        )
