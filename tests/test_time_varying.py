import math

import numpy as np
import pytest

from numerical_pricing.exceptions import InvalidParameterError
from numerical_pricing.models.lattice import TrigeorgisLatticeSpecification
from numerical_pricing.pricers.tree import (
    binomial_greeks,
    binomial_greeks_time_varying,
    binomial_price,
    binomial_price_time_varying,
)
from numerical_pricing.types import OptionType

N = 60


@pytest.mark.parametrize("american", [False, True])
@pytest.mark.parametrize("kind", [OptionType.CALL, OptionType.PUT])
def test_constant_inputs_match_trigeorgis(make_vanilla, american, kind):
    function = make_vanilla(K=95.0, n_steps=N, kind=kind, american=american)
    varying = binomial_price_time_varying(
        function,
        100.0,
        1.5,
        np.full(N, 0.25),
        np.full(N, 0.04),
        np.full(N, 0.01),
    )
    constant = binomial_price(
        TrigeorgisLatticeSpecification(), function, 100.0, 1.5, 0.25, 0.04, 0.01
    )
    assert varying == pytest.approx(constant, rel=1e-9)


def test_constant_inputs_greeks_match_trigeorgis(make_vanilla):
    function = make_vanilla(n_steps=N, american=True)
    varying = binomial_greeks_time_varying(
        function, 100.0, 1.0, [0.2] * N, [0.05] * N, [0.0] * N
    )
    constant = binomial_greeks(
        TrigeorgisLatticeSpecification(), function, 100.0, 1.0, 0.2, 0.05, 0.0
    )
    for name, value in constant.to_dict().items():
        assert getattr(varying, name) == pytest.approx(value, rel=1e-8, abs=1e-10)


@pytest.mark.parametrize("time", [0.5, 1.2])
@pytest.mark.parametrize("strike", [95.0, 105.0, 115.0])
@pytest.mark.parametrize("kind", [OptionType.CALL, OptionType.PUT])
def test_smooth_term_structure_close_to_averaged_inputs(make_vanilla, time, strike, kind):
    steps = 401
    s = np.arange(steps) * time / steps
    rates = 0.01 + 0.001 * s
    vols = 0.1 + 0.05 * np.sin(s)
    divs = np.full(steps, 0.005)
    # time averages of the rate and of the variance
    rate_ref = 0.01 + 0.0005 * time
    vol_ref = math.sqrt(
        0.01
        + 0.5 * 0.05**2
        + 2.0 * 0.1 * 0.05 / time * (1.0 - math.cos(time))
        - 0.05**2 * 0.25 / time * math.sin(2.0 * time)
    )

    function = make_vanilla(K=strike, n_steps=steps, kind=kind, american=True)
    varying = binomial_greeks_time_varying(function, 105.0, time, vols, rates, divs)
    constant = binomial_greeks(
        TrigeorgisLatticeSpecification(), function, 105.0, time, vol_ref, rate_ref, 0.005
    )
    assert varying.price == pytest.approx(constant.price, rel=0.1)
    assert varying.delta == pytest.approx(
        constant.delta, abs=max(abs(constant.delta), 0.1) * 0.1
    )
    assert varying.gamma == pytest.approx(
        constant.gamma, abs=max(abs(constant.gamma), 0.1) * 0.1
    )


@pytest.mark.parametrize("length", [N - 1, N + 1])
def test_array_length_must_match_steps(make_vanilla, length):
    function = make_vanilla(n_steps=N)
    with pytest.raises(InvalidParameterError):
        binomial_price_time_varying(
            function,
            100.0,
            1.0,
            np.full(length, 0.2),
            np.full(N, 0.05),
            np.zeros(N),
        )


def test_negative_volatility_raises(make_vanilla):
    function = make_vanilla(n_steps=3)
    with pytest.raises(InvalidParameterError):
        binomial_price_time_varying(
            function, 100.0, 1.0, [0.2, -0.1, 0.2], [0.05] * 3, [0.0] * 3
        )


def test_greeks_need_two_steps(make_vanilla):
    with pytest.raises(InvalidParameterError):
        binomial_greeks_time_varying(make_vanilla(n_steps=1), 100.0, 1.0, [0.2], [0.05], [0.0])
