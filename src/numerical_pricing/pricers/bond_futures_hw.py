"""Bond futures price and curve sensitivity in the Hull-White one-factor model.

At expiry the futures price is the expected CTD price under the futures
measure. Each deliverable bond's adjusted price is a function of one standard
normal variable ``x``:

    pv_i(x) = sum_j cfa_ij exp(-alpha_ij^2 / 2 - alpha_ij x) - e_i

so the expectation of ``min_i pv_i(X)`` splits into regions of ``x`` where a
single bond is cheapest. Each region integrates in closed form with normal
CDFs. The regions are found on a non-uniform grid and the boundaries are
refined with Ridder's method.

The curve sensitivity replays the forward pass and propagates ``d price`` back
through it by hand (reverse mode). The crossing points do not contribute to
the derivative: both bonds have the same price there.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass

import numpy as np
from scipy.stats import norm

from ..config import BondFuturesConfig
from ..exceptions import InvalidParameterError, NumericalFailureError
from ..instruments.bond_futures import BondFuturesSecurity
from ..market.curves import HullWhiteIssuerProvider
from ..market.sensitivity import MulticurveSensitivity
from ..models.hull_white import alpha, futures_convexity_factor
from ..numerics.grids import normal_integration_grid
from ..numerics.root_finding import bracket_root, ridder_method
from ..typing import FloatArray

logger = logging.getLogger(__name__)

__all__ = [
    "DEFAULT_NB_POINTS",
    "BondDifference",
    "IntegrationPartition",
    "ctd_regions_probability",
    "find_crossing",
    "integration_partition",
    "price",
    "price_curve_sensitivity",
]

DEFAULT_NB_POINTS = 81


def _adjusted_pv(cfa: FloatArray, alphas: FloatArray, x: FloatArray | float) -> FloatArray:
    # sum_j cfa_j exp(-alpha_j^2/2 - alpha_j x), vectorised over x
    x = np.asarray(x, dtype=float)
    expo = np.exp(-0.5 * alphas * alphas - np.multiply.outer(x, alphas))
    return expo @ cfa


@dataclass(frozen=True, slots=True, eq=False)
class BondDifference:
    """``pv_1(x) - pv_2(x)`` for two deliverable bonds."""

    cfa1: FloatArray
    alpha1: FloatArray
    e1: float
    cfa2: FloatArray
    alpha2: FloatArray
    e2: float

    def __call__(self, x: float) -> float:
        pv1 = float(_adjusted_pv(self.cfa1, self.alpha1, x)) - self.e1
        pv2 = float(_adjusted_pv(self.cfa2, self.alpha2, x)) - self.e2
        return pv1 - pv2


@dataclass(frozen=True, slots=True)
class IntegrationPartition:
    """
    CTD bond of each integration region, from ``-inf`` to ``+inf``.

    Region ``k`` spans ``(kappa[k-1], kappa[k])`` with the open ends at
    ``-inf`` and ``+inf``; ``len(kappa) == len(ctd) - 1``.
    """

    ctd: tuple[int, ...]
    kappa: tuple[float, ...]

    @property
    def n_intervals(self) -> int:
        return len(self.ctd)


@dataclass(frozen=True, slots=True, eq=False)
class _BondFigures:
    times: FloatArray
    amounts: FloatArray
    df: FloatArray
    alpha: FloatArray
    beta: FloatArray
    cfa: FloatArray
    e: float
    conversion_factor: float


@dataclass(frozen=True, slots=True, eq=False)
class _ForwardSweep:
    bonds: tuple[_BondFigures, ...]
    partition: IntegrationPartition
    delivery: float
    df_delivery: float
    curve_name: str


def find_crossing(
    difference: BondDifference,
    lo: float,
    hi: float,
    *,
    config: BondFuturesConfig | None = None,
) -> float:
    """Root of ``difference`` near ``[lo, hi]`` (bracket widened if needed)."""
    cfg = config or BondFuturesConfig()
    a, b = bracket_root(
        difference,
        lo,
        hi,
        grow=cfg.bracket_growth,
        max_steps=cfg.max_bracket_steps,
    )
    return ridder_method(difference, a, b, tol_x=cfg.root_accuracy).root


def _resolve_config(
    nb_points: int, config: BondFuturesConfig | None
) -> BondFuturesConfig:
    if config is not None:
        return config
    return BondFuturesConfig(nb_points=nb_points)


def _forward_sweep(
    futures: BondFuturesSecurity | None,
    data: HullWhiteIssuerProvider | None,
    config: BondFuturesConfig,
) -> _ForwardSweep:
    if futures is None:
        raise InvalidParameterError("futures is required")
    if data is None:
        raise InvalidParameterError("Hull-White issuer provider is required")
    if futures.n_bonds == 0:
        raise NumericalFailureError("delivery basket is empty")
    if futures.currency != data.currency:
        raise InvalidParameterError(
            f"futures currency {futures.currency} does not match data currency {data.currency}"
        )

    issuer = futures.delivery_basket[0].issuer
    parameters = data.parameters
    provider = data.issuer_provider
    expiry = futures.notice_last_time
    delivery = futures.delivery_last_time
    df_delivery = provider.discount_factor(issuer, delivery)

    x = normal_integration_grid(config.nb_points)
    pv = np.empty((config.nb_points, futures.n_bonds))
    bonds: list[_BondFigures] = []
    for i, (bond, cf) in enumerate(
        zip(futures.delivery_basket, futures.conversion_factors)
    ):
        flows = bond.cash_flow_equivalent()
        times = np.array([f.time for f in flows], dtype=float)
        amounts = np.array([f.amount for f in flows], dtype=float)
        df = np.array([provider.discount_factor(issuer, t) for t in times], dtype=float)
        alphas = np.array(
            [alpha(parameters, 0.0, expiry, delivery, t) for t in times], dtype=float
        )
        betas = np.array(
            [futures_convexity_factor(parameters, expiry, t, delivery) for t in times],
            dtype=float,
        )
        cfa = df / df_delivery * betas * amounts / cf
        e = bond.accrued_interest / cf
        pv[:, i] = _adjusted_pv(cfa, alphas, x) - e
        bonds.append(
            _BondFigures(
                times=times,
                amounts=amounts,
                df=df,
                alpha=alphas,
                beta=betas,
                cfa=cfa,
                e=e,
                conversion_factor=cf,
            )
        )

    # first minimum on ties
    ind_min = np.argmin(pv, axis=1)
    ctd = [int(ind_min[0])]
    kappa: list[float] = []
    for k in range(1, config.nb_points):
        current = int(ind_min[k])
        if current == ctd[-1]:
            continue
        prev_bond, next_bond = bonds[ctd[-1]], bonds[current]
        cross = BondDifference(
            cfa1=prev_bond.cfa,
            alpha1=prev_bond.alpha,
            e1=prev_bond.e,
            cfa2=next_bond.cfa,
            alpha2=next_bond.alpha,
            e2=next_bond.e,
        )
        kappa.append(find_crossing(cross, float(x[k - 1]), float(x[k]), config=config))
        ctd.append(current)

    if any(b <= a for a, b in zip(kappa, kappa[1:])):
        raise NumericalFailureError(
            f"CTD crossing points are not strictly increasing: {kappa}"
        )
    owners = Counter(ctd)
    repeated = sorted(i for i, n in owners.items() if n > 1)
    if repeated:
        logger.warning(
            "bonds %s are cheapest to deliver on non-adjacent regions; "
            "consider a denser grid",
            repeated,
        )
    partition = IntegrationPartition(ctd=tuple(ctd), kappa=tuple(kappa))
    logger.debug("CTD partition: ctd=%s kappa=%s", partition.ctd, partition.kappa)

    return _ForwardSweep(
        bonds=tuple(bonds),
        partition=partition,
        delivery=delivery,
        df_delivery=df_delivery,
        curve_name=provider.curve_name(issuer),
    )


def _region_weights(
    alphas: FloatArray | float, lower: float | None, upper: float | None
) -> FloatArray:
    # E[exp(-alpha^2/2 - alpha X) 1{lower < X < upper}] = Phi(upper+alpha) - Phi(lower+alpha)
    if lower is None:
        return norm.cdf(upper + alphas)
    if upper is None:
        return 1.0 - norm.cdf(lower + alphas)
    return norm.cdf(upper + alphas) - norm.cdf(lower + alphas)


def _region_bounds(
    partition: IntegrationPartition, region: int
) -> tuple[float | None, float | None]:
    lower = partition.kappa[region - 1] if region > 0 else None
    upper = partition.kappa[region] if region < partition.n_intervals - 1 else None
    return lower, upper


def integration_partition(
    futures: BondFuturesSecurity,
    data: HullWhiteIssuerProvider,
    nb_points: int = DEFAULT_NB_POINTS,
    *,
    config: BondFuturesConfig | None = None,
) -> IntegrationPartition:
    """CTD regions and crossing points used by :func:`price`."""
    return _forward_sweep(futures, data, _resolve_config(nb_points, config)).partition


def price(
    futures: BondFuturesSecurity,
    data: HullWhiteIssuerProvider,
    nb_points: int = DEFAULT_NB_POINTS,
    *,
    config: BondFuturesConfig | None = None,
) -> float:
    """
    Futures price (per unit of notional, i.e. as a fraction of par).

    Raises
    ------
    InvalidParameterError
        If ``futures`` or ``data`` is missing or the currencies differ.
    NumericalFailureError
        On an empty delivery basket or when a CTD crossing cannot be bracketed.
    """
    sweep = _forward_sweep(futures, data, _resolve_config(nb_points, config))
    partition = sweep.partition

    if partition.n_intervals == 1:
        bond = sweep.bonds[partition.ctd[0]]
        return float(bond.cfa.sum() - bond.e)

    total = 0.0
    for region, index in enumerate(partition.ctd):
        bond = sweep.bonds[index]
        lower, upper = _region_bounds(partition, region)
        total += float(bond.cfa @ _region_weights(bond.alpha, lower, upper))
        total -= bond.e * float(_region_weights(0.0, lower, upper))
    return total


def price_curve_sensitivity(
    futures: BondFuturesSecurity,
    data: HullWhiteIssuerProvider,
    nb_points: int = DEFAULT_NB_POINTS,
    *,
    config: BondFuturesConfig | None = None,
) -> MulticurveSensitivity:
    """
    Sensitivity of :func:`price` to the zero rates of the issuer curve.

    Returns one point per cash flow of every CTD bond plus one at the
    delivery time, all under the issuer curve name.
    """
    sweep = _forward_sweep(futures, data, _resolve_config(nb_points, config))
    partition = sweep.partition

    # === Backward sweep ===
    price_bar = 1.0
    cfa_bar = [np.zeros_like(b.cfa) for b in sweep.bonds]
    if partition.n_intervals == 1:
        cfa_bar[partition.ctd[0]] += price_bar
    else:
        for region, index in enumerate(partition.ctd):
            lower, upper = _region_bounds(partition, region)
            cfa_bar[index] += _region_weights(sweep.bonds[index].alpha, lower, upper) * price_bar

    points: list[tuple[float, float]] = []
    df_delivery_bar = 0.0
    for index in dict.fromkeys(partition.ctd):
        bond = sweep.bonds[index]
        bar = cfa_bar[index]
        df_bar = bond.beta / sweep.df_delivery * bond.amounts / bond.conversion_factor * bar
        points.extend(
            (float(t), float(-t * d * db)) for t, d, db in zip(bond.times, bond.df, df_bar)
        )
        df_delivery_bar += float(np.sum(-bond.cfa / sweep.df_delivery * bar))
    points.append(
        (sweep.delivery, -sweep.delivery * sweep.df_delivery * df_delivery_bar)
    )
    return MulticurveSensitivity.of_curve(sweep.curve_name, points)


def ctd_regions_probability(partition: IntegrationPartition) -> dict[int, float]:
    """Probability (standard normal measure) that each bond is cheapest to deliver."""
    out: dict[int, float] = {}
    for region, index in enumerate(partition.ctd):
        lower, upper = _region_bounds(partition, region)
        if lower is None and upper is None:
            w = 1.0
        else:
            w = float(_region_weights(0.0, lower, upper))
        out[index] = out.get(index, 0.0) + w
    return out
