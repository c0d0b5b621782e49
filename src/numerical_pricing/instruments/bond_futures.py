"""Fixed coupon bonds and bond futures securities.

Times are year fractions from the valuation date. Amounts are per unit of
bond face value, so prices come out as a fraction of par.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass

from ..exceptions import InvalidParameterError


@dataclass(frozen=True, slots=True)
class CashFlow:
    time: float
    amount: float


@dataclass(frozen=True, slots=True)
class FixedCouponBond:
    """
    Fixed coupon bond settling at ``settlement_time``.

    Only cash flows paid strictly after settlement belong to the holder;
    ``accrued_interest`` is the accrued coupon at settlement.
    """

    issuer: str
    cash_flows: tuple[CashFlow, ...]
    settlement_time: float
    accrued_interest: float = 0.0

    def __post_init__(self) -> None:
        if not self.issuer:
            raise InvalidParameterError("issuer is required")
        if self.settlement_time < 0.0:
            raise InvalidParameterError("settlement_time must be >= 0")
        object.__setattr__(self, "cash_flows", tuple(self.cash_flows))

    def cash_flow_equivalent(self) -> tuple[CashFlow, ...]:
        """Cash flows after settlement, sorted, one per payment time."""
        acc: dict[float, float] = {}
        for cf in self.cash_flows:
            if cf.time > self.settlement_time:
                acc[cf.time] = acc.get(cf.time, 0.0) + cf.amount
        return tuple(CashFlow(t, a) for t, a in sorted(acc.items()))

    @classmethod
    def regular(
        cls,
        *,
        issuer: str,
        coupon_rate: float,
        maturity: float,
        settlement_time: float,
        frequency: int = 2,
        face: float = 1.0,
    ) -> FixedCouponBond:
        """Bullet bond with coupons every ``1/frequency`` years back from maturity."""
        if frequency < 1:
            raise InvalidParameterError("frequency must be >= 1")
        if maturity <= settlement_time:
            raise InvalidParameterError("maturity must be after settlement_time")
        period = 1.0 / frequency
        coupon = face * coupon_rate / frequency

        n_remaining = math.ceil((maturity - settlement_time) / period - 1e-12)
        times = [maturity - k * period for k in range(n_remaining)]
        times.reverse()
        previous = maturity - n_remaining * period

        flows = [CashFlow(t, coupon) for t in times]
        flows.append(CashFlow(maturity, face))
        accrued = coupon * (settlement_time - previous) / period
        return cls(
            issuer=issuer,
            cash_flows=tuple(flows),
            settlement_time=settlement_time,
            accrued_interest=accrued,
        )


@dataclass(frozen=True, slots=True)
class BondFuturesSecurity:
    """
    Bond futures contract with its delivery basket.

    ``delivery_basket`` holds the deliverable bonds settling at the last
    delivery time, with matching ``conversion_factors``.
    """

    trading_last_time: float
    notice_first_time: float
    notice_last_time: float
    delivery_first_time: float
    delivery_last_time: float
    delivery_basket: tuple[FixedCouponBond, ...]
    conversion_factors: tuple[float, ...]
    notional: float = 100_000.0
    currency: str = "USD"

    def __post_init__(self) -> None:
        basket = tuple(self.delivery_basket)
        factors = tuple(float(c) for c in self.conversion_factors)
        if len(basket) != len(factors):
            raise InvalidParameterError(
                "delivery_basket and conversion_factors must have the same length"
            )
        if any(c <= 0.0 for c in factors):
            raise InvalidParameterError("conversion factors must be positive")
        if not (
            0.0 <= self.trading_last_time
            and self.notice_first_time <= self.notice_last_time
            and self.delivery_first_time <= self.delivery_last_time
            and self.notice_last_time <= self.delivery_last_time
        ):
            raise InvalidParameterError("futures notice/delivery times are out of order")
        object.__setattr__(self, "delivery_basket", basket)
        object.__setattr__(self, "conversion_factors", factors)

    @property
    def n_bonds(self) -> int:
        return len(self.delivery_basket)

    @classmethod
    def from_basket(
        cls,
        *,
        expiry: float,
        delivery: float,
        basket: Sequence[FixedCouponBond],
        conversion_factors: Sequence[float],
        notional: float = 100_000.0,
        currency: str = "USD",
    ) -> BondFuturesSecurity:
        """Contract whose notice window collapses to ``expiry`` and delivery to ``delivery``."""
        return cls(
            trading_last_time=expiry,
            notice_first_time=expiry,
            notice_last_time=expiry,
            delivery_first_time=delivery,
            delivery_last_time=delivery,
            delivery_basket=tuple(basket),
            conversion_factors=tuple(conversion_factors),
            notional=notional,
            currency=currency,
        )
