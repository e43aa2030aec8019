"""Payment resolution across coins and reagents.

``resolve`` only computes what the caller must apply; it never touches a
purse or an inventory. A declined result carries no currency and no reagent
updates, so callers can bail out without rolling anything back.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, Iterable, Sequence

from .coins import ZERO, Coins, difference
from .reagents import Reagent, ReagentUpdate, fund, total_value


class PaymentStrategy(str, Enum):
    CURRENCY_ONLY = "currency-only"
    PREFER_CURRENCY = "prefer-currency"
    PREFER_REAGENT = "prefer-reagent"
    REAGENT_ONLY = "reagent-only"
    FREE = "free"


DEFAULT_STRATEGY = PaymentStrategy.CURRENCY_ONLY


@dataclass(frozen=True)
class PaymentResult:
    can_pay: bool
    remove_currency: Coins = ZERO
    reagent_updates: Sequence[ReagentUpdate] = field(default_factory=tuple)


DECLINED = PaymentResult(can_pay=False)


def _currency_only(available: Coins, reagents: Sequence[Reagent], cost: Coins) -> PaymentResult:
    if difference(cost, available) > ZERO:
        return DECLINED
    return PaymentResult(can_pay=True, remove_currency=cost)


def _prefer_currency(available: Coins, reagents: Sequence[Reagent], cost: Coins) -> PaymentResult:
    shortfall = difference(cost, available)
    if shortfall <= ZERO:
        return PaymentResult(can_pay=True, remove_currency=cost)
    funding = fund(reagents, shortfall, full_commitment=True)
    if not funding.can_pay:
        return DECLINED
    return PaymentResult(can_pay=True, remove_currency=available, reagent_updates=tuple(funding.updates))


def _prefer_reagent(available: Coins, reagents: Sequence[Reagent], cost: Coins) -> PaymentResult:
    snapshot_value = total_value(reagents)
    if snapshot_value >= cost:
        funding = fund(reagents, cost, full_commitment=True)
        return PaymentResult(can_pay=True, reagent_updates=tuple(funding.updates))

    # Partial funding drains the same snapshot the remainder is computed from.
    partial = fund(reagents, cost, full_commitment=False)
    coins_needed = max(cost - snapshot_value, ZERO)
    if difference(coins_needed, available) > ZERO:
        return DECLINED
    return PaymentResult(can_pay=True, remove_currency=coins_needed, reagent_updates=tuple(partial.updates))


def _reagent_only(available: Coins, reagents: Sequence[Reagent], cost: Coins) -> PaymentResult:
    funding = fund(reagents, cost, full_commitment=True)
    if not funding.can_pay:
        return DECLINED
    return PaymentResult(can_pay=True, reagent_updates=tuple(funding.updates))


def _free(available: Coins, reagents: Sequence[Reagent], cost: Coins) -> PaymentResult:
    return PaymentResult(can_pay=True)


Handler = Callable[[Coins, Sequence[Reagent], Coins], PaymentResult]

_HANDLERS: Dict[PaymentStrategy, Handler] = {
    PaymentStrategy.CURRENCY_ONLY: _currency_only,
    PaymentStrategy.PREFER_CURRENCY: _prefer_currency,
    PaymentStrategy.PREFER_REAGENT: _prefer_reagent,
    PaymentStrategy.REAGENT_ONLY: _reagent_only,
    PaymentStrategy.FREE: _free,
}

_missing = set(PaymentStrategy) - set(_HANDLERS)
if _missing:
    raise RuntimeError(f"payment strategies without a handler: {sorted(s.value for s in _missing)}")


def parse_strategy(raw: "PaymentStrategy | str") -> PaymentStrategy:
    """Return the strategy for a persisted tag; unknown tags raise ValueError."""

    return PaymentStrategy(raw)


def resolve(
    strategy: "PaymentStrategy | str",
    available: Coins,
    reagents: Iterable[Reagent],
    cost: Coins,
) -> PaymentResult:
    """Decide how ``cost`` is covered under ``strategy``."""

    handler = _HANDLERS[parse_strategy(strategy)]
    if cost < ZERO:
        raise ValueError(f"cost must not be negative, got {cost.copper} cp")
    # One snapshot of the reagents feeds every valuation in the handler.
    return handler(available, tuple(reagents), cost)


__all__ = [
    "DECLINED",
    "DEFAULT_STRATEGY",
    "PaymentResult",
    "PaymentStrategy",
    "parse_strategy",
    "resolve",
]
