"""Stateless crafting-economy core for FORGELEDGER."""

from .coins import ZERO, Coins, difference, format_coins, from_price, parse
from .payment import DEFAULT_STRATEGY, PaymentResult, PaymentStrategy, parse_strategy, resolve
from .reagents import (
    REAGENT_LEVELLED_VALUE,
    PackedValue,
    Reagent,
    ReagentFunding,
    ReagentUpdate,
    fund,
    pack,
    reagent_value,
    total_value,
    unit_value,
)

__all__ = [
    "ZERO",
    "Coins",
    "difference",
    "format_coins",
    "from_price",
    "parse",
    "DEFAULT_STRATEGY",
    "PaymentResult",
    "PaymentStrategy",
    "parse_strategy",
    "resolve",
    "REAGENT_LEVELLED_VALUE",
    "PackedValue",
    "Reagent",
    "ReagentFunding",
    "ReagentUpdate",
    "fund",
    "pack",
    "reagent_value",
    "total_value",
    "unit_value",
]
