"""Reagent valuation, packing, and greedy consume-only funding."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Optional, Sequence

from .coins import ZERO, Coins, parse

MIN_REAGENT_LEVEL = 0
MAX_REAGENT_LEVEL = 20
LIGHT_PER_BULK = 10

# Unit (light bulk) value by source level, starting at level -1.
REAGENT_LEVELLED_VALUE: tuple[str, ...] = (
    "1 gp", "2 gp", "4 gp", "7 gp", "12 gp", "20 gp", "30 gp", "50 gp", "70 gp", "110 gp", "150 gp",
    "180 gp", "300 gp", "420 gp", "600 gp", "950 gp", "1300 gp", "1800 gp", "2500 gp", "5000 gp",
    "7500 gp", "10000 gp",
)


def unit_value(level: int) -> Coins:
    """Value packed into one light bulk of a reagent of ``level``."""

    if level < MIN_REAGENT_LEVEL or level > MAX_REAGENT_LEVEL:
        return ZERO
    return parse(REAGENT_LEVELLED_VALUE[level + 1])


@dataclass(frozen=True)
class Reagent:
    reagent_id: str
    level: int
    quantity: int
    leftovers: Coins = ZERO
    name: str = "Reagent"

    @property
    def bulk(self) -> int:
        return self.quantity // LIGHT_PER_BULK

    @property
    def light_bulk(self) -> int:
        return self.quantity % LIGHT_PER_BULK


@dataclass(frozen=True)
class PackedValue:
    quantity: int
    leftovers: Coins


@dataclass(frozen=True)
class ReagentUpdate:
    """New quantity and leftovers for a reagent.

    When ``previous_quantity`` is set, the write only applies if the stored
    row still holds ``previous_quantity`` and ``previous_leftovers``.
    ``consumed`` is the value the update takes out of the reagent.
    """

    reagent_id: str
    quantity: int
    leftovers: Coins
    previous_quantity: Optional[int] = field(default=None, compare=False)
    previous_leftovers: Optional[Coins] = field(default=None, compare=False)
    consumed: Coins = field(default=ZERO, compare=False)

    def reverted(self) -> "ReagentUpdate":
        """The update that puts the reagent back the way it was."""

        if self.previous_quantity is None or self.previous_leftovers is None:
            raise ValueError(f"update of {self.reagent_id} does not record the previous state")
        return ReagentUpdate(
            self.reagent_id,
            self.previous_quantity,
            self.previous_leftovers,
            previous_quantity=self.quantity,
            previous_leftovers=self.leftovers,
            consumed=ZERO - self.consumed,
        )


@dataclass(frozen=True)
class ReagentFunding:
    can_pay: bool
    updates: Sequence[ReagentUpdate] = field(default_factory=tuple)


def reagent_value(reagent: Reagent) -> Coins:
    return unit_value(reagent.level) * reagent.quantity + reagent.leftovers


def total_value(reagents: Iterable[Reagent]) -> Coins:
    out = ZERO
    for reagent in reagents:
        out = out + reagent_value(reagent)
    return out


def pack(level: int, value: Coins) -> PackedValue:
    """Re-express ``value`` as whole light-bulk units plus leftovers."""

    unit = unit_value(level)
    if unit.copper <= 0:
        return PackedValue(quantity=0, leftovers=value)
    quantity, rest = divmod(value.copper, unit.copper)
    return PackedValue(quantity=quantity, leftovers=Coins(rest))


def fund(reagents: Iterable[Reagent], cost: Coins, full_commitment: bool = True) -> ReagentFunding:
    """Consume reagents, cheapest level first, until ``cost`` is covered.

    With ``full_commitment`` the call either covers the whole cost or returns
    no updates. Without it, whatever could be consumed is returned as a
    successful partial funding and the caller settles the rest.
    """

    pool = tuple(reagents)
    if full_commitment and total_value(pool) < cost:
        return ReagentFunding(can_pay=False)

    remaining = cost
    updates: list[ReagentUpdate] = []
    for reagent in sorted(pool, key=lambda r: r.level):
        if remaining <= ZERO:
            break
        held = reagent_value(reagent)
        if held <= ZERO:
            continue
        taken = held if held < remaining else remaining
        packed = pack(reagent.level, held - taken)
        updates.append(
            ReagentUpdate(
                reagent.reagent_id,
                packed.quantity,
                packed.leftovers,
                previous_quantity=reagent.quantity,
                previous_leftovers=reagent.leftovers,
                consumed=taken,
            )
        )
        remaining = remaining - taken

    if remaining > ZERO and full_commitment:
        return ReagentFunding(can_pay=False)
    return ReagentFunding(can_pay=True, updates=tuple(updates))


__all__ = [
    "LIGHT_PER_BULK",
    "MAX_REAGENT_LEVEL",
    "MIN_REAGENT_LEVEL",
    "PackedValue",
    "REAGENT_LEVELLED_VALUE",
    "Reagent",
    "ReagentFunding",
    "ReagentUpdate",
    "fund",
    "pack",
    "reagent_value",
    "total_value",
    "unit_value",
]
