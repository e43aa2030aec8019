"""Integer copper arithmetic and coin string (de)serialisation."""

from __future__ import annotations

import re
from dataclasses import dataclass
from math import ceil

CP_PER_SP = 10
CP_PER_GP = 100
CP_PER_PP = 1_000

DENOMINATIONS = {"pp": CP_PER_PP, "gp": CP_PER_GP, "sp": CP_PER_SP, "cp": 1}

_TOKEN = re.compile(r"(\d+)\s*(pp|gp|sp|cp)\b", re.IGNORECASE)
_SEPARATORS = re.compile(r"[\s,]+")


@dataclass(frozen=True, order=True)
class Coins:
    """A money amount held as copper pieces.

    Negative values only appear as differences; persisted amounts are >= 0.
    """

    copper: int = 0

    def __add__(self, other: "Coins") -> "Coins":
        return Coins(self.copper + other.copper)

    def __sub__(self, other: "Coins") -> "Coins":
        return Coins(self.copper - other.copper)

    def __mul__(self, factor: int) -> "Coins":
        return Coins(self.copper * int(factor))

    __rmul__ = __mul__

    def __bool__(self) -> bool:
        return self.copper != 0

    def __str__(self) -> str:
        return format_coins(self)


ZERO = Coins(0)


def add(a: Coins, b: Coins) -> Coins:
    return a + b


def subtract(a: Coins, b: Coins) -> Coins:
    """Signed ``a - b``; positive when ``a`` exceeds ``b``."""

    return a - b


def scale(a: Coins, factor: int) -> Coins:
    return a * factor


def difference(cost: Coins, available: Coins) -> Coins:
    """Shortfall of ``available`` against ``cost``; <= 0 means affordable."""

    return cost - available


def total(amounts) -> Coins:
    out = ZERO
    for amount in amounts:
        out = out + amount
    return out


def parse(raw: str | None) -> Coins:
    """Parse ``"1 pp, 2 gp 3sp, 4 cp"`` style strings.

    Anything unparseable degrades to zero instead of raising.
    """

    if not raw or not isinstance(raw, str):
        return ZERO
    text = raw.strip()
    sign = 1
    if text.startswith("-"):
        sign = -1
        text = text[1:]
    matches = list(_TOKEN.finditer(text))
    if not matches:
        return ZERO
    # Reject trailing garbage such as "5 gp and a goat".
    leftover = _SEPARATORS.sub("", _TOKEN.sub("", text))
    if leftover:
        return ZERO
    copper = sum(int(m.group(1)) * DENOMINATIONS[m.group(2).lower()] for m in matches)
    return Coins(sign * copper)


def format_coins(amount: Coins) -> str:
    """Normalise into gp/sp/cp, omitting zero denominations."""

    copper = amount.copper
    if copper == 0:
        return "0 gp"
    prefix = "-" if copper < 0 else ""
    copper = abs(copper)
    gp, rest = divmod(copper, CP_PER_GP)
    sp, cp = divmod(rest, CP_PER_SP)
    parts = [f"{value} {name}" for value, name in ((gp, "gp"), (sp, "sp"), (cp, "cp")) if value]
    return prefix + ", ".join(parts)


def normalise(copper: int) -> str:
    return format_coins(Coins(int(copper)))


def from_price(price: Coins, quantity: int, per: int = 1) -> Coins:
    """Cost of ``quantity`` units of an item priced ``price`` per ``per`` units."""

    per = max(1, int(per or 1))
    return price * ceil(int(quantity) / per)


def coerce(value: "Coins | str | int | None") -> Coins:
    """Accept a Coins, a coin string, or a raw copper integer."""

    if isinstance(value, Coins):
        return value
    if isinstance(value, bool) or value is None:
        return ZERO
    if isinstance(value, int):
        return Coins(value)
    return parse(value)


__all__ = [
    "CP_PER_GP",
    "CP_PER_PP",
    "CP_PER_SP",
    "Coins",
    "ZERO",
    "add",
    "coerce",
    "difference",
    "format_coins",
    "from_price",
    "normalise",
    "parse",
    "scale",
    "subtract",
    "total",
]
