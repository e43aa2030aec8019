"""Collaborator interfaces consumed by the project ledger (testable via fakes).

Concrete implementations live in app/store.py, app/services/* and
app/providers/*.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Literal, Optional, Protocol, Sequence

from pydantic import BaseModel, Field

from craft_math.coins import Coins, from_price
from craft_math.reagents import Reagent, ReagentUpdate


NoticeLevel = Literal["info", "warn", "error"]


class Project(BaseModel):
    """Persisted record of value accumulated toward a batch of an item."""

    id: str
    item_id: str
    batch_size: int = Field(default=1, ge=1)
    progress_in_copper: int = Field(default=0, ge=0)

    @property
    def progress(self) -> Coins:
        return Coins(self.progress_in_copper)


@dataclass(frozen=True)
class CatalogItem:
    item_id: str
    name: str
    img: str
    price: Coins
    price_per: int = 1
    level: int = 0

    def batch_cost(self, batch_size: int) -> Coins:
        return from_price(self.price, batch_size, self.price_per)


class GrantResult(str, Enum):
    GRANTED = "granted"
    FAILED = "failed"
    PERMISSION_LACKING = "permission_lacking"


class CatalogUnavailable(RuntimeError):
    """Raised by an item catalog that cannot answer right now."""


class ItemCatalog(Protocol):
    def get_item(self, item_id: str) -> Optional[CatalogItem]: ...


class OwnerInventory(Protocol):
    def get_coins(self, owner: str) -> Coins: ...
    def add_coins(self, owner: str, amount: Coins) -> None: ...
    def remove_coins(self, owner: str, amount: Coins) -> None: ...
    def get_reagents(self, owner: str) -> Sequence[Reagent]: ...
    def apply_reagent_updates(self, owner: str, updates: Sequence[ReagentUpdate]) -> None: ...
    def grant_item(self, owner: str, item: CatalogItem, quantity: int, user_id: Optional[str] = None) -> GrantResult: ...


class ProjectStore(Protocol):
    def get_projects(self, owner: str) -> list[Project]: ...
    def add_project(self, owner: str, project: Project) -> None: ...
    def replace_project(self, owner: str, project: Project) -> bool: ...
    def remove_project(self, owner: str, project_id: str) -> bool: ...
    def get_preferred_pay_method(self, owner: str) -> Optional[str]: ...
    def set_preferred_pay_method(self, owner: str, method: str) -> None: ...


class AnnouncementSink(Protocol):
    def announce(self, content: str, speaker: str) -> None: ...
    def notify(self, level: NoticeLevel, message: str, owner: Optional[str] = None) -> None: ...


__all__ = [
    "AnnouncementSink",
    "CatalogItem",
    "CatalogUnavailable",
    "GrantResult",
    "ItemCatalog",
    "NoticeLevel",
    "OwnerInventory",
    "Project",
    "ProjectStore",
]
