from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence

from sqlalchemy import text
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import IntegrityError

from app.repos import CatalogItem, GrantResult, OwnerInventory
from craft_math.coins import ZERO, Coins, format_coins, parse
from craft_math.reagents import Reagent, ReagentUpdate, pack, reagent_value, total_value

logger = logging.getLogger(__name__)


class InventoryError(ValueError):
    """Raised when an inventory mutation cannot be applied as requested."""


def _to_int(value: object, *, default: int = 0) -> int:
    if value is None:
        return default
    return int(value)


class SqlInventory(OwnerInventory):
    """Owner purses, reagents and crafted items stored in SQL tables.

    Reagent leftovers are persisted as coin strings (``"3 gp, 2 sp"``).
    """

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    # Coins -----------------------------------------------------------------
    def get_coins(self, owner: str) -> Coins:
        sql = text("select copper from purses where owner_scope = :owner")
        with self._engine.connect() as conn:
            row = conn.execute(sql, {"owner": owner}).fetchone()
        return Coins(_to_int(row[0])) if row else ZERO

    def add_coins(self, owner: str, amount: Coins) -> None:
        if amount < ZERO:
            raise InventoryError("use remove_coins to take coins away")
        sql = text(
            """
            insert into purses (owner_scope, copper) values (:owner, :copper)
            on conflict (owner_scope) do update set copper = purses.copper + excluded.copper
            """
        )
        with self._engine.begin() as conn:
            conn.execute(sql, {"owner": owner, "copper": amount.copper})

    def remove_coins(self, owner: str, amount: Coins) -> None:
        if amount <= ZERO:
            return
        sql = text(
            """
            update purses set copper = copper - :copper
            where owner_scope = :owner and copper >= :copper
            """
        )
        with self._engine.begin() as conn:
            result = conn.execute(sql, {"owner": owner, "copper": amount.copper})
            if result.rowcount != 1:
                raise InventoryError(f"{owner} cannot afford {format_coins(amount)}")

    # Reagents --------------------------------------------------------------
    def get_reagents(self, owner: str) -> List[Reagent]:
        sql = text(
            """
            select reagent_id, name, level, quantity, leftovers from reagents
            where owner_scope = :owner
            order by reagent_id
            """
        )
        with self._engine.connect() as conn:
            rows = conn.execute(sql, {"owner": owner}).fetchall()
        return [
            Reagent(
                reagent_id=str(r_id),
                name=str(name),
                level=_to_int(level),
                quantity=_to_int(qty),
                leftovers=parse(leftovers),
            )
            for r_id, name, level, qty, leftovers in rows
        ]

    def apply_reagent_updates(self, owner: str, updates: Sequence[ReagentUpdate]) -> None:
        if not updates:
            return
        with self._engine.begin() as conn:
            for update in updates:
                self._write_reagent(conn, owner, update)

    def store_reagent_value(self, owner: str, reagent_id: str, name: str, level: int, value: Coins) -> Reagent:
        """Add ``value`` to a reagent, creating it if needed, and repack it."""

        existing = {r.reagent_id: r for r in self.get_reagents(owner)}.get(reagent_id)
        if existing is not None and existing.level != level:
            raise InventoryError(f"reagent {reagent_id} is level {existing.level}, not {level}")
        held = reagent_value(existing) if existing else ZERO
        if held + value < ZERO:
            raise InventoryError(f"reagent {reagent_id} holds only {format_coins(held)}")
        packed = pack(level, held + value)
        if existing is None:
            self._insert_reagent(owner, reagent_id, name, level, packed.quantity, packed.leftovers)
        else:
            update = ReagentUpdate(
                reagent_id,
                packed.quantity,
                packed.leftovers,
                previous_quantity=existing.quantity,
                previous_leftovers=existing.leftovers,
            )
            with self._engine.begin() as conn:
                self._write_reagent(conn, owner, update, name=name)
        return Reagent(reagent_id=reagent_id, level=level, quantity=packed.quantity, leftovers=packed.leftovers, name=name)

    def reagent_summary(self, owner: str) -> Dict[str, object]:
        reagents = self.get_reagents(owner)
        return {"reagents": reagents, "total_value": total_value(reagents)}

    # Crafted items ---------------------------------------------------------
    def grant_item(self, owner: str, item: CatalogItem, quantity: int, user_id: Optional[str] = None) -> GrantResult:
        if quantity <= 0:
            return GrantResult.FAILED
        with self._engine.begin() as conn:
            if user_id is not None and not self._owns(conn, owner, user_id):
                return GrantResult.PERMISSION_LACKING
            conn.execute(
                text(
                    """
                    insert into owned_items (owner_scope, item_id, quantity)
                    values (:owner, :item_id, :qty)
                    on conflict (owner_scope, item_id) do update
                    set quantity = owned_items.quantity + excluded.quantity
                    """
                ),
                {"owner": owner, "item_id": item.item_id, "qty": int(quantity)},
            )
        logger.info("granted %d x %s to %s", quantity, item.item_id, owner)
        return GrantResult.GRANTED

    def owned_quantity(self, owner: str, item_id: str) -> int:
        sql = text("select quantity from owned_items where owner_scope = :owner and item_id = :item_id")
        with self._engine.connect() as conn:
            row = conn.execute(sql, {"owner": owner, "item_id": item_id}).fetchone()
        return _to_int(row[0]) if row else 0

    # Internal helpers ------------------------------------------------------
    @staticmethod
    def _owns(conn: Connection, owner: str, user_id: str) -> bool:
        row = conn.execute(
            text("select 1 from owner_users where owner_scope = :owner and user_id = :user_id"),
            {"owner": owner, "user_id": user_id},
        ).fetchone()
        return row is not None

    def _insert_reagent(self, owner: str, reagent_id: str, name: str, level: int, quantity: int, leftovers: Coins) -> None:
        sql = text(
            """
            insert into reagents (reagent_id, owner_scope, name, level, quantity, leftovers)
            values (:reagent_id, :owner, :name, :level, :quantity, :leftovers)
            """
        )
        params = {
            "reagent_id": reagent_id,
            "owner": owner,
            "name": name,
            "level": level,
            "quantity": quantity,
            "leftovers": format_coins(leftovers),
        }
        try:
            with self._engine.begin() as conn:
                conn.execute(sql, params)
        except IntegrityError as exc:
            raise InventoryError(f"reagent {reagent_id} already exists") from exc

    @staticmethod
    def _write_reagent(conn: Connection, owner: str, update: ReagentUpdate, name: Optional[str] = None) -> None:
        """Apply ``update``; guarded by the previous state when the update carries one."""

        assignments = "quantity = :quantity, leftovers = :leftovers"
        where = "reagent_id = :reagent_id and owner_scope = :owner"
        params = {
            "quantity": update.quantity,
            "leftovers": format_coins(update.leftovers),
            "reagent_id": update.reagent_id,
            "owner": owner,
        }
        if name is not None:
            assignments += ", name = :name"
            params["name"] = name
        if update.previous_quantity is not None:
            where += " and quantity = :previous_quantity and leftovers = :previous_leftovers"
            params["previous_quantity"] = update.previous_quantity
            params["previous_leftovers"] = format_coins(update.previous_leftovers or ZERO)
        result = conn.execute(text(f"update reagents set {assignments} where {where}"), params)
        if result.rowcount != 1:
            raise InventoryError(f"reagent {update.reagent_id} of {owner} is missing or changed since it was read")


__all__ = ["InventoryError", "SqlInventory"]
