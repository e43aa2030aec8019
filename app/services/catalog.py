from __future__ import annotations

from typing import Mapping, Optional

from sqlalchemy import text
from sqlalchemy.engine import Engine

from app.repos import CatalogItem, ItemCatalog
from craft_math.coins import parse


class SqlItemCatalog(ItemCatalog):
    """Item lookup over the `items` table."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    def get_item(self, item_id: str) -> Optional[CatalogItem]:
        sql = text("select item_id, name, img, price, price_per, level from items where item_id = :id")
        with self._engine.connect() as conn:
            row = conn.execute(sql, {"id": item_id}).fetchone()
        if not row:
            return None
        return CatalogItem(
            item_id=str(row[0]),
            name=str(row[1]),
            img=str(row[2] or ""),
            price=parse(row[3]),
            price_per=int(row[4] or 1),
            level=int(row[5] or 0),
        )

    def upsert_item(self, item: Mapping[str, object]) -> None:
        sql = text(
            """
            insert into items (item_id, name, img, price, price_per, level)
            values (:item_id, :name, :img, :price, :price_per, :level)
            on conflict (item_id) do update set
                name = excluded.name,
                img = excluded.img,
                price = excluded.price,
                price_per = excluded.price_per,
                level = excluded.level
            """
        )
        params = {
            "item_id": str(item["item_id"]),
            "name": str(item["name"]),
            "img": str(item.get("img") or ""),
            "price": str(item.get("price") or "0 gp"),
            "price_per": int(item.get("price_per") or 1),
            "level": int(item.get("level") or 0),
        }
        with self._engine.begin() as conn:
            conn.execute(sql, params)


__all__ = ["SqlItemCatalog"]
