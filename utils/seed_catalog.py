"""Seed the item catalog (and optionally purses) from a YAML or JSON file.

Usage examples:
  python utils/seed_catalog.py data/items.yaml
  python utils/seed_catalog.py data/items.json --dry-run

File layout:
  items:
    - {item_id: healing-potion, name: Healing Potion, img: icons/potion.webp, price: "4 gp", price_per: 1, level: 1}
  purses:
    alice: "50 gp"
"""

from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Any, Iterable, Mapping

import yaml

from app.db import get_engine
from app.services.catalog import SqlItemCatalog
from app.services.inventory import SqlInventory
from craft_math.coins import parse

REQUIRED_ITEM_KEYS = ("item_id", "name")


def load_document(path: Path) -> Mapping[str, Any]:
    raw = path.read_text(encoding="utf-8")
    if path.suffix.lower() == ".json":
        doc = json.loads(raw)
    else:
        doc = yaml.safe_load(raw)
    if not isinstance(doc, Mapping):
        raise SystemExit(f"{path} must contain a mapping with an 'items' list")
    return doc


def validate_items(items: Iterable[Mapping[str, Any]]) -> list[Mapping[str, Any]]:
    out = []
    for index, item in enumerate(items):
        missing = [k for k in REQUIRED_ITEM_KEYS if not item.get(k)]
        if missing:
            raise SystemExit(f"item #{index} is missing {', '.join(missing)}")
        out.append(item)
    return out


def seed(doc: Mapping[str, Any], catalog: SqlItemCatalog, inventory: SqlInventory) -> dict[str, int]:
    items = validate_items(doc.get("items") or [])
    for item in items:
        catalog.upsert_item(item)
    purses = doc.get("purses") or {}
    for owner, amount in purses.items():
        inventory.add_coins(str(owner), parse(str(amount)))
    return {"items": len(items), "purses": len(purses)}


def main() -> None:
    ap = argparse.ArgumentParser(description="Seed the crafting item catalog")
    ap.add_argument("path", help="YAML or JSON file with items (and optional purses)")
    ap.add_argument("--dry-run", action="store_true", help="Validate the file without writing")
    args = ap.parse_args()

    path = Path(args.path)
    if not path.exists():
        raise SystemExit(f"File not found: {path}")
    doc = load_document(path)
    if args.dry_run:
        items = validate_items(doc.get("items") or [])
        print(f"OK: {len(items)} items")
        return

    engine = get_engine()
    counts = seed(doc, SqlItemCatalog(engine), SqlInventory(engine))
    print(f"Seeded {counts['items']} items and {counts['purses']} purses")


if __name__ == "__main__":
    main()
