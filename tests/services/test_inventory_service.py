from __future__ import annotations

import pytest
from sqlalchemy import text

from app.repos import CatalogItem, GrantResult
from app.services.inventory import InventoryError, SqlInventory
from craft_math.coins import ZERO, parse
from craft_math.reagents import Reagent, ReagentUpdate

SWORD = CatalogItem(item_id="sword", name="Longsword", img="", price=parse("100 gp"))


@pytest.fixture()
def inventory(seeded_engine) -> SqlInventory:
    return SqlInventory(seeded_engine)


def test_coins_read_add_remove(inventory) -> None:
    assert inventory.get_coins("alice") == parse("30 gp")
    assert inventory.get_coins("nobody") == ZERO

    inventory.add_coins("bob", parse("5 sp"))
    inventory.add_coins("bob", parse("5 sp"))
    assert inventory.get_coins("bob") == parse("1 gp")

    inventory.remove_coins("alice", parse("12 gp, 3 cp"))
    assert inventory.get_coins("alice") == parse("17 gp, 9 sp, 7 cp")


def test_remove_more_than_held_leaves_purse(inventory) -> None:
    with pytest.raises(InventoryError):
        inventory.remove_coins("alice", parse("31 gp"))
    assert inventory.get_coins("alice") == parse("30 gp")


def test_add_negative_rejected(inventory) -> None:
    with pytest.raises(InventoryError):
        inventory.add_coins("alice", parse("-1 gp"))


def test_reagents_round_trip(inventory) -> None:
    [herbs] = inventory.get_reagents("alice")
    assert herbs == Reagent("herbs", level=6, quantity=1, leftovers=ZERO, name="Herbs")

    inventory.apply_reagent_updates("alice", [ReagentUpdate("herbs", 0, parse("30 gp"))])
    [herbs] = inventory.get_reagents("alice")
    assert herbs.quantity == 0
    assert herbs.leftovers == parse("30 gp")


def test_reagent_batch_is_atomic(inventory) -> None:
    updates = [ReagentUpdate("herbs", 0, ZERO), ReagentUpdate("moss", 0, ZERO)]
    with pytest.raises(InventoryError):
        inventory.apply_reagent_updates("alice", updates)
    assert inventory.get_reagents("alice")[0].quantity == 1


def test_store_reagent_value_packs(inventory) -> None:
    created = inventory.store_reagent_value("alice", "moss", "Moss", 6, parse("75 gp"))
    assert (created.quantity, created.leftovers) == (1, parse("25 gp"))

    grown = inventory.store_reagent_value("alice", "herbs", "Herbs", 6, parse("50 gp"))
    assert grown.quantity == 2
    assert inventory.reagent_summary("alice")["total_value"] == parse("175 gp")


def test_store_reagent_value_rejects_level_change(inventory) -> None:
    with pytest.raises(InventoryError):
        inventory.store_reagent_value("alice", "herbs", "Herbs", 7, parse("1 gp"))


def test_store_reagent_value_rejects_overdraw(inventory) -> None:
    with pytest.raises(InventoryError):
        inventory.store_reagent_value("alice", "herbs", "Herbs", 6, parse("-51 gp"))


def test_grant_item_checks_permission(inventory, seeded_engine) -> None:
    assert inventory.grant_item("alice", SWORD, 2) is GrantResult.GRANTED
    assert inventory.grant_item("alice", SWORD, 1, user_id="u-alice") is GrantResult.GRANTED
    assert inventory.grant_item("alice", SWORD, 1, user_id="mallory") is GrantResult.PERMISSION_LACKING
    assert inventory.grant_item("alice", SWORD, 0) is GrantResult.FAILED
    assert inventory.owned_quantity("alice", "sword") == 3

    with seeded_engine.connect() as conn:
        rows = conn.execute(text("select count(*) from owned_items")).scalar_one()
    assert rows == 1


def test_guarded_update_rejects_stale_previous_state(inventory) -> None:
    stale = ReagentUpdate("herbs", 0, ZERO, previous_quantity=2, previous_leftovers=ZERO)
    with pytest.raises(InventoryError):
        inventory.apply_reagent_updates("alice", [stale])
    assert inventory.get_reagents("alice")[0].quantity == 1

    current = ReagentUpdate("herbs", 0, parse("30 gp"), previous_quantity=1, previous_leftovers=ZERO)
    inventory.apply_reagent_updates("alice", [current])
    [herbs] = inventory.get_reagents("alice")
    assert (herbs.quantity, herbs.leftovers) == (0, parse("30 gp"))

    inventory.apply_reagent_updates("alice", [current.reverted()])
    assert inventory.get_reagents("alice")[0] == Reagent("herbs", level=6, quantity=1, leftovers=ZERO, name="Herbs")


def test_store_reagent_value_rejects_concurrent_deposit(inventory, monkeypatch) -> None:
    read_reagents = inventory.get_reagents

    def _deposit_meanwhile(owner):
        snapshot = read_reagents(owner)
        monkeypatch.setattr(inventory, "get_reagents", read_reagents)
        inventory.store_reagent_value("alice", "herbs", "Herbs", 6, parse("50 gp"))
        return snapshot

    monkeypatch.setattr(inventory, "get_reagents", _deposit_meanwhile)
    with pytest.raises(InventoryError):
        inventory.store_reagent_value("alice", "herbs", "Herbs", 6, parse("50 gp"))
    assert read_reagents("alice")[0].quantity == 2


def test_store_reagent_value_rejects_concurrent_create(inventory, monkeypatch) -> None:
    monkeypatch.setattr(inventory, "get_reagents", lambda owner: [])
    with pytest.raises(InventoryError):
        inventory.store_reagent_value("alice", "herbs", "Herbs", 6, parse("5 gp"))
