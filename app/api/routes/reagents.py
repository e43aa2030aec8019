from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from app.dependencies import get_inventory
from app.services.inventory import InventoryError, SqlInventory
from craft_math.coins import format_coins, parse
from craft_math.reagents import MAX_REAGENT_LEVEL, REAGENT_LEVELLED_VALUE, Reagent, reagent_value, unit_value

router = APIRouter(prefix="/reagents", tags=["reagents"])


class StoreValueRequest(BaseModel):
    reagent_id: str
    name: str = "Reagent"
    level: int = Field(ge=-1, le=MAX_REAGENT_LEVEL)
    value: str


def _reagent(reagent: Reagent) -> dict:
    return {
        "reagent_id": reagent.reagent_id,
        "name": reagent.name,
        "level": reagent.level,
        "quantity": reagent.quantity,
        "bulk": reagent.bulk,
        "light_bulk": reagent.light_bulk,
        "leftovers": format_coins(reagent.leftovers),
        "value": format_coins(reagent_value(reagent)),
    }


@router.get("/levels")
def reagent_levels():
    levels = range(-1, len(REAGENT_LEVELLED_VALUE) - 1)
    return {"levels": [{"level": lvl, "unit_value": format_coins(unit_value(lvl))} for lvl in levels]}


@router.get("/{owner}")
def owner_reagents(owner: str, inventory: SqlInventory = Depends(get_inventory)):
    summary = inventory.reagent_summary(owner)
    return {
        "owner": owner,
        "total_value": format_coins(summary["total_value"]),
        "reagents": [_reagent(r) for r in summary["reagents"]],
    }


@router.post("/{owner}")
def store_reagent_value(owner: str, payload: StoreValueRequest, inventory: SqlInventory = Depends(get_inventory)):
    try:
        reagent = inventory.store_reagent_value(
            owner, payload.reagent_id, payload.name, payload.level, parse(payload.value)
        )
    except InventoryError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    return _reagent(reagent)
