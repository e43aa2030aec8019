from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from app.dependencies import get_ledger
from app.services.projects import LedgerOutcome, LedgerResult, ProjectLedger, ProjectSummary
from craft_math.coins import format_coins
from craft_math.payment import PaymentStrategy

router = APIRouter(tags=["projects"])


_STATUS = {
    LedgerOutcome.INVALID_INPUT: status.HTTP_400_BAD_REQUEST,
    LedgerOutcome.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    LedgerOutcome.INSUFFICIENT_FUNDS: status.HTTP_409_CONFLICT,
    LedgerOutcome.REJECTED: status.HTTP_409_CONFLICT,
    LedgerOutcome.UNAVAILABLE: status.HTTP_503_SERVICE_UNAVAILABLE,
}


class BeginRequest(BaseModel):
    item_id: str
    batch_size: int = 1
    starting_progress: str = "0 gp"
    payment_strategy: Optional[PaymentStrategy] = None
    crafter: Optional[str] = None
    user_id: Optional[str] = None


class RushToggle(BaseModel):
    name: str
    rush_cost: str = "0 gp"


class CraftRequest(BaseModel):
    spending_amount: str
    toggles: List[RushToggle] = Field(default_factory=list)
    payment_strategy: Optional[PaymentStrategy] = None
    crafter: Optional[str] = None
    user_id: Optional[str] = None


class ProgressRequest(BaseModel):
    has_progressed: bool
    amount: str
    user_id: Optional[str] = None


class EditRequest(BaseModel):
    progress_in_copper: Optional[int] = None
    batch_size: Optional[int] = None


class PayMethodRequest(BaseModel):
    payment_strategy: PaymentStrategy


def _summary(summary: ProjectSummary) -> dict:
    return {
        "project_id": summary.project_id,
        "item_id": summary.item_id,
        "image": summary.image,
        "name": summary.name,
        "batch_size": summary.batch_size,
        "cost": format_coins(summary.cost),
        "current_progress": format_coins(summary.current_progress),
        "progress_fraction": summary.progress_fraction,
    }


def _respond(result: LedgerResult) -> dict:
    code = _STATUS.get(result.outcome)
    if code is not None:
        raise HTTPException(status_code=code, detail=result.outcome.value)
    project = result.project.model_dump() if result.project else None
    return {"outcome": result.outcome.value, "project": project}


@router.get("/projects/{owner}")
def list_projects(owner: str, ledger: ProjectLedger = Depends(get_ledger)):
    return {"owner": owner, "projects": [_summary(s) for s in ledger.list_projects(owner)]}


@router.post("/projects/{owner}", status_code=status.HTTP_201_CREATED)
def begin_project(owner: str, payload: BeginRequest, ledger: ProjectLedger = Depends(get_ledger)):
    return _respond(
        ledger.begin(
            owner,
            payload.item_id,
            batch_size=payload.batch_size,
            starting_progress=payload.starting_progress,
            strategy=payload.payment_strategy,
            crafter=payload.crafter,
            user_id=payload.user_id,
        )
    )


@router.post("/projects/{owner}/{project_id}/craft")
def craft_project(owner: str, project_id: str, payload: CraftRequest, ledger: ProjectLedger = Depends(get_ledger)):
    return _respond(
        ledger.craft(
            owner,
            project_id,
            payload.spending_amount,
            extra_costs=[t.rush_cost for t in payload.toggles],
            strategy=payload.payment_strategy,
            crafter=payload.crafter,
            user_id=payload.user_id,
        )
    )


@router.post("/projects/{owner}/{project_id}/progress")
def progress_project(
    owner: str, project_id: str, payload: ProgressRequest, ledger: ProjectLedger = Depends(get_ledger)
):
    return _respond(ledger.advance(owner, project_id, payload.has_progressed, payload.amount, user_id=payload.user_id))


@router.patch("/projects/{owner}/{project_id}")
def edit_project(owner: str, project_id: str, payload: EditRequest, ledger: ProjectLedger = Depends(get_ledger)):
    return _respond(ledger.edit(owner, project_id, payload.progress_in_copper, payload.batch_size))


@router.delete("/projects/{owner}/{project_id}")
def abandon_project(owner: str, project_id: str, ledger: ProjectLedger = Depends(get_ledger)):
    return _respond(ledger.abandon(owner, project_id))


@router.post("/projects/{owner}/{project_id}/share")
def share_project(owner: str, project_id: str, ledger: ProjectLedger = Depends(get_ledger)):
    return _respond(ledger.share(owner, project_id))


@router.get("/owners/{owner}/pay-method")
def get_pay_method(owner: str, ledger: ProjectLedger = Depends(get_ledger)):
    return {"owner": owner, "payment_strategy": ledger.preferred_strategy(owner).value}


@router.put("/owners/{owner}/pay-method")
def put_pay_method(owner: str, payload: PayMethodRequest, ledger: ProjectLedger = Depends(get_ledger)):
    chosen = ledger.set_preferred_strategy(owner, payload.payment_strategy)
    return {"owner": owner, "payment_strategy": chosen.value}
