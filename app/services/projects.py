"""Crafting project ledger: begin, craft, progress, abandon and edit projects.

Each operation reads the owner's project once, computes the payment without
touching anything, and only then applies coin/reagent mutations and writes
the project back through the store's merge-by-id updates. User-visible
failures go to the announcement sink as notices; the caller gets a
``LedgerResult`` instead of an exception.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable, List, Optional, Tuple
from uuid import uuid4

from app.repos import (
    AnnouncementSink,
    CatalogItem,
    CatalogUnavailable,
    GrantResult,
    ItemCatalog,
    OwnerInventory,
    Project,
    ProjectStore,
)
from app.services.inventory import InventoryError
from app.services.messages import render
from app.store import StoreConflict
from craft_math.coins import ZERO, Coins, coerce, format_coins, total
from craft_math.payment import DEFAULT_STRATEGY, PaymentResult, PaymentStrategy, parse_strategy, resolve

logger = logging.getLogger(__name__)


class LedgerOutcome(str, Enum):
    CREATED = "created"
    PROGRESSED = "progressed"
    COMPLETED = "completed"
    COMPLETION_BLOCKED = "completion_blocked"
    GRANT_FAILED = "grant_failed"
    SETBACK = "setback"
    ABANDONED = "abandoned"
    EDITED = "edited"
    SHARED = "shared"
    CANCELLED = "cancelled"
    INVALID_INPUT = "invalid_input"
    NOT_FOUND = "not_found"
    INSUFFICIENT_FUNDS = "insufficient_funds"
    REJECTED = "rejected"
    UNAVAILABLE = "unavailable"


FAILURES = frozenset(
    {
        LedgerOutcome.INVALID_INPUT,
        LedgerOutcome.NOT_FOUND,
        LedgerOutcome.INSUFFICIENT_FUNDS,
        LedgerOutcome.REJECTED,
        LedgerOutcome.UNAVAILABLE,
    }
)


@dataclass(frozen=True)
class LedgerResult:
    outcome: LedgerOutcome
    project: Optional[Project] = None

    @property
    def ok(self) -> bool:
        return self.outcome not in FAILURES


@dataclass(frozen=True)
class ProjectSummary:
    project_id: str
    item_id: str
    image: str
    name: str
    batch_size: int
    cost: Coins
    current_progress: Coins
    progress_fraction: float


class ProjectLedger:
    def __init__(
        self,
        store: ProjectStore,
        catalog: ItemCatalog,
        inventory: OwnerInventory,
        sink: AnnouncementSink,
        default_strategy: PaymentStrategy = DEFAULT_STRATEGY,
        id_factory: Callable[[], str] | None = None,
    ) -> None:
        self._store = store
        self._catalog = catalog
        self._inventory = inventory
        self._sink = sink
        self._default_strategy = default_strategy
        self._new_id = id_factory or (lambda: uuid4().hex)

    # Pay method preference -------------------------------------------------
    def preferred_strategy(self, owner: str) -> PaymentStrategy:
        raw = self._store.get_preferred_pay_method(owner)
        if raw is None:
            return self._default_strategy
        try:
            return parse_strategy(raw)
        except ValueError:
            logger.warning("ignoring unknown pay method %r stored for %s", raw, owner)
            return self._default_strategy

    def set_preferred_strategy(self, owner: str, strategy: PaymentStrategy | str) -> PaymentStrategy:
        chosen = parse_strategy(strategy)
        self._store.set_preferred_pay_method(owner, chosen.value)
        return chosen

    # Operations ------------------------------------------------------------
    def begin(
        self,
        owner: str,
        item_id: str,
        batch_size: int = 1,
        starting_progress: Coins | str | int = ZERO,
        strategy: PaymentStrategy | str | None = None,
        crafter: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> LedgerResult:
        if not item_id:
            logger.error("missing item id when beginning a project for %s", owner)
            return LedgerResult(LedgerOutcome.INVALID_INPUT)
        crafter = crafter or owner
        starting = coerce(starting_progress)
        chosen = self._strategy_for(crafter, strategy)
        if chosen is None or starting < ZERO:
            logger.error("invalid begin request for %s: strategy=%r start=%s", owner, strategy, starting.copper)
            return LedgerResult(LedgerOutcome.INVALID_INPUT)

        item, failure = self._item(item_id, owner)
        if item is None:
            return LedgerResult(failure)

        payment = resolve(chosen, self._inventory.get_coins(crafter), self._inventory.get_reagents(crafter), starting)
        self._store.set_preferred_pay_method(crafter, chosen.value)
        if not payment.can_pay or not self._apply_payment(crafter, payment):
            self._sink.notify("warn", render("begin.cannot_pay", name=crafter), owner=crafter)
            return LedgerResult(LedgerOutcome.INSUFFICIENT_FUNDS)

        project = Project(
            id=self._new_id(),
            item_id=item.item_id,
            batch_size=batch_size if batch_size and batch_size > 0 else 1,
            progress_in_copper=starting.copper,
        )
        try:
            self._store.add_project(owner, project)
        except StoreConflict:
            logger.warning("could not add project for %s; refunding %s", owner, crafter)
            self._refund(crafter, payment)
            return self._store_busy(owner)
        self._sink.announce(
            render(
                "begin.started",
                name=owner,
                batch_size=project.batch_size,
                item_name=item.name,
                current_value=format_coins(starting),
            ),
            speaker=owner,
        )
        if project.progress >= item.batch_cost(project.batch_size):
            return self._advance(owner, project, item, True, ZERO, user_id, payer=crafter, payment=payment)
        return LedgerResult(LedgerOutcome.CREATED, project)

    def craft(
        self,
        owner: str,
        project_id: str,
        spending_amount: Coins | str | int,
        extra_costs: Iterable[Coins | str | int] = (),
        strategy: PaymentStrategy | str | None = None,
        crafter: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> LedgerResult:
        if not project_id:
            logger.error("missing project id when crafting for %s", owner)
            return LedgerResult(LedgerOutcome.INVALID_INPUT)
        crafter = crafter or owner
        spending = coerce(spending_amount)
        rush = total(coerce(c) for c in extra_costs)
        chosen = self._strategy_for(crafter, strategy)
        if chosen is None or spending < ZERO or rush < ZERO:
            logger.error("invalid craft request for %s/%s: strategy=%r", owner, project_id, strategy)
            return LedgerResult(LedgerOutcome.INVALID_INPUT)

        project = self._project(owner, project_id, "craft.no_project")
        if project is None:
            return LedgerResult(LedgerOutcome.NOT_FOUND)
        item, failure = self._item(project.item_id, owner)
        if item is None:
            return LedgerResult(failure)

        remaining = item.batch_cost(project.batch_size) - project.progress
        if spending == ZERO and remaining > ZERO:
            self._sink.notify("warn", render("craft.meaningful_cost"), owner=crafter)
            return LedgerResult(LedgerOutcome.REJECTED, project)

        payment = resolve(chosen, self._inventory.get_coins(crafter), self._inventory.get_reagents(crafter), spending + rush)
        self._store.set_preferred_pay_method(crafter, chosen.value)
        if not payment.can_pay or not self._apply_payment(crafter, payment):
            self._sink.notify("warn", render("craft.cannot_pay", name=crafter), owner=crafter)
            return LedgerResult(LedgerOutcome.INSUFFICIENT_FUNDS, project)

        return self._advance(owner, project, item, True, spending, user_id, payer=crafter, payment=payment)

    def advance(
        self,
        owner: str,
        project_id: str,
        has_progressed: bool,
        amount: Coins | str | int,
        user_id: Optional[str] = None,
    ) -> LedgerResult:
        if not project_id:
            logger.error("missing project id when progressing a project of %s", owner)
            return LedgerResult(LedgerOutcome.INVALID_INPUT)
        delta = coerce(amount)
        if delta < ZERO:
            logger.error("negative progress amount %s for %s/%s", delta.copper, owner, project_id)
            return LedgerResult(LedgerOutcome.INVALID_INPUT)
        project = self._project(owner, project_id, "progress.no_project")
        if project is None:
            return LedgerResult(LedgerOutcome.NOT_FOUND)
        item, failure = self._item(project.item_id, owner)
        if item is None:
            return LedgerResult(failure)
        return self._advance(owner, project, item, has_progressed, delta, user_id)

    def abandon(self, owner: str, project_id: str) -> LedgerResult:
        if not project_id:
            logger.error("missing project id when abandoning a project of %s", owner)
            return LedgerResult(LedgerOutcome.INVALID_INPUT)
        try:
            removed = self._store.remove_project(owner, project_id)
        except StoreConflict:
            return self._store_busy(owner)
        if not removed:
            logger.info("abandon: project %s of %s was already gone", project_id, owner)
        return LedgerResult(LedgerOutcome.ABANDONED)

    def edit(
        self,
        owner: str,
        project_id: str,
        new_progress: Coins | int | None = None,
        new_batch_size: Optional[int] = None,
    ) -> LedgerResult:
        if not project_id:
            logger.error("missing project id when editing a project of %s", owner)
            return LedgerResult(LedgerOutcome.INVALID_INPUT)
        project = self._project(owner, project_id, "edit.no_project")
        if project is None:
            return LedgerResult(LedgerOutcome.NOT_FOUND)
        if new_progress is None and new_batch_size is None:
            return LedgerResult(LedgerOutcome.CANCELLED, project)

        progress = project.progress_in_copper
        if new_progress is not None:
            candidate = new_progress.copper if isinstance(new_progress, Coins) else int(new_progress)
            if candidate >= 0:
                progress = candidate
        batch_size = project.batch_size
        if new_batch_size is not None and int(new_batch_size) > 0:
            batch_size = int(new_batch_size)

        updated = project.model_copy(update={"progress_in_copper": progress, "batch_size": batch_size})
        try:
            written = self._store.replace_project(owner, updated)
        except StoreConflict:
            return self._store_busy(owner)
        if not written:
            self._sink.notify("error", render("edit.no_project", name=owner, project_id=project_id), owner=owner)
            return LedgerResult(LedgerOutcome.NOT_FOUND)
        return LedgerResult(LedgerOutcome.EDITED, updated)

    def share(self, owner: str, project_id: str) -> LedgerResult:
        if not project_id:
            logger.error("missing project id when sharing a project of %s", owner)
            return LedgerResult(LedgerOutcome.INVALID_INPUT)
        project = self._project(owner, project_id, "share.no_project")
        if project is None:
            return LedgerResult(LedgerOutcome.NOT_FOUND)
        item, failure = self._item(project.item_id, owner)
        if item is None:
            return LedgerResult(failure)
        summary = self._summarise(project, item)
        self._sink.announce(
            render(
                "share.status",
                name=owner,
                batch_size=project.batch_size,
                item_name=item.name,
                current_progress=format_coins(summary.current_progress),
                goal=format_coins(summary.cost),
                percent=round(summary.progress_fraction * 100),
            ),
            speaker=owner,
        )
        return LedgerResult(LedgerOutcome.SHARED, project)

    def list_projects(self, owner: str) -> List[ProjectSummary]:
        out: List[ProjectSummary] = []
        for project in self._store.get_projects(owner):
            try:
                item = self._catalog.get_item(project.item_id)
            except CatalogUnavailable as exc:
                logger.warning("skipping project %s of %s: %s", project.id, owner, exc)
                continue
            if item is None:
                logger.warning("project %s of %s refers to unknown item %s", project.id, owner, project.item_id)
                continue
            out.append(self._summarise(project, item))
        return out

    # Internal helpers ------------------------------------------------------
    def _advance(
        self,
        owner: str,
        project: Project,
        item: CatalogItem,
        has_progressed: bool,
        amount: Coins,
        user_id: Optional[str],
        payer: Optional[str] = None,
        payment: Optional[PaymentResult] = None,
    ) -> LedgerResult:
        cost = item.batch_cost(project.batch_size)
        if has_progressed:
            updated = project.model_copy(update={"progress_in_copper": project.progress_in_copper + amount.copper})
            if updated.progress >= cost:
                return self._complete(owner, updated, item, user_id, payer, payment)
            message_key, outcome = "progress.progress", LedgerOutcome.PROGRESSED
        else:
            remaining = project.progress_in_copper - amount.copper
            if remaining <= 0:
                try:
                    removed = self._store.remove_project(owner, project.id)
                except StoreConflict:
                    return self._store_busy(owner)
                if not removed:
                    self._sink.notify("error", render("progress.no_project", name=owner, project_id=project.id), owner=owner)
                    return LedgerResult(LedgerOutcome.NOT_FOUND)
                self._sink.announce(
                    render("progress.fatal_setback", name=owner, batch_size=project.batch_size, item_name=item.name),
                    speaker=owner,
                )
                return LedgerResult(LedgerOutcome.ABANDONED, project)
            updated = project.model_copy(update={"progress_in_copper": remaining})
            message_key, outcome = "progress.setback", LedgerOutcome.SETBACK

        try:
            written = self._store.replace_project(owner, updated)
        except StoreConflict:
            return self._write_back_failed(owner, project.id, LedgerOutcome.UNAVAILABLE, payer, payment)
        if not written:
            return self._write_back_failed(owner, project.id, LedgerOutcome.NOT_FOUND, payer, payment)
        self._sink.announce(
            render(
                message_key,
                name=owner,
                batch_size=updated.batch_size,
                item_name=item.name,
                progress_amount=format_coins(amount),
                current_progress=format_coins(updated.progress),
                goal=format_coins(cost),
            ),
            speaker=owner,
        )
        return LedgerResult(outcome, updated)

    def _complete(
        self,
        owner: str,
        project: Project,
        item: CatalogItem,
        user_id: Optional[str],
        payer: Optional[str] = None,
        payment: Optional[PaymentResult] = None,
    ) -> LedgerResult:
        # Claim the project before granting; only one caller can remove it.
        try:
            claimed = self._store.remove_project(owner, project.id)
        except StoreConflict:
            return self._write_back_failed(owner, project.id, LedgerOutcome.UNAVAILABLE, payer, payment)
        if not claimed:
            return self._write_back_failed(owner, project.id, LedgerOutcome.NOT_FOUND, payer, payment)

        finish = render("progress.finish", name=owner, batch_size=project.batch_size, item_name=item.name)
        grant = self._inventory.grant_item(owner, item, project.batch_size, user_id)
        if grant is GrantResult.GRANTED:
            self._sink.announce(finish, speaker=owner)
            return LedgerResult(LedgerOutcome.COMPLETED, project)

        # Put the project back with its progress; the next advance retries the grant.
        try:
            self._store.add_project(owner, project)
        except StoreConflict:
            logger.error("could not restore project %s of %s after a failed grant", project.id, owner)
            return self._write_back_failed(owner, project.id, LedgerOutcome.UNAVAILABLE, payer, payment)
        if grant is GrantResult.PERMISSION_LACKING:
            lacking = render("progress.lacks_permission", name=owner, user=user_id or "this player")
            self._sink.announce(finish + lacking, speaker=owner)
            return LedgerResult(LedgerOutcome.COMPLETION_BLOCKED, project)
        self._sink.notify("warn", render("progress.cant_add_item", name=owner, item_name=item.name), owner=owner)
        return LedgerResult(LedgerOutcome.GRANT_FAILED, project)

    def _apply_payment(self, payer: str, payment: PaymentResult) -> bool:
        if payment.remove_currency > ZERO:
            try:
                self._inventory.remove_coins(payer, payment.remove_currency)
            except InventoryError:
                logger.warning("purse of %s changed before payment could be applied", payer)
                return False
        if payment.reagent_updates:
            try:
                self._inventory.apply_reagent_updates(payer, payment.reagent_updates)
            except InventoryError:
                logger.warning("reagents of %s changed before payment could be applied", payer)
                if payment.remove_currency > ZERO:
                    self._inventory.add_coins(payer, payment.remove_currency)
                return False
        return True

    def _refund(self, payer: str, payment: PaymentResult) -> bool:
        """Give back an applied payment. Returns whether anything was returned.

        Reagents are restored to their pre-payment state; if they changed in
        the meantime, the value taken from them is returned as coins instead.
        """

        coins = payment.remove_currency
        if payment.reagent_updates:
            try:
                self._inventory.apply_reagent_updates(payer, [u.reverted() for u in payment.reagent_updates])
            except InventoryError:
                consumed = total(u.consumed for u in payment.reagent_updates)
                logger.warning(
                    "reagents of %s changed before they could be restored; returning %s as coins",
                    payer,
                    format_coins(consumed),
                )
                coins = coins + consumed
        if coins > ZERO:
            self._inventory.add_coins(payer, coins)
        refunded = coins > ZERO or bool(payment.reagent_updates)
        if refunded:
            logger.info("refunded payment of %s", payer)
        return refunded

    def _write_back_failed(
        self,
        owner: str,
        project_id: str,
        outcome: LedgerOutcome,
        payer: Optional[str],
        payment: Optional[PaymentResult],
    ) -> LedgerResult:
        if outcome is LedgerOutcome.NOT_FOUND:
            self._sink.notify("error", render("progress.no_project", name=owner, project_id=project_id), owner=owner)
        else:
            self._sink.notify("error", render("store.busy", name=owner), owner=owner)
        if payer is not None and payment is not None and self._refund(payer, payment):
            self._sink.notify("warn", render("payment.refunded", name=payer, project_id=project_id), owner=payer)
        return LedgerResult(outcome)

    def _store_busy(self, owner: str) -> LedgerResult:
        logger.warning("projects of %s kept changing; giving up", owner)
        self._sink.notify("error", render("store.busy", name=owner), owner=owner)
        return LedgerResult(LedgerOutcome.UNAVAILABLE)

    def _strategy_for(self, crafter: str, strategy: PaymentStrategy | str | None) -> Optional[PaymentStrategy]:
        if strategy is None:
            return self.preferred_strategy(crafter)
        try:
            return parse_strategy(strategy)
        except ValueError:
            return None

    def _project(self, owner: str, project_id: str, missing_key: str) -> Optional[Project]:
        for project in self._store.get_projects(owner):
            if project.id == project_id:
                return project
        self._sink.notify("error", render(missing_key, name=owner, project_id=project_id), owner=owner)
        return None

    def _item(self, item_id: str, owner: str) -> Tuple[Optional[CatalogItem], Optional[LedgerOutcome]]:
        """Look up ``item_id``; on failure the second value is the outcome to report."""

        try:
            item = self._catalog.get_item(item_id)
        except CatalogUnavailable as exc:
            logger.warning("item %s could not be looked up: %s", item_id, exc)
            self._sink.notify("error", render("item.unavailable"), owner=owner)
            return None, LedgerOutcome.UNAVAILABLE
        if item is None:
            self._sink.notify("error", render("item.missing", item_id=item_id), owner=owner)
            return None, LedgerOutcome.NOT_FOUND
        return item, None

    @staticmethod
    def _summarise(project: Project, item: CatalogItem) -> ProjectSummary:
        cost = item.batch_cost(project.batch_size)
        fraction = project.progress_in_copper / cost.copper if cost.copper > 0 else 1.0
        return ProjectSummary(
            project_id=project.id,
            item_id=project.item_id,
            image=item.img,
            name=item.name,
            batch_size=project.batch_size,
            cost=cost,
            current_progress=project.progress,
            progress_fraction=fraction,
        )


__all__ = ["LedgerOutcome", "LedgerResult", "ProjectLedger", "ProjectSummary"]
