from __future__ import annotations

import itertools
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from app.dependencies import get_inventory, get_ledger, get_sink
from app.main import app
from app.services.announcements import RedisAnnouncementSink
from app.services.catalog import SqlItemCatalog
from app.services.inventory import SqlInventory
from app.services.projects import ProjectLedger
from app.store import RedisProjectStore


@pytest.fixture()
def api(seeded_engine, redis_client):
    """TestClient wired to SQLite + fakeredis collaborators."""

    ids = (f"p{i}" for i in itertools.count(1))
    inventory = SqlInventory(seeded_engine)
    sink = RedisAnnouncementSink(redis_client)
    catalog = SqlItemCatalog(seeded_engine)
    ledger = ProjectLedger(
        store=RedisProjectStore(redis_client, namespace="api"),
        catalog=catalog,
        inventory=inventory,
        sink=sink,
        id_factory=lambda: next(ids),
    )
    app.dependency_overrides[get_ledger] = lambda: ledger
    app.dependency_overrides[get_inventory] = lambda: inventory
    app.dependency_overrides[get_sink] = lambda: sink
    try:
        yield SimpleNamespace(client=TestClient(app), inventory=inventory, sink=sink, ledger=ledger, catalog=catalog)
    finally:
        app.dependency_overrides.clear()
