"""Item catalog factory utilities.

Builds the configured item lookup backend from Settings.
"""

from __future__ import annotations

import httpx
from redis import Redis
from sqlalchemy.engine import Engine

from app.cache import CachePolicy, ItemCache
from app.config import Settings
from app.repos import ItemCatalog
from app.services.catalog import SqlItemCatalog
from .compendium import CompendiumCatalog


def build_http_client(timeout: float = 10.0) -> httpx.Client:
    return httpx.Client(timeout=timeout)


def make_item_catalog(settings: Settings, engine: Engine, redis_client: Redis | None = None) -> ItemCatalog:
    name = settings.item_catalog.lower()
    if name == "sql":
        return SqlItemCatalog(engine)
    if name == "compendium":
        cache = None
        if redis_client is not None:
            policy = CachePolicy(item_ttl=settings.item_cache_ttl, last_good_ttl=settings.item_last_good_ttl)
            cache = ItemCache(redis_client, policy=policy)
        return CompendiumCatalog(
            client=build_http_client(timeout=settings.compendium_timeout),
            base_url=str(settings.compendium_base_url),
            timeout=settings.compendium_timeout,
            cache=cache,
            max_attempts=settings.compendium_max_attempts,
        )
    raise ValueError(f"Unknown item catalog: {settings.item_catalog}")
