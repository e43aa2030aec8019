"""Dependency helpers for the FastAPI service."""

from __future__ import annotations

from functools import lru_cache

from redis import Redis

from .config import Settings


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings."""

    return Settings()


@lru_cache
def get_redis() -> Redis:
    """Return a cached Redis client for project flags and announcements."""

    return Redis.from_url(get_settings().redis_url, decode_responses=True)


def get_inventory():
    from .db import get_engine
    from .services.inventory import SqlInventory

    return SqlInventory(get_engine())


@lru_cache
def get_item_catalog():
    """Return the configured item catalog; one instance keeps one circuit breaker."""

    from .db import get_engine
    from .providers.factory import make_item_catalog

    return make_item_catalog(get_settings(), get_engine(), get_redis())


def get_sink():
    from .services.announcements import RedisAnnouncementSink

    return RedisAnnouncementSink(get_redis(), max_entries=get_settings().announcement_log_size)


def get_ledger():
    """Assemble the project ledger from the configured collaborators."""

    from craft_math.payment import parse_strategy

    from .services.projects import ProjectLedger
    from .store import RedisProjectStore

    settings = get_settings()
    redis_client = get_redis()
    return ProjectLedger(
        store=RedisProjectStore(redis_client, settings.flag_namespace, settings.store_max_retries),
        catalog=get_item_catalog(),
        inventory=get_inventory(),
        sink=get_sink(),
        default_strategy=parse_strategy(settings.default_pay_method),
    )


__all__ = ["get_inventory", "get_item_catalog", "get_ledger", "get_redis", "get_settings", "get_sink"]
