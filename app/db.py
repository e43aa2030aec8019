"""Shared database helpers."""

from __future__ import annotations

from functools import lru_cache

import sqlalchemy as sa
from sqlalchemy.engine import Engine

from .dependencies import get_settings


@lru_cache
def get_engine() -> Engine:
    """Return a cached SQLAlchemy engine."""

    url = get_settings().database_url
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    return sa.create_engine(url, connect_args=connect_args)


__all__ = ["get_engine"]
