"""Redis cache for remote item payloads.

Each payload is written twice: a short-lived fresh copy and a long-lived
``:last_good`` copy that is served, flagged stale, when the fresh copy has
expired and the compendium cannot be reached.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Mapping

from redis import Redis

LAST_GOOD_SUFFIX = ":last_good"


@dataclass(frozen=True)
class CachePolicy:
    item_ttl: int = 900
    last_good_ttl: int = 86_400
    prefix: str = "item"


@dataclass(frozen=True)
class CacheRecord:
    value: Mapping[str, Any]
    stale: bool
    age_seconds: int


class ItemCache:
    def __init__(
        self,
        redis_client: Redis,
        policy: CachePolicy | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._redis = redis_client
        self._policy = policy or CachePolicy()
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def key(self, item_id: str) -> str:
        return f"{self._policy.prefix}:{item_id}"

    def set_item(self, item_id: str, payload: Mapping[str, Any]) -> None:
        key = self.key(item_id)
        serialized = json.dumps({"stored_at": self._clock().isoformat(), "value": payload}, default=str)
        pipe = self._redis.pipeline()
        pipe.setex(name=key, time=self._policy.item_ttl, value=serialized)
        pipe.setex(name=key + LAST_GOOD_SUFFIX, time=self._policy.last_good_ttl, value=serialized)
        pipe.execute()

    def get_item(self, item_id: str) -> CacheRecord | None:
        key = self.key(item_id)
        raw = self._redis.get(key)
        from_last_good = raw is None
        if from_last_good:
            raw = self._redis.get(key + LAST_GOOD_SUFFIX)
            if raw is None:
                return None
        envelope = json.loads(raw)
        age = int((self._clock() - datetime.fromisoformat(envelope["stored_at"])).total_seconds())
        return CacheRecord(
            value=envelope["value"],
            stale=from_last_good or age > self._policy.item_ttl,
            age_seconds=age,
        )

    def invalidate(self, item_id: str) -> None:
        """Drop the fresh copy; the last-good copy stays as a fallback."""

        self._redis.delete(self.key(item_id))


__all__ = ["CachePolicy", "CacheRecord", "ItemCache"]
