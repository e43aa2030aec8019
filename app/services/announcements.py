"""Shared announcement log and user notifications kept in Redis lists."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, List, Optional

from redis import Redis

from app.repos import AnnouncementSink, NoticeLevel

logger = logging.getLogger(__name__)

ANNOUNCEMENT_KEY = "announcements"
NOTIFICATION_KEY = "notifications"


@dataclass(frozen=True)
class Announcement:
    speaker: str
    content: str
    ts: str


class RedisAnnouncementSink(AnnouncementSink):
    def __init__(
        self,
        redis_client: Redis,
        max_entries: int = 500,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._redis = redis_client
        self._max_entries = max(1, max_entries)
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def announce(self, content: str, speaker: str) -> None:
        self._append(ANNOUNCEMENT_KEY, {"speaker": speaker, "content": content, "ts": self._clock().isoformat()})

    def notify(self, level: NoticeLevel, message: str, owner: Optional[str] = None) -> None:
        key = f"{NOTIFICATION_KEY}:{owner}" if owner else NOTIFICATION_KEY
        self._append(key, {"level": level, "message": message, "ts": self._clock().isoformat()})
        logger.info("notice (%s) for %s: %s", level, owner or "everyone", message)

    def recent(self, limit: int = 50) -> List[Announcement]:
        raw = self._redis.lrange(ANNOUNCEMENT_KEY, -max(1, limit), -1)
        return [Announcement(**json.loads(item)) for item in raw]

    def notices(self, owner: Optional[str] = None, limit: int = 50) -> List[dict]:
        key = f"{NOTIFICATION_KEY}:{owner}" if owner else NOTIFICATION_KEY
        return [json.loads(item) for item in self._redis.lrange(key, -max(1, limit), -1)]

    def _append(self, key: str, entry: dict) -> None:
        pipe = self._redis.pipeline()
        pipe.rpush(key, json.dumps(entry))
        pipe.ltrim(key, -self._max_entries, -1)
        pipe.execute()


__all__ = ["Announcement", "RedisAnnouncementSink"]
