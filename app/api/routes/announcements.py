from __future__ import annotations

from dataclasses import asdict
from typing import Optional

from fastapi import APIRouter, Depends, Query

from app.dependencies import get_sink
from app.services.announcements import RedisAnnouncementSink

router = APIRouter(tags=["announcements"])


@router.get("/announcements")
def recent_announcements(limit: int = Query(50, ge=1, le=500), sink: RedisAnnouncementSink = Depends(get_sink)):
    return {"announcements": [asdict(a) for a in sink.recent(limit)]}


@router.get("/notifications")
def recent_notifications(
    owner: Optional[str] = None,
    limit: int = Query(50, ge=1, le=500),
    sink: RedisAnnouncementSink = Depends(get_sink),
):
    return {"owner": owner, "notifications": sink.notices(owner, limit)}
