"""Remote item compendium used as an item catalog."""

from __future__ import annotations

import logging
from typing import Optional

import httpx
from pydantic import BaseModel, Field

from app.cache import CacheRecord, ItemCache
from app.repos import CatalogItem, CatalogUnavailable, ItemCatalog
from craft_math.coins import parse

from .base import CircuitBreaker, CircuitBreakerOpen, execute_with_retry

logger = logging.getLogger(__name__)


class _ItemPayload(BaseModel):
    id: str
    name: str
    img: str = ""
    price: str = "0 gp"
    price_per: int = Field(default=1, ge=1, alias="per")
    level: int = 0

    model_config = {"populate_by_name": True}


class CompendiumCatalog(ItemCatalog):
    def __init__(
        self,
        client: httpx.Client,
        base_url: str,
        breaker: CircuitBreaker | None = None,
        timeout: float = 10.0,
        cache: ItemCache | None = None,
        max_attempts: int = 3,
    ) -> None:
        self._client = client
        self._base_url = base_url.rstrip("/")
        self._breaker = breaker or CircuitBreaker()
        self._timeout = timeout
        self._cache = cache
        self._max_attempts = max_attempts

    def get_item(self, item_id: str) -> Optional[CatalogItem]:
        """Look an item up; a 404 is ``None``.

        Failures fall back to the last cached copy, stale or not. Without
        one they surface as ``CatalogUnavailable``.
        """

        record = self._cache.get_item(item_id) if self._cache else None
        if record is not None and not record.stale:
            return _to_item(_ItemPayload.model_validate(record.value))

        if self._breaker.is_open:
            return self._fallback(item_id, record, CircuitBreakerOpen("compendium circuit open"))

        def _call() -> Optional[_ItemPayload]:
            response = self._client.get(f"{self._base_url}/items/{item_id}", timeout=self._timeout)
            if response.status_code == httpx.codes.NOT_FOUND:
                return None
            response.raise_for_status()
            return _ItemPayload.model_validate(response.json())

        try:
            payload = execute_with_retry(_call, max_attempts=self._max_attempts)
        except (httpx.HTTPError, ValueError) as exc:
            self._breaker.failure()
            return self._fallback(item_id, record, exc)
        self._breaker.success()

        if payload is None:
            return None
        if self._cache:
            self._cache.set_item(item_id, payload.model_dump(by_alias=True))
        return _to_item(payload)

    def _fallback(self, item_id: str, record: Optional[CacheRecord], exc: Exception) -> CatalogItem:
        if record is None:
            raise CatalogUnavailable(f"item {item_id} could not be fetched: {exc}") from exc
        logger.warning("compendium unavailable (%s); serving stale copy of item %s", exc, item_id)
        return _to_item(_ItemPayload.model_validate(record.value))


def _to_item(payload: _ItemPayload) -> CatalogItem:
    return CatalogItem(
        item_id=payload.id,
        name=payload.name,
        img=payload.img,
        price=parse(payload.price),
        price_per=payload.price_per,
        level=payload.level,
    )


__all__ = ["CompendiumCatalog"]
