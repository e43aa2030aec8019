"""FastAPI application entrypoint for FORGELEDGER."""

from __future__ import annotations

import logging

from fastapi import Depends, FastAPI, status
from redis import Redis
from redis.exceptions import RedisError

from .api import router as api_router
from .dependencies import get_redis, get_settings
from .log_setup import configure_logging

logger = logging.getLogger(__name__)

app = FastAPI(title="FORGELEDGER API", version="0.1.0")
app.include_router(api_router)


@app.on_event("startup")
def load_settings_cache() -> None:
    """Prime configuration cache and logging during startup."""

    settings = get_settings()
    configure_logging(settings)
    logger.info("FORGELEDGER starting (env=%s, catalog=%s)", settings.app_env, settings.item_catalog)


@app.get("/health/live", status_code=status.HTTP_200_OK, include_in_schema=False)
def health_live() -> dict[str, str]:
    return {"status": "live"}


@app.get("/health/ready", status_code=status.HTTP_200_OK, include_in_schema=False)
def health_ready(redis_client: Redis = Depends(get_redis)) -> dict[str, str]:
    """Report the environment and whether the project store is reachable."""

    try:
        redis_client.ping()
        redis_state = "ok"
    except RedisError:
        logger.warning("readiness probe could not reach redis")
        redis_state = "unavailable"
    return {"status": "ready", "environment": get_settings().app_env, "redis": redis_state}


@app.get("/health/startup", status_code=status.HTTP_200_OK, include_in_schema=False)
def health_startup() -> dict[str, str]:
    return {"status": "started"}


__all__ = ["app"]
