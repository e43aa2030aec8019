"""Redis-backed per-owner flag bag holding projects and the preferred pay method.

Every project mutation re-reads the owner's list under WATCH and merges a
single project by id before writing, so concurrent edits to sibling projects
of the same owner are never overwritten.
"""

from __future__ import annotations

import json
import logging
from typing import Callable, Optional, TypeVar

from redis import Redis
from redis.exceptions import WatchError

from app.repos import Project

logger = logging.getLogger(__name__)

PROJECTS_FIELD = "projects"
PAY_METHOD_FIELD = "preferred_pay_method"

T = TypeVar("T")
Mutation = Callable[[list[Project]], "tuple[list[Project], T]"]


class StoreConflict(RuntimeError):
    """Raised when an owner's flag bag kept changing under every retry."""


def _decode(raw) -> list[Project]:
    if not raw:
        return []
    return [Project.model_validate(item) for item in json.loads(raw)]


def _encode(projects: list[Project]) -> str:
    return json.dumps([p.model_dump() for p in projects])


class RedisProjectStore:
    def __init__(self, redis_client: Redis, namespace: str = "forgeledger", max_retries: int = 16) -> None:
        self._redis = redis_client
        self._namespace = namespace
        self._max_retries = max(1, max_retries)

    def key(self, owner: str) -> str:
        return f"flags:{self._namespace}:{owner}"

    # Reads -----------------------------------------------------------------
    def get_projects(self, owner: str) -> list[Project]:
        return _decode(self._redis.hget(self.key(owner), PROJECTS_FIELD))

    def get_project(self, owner: str, project_id: str) -> Optional[Project]:
        for project in self.get_projects(owner):
            if project.id == project_id:
                return project
        return None

    def get_preferred_pay_method(self, owner: str) -> Optional[str]:
        raw = self._redis.hget(self.key(owner), PAY_METHOD_FIELD)
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8")
        return raw or None

    # Writes ----------------------------------------------------------------
    def set_preferred_pay_method(self, owner: str, method: str) -> None:
        self._redis.hset(self.key(owner), PAY_METHOD_FIELD, method)

    def add_project(self, owner: str, project: Project) -> None:
        def _add(projects: list[Project]):
            kept = [p for p in projects if p.id != project.id]
            return kept + [project], None

        self._mutate(owner, _add)

    def replace_project(self, owner: str, project: Project) -> bool:
        """Swap in ``project`` by id; a project removed meanwhile stays removed."""

        def _replace(projects: list[Project]):
            found = False
            merged = []
            for current in projects:
                if current.id == project.id:
                    merged.append(project)
                    found = True
                else:
                    merged.append(current)
            return merged, found

        return self._mutate(owner, _replace)

    def remove_project(self, owner: str, project_id: str) -> bool:
        def _remove(projects: list[Project]):
            kept = [p for p in projects if p.id != project_id]
            return kept, len(kept) != len(projects)

        return self._mutate(owner, _remove)

    # Internal helpers ------------------------------------------------------
    def _mutate(self, owner: str, mutation: Mutation) -> T:
        key = self.key(owner)
        with self._redis.pipeline() as pipe:
            for attempt in range(self._max_retries):
                try:
                    pipe.watch(key)
                    projects = _decode(pipe.hget(key, PROJECTS_FIELD))
                    updated, result = mutation(projects)
                    pipe.multi()
                    pipe.hset(key, PROJECTS_FIELD, _encode(updated))
                    pipe.execute()
                    return result
                except WatchError:
                    logger.debug("project list for %s changed during update (attempt %d)", owner, attempt + 1)
                    continue
        raise StoreConflict(f"could not update projects of {owner} after {self._max_retries} attempts")


__all__ = ["RedisProjectStore", "StoreConflict"]
