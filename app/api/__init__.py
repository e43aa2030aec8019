"""Application API routers."""

from fastapi import APIRouter
from .routes.announcements import router as announcements_router
from .routes.projects import router as projects_router
from .routes.reagents import router as reagents_router

router = APIRouter()
router.include_router(projects_router)
router.include_router(reagents_router)
router.include_router(announcements_router)

__all__ = ["router"]
