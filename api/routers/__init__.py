"""API routers (preferred import path)."""

from .problems import router as problems_router
from .admin import router as admin_router
from .system import router as system_router
from .submissions import router as submissions_router

__all__ = [
    "problems_router",
    "submissions_router",
    "admin_router",
    "system_router",
]
