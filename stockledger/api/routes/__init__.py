"""API routes."""

from stockledger.api.routes.health import router as health_router
from stockledger.api.routes.materials import router as materials_router
from stockledger.api.routes.movements import router as movements_router
from stockledger.api.routes.projects import router as projects_router
from stockledger.api.routes.summary import router as summary_router

__all__ = [
    "health_router",
    "materials_router",
    "projects_router",
    "movements_router",
    "summary_router",
]
