from __future__ import annotations

from app.api.routes.articles import router as articles_router
from app.api.routes.health import router as health_router

__all__ = ["articles_router", "health_router"]
