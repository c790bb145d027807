from __future__ import annotations

from fastapi import APIRouter

from app.core.logging import SERVICE_NAME

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check() -> dict:
    """Liveness check used by load balancers and orchestrators.

    Does not touch the database; it still consumes a rate-limit token like
    every other route.
    """

    return {"status": "ok", "service": SERVICE_NAME}
