"""
Health check endpoints.

Provides endpoints for monitoring and load balancer health checks.
"""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from api.dependencies import get_receipt_repository
from core.config import settings
from core.logging import get_logger
from core.storage import BaseReceiptRepository


logger = get_logger(__name__)
router = APIRouter(tags=["Health"])


@router.get("/health")
async def health_check() -> dict:
    """
    Basic health check.

    Returns 200 if the service is running.
    Used by load balancers and orchestration systems.
    """
    return {
        "status": "healthy",
        "service": "receipts",
    }


@router.get("/ready")
async def readiness_check(
    repository: BaseReceiptRepository = Depends(get_receipt_repository),
) -> JSONResponse:
    """
    Readiness check.

    Returns 200 once the data backend answers, 503 otherwise.
    """
    database_ok = await repository.ping()
    if not database_ok:
        logger.warning("Readiness check failed", data_backend=settings.data_backend)

    return JSONResponse(
        status_code=200 if database_ok else 503,
        content={
            "status": "ready" if database_ok else "unavailable",
            "checks": {
                "database": "ok" if database_ok else "unreachable",
            },
            "data_backend": settings.data_backend,
        },
    )
