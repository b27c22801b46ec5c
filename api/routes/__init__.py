"""
API route modules.
"""

from api.routes.receipts import router as receipts_router
from api.routes.health import router as health_router

__all__ = ["receipts_router", "health_router"]
