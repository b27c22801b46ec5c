"""
FastAPI dependencies for dependency injection.

Provides singleton instances of the storage services to route handlers.
"""

from typing import Optional

from core.storage import BaseReceiptRepository
from tools.image_storage import ImageStorageClient


# Global singletons (set during app lifespan)
_receipt_repository: Optional[BaseReceiptRepository] = None
_image_storage: Optional[ImageStorageClient] = None


def set_receipt_repository(repository: Optional[BaseReceiptRepository]) -> None:
    """Set the global receipt repository instance."""
    global _receipt_repository
    _receipt_repository = repository


def set_image_storage(storage: Optional[ImageStorageClient]) -> None:
    """Set the global image storage instance."""
    global _image_storage
    _image_storage = storage


async def get_receipt_repository() -> BaseReceiptRepository:
    """
    Dependency that provides the configured receipt repository.

    Usage:
        @router.get("/receipts")
        async def list_receipts(
            repository: BaseReceiptRepository = Depends(get_receipt_repository)
        ):
            ...
    """
    if _receipt_repository is None:
        raise RuntimeError("Receipt repository not initialized")
    return _receipt_repository


async def get_image_storage() -> ImageStorageClient:
    """
    Dependency that provides the image storage client.
    """
    if _image_storage is None:
        raise RuntimeError("Image storage not initialized")
    return _image_storage
