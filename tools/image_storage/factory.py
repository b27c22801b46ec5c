"""
Factory for image storage clients.
"""

from enum import Enum
from typing import TYPE_CHECKING

from core.logging import get_logger
from tools.image_storage.base import ImageStorageClient


if TYPE_CHECKING:
    from core.config import Settings


logger = get_logger(__name__)


class ImageStorageBackend(str, Enum):
    """Supported image storage backends."""
    MEMORY = "memory"
    CLOUD = "cloud"


def create_image_storage(settings: "Settings") -> ImageStorageClient:
    """
    Create an image storage client based on settings.

    Args:
        settings: Application settings

    Returns:
        Configured image storage client
    """
    backend_str = settings.image_storage_backend.lower()
    try:
        backend = ImageStorageBackend(backend_str)
    except ValueError:
        raise ValueError(
            f"Unsupported image storage backend: {backend_str}. "
            f"Supported backends: {[b.value for b in ImageStorageBackend]}"
        )

    if backend == ImageStorageBackend.MEMORY:
        from tools.image_storage.mock_client import InMemoryImageStorage

        logger.info("Creating in-memory image storage")
        return InMemoryImageStorage(
            bucket=settings.cloud_bucket,
            public_url_base=settings.cloud_public_url_base,
            max_size=settings.max_image_size_bytes,
        )

    from tools.image_storage.cloud_client import CloudImageStorage

    logger.info(
        "Creating cloud image storage",
        bucket=settings.cloud_bucket,
        endpoint=settings.cloud_storage_endpoint,
    )
    return CloudImageStorage(
        bucket=settings.cloud_bucket,
        endpoint=settings.cloud_storage_endpoint,
        public_url_base=settings.cloud_public_url_base,
        region=settings.cloud_storage_region,
        access_key_id=settings.cloud_access_key_id,
        secret_access_key=settings.cloud_secret_access_key,
        max_size=settings.max_image_size_bytes,
    )
