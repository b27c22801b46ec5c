"""
Image storage clients for receipt photos.

Exports the abstract interface and implementations.
"""

from tools.image_storage.base import (
    ImageStorageClient,
    ImageStorageError,
    ImageTooLargeError,
    InvalidImageError,
    UploadedImage,
)
from tools.image_storage.factory import ImageStorageBackend, create_image_storage
from tools.image_storage.mock_client import InMemoryImageStorage

__all__ = [
    "ImageStorageClient",
    "ImageStorageError",
    "ImageTooLargeError",
    "InvalidImageError",
    "UploadedImage",
    "ImageStorageBackend",
    "create_image_storage",
    "InMemoryImageStorage",
]
