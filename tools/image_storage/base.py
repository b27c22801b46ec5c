"""
Abstract base class for receipt image storage clients.

This defines the contract that all image storage implementations must
follow, whether in-memory for tests or a real cloud bucket.

Uploaded images are made publicly readable; the returned public URL is
what gets stored on the receipt.
"""

import re
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import PurePosixPath, PureWindowsPath
from typing import Optional


DEFAULT_MAX_IMAGE_SIZE = 5 * 1024 * 1024  # 5MB

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


@dataclass
class UploadedImage:
    """Result of a successful upload."""
    object_name: str
    public_url: str
    content_type: str
    size: int


class ImageStorageError(Exception):
    """Base exception for image storage operations."""
    status_code = 500


class ImageTooLargeError(ImageStorageError):
    """Upload exceeds the configured size limit."""
    status_code = 413

    def __init__(self, max_size: int):
        # Uploads are read only up to the limit, so the full size is unknown
        super().__init__(f"Image is too large (limit {max_size} bytes)")
        self.max_size = max_size


class InvalidImageError(ImageStorageError):
    """Upload is not an image."""
    status_code = 400


def validate_image(
    data: bytes,
    content_type: Optional[str],
    max_size: int = DEFAULT_MAX_IMAGE_SIZE,
) -> None:
    """
    Check an upload before it is sent to storage.

    Raises:
        ImageTooLargeError: If data is larger than max_size
        InvalidImageError: If content_type is not an image type
    """
    if len(data) > max_size:
        raise ImageTooLargeError(max_size)
    if not content_type or not content_type.startswith("image/"):
        raise InvalidImageError(
            f"Unsupported content type: {content_type or 'unknown'}"
        )


def build_object_name(filename: str, now_ms: Optional[int] = None) -> str:
    """
    Name an uploaded object: upload time in epoch millis + original filename.

    Only the base name of the client-supplied filename is kept, with
    characters outside [A-Za-z0-9._-] replaced by underscores.
    """
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    # Browsers on Windows may send the full client path
    basename = PurePosixPath(PureWindowsPath(filename).name).name
    safe_name = _UNSAFE_CHARS.sub("_", basename).strip("._") or "image"
    return f"{now_ms}{safe_name}"


class ImageStorageClient(ABC):
    """
    Abstract interface for image storage clients.

    Usage:
        storage = InMemoryImageStorage()
        image = await storage.upload("lunch.jpg", data, "image/jpeg")
        receipt_fields["image_url"] = image.public_url
    """

    def __init__(self, max_size: int = DEFAULT_MAX_IMAGE_SIZE):
        self.max_size = max_size

    async def upload(
        self,
        filename: str,
        data: bytes,
        content_type: Optional[str],
    ) -> UploadedImage:
        """
        Validate and store an image, returning its public location.

        Raises:
            ImageTooLargeError: If data exceeds max_size
            InvalidImageError: If content_type is not image/*
            ImageStorageError: If the backend rejects the upload
        """
        validate_image(data, content_type, self.max_size)
        object_name = build_object_name(filename)
        public_url = await self._put_object(object_name, data, content_type)
        return UploadedImage(
            object_name=object_name,
            public_url=public_url,
            content_type=content_type,
            size=len(data),
        )

    @abstractmethod
    async def _put_object(
        self,
        object_name: str,
        data: bytes,
        content_type: str,
    ) -> str:
        """
        Write the object, make it public and return its public URL.

        Raises:
            ImageStorageError: If the write fails
        """
        pass

    async def close(self) -> None:
        """Clean up resources."""
        pass
