"""
In-memory image storage for local development and tests.
"""

import asyncio
from dataclasses import dataclass
from typing import Optional

from core.logging import get_logger
from tools.image_storage.base import (
    DEFAULT_MAX_IMAGE_SIZE,
    ImageStorageClient,
    ImageStorageError,
)


logger = get_logger(__name__)


@dataclass
class StoredObject:
    data: bytes
    content_type: str


class InMemoryImageStorage(ImageStorageClient):
    """
    Keeps uploaded objects in a dict.

    Set ``fail_with`` to make the next uploads raise, for exercising
    error handling.
    """

    def __init__(
        self,
        bucket: str = "receipts-images",
        public_url_base: str = "https://storage.example.test",
        max_size: int = DEFAULT_MAX_IMAGE_SIZE,
    ):
        super().__init__(max_size=max_size)
        self.bucket = bucket
        self.public_url_base = public_url_base.rstrip("/")
        self.objects: dict[str, StoredObject] = {}
        self.fail_with: Optional[str] = None
        self._lock = asyncio.Lock()

    async def _put_object(
        self,
        object_name: str,
        data: bytes,
        content_type: str,
    ) -> str:
        if self.fail_with:
            raise ImageStorageError(self.fail_with)

        async with self._lock:
            self.objects[object_name] = StoredObject(data=data, content_type=content_type)

        logger.debug("Image stored in memory", object_name=object_name, size=len(data))
        return f"{self.public_url_base}/{self.bucket}/{object_name}"
