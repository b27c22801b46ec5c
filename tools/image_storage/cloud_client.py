"""
Cloud bucket image storage.

Talks to any S3-compatible object store through boto3. The defaults
point at Google Cloud Storage's XML interoperability endpoint, using
HMAC keys as the access key pair.
"""

import asyncio
from typing import Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from core.logging import get_logger
from tools.image_storage.base import (
    DEFAULT_MAX_IMAGE_SIZE,
    ImageStorageClient,
    ImageStorageError,
)


logger = get_logger(__name__)


class CloudImageStorage(ImageStorageClient):
    """Uploads receipt images to a public-read bucket."""

    def __init__(
        self,
        bucket: str,
        endpoint: str,
        public_url_base: str,
        region: Optional[str] = None,
        access_key_id: Optional[str] = None,
        secret_access_key: Optional[str] = None,
        max_size: int = DEFAULT_MAX_IMAGE_SIZE,
    ):
        """
        Initialize cloud image storage.

        Args:
            bucket: Bucket that holds receipt images
            endpoint: S3-compatible API endpoint
            public_url_base: Prefix for public object URLs
            region: Bucket region, if the provider needs one
            access_key_id: Access key (falls back to the boto3 credential chain)
            secret_access_key: Secret key
            max_size: Largest accepted upload in bytes
        """
        super().__init__(max_size=max_size)
        self.bucket = bucket
        self.public_url_base = public_url_base.rstrip("/")
        self._client = boto3.client(
            "s3",
            endpoint_url=endpoint,
            region_name=region,
            aws_access_key_id=access_key_id,
            aws_secret_access_key=secret_access_key,
            config=Config(
                s3={"addressing_style": "path"},
                retries={"max_attempts": 3, "mode": "standard"},
            ),
        )

    def public_url(self, object_name: str) -> str:
        return f"{self.public_url_base}/{self.bucket}/{object_name}"

    async def _put_object(
        self,
        object_name: str,
        data: bytes,
        content_type: str,
    ) -> str:
        # boto3 is blocking; keep it off the event loop
        try:
            await asyncio.to_thread(
                self._client.put_object,
                Bucket=self.bucket,
                Key=object_name,
                Body=data,
                ContentType=content_type,
                ACL="public-read",
            )
        except (BotoCoreError, ClientError) as e:
            logger.error(
                "Image upload failed",
                bucket=self.bucket,
                object_name=object_name,
                error=str(e),
            )
            raise ImageStorageError(f"Failed to upload image: {e}") from e

        logger.info(
            "Image uploaded",
            bucket=self.bucket,
            object_name=object_name,
            size=len(data),
        )
        return self.public_url(object_name)

    async def close(self) -> None:
        self._client.close()
