"""
Tests for image storage clients and upload helpers.
"""

from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from tools.image_storage.base import (
    DEFAULT_MAX_IMAGE_SIZE,
    ImageStorageError,
    ImageTooLargeError,
    InvalidImageError,
    build_object_name,
    validate_image,
)
from tools.image_storage.cloud_client import CloudImageStorage


class TestBuildObjectName:
    """Object names are upload time in millis followed by the filename."""

    def test_prefixes_timestamp(self):
        assert build_object_name("lunch.jpg", now_ms=1458000000000) == "1458000000000lunch.jpg"

    def test_strips_client_paths(self):
        assert build_object_name("C:\\Users\\me\\scan.png", now_ms=1) == "1scan.png"
        assert build_object_name("../../etc/scan.png", now_ms=1) == "1scan.png"

    def test_replaces_unsafe_characters(self):
        assert build_object_name("my receipt (1).jpg", now_ms=1) == "1my_receipt_1_.jpg"

    def test_falls_back_when_nothing_is_left(self):
        assert build_object_name("...", now_ms=7) == "7image"

    def test_uses_current_time_by_default(self):
        name = build_object_name("a.png")
        assert name.endswith("a.png")
        assert name[:-len("a.png")].isdigit()


class TestValidateImage:

    def test_default_limit_is_five_megabytes(self):
        assert DEFAULT_MAX_IMAGE_SIZE == 5 * 1024 * 1024

    def test_accepts_image_at_limit(self):
        validate_image(b"x" * 10, "image/png", max_size=10)

    def test_rejects_oversized(self):
        with pytest.raises(ImageTooLargeError) as exc_info:
            validate_image(b"x" * 11, "image/png", max_size=10)
        assert exc_info.value.status_code == 413
        assert str(exc_info.value) == "Image is too large (limit 10 bytes)"

    @pytest.mark.parametrize("content_type", [None, "", "application/pdf", "text/html"])
    def test_rejects_non_images(self, content_type):
        with pytest.raises(InvalidImageError) as exc_info:
            validate_image(b"data", content_type)
        assert exc_info.value.status_code == 400


@pytest.mark.asyncio
async def test_in_memory_upload(image_storage):
    """Test that uploads are stored and get a bucket-scoped public URL."""
    image = await image_storage.upload("scan.png", b"\x89PNG", "image/png")

    assert image.size == 4
    assert image.content_type == "image/png"
    assert image.object_name.endswith("scan.png")
    assert image.public_url == f"https://storage.example.test/test-bucket/{image.object_name}"
    assert image_storage.objects[image.object_name].data == b"\x89PNG"


@pytest.mark.asyncio
async def test_in_memory_upload_enforces_limit(image_storage):
    with pytest.raises(ImageTooLargeError):
        await image_storage.upload("big.png", b"x" * 2048, "image/png")

    assert image_storage.objects == {}


@pytest.mark.asyncio
async def test_in_memory_forced_failure(image_storage):
    image_storage.fail_with = "bucket unavailable"

    with pytest.raises(ImageStorageError, match="bucket unavailable"):
        await image_storage.upload("scan.png", b"data", "image/png")


@pytest.fixture
def cloud_storage():
    """Cloud storage with the boto3 client swapped for a mock."""
    storage = CloudImageStorage(
        bucket="receipts-images",
        endpoint="https://storage.googleapis.com",
        public_url_base="https://storage.googleapis.com/",
        access_key_id="test",
        secret_access_key="test",
    )
    storage._client = MagicMock()
    return storage


@pytest.mark.asyncio
async def test_cloud_upload_makes_object_public(cloud_storage):
    image = await cloud_storage.upload("scan.jpg", b"jpegdata", "image/jpeg")

    cloud_storage._client.put_object.assert_called_once_with(
        Bucket="receipts-images",
        Key=image.object_name,
        Body=b"jpegdata",
        ContentType="image/jpeg",
        ACL="public-read",
    )
    assert image.public_url == (
        f"https://storage.googleapis.com/receipts-images/{image.object_name}"
    )


@pytest.mark.asyncio
async def test_cloud_upload_wraps_client_errors(cloud_storage):
    cloud_storage._client.put_object.side_effect = ClientError(
        {"Error": {"Code": "AccessDenied", "Message": "Access Denied"}},
        "PutObject",
    )

    with pytest.raises(ImageStorageError) as exc_info:
        await cloud_storage.upload("scan.jpg", b"jpegdata", "image/jpeg")

    assert exc_info.value.status_code == 500
    assert "AccessDenied" in str(exc_info.value)
