"""
Tests for backend selection from settings.

Backends are only constructed here, never set up, so no database or
bucket needs to be reachable.
"""

import pytest

from core.config import Settings
from core.storage import DataBackend, create_receipt_repository, get_data_backend
from core.storage.memory import InMemoryReceiptRepository
from core.storage.mongodb import MongoDBReceiptRepository
from core.storage.postgres import PostgresReceiptRepository
from tools.image_storage import InMemoryImageStorage, create_image_storage
from tools.image_storage.cloud_client import CloudImageStorage


def make_settings(**overrides) -> Settings:
    return Settings(_env_file=None, **overrides)


@pytest.mark.parametrize(
    "backend, expected_type",
    [
        ("memory", InMemoryReceiptRepository),
        ("mongodb", MongoDBReceiptRepository),
        ("postgres", PostgresReceiptRepository),
    ],
)
def test_create_receipt_repository(backend, expected_type):
    repository = create_receipt_repository(make_settings(data_backend=backend))
    assert isinstance(repository, expected_type)


def test_get_data_backend_is_case_insensitive():
    settings = make_settings(data_backend="postgres")
    settings.data_backend = "POSTGRES"
    assert get_data_backend(settings) == DataBackend.POSTGRES


def test_unknown_data_backend():
    settings = make_settings()
    settings.data_backend = "datastore"

    with pytest.raises(ValueError, match="Unsupported data backend: datastore"):
        get_data_backend(settings)


def test_settings_backend_helpers():
    settings = make_settings(data_backend="postgres")
    assert settings.is_postgres
    assert not settings.is_mongodb
    assert not settings.is_memory


def test_create_memory_image_storage():
    storage = create_image_storage(
        make_settings(
            image_storage_backend="memory",
            max_image_size_bytes=100,
            cloud_bucket="my-bucket",
            cloud_public_url_base="https://cdn.example.test/",
        )
    )
    assert isinstance(storage, InMemoryImageStorage)
    assert storage.max_size == 100
    assert storage.public_url_base == "https://cdn.example.test"
    assert storage.bucket == "my-bucket"


def test_create_cloud_image_storage():
    storage = create_image_storage(
        make_settings(
            image_storage_backend="cloud",
            cloud_bucket="my-bucket",
            cloud_access_key_id="key",
            cloud_secret_access_key="secret",
        )
    )
    assert isinstance(storage, CloudImageStorage)
    assert storage.bucket == "my-bucket"
    assert storage.public_url("1a.png") == "https://storage.googleapis.com/my-bucket/1a.png"


def test_unknown_image_storage_backend():
    settings = make_settings()
    settings.image_storage_backend = "ftp"

    with pytest.raises(ValueError, match="Unsupported image storage backend"):
        create_image_storage(settings)
