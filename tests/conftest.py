"""
Pytest configuration and fixtures.
"""

import os
import sys
from pathlib import Path

import pytest

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

# Set test environment before any settings are loaded
os.environ["DATA_BACKEND"] = "memory"
os.environ["IMAGE_STORAGE_BACKEND"] = "memory"
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("DEBUG", "true")

from core.storage.memory import InMemoryReceiptRepository  # noqa: E402
from tools.image_storage.mock_client import InMemoryImageStorage  # noqa: E402


@pytest.fixture
def repository():
    """Fresh in-memory receipt repository."""
    return InMemoryReceiptRepository()


@pytest.fixture
def image_storage():
    """In-memory image storage with a small size limit."""
    return InMemoryImageStorage(bucket="test-bucket", max_size=1024)
