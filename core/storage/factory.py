"""
Storage factory for creating receipt repository instances.

This module provides the factory function that picks the receipt
storage implementation based on configuration.
"""

from enum import Enum
from typing import TYPE_CHECKING

from core.logging import get_logger
from core.storage.base import BaseReceiptRepository


if TYPE_CHECKING:
    from core.config import Settings


logger = get_logger(__name__)


class DataBackend(str, Enum):
    """Supported data backends."""
    MEMORY = "memory"
    MONGODB = "mongodb"
    POSTGRES = "postgres"


def get_data_backend(settings: "Settings") -> DataBackend:
    """
    Determine which data backend to use based on settings.

    Args:
        settings: Application settings

    Returns:
        The configured data backend
    """
    backend_str = settings.data_backend.lower()

    try:
        return DataBackend(backend_str)
    except ValueError:
        raise ValueError(
            f"Unsupported data backend: {backend_str}. "
            f"Supported backends: {[b.value for b in DataBackend]}"
        )


def create_receipt_repository(settings: "Settings") -> BaseReceiptRepository:
    """
    Create a receipt repository instance based on settings.

    Args:
        settings: Application settings

    Returns:
        Configured repository instance (not yet initialized)
    """
    backend = get_data_backend(settings)

    if backend == DataBackend.MEMORY:
        from core.storage.memory import InMemoryReceiptRepository

        logger.info("Creating in-memory receipt repository")
        return InMemoryReceiptRepository()

    elif backend == DataBackend.MONGODB:
        from core.storage.mongodb import MongoDBReceiptRepository

        logger.info(
            "Creating MongoDB receipt repository",
            database=settings.mongodb_database,
        )
        return MongoDBReceiptRepository(
            connection_string=settings.mongodb_url,
            database_name=settings.mongodb_database,
        )

    elif backend == DataBackend.POSTGRES:
        from core.storage.postgres import PostgresReceiptRepository

        logger.info("Creating PostgreSQL receipt repository")
        return PostgresReceiptRepository(
            async_connection_string=settings.postgres_async_url,
            echo=settings.debug and settings.is_development,
        )

    else:
        raise ValueError(f"Unsupported backend: {backend}")
