"""
Storage abstraction layer.

Provides pluggable backends for receipt persistence.

Supported backends:
- MongoDB (default)
- PostgreSQL
- In-memory (development and tests)
"""

from core.storage.base import (
    BaseReceiptRepository,
    InvalidPageTokenError,
    Receipt,
    ReceiptNotFoundError,
    ReceiptPage,
    StorageError,
)
from core.storage.factory import (
    create_receipt_repository,
    get_data_backend,
    DataBackend,
)

__all__ = [
    # Abstract interface and records
    "BaseReceiptRepository",
    "Receipt",
    "ReceiptPage",
    # Errors
    "StorageError",
    "ReceiptNotFoundError",
    "InvalidPageTokenError",
    # Factory functions
    "create_receipt_repository",
    "get_data_backend",
    "DataBackend",
]
