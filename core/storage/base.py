"""
Abstract base classes for receipt storage backends.

This module defines the contract that all storage implementations must follow,
enabling the data backend to be selected at runtime from configuration.
"""

import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional


def new_receipt_id() -> str:
    """Generate an id for a receipt that is about to be persisted."""
    return uuid.uuid4().hex


@dataclass
class Receipt:
    """
    A stored receipt.

    ``fields`` holds the submitted form data as-is; the storage layer
    does not interpret it. ``id`` is set once the receipt is persisted.
    """
    id: Optional[str] = None
    fields: dict[str, str] = field(default_factory=dict)
    image_url: Optional[str] = None
    created_at: datetime = field(default_factory=datetime.utcnow)
    updated_at: datetime = field(default_factory=datetime.utcnow)

    def get(self, name: str, default: str = "") -> str:
        """Look up a form field, for use in templates."""
        return self.fields.get(name, default)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "fields": dict(self.fields),
            "image_url": self.image_url,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Receipt":
        """Create from dictionary."""
        return cls(
            id=data.get("id"),
            fields=dict(data.get("fields") or {}),
            image_url=data.get("image_url"),
            created_at=data.get("created_at", datetime.utcnow()),
            updated_at=data.get("updated_at", datetime.utcnow()),
        )


@dataclass
class ReceiptPage:
    """One page of receipts plus the token for the page after it."""
    receipts: list[Receipt]
    next_page_token: Optional[str] = None


class StorageError(Exception):
    """Base exception for receipt storage operations."""
    status_code = 500


class ReceiptNotFoundError(StorageError):
    """Receipt id doesn't exist in the data backend."""
    status_code = 404

    def __init__(self, receipt_id: str):
        super().__init__("Not found")
        self.receipt_id = receipt_id


class InvalidPageTokenError(StorageError):
    """Page token could not be decoded."""
    status_code = 400

    def __init__(self, token: str):
        super().__init__(f"Invalid page token: {token!r}")
        self.token = token


def decode_page_token(page_token: Optional[str]) -> int:
    """
    Turn a page token into a list offset.

    Tokens are plain non-negative integers; a missing token means
    the first page.
    """
    if page_token is None or page_token == "":
        return 0
    try:
        offset = int(page_token)
    except ValueError:
        raise InvalidPageTokenError(page_token)
    if offset < 0:
        raise InvalidPageTokenError(page_token)
    return offset


def build_page(rows: list[Receipt], offset: int, limit: int) -> ReceiptPage:
    """
    Build a page from up to ``limit + 1`` rows fetched at ``offset``.

    The extra row only signals that another page exists; it is not returned.
    """
    has_more = len(rows) > limit
    return ReceiptPage(
        receipts=rows[:limit],
        next_page_token=str(offset + limit) if has_more else None,
    )


class BaseReceiptRepository(ABC):
    """
    Abstract base class for receipt storage.

    Every operation raises a StorageError subclass on failure so
    route handlers can forward errors to a single handler.
    """

    @abstractmethod
    async def setup(self) -> None:
        """
        Initialize the storage (connect, create tables/collections/indexes).

        This should be idempotent.
        """
        pass

    @abstractmethod
    async def list(
        self,
        limit: int,
        page_token: Optional[str] = None,
    ) -> ReceiptPage:
        """
        List receipts, newest first.

        Returns at most ``limit`` receipts; ``next_page_token`` is set
        only when more receipts exist after this page.

        Raises:
            InvalidPageTokenError: If page_token is malformed
        """
        pass

    @abstractmethod
    async def create(
        self,
        fields: dict[str, str],
        image_url: Optional[str] = None,
    ) -> Receipt:
        """Persist a new receipt and return it with its assigned id."""
        pass

    @abstractmethod
    async def read(self, receipt_id: str) -> Receipt:
        """
        Get a receipt by id.

        Raises:
            ReceiptNotFoundError: If receipt_id doesn't exist
        """
        pass

    @abstractmethod
    async def update(
        self,
        receipt_id: str,
        fields: dict[str, str],
        image_url: Optional[str] = None,
    ) -> Receipt:
        """
        Merge fields into an existing receipt.

        The image URL is only replaced when a new one is given.

        Raises:
            ReceiptNotFoundError: If receipt_id doesn't exist
        """
        pass

    @abstractmethod
    async def delete(self, receipt_id: str) -> None:
        """
        Delete a receipt.

        Raises:
            ReceiptNotFoundError: If receipt_id doesn't exist
        """
        pass

    @abstractmethod
    async def ping(self) -> bool:
        """Check that the backend is reachable."""
        pass

    @abstractmethod
    async def close(self) -> None:
        """Clean up resources."""
        pass
