"""
In-memory storage backend implementation.

Keeps receipts in a process-local dict. Intended for local development
and tests; nothing survives a restart.
"""

import asyncio
from datetime import datetime
from typing import Optional

from core.logging import get_logger
from core.storage.base import (
    BaseReceiptRepository,
    Receipt,
    ReceiptNotFoundError,
    ReceiptPage,
    build_page,
    decode_page_token,
    new_receipt_id,
)


logger = get_logger(__name__)


class InMemoryReceiptRepository(BaseReceiptRepository):
    """Dict-backed receipt repository."""

    def __init__(self):
        self._receipts: dict[str, Receipt] = {}
        self._lock = asyncio.Lock()

    async def setup(self) -> None:
        logger.info("In-memory receipt repository initialized")

    async def list(
        self,
        limit: int,
        page_token: Optional[str] = None,
    ) -> ReceiptPage:
        offset = decode_page_token(page_token)

        async with self._lock:
            ordered = sorted(
                self._receipts.values(),
                key=lambda r: (r.created_at, r.id),
                reverse=True,
            )

        rows = [Receipt.from_dict(r.to_dict()) for r in ordered[offset:offset + limit + 1]]
        return build_page(rows, offset, limit)

    async def create(
        self,
        fields: dict[str, str],
        image_url: Optional[str] = None,
    ) -> Receipt:
        receipt = Receipt(
            id=new_receipt_id(),
            fields=dict(fields),
            image_url=image_url,
        )

        async with self._lock:
            self._receipts[receipt.id] = receipt

        logger.debug("Receipt created", receipt_id=receipt.id)
        return Receipt.from_dict(receipt.to_dict())

    async def read(self, receipt_id: str) -> Receipt:
        async with self._lock:
            receipt = self._receipts.get(receipt_id)

        if receipt is None:
            raise ReceiptNotFoundError(receipt_id)

        # Copy so callers can't mutate stored state
        return Receipt.from_dict(receipt.to_dict())

    async def update(
        self,
        receipt_id: str,
        fields: dict[str, str],
        image_url: Optional[str] = None,
    ) -> Receipt:
        async with self._lock:
            receipt = self._receipts.get(receipt_id)
            if receipt is None:
                raise ReceiptNotFoundError(receipt_id)

            receipt.fields.update(fields)
            if image_url is not None:
                receipt.image_url = image_url
            receipt.updated_at = datetime.utcnow()
            updated = Receipt.from_dict(receipt.to_dict())

        logger.debug("Receipt updated", receipt_id=receipt_id)
        return updated

    async def delete(self, receipt_id: str) -> None:
        async with self._lock:
            if self._receipts.pop(receipt_id, None) is None:
                raise ReceiptNotFoundError(receipt_id)

        logger.debug("Receipt deleted", receipt_id=receipt_id)

    async def ping(self) -> bool:
        return True

    async def close(self) -> None:
        async with self._lock:
            self._receipts.clear()
        logger.info("In-memory receipt repository closed")
