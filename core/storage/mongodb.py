"""
MongoDB storage backend implementation.

Stores each receipt as one document in the ``receipts`` collection,
keyed by the receipt id.
"""

from datetime import datetime
from typing import Any, Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import DESCENDING
from pymongo.errors import PyMongoError

from core.logging import get_logger
from core.storage.base import (
    BaseReceiptRepository,
    Receipt,
    ReceiptNotFoundError,
    ReceiptPage,
    StorageError,
    build_page,
    decode_page_token,
    new_receipt_id,
)


logger = get_logger(__name__)


def _document_to_receipt(doc: dict[str, Any]) -> Receipt:
    doc = dict(doc)
    doc["id"] = doc.pop("_id")
    return Receipt.from_dict(doc)


class MongoDBReceiptRepository(BaseReceiptRepository):
    """
    MongoDB-based receipt repository.

    Uses motor for non-blocking access from request handlers.
    """

    COLLECTION_NAME = "receipts"

    def __init__(
        self,
        connection_string: str,
        database_name: str = "receipts",
    ):
        """
        Initialize MongoDB receipt repository.

        Args:
            connection_string: MongoDB connection URI
            database_name: Database name
        """
        self._connection_string = connection_string
        self._database_name = database_name
        self._client: Optional[AsyncIOMotorClient] = None
        self._db: Optional[AsyncIOMotorDatabase] = None

    async def setup(self) -> None:
        """Initialize connection and create indexes."""
        self._client = AsyncIOMotorClient(self._connection_string)
        self._db = self._client[self._database_name]

        try:
            await self._collection.create_index(
                [("created_at", DESCENDING), ("_id", DESCENDING)],
                name="idx_created_at",
            )
        except PyMongoError as e:
            raise StorageError(f"Failed to initialize MongoDB: {e}") from e

        logger.info(
            "MongoDB receipt repository initialized",
            database=self._database_name,
            collection=self.COLLECTION_NAME,
        )

    @property
    def _collection(self):
        """Get the receipts collection."""
        if self._db is None:
            raise RuntimeError(
                "Repository not initialized. Call setup() first."
            )
        return self._db[self.COLLECTION_NAME]

    async def list(
        self,
        limit: int,
        page_token: Optional[str] = None,
    ) -> ReceiptPage:
        offset = decode_page_token(page_token)

        try:
            cursor = (
                self._collection.find({})
                .sort([("created_at", DESCENDING), ("_id", DESCENDING)])
                .skip(offset)
                .limit(limit + 1)
            )
            docs = await cursor.to_list(length=limit + 1)
        except PyMongoError as e:
            raise StorageError(f"Failed to list receipts: {e}") from e

        return build_page([_document_to_receipt(doc) for doc in docs], offset, limit)

    async def create(
        self,
        fields: dict[str, str],
        image_url: Optional[str] = None,
    ) -> Receipt:
        receipt = Receipt(id=new_receipt_id(), fields=dict(fields), image_url=image_url)
        doc = receipt.to_dict()
        doc["_id"] = doc.pop("id")

        try:
            await self._collection.insert_one(doc)
        except PyMongoError as e:
            raise StorageError(f"Failed to create receipt: {e}") from e

        logger.debug("Receipt created", receipt_id=receipt.id)
        return receipt

    async def read(self, receipt_id: str) -> Receipt:
        try:
            doc = await self._collection.find_one({"_id": receipt_id})
        except PyMongoError as e:
            raise StorageError(f"Failed to read receipt: {e}") from e

        if doc is None:
            raise ReceiptNotFoundError(receipt_id)
        return _document_to_receipt(doc)

    async def update(
        self,
        receipt_id: str,
        fields: dict[str, str],
        image_url: Optional[str] = None,
    ) -> Receipt:
        # Dotted paths merge into the stored fields instead of replacing them
        update_fields: dict[str, Any] = {
            f"fields.{name}": value for name, value in fields.items()
        }
        update_fields["updated_at"] = datetime.utcnow()
        if image_url is not None:
            update_fields["image_url"] = image_url

        try:
            result = await self._collection.update_one(
                {"_id": receipt_id},
                {"$set": update_fields},
            )
        except PyMongoError as e:
            raise StorageError(f"Failed to update receipt: {e}") from e

        if result.matched_count == 0:
            raise ReceiptNotFoundError(receipt_id)

        logger.debug("Receipt updated", receipt_id=receipt_id)
        return await self.read(receipt_id)

    async def delete(self, receipt_id: str) -> None:
        try:
            result = await self._collection.delete_one({"_id": receipt_id})
        except PyMongoError as e:
            raise StorageError(f"Failed to delete receipt: {e}") from e

        if result.deleted_count == 0:
            raise ReceiptNotFoundError(receipt_id)

        logger.debug("Receipt deleted", receipt_id=receipt_id)

    async def ping(self) -> bool:
        if self._client is None:
            return False
        try:
            await self._client.admin.command("ping")
        except PyMongoError as e:
            logger.warning("MongoDB ping failed", error=str(e))
            return False
        return True

    async def close(self) -> None:
        """Close MongoDB connection."""
        if self._client is not None:
            self._client.close()
            self._client = None
            self._db = None
        logger.info("MongoDB receipt repository closed")
