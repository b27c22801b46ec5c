"""
PostgreSQL storage backend implementation.

Stores receipts in a single ``receipts`` table; the submitted form
fields live in a JSONB column so new fields need no migration.
"""

import json
from datetime import datetime
from typing import Any, Optional

from sqlalchemy import bindparam, text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

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


def _row_to_receipt(row: Any) -> Receipt:
    data = dict(row)
    if isinstance(data.get("fields"), str):
        data["fields"] = json.loads(data["fields"])
    return Receipt.from_dict(data)


class PostgresReceiptRepository(BaseReceiptRepository):
    """
    PostgreSQL-based receipt repository.

    Uses SQLAlchemy async for database operations.
    """

    def __init__(
        self,
        async_connection_string: str,
        echo: bool = False,
    ):
        """
        Initialize PostgreSQL receipt repository.

        Args:
            async_connection_string: PostgreSQL async connection URI (asyncpg format)
            echo: Whether to echo SQL statements
        """
        self._connection_string = async_connection_string
        self._echo = echo
        self._engine: Optional[AsyncEngine] = None
        self._session_factory: Optional[async_sessionmaker[AsyncSession]] = None

    async def setup(self) -> None:
        """Initialize connection and create table/indexes if not exists."""
        self._engine = create_async_engine(
            self._connection_string,
            echo=self._echo,
            pool_pre_ping=True,
            pool_size=5,
            max_overflow=10,
        )

        self._session_factory = async_sessionmaker(
            bind=self._engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

        try:
            async with self._engine.begin() as conn:
                await conn.execute(text("""
                    CREATE TABLE IF NOT EXISTS receipts (
                        id VARCHAR(64) PRIMARY KEY,
                        fields JSONB NOT NULL DEFAULT '{}'::jsonb,
                        image_url TEXT,
                        created_at TIMESTAMP NOT NULL DEFAULT (NOW() AT TIME ZONE 'utc'),
                        updated_at TIMESTAMP NOT NULL DEFAULT (NOW() AT TIME ZONE 'utc')
                    )
                """))

                await conn.execute(text("""
                    CREATE INDEX IF NOT EXISTS idx_receipts_created_at
                    ON receipts(created_at DESC, id DESC)
                """))
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to initialize PostgreSQL: {e}") from e

        logger.info("PostgreSQL receipt repository initialized")

    async def _get_session(self):
        """Get a new session."""
        if self._session_factory is None:
            raise RuntimeError(
                "Repository not initialized. Call setup() first."
            )
        return self._session_factory()

    async def list(
        self,
        limit: int,
        page_token: Optional[str] = None,
    ) -> ReceiptPage:
        offset = decode_page_token(page_token)

        try:
            async with await self._get_session() as session:
                result = await session.execute(
                    text("""
                        SELECT id, fields, image_url, created_at, updated_at
                        FROM receipts
                        ORDER BY created_at DESC, id DESC
                        LIMIT :limit OFFSET :offset
                    """),
                    {"limit": limit + 1, "offset": offset},
                )
                rows = result.mappings().all()
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to list receipts: {e}") from e

        return build_page([_row_to_receipt(row) for row in rows], offset, limit)

    async def create(
        self,
        fields: dict[str, str],
        image_url: Optional[str] = None,
    ) -> Receipt:
        receipt = Receipt(id=new_receipt_id(), fields=dict(fields), image_url=image_url)

        statement = text("""
            INSERT INTO receipts (id, fields, image_url, created_at, updated_at)
            VALUES (:id, :fields, :image_url, :created_at, :updated_at)
        """).bindparams(bindparam("fields", type_=JSONB))

        try:
            async with await self._get_session() as session:
                await session.execute(statement, receipt.to_dict())
                await session.commit()
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to create receipt: {e}") from e

        logger.debug("Receipt created", receipt_id=receipt.id)
        return receipt

    async def read(self, receipt_id: str) -> Receipt:
        try:
            async with await self._get_session() as session:
                result = await session.execute(
                    text("""
                        SELECT id, fields, image_url, created_at, updated_at
                        FROM receipts WHERE id = :id
                    """),
                    {"id": receipt_id},
                )
                row = result.mappings().first()
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to read receipt: {e}") from e

        if row is None:
            raise ReceiptNotFoundError(receipt_id)
        return _row_to_receipt(row)

    async def update(
        self,
        receipt_id: str,
        fields: dict[str, str],
        image_url: Optional[str] = None,
    ) -> Receipt:
        # jsonb || merges keys, later values win
        set_parts = ["fields = fields || :fields", "updated_at = :now"]
        params: dict[str, Any] = {
            "id": receipt_id,
            "fields": dict(fields),
            "now": datetime.utcnow(),
        }
        if image_url is not None:
            set_parts.append("image_url = :image_url")
            params["image_url"] = image_url

        statement = text(f"""
            UPDATE receipts
            SET {', '.join(set_parts)}
            WHERE id = :id
        """).bindparams(bindparam("fields", type_=JSONB))

        try:
            async with await self._get_session() as session:
                result = await session.execute(statement, params)
                await session.commit()
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to update receipt: {e}") from e

        if result.rowcount == 0:
            raise ReceiptNotFoundError(receipt_id)

        logger.debug("Receipt updated", receipt_id=receipt_id)
        return await self.read(receipt_id)

    async def delete(self, receipt_id: str) -> None:
        try:
            async with await self._get_session() as session:
                result = await session.execute(
                    text("DELETE FROM receipts WHERE id = :id"),
                    {"id": receipt_id},
                )
                await session.commit()
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to delete receipt: {e}") from e

        if result.rowcount == 0:
            raise ReceiptNotFoundError(receipt_id)

        logger.debug("Receipt deleted", receipt_id=receipt_id)

    async def ping(self) -> bool:
        if self._engine is None:
            return False
        try:
            async with self._engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except SQLAlchemyError as e:
            logger.warning("PostgreSQL ping failed", error=str(e))
            return False
        return True

    async def close(self) -> None:
        """Close database engine."""
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            self._session_factory = None
        logger.info("PostgreSQL receipt repository closed")
