"""
Database setup script.

Creates the receipts table (PostgreSQL) or indexes (MongoDB) for the
configured data backend. Run this before starting the application.

Usage:
    python -m scripts.setup_db
"""

import asyncio
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from core.config import settings
from core.logging import configure_logging, get_logger
from core.storage import StorageError, create_receipt_repository


logger = get_logger(__name__)


async def setup_database() -> None:
    """Initialize storage for the configured data backend."""
    logger.info("Setting up data backend", data_backend=settings.data_backend)

    repository = create_receipt_repository(settings)
    try:
        await repository.setup()
    except StorageError as e:
        logger.error("Data backend setup failed", error=str(e))
        raise
    finally:
        await repository.close()

    logger.info("Data backend setup complete", data_backend=settings.data_backend)


if __name__ == "__main__":
    configure_logging()
    asyncio.run(setup_database())
