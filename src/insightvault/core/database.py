"""MongoDB connection lifecycle."""

from typing import Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo.errors import ConnectionFailure, PyMongoError, ServerSelectionTimeoutError

from insightvault.core.config import DatabaseConfig
from insightvault.core.logging import get_logger
from insightvault.repositories.data_records import DataRecordRepository
from insightvault.repositories.users import UserRepository

logger = get_logger(__name__)


def create_client(config: DatabaseConfig) -> AsyncIOMotorClient:
    """Create a pooled client. No connection is made until first use."""
    return AsyncIOMotorClient(
        config.url,
        serverSelectionTimeoutMS=config.server_selection_timeout_ms,
        maxPoolSize=config.max_pool_size,
        minPoolSize=config.min_pool_size,
        tz_aware=True,
    )


async def ping(database: AsyncIOMotorDatabase) -> bool:
    """Return True if the server answers a ping."""
    try:
        await database.command("ping")
        return True
    except PyMongoError as e:
        logger.error("MongoDB ping failed", error=str(e))
        return False


async def init_db(database: AsyncIOMotorDatabase) -> None:
    """Check connectivity and create the indexes every collection relies on."""
    try:
        await database.command("ping")
    except (ConnectionFailure, ServerSelectionTimeoutError) as e:
        logger.error("Failed to connect to MongoDB", database=database.name, error=str(e))
        raise

    await UserRepository(database).ensure_indexes()
    await DataRecordRepository(database).ensure_indexes()
    logger.info("Database initialized successfully", database=database.name)


async def close_db(client: Optional[AsyncIOMotorClient]) -> None:
    """Close database connections."""
    if client is not None:
        client.close()
        logger.info("Database connections closed")
