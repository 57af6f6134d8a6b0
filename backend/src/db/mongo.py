"""MongoDB access for verification jobs using the Motor async driver.

Only the job store talks to MongoDB. Quote extraction and matching never
touch the database.
"""

import logging
import os

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo.errors import PyMongoError

logger = logging.getLogger(__name__)

# Connection settings, overridable through the environment (.env supported)
MONGODB_URL = os.getenv("MONGODB_URL", "mongodb://localhost:27017")
DATABASE_NAME = os.getenv("DATABASE_NAME", "quote_checker")

# Fail fast when MongoDB is unreachable
SERVER_TIMEOUT_MS = 5000

_client: AsyncIOMotorClient | None = None


async def get_database() -> AsyncIOMotorDatabase:
    """Return the configured database, connecting lazily on first use."""
    global _client
    if _client is None:
        logger.info(f"Connecting to MongoDB database '{DATABASE_NAME}'")
        _client = AsyncIOMotorClient(
            MONGODB_URL,
            serverSelectionTimeoutMS=SERVER_TIMEOUT_MS,
            connectTimeoutMS=SERVER_TIMEOUT_MS,
        )
    return _client[DATABASE_NAME]


async def get_collection(name: str) -> AsyncIOMotorCollection:
    """Return a collection of the configured database."""
    db = await get_database()
    return db[name]


async def ping_database() -> bool:
    """Check that MongoDB answers a ping."""
    try:
        db = await get_database()
        await db.command("ping")
        return True
    except PyMongoError as e:
        logger.warning(f"MongoDB ping failed: {e}")
        return False


async def close_database() -> None:
    """Close the client on shutdown."""
    global _client
    if _client is not None:
        _client.close()
        _client = None


def set_client(client: AsyncIOMotorClient | None) -> None:
    """Swap the client (tests install a mongomock client here)."""
    global _client
    _client = client
