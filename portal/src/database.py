"""
MongoDB client lifecycle.

One AsyncMongoClient is created per process during application startup
and closed on shutdown. Repositories receive the database handle from
the FastAPI dependencies.
"""

import structlog
from typing import Optional

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import ASCENDING, DESCENDING, AsyncMongoClient
from pymongo.asynchronous.database import AsyncDatabase

from portal.src.config import get_settings

logger = structlog.get_logger(__name__)

USERS_COLLECTION = "users"
FORMS_COLLECTION = "forms"
AUDIT_COLLECTION = "audit_logs"
CONTACT_COLLECTION = "contact_messages"

_client: Optional[AsyncMongoClient] = None


async def init_database() -> AsyncDatabase:
    """
    Initialize the MongoDB client and ensure indexes.

    Should be called during application startup.

    Returns:
        Database handle
    """
    global _client

    settings = get_settings()

    if _client is None:
        try:
            _client = AsyncMongoClient(
                settings.mongodb_url,
                serverSelectionTimeoutMS=settings.mongodb_server_selection_timeout_ms,
                maxPoolSize=settings.mongodb_max_pool_size,
                tz_aware=True,
            )
            await _client.admin.command("ping")
            logger.info(
                "database_connected",
                database=settings.mongodb_database,
                max_pool_size=settings.mongodb_max_pool_size
            )
        except Exception as e:
            logger.error("database_init_failed", error=str(e))
            _client = None
            raise

    db = _client[settings.mongodb_database]
    await ensure_indexes(db)
    return db


async def ensure_indexes(db: AsyncDatabase) -> None:
    """Create the indexes the repositories rely on (idempotent)."""
    await db[USERS_COLLECTION].create_index([("email", ASCENDING)], unique=True, name="uniq_email")
    await db[USERS_COLLECTION].create_index([("status", ASCENDING)], name="idx_status")
    await db[FORMS_COLLECTION].create_index([("createdAt", DESCENDING)], name="idx_created_at")
    await db[AUDIT_COLLECTION].create_index([("timestamp", DESCENDING)], name="idx_timestamp")
    await db[AUDIT_COLLECTION].create_index(
        [("userId", ASCENDING), ("timestamp", DESCENDING)],
        name="idx_user_timestamp"
    )
    logger.debug("database_indexes_ensured")


async def close_database() -> None:
    """
    Close the MongoDB client.

    Should be called during application shutdown.
    """
    global _client

    if _client is not None:
        await _client.close()
        logger.info("database_closed")
        _client = None


def get_database() -> AsyncDatabase:
    """
    Get the database handle.

    Returns:
        Database handle

    Raises:
        RuntimeError: If the client is not initialized
    """
    if _client is None:
        logger.error("database_not_initialized")
        raise RuntimeError(
            "Database not initialized. Call init_database() during startup."
        )
    return _client[get_settings().mongodb_database]


async def ping_database() -> bool:
    """Round-trip to the server; False when it cannot be reached."""
    if _client is None:
        return False
    try:
        await _client.admin.command("ping")
        return True
    except Exception as e:
        logger.error("database_ping_failed", error=str(e))
        return False


def to_object_id(value: str) -> ObjectId:
    """
    Convert a hex string to an ObjectId.

    Raises:
        ValueError: If the value is not a valid ObjectId
    """
    try:
        return ObjectId(value)
    except (InvalidId, TypeError) as e:
        raise ValueError(f"Invalid id: {value}") from e
