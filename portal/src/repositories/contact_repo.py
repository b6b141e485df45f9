"""Contact message repository (``contact_messages`` collection)."""

import structlog
from datetime import datetime, timezone
from typing import Any, Dict

from pymongo.asynchronous.database import AsyncDatabase

from portal.src.database import CONTACT_COLLECTION

logger = structlog.get_logger(__name__)


class ContactRepository:
    """Stores messages from the public contact form."""

    def __init__(self, db: AsyncDatabase):
        self.collection = db[CONTACT_COLLECTION]

    async def create_message(self, name: str, email: str, message: str) -> Dict[str, Any]:
        document = {
            "name": name,
            "email": email,
            "message": message,
            "createdAt": datetime.now(timezone.utc),
        }
        try:
            result = await self.collection.insert_one(document)
            document["_id"] = result.inserted_id
            logger.info("contact_message_stored", message_id=str(result.inserted_id))
            return document

        except Exception as e:
            logger.error("contact_message_store_failed", error=str(e))
            raise
