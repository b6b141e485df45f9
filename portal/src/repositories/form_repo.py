"""
Exam form repository.

Stores exam windows in the ``forms`` collection. The newest document by
``createdAt`` is the current exam window.
"""

import structlog
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from pymongo import DESCENDING
from pymongo.asynchronous.database import AsyncDatabase

from portal.src.database import FORMS_COLLECTION

logger = structlog.get_logger(__name__)


class FormRepository:
    """Repository for exam window documents."""

    def __init__(self, db: AsyncDatabase):
        self.collection = db[FORMS_COLLECTION]

    async def create_form(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        """
        Insert a new exam window.

        Args:
            fields: Validated camelCase fields (examName, heldDate, ...)

        Returns:
            Stored document including ``_id`` and ``createdAt``
        """
        document = dict(fields)
        document["createdAt"] = datetime.now(timezone.utc)

        try:
            result = await self.collection.insert_one(document)
            document["_id"] = result.inserted_id
            logger.info(
                "exam_form_created",
                form_id=str(result.inserted_id),
                exam_name=document.get("examName")
            )
            return document

        except Exception as e:
            logger.error("exam_form_create_failed", error=str(e))
            raise

    async def get_latest_form(self) -> Optional[Dict[str, Any]]:
        """Most recently created exam window, or None when there is none."""
        try:
            return await self.collection.find_one({}, sort=[("createdAt", DESCENDING), ("_id", DESCENDING)])

        except Exception as e:
            logger.error("exam_form_get_latest_failed", error=str(e))
            raise

    async def list_forms(self, skip: int = 0, limit: int = 10) -> Tuple[List[Dict[str, Any]], int]:
        """
        List exam windows, newest first.

        Returns:
            Tuple of (documents, total)
        """
        try:
            total = await self.collection.count_documents({})
            cursor = (
                self.collection.find({})
                .sort([("createdAt", DESCENDING), ("_id", DESCENDING)])
                .skip(skip)
                .limit(limit)
            )
            documents = await cursor.to_list(length=None)
            return documents, total

        except Exception as e:
            logger.error("exam_form_list_failed", error=str(e))
            raise
