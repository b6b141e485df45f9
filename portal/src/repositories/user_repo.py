"""
User repository for database operations.

Provides async CRUD operations for candidate and admin accounts stored in
the MongoDB ``users`` collection. Documents keep camelCase keys.
"""

import structlog
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from pymongo import ReturnDocument
from pymongo.asynchronous.database import AsyncDatabase
from pymongo.errors import DuplicateKeyError

from portal.src.config import get_settings
from portal.src.database import USERS_COLLECTION, to_object_id
from portal.src.models.auth import Role
from portal.src.models.candidate import CANDIDATE_DEFAULTS, CandidateStatus

logger = structlog.get_logger(__name__)


class UserRepository:
    """Repository for user database operations."""

    def __init__(self, db: AsyncDatabase):
        """
        Initialize user repository.

        Args:
            db: MongoDB database handle
        """
        self.collection = db[USERS_COLLECTION]
        self.settings = get_settings()

    async def create_user(
        self,
        name: str,
        email: str,
        password_hash: str,
        role: Role = Role.CANDIDATE,
        profile: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """
        Create a new user with default profile fields.

        Args:
            name: Display name
            email: Email address (stored lower-cased)
            password_hash: Hashed password
            role: Account role
            profile: Extra profile fields (camelCase keys)

        Returns:
            Created user document

        Raises:
            ValueError: If the email already exists
        """
        now = datetime.now(timezone.utc)
        document: Dict[str, Any] = dict(CANDIDATE_DEFAULTS)
        document.update(profile or {})
        document.update({
            "name": name,
            "email": email.lower(),
            "password": password_hash,
            "role": role.value,
            "createdAt": now,
            "updatedAt": now,
        })

        try:
            result = await self.collection.insert_one(document)
            document["_id"] = result.inserted_id
            logger.info("user_created", user_id=str(result.inserted_id), role=role.value)
            return document

        except DuplicateKeyError:
            logger.warning("email_already_exists")
            raise ValueError("User already exists")
        except Exception as e:
            logger.error("user_create_failed", error=str(e))
            raise

    async def get_user_by_id(self, user_id: str) -> Optional[Dict[str, Any]]:
        """
        Get user by ID.

        Args:
            user_id: ObjectId hex string

        Returns:
            User document or None if not found

        Raises:
            ValueError: If user_id is not a valid ObjectId
        """
        oid = to_object_id(user_id)
        try:
            document = await self.collection.find_one({"_id": oid})
            if not document:
                logger.debug("user_not_found", user_id=user_id)
            return document

        except Exception as e:
            logger.error("user_get_by_id_failed", error=str(e), user_id=user_id)
            raise

    async def get_user_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        """
        Get user by email (case-insensitive, emails are stored lower-cased).

        Args:
            email: Email address

        Returns:
            User document or None if not found
        """
        try:
            document = await self.collection.find_one({"email": email.strip().lower()})
            if not document:
                logger.debug("user_not_found_by_email")
            return document

        except Exception as e:
            logger.error("user_get_by_email_failed", error=str(e))
            raise

    async def update_user(
        self,
        user_id: str,
        fields: Dict[str, Any]
    ) -> Optional[Dict[str, Any]]:
        """
        Set the given fields on a user.

        Args:
            user_id: ObjectId hex string
            fields: camelCase keys to set

        Returns:
            Updated user document or None if not found
        """
        oid = to_object_id(user_id)
        update = dict(fields)
        update["updatedAt"] = datetime.now(timezone.utc)

        try:
            document = await self.collection.find_one_and_update(
                {"_id": oid},
                {"$set": update},
                return_document=ReturnDocument.AFTER
            )
            if document:
                logger.info("user_updated", user_id=user_id, fields=sorted(fields))
            else:
                logger.debug("user_not_found", user_id=user_id)
            return document

        except Exception as e:
            logger.error("user_update_failed", error=str(e), user_id=user_id)
            raise

    async def update_status(
        self,
        user_id: str,
        status: CandidateStatus
    ) -> Optional[Dict[str, Any]]:
        """Set the review status of a candidate."""
        return await self.update_user(user_id, {"status": status.value})

    async def list_candidates(
        self,
        query: Dict[str, Any],
        pipeline: List[Dict[str, Any]]
    ) -> Tuple[List[Dict[str, Any]], int]:
        """
        Run a candidate listing.

        Args:
            query: Match filter, used for the total count
            pipeline: Aggregation producing the requested page

        Returns:
            Tuple of (page of documents, total matching)
        """
        try:
            total = await self.collection.count_documents(query)
            cursor = await self.collection.aggregate(pipeline)
            documents = await cursor.to_list(length=None)

            logger.debug("candidates_listed", returned=len(documents), total=total)
            return documents, total

        except Exception as e:
            logger.error("candidate_list_failed", error=str(e))
            raise

    async def count_by_status(self) -> Dict[str, int]:
        """
        Count non-admin users grouped by review status.

        Returns:
            Mapping of status to count; users without a status are counted
            under "unknown"
        """
        pipeline = [
            {"$match": {"role": {"$ne": Role.ADMIN.value}}},
            {"$group": {"_id": "$status", "count": {"$sum": 1}}},
        ]
        try:
            cursor = await self.collection.aggregate(pipeline)
            rows = await cursor.to_list(length=None)
            return {(row["_id"] or "unknown"): row["count"] for row in rows}

        except Exception as e:
            logger.error("candidate_stats_failed", error=str(e))
            raise
