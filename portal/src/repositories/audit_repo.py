"""
Audit log repository.

Appends audit entries to the ``audit_logs`` collection and reads them back
for a resource.
"""

import structlog
from typing import Any, Dict, List, Optional

from pymongo import DESCENDING
from pymongo.asynchronous.database import AsyncDatabase

from portal.src.config import get_settings
from portal.src.database import AUDIT_COLLECTION
from portal.src.models.audit import AuditAction, AuditLogEntry, ResourceType

logger = structlog.get_logger(__name__)


class AuditRepository:
    """Repository for audit log documents."""

    def __init__(self, db: AsyncDatabase):
        """
        Initialize audit repository.

        Args:
            db: MongoDB database handle
        """
        self.collection = db[AUDIT_COLLECTION]
        self.settings = get_settings()

    async def create_audit_log(
        self,
        user_id: Optional[str],
        action: AuditAction,
        resource_type: Optional[ResourceType] = None,
        resource_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
        status_code: Optional[int] = None
    ) -> Dict[str, Any]:
        """
        Create a new audit log entry.

        Args:
            user_id: User ID (None for anonymous)
            action: Action performed
            resource_type: Type of resource
            resource_id: Resource identifier
            details: Additional details
            ip_address: Client IP address
            user_agent: Client user agent
            status_code: HTTP status code

        Returns:
            Stored audit document
        """
        entry = AuditLogEntry(
            user_id=user_id,
            action=action,
            resource_type=resource_type,
            resource_id=resource_id,
            details=details or {},
            ip_address=ip_address,
            user_agent=user_agent,
            status_code=status_code,
        )
        document = entry.to_document()

        try:
            result = await self.collection.insert_one(document)
            document["_id"] = result.inserted_id

            logger.debug(
                "audit_log_created",
                audit_id=str(result.inserted_id),
                user_id=user_id,
                action=action.value,
                resource_type=resource_type.value if resource_type else None
            )
            return document

        except Exception as e:
            logger.error(
                "audit_log_create_failed",
                error=str(e),
                user_id=user_id,
                action=action.value
            )
            raise

    async def record(self, **kwargs: Any) -> None:
        """
        Write an audit entry without failing the caller.

        Does nothing when auditing is disabled. Storage errors are logged as
        warnings.
        """
        if not self.settings.audit_enabled:
            return
        try:
            await self.create_audit_log(**kwargs)
        except Exception as e:
            logger.warning("audit_log_creation_failed", error=str(e), action=str(kwargs.get("action")))

    async def list_for_resource(
        self,
        resource_type: ResourceType,
        resource_id: str,
        limit: int = 50
    ) -> List[Dict[str, Any]]:
        """Newest audit entries for a resource."""
        try:
            cursor = (
                self.collection.find({"resourceType": resource_type.value, "resourceId": resource_id})
                .sort("timestamp", DESCENDING)
                .limit(limit)
            )
            return await cursor.to_list(length=None)

        except Exception as e:
            logger.error("audit_log_list_failed", error=str(e), resource_id=resource_id)
            raise
