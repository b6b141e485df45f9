"""
Audit logging models.

Provides Pydantic schemas and enums for:
- Audit log entries
- User action tracking
- Resource access logging
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


# ============================================================================
# Enums
# ============================================================================


class AuditAction(str, Enum):
    """Audit action types."""
    # Authentication actions
    SIGNUP = "signup"
    LOGIN_SUCCESS = "login_success"
    LOGIN_FAILURE = "login_failure"
    ADMIN_BOOTSTRAP = "admin_bootstrap"

    # Candidate self-service
    PROFILE_UPDATE = "profile_update"
    APPLICATION_SUBMIT = "application_submit"

    # Review actions
    CANDIDATE_STATUS_UPDATE = "candidate_status_update"
    CANDIDATE_REMARK = "candidate_remark"

    # Administration
    EXAM_FORM_CREATE = "exam_form_create"
    DOCUMENT_GENERATE = "document_generate"

    # Public
    CONTACT_MESSAGE = "contact_message"


class ResourceType(str, Enum):
    """Resource types for audit logging."""
    AUTH = "auth"
    USER = "user"
    CANDIDATE = "candidate"
    EXAM_FORM = "exam_form"
    DOCUMENT = "document"
    CONTACT = "contact"


# ============================================================================
# Pydantic Models
# ============================================================================


class AuditLogEntry(BaseModel):
    """Audit log entry as stored in the audit_logs collection."""
    user_id: Optional[str] = Field(
        None,
        description="User who performed the action (None for anonymous/system)"
    )
    action: AuditAction = Field(
        ...,
        description="Action performed"
    )
    resource_type: Optional[ResourceType] = Field(
        None,
        description="Type of resource affected"
    )
    resource_id: Optional[str] = Field(
        None,
        max_length=255,
        description="Identifier of the affected resource"
    )
    details: Dict[str, Any] = Field(
        default_factory=dict,
        description="Additional context"
    )
    ip_address: Optional[str] = Field(
        None,
        max_length=45,
        description="Client IP address"
    )
    user_agent: Optional[str] = Field(
        None,
        description="Client user agent string"
    )
    status_code: Optional[int] = Field(
        None,
        ge=100,
        le=599,
        description="HTTP status code of the action"
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the action occurred"
    )

    def to_document(self) -> Dict[str, Any]:
        """Serialize for storage with camelCase keys."""
        return {
            "userId": self.user_id,
            "action": self.action.value,
            "resourceType": self.resource_type.value if self.resource_type else None,
            "resourceId": self.resource_id,
            "details": self.details,
            "ipAddress": self.ip_address,
            "userAgent": self.user_agent,
            "statusCode": self.status_code,
            "timestamp": self.timestamp,
        }

    model_config = {
        "json_schema_extra": {
            "example": {
                "user_id": "66f1c0d8a4b2e3f4a5b6c7d8",
                "action": "candidate_status_update",
                "resource_type": "candidate",
                "resource_id": "66f1c0d8a4b2e3f4a5b6c7d9",
                "details": {"old_status": "pending", "new_status": "approve"},
                "ip_address": "192.168.1.100",
                "status_code": 200
            }
        }
    }
