"""
Authentication and authorization models.

Provides Pydantic schemas for:
- Roles and permissions
- Signup and login requests
- JWT tokens and payloads
- The authenticated caller (CurrentUser)
- Error responses

API payloads use camelCase keys (``accessToken``, ``confirmPassword``);
models accept either camelCase or snake_case on input.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model serializing to camelCase keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


# ============================================================================
# Role and Permission Enums
# ============================================================================


class Role(str, Enum):
    """
    User roles.

    - ADMIN: reviews candidates, configures exam windows, generates documents
    - CANDIDATE: manages own profile and application
    """
    ADMIN = "admin"
    CANDIDATE = "candidate"


class Permission(str, Enum):
    """Granular permissions for fine-grained access control."""

    # Candidate self-service
    READ_OWN_PROFILE = "read:own_profile"
    UPDATE_OWN_PROFILE = "update:own_profile"
    SUBMIT_APPLICATION = "submit:application"
    READ_EXAM_FORM = "read:exam_form"

    # Review
    READ_CANDIDATES = "read:candidates"
    UPDATE_CANDIDATE_STATUS = "update:candidate_status"
    SEND_REMARKS = "send:remarks"
    READ_STATS = "read:stats"

    # Administrative
    MANAGE_EXAM_FORMS = "manage:exam_forms"
    GENERATE_DOCUMENTS = "generate:documents"


# ============================================================================
# Request Models
# ============================================================================


class LoginRequest(CamelModel):
    """Login request schema."""
    email: EmailStr = Field(
        ...,
        description="Account email"
    )
    password: str = Field(
        ...,
        min_length=1,
        description="Account password"
    )

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        """Emails are matched case-insensitively."""
        return v.strip().lower()

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "email": "candidate@example.com",
                "password": "secret123"
            }
        },
    )


# ============================================================================
# Response Models
# ============================================================================


class TokenResponse(CamelModel):
    """JWT token response schema."""
    access_token: str = Field(
        ...,
        min_length=10,
        description="JWT access token"
    )
    token_type: str = Field(
        default="bearer",
        description="Token type"
    )
    expires_in: int = Field(
        ...,
        gt=0,
        description="Token expiration time in seconds"
    )
    role: Role = Field(
        ...,
        description="Role of the authenticated user"
    )

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "accessToken": "eyJhbGciOiJIUzI1NiIsInR5cCI6IkpXVCJ9...",
                "tokenType": "bearer",
                "expiresIn": 3600,
                "role": "candidate"
            }
        },
    )


class MessageResponse(BaseModel):
    """Plain acknowledgement."""
    message: str


class ErrorResponse(BaseModel):
    """Error response schema."""
    detail: str = Field(
        ...,
        min_length=1,
        description="Error message"
    )
    error_code: Optional[str] = Field(
        None,
        description="Error code"
    )

    model_config = {
        "json_schema_extra": {
            "example": {
                "detail": "Invalid or expired token"
            }
        }
    }


# ============================================================================
# Token Payload and Current User
# ============================================================================


class TokenPayload(BaseModel):
    """Decoded JWT claims."""
    sub: str = Field(..., description="Subject (user id)")
    email: str = Field(..., description="User email")
    role: str = Field(..., description="User role")
    exp: int = Field(..., description="Expiration (unix seconds)")
    iat: int = Field(..., description="Issued at (unix seconds)")


class CurrentUser(BaseModel):
    """
    Authenticated caller resolved from a JWT.

    Attached to requests by the authentication dependencies.
    """
    id: str = Field(..., description="User id (ObjectId hex)")
    email: str = Field(..., description="User email")
    name: str = Field(default="", description="Display name")
    role: Role = Field(..., description="User role")

    def has_role(self, role: Role) -> bool:
        """Check if user has a specific role."""
        return self.role == role

    def is_admin(self) -> bool:
        """Check if user is an administrator."""
        return self.role == Role.ADMIN

    model_config = {
        "json_schema_extra": {
            "example": {
                "id": "66f1c0d8a4b2e3f4a5b6c7d8",
                "email": "admin@example.com",
                "name": "Administrator",
                "role": "admin"
            }
        }
    }
