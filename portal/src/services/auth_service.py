"""
Authentication service for signup, login and JWT token management.

Provides:
- Password hashing and verification (passlib + bcrypt)
- JWT token creation and validation
- User signup and authentication
- Role-based permission checks
- Bootstrap of the administrator account
"""

import structlog
from typing import Any, Dict, Optional, Set
from datetime import datetime, timedelta, timezone
from passlib.context import CryptContext
from jose import JWTError, jwt
from pydantic import ValidationError

from portal.src.config import get_settings
from portal.src.models.auth import (
    CurrentUser, LoginRequest, Permission, Role, TokenPayload, TokenResponse
)
from portal.src.models.candidate import SignupRequest
from portal.src.repositories.user_repo import UserRepository

logger = structlog.get_logger(__name__)


ROLE_PERMISSIONS: Dict[Role, Set[Permission]] = {
    Role.CANDIDATE: {
        Permission.READ_OWN_PROFILE,
        Permission.UPDATE_OWN_PROFILE,
        Permission.SUBMIT_APPLICATION,
        Permission.READ_EXAM_FORM,
    },
    Role.ADMIN: {
        Permission.READ_OWN_PROFILE,
        Permission.READ_EXAM_FORM,
        Permission.READ_CANDIDATES,
        Permission.UPDATE_CANDIDATE_STATUS,
        Permission.SEND_REMARKS,
        Permission.READ_STATS,
        Permission.MANAGE_EXAM_FORMS,
        Permission.GENERATE_DOCUMENTS,
    },
}


class AuthService:
    """Service for authentication and authorization operations."""

    def __init__(self, user_repo: UserRepository):
        """
        Initialize auth service.

        Args:
            user_repo: User repository
        """
        self.user_repo = user_repo
        self.settings = get_settings()

        self.pwd_context = CryptContext(
            schemes=["bcrypt"],
            deprecated="auto",
            bcrypt__rounds=self.settings.password_bcrypt_rounds
        )

        self.role_permissions = ROLE_PERMISSIONS

    def hash_password(self, password: str) -> str:
        """
        Hash a password using bcrypt.

        Args:
            password: Plain text password

        Returns:
            Hashed password
        """
        try:
            hashed = self.pwd_context.hash(password)
            logger.debug("password_hashed")
            return hashed
        except Exception as e:
            logger.error("password_hash_failed", error=str(e))
            raise

    def verify_password(self, plain_password: str, hashed_password: str) -> bool:
        """
        Verify a password against its hash.

        Args:
            plain_password: Plain text password
            hashed_password: Hashed password

        Returns:
            True if password matches, False otherwise
        """
        try:
            verified = self.pwd_context.verify(plain_password, hashed_password)
            logger.debug("password_verified", verified=verified)
            return verified
        except Exception as e:
            logger.error("password_verify_failed", error=str(e))
            return False

    def create_access_token(
        self,
        user_id: str,
        email: str,
        role: Role,
        expires_delta: Optional[timedelta] = None
    ) -> str:
        """
        Create JWT access token.

        Args:
            user_id: User ID (ObjectId hex)
            email: User email
            role: User role
            expires_delta: Custom expiration time (optional)

        Returns:
            JWT token string
        """
        if expires_delta is None:
            expires_delta = timedelta(minutes=self.settings.jwt_access_token_expire_minutes)

        now = datetime.now(timezone.utc)
        expire = now + expires_delta

        payload = {
            "sub": user_id,
            "email": email,
            "role": role.value,
            "exp": int(expire.timestamp()),
            "iat": int(now.timestamp())
        }

        token = jwt.encode(
            payload,
            self.settings.jwt_secret_key,
            algorithm=self.settings.jwt_algorithm
        )

        logger.info(
            "access_token_created",
            user_id=user_id,
            role=role.value,
            expires_in=int(expires_delta.total_seconds())
        )
        return token

    def decode_token(self, token: str) -> Optional[TokenPayload]:
        """
        Decode and validate JWT token.

        Args:
            token: JWT token string

        Returns:
            Token payload or None if invalid or expired
        """
        try:
            payload = jwt.decode(
                token,
                self.settings.jwt_secret_key,
                algorithms=[self.settings.jwt_algorithm]
            )
            token_payload = TokenPayload(**payload)

            logger.debug("token_decoded", user_id=token_payload.sub)
            return token_payload

        except JWTError as e:
            logger.warning("token_decode_failed", error=str(e))
            return None
        except ValidationError as e:
            logger.warning("token_claims_invalid", error=str(e))
            return None

    async def signup(self, request: SignupRequest) -> Dict[str, Any]:
        """
        Register a candidate account.

        Args:
            request: Signup payload

        Returns:
            Created user document

        Raises:
            ValueError: With the message to return to the client when a
                required field is missing, passwords differ, the password is
                too short, or the email is already registered
        """
        if not request.name or not request.email or not request.password:
            raise ValueError("Name, email, and password are required")

        if request.confirm_password is not None and request.confirm_password != request.password:
            raise ValueError("Passwords do not match")

        if len(request.password) < self.settings.password_min_length:
            raise ValueError(
                f"Password must be at least {self.settings.password_min_length} characters long"
            )

        email = request.email.strip().lower()
        if await self.user_repo.get_user_by_email(email):
            logger.warning("signup_duplicate_email")
            raise ValueError("User already exists")

        user = await self.user_repo.create_user(
            name=request.name,
            email=email,
            password_hash=self.hash_password(request.password),
            role=Role.CANDIDATE,
            profile=request.profile_document()
        )
        logger.info("candidate_signed_up", user_id=str(user["_id"]))
        return user

    async def authenticate_user(self, login_request: LoginRequest) -> Optional[Dict[str, Any]]:
        """
        Authenticate user with email and password.

        Args:
            login_request: Login credentials

        Returns:
            User document if authenticated, None otherwise
        """
        user = await self.user_repo.get_user_by_email(login_request.email)

        if not user:
            logger.warning("authentication_failed_user_not_found")
            return None

        if not self.verify_password(login_request.password, user.get("password", "")):
            logger.warning("authentication_failed_invalid_password", user_id=str(user["_id"]))
            return None

        logger.info("user_authenticated", user_id=str(user["_id"]))
        return user

    def issue_token(self, user: Dict[str, Any]) -> TokenResponse:
        """Create the login response for an authenticated user document."""
        role = Role(user.get("role", Role.CANDIDATE.value))
        access_token = self.create_access_token(
            user_id=str(user["_id"]),
            email=user["email"],
            role=role
        )
        return TokenResponse(
            access_token=access_token,
            token_type="bearer",
            expires_in=self.settings.jwt_access_token_expire_minutes * 60,
            role=role
        )

    async def get_current_user(self, token: str) -> Optional[CurrentUser]:
        """
        Get current user from JWT token.

        The user is looked up again so deleted accounts and role changes take
        effect before the token expires.

        Args:
            token: JWT token string

        Returns:
            Current user or None if the token is invalid or the user is gone
        """
        payload = self.decode_token(token)

        if not payload:
            logger.warning("get_current_user_failed_invalid_token")
            return None

        try:
            user = await self.user_repo.get_user_by_id(payload.sub)
        except ValueError:
            logger.warning("get_current_user_failed_invalid_user_id", user_id=payload.sub)
            return None

        if not user:
            logger.warning("get_current_user_failed_user_not_found", user_id=payload.sub)
            return None

        current_user = CurrentUser(
            id=str(user["_id"]),
            email=user["email"],
            name=user.get("name", ""),
            role=Role(user.get("role", Role.CANDIDATE.value))
        )

        logger.debug("current_user_retrieved", user_id=current_user.id, role=current_user.role.value)
        return current_user

    def get_role_permissions(self, role: Role) -> Set[Permission]:
        """Permissions granted to a role."""
        return set(self.role_permissions.get(role, set()))

    def has_permission(self, role: Role, required_permission: Permission) -> bool:
        """
        Check if a role grants the required permission.

        Args:
            role: User role
            required_permission: Required permission

        Returns:
            True if granted, False otherwise
        """
        granted = required_permission in self.get_role_permissions(role)
        logger.debug(
            "permission_check",
            role=role.value,
            permission=required_permission.value,
            granted=granted
        )
        return granted

    async def ensure_admin(self, email: str, password: str, name: str) -> bool:
        """
        Make sure an administrator account exists for the given email.

        An existing account with that email is promoted to admin; its
        password is left unchanged.

        Returns:
            True if an account was created or promoted, False if it already
            was an admin
        """
        existing = await self.user_repo.get_user_by_email(email)

        if existing is None:
            await self.user_repo.create_user(
                name=name,
                email=email,
                password_hash=self.hash_password(password),
                role=Role.ADMIN
            )
            logger.info("admin_bootstrapped")
            return True

        if existing.get("role") != Role.ADMIN.value:
            await self.user_repo.update_user(str(existing["_id"]), {"role": Role.ADMIN.value})
            logger.info("admin_promoted", user_id=str(existing["_id"]))
            return True

        return False
