"""
FastAPI dependency injection for database, authentication, and authorization.

Provides injectable dependencies for:
- Database handle (pymongo AsyncDatabase)
- User authentication (JWT from the Authorization header or the token cookie)
- Authorization (role/permission checking)
- Repository instances
- Service instances

All dependencies use FastAPI's dependency injection system; tests replace
``get_db`` (or individual repositories) through ``app.dependency_overrides``.
"""

import structlog
from typing import Callable, Optional

from fastapi import Depends, HTTPException, Query, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pymongo.asynchronous.database import AsyncDatabase

from portal.src.config import get_settings
from portal.src.database import get_database
from portal.src.models.auth import CurrentUser, Permission
from portal.src.repositories.audit_repo import AuditRepository
from portal.src.repositories.contact_repo import ContactRepository
from portal.src.repositories.form_repo import FormRepository
from portal.src.repositories.user_repo import UserRepository
from portal.src.services.auth_service import AuthService
from portal.src.services.candidate_service import CandidateService
from portal.src.services.document_service import DocumentService
from portal.src.services.exam_form_service import ExamFormService

logger = structlog.get_logger(__name__)

# Largest page number accepted by list endpoints
MAX_PAGE = 1_000_000

# HTTP Bearer token scheme
security = HTTPBearer(auto_error=False)


# ============================================================================
# DATABASE
# ============================================================================


def get_db() -> AsyncDatabase:
    """
    Get the MongoDB database handle.

    Raises:
        RuntimeError: If the client was not initialized during startup
    """
    return get_database()


# ============================================================================
# REPOSITORY DEPENDENCIES
# ============================================================================


def get_user_repository(db: AsyncDatabase = Depends(get_db)) -> UserRepository:
    return UserRepository(db)


def get_form_repository(db: AsyncDatabase = Depends(get_db)) -> FormRepository:
    return FormRepository(db)


def get_audit_repository(db: AsyncDatabase = Depends(get_db)) -> AuditRepository:
    return AuditRepository(db)


def get_contact_repository(db: AsyncDatabase = Depends(get_db)) -> ContactRepository:
    return ContactRepository(db)


# ============================================================================
# SERVICE DEPENDENCIES
# ============================================================================


def get_auth_service(
    user_repo: UserRepository = Depends(get_user_repository)
) -> AuthService:
    """
    Get authentication service bound to the request's user repository.

    Args:
        user_repo: User repository

    Returns:
        Authentication service
    """
    return AuthService(user_repo)


def get_candidate_service(
    user_repo: UserRepository = Depends(get_user_repository),
    form_repo: FormRepository = Depends(get_form_repository)
) -> CandidateService:
    return CandidateService(user_repo, form_repo)


def get_exam_form_service(
    form_repo: FormRepository = Depends(get_form_repository)
) -> ExamFormService:
    return ExamFormService(form_repo)


def get_document_service() -> DocumentService:
    return DocumentService(get_settings())


# ============================================================================
# AUTHENTICATION DEPENDENCIES
# ============================================================================


async def get_token(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> str:
    """
    Extract the JWT from the Authorization header, falling back to the
    token cookie.

    Args:
        request: HTTP request
        credentials: HTTP bearer credentials

    Returns:
        JWT token string

    Raises:
        HTTPException: 401 if no token was sent
    """
    if credentials and credentials.credentials:
        return credentials.credentials

    cookie_token = request.cookies.get(get_settings().jwt_cookie_name)
    if cookie_token:
        return cookie_token

    logger.warning("auth_missing_credentials", path=request.url.path)
    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Authorization token missing",
        headers={"WWW-Authenticate": "Bearer"}
    )


async def get_current_user(
    request: Request,
    token: str = Depends(get_token),
    auth_service: AuthService = Depends(get_auth_service)
) -> CurrentUser:
    """
    Get current authenticated user from JWT token.

    Validates the token and re-reads the user. The user is attached to
    ``request.state.user`` for logging and auditing.

    Raises:
        HTTPException: 401 if the token is invalid, expired, or its user is gone

    Example:
        @router.get("/profile")
        async def get_profile(user: CurrentUser = Depends(get_current_user)):
            return {"email": user.email, "role": user.role}
    """
    current_user = await auth_service.get_current_user(token)

    if not current_user:
        logger.warning("auth_invalid_token", path=request.url.path)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"}
        )

    request.state.user = current_user
    logger.debug("user_authenticated", user_id=current_user.id, role=current_user.role.value)
    return current_user


# ============================================================================
# AUTHORIZATION DEPENDENCIES (PERMISSION-BASED)
# ============================================================================


def require_permission(permission: Permission) -> Callable:
    """
    Build a dependency that requires a permission.

    Args:
        permission: Required permission

    Returns:
        Dependency returning the current user when the permission is granted

    Example:
        @router.get("/users")
        async def list_users(
            user: CurrentUser = Depends(require_permission(Permission.READ_CANDIDATES))
        ):
            ...
    """
    async def dependency(
        request: Request,
        current_user: CurrentUser = Depends(get_current_user),
        auth_service: AuthService = Depends(get_auth_service)
    ) -> CurrentUser:
        if not auth_service.has_permission(current_user.role, permission):
            logger.warning(
                "rbac_permission_denied",
                path=request.url.path,
                user_id=current_user.id,
                role=current_user.role.value,
                required_permission=permission.value
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Permission denied: {permission.value} required"
            )
        return current_user

    return dependency


# ============================================================================
# UTILITY DEPENDENCIES
# ============================================================================


async def get_client_ip(request: Request) -> str:
    """
    Get client IP address from request.

    Checks X-Forwarded-For header first (for proxies),
    then falls back to client host.
    """
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        # X-Forwarded-For can contain multiple IPs, get the first one
        return forwarded.split(",")[0].strip()

    if request.client:
        return request.client.host

    return "unknown"


async def get_user_agent(request: Request) -> Optional[str]:
    return request.headers.get("User-Agent")


# ============================================================================
# PAGINATION DEPENDENCIES
# ============================================================================


class PaginationParams:
    """Page-based pagination parameters for list endpoints."""

    def __init__(self, page: int = 1, page_size: Optional[int] = None):
        """
        Initialize pagination parameters.

        Args:
            page: 1-based page number (values below 1 become 1)
            page_size: Items per page (clamped to 1..pagination_max_limit)
        """
        settings = get_settings()

        if page_size is None:
            page_size = settings.pagination_default_limit

        # Validate page size
        if page_size < 1:
            page_size = 1
        elif page_size > settings.pagination_max_limit:
            page_size = settings.pagination_max_limit

        self.page = max(page, 1)
        self.page_size = page_size


async def get_pagination_params(
    page: int = Query(1, le=MAX_PAGE, description="1-based page number"),
    page_size: Optional[int] = Query(None, alias="pageSize", description="Items per page")
) -> PaginationParams:
    """
    Get pagination parameters from query string.

    Example:
        @router.get("/users")
        async def list_users(pagination: PaginationParams = Depends(get_pagination_params)):
            ...
    """
    return PaginationParams(page=page, page_size=page_size)
