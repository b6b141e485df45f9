"""
Authentication and own-profile endpoints.

Provides REST API endpoints for:
- Candidate signup
- Login (JWT access token, also set as an HTTP-only cookie)
- Reading and updating the caller's own profile

Signup and login are public and rate limited; the profile endpoints accept
the token as a Bearer header or the token cookie.
"""

import structlog
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Request, Response, status

from portal.src.config import get_settings
from portal.src.dependencies import (
    get_audit_repository,
    get_auth_service,
    get_candidate_service,
    get_client_ip,
    get_current_user,
    get_user_agent,
)
from portal.src.models.audit import AuditAction, ResourceType
from portal.src.models.auth import CurrentUser, ErrorResponse, LoginRequest, MessageResponse, TokenResponse
from portal.src.models.candidate import CandidateResponse, ProfileUpdateRequest, SignupRequest
from portal.src.rate_limit import AUTH_RATE_LIMIT, limiter
from portal.src.repositories.audit_repo import AuditRepository
from portal.src.services.auth_service import AuthService
from portal.src.services.candidate_service import CandidateService
from shared.metrics import setup_metrics

logger = structlog.get_logger(__name__)

router = APIRouter(
    prefix="/auth",
    tags=["Authentication"],
    responses={
        401: {"model": ErrorResponse, "description": "Unauthorized"},
        422: {"description": "Validation Error"}
    }
)


# ============================================================================
# SIGNUP AND LOGIN
# ============================================================================


@router.post(
    "/signup",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Candidate Signup",
    description="""
    Register a candidate account.

    **Authentication:** Not required (public endpoint, rate limited)

    **Request Body:**
    - name, email, password: required
    - confirmPassword: optional, must equal password when sent
    - any profile field may also be sent

    **Error Responses:**
    - 400: Missing fields, password mismatch, or email already registered
    - 429: Too many requests
    """,
    responses={400: {"model": ErrorResponse, "description": "Invalid signup"}}
)
@limiter.limit(AUTH_RATE_LIMIT)
async def signup(
    request: Request,
    signup_request: SignupRequest,
    auth_service: AuthService = Depends(get_auth_service),
    audit_repo: AuditRepository = Depends(get_audit_repository),
    client_ip: str = Depends(get_client_ip),
    user_agent: Optional[str] = Depends(get_user_agent)
) -> MessageResponse:
    """Create a candidate account."""
    logger.info("signup_attempt", ip_address=client_ip)

    try:
        user = await auth_service.signup(signup_request)
    except ValueError as e:
        logger.warning("signup_rejected", reason=str(e), ip_address=client_ip)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    user_id = str(user["_id"])
    await audit_repo.record(
        user_id=user_id,
        action=AuditAction.SIGNUP,
        resource_type=ResourceType.USER,
        resource_id=user_id,
        ip_address=client_ip,
        user_agent=user_agent,
        status_code=status.HTTP_201_CREATED
    )
    _, portal_metrics = setup_metrics()
    portal_metrics.signups.inc()

    logger.info("signup_success", user_id=user_id)
    return MessageResponse(message="User created successfully")


@router.post(
    "/login",
    response_model=TokenResponse,
    response_model_by_alias=True,
    status_code=status.HTTP_200_OK,
    summary="User Login",
    description="""
    Authenticate with email and password.

    Returns a JWT access token and sets it as an HTTP-only cookie.

    **Authentication:** Not required (public endpoint, rate limited)

    **Success Response (200):**
    - accessToken: JWT token for authentication
    - tokenType: "bearer"
    - expiresIn: Token expiration time in seconds
    - role: "candidate" or "admin"

    **Error Responses:**
    - 401: Invalid credentials
    - 429: Too many requests
    """,
    responses={
        401: {
            "description": "Invalid credentials",
            "model": ErrorResponse,
            "content": {"application/json": {"example": {"detail": "Invalid credentials"}}}
        }
    }
)
@limiter.limit(AUTH_RATE_LIMIT)
async def login(
    request: Request,
    response: Response,
    login_request: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service),
    audit_repo: AuditRepository = Depends(get_audit_repository),
    client_ip: str = Depends(get_client_ip),
    user_agent: Optional[str] = Depends(get_user_agent)
) -> TokenResponse:
    """Authenticate user and return JWT token."""
    logger.info("login_attempt", ip_address=client_ip)
    _, portal_metrics = setup_metrics()

    user = await auth_service.authenticate_user(login_request)

    if not user:
        await audit_repo.record(
            user_id=None,
            action=AuditAction.LOGIN_FAILURE,
            resource_type=ResourceType.AUTH,
            details={"reason": "invalid_credentials"},
            ip_address=client_ip,
            user_agent=user_agent,
            status_code=status.HTTP_401_UNAUTHORIZED
        )
        portal_metrics.logins.labels(outcome="failure").inc()
        logger.warning("login_failed", ip_address=client_ip)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Bearer"}
        )

    token_response = auth_service.issue_token(user)
    user_id = str(user["_id"])

    settings = get_settings()
    response.set_cookie(
        key=settings.jwt_cookie_name,
        value=token_response.access_token,
        max_age=token_response.expires_in,
        httponly=True,
        secure=settings.security_require_https,
        samesite="lax",
    )

    await audit_repo.record(
        user_id=user_id,
        action=AuditAction.LOGIN_SUCCESS,
        resource_type=ResourceType.AUTH,
        resource_id=user_id,
        details={"role": token_response.role.value},
        ip_address=client_ip,
        user_agent=user_agent,
        status_code=status.HTTP_200_OK
    )
    portal_metrics.logins.labels(outcome="success").inc()

    logger.info("login_success", user_id=user_id, role=token_response.role.value)
    return token_response


# ============================================================================
# OWN PROFILE
# ============================================================================


@router.get(
    "/signup",
    response_model=CandidateResponse,
    response_model_by_alias=True,
    summary="Get Own Profile",
    description="""
    Return the caller's profile (never includes the password).

    **Authentication:** Bearer token or token cookie

    **Error Responses:**
    - 401: Token missing, invalid or expired
    - 404: User not found
    """,
    responses={404: {"model": ErrorResponse, "description": "User not found"}}
)
async def get_profile(
    current_user: CurrentUser = Depends(get_current_user),
    candidate_service: CandidateService = Depends(get_candidate_service)
) -> CandidateResponse:
    user = await candidate_service.get_profile(current_user.id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return CandidateResponse.from_document(user)


@router.put(
    "/signup",
    response_model=MessageResponse,
    summary="Update Own Profile",
    description="""
    Partially update the caller's profile. Only fields present in the body
    are written; email, password, role and status are ignored.

    **Authentication:** Bearer token or token cookie

    **Error Responses:**
    - 400: currentDate is not YYYY-MM-DD
    - 401: Token missing, invalid or expired
    - 404: User not found
    - 422: A field is malformed (phone, Aadhaar, IFSC, ...)
    """,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid profile data"},
        404: {"model": ErrorResponse, "description": "User not found"}
    }
)
async def update_profile(
    update_request: ProfileUpdateRequest,
    current_user: CurrentUser = Depends(get_current_user),
    candidate_service: CandidateService = Depends(get_candidate_service),
    audit_repo: AuditRepository = Depends(get_audit_repository),
    client_ip: str = Depends(get_client_ip),
    user_agent: Optional[str] = Depends(get_user_agent)
) -> MessageResponse:
    try:
        updated = await candidate_service.update_profile(current_user.id, update_request)
    except ValueError as e:
        logger.warning("profile_update_rejected", user_id=current_user.id, reason=str(e))
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    if updated is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    await audit_repo.record(
        user_id=current_user.id,
        action=AuditAction.PROFILE_UPDATE,
        resource_type=ResourceType.USER,
        resource_id=current_user.id,
        details={"fields": sorted(update_request.to_document().keys())},
        ip_address=client_ip,
        user_agent=user_agent,
        status_code=status.HTTP_200_OK
    )

    logger.info("profile_updated", user_id=current_user.id)
    return MessageResponse(message="User updated successfully")
