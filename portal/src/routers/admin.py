"""
Admin router for exam windows and candidate review.

Provides REST API endpoints for:
- Exam window configuration (create, current, history)
- Candidate listing with search, status filter and pagination
- Dashboard statistics
- Candidate detail and review status changes
- WhatsApp remark links
- Printable document bundles

All endpoints require authentication; everything except reading the current
exam window requires an admin permission.
"""

import time
import structlog
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from portal.src.config import get_settings
from portal.src.dependencies import (
    PaginationParams,
    get_audit_repository,
    get_candidate_service,
    get_client_ip,
    get_current_user,
    get_document_service,
    get_exam_form_service,
    get_pagination_params,
    get_user_agent,
    require_permission,
)
from portal.src.models.audit import AuditAction, ResourceType
from portal.src.models.auth import CurrentUser, ErrorResponse, Permission
from portal.src.models.candidate import (
    CandidateListResponse,
    CandidateResponse,
    CandidateStats,
    CandidateStatusUpdate,
    RemarkRequest,
    RemarkResponse,
)
from portal.src.models.exam_form import ExamFormCreate, ExamFormListResponse, ExamFormResponse
from portal.src.repositories.audit_repo import AuditRepository
from portal.src.services.candidate_service import STATUS_FILTER_ALL, CandidateService, page_count
from portal.src.services.document_service import DocumentService, admin_preview_filename, pdf_response
from portal.src.services.exam_form_service import ExamFormService
from shared.metrics import setup_metrics

logger = structlog.get_logger(__name__)

router = APIRouter(
    prefix="/admin",
    tags=["Administration"],
    responses={
        401: {"model": ErrorResponse, "description": "Unauthorized"},
        403: {"model": ErrorResponse, "description": "Forbidden"},
        404: {"model": ErrorResponse, "description": "Not Found"},
        422: {"description": "Validation Error"}
    }
)


async def _load_candidate(candidate_service: CandidateService, candidate_id: str) -> dict:
    """Candidate document, or 400/404."""
    try:
        candidate = await candidate_service.get_profile(candidate_id)
    except ValueError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid candidate id")

    if candidate is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return candidate


# ============================================================================
# EXAM WINDOWS
# ============================================================================


@router.post(
    "/form",
    response_model=ExamFormResponse,
    response_model_by_alias=True,
    status_code=status.HTTP_201_CREATED,
    summary="Create Exam Window",
    description="""
    Create a new exam window; it becomes the current one.

    **Authentication:** Admin (manage:exam_forms)

    **Validation (first failure wins):**
    1. All fields are required
    2. heldDate must be "Month YYYY"
    3. examCount must be a positive whole number
    4. startDate and endDate must be YYYY-MM-DD or "dd MMMM yyyy"
    5. startDate must be before endDate

    Dates are stored as "dd MMMM yyyy".
    """,
    responses={400: {"model": ErrorResponse, "description": "Invalid exam window"}}
)
async def create_exam_form(
    form_request: ExamFormCreate,
    current_user: CurrentUser = Depends(require_permission(Permission.MANAGE_EXAM_FORMS)),
    exam_form_service: ExamFormService = Depends(get_exam_form_service),
    audit_repo: AuditRepository = Depends(get_audit_repository),
    client_ip: str = Depends(get_client_ip),
    user_agent: Optional[str] = Depends(get_user_agent)
) -> ExamFormResponse:
    logger.info("exam_form_create_attempt", admin_id=current_user.id)

    try:
        form = await exam_form_service.create_form(form_request)
    except ValueError as e:
        logger.warning("exam_form_rejected", admin_id=current_user.id, reason=str(e))
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    form_id = str(form["_id"])
    await audit_repo.record(
        user_id=current_user.id,
        action=AuditAction.EXAM_FORM_CREATE,
        resource_type=ResourceType.EXAM_FORM,
        resource_id=form_id,
        details={"exam_name": form["examName"], "held_date": form["heldDate"]},
        ip_address=client_ip,
        user_agent=user_agent,
        status_code=status.HTTP_201_CREATED
    )

    logger.info("exam_form_created", admin_id=current_user.id, form_id=form_id, exam_name=form["examName"])
    return ExamFormResponse.from_document(form)


@router.get(
    "/form",
    response_model=ExamFormResponse,
    response_model_by_alias=True,
    summary="Current Exam Window",
    description="""
    Return the most recently created exam window.

    **Authentication:** Any signed-in user

    **Error Responses:**
    - 404: No forms found
    """
)
async def get_current_exam_form(
    current_user: CurrentUser = Depends(get_current_user),
    exam_form_service: ExamFormService = Depends(get_exam_form_service)
) -> ExamFormResponse:
    form = await exam_form_service.get_latest_form()
    if form is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No forms found")
    return ExamFormResponse.from_document(form)


@router.get(
    "/forms",
    response_model=ExamFormListResponse,
    response_model_by_alias=True,
    summary="List Exam Windows",
    description="""
    List exam windows, newest first.

    **Authentication:** Admin (manage:exam_forms)

    **Query Parameters:**
    - page: 1-based page number (default 1)
    - pageSize: items per page (default 10)
    """
)
async def list_exam_forms(
    current_user: CurrentUser = Depends(require_permission(Permission.MANAGE_EXAM_FORMS)),
    pagination: PaginationParams = Depends(get_pagination_params),
    exam_form_service: ExamFormService = Depends(get_exam_form_service)
) -> ExamFormListResponse:
    forms, total = await exam_form_service.list_forms(pagination.page, pagination.page_size)
    return ExamFormListResponse(
        forms=[ExamFormResponse.from_document(form) for form in forms],
        total=total,
        page=pagination.page,
        page_size=pagination.page_size
    )


# ============================================================================
# CANDIDATE REVIEW
# ============================================================================


@router.get(
    "/users",
    response_model=CandidateListResponse,
    response_model_by_alias=True,
    summary="List Candidates",
    description="""
    List candidates for review.

    Only candidates with name, Aadhaar number, phone and email filled in are
    listed. Pending candidates come first; each group keeps signup order.

    **Authentication:** Admin (read:candidates)

    **Query Parameters:**
    - search: case-insensitive match on name, email, Aadhaar number or phone
    - status: all | pending | approve | reject (default all)
    - page: 1-based page number (default 1)
    - pageSize: items per page (default 10)
    """
)
async def list_candidates(
    search: Optional[str] = Query(None, max_length=200, description="Free-text search"),
    status_filter: str = Query(
        STATUS_FILTER_ALL,
        alias="status",
        pattern="^(all|pending|approve|reject)$",
        description="Review status filter"
    ),
    pagination: PaginationParams = Depends(get_pagination_params),
    current_user: CurrentUser = Depends(require_permission(Permission.READ_CANDIDATES)),
    candidate_service: CandidateService = Depends(get_candidate_service)
) -> CandidateListResponse:
    users, total = await candidate_service.list_candidates(
        search=search,
        status=status_filter,
        page=pagination.page,
        page_size=pagination.page_size
    )

    logger.debug(
        "candidates_listed",
        admin_id=current_user.id,
        total=total,
        page=pagination.page,
        status=status_filter
    )

    return CandidateListResponse(
        users=[CandidateResponse.from_document(user) for user in users],
        total=total,
        page=pagination.page,
        page_size=pagination.page_size,
        total_pages=page_count(total, pagination.page_size)
    )


@router.get(
    "/stats",
    response_model=CandidateStats,
    summary="Review Statistics",
    description="""
    Candidate counts for the dashboard: total, approved, pending, rejected.

    **Authentication:** Admin (read:stats)
    """
)
async def get_stats(
    current_user: CurrentUser = Depends(require_permission(Permission.READ_STATS)),
    candidate_service: CandidateService = Depends(get_candidate_service)
) -> CandidateStats:
    return CandidateStats(**await candidate_service.get_stats())


@router.get(
    "/candidate/{candidate_id}",
    response_model=CandidateResponse,
    response_model_by_alias=True,
    summary="Candidate Detail",
    description="""
    Full candidate profile.

    **Authentication:** Admin (read:candidates)

    **Error Responses:**
    - 400: Invalid candidate id
    - 404: User not found
    """,
    responses={400: {"model": ErrorResponse, "description": "Invalid candidate id"}}
)
async def get_candidate(
    candidate_id: str,
    current_user: CurrentUser = Depends(require_permission(Permission.READ_CANDIDATES)),
    candidate_service: CandidateService = Depends(get_candidate_service)
) -> CandidateResponse:
    candidate = await _load_candidate(candidate_service, candidate_id)
    return CandidateResponse.from_document(candidate)


@router.put(
    "/candidate/{candidate_id}",
    response_model=CandidateResponse,
    response_model_by_alias=True,
    summary="Update Candidate Status",
    description="""
    Set a candidate's review status.

    **Authentication:** Admin (update:candidate_status)

    **Request Body:**
    - status: pending | approve | reject

    **Error Responses:**
    - 400: Invalid candidate id
    - 404: User not found
    """,
    responses={400: {"model": ErrorResponse, "description": "Invalid candidate id"}}
)
async def update_candidate_status(
    candidate_id: str,
    status_update: CandidateStatusUpdate,
    current_user: CurrentUser = Depends(require_permission(Permission.UPDATE_CANDIDATE_STATUS)),
    candidate_service: CandidateService = Depends(get_candidate_service),
    audit_repo: AuditRepository = Depends(get_audit_repository),
    client_ip: str = Depends(get_client_ip),
    user_agent: Optional[str] = Depends(get_user_agent)
) -> CandidateResponse:
    logger.info(
        "candidate_status_update_attempt",
        admin_id=current_user.id,
        candidate_id=candidate_id,
        status=status_update.status.value
    )

    try:
        updated, old_status = await candidate_service.update_status(candidate_id, status_update.status)
    except ValueError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid candidate id")

    if updated is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    await audit_repo.record(
        user_id=current_user.id,
        action=AuditAction.CANDIDATE_STATUS_UPDATE,
        resource_type=ResourceType.CANDIDATE,
        resource_id=candidate_id,
        details={"old_status": old_status, "new_status": status_update.status.value},
        ip_address=client_ip,
        user_agent=user_agent,
        status_code=status.HTTP_200_OK
    )
    _, portal_metrics = setup_metrics()
    portal_metrics.status_changes.labels(status=status_update.status.value).inc()

    logger.info(
        "candidate_status_updated",
        admin_id=current_user.id,
        candidate_id=candidate_id,
        old_status=old_status,
        new_status=status_update.status.value
    )
    return CandidateResponse.from_document(updated)


@router.post(
    "/candidate/{candidate_id}/remark",
    response_model=RemarkResponse,
    summary="Remark Link",
    description="""
    Build a WhatsApp link that opens a chat with the candidate, prefilled
    with the remark.

    **Authentication:** Admin (send:remarks)

    **Error Responses:**
    - 400: Blank remark, phone missing, phone not 10 digits, or invalid id
    - 404: User not found
    """,
    responses={400: {"model": ErrorResponse, "description": "Cannot build remark"}}
)
async def send_remark(
    candidate_id: str,
    remark_request: RemarkRequest,
    current_user: CurrentUser = Depends(require_permission(Permission.SEND_REMARKS)),
    candidate_service: CandidateService = Depends(get_candidate_service),
    audit_repo: AuditRepository = Depends(get_audit_repository),
    client_ip: str = Depends(get_client_ip),
    user_agent: Optional[str] = Depends(get_user_agent)
) -> RemarkResponse:
    try:
        url = await candidate_service.build_remark(candidate_id, remark_request.remark)
    except ValueError as e:
        logger.warning("candidate_remark_rejected", candidate_id=candidate_id, reason=str(e))
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    if url is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    await audit_repo.record(
        user_id=current_user.id,
        action=AuditAction.CANDIDATE_REMARK,
        resource_type=ResourceType.CANDIDATE,
        resource_id=candidate_id,
        details={"remark_length": len(remark_request.remark.strip())},
        ip_address=client_ip,
        user_agent=user_agent,
        status_code=status.HTTP_200_OK
    )

    logger.info("candidate_remark_built", admin_id=current_user.id, candidate_id=candidate_id)
    return RemarkResponse(url=url)


@router.get(
    "/candidate/{candidate_id}/documents.pdf",
    response_class=Response,
    summary="Candidate Documents",
    description="""
    Render the candidate's document bundle. Uses the exam window stamped on
    the candidate at submission, falling back to the current one.

    **Authentication:** Admin (generate:documents)

    **Response:** application/pdf attachment named user-<name>-preview.pdf

    **Error Responses:**
    - 400: Invalid candidate id
    - 404: User not found
    - 500: Failed to generate PDF
    """,
    responses={200: {"content": {"application/pdf": {}}, "description": "PDF bundle"}}
)
async def candidate_documents(
    candidate_id: str,
    current_user: CurrentUser = Depends(require_permission(Permission.GENERATE_DOCUMENTS)),
    candidate_service: CandidateService = Depends(get_candidate_service),
    document_service: DocumentService = Depends(get_document_service),
    audit_repo: AuditRepository = Depends(get_audit_repository),
    client_ip: str = Depends(get_client_ip),
    user_agent: Optional[str] = Depends(get_user_agent)
) -> Response:
    candidate = await _load_candidate(candidate_service, candidate_id)
    exam = await candidate_service.exam_window_for(candidate)

    _, portal_metrics = setup_metrics()
    page_size = get_settings().document_admin_page_size
    filename = admin_preview_filename(candidate.get("name"))
    started = time.perf_counter()

    try:
        data = await document_service.render(candidate, exam, page_size, title=filename)
    except Exception as e:
        portal_metrics.documents_generated.labels(audience="admin", outcome="failure").inc()
        logger.error(
            "document_generation_failed",
            admin_id=current_user.id,
            candidate_id=candidate_id,
            error=str(e),
            exc_info=True
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to generate PDF"
        )

    portal_metrics.documents_generated.labels(audience="admin", outcome="success").inc()
    portal_metrics.document_duration.labels(audience="admin").observe(time.perf_counter() - started)

    await audit_repo.record(
        user_id=current_user.id,
        action=AuditAction.DOCUMENT_GENERATE,
        resource_type=ResourceType.DOCUMENT,
        resource_id=candidate_id,
        details={"audience": "admin", "page_size": page_size},
        ip_address=client_ip,
        user_agent=user_agent,
        status_code=status.HTTP_200_OK
    )
    return pdf_response(data, filename)
