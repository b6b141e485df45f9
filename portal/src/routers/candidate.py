"""
Candidate application endpoints.

The candidate fills the multi-step form client side, previews the printable
bundle, and confirms the submission here.
"""

import time
import structlog
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Response, status

from portal.src.config import get_settings
from portal.src.dependencies import (
    get_audit_repository,
    get_candidate_service,
    get_client_ip,
    get_document_service,
    get_user_agent,
    require_permission,
)
from portal.src.models.audit import AuditAction, ResourceType
from portal.src.models.auth import CurrentUser, ErrorResponse, MessageResponse, Permission
from portal.src.models.candidate import ApplicationSubmitRequest
from portal.src.repositories.audit_repo import AuditRepository
from portal.src.services.candidate_service import CandidateService
from portal.src.services.document_service import CANDIDATE_PREVIEW_FILENAME, DocumentService, pdf_response
from shared.metrics import setup_metrics

logger = structlog.get_logger(__name__)

router = APIRouter(
    prefix="/user",
    tags=["Candidate Application"],
    responses={
        401: {"model": ErrorResponse, "description": "Unauthorized"},
        403: {"model": ErrorResponse, "description": "Forbidden"},
        404: {"model": ErrorResponse, "description": "Not Found"}
    }
)


@router.post(
    "/application",
    response_model=MessageResponse,
    summary="Submit Application",
    description="""
    Confirm the application from the preview step.

    Writes the submitted fields, stamps the current exam window and the
    submission time, and resets the review status to pending.

    **Authentication:** Candidate (submit:application)

    **Error Responses:**
    - 400: Declaration not accepted, bad currentDate, or mandatory fields missing
    - 404: No exam window configured, or user not found
    """,
    responses={400: {"model": ErrorResponse, "description": "Invalid application"}}
)
async def submit_application(
    submit_request: ApplicationSubmitRequest,
    current_user: CurrentUser = Depends(require_permission(Permission.SUBMIT_APPLICATION)),
    candidate_service: CandidateService = Depends(get_candidate_service),
    audit_repo: AuditRepository = Depends(get_audit_repository),
    client_ip: str = Depends(get_client_ip),
    user_agent: Optional[str] = Depends(get_user_agent)
) -> MessageResponse:
    logger.info("application_submit_attempt", user_id=current_user.id)

    try:
        updated = await candidate_service.submit_application(current_user.id, submit_request)
    except ValueError as e:
        logger.warning("application_rejected", user_id=current_user.id, reason=str(e))
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except LookupError as e:
        logger.warning("application_no_exam_form", user_id=current_user.id)
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    if updated is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    await audit_repo.record(
        user_id=current_user.id,
        action=AuditAction.APPLICATION_SUBMIT,
        resource_type=ResourceType.CANDIDATE,
        resource_id=current_user.id,
        details={"exam_name": updated.get("examName")},
        ip_address=client_ip,
        user_agent=user_agent,
        status_code=status.HTTP_200_OK
    )
    _, portal_metrics = setup_metrics()
    portal_metrics.applications_submitted.inc()

    logger.info("application_submitted", user_id=current_user.id, exam_name=updated.get("examName"))
    return MessageResponse(message="Details updated successfully")


@router.get(
    "/application/preview.pdf",
    response_class=Response,
    summary="Preview Application Documents",
    description="""
    Render the caller's document bundle against the current exam window.

    **Authentication:** Candidate (submit:application)

    **Response:** application/pdf attachment named application-preview.pdf

    **Error Responses:**
    - 404: No exam window configured, or user not found
    - 500: Failed to generate PDF
    """,
    responses={200: {"content": {"application/pdf": {}}, "description": "PDF bundle"}}
)
async def preview_application(
    current_user: CurrentUser = Depends(require_permission(Permission.SUBMIT_APPLICATION)),
    candidate_service: CandidateService = Depends(get_candidate_service),
    document_service: DocumentService = Depends(get_document_service),
    audit_repo: AuditRepository = Depends(get_audit_repository),
    client_ip: str = Depends(get_client_ip),
    user_agent: Optional[str] = Depends(get_user_agent)
) -> Response:
    candidate = await candidate_service.get_profile(current_user.id)
    if candidate is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    exam = await candidate_service.current_exam_window()
    if exam is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No forms found")

    _, portal_metrics = setup_metrics()
    page_size = get_settings().document_candidate_page_size
    started = time.perf_counter()

    try:
        data = await document_service.render(
            candidate, exam, page_size, title=CANDIDATE_PREVIEW_FILENAME
        )
    except Exception as e:
        portal_metrics.documents_generated.labels(audience="candidate", outcome="failure").inc()
        logger.error("document_generation_failed", user_id=current_user.id, error=str(e), exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to generate PDF"
        )

    portal_metrics.documents_generated.labels(audience="candidate", outcome="success").inc()
    portal_metrics.document_duration.labels(audience="candidate").observe(time.perf_counter() - started)

    await audit_repo.record(
        user_id=current_user.id,
        action=AuditAction.DOCUMENT_GENERATE,
        resource_type=ResourceType.DOCUMENT,
        resource_id=current_user.id,
        details={"audience": "candidate", "page_size": page_size},
        ip_address=client_ip,
        user_agent=user_agent,
        status_code=status.HTTP_200_OK
    )
    return pdf_response(data, CANDIDATE_PREVIEW_FILENAME)
