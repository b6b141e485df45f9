"""Public endpoints (no authentication)."""

import structlog
from typing import Optional
from fastapi import APIRouter, Depends, status

from portal.src.dependencies import get_audit_repository, get_client_ip, get_contact_repository, get_user_agent
from portal.src.models.audit import AuditAction, ResourceType
from portal.src.models.auth import MessageResponse
from portal.src.models.contact import ContactMessageRequest
from portal.src.repositories.audit_repo import AuditRepository
from portal.src.repositories.contact_repo import ContactRepository
from shared.metrics import setup_metrics

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["Public"])


@router.post(
    "/contact",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Contact Message",
    description="""
    Store a message from the public contact page.

    **Authentication:** Not required

    **Request Body:**
    - name: sender name
    - email: valid email address
    - message: non-empty text
    """
)
async def contact(
    contact_request: ContactMessageRequest,
    contact_repo: ContactRepository = Depends(get_contact_repository),
    audit_repo: AuditRepository = Depends(get_audit_repository),
    client_ip: str = Depends(get_client_ip),
    user_agent: Optional[str] = Depends(get_user_agent)
) -> MessageResponse:
    stored = await contact_repo.create_message(
        name=contact_request.name,
        email=contact_request.email,
        message=contact_request.message
    )
    message_id = str(stored["_id"])

    await audit_repo.record(
        user_id=None,
        action=AuditAction.CONTACT_MESSAGE,
        resource_type=ResourceType.CONTACT,
        resource_id=message_id,
        ip_address=client_ip,
        user_agent=user_agent,
        status_code=status.HTTP_201_CREATED
    )
    _, portal_metrics = setup_metrics()
    portal_metrics.contact_messages.inc()

    logger.info("contact_message_received", message_id=message_id)
    return MessageResponse(message="Message received")
