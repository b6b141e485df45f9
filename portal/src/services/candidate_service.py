"""
Candidate application and review service.

Provides:
- Profile read/update for the signed-in candidate
- Application submission (stamps the current exam window)
- Review listing: completeness filter, search, status filter, pending first
- Dashboard statistics
- Status updates and WhatsApp remark links

The query builders are pure functions so listing behaviour can be tested
without a database.
"""

import math
import re
import structlog
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import quote

from portal.src.models.auth import Role
from portal.src.models.candidate import (
    ApplicationSubmitRequest,
    CandidateStatus,
    EXAM_FIELDS,
    MANDATORY_FIELDS,
    ProfileUpdateRequest,
)
from portal.src.repositories.form_repo import FormRepository
from portal.src.repositories.user_repo import UserRepository
from portal.src.utils.dates import is_iso_date, today_iso

logger = structlog.get_logger(__name__)

STATUS_FILTER_ALL = "all"
SEARCH_FIELDS = ("name", "email", "aadhaarNo", "phone")
WHATSAPP_BASE_URL = "https://wa.me/+91"
CURRENT_DATE_ERROR = "Invalid currentDate format (use YYYY-MM-DD)"

# Never writable through profile endpoints
PROTECTED_FIELDS = ("email", "password", "role", "status", "_id", "createdAt", "submittedAt")


# ============================================================================
# Query Builders
# ============================================================================


def build_candidate_query(search: Optional[str] = None, status: str = STATUS_FILTER_ALL) -> Dict[str, Any]:
    """
    Build the match filter for the review listing.

    Only non-admin users whose mandatory fields all contain a non-space
    character are listed. ``search`` is a case-insensitive substring match
    on name, email, Aadhaar number or phone.

    Args:
        search: Free-text search (regex metacharacters are escaped)
        status: ``all`` or a CandidateStatus value

    Returns:
        MongoDB filter document
    """
    clauses: List[Dict[str, Any]] = [{"role": {"$ne": Role.ADMIN.value}}]
    clauses.extend({field: {"$regex": r"\S"}} for field in MANDATORY_FIELDS)

    term = (search or "").strip()
    if term:
        pattern = re.escape(term)
        clauses.append({
            "$or": [{field: {"$regex": pattern, "$options": "i"}} for field in SEARCH_FIELDS]
        })

    if status and status != STATUS_FILTER_ALL:
        clauses.append({"status": CandidateStatus(status).value})

    return {"$and": clauses}


def build_candidate_pipeline(query: Dict[str, Any], page: int, page_size: int) -> List[Dict[str, Any]]:
    """
    Aggregation returning one page of candidates, pending first.

    Candidates keep insertion order (``_id`` ascending) within the pending
    and non-pending groups.
    """
    return [
        {"$match": query},
        {"$addFields": {
            "_pendingRank": {"$cond": [{"$eq": ["$status", CandidateStatus.PENDING.value]}, 0, 1]}
        }},
        {"$sort": {"_pendingRank": 1, "_id": 1}},
        {"$skip": page_offset(page, page_size)},
        {"$limit": page_size},
        {"$project": {"_pendingRank": 0, "password": 0}},
    ]


def page_offset(page: int, page_size: int) -> int:
    """Documents to skip before ``page`` (1-based)."""
    return (max(page, 1) - 1) * page_size


def page_count(total: int, page_size: int) -> int:
    """Number of pages needed for ``total`` items."""
    if total <= 0:
        return 0
    return math.ceil(total / page_size)


# ============================================================================
# Remarks
# ============================================================================


def build_whatsapp_url(name: Optional[str], phone: Optional[str], remark: Optional[str]) -> str:
    """
    Build a WhatsApp deep link carrying a remark for the candidate.

    Args:
        name: Candidate name used in the greeting
        phone: Candidate phone; non-digits are stripped
        remark: Text describing the issue

    Returns:
        ``https://wa.me/+91<digits>?text=<encoded message>``

    Raises:
        ValueError: If the remark is blank or the phone is missing/invalid
    """
    remark = (remark or "").strip()
    if not remark:
        raise ValueError("Please enter a remark")

    if not phone:
        raise ValueError("User phone number not available")

    digits = re.sub(r"\D", "", phone)
    if len(digits) != 10:
        raise ValueError("Invalid phone number format")

    message = f"Dear {name or ''}, there are issues with your form submission: {remark}"
    return f"{WHATSAPP_BASE_URL}{digits}?text={quote(message, safe='')}"


def writable_profile_fields(document: Dict[str, Any]) -> Dict[str, Any]:
    """Drop keys a candidate may not change through profile updates."""
    return {k: v for k, v in document.items() if k not in PROTECTED_FIELDS}


def missing_mandatory_fields(profile: Dict[str, Any]) -> List[str]:
    """Mandatory fields that are absent or blank."""
    return [f for f in MANDATORY_FIELDS if not str(profile.get(f) or "").strip()]


def exam_fields(form: Dict[str, Any]) -> Dict[str, Any]:
    """Exam window fields copied onto a candidate."""
    return {field: form.get(field) for field in EXAM_FIELDS}


# ============================================================================
# Service
# ============================================================================


class CandidateService:
    """Service for candidate self-service and admin review."""

    def __init__(self, user_repo: UserRepository, form_repo: FormRepository):
        """
        Initialize candidate service.

        Args:
            user_repo: User repository
            form_repo: Exam form repository
        """
        self.user_repo = user_repo
        self.form_repo = form_repo

    async def get_profile(self, user_id: str) -> Optional[Dict[str, Any]]:
        """User document, or None when it no longer exists."""
        return await self.user_repo.get_user_by_id(user_id)

    async def update_profile(
        self,
        user_id: str,
        request: ProfileUpdateRequest
    ) -> Optional[Dict[str, Any]]:
        """
        Write the provided profile fields.

        Returns:
            Updated document, or None when the user does not exist

        Raises:
            ValueError: If currentDate is not YYYY-MM-DD
        """
        fields = writable_profile_fields(request.to_document())

        current_date = fields.get("currentDate")
        if current_date and not is_iso_date(current_date):
            raise ValueError(CURRENT_DATE_ERROR)

        if not fields:
            return await self.user_repo.get_user_by_id(user_id)
        return await self.user_repo.update_user(user_id, fields)

    async def submit_application(
        self,
        user_id: str,
        request: ApplicationSubmitRequest
    ) -> Optional[Dict[str, Any]]:
        """
        Submit the application with the current exam window.

        Returns:
            Updated document, or None when the user does not exist

        Raises:
            ValueError: Declaration not accepted, bad currentDate, or
                mandatory fields missing
            LookupError: No exam window has been configured
        """
        if not request.declaration_accepted:
            raise ValueError("Please accept the declaration to proceed.")

        fields = writable_profile_fields(request.to_document())

        current_date = fields.get("currentDate")
        if current_date and not is_iso_date(current_date):
            raise ValueError(CURRENT_DATE_ERROR)

        user = await self.user_repo.get_user_by_id(user_id)
        if user is None:
            return None

        merged = {**user, **fields}
        missing = missing_mandatory_fields(merged)
        if missing:
            raise ValueError(f"Missing required fields: {', '.join(missing)}")

        form = await self.form_repo.get_latest_form()
        if form is None:
            raise LookupError("No forms found")

        if not merged.get("currentDate"):
            fields["currentDate"] = today_iso()

        fields.update(exam_fields(form))
        fields["status"] = CandidateStatus.PENDING.value
        fields["submittedAt"] = datetime.now(timezone.utc)

        logger.info("application_submitting", user_id=user_id, exam_name=form.get("examName"))
        return await self.user_repo.update_user(user_id, fields)

    async def list_candidates(
        self,
        search: Optional[str],
        status: str,
        page: int,
        page_size: int
    ) -> Tuple[List[Dict[str, Any]], int]:
        """One page of reviewable candidates plus the total count."""
        query = build_candidate_query(search, status)
        pipeline = build_candidate_pipeline(query, page, page_size)
        return await self.user_repo.list_candidates(query, pipeline)

    async def get_stats(self) -> Dict[str, int]:
        """Counts for the admin dashboard."""
        counts = await self.user_repo.count_by_status()
        return {
            "total": sum(counts.values()),
            "approved": counts.get(CandidateStatus.APPROVE.value, 0),
            "pending": counts.get(CandidateStatus.PENDING.value, 0),
            "rejected": counts.get(CandidateStatus.REJECT.value, 0),
        }

    async def update_status(
        self,
        candidate_id: str,
        status: CandidateStatus
    ) -> Tuple[Optional[Dict[str, Any]], Optional[str]]:
        """
        Change a candidate's review status.

        Returns:
            Tuple of (updated document or None if not found, previous status)
        """
        existing = await self.user_repo.get_user_by_id(candidate_id)
        if existing is None:
            return None, None

        updated = await self.user_repo.update_status(candidate_id, status)
        return updated, existing.get("status")

    async def build_remark(self, candidate_id: str, remark: str) -> Optional[str]:
        """
        WhatsApp link for a remark to a candidate.

        Returns:
            URL, or None when the candidate does not exist

        Raises:
            ValueError: See build_whatsapp_url
        """
        candidate = await self.user_repo.get_user_by_id(candidate_id)
        if candidate is None:
            return None
        return build_whatsapp_url(candidate.get("name"), candidate.get("phone"), remark)

    async def exam_window_for(self, candidate: Dict[str, Any]) -> Dict[str, Any]:
        """
        Exam fields to print on a candidate's documents.

        Uses the fields stamped on the candidate at submission and falls back
        to the current exam window for anything missing.
        """
        stamped = exam_fields(candidate)
        if all(stamped.values()):
            return stamped

        latest = await self.form_repo.get_latest_form()
        if latest is None:
            return stamped
        fallback = exam_fields(latest)
        return {k: stamped.get(k) or fallback.get(k) for k in EXAM_FIELDS}

    async def current_exam_window(self) -> Optional[Dict[str, Any]]:
        """Exam fields of the latest exam window, or None when none exists."""
        latest = await self.form_repo.get_latest_form()
        return exam_fields(latest) if latest else None
