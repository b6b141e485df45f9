"""
Exam window validation and persistence.

Validation runs in a fixed order and stops at the first failure, each
failure carrying the message returned to the admin client.
"""

import structlog
from typing import Any, Dict, List, Optional, Tuple

from portal.src.models.exam_form import ExamFormCreate
from portal.src.repositories.form_repo import FormRepository
from portal.src.utils.dates import format_stored_date, is_valid_held_date, parse_exam_date

logger = structlog.get_logger(__name__)


def parse_exam_count(value: Any) -> Optional[int]:
    """Positive whole exam count, or None when the value is not one."""
    if isinstance(value, bool) or value is None:
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if number != number or number <= 0 or not number.is_integer():
        return None
    return int(number)


def validate_exam_form(request: ExamFormCreate) -> Dict[str, Any]:
    """
    Validate and normalise an exam window.

    Order of checks:
    1. every field present
    2. held date is ``Month YYYY``
    3. exam count is a positive whole number
    4. start and end dates parse
    5. start date is before end date

    Returns:
        camelCase document with dates normalised to ``dd MMMM yyyy``

    Raises:
        ValueError: With the message for the first failing check
    """
    exam_name = (request.exam_name or "").strip()
    held_date = (request.held_date or "").strip()
    start_raw = (request.start_date or "").strip()
    end_raw = (request.end_date or "").strip()
    count_raw = request.exam_count.strip() if isinstance(request.exam_count, str) else request.exam_count

    if not exam_name or not held_date or not start_raw or not end_raw or count_raw in (None, ""):
        raise ValueError("All fields are required")

    if not is_valid_held_date(held_date):
        raise ValueError("Invalid held date format (Month YYYY)")

    exam_count = parse_exam_count(count_raw)
    if exam_count is None:
        raise ValueError("Invalid exam count")

    start = parse_exam_date(start_raw)
    end = parse_exam_date(end_raw)
    if start is None or end is None:
        raise ValueError("Invalid date format")

    if start >= end:
        raise ValueError("End date must be after start date")

    return {
        "examName": exam_name,
        "heldDate": held_date,
        "startDate": format_stored_date(start),
        "endDate": format_stored_date(end),
        "examCount": exam_count,
    }


class ExamFormService:
    """Creates and reads exam windows."""

    def __init__(self, form_repo: FormRepository):
        self.form_repo = form_repo

    async def create_form(self, request: ExamFormCreate) -> Dict[str, Any]:
        """Validate and store a new exam window (it becomes the current one)."""
        fields = validate_exam_form(request)
        return await self.form_repo.create_form(fields)

    async def get_latest_form(self) -> Optional[Dict[str, Any]]:
        return await self.form_repo.get_latest_form()

    async def list_forms(self, page: int, page_size: int) -> Tuple[List[Dict[str, Any]], int]:
        """One page of exam windows (newest first) plus the total count."""
        return await self.form_repo.list_forms(skip=(page - 1) * page_size, limit=page_size)
