"""
Exam window (form) models.

An exam window names the examination, the month it is held in, its date
range and the exam count printed on the appointment letter. The most
recently created window is the current one.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from pydantic import ConfigDict, Field
from pydantic.alias_generators import to_camel

from portal.src.models.auth import CamelModel


class ExamFormCreate(CamelModel):
    """
    Exam window creation request.

    Fields are loosely typed so that every missing or malformed value is
    reported with the exam-form validation messages rather than a schema
    error.
    """
    exam_name: Optional[str] = Field(None, description="Examination name")
    held_date: Optional[str] = Field(None, description="Month YYYY, e.g. April 2025")
    start_date: Optional[str] = Field(None, description="YYYY-MM-DD or dd MMMM yyyy")
    end_date: Optional[str] = Field(None, description="YYYY-MM-DD or dd MMMM yyyy")
    exam_count: Optional[Union[int, float, str]] = Field(None, description="Number of exams (>= 1)")

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "examName": "CCAT",
                "heldDate": "June 2025",
                "startDate": "2025-06-14",
                "endDate": "2025-06-15",
                "examCount": 2
            }
        },
    )


class ExamFormResponse(CamelModel):
    """Stored exam window."""
    id: str
    exam_name: str
    held_date: str
    start_date: str
    end_date: str
    exam_count: int
    created_at: Optional[datetime] = None

    @classmethod
    def from_document(cls, document: Dict[str, Any]) -> "ExamFormResponse":
        data = {k: v for k, v in document.items() if k != "_id"}
        data["id"] = str(document["_id"])
        return cls.model_validate(data)


class ExamFormListResponse(CamelModel):
    """Exam windows, newest first."""
    forms: List[ExamFormResponse]
    total: int = Field(..., ge=0)
    page: int = Field(..., ge=1)
    page_size: int = Field(..., ge=1)
