"""
Candidate profile and review models.

Provides Pydantic schemas for:
- Candidate profile fields (personal, banking, health declaration)
- Signup, profile update and application submission requests
- Candidate responses, listings and dashboard statistics
- Review status updates and WhatsApp remarks

Stored documents and API payloads both use camelCase keys.
"""

import re
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Literal, Optional

from pydantic import ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel

from portal.src.models.auth import CamelModel, Role


YesNo = Literal["Yes", "No"]

NAME_PATTERN = re.compile(r"^[A-Za-z\s]+$")
PHONE_PATTERN = re.compile(r"^\d{10}$")
AADHAAR_PATTERN = re.compile(r"^\d{12}$")
IFSC_PATTERN = re.compile(r"^[A-Z]{4}0[A-Z0-9]{6}$")
BANK_ACCOUNT_PATTERN = re.compile(r"^\d{9,18}$")

YES_NO_FIELDS = (
    "previous_cda_experience",
    "fever",
    "cough",
    "breathlessness",
    "sore_throat",
    "other_symptoms",
    "close_contact",
)


class CandidateStatus(str, Enum):
    """Review status of a candidate application."""
    PENDING = "pending"
    APPROVE = "approve"
    REJECT = "reject"


# Defaults applied to every new user document (camelCase, as stored)
CANDIDATE_DEFAULTS: Dict[str, Any] = {
    "dob": "",
    "phone": "",
    "area": "",
    "landmark": "",
    "address": "",
    "examCityPreference1": "",
    "examCityPreference2": "",
    "previousCdaExperience": "No",
    "cdaExperienceYears": "",
    "cdaExperienceRole": "",
    "photo": "",
    "signature": "",
    "thumbprint": "",
    "aadhaarNo": "",
    "penaltyClauseAgreement": False,
    "fever": "No",
    "cough": "No",
    "breathlessness": "No",
    "soreThroat": "No",
    "otherSymptoms": "No",
    "otherSymptomsDetails": "",
    "closeContact": "No",
    "covidDeclarationAgreement": False,
    "accountHolderName": "",
    "bankName": "",
    "ifsc": "",
    "branch": "",
    "bankAccountNo": "",
    "currentDate": "",
    "sonOf": "",
    "resident": "",
    "status": CandidateStatus.PENDING.value,
}

# Fields a candidate must fill before the application is listed for review
MANDATORY_FIELDS = ("name", "aadhaarNo", "phone", "email")

EXAM_FIELDS = ("examName", "heldDate", "startDate", "endDate", "examCount")


# ============================================================================
# Profile Fields
# ============================================================================


class CandidateProfile(CamelModel):
    """
    Candidate-editable profile fields.

    Every field is optional; updates write only the fields that were sent.
    Empty strings are accepted and clear a value.
    """
    name: Optional[str] = None
    dob: Optional[str] = None
    phone: Optional[str] = None
    area: Optional[str] = None
    landmark: Optional[str] = None
    address: Optional[str] = None
    exam_city_preference1: Optional[str] = None
    exam_city_preference2: Optional[str] = None
    previous_cda_experience: Optional[YesNo] = None
    cda_experience_years: Optional[str] = None
    cda_experience_role: Optional[str] = None
    photo: Optional[str] = Field(None, description="Image URL or data URI")
    signature: Optional[str] = Field(None, description="Image URL or data URI")
    thumbprint: Optional[str] = Field(None, description="Image URL or data URI")
    aadhaar_no: Optional[str] = None
    penalty_clause_agreement: Optional[bool] = None
    fever: Optional[YesNo] = None
    cough: Optional[YesNo] = None
    breathlessness: Optional[YesNo] = None
    sore_throat: Optional[YesNo] = None
    other_symptoms: Optional[YesNo] = None
    other_symptoms_details: Optional[str] = None
    close_contact: Optional[YesNo] = None
    covid_declaration_agreement: Optional[bool] = None
    account_holder_name: Optional[str] = None
    bank_name: Optional[str] = None
    ifsc: Optional[str] = None
    branch: Optional[str] = None
    bank_account_no: Optional[str] = None
    current_date: Optional[str] = Field(None, description="YYYY-MM-DD")
    son_of: Optional[str] = None
    resident: Optional[str] = None

    @field_validator(*YES_NO_FIELDS, mode="before")
    @classmethod
    def blank_yes_no_is_unset(cls, v: Any) -> Any:
        """Unanswered radio groups arrive as empty strings."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: Optional[str]) -> Optional[str]:
        """Name may only contain letters and spaces."""
        if v is None:
            return v
        v = v.strip()
        if v and not NAME_PATTERN.match(v):
            raise ValueError("Name can only contain letters and spaces")
        return v

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v: Optional[str]) -> Optional[str]:
        """Mobile numbers are 10 digits."""
        if v is None:
            return v
        v = v.strip()
        if v and not PHONE_PATTERN.match(v):
            raise ValueError("Phone number must be 10 digits")
        return v

    @field_validator("aadhaar_no")
    @classmethod
    def validate_aadhaar(cls, v: Optional[str]) -> Optional[str]:
        """Aadhaar numbers are 12 digits; spaces are dropped."""
        if v is None:
            return v
        v = re.sub(r"\s+", "", v)
        if v and not AADHAAR_PATTERN.match(v):
            raise ValueError("Aadhaar number must be 12 digits")
        return v

    @field_validator("ifsc")
    @classmethod
    def validate_ifsc(cls, v: Optional[str]) -> Optional[str]:
        """IFSC: four letters, a zero, six alphanumerics."""
        if v is None:
            return v
        v = v.strip().upper()
        if v and not IFSC_PATTERN.match(v):
            raise ValueError("Invalid IFSC code")
        return v

    @field_validator("bank_account_no")
    @classmethod
    def validate_bank_account(cls, v: Optional[str]) -> Optional[str]:
        """Bank account numbers are 9 to 18 digits."""
        if v is None:
            return v
        v = v.strip()
        if v and not BANK_ACCOUNT_PATTERN.match(v):
            raise ValueError("Bank account number must be 9 to 18 digits")
        return v

    def to_document(self) -> Dict[str, Any]:
        """Fields that were sent, as camelCase document keys."""
        return self.model_dump(by_alias=True, exclude_unset=True, exclude_none=True)


class SignupRequest(CandidateProfile):
    """
    Signup request schema.

    name, email and password are required; they are optional here so the
    service can answer with a single message when any is missing.
    """
    email: Optional[EmailStr] = None
    password: Optional[str] = None
    confirm_password: Optional[str] = None

    @field_validator("name", "email", "password", mode="before")
    @classmethod
    def blank_is_missing(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    def profile_document(self) -> Dict[str, Any]:
        """Profile fields only, without credentials."""
        document = self.to_document()
        for key in ("email", "password", "confirmPassword", "name"):
            document.pop(key, None)
        return document

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "name": "Ravi Kumar",
                "email": "ravi@example.com",
                "password": "secret123",
                "confirmPassword": "secret123"
            }
        },
    )


class ProfileUpdateRequest(CandidateProfile):
    """
    Partial profile update.

    Credentials, role and review status cannot be changed here; such keys
    are ignored.
    """


class ApplicationSubmitRequest(CandidateProfile):
    """Final application submission from the preview step."""
    declaration_accepted: bool = Field(
        default=False,
        description="Candidate accepted the truthfulness declaration"
    )

    def to_document(self) -> Dict[str, Any]:
        document = super().to_document()
        document.pop("declarationAccepted", None)
        return document


class CandidateStatusUpdate(CamelModel):
    """Review decision for a candidate."""
    status: CandidateStatus = Field(..., description="pending | approve | reject")


class RemarkRequest(CamelModel):
    """Remark to send to a candidate over WhatsApp."""
    remark: str = Field(default="", description="Issue to report to the candidate")


class RemarkResponse(CamelModel):
    """WhatsApp deep link with the prefilled remark."""
    url: str


# ============================================================================
# Response Models
# ============================================================================


class CandidateResponse(CamelModel):
    """Candidate profile as returned by the API (never includes the password)."""
    id: str
    name: str = ""
    email: str = ""
    role: Role = Role.CANDIDATE
    status: CandidateStatus = CandidateStatus.PENDING
    dob: str = ""
    phone: str = ""
    area: str = ""
    landmark: str = ""
    address: str = ""
    exam_city_preference1: str = ""
    exam_city_preference2: str = ""
    previous_cda_experience: str = "No"
    cda_experience_years: str = ""
    cda_experience_role: str = ""
    photo: str = ""
    signature: str = ""
    thumbprint: str = ""
    aadhaar_no: str = ""
    penalty_clause_agreement: bool = False
    fever: str = "No"
    cough: str = "No"
    breathlessness: str = "No"
    sore_throat: str = "No"
    other_symptoms: str = "No"
    other_symptoms_details: str = ""
    close_contact: str = "No"
    covid_declaration_agreement: bool = False
    account_holder_name: str = ""
    bank_name: str = ""
    ifsc: str = ""
    branch: str = ""
    bank_account_no: str = ""
    current_date: str = ""
    son_of: str = ""
    resident: str = ""
    exam_name: Optional[str] = None
    held_date: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    exam_count: Optional[int] = None
    submitted_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_document(cls, document: Dict[str, Any]) -> "CandidateResponse":
        """Build a response from a stored user document."""
        data = {k: v for k, v in document.items() if k not in ("_id", "password") and v is not None}
        data["id"] = str(document["_id"])
        return cls.model_validate(data)


class CandidateListResponse(CamelModel):
    """One page of candidates."""
    users: List[CandidateResponse]
    total: int = Field(..., ge=0)
    page: int = Field(..., ge=1)
    page_size: int = Field(..., ge=1)
    total_pages: int = Field(..., ge=0)


class CandidateStats(CamelModel):
    """Dashboard counters."""
    total: int = 0
    approved: int = 0
    pending: int = 0
    rejected: int = 0
