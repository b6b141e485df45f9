"""
Unit tests for candidate profile schemas.

Tests cover:
- Field format validation (name, phone, Aadhaar, IFSC, bank account)
- camelCase aliases and partial documents
- Signup credential handling
- Response building from stored documents
"""

import pytest
from bson import ObjectId
from pydantic import ValidationError

from portal.src.models.candidate import (
    CANDIDATE_DEFAULTS,
    ApplicationSubmitRequest,
    CandidateProfile,
    CandidateResponse,
    CandidateStatus,
    CandidateStatusUpdate,
    ProfileUpdateRequest,
    SignupRequest,
)


# ============================================================================
# FIELD VALIDATION
# ============================================================================


class TestProfileFieldValidation:
    """Tests for CandidateProfile validators."""

    def test_valid_profile(self):
        """Test a fully valid profile parses."""
        profile = CandidateProfile(
            name="Ravi Kumar",
            phone="9876543210",
            aadhaarNo="1234 5678 9012",
            ifsc="sbin0001234",
            bankAccountNo="123456789012",
        )

        assert profile.aadhaar_no == "123456789012"
        assert profile.ifsc == "SBIN0001234"

    @pytest.mark.parametrize("field,value", [
        ("name", "Ravi 2"),
        ("phone", "98765"),
        ("phone", "+919876543210"),
        ("aadhaarNo", "1234"),
        ("ifsc", "SBIN1001234"),
        ("bankAccountNo", "1234"),
    ])
    def test_malformed_fields_rejected(self, field, value):
        """Test malformed values raise a validation error on that field."""
        with pytest.raises(ValidationError) as exc_info:
            CandidateProfile(**{field: value})

        errors = exc_info.value.errors()
        assert any(e["loc"] == (field,) for e in errors)

    def test_empty_strings_clear_values(self):
        """Test empty strings pass validation so a field can be cleared."""
        profile = CandidateProfile(phone="", aadhaarNo="", ifsc="")

        assert profile.to_document() == {"phone": "", "aadhaarNo": "", "ifsc": ""}

    def test_blank_yes_no_is_unset(self):
        """Test unanswered radio groups are dropped rather than rejected."""
        profile = CandidateProfile(fever="", cough="Yes")

        assert profile.to_document() == {"cough": "Yes"}

    def test_yes_no_rejects_other_values(self):
        """Test health answers must be Yes or No."""
        with pytest.raises(ValidationError):
            CandidateProfile(fever="maybe")


class TestProfileDocuments:
    """Tests for document conversion."""

    def test_only_sent_fields_in_document(self):
        """Test partial updates only carry the sent fields, camelCased."""
        update = ProfileUpdateRequest(examCityPreference1="Pune", soreThroat="No")

        assert update.to_document() == {"examCityPreference1": "Pune", "soreThroat": "No"}

    def test_signup_profile_excludes_credentials(self):
        """Test credentials are not copied into the profile fields."""
        signup = SignupRequest(
            name="Ravi Kumar",
            email="ravi@example.com",
            password="secret123",
            confirmPassword="secret123",
            phone="9876543210",
        )

        assert signup.profile_document() == {"phone": "9876543210"}

    def test_signup_blank_credentials_are_missing(self):
        """Test blank name or password are treated as not sent."""
        signup = SignupRequest(name=" ", email="ravi@example.com", password="")

        assert signup.name is None
        assert signup.password is None

    def test_signup_rejects_bad_email(self):
        """Test email must be a valid address."""
        with pytest.raises(ValidationError):
            SignupRequest(name="Ravi", email="not-an-email", password="secret123")

    def test_application_document_drops_declaration(self):
        """Test the declaration flag is not stored on the profile."""
        submit = ApplicationSubmitRequest(declarationAccepted=True, resident="Pune")

        assert submit.declaration_accepted is True
        assert submit.to_document() == {"resident": "Pune"}


# ============================================================================
# RESPONSES
# ============================================================================


class TestCandidateResponse:
    """Tests for CandidateResponse.from_document."""

    def test_password_never_returned(self):
        """Test the password hash is dropped and the id stringified."""
        oid = ObjectId()
        document = dict(CANDIDATE_DEFAULTS, _id=oid, name="Ravi", email="ravi@example.com", password="hash")

        response = CandidateResponse.from_document(document)
        payload = response.model_dump(by_alias=True)

        assert payload["id"] == str(oid)
        assert "password" not in payload
        assert payload["aadhaarNo"] == ""
        assert payload["status"] == CandidateStatus.PENDING

    def test_exam_fields_carried(self):
        """Test exam fields stamped at submission are returned."""
        document = dict(
            CANDIDATE_DEFAULTS,
            _id=ObjectId(),
            examName="CCAT",
            examCount=2,
            startDate="14 June 2025",
        )

        response = CandidateResponse.from_document(document)

        assert response.exam_name == "CCAT"
        assert response.exam_count == 2
        assert response.end_date is None


class TestCandidateStatusUpdate:
    """Tests for review status values."""

    @pytest.mark.parametrize("value", ["pending", "approve", "reject"])
    def test_valid_statuses(self, value):
        """Test the three review statuses are accepted."""
        assert CandidateStatusUpdate(status=value).status.value == value

    def test_unknown_status_rejected(self):
        """Test other statuses are rejected."""
        with pytest.raises(ValidationError):
            CandidateStatusUpdate(status="approved")
