"""
Unit tests for candidate review queries and remark links.

The query builders are pure, so these tests check the MongoDB documents
they produce without a database.
"""

import re
import pytest
from urllib.parse import unquote

from portal.src.models.candidate import MANDATORY_FIELDS
from portal.src.services.candidate_service import (
    build_candidate_pipeline,
    build_candidate_query,
    build_whatsapp_url,
    missing_mandatory_fields,
    page_count,
    page_offset,
    writable_profile_fields,
)


# ============================================================================
# QUERY
# ============================================================================


class TestCandidateQuery:
    """Tests for build_candidate_query."""

    def test_default_query_excludes_admins_and_incomplete(self):
        """Test admins are excluded and every mandatory field must be non-blank."""
        clauses = build_candidate_query()["$and"]

        assert {"role": {"$ne": "admin"}} in clauses
        for field in MANDATORY_FIELDS:
            assert {field: {"$regex": r"\S"}} in clauses
        assert len(clauses) == 1 + len(MANDATORY_FIELDS)

    def test_search_matches_four_fields_case_insensitively(self):
        """Test search builds a case-insensitive $or over name, email, Aadhaar and phone."""
        clauses = build_candidate_query(search="ravi")["$and"]
        search = next(c for c in clauses if "$or" in c)["$or"]

        assert [list(c)[0] for c in search] == ["name", "email", "aadhaarNo", "phone"]
        assert all(c[list(c)[0]] == {"$regex": "ravi", "$options": "i"} for c in search)

    def test_search_escapes_regex_metacharacters(self):
        """Test user input is matched literally."""
        clauses = build_candidate_query(search="a.b+(c)")["$and"]
        pattern = next(c for c in clauses if "$or" in c)["$or"][0]["name"]["$regex"]

        assert re.search(pattern, "xa.b+(c)y")
        assert not re.search(pattern, "aXb+(c)")

    def test_blank_search_ignored(self):
        """Test whitespace-only search adds no clause."""
        assert build_candidate_query(search="   ") == build_candidate_query()

    def test_status_filter(self):
        """Test a concrete status is matched exactly."""
        clauses = build_candidate_query(status="approve")["$and"]

        assert {"status": "approve"} in clauses

    def test_status_all_adds_no_clause(self):
        """Test 'all' does not filter by status."""
        clauses = build_candidate_query(status="all")["$and"]

        assert not any("status" in c for c in clauses)

    def test_unknown_status_rejected(self):
        """Test statuses outside the review set raise."""
        with pytest.raises(ValueError):
            build_candidate_query(status="approved")


class TestCandidatePipeline:
    """Tests for build_candidate_pipeline."""

    def test_pending_first_then_insertion_order(self):
        """Test the sort ranks pending first and keeps _id order inside each group."""
        query = build_candidate_query()
        pipeline = build_candidate_pipeline(query, page=1, page_size=10)

        assert pipeline[0] == {"$match": query}
        rank = pipeline[1]["$addFields"]["_pendingRank"]
        assert rank == {"$cond": [{"$eq": ["$status", "pending"]}, 0, 1]}
        assert pipeline[2] == {"$sort": {"_pendingRank": 1, "_id": 1}}

    def test_paging_stages(self):
        """Test skip and limit follow the 1-based page."""
        pipeline = build_candidate_pipeline({}, page=3, page_size=20)

        assert {"$skip": 40} in pipeline
        assert {"$limit": 20} in pipeline

    def test_password_and_rank_projected_out(self):
        """Test the helper rank and the password hash never leave the database."""
        pipeline = build_candidate_pipeline({}, page=1, page_size=10)

        assert pipeline[-1] == {"$project": {"_pendingRank": 0, "password": 0}}


class TestPaging:
    """Tests for page arithmetic."""

    def test_offset_clamps_page(self):
        """Test page numbers below 1 start at the first page."""
        assert page_offset(0, 10) == 0
        assert page_offset(2, 10) == 10

    @pytest.mark.parametrize("total,size,expected", [(0, 10, 0), (1, 10, 1), (10, 10, 1), (11, 10, 2)])
    def test_page_count(self, total, size, expected):
        """Test page count rounds up."""
        assert page_count(total, size) == expected


# ============================================================================
# PROFILE HELPERS
# ============================================================================


class TestProfileHelpers:
    """Tests for profile field helpers."""

    def test_protected_fields_dropped(self):
        """Test credentials, role and status are never written from profile input."""
        fields = writable_profile_fields({
            "email": "x@example.com",
            "password": "x",
            "role": "admin",
            "status": "approve",
            "phone": "9876543210",
        })

        assert fields == {"phone": "9876543210"}

    def test_missing_mandatory_fields(self):
        """Test blank and absent mandatory fields are reported."""
        missing = missing_mandatory_fields({"name": "Ravi", "phone": "  ", "email": "r@example.com"})

        assert missing == ["aadhaarNo", "phone"]


# ============================================================================
# REMARKS
# ============================================================================


class TestWhatsappRemark:
    """Tests for build_whatsapp_url."""

    def test_url_format(self):
        """Test the link targets +91 and carries the encoded greeting."""
        url = build_whatsapp_url("Ravi Kumar", "98765-43210", "Photo is blurred")

        prefix, _, text = url.partition("?text=")
        assert prefix == "https://wa.me/+919876543210"
        assert unquote(text) == "Dear Ravi Kumar, there are issues with your form submission: Photo is blurred"
        assert " " not in text

    def test_blank_remark(self):
        """Test a blank remark is rejected first."""
        with pytest.raises(ValueError, match="Please enter a remark"):
            build_whatsapp_url("Ravi", None, "  ")

    def test_missing_phone(self):
        """Test a candidate without a phone cannot be messaged."""
        with pytest.raises(ValueError, match="User phone number not available"):
            build_whatsapp_url("Ravi", "", "Fix photo")

    def test_short_phone(self):
        """Test phones that are not 10 digits are rejected."""
        with pytest.raises(ValueError, match="Invalid phone number format"):
            build_whatsapp_url("Ravi", "12345", "Fix photo")
