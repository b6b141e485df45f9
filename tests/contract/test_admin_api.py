"""
Contract tests for admin endpoints.

Tests verify the API contract for:
- POST/GET /api/admin/form and GET /api/admin/forms
- GET /api/admin/users and GET /api/admin/stats
- GET/PUT /api/admin/candidate/{id}
- POST /api/admin/candidate/{id}/remark
- GET /api/admin/candidate/{id}/documents.pdf
"""

from urllib.parse import unquote

import pytest
from bson import ObjectId

from portal.src.dependencies import MAX_PAGE


FORM_URL = "/api/admin/form"
USERS_URL = "/api/admin/users"
STATS_URL = "/api/admin/stats"

VALID_FORM = {
    "examName": "CCAT",
    "heldDate": "June 2025",
    "startDate": "2025-06-14",
    "endDate": "2025-06-15",
    "examCount": 2,
}


def candidate_url(candidate_id, suffix: str = "") -> str:
    return f"/api/admin/candidate/{candidate_id}{suffix}"


@pytest.fixture
def roster(user_repo, auth_service, candidate, admin):
    """
    A mix of users for listing tests, in insertion order:
    candidate (pending), Meera (approve), Kiran (pending), Dev (reject),
    plus an incomplete signup and the admin, neither of which is listed.
    """
    password = auth_service.hash_password("secret123")

    def add(name, email, status, phone, aadhaar):
        return user_repo.add_user(name, email, password, profile={
            "status": status, "phone": phone, "aadhaarNo": aadhaar
        })

    return {
        "ravi": candidate,
        "meera": add("Meera Shah", "meera@example.com", "approve", "9000000001", "111122223333"),
        "kiran": add("Kiran Rao", "kiran@example.com", "pending", "9000000002", "444455556666"),
        "dev": add("Dev Joshi", "dev@example.com", "reject", "9000000003", "777788889999"),
        "incomplete": add("No Phone", "nophone@example.com", "pending", "", ""),
    }


# ============================================================================
# EXAM WINDOWS
# ============================================================================


class TestExamFormContract:
    """Contract tests for exam window endpoints."""

    def test_create_form(self, client, admin_headers, form_repo, audit_repo):
        """Test a valid exam window is stored with normalised dates."""
        response = client.post(FORM_URL, headers=admin_headers, json=VALID_FORM)

        assert response.status_code == 201
        body = response.json()
        assert body["examName"] == "CCAT"
        assert body["startDate"] == "14 June 2025"
        assert body["endDate"] == "15 June 2025"
        assert body["examCount"] == 2
        assert body["id"] == str(form_repo.forms[0]["_id"])
        assert audit_repo.actions() == ["exam_form_create"]

    @pytest.mark.parametrize("override,detail", [
        ({"examName": ""}, "All fields are required"),
        ({"heldDate": "2025-06"}, "Invalid held date format (Month YYYY)"),
        ({"examCount": 0}, "Invalid exam count"),
        ({"startDate": "14/06/2025"}, "Invalid date format"),
        ({"startDate": "2025-06-16"}, "End date must be after start date"),
    ])
    def test_create_form_rejected(self, client, admin_headers, form_repo, override, detail):
        """Test each validation failure returns 400 with its message."""
        response = client.post(FORM_URL, headers=admin_headers, json={**VALID_FORM, **override})

        assert response.status_code == 400
        assert response.json()["detail"] == detail
        assert form_repo.forms == []

    def test_candidate_cannot_create_form(self, client, candidate_headers):
        """Test exam window management is admin only."""
        response = client.post(FORM_URL, headers=candidate_headers, json=VALID_FORM)

        assert response.status_code == 403
        assert response.json()["detail"] == "Permission denied: manage:exam_forms required"

    def test_current_form_readable_by_candidate(self, client, candidate_headers, exam_form):
        """Test any signed-in user can read the current exam window."""
        response = client.get(FORM_URL, headers=candidate_headers)

        assert response.status_code == 200
        assert response.json()["examName"] == "CCAT"

    def test_current_form_is_latest(self, client, admin_headers):
        """Test the newest exam window is current."""
        client.post(FORM_URL, headers=admin_headers, json=VALID_FORM)
        client.post(FORM_URL, headers=admin_headers, json={**VALID_FORM, "examName": "NEET"})

        response = client.get(FORM_URL, headers=admin_headers)

        assert response.json()["examName"] == "NEET"

    def test_no_current_form(self, client, candidate_headers):
        """Test 404 when nothing has been configured."""
        response = client.get(FORM_URL, headers=candidate_headers)

        assert response.status_code == 404
        assert response.json()["detail"] == "No forms found"

    def test_list_forms(self, client, admin_headers):
        """Test history lists exam windows newest first."""
        for name in ("A", "B", "C"):
            client.post(FORM_URL, headers=admin_headers, json={**VALID_FORM, "examName": name})

        response = client.get("/api/admin/forms", headers=admin_headers, params={"pageSize": 2})

        body = response.json()
        assert response.status_code == 200
        assert [form["examName"] for form in body["forms"]] == ["C", "B"]
        assert body["total"] == 3
        assert body["pageSize"] == 2


# ============================================================================
# LISTING AND STATS
# ============================================================================


class TestCandidateListContract:
    """Contract tests for GET /api/admin/users."""

    def test_list_pending_first(self, client, admin_headers, roster):
        """Test only complete candidates are listed, pending first in signup order."""
        response = client.get(USERS_URL, headers=admin_headers)

        assert response.status_code == 200
        body = response.json()
        assert [user["name"] for user in body["users"]] == ["Ravi Kumar", "Kiran Rao", "Meera Shah", "Dev Joshi"]
        assert body["total"] == 4
        assert body["page"] == 1
        assert body["pageSize"] == 10
        assert body["totalPages"] == 1
        assert all("password" not in user for user in body["users"])

    def test_status_filter(self, client, admin_headers, roster):
        """Test filtering by status."""
        response = client.get(USERS_URL, headers=admin_headers, params={"status": "approve"})

        assert [user["name"] for user in response.json()["users"]] == ["Meera Shah"]

    def test_invalid_status_filter(self, client, admin_headers, roster):
        """Test statuses outside the review set are rejected."""
        response = client.get(USERS_URL, headers=admin_headers, params={"status": "approved"})

        assert response.status_code == 422

    @pytest.mark.parametrize("term,expected", [
        ("kiran", ["Kiran Rao"]),
        ("MEERA@EXAMPLE", ["Meera Shah"]),
        ("7777", ["Dev Joshi"]),
        ("9000000003", ["Dev Joshi"]),
        ("(", []),
    ])
    def test_search(self, client, admin_headers, roster, term, expected):
        """Test search matches name, email, Aadhaar or phone case-insensitively and literally."""
        response = client.get(USERS_URL, headers=admin_headers, params={"search": term})

        assert [user["name"] for user in response.json()["users"]] == expected

    def test_pagination(self, client, admin_headers, roster):
        """Test pages are cut after ordering."""
        response = client.get(USERS_URL, headers=admin_headers, params={"page": 2, "pageSize": 3})

        body = response.json()
        assert [user["name"] for user in body["users"]] == ["Dev Joshi"]
        assert body["totalPages"] == 2

    def test_page_size_clamped(self, client, admin_headers, roster, user_repo):
        """Test oversized pages are capped at the configured maximum."""
        response = client.get(USERS_URL, headers=admin_headers, params={"pageSize": 5000})

        assert response.json()["pageSize"] == 100
        assert {"$limit": 100} in user_repo.last_pipeline

    def test_page_number_too_large(self, client, admin_headers, roster):
        """Test page numbers past the maximum fail validation instead of overflowing $skip."""
        response = client.get(USERS_URL, headers=admin_headers, params={"page": 10 ** 19})

        assert response.status_code == 422

    def test_last_allowed_page(self, client, admin_headers, roster, user_repo):
        """Test the largest accepted page returns an empty page."""
        response = client.get(USERS_URL, headers=admin_headers, params={"page": MAX_PAGE, "pageSize": 100})

        assert response.status_code == 200
        assert response.json()["users"] == []
        assert {"$skip": (MAX_PAGE - 1) * 100} in user_repo.last_pipeline

    def test_candidate_cannot_list(self, client, candidate_headers):
        response = client.get(USERS_URL, headers=candidate_headers)

        assert response.status_code == 403


class TestStatsContract:
    """Contract tests for GET /api/admin/stats."""

    def test_stats(self, client, admin_headers, roster):
        """Test counts cover every non-admin user by status."""
        response = client.get(STATS_URL, headers=admin_headers)

        assert response.status_code == 200
        assert response.json() == {"total": 5, "approved": 1, "pending": 3, "rejected": 1}

    def test_stats_empty(self, client, admin_headers):
        """Test all counters are zero with no candidates."""
        response = client.get(STATS_URL, headers=admin_headers)

        assert response.json() == {"total": 0, "approved": 0, "pending": 0, "rejected": 0}


# ============================================================================
# CANDIDATE DETAIL AND REVIEW
# ============================================================================


class TestCandidateReviewContract:
    """Contract tests for candidate detail, status and remarks."""

    def test_get_candidate(self, client, admin_headers, candidate):
        """Test the full profile is returned without the password."""
        response = client.get(candidate_url(candidate["_id"]), headers=admin_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["name"] == "Ravi Kumar"
        assert "password" not in body

    def test_get_candidate_invalid_id(self, client, admin_headers):
        response = client.get(candidate_url("not-an-id"), headers=admin_headers)

        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid candidate id"

    def test_get_candidate_missing(self, client, admin_headers):
        response = client.get(candidate_url(ObjectId()), headers=admin_headers)

        assert response.status_code == 404
        assert response.json()["detail"] == "User not found"

    def test_update_status(self, client, admin_headers, admin, candidate, user_repo, audit_repo):
        """Test the status changes and the change is audited with old and new values."""
        response = client.put(candidate_url(candidate["_id"]), headers=admin_headers, json={"status": "approve"})

        assert response.status_code == 200
        assert response.json()["status"] == "approve"
        assert user_repo.users[candidate["_id"]]["status"] == "approve"

        entry = audit_repo.entries[0]
        assert entry["action"].value == "candidate_status_update"
        assert entry["user_id"] == str(admin["_id"])
        assert entry["details"] == {"old_status": "pending", "new_status": "approve"}

    def test_update_status_invalid_value(self, client, admin_headers, candidate):
        """Test unknown statuses fail validation."""
        response = client.put(candidate_url(candidate["_id"]), headers=admin_headers, json={"status": "approved"})

        assert response.status_code == 422

    def test_update_status_missing_candidate(self, client, admin_headers):
        response = client.put(candidate_url(ObjectId()), headers=admin_headers, json={"status": "reject"})

        assert response.status_code == 404

    def test_candidate_cannot_update_status(self, client, candidate_headers, candidate):
        """Test candidates cannot review themselves."""
        response = client.put(candidate_url(candidate["_id"]), headers=candidate_headers, json={"status": "approve"})

        assert response.status_code == 403

    def test_remark_link(self, client, admin_headers, candidate, audit_repo):
        """Test the remark link opens WhatsApp with the candidate and message."""
        response = client.post(candidate_url(candidate["_id"], "/remark"), headers=admin_headers, json={
            "remark": "Photo is blurred"
        })

        assert response.status_code == 200
        url = response.json()["url"]
        assert url.startswith("https://wa.me/+919876543210?text=")
        assert unquote(url.split("?text=")[1]).endswith("Photo is blurred")
        assert audit_repo.actions() == ["candidate_remark"]

    def test_blank_remark(self, client, admin_headers, candidate):
        response = client.post(candidate_url(candidate["_id"], "/remark"), headers=admin_headers, json={"remark": " "})

        assert response.status_code == 400
        assert response.json()["detail"] == "Please enter a remark"

    def test_remark_without_phone(self, client, admin_headers, user_repo, auth_service):
        """Test candidates without a phone cannot be messaged."""
        user = user_repo.add_user("Asha", "asha@example.com", auth_service.hash_password("secret123"))

        response = client.post(candidate_url(user["_id"], "/remark"), headers=admin_headers, json={"remark": "Fix"})

        assert response.status_code == 400
        assert response.json()["detail"] == "User phone number not available"

    def test_remark_missing_candidate(self, client, admin_headers):
        response = client.post(candidate_url(ObjectId(), "/remark"), headers=admin_headers, json={"remark": "Fix"})

        assert response.status_code == 404


# ============================================================================
# DOCUMENTS
# ============================================================================


class TestCandidateDocumentsContract:
    """Contract tests for GET /api/admin/candidate/{id}/documents.pdf."""

    def test_documents_pdf(self, client, admin_headers, candidate, exam_form, audit_repo):
        """Test the admin copy is an A4 PDF named after the candidate."""
        response = client.get(candidate_url(candidate["_id"], "/documents.pdf"), headers=admin_headers)

        assert response.status_code == 200
        assert response.headers["content-type"] == "application/pdf"
        assert response.headers["content-disposition"] == 'attachment; filename="user-Ravi Kumar-preview.pdf"'
        assert response.content.startswith(b"%PDF")
        assert audit_repo.entries[0]["details"] == {"audience": "admin", "page_size": "a4"}

    def test_documents_without_exam_window(self, client, admin_headers, candidate):
        """Test a bundle renders with blanks when no exam window exists."""
        response = client.get(candidate_url(candidate["_id"], "/documents.pdf"), headers=admin_headers)

        assert response.status_code == 200
        assert response.content.startswith(b"%PDF")

    def test_documents_missing_candidate(self, client, admin_headers):
        response = client.get(candidate_url(ObjectId(), "/documents.pdf"), headers=admin_headers)

        assert response.status_code == 404

    def test_candidate_cannot_download_admin_copy(self, client, candidate_headers, candidate):
        response = client.get(candidate_url(candidate["_id"], "/documents.pdf"), headers=candidate_headers)

        assert response.status_code == 403
