"""
Shared pytest fixtures.

The API tests run the real FastAPI application against in-memory
repositories, so no MongoDB is needed outside tests/integration.
Environment overrides must be set before the application is imported.
"""

import os

os.environ.setdefault("PORTAL_RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("PORTAL_PASSWORD_BCRYPT_ROUNDS", "4")
os.environ.setdefault("PORTAL_JWT_SECRET_KEY", "test-secret-key-for-the-portal-test-suite-only")
os.environ.setdefault("PORTAL_LOG_FORMAT", "text")
os.environ.setdefault("PORTAL_LOG_LEVEL", "WARNING")

import re
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Tuple

import pytest
from bson import ObjectId
from fastapi.testclient import TestClient

from portal.src.database import to_object_id
from portal.src.dependencies import (
    get_audit_repository,
    get_contact_repository,
    get_form_repository,
    get_user_repository,
)
from portal.src.main import app
from portal.src.models.auth import Role
from portal.src.models.candidate import CANDIDATE_DEFAULTS, CandidateStatus
from portal.src.services.auth_service import AuthService

CANDIDATE_PASSWORD = "secret123"
ADMIN_PASSWORD = "admin-secret"


# ============================================================================
# IN-MEMORY REPOSITORIES
# ============================================================================


def _matches(document: Dict[str, Any], query: Dict[str, Any]) -> bool:
    """Evaluate the subset of MongoDB filters the listing queries use."""
    for key, condition in query.items():
        if key == "$and":
            if not all(_matches(document, clause) for clause in condition):
                return False
        elif key == "$or":
            if not any(_matches(document, clause) for clause in condition):
                return False
        elif isinstance(condition, dict):
            value = document.get(key)
            if "$ne" in condition and value == condition["$ne"]:
                return False
            if "$regex" in condition:
                flags = re.IGNORECASE if "i" in condition.get("$options", "") else 0
                if not isinstance(value, str) or not re.search(condition["$regex"], value, flags):
                    return False
        elif document.get(key) != condition:
            return False
    return True


class FakeUserRepository:
    """UserRepository stand-in backed by a dict."""

    def __init__(self):
        self.users: Dict[ObjectId, Dict[str, Any]] = {}
        self.last_query: Optional[Dict[str, Any]] = None
        self.last_pipeline: Optional[List[Dict[str, Any]]] = None

    def add_user(
        self,
        name: str,
        email: str,
        password_hash: str,
        role: Role = Role.CANDIDATE,
        profile: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        email = email.lower()
        if any(user["email"] == email for user in self.users.values()):
            raise ValueError("User already exists")

        now = datetime.now(timezone.utc)
        document = dict(CANDIDATE_DEFAULTS)
        document.update(profile or {})
        document.update({
            "_id": ObjectId(),
            "name": name,
            "email": email,
            "password": password_hash,
            "role": role.value,
            "createdAt": now,
            "updatedAt": now,
        })
        self.users[document["_id"]] = document
        return dict(document)

    async def create_user(self, name, email, password_hash, role=Role.CANDIDATE, profile=None):
        return self.add_user(name, email, password_hash, role=role, profile=profile)

    async def get_user_by_id(self, user_id: str) -> Optional[Dict[str, Any]]:
        document = self.users.get(to_object_id(user_id))
        return dict(document) if document else None

    async def get_user_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        email = email.strip().lower()
        for document in self.users.values():
            if document["email"] == email:
                return dict(document)
        return None

    async def update_user(self, user_id: str, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        document = self.users.get(to_object_id(user_id))
        if document is None:
            return None
        document.update(fields)
        document["updatedAt"] = datetime.now(timezone.utc)
        return dict(document)

    async def update_status(self, user_id: str, status: CandidateStatus) -> Optional[Dict[str, Any]]:
        return await self.update_user(user_id, {"status": status.value})

    async def list_candidates(
        self,
        query: Dict[str, Any],
        pipeline: List[Dict[str, Any]]
    ) -> Tuple[List[Dict[str, Any]], int]:
        self.last_query = query
        self.last_pipeline = pipeline

        matched = [dict(doc) for doc in self.users.values() if _matches(doc, query)]
        matched.sort(key=lambda doc: (doc.get("status") != CandidateStatus.PENDING.value, doc["_id"]))

        skip = next(stage["$skip"] for stage in pipeline if "$skip" in stage)
        limit = next(stage["$limit"] for stage in pipeline if "$limit" in stage)
        page = matched[skip:skip + limit]
        for doc in page:
            doc.pop("password", None)
        return page, len(matched)

    async def count_by_status(self) -> Dict[str, int]:
        counts: Dict[str, int] = {}
        for doc in self.users.values():
            if doc.get("role") == Role.ADMIN.value:
                continue
            key = doc.get("status") or "unknown"
            counts[key] = counts.get(key, 0) + 1
        return counts


class FakeFormRepository:
    """FormRepository stand-in; newest createdAt is the current window."""

    def __init__(self):
        self.forms: List[Dict[str, Any]] = []

    def add_form(self, fields: Dict[str, Any], created_at: Optional[datetime] = None) -> Dict[str, Any]:
        document = dict(fields)
        document["_id"] = ObjectId()
        document["createdAt"] = created_at or datetime.now(timezone.utc) + timedelta(microseconds=len(self.forms))
        self.forms.append(document)
        return dict(document)

    async def create_form(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        return self.add_form(fields)

    def _newest_first(self) -> List[Dict[str, Any]]:
        return sorted(self.forms, key=lambda doc: (doc["createdAt"], doc["_id"]), reverse=True)

    async def get_latest_form(self) -> Optional[Dict[str, Any]]:
        ordered = self._newest_first()
        return dict(ordered[0]) if ordered else None

    async def list_forms(self, skip: int = 0, limit: int = 10) -> Tuple[List[Dict[str, Any]], int]:
        ordered = self._newest_first()
        return [dict(doc) for doc in ordered[skip:skip + limit]], len(ordered)


class FakeAuditRepository:
    """Collects audit entries in a list."""

    def __init__(self):
        self.entries: List[Dict[str, Any]] = []

    async def create_audit_log(self, **kwargs: Any) -> Dict[str, Any]:
        self.entries.append(kwargs)
        return kwargs

    async def record(self, **kwargs: Any) -> None:
        await self.create_audit_log(**kwargs)

    def actions(self) -> List[str]:
        return [entry["action"].value for entry in self.entries]


class FakeContactRepository:
    """Collects contact messages in a list."""

    def __init__(self):
        self.messages: List[Dict[str, Any]] = []

    async def create_message(self, name: str, email: str, message: str) -> Dict[str, Any]:
        document = {
            "_id": ObjectId(),
            "name": name,
            "email": email,
            "message": message,
            "createdAt": datetime.now(timezone.utc),
        }
        self.messages.append(document)
        return document


# ============================================================================
# PYTEST FIXTURES
# ============================================================================


@pytest.fixture
def user_repo() -> FakeUserRepository:
    return FakeUserRepository()


@pytest.fixture
def form_repo() -> FakeFormRepository:
    return FakeFormRepository()


@pytest.fixture
def audit_repo() -> FakeAuditRepository:
    return FakeAuditRepository()


@pytest.fixture
def contact_repo() -> FakeContactRepository:
    return FakeContactRepository()


@pytest.fixture
def auth_service(user_repo) -> AuthService:
    return AuthService(user_repo)


@pytest.fixture
def client(user_repo, form_repo, audit_repo, contact_repo):
    """
    FastAPI test client wired to the in-memory repositories.

    Not used as a context manager, so the lifespan (MongoDB connection and
    admin bootstrap) does not run.
    """
    app.dependency_overrides[get_user_repository] = lambda: user_repo
    app.dependency_overrides[get_form_repository] = lambda: form_repo
    app.dependency_overrides[get_audit_repository] = lambda: audit_repo
    app.dependency_overrides[get_contact_repository] = lambda: contact_repo

    yield TestClient(app)

    app.dependency_overrides.clear()


@pytest.fixture
def candidate(user_repo, auth_service) -> Dict[str, Any]:
    """A candidate whose mandatory fields are filled."""
    return user_repo.add_user(
        name="Ravi Kumar",
        email="ravi@example.com",
        password_hash=auth_service.hash_password(CANDIDATE_PASSWORD),
        profile={"phone": "9876543210", "aadhaarNo": "123412341234"},
    )


@pytest.fixture
def admin(user_repo, auth_service) -> Dict[str, Any]:
    return user_repo.add_user(
        name="Portal Admin",
        email="admin@example.com",
        password_hash=auth_service.hash_password(ADMIN_PASSWORD),
        role=Role.ADMIN,
    )


def bearer(auth_service: AuthService, user: Dict[str, Any]) -> Dict[str, str]:
    """Authorization header for a user document."""
    token = auth_service.issue_token(user).access_token
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def candidate_headers(auth_service, candidate) -> Dict[str, str]:
    return bearer(auth_service, candidate)


@pytest.fixture
def admin_headers(auth_service, admin) -> Dict[str, str]:
    return bearer(auth_service, admin)


@pytest.fixture
def exam_form(form_repo) -> Dict[str, Any]:
    """The current exam window."""
    return form_repo.add_form({
        "examName": "CCAT",
        "heldDate": "June 2025",
        "startDate": "14 June 2025",
        "endDate": "15 June 2025",
        "examCount": 2,
    })


@pytest.fixture
def headers_for(auth_service):
    """Build an Authorization header for any user document."""
    return lambda user: bearer(auth_service, user)
