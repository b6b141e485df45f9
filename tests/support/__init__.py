"""Shared helpers for integration testing."""

from .candidate_seeder import (
    CandidateSeeder,
    generate_candidate_document,
)
from .containers import (
    MongoDBContainer,
    get_mongodb_container,
)

__all__ = [
    "CandidateSeeder",
    "MongoDBContainer",
    "generate_candidate_document",
    "get_mongodb_container",
]
