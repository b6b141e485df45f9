"""Shared Pydantic models for service health."""

from .common import (
    HealthStatus,
    ReadinessInfo,
    ServiceInfo,
)

__all__ = [
    "HealthStatus",
    "ReadinessInfo",
    "ServiceInfo",
]
