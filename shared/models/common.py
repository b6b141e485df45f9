"""Common Pydantic models shared across services."""

from enum import Enum
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class HealthStatus(str, Enum):
    """Health status enum."""

    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"
    DEGRADED = "degraded"


class ServiceInfo(BaseModel):
    """Liveness response."""

    status: HealthStatus = Field(..., description="Service health status")
    service: str = Field(..., description="Service name")
    version: str = Field(..., description="Service version")
    environment: str = Field(..., description="Deployment environment")
    uptime_seconds: float = Field(..., ge=0, description="Service uptime in seconds")

    model_config = ConfigDict(use_enum_values=True)


class ReadinessInfo(BaseModel):
    """Readiness response with per-dependency health."""

    status: str = Field(..., description="ready | not_ready")
    service: str = Field(..., description="Service name")
    version: str = Field(..., description="Service version")
    checks: Dict[str, HealthStatus] = Field(
        default_factory=dict, description="Dependency health status"
    )
    error: Optional[str] = Field(None, description="First failure, if any")

    model_config = ConfigDict(use_enum_values=True)

    @property
    def is_ready(self) -> bool:
        return all(status == HealthStatus.HEALTHY.value for status in self.checks.values())
