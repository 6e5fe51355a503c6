"""Common Pydantic models shared across services."""

from datetime import datetime, timezone
from enum import Enum
from typing import Dict

from pydantic import BaseModel, ConfigDict, Field


class HealthStatus(str, Enum):
    """Health status enum."""

    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"
    DEGRADED = "degraded"


class ServiceHealth(BaseModel):
    """Health report returned by liveness and readiness probes."""

    model_config = ConfigDict(use_enum_values=True)

    status: HealthStatus = Field(..., description="Overall service health status")
    service: str = Field(..., description="Service name")
    version: str = Field(..., description="Service version")
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    dependencies: Dict[str, HealthStatus] = Field(
        default_factory=dict, description="Dependency health status"
    )

    @classmethod
    def from_dependencies(
        cls, service: str, version: str, dependencies: Dict[str, HealthStatus]
    ) -> "ServiceHealth":
        """Derive the overall status from dependency checks.

        Args:
            service: Service name
            version: Service version
            dependencies: Per-dependency health

        Returns:
            Healthy only when every dependency is healthy
        """
        healthy = all(status == HealthStatus.HEALTHY for status in dependencies.values())
        return cls(
            status=HealthStatus.HEALTHY if healthy else HealthStatus.UNHEALTHY,
            service=service,
            version=version,
            dependencies=dependencies,
        )
