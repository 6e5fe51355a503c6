"""Shared Pydantic models for service health reporting."""

from .common import HealthStatus, ServiceHealth

__all__ = [
    "HealthStatus",
    "ServiceHealth",
]
