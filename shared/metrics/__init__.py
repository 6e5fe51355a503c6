"""Metrics module using Prometheus."""

from .prometheus_metrics import (
    PublicationMetrics,
    get_publication_metrics,
    get_metrics_handler,
)

__all__ = [
    "PublicationMetrics",
    "get_publication_metrics",
    "get_metrics_handler",
]
