"""Prometheus metrics definitions and helpers.

Provides domain metric definitions for the publication service. HTTP-level
request metrics are defined next to the request middleware in ``main.py``.
"""

from functools import lru_cache
from typing import Callable

from prometheus_client import (
    Counter,
    generate_latest,
    REGISTRY,
    CollectorRegistry,
)


class PublicationMetrics:
    """Publication workflow metrics."""

    def __init__(self, registry: CollectorRegistry = REGISTRY) -> None:
        """Initialize publication metrics.

        Args:
            registry: Prometheus registry to use
        """
        # Publications created
        self.publications_created = Counter(
            "publications_created_total",
            "Total number of publications created",
            ["publication_type"],
            registry=registry,
        )

        # Publications deleted
        self.publications_deleted = Counter(
            "publications_deleted_total",
            "Total number of publications deleted",
            registry=registry,
        )

        # Votes recorded, by resulting action
        self.votes_recorded = Counter(
            "publication_votes_recorded_total",
            "Total number of vote changes",
            ["action"],
            registry=registry,
        )

        # Photo blob operations
        self.photo_operations = Counter(
            "publication_photo_operations_total",
            "Total number of subject photo uploads and deletions",
            ["operation"],
            registry=registry,
        )


@lru_cache()
def get_publication_metrics() -> PublicationMetrics:
    """Process-wide metrics bound to the default registry.

    Returns:
        Shared PublicationMetrics instance
    """
    return PublicationMetrics()


def get_metrics_handler() -> Callable[[], bytes]:
    """Get metrics handler for HTTP endpoint.

    Returns:
        Function that generates Prometheus metrics output
    """

    def metrics_handler() -> bytes:
        return generate_latest(REGISTRY)

    return metrics_handler
