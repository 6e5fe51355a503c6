"""Unit tests for shared logging, tracing, metrics and health models."""

from datetime import timezone

import pytest
from opentelemetry.sdk.trace import TracerProvider
from prometheus_client import CollectorRegistry

from publication_service.src.services.date_time_provider import DateTimeProvider
from publication_service.src.services.category_service import CategoryService
from publication_service.src.exceptions import NotFoundException, UnauthorizedException
from shared.logging.structured_logger import add_trace_context, make_app_context
from shared.metrics import PublicationMetrics
from shared.models import HealthStatus, ServiceHealth
from shared.tracing import trace_function


class TestDateTimeProvider:
    """Test the clock"""

    def test_utc_now_is_aware(self):
        assert DateTimeProvider().utc_now.tzinfo == timezone.utc


class TestLoggingProcessors:
    """Test structlog processors"""

    def test_app_context(self):
        processor = make_app_context("staging")

        event = processor(None, "info", {"event": "publication_created"})

        assert event["app"] == "lostandfound"
        assert event["environment"] == "staging"

    def test_trace_context_inside_span(self):
        tracer = TracerProvider().get_tracer(__name__)

        with tracer.start_as_current_span("unit"):
            event = add_trace_context(None, "info", {"event": "x"})

        assert len(event["trace_id"]) == 32
        assert len(event["span_id"]) == 16

    def test_trace_context_without_span(self):
        assert add_trace_context(None, "info", {"event": "x"}) == {"event": "x"}


class TestTraceFunction:
    """Test the tracing decorator"""

    def test_sync_function(self):
        @trace_function()
        def add(a, b):
            return a + b

        assert add(1, 2) == 3
        assert add.__name__ == "add"

    @pytest.mark.asyncio
    async def test_async_function(self):
        @trace_function("custom.span")
        async def double(value):
            return value * 2

        assert await double(4) == 8

    @pytest.mark.asyncio
    async def test_exception_propagates(self):
        @trace_function()
        async def boom():
            raise ValueError("boom")

        with pytest.raises(ValueError):
            await boom()


class TestPublicationMetrics:
    """Test metric registration"""

    def test_counters_registered(self):
        registry = CollectorRegistry()
        metrics = PublicationMetrics(registry=registry)

        metrics.photo_operations.labels(operation="upload").inc()

        assert registry.get_sample_value(
            "publication_photo_operations_total", {"operation": "upload"}
        ) == 1.0


class TestServiceHealth:
    """Test health aggregation"""

    def test_all_healthy(self):
        health = ServiceHealth.from_dependencies(
            "svc", "1.0.0", {"database": HealthStatus.HEALTHY}
        )

        assert health.status == "healthy"

    def test_unhealthy_dependency(self):
        health = ServiceHealth.from_dependencies(
            "svc", "1.0.0", {"database": HealthStatus.UNHEALTHY}
        )

        assert health.status == "unhealthy"
        assert health.model_dump(mode="json")["dependencies"] == {"database": "unhealthy"}


class TestCategoryService:
    """Test category listing"""

    @pytest.mark.asyncio
    async def test_get_categories(self, categories_repo):
        categories = await CategoryService(categories_repo).get_categories()

        assert [(category.id, category.display_name) for category in categories] == [
            ("wallets", "Wallets"),
        ]


class TestExceptions:
    """Test domain error details"""

    def test_default_detail(self):
        error = NotFoundException()

        assert error.detail == "Resource not found"
        assert error.status_code == 404

    def test_explicit_detail(self):
        error = UnauthorizedException("Not the author")

        assert str(error) == "Not the author"
        assert error.status_code == 401
