"""
Shared pytest fixtures for the publication service tests.

Environment overrides are applied before any application module is imported
so the cached settings never enable rate limiting or tracing under test.
"""

import os

os.environ.setdefault("PUBLICATION_API_ENVIRONMENT", "development")
os.environ.setdefault("PUBLICATION_API_RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("PUBLICATION_API_TRACING_ENABLED", "false")

from datetime import datetime, timedelta, timezone
from typing import Callable
from unittest.mock import AsyncMock, Mock
from uuid import UUID, uuid4

import pytest
from prometheus_client import CollectorRegistry

from publication_service.src.models.category import Category
from publication_service.src.models.publication import Author, Publication, State, Type
from publication_service.src.repositories.categories_repo import CategoriesRepository
from publication_service.src.repositories.publications_repo import PublicationsRepository
from publication_service.src.services.blob_storage_service import BlobStorageService
from publication_service.src.services.date_time_provider import DateTimeProvider
from shared.metrics import PublicationMetrics


FIXED_NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


# ============================================================================
# IDENTITIES AND CLOCK
# ============================================================================


@pytest.fixture
def fixed_now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def author_id() -> UUID:
    return UUID("11111111-1111-1111-1111-111111111111")


@pytest.fixture
def other_user_id() -> UUID:
    return UUID("22222222-2222-2222-2222-222222222222")


@pytest.fixture
def date_time_provider(fixed_now) -> Mock:
    """Clock frozen at FIXED_NOW."""
    provider = Mock(spec=DateTimeProvider)
    provider.utc_now = fixed_now
    return provider


# ============================================================================
# DOMAIN OBJECTS
# ============================================================================


@pytest.fixture
def wallets_category() -> Category:
    return Category(exposed_id="wallets", display_name="Wallets")


@pytest.fixture
def make_publication(author_id, fixed_now) -> Callable[..., Publication]:
    """Factory for stored publications owned by ``author_id`` by default."""

    def _make(**overrides) -> Publication:
        data = {
            "id": "65f1a2b3c4d5e6f7a8b9c0d1",
            "exposed_id": uuid4(),
            "title": "Black leather wallet",
            "description": "Found near the library entrance",
            "incident_address": "Main Street 1",
            "incident_date": fixed_now - timedelta(days=1),
            "creation_time": fixed_now - timedelta(hours=20),
            "last_modification_date": fixed_now - timedelta(hours=20),
            "author": Author(id=author_id, username="bob"),
            "subject_category_id": "wallets",
            "subject_category_name": "Wallets",
            "type": Type.FOUND_SUBJECT,
            "state": State.OPEN,
        }
        data.update(overrides)
        return Publication(**data)

    return _make


# ============================================================================
# COLLABORATOR DOUBLES
# ============================================================================


@pytest.fixture
def publications_repo() -> AsyncMock:
    repo = AsyncMock(spec=PublicationsRepository)
    repo.by_exposed_id = PublicationsRepository.by_exposed_id
    return repo


@pytest.fixture
def categories_repo(wallets_category) -> AsyncMock:
    """Category store that knows only the wallets category."""
    repo = AsyncMock(spec=CategoriesRepository)

    async def filter_by(query):
        if query.get("exposed_id") == wallets_category.exposed_id:
            return [wallets_category]
        return []

    async def does_category_exist(category_id):
        return category_id == wallets_category.exposed_id

    repo.filter_by.side_effect = filter_by
    repo.does_category_exist.side_effect = does_category_exist
    repo.get_all.return_value = [wallets_category]
    return repo


@pytest.fixture
def file_storage() -> AsyncMock:
    storage = AsyncMock(spec=BlobStorageService)
    storage.upload.return_value = "http://minio:9000/publication-photos/new-photo.jpg"
    return storage


@pytest.fixture
def metrics_registry() -> CollectorRegistry:
    return CollectorRegistry()


@pytest.fixture
def metrics(metrics_registry) -> PublicationMetrics:
    return PublicationMetrics(registry=metrics_registry)
