"""Service layer for the publication API."""

from publication_service.src.services.blob_storage_service import BlobStorageService
from publication_service.src.services.category_service import CategoryService
from publication_service.src.services.date_time_provider import DateTimeProvider
from publication_service.src.services.publication_actions_service import PublicationActionsService

__all__ = [
    "BlobStorageService",
    "CategoryService",
    "DateTimeProvider",
    "PublicationActionsService",
]
