"""
FastAPI dependency injection for database, storage, and authentication.

Provides injectable dependencies for:
- Database connections (pymongo async client)
- Caller authentication (JWT token validation)
- Repository instances
- Service instances
- Listing parameters

All dependencies use FastAPI's dependency injection system and are designed
to be composable and testable.
"""

import structlog
from datetime import datetime
from functools import lru_cache
from typing import Optional

from fastapi import Depends, HTTPException, Query, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pymongo import AsyncMongoClient
from pymongo.asynchronous.database import AsyncDatabase

from publication_service.src.config import Settings, get_settings
from publication_service.src.models.auth import CurrentUser
from publication_service.src.models.enums import PublicationState, PublicationType
from publication_service.src.models.requests import PublicationsResourceParameters, as_utc
from publication_service.src.repositories.categories_repo import CategoriesRepository
from publication_service.src.repositories.publications_repo import PublicationsRepository
from publication_service.src.services.auth_service import AuthService
from publication_service.src.services.blob_storage_service import BlobStorageService
from publication_service.src.services.category_service import CategoryService
from publication_service.src.services.date_time_provider import DateTimeProvider
from publication_service.src.services.publication_actions_service import PublicationActionsService
from publication_service.src.validators import PublicationRequestValidator
from shared.metrics import get_publication_metrics

logger = structlog.get_logger(__name__)

# HTTP Bearer token scheme
security = HTTPBearer(auto_error=False)


# ============================================================================
# DATABASE CLIENT
# ============================================================================

_client: Optional[AsyncMongoClient] = None


async def init_mongo_client() -> AsyncMongoClient:
    """
    Initialize the MongoDB client.

    Should be called during application startup.

    Returns:
        Async MongoDB client
    """
    global _client

    if _client is not None:
        return _client

    settings = get_settings()

    try:
        _client = AsyncMongoClient(
            settings.mongodb_url,
            uuidRepresentation="standard",
            tz_aware=True,
            serverSelectionTimeoutMS=settings.mongodb_server_selection_timeout_ms
        )
        await _client.admin.command("ping")

        logger.info(
            "mongo_client_initialized",
            database=settings.mongodb_database,
            host=settings.mongodb_url.split("@")[-1]
        )

        return _client

    except Exception as e:
        logger.error("mongo_client_init_failed", error=str(e))
        _client = None
        raise


async def close_mongo_client():
    """
    Close the MongoDB client.

    Should be called during application shutdown.
    """
    global _client

    if _client is not None:
        await _client.close()
        logger.info("mongo_client_closed")
        _client = None


def get_mongo_client() -> AsyncMongoClient:
    """
    Get the MongoDB client.

    Raises:
        RuntimeError: If the client is not initialized
    """
    if _client is None:
        logger.error("mongo_client_not_initialized")
        raise RuntimeError(
            "MongoDB client not initialized. Call init_mongo_client() during startup."
        )
    return _client


def get_database(settings: Settings = Depends(get_settings)) -> AsyncDatabase:
    """Get the service database."""
    return get_mongo_client()[settings.mongodb_database]


# ============================================================================
# AUTHENTICATION DEPENDENCIES
# ============================================================================


@lru_cache()
def get_auth_service() -> AuthService:
    """Get authentication service instance (cached)."""
    return AuthService(get_settings())


async def get_token_from_header(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> str:
    """
    Extract JWT token from Authorization header.

    Args:
        credentials: HTTP bearer credentials

    Returns:
        JWT token string

    Raises:
        HTTPException: If token is missing
    """
    if not credentials:
        logger.warning("auth_missing_credentials")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing authentication credentials",
            headers={"WWW-Authenticate": "Bearer"}
        )

    return credentials.credentials


async def get_current_user(
    token: str = Depends(get_token_from_header),
    auth_service: AuthService = Depends(get_auth_service)
) -> CurrentUser:
    """
    Get the current caller from the JWT token.

    Args:
        token: JWT token
        auth_service: Authentication service

    Returns:
        Current caller

    Raises:
        HTTPException: If token is invalid
    """
    current_user = auth_service.get_current_user(token)

    if not current_user:
        logger.warning("auth_invalid_token")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication token",
            headers={"WWW-Authenticate": "Bearer"}
        )

    logger.debug("user_authenticated", user_id=current_user.user_id)
    return current_user


# ============================================================================
# REPOSITORY DEPENDENCIES
# ============================================================================


def get_publications_repository(
    database: AsyncDatabase = Depends(get_database),
    settings: Settings = Depends(get_settings)
) -> PublicationsRepository:
    """Get publication repository instance."""
    return PublicationsRepository(database[settings.mongodb_publications_collection])


def get_categories_repository(
    database: AsyncDatabase = Depends(get_database),
    settings: Settings = Depends(get_settings)
) -> CategoriesRepository:
    """Get category repository instance."""
    return CategoriesRepository(database[settings.mongodb_categories_collection])


# ============================================================================
# SERVICE DEPENDENCIES
# ============================================================================


@lru_cache()
def get_date_time_provider() -> DateTimeProvider:
    return DateTimeProvider()


@lru_cache()
def get_blob_storage_service() -> BlobStorageService:
    """
    Get blob storage service instance (cached).

    The aioboto3 session is reused across requests; clients are opened per
    operation.
    """
    return BlobStorageService(get_settings())


def get_publication_actions_service(
    publications_repo: PublicationsRepository = Depends(get_publications_repository),
    categories_repo: CategoriesRepository = Depends(get_categories_repository),
    date_time_provider: DateTimeProvider = Depends(get_date_time_provider),
    file_storage: BlobStorageService = Depends(get_blob_storage_service),
    settings: Settings = Depends(get_settings)
) -> PublicationActionsService:
    """
    Get publication actions service with injected repositories.

    Returns:
        Publication actions service
    """
    metrics = get_publication_metrics() if settings.metrics_enabled else None
    return PublicationActionsService(
        publications_repo,
        categories_repo,
        date_time_provider,
        file_storage,
        metrics
    )


def get_category_service(
    categories_repo: CategoriesRepository = Depends(get_categories_repository)
) -> CategoryService:
    return CategoryService(categories_repo)


def get_publication_request_validator(
    date_time_provider: DateTimeProvider = Depends(get_date_time_provider),
    categories_repo: CategoriesRepository = Depends(get_categories_repository)
) -> PublicationRequestValidator:
    return PublicationRequestValidator(date_time_provider, categories_repo)


# ============================================================================
# PAGINATION DEPENDENCIES
# ============================================================================


async def get_resource_parameters(
    page_number: int = Query(1),
    page_size: Optional[int] = Query(None),
    only_user_publications: bool = Query(False),
    subject_category_id: Optional[str] = Query(None),
    publication_state: PublicationState = Query(PublicationState.OPEN),
    search_query: Optional[str] = Query(None),
    from_date: Optional[datetime] = Query(None),
    to_date: Optional[datetime] = Query(None),
    publication_type: PublicationType = Query(PublicationType.FOUND_SUBJECT),
    settings: Settings = Depends(get_settings)
) -> PublicationsResourceParameters:
    """
    Build listing parameters from the query string.

    Page number and size are clamped: below 1 becomes 1, and the size is
    capped at the configured maximum. An inverted date range is rejected.

    Raises:
        HTTPException: If from_date is later than to_date
    """
    if page_number < 1:
        page_number = 1

    if page_size is None:
        page_size = settings.pagination_default_page_size
    elif page_size < 1:
        page_size = 1
    elif page_size > settings.pagination_max_page_size:
        page_size = settings.pagination_max_page_size

    from_date = as_utc(from_date) if from_date else None
    to_date = as_utc(to_date) if to_date else None
    if from_date and to_date and from_date > to_date:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="from_date must not be later than to_date"
        )

    return PublicationsResourceParameters(
        page_number=page_number,
        page_size=page_size,
        only_user_publications=only_user_publications,
        subject_category_id=subject_category_id,
        publication_state=publication_state,
        search_query=search_query or None,
        from_date=from_date,
        to_date=to_date,
        publication_type=publication_type
    )
