"""
Domain exceptions raised by the publication service.

Each exception carries the HTTP status it maps to; ``main.py`` registers a
single handler for the base class.
"""

from typing import Optional

from fastapi import status


class PublicationServiceError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail: str = "Internal server error"

    def __init__(self, detail: Optional[str] = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class BadRequestException(PublicationServiceError):
    """Malformed input or a reference to an entity that does not exist."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Bad request"


class NotFoundException(PublicationServiceError):
    """Referenced publication or photo is absent."""

    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Resource not found"


class UnauthorizedException(PublicationServiceError):
    """Caller identity is unusable or the caller does not own the resource."""

    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "Unauthorized"
