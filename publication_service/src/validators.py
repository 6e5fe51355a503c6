"""
Cross-field validation for publication requests.

Shape rules (non-empty strings, enum membership) are enforced by the
pydantic request models. The rules here need collaborators: the clock for
"incident date is not in the future" and the category store for "category
exists".
"""

import structlog
from typing import List, Union

from pydantic import BaseModel

from publication_service.src.exceptions import BadRequestException
from publication_service.src.models.requests import (
    CreatePublicationRequest,
    UpdatePublicationDetailsRequest,
)
from publication_service.src.repositories.categories_repo import CategoriesRepository
from publication_service.src.services.date_time_provider import DateTimeProvider

logger = structlog.get_logger(__name__)


class ValidationFailure(BaseModel):
    """Single failed rule."""
    field: str
    message: str


class RequestValidationFailed(BadRequestException):
    """Raised when one or more cross-field rules fail."""

    default_detail = "One or more validation errors occurred."

    def __init__(self, errors: List[ValidationFailure]):
        super().__init__()
        self.errors = errors


class PublicationRequestValidator:
    """Validator for create and update-details requests."""

    def __init__(self, date_time_provider: DateTimeProvider, categories_repo: CategoriesRepository):
        self.date_time_provider = date_time_provider
        self.categories_repo = categories_repo

    async def validate(
        self,
        dto: Union[CreatePublicationRequest, UpdatePublicationDetailsRequest]
    ) -> List[ValidationFailure]:
        """
        Evaluate every rule and collect the failures.

        Args:
            dto: Create or update-details request

        Returns:
            Failed rules, empty when the request is valid
        """
        failures: List[ValidationFailure] = []

        if dto.incident_date > self.date_time_provider.utc_now:
            failures.append(ValidationFailure(
                field="incident_date",
                message="Incident date must not be in the future."
            ))

        if not await self.categories_repo.does_category_exist(dto.subject_category_id):
            failures.append(ValidationFailure(
                field="subject_category_id",
                message="Category with this id does not exist."
            ))

        return failures

    async def ensure_valid(
        self,
        dto: Union[CreatePublicationRequest, UpdatePublicationDetailsRequest]
    ) -> None:
        """
        Raise when the request breaks any rule.

        Raises:
            RequestValidationFailed: With the list of failed rules
        """
        failures = await self.validate(dto)
        if failures:
            logger.warning(
                "publication_request_invalid",
                fields=[failure.field for failure in failures]
            )
            raise RequestValidationFailed(failures)
