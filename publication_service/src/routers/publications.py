"""
Publication router.

Provides REST API endpoints for:
- Listing publications with filtering and pagination
- Creating publications (multipart form with an optional subject photo)
- Reading, editing and deleting a single publication
- Changing state, voting, and replacing or removing the subject photo

All endpoints require a bearer token. Mutating endpoints other than voting
are restricted to the publication's author.
"""

import structlog
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, Response, UploadFile, status
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError

from publication_service.src.config import Settings, get_settings
from publication_service.src.dependencies import (
    get_current_user,
    get_publication_actions_service,
    get_publication_request_validator,
    get_resource_parameters,
)
from publication_service.src.exceptions import BadRequestException
from publication_service.src.models.auth import CurrentUser
from publication_service.src.models.enums import PublicationType
from publication_service.src.models.files import FileDto
from publication_service.src.models.requests import (
    CreatePublicationRequest,
    PublicationsResourceParameters,
    UpdatePublicationDetailsRequest,
    UpdatePublicationRatingRequest,
    UpdatePublicationStateRequest,
)
from publication_service.src.models.responses import (
    ErrorResponse,
    PublicationBaseDataResponse,
    PublicationDetailsResponse,
)
from publication_service.src.services.publication_actions_service import PublicationActionsService
from publication_service.src.validators import PublicationRequestValidator

logger = structlog.get_logger(__name__)

router = APIRouter(
    prefix="/publications",
    tags=["Publications"],
    responses={
        401: {"model": ErrorResponse, "description": "Unauthorized"},
        422: {"model": ErrorResponse, "description": "Validation Error"}
    }
)


async def read_upload(upload: Optional[UploadFile], settings: Settings) -> Optional[FileDto]:
    """
    Read an uploaded file into memory, reading at most one byte past the size limit.

    Raises:
        BadRequestException: If the file exceeds the configured size limit
    """
    if upload is None:
        return None

    content = await upload.read(settings.security_max_photo_size + 1)
    if len(content) > settings.security_max_photo_size:
        logger.warning(
            "photo_too_large",
            file_name=upload.filename,
            limit_bytes=settings.security_max_photo_size
        )
        raise BadRequestException("The publication photo is too large")

    return FileDto(
        name=upload.filename or "",
        content=content,
        content_type=upload.content_type or "application/octet-stream"
    )


# ============================================================================
# COLLECTION ENDPOINTS
# ============================================================================


@router.get(
    "",
    response_model=List[PublicationBaseDataResponse],
    summary="List Publications",
    description="""
    List publications matching the filter, newest incident first.

    Pagination metadata is returned as JSON in the `X-Pagination` header.
    """
)
async def get_publications(
    response: Response,
    resource_parameters: PublicationsResourceParameters = Depends(get_resource_parameters),
    current_user: CurrentUser = Depends(get_current_user),
    service: PublicationActionsService = Depends(get_publication_actions_service)
) -> List[PublicationBaseDataResponse]:
    items, pagination_metadata = await service.get_publications(
        current_user.user_id, resource_parameters
    )
    response.headers["X-Pagination"] = pagination_metadata.model_dump_json()
    return items


@router.post(
    "",
    response_model=PublicationDetailsResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create Publication",
    responses={
        400: {"model": ErrorResponse, "description": "Invalid category or incident date"}
    }
)
async def create_publication(
    response: Response,
    title: str = Form(...),
    description: str = Form(...),
    incident_address: str = Form(...),
    incident_date: datetime = Form(...),
    subject_category_id: str = Form(...),
    publication_type: PublicationType = Form(...),
    subject_photo: Optional[UploadFile] = File(None),
    current_user: CurrentUser = Depends(get_current_user),
    service: PublicationActionsService = Depends(get_publication_actions_service),
    validator: PublicationRequestValidator = Depends(get_publication_request_validator),
    settings: Settings = Depends(get_settings)
) -> PublicationDetailsResponse:
    """
    Create a publication authored by the caller.

    Raises:
        RequestValidationError: If a form field is blank
        RequestValidationFailed: If the incident date or category is invalid
    """
    try:
        publication_dto = CreatePublicationRequest(
            title=title,
            description=description,
            incident_address=incident_address,
            incident_date=incident_date,
            subject_category_id=subject_category_id,
            publication_type=publication_type
        )
    except ValidationError as e:
        raise RequestValidationError(e.errors(include_url=False, include_context=False))

    await validator.ensure_valid(publication_dto)
    photo = await read_upload(subject_photo, settings)

    publication = await service.create_publication(
        current_user.user_id, current_user.username, publication_dto, photo
    )
    response.headers["Location"] = f"{settings.api_prefix}/publications/{publication.publication_id}"
    return publication


# ============================================================================
# SINGLE PUBLICATION ENDPOINTS
# ============================================================================


@router.get(
    "/{publication_id}",
    response_model=PublicationDetailsResponse,
    summary="Get Publication Details",
    responses={404: {"model": ErrorResponse, "description": "Publication not found"}}
)
async def get_publication_details(
    publication_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    service: PublicationActionsService = Depends(get_publication_actions_service)
) -> PublicationDetailsResponse:
    return await service.get_publication_details(current_user.user_id, publication_id)


@router.put(
    "/{publication_id}",
    response_model=PublicationDetailsResponse,
    summary="Update Publication Details",
    responses={
        400: {"model": ErrorResponse, "description": "Invalid category or incident date"},
        404: {"model": ErrorResponse, "description": "Publication not found"}
    }
)
async def update_publication_details(
    publication_id: UUID,
    publication_details_dto: UpdatePublicationDetailsRequest,
    current_user: CurrentUser = Depends(get_current_user),
    service: PublicationActionsService = Depends(get_publication_actions_service),
    validator: PublicationRequestValidator = Depends(get_publication_request_validator)
) -> PublicationDetailsResponse:
    await validator.ensure_valid(publication_details_dto)
    return await service.update_publication_details(
        current_user.user_id, publication_id, publication_details_dto
    )


@router.delete(
    "/{publication_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Publication",
    responses={404: {"model": ErrorResponse, "description": "Publication not found"}}
)
async def delete_publication(
    publication_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    service: PublicationActionsService = Depends(get_publication_actions_service)
) -> Response:
    await service.delete_publication(current_user.user_id, publication_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.patch(
    "/{publication_id}/state",
    response_model=PublicationDetailsResponse,
    summary="Update Publication State",
    responses={404: {"model": ErrorResponse, "description": "Publication not found"}}
)
async def update_publication_state(
    publication_id: UUID,
    publication_state_dto: UpdatePublicationStateRequest,
    current_user: CurrentUser = Depends(get_current_user),
    service: PublicationActionsService = Depends(get_publication_actions_service)
) -> PublicationDetailsResponse:
    return await service.update_publication_state(
        current_user.user_id, publication_id, publication_state_dto
    )


@router.patch(
    "/{publication_id}/rating",
    response_model=PublicationDetailsResponse,
    summary="Vote On Publication",
    description="Cast, change or retract (`NoVote`) the caller's vote.",
    responses={404: {"model": ErrorResponse, "description": "Publication not found"}}
)
async def update_publication_rating(
    publication_id: UUID,
    publication_rating_dto: UpdatePublicationRatingRequest,
    current_user: CurrentUser = Depends(get_current_user),
    service: PublicationActionsService = Depends(get_publication_actions_service)
) -> PublicationDetailsResponse:
    return await service.update_publication_rating(
        current_user.user_id, publication_id, publication_rating_dto
    )


# ============================================================================
# PHOTO ENDPOINTS
# ============================================================================


@router.patch(
    "/{publication_id}/photo",
    response_model=PublicationDetailsResponse,
    summary="Replace Publication Photo",
    responses={
        400: {"model": ErrorResponse, "description": "Empty or oversized photo"},
        404: {"model": ErrorResponse, "description": "Publication not found"}
    }
)
async def update_publication_photo(
    publication_id: UUID,
    photo: UploadFile = File(...),
    current_user: CurrentUser = Depends(get_current_user),
    service: PublicationActionsService = Depends(get_publication_actions_service),
    settings: Settings = Depends(get_settings)
) -> PublicationDetailsResponse:
    file_dto = await read_upload(photo, settings)
    return await service.update_publication_photo(file_dto, current_user.user_id, publication_id)


@router.delete(
    "/{publication_id}/photo",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Publication Photo",
    responses={404: {"model": ErrorResponse, "description": "Publication or photo not found"}}
)
async def delete_publication_photo(
    publication_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    service: PublicationActionsService = Depends(get_publication_actions_service)
) -> Response:
    await service.delete_publication_photo(current_user.user_id, publication_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
