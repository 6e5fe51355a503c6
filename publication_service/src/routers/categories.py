"""Category router."""

from typing import List

from fastapi import APIRouter, Depends

from publication_service.src.dependencies import get_category_service, get_current_user
from publication_service.src.models.auth import CurrentUser
from publication_service.src.models.responses import CategoryResponse, ErrorResponse
from publication_service.src.services.category_service import CategoryService

router = APIRouter(
    prefix="/categories",
    tags=["Categories"],
    responses={401: {"model": ErrorResponse, "description": "Unauthorized"}}
)


@router.get(
    "",
    response_model=List[CategoryResponse],
    summary="List Categories"
)
async def get_categories(
    current_user: CurrentUser = Depends(get_current_user),
    service: CategoryService = Depends(get_category_service)
) -> List[CategoryResponse]:
    return await service.get_categories()
