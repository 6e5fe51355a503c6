"""Read-only category listing."""

import structlog
from typing import List

from publication_service.src import mapper
from publication_service.src.models.responses import CategoryResponse
from publication_service.src.repositories.categories_repo import CategoriesRepository

logger = structlog.get_logger(__name__)


class CategoryService:
    """Service exposing subject categories to clients."""

    def __init__(self, categories_repo: CategoriesRepository):
        self.categories_repo = categories_repo

    async def get_categories(self) -> List[CategoryResponse]:
        """
        List every subject category.

        Returns:
            Categories ordered by display name
        """
        categories = await self.categories_repo.get_all()
        logger.debug("categories_listed", count=len(categories))
        return [mapper.to_category_response(category) for category in categories]
