"""
Category repository.

Read-only access to the subject categories collection.
"""

import structlog
from typing import Any, Dict, List

from pymongo.asynchronous.collection import AsyncCollection

from publication_service.src.models.category import Category

logger = structlog.get_logger(__name__)


class CategoriesRepository:
    """Repository for subject category lookups."""

    def __init__(self, collection: AsyncCollection):
        """
        Initialize category repository.

        Args:
            collection: MongoDB categories collection
        """
        self.collection = collection

    async def filter_by(self, query: Dict[str, Any]) -> List[Category]:
        """
        Get all categories matching a query.

        Args:
            query: MongoDB query document

        Returns:
            Matching categories
        """
        try:
            documents = await self.collection.find(query).to_list()
            return [Category.from_document(document) for document in documents]
        except Exception as e:
            logger.error("category_filter_failed", error=str(e))
            raise

    async def get_all(self) -> List[Category]:
        """Get every category ordered by display name."""
        try:
            documents = await self.collection.find({}).sort("display_name", 1).to_list()
            return [Category.from_document(document) for document in documents]
        except Exception as e:
            logger.error("category_list_failed", error=str(e))
            raise

    async def does_category_exist(self, category_id: str) -> bool:
        """
        Check whether a category with the given exposed id exists.

        Args:
            category_id: Exposed category identifier

        Returns:
            True if the category exists
        """
        count = await self.collection.count_documents({"exposed_id": category_id}, limit=1)
        return count > 0
