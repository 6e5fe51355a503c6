"""
Publication repository for database operations.

Provides async CRUD operations for publication documents using the pymongo
async driver. Besides whole-document insert/replace, it exposes targeted
updates for the photo URL, the state and single vote sub-documents so those
operations never rewrite the full document.
"""

import structlog
from typing import Any, Dict, List, Optional
from uuid import UUID

from pymongo.asynchronous.collection import AsyncCollection

from publication_service.src.models.publication import Publication, State, Vote

logger = structlog.get_logger(__name__)


class PublicationsRepository:
    """Repository for publication database operations."""

    def __init__(self, collection: AsyncCollection):
        """
        Initialize publication repository.

        Args:
            collection: MongoDB publications collection
        """
        self.collection = collection

    @staticmethod
    def by_exposed_id(publication_id: UUID) -> Dict[str, Any]:
        """Query matching one publication by its exposed identifier."""
        return {"exposed_id": publication_id}

    async def filter_by(self, query: Dict[str, Any]) -> List[Publication]:
        """
        Get all publications matching a query.

        Args:
            query: MongoDB query document

        Returns:
            Matching publications
        """
        try:
            documents = await self.collection.find(query).to_list()
            return [Publication.from_document(document) for document in documents]
        except Exception as e:
            logger.error("publication_filter_failed", error=str(e))
            raise

    async def get_single(self, query: Dict[str, Any]) -> Optional[Publication]:
        """
        Get the first publication matching a query.

        Args:
            query: MongoDB query document

        Returns:
            Publication or None if not found
        """
        try:
            document = await self.collection.find_one(query)
            if document is None:
                logger.debug("publication_not_found", query=str(query))
                return None
            return Publication.from_document(document)
        except Exception as e:
            logger.error("publication_get_failed", error=str(e))
            raise

    async def insert_one(self, publication: Publication) -> Publication:
        """
        Insert a new publication.

        Args:
            publication: Publication to insert

        Returns:
            The publication with its internal key set
        """
        try:
            result = await self.collection.insert_one(publication.to_document())
            publication.id = str(result.inserted_id)
            logger.info(
                "publication_inserted",
                publication_id=str(publication.exposed_id),
                author_id=str(publication.author.id) if publication.author else None
            )
            return publication
        except Exception as e:
            logger.error(
                "publication_insert_failed",
                error=str(e),
                publication_id=str(publication.exposed_id)
            )
            raise

    async def replace_one(self, publication: Publication) -> None:
        """
        Replace a publication document as a whole.

        Args:
            publication: Publication with updated fields
        """
        try:
            document = publication.to_document()
            document.pop("_id", None)
            await self.collection.replace_one(
                self.by_exposed_id(publication.exposed_id),
                document
            )
            logger.info("publication_replaced", publication_id=str(publication.exposed_id))
        except Exception as e:
            logger.error(
                "publication_replace_failed",
                error=str(e),
                publication_id=str(publication.exposed_id)
            )
            raise

    async def delete_one(self, query: Dict[str, Any]) -> bool:
        """
        Delete the first publication matching a query.

        Args:
            query: MongoDB query document

        Returns:
            True if deleted, False if nothing matched
        """
        try:
            result = await self.collection.delete_one(query)
            deleted = result.deleted_count == 1
            if deleted:
                logger.info("publication_deleted", query=str(query))
            else:
                logger.debug("publication_not_found", query=str(query))
            return deleted
        except Exception as e:
            logger.error("publication_delete_failed", error=str(e))
            raise

    async def update_publication_photo_url(
        self,
        publication_id: UUID,
        photo_url: Optional[str]
    ) -> None:
        """
        Set or clear the subject photo URL.

        Args:
            publication_id: Exposed publication ID
            photo_url: New URL, or None to clear it
        """
        try:
            await self.collection.update_one(
                self.by_exposed_id(publication_id),
                {"$set": {"subject_photo_url": photo_url}}
            )
            logger.info(
                "publication_photo_url_updated",
                publication_id=str(publication_id),
                cleared=photo_url is None
            )
        except Exception as e:
            logger.error(
                "publication_photo_url_update_failed",
                error=str(e),
                publication_id=str(publication_id)
            )
            raise

    async def update_publication_state(self, publication_id: UUID, state: State) -> None:
        """
        Set the publication state.

        Args:
            publication_id: Exposed publication ID
            state: New state
        """
        try:
            await self.collection.update_one(
                self.by_exposed_id(publication_id),
                {"$set": {"state": state.value}}
            )
            logger.info(
                "publication_state_updated",
                publication_id=str(publication_id),
                state=state.value
            )
        except Exception as e:
            logger.error(
                "publication_state_update_failed",
                error=str(e),
                publication_id=str(publication_id)
            )
            raise

    async def insert_new_publication_vote(self, publication_id: UUID, vote: Vote) -> None:
        """
        Append a vote to a publication.

        Args:
            publication_id: Exposed publication ID
            vote: Vote to append
        """
        try:
            await self.collection.update_one(
                self.by_exposed_id(publication_id),
                {"$push": {"votes": vote.model_dump(mode="python")}}
            )
            logger.info(
                "publication_vote_inserted",
                publication_id=str(publication_id),
                voter_id=str(vote.voter_id),
                rating=vote.rating.value
            )
        except Exception as e:
            logger.error(
                "publication_vote_insert_failed",
                error=str(e),
                publication_id=str(publication_id)
            )
            raise

    async def update_publication_vote(self, publication_id: UUID, vote: Vote) -> None:
        """
        Replace the vote cast by ``vote.voter_id``.

        Args:
            publication_id: Exposed publication ID
            vote: Updated vote
        """
        try:
            await self.collection.update_one(
                {"exposed_id": publication_id, "votes.voter_id": vote.voter_id},
                {"$set": {"votes.$": vote.model_dump(mode="python")}}
            )
            logger.info(
                "publication_vote_updated",
                publication_id=str(publication_id),
                voter_id=str(vote.voter_id),
                rating=vote.rating.value
            )
        except Exception as e:
            logger.error(
                "publication_vote_update_failed",
                error=str(e),
                publication_id=str(publication_id)
            )
            raise

    async def delete_publication_vote(self, publication_id: UUID, vote: Vote) -> None:
        """
        Remove the vote cast by ``vote.voter_id``.

        Args:
            publication_id: Exposed publication ID
            vote: Vote to remove
        """
        try:
            await self.collection.update_one(
                self.by_exposed_id(publication_id),
                {"$pull": {"votes": {"voter_id": vote.voter_id}}}
            )
            logger.info(
                "publication_vote_deleted",
                publication_id=str(publication_id),
                voter_id=str(vote.voter_id)
            )
        except Exception as e:
            logger.error(
                "publication_vote_delete_failed",
                error=str(e),
                publication_id=str(publication_id)
            )
            raise

    async def use_filter_definition(self, filter_definition: Dict[str, Any]) -> List[Publication]:
        """
        Run a composed listing filter.

        Args:
            filter_definition: Filter built by the publication service

        Returns:
            All matching publications, unsorted and unpaginated
        """
        publications = await self.filter_by(filter_definition)
        logger.debug("publication_filter_applied", match_count=len(publications))
        return publications

    async def ensure_indexes(self) -> None:
        """Create the indexes used by lookups and listings."""
        await self.collection.create_index("exposed_id", unique=True)
        await self.collection.create_index([("state", 1), ("type", 1), ("incident_date", -1)])
        await self.collection.create_index("author.id")
        logger.info("publication_indexes_ensured")
