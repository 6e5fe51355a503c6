"""
Publication workflow service.

Orchestrates creation, editing, deletion, listing, state changes and voting
for publications:
- resolves and denormalises the subject category on every write
- enforces that only the author mutates or deletes a publication
- uploads and removes subject photos through the blob storage service
- attaches the caller's own vote to every publication it returns

Every operation re-reads the stored document before acting on it. Multi-step
sequences (blob delete, then metadata update) are independent calls with no
compensation when the second one fails.
"""

import posixpath
import re
import structlog
from typing import List, Optional, Tuple
from urllib.parse import urlparse
from uuid import UUID

from publication_service.src import mapper
from publication_service.src.exceptions import (
    BadRequestException,
    NotFoundException,
    UnauthorizedException,
)
from publication_service.src.models.category import Category
from publication_service.src.models.enums import SinglePublicationVote
from publication_service.src.models.files import FileDto
from publication_service.src.models.publication import Author, Publication
from publication_service.src.models.requests import (
    CreatePublicationRequest,
    PublicationsResourceParameters,
    UpdatePublicationDetailsRequest,
    UpdatePublicationRatingRequest,
    UpdatePublicationStateRequest,
)
from publication_service.src.models.responses import (
    PaginationMetadata,
    PublicationBaseDataResponse,
    PublicationDetailsResponse,
)
from publication_service.src.repositories.categories_repo import CategoriesRepository
from publication_service.src.repositories.publications_repo import PublicationsRepository
from publication_service.src.services.blob_storage_service import BlobStorageService
from publication_service.src.services.date_time_provider import DateTimeProvider
from shared.metrics import PublicationMetrics
from shared.tracing import trace_function

logger = structlog.get_logger(__name__)


def parse_user_id(raw_user_id: str) -> UUID:
    """
    Parse the caller identity.

    A malformed identity is reported as unauthorized, not as a format error.

    Raises:
        UnauthorizedException: If the id is not a UUID
    """
    try:
        return UUID(str(raw_user_id))
    except (ValueError, TypeError):
        logger.warning("caller_id_unparsable", raw_user_id=raw_user_id)
        raise UnauthorizedException()


def build_publications_filter(
    resource_parameters: PublicationsResourceParameters,
    user_id: UUID
) -> dict:
    """
    Compose the listing filter.

    All predicates are conjunctive except title/description, which match if
    either contains the search query (case-sensitive).

    Args:
        resource_parameters: Listing parameters
        user_id: Caller id, used when only the caller's publications are wanted

    Returns:
        MongoDB query document
    """
    clauses = [
        {"state": mapper.map_state(resource_parameters.publication_state).value},
        {"type": mapper.map_type(resource_parameters.publication_type).value},
    ]

    if resource_parameters.only_user_publications:
        clauses.append({"author.id": user_id})

    if resource_parameters.subject_category_id is not None:
        clauses.append({"subject_category_id": resource_parameters.subject_category_id})

    if resource_parameters.from_date is not None:
        clauses.append({"incident_date": {"$gte": resource_parameters.from_date}})

    if resource_parameters.to_date is not None:
        clauses.append({"incident_date": {"$lte": resource_parameters.to_date}})

    if resource_parameters.search_query:
        pattern = {"$regex": re.escape(resource_parameters.search_query)}
        clauses.append({"$or": [{"description": pattern}, {"title": pattern}]})

    return {"$and": clauses}


class PublicationActionsService:
    """Service for publication actions."""

    def __init__(
        self,
        publications_repo: PublicationsRepository,
        categories_repo: CategoriesRepository,
        date_time_provider: DateTimeProvider,
        file_storage: BlobStorageService,
        metrics: Optional[PublicationMetrics] = None
    ):
        """
        Initialize publication actions service.

        Args:
            publications_repo: Publication repository
            categories_repo: Category repository
            date_time_provider: Clock
            file_storage: Blob storage for subject photos
            metrics: Optional domain metrics
        """
        self.publications_repo = publications_repo
        self.categories_repo = categories_repo
        self.date_time_provider = date_time_provider
        self.file_storage = file_storage
        self.metrics = metrics

    # ========================================================================
    # Create / update / delete
    # ========================================================================

    @trace_function("publication.create")
    async def create_publication(
        self,
        raw_user_id: str,
        username: str,
        publication_dto: CreatePublicationRequest,
        subject_photo: Optional[FileDto] = None
    ) -> PublicationDetailsResponse:
        """
        Create a publication authored by the caller.

        Args:
            raw_user_id: Caller id
            username: Caller username, stored as the author snapshot
            publication_dto: Publication data
            subject_photo: Optional photo, skipped when empty

        Returns:
            Details of the created publication

        Raises:
            UnauthorizedException: If the caller id is malformed
            BadRequestException: If the category does not exist
        """
        user_id = parse_user_id(raw_user_id)
        category = await self._get_category(publication_dto.subject_category_id)

        publication = mapper.create_request_to_publication(publication_dto)
        now = self.date_time_provider.utc_now
        publication.creation_time = now
        publication.last_modification_date = now
        publication.author = Author(id=user_id, username=username)
        publication.subject_category_name = category.display_name

        if subject_photo is not None and subject_photo.size > 0:
            publication.subject_photo_url = await self._upload_photo(subject_photo)

        await self.publications_repo.insert_one(publication)

        logger.info(
            "publication_created",
            publication_id=str(publication.exposed_id),
            user_id=str(user_id),
            category_id=category.exposed_id
        )
        if self.metrics:
            self.metrics.publications_created.labels(
                publication_type=publication.type.value
            ).inc()

        return await self._get_publication_details(publication.exposed_id, user_id)

    @trace_function("publication.update_photo")
    async def update_publication_photo(
        self,
        photo: FileDto,
        raw_user_id: str,
        publication_id: UUID
    ) -> PublicationDetailsResponse:
        """
        Replace the subject photo of the caller's publication.

        The previous blob, if any, is deleted before the new one is uploaded.

        Raises:
            BadRequestException: If the photo is empty
            NotFoundException: If the publication does not exist
            UnauthorizedException: If the caller is not the author
        """
        user_id = parse_user_id(raw_user_id)
        publication = await self.authorize(user_id, publication_id)
        self._ensure_photo_not_empty(photo)

        if publication.subject_photo_url is not None:
            await self._delete_photo_blob(publication.subject_photo_url)

        photo_url = await self._upload_photo(photo)
        await self.publications_repo.update_publication_photo_url(publication_id, photo_url)

        logger.info("publication_photo_updated", publication_id=str(publication_id))
        return await self._get_publication_details(publication_id, user_id)

    @trace_function("publication.delete_photo")
    async def delete_publication_photo(self, raw_user_id: str, publication_id: UUID) -> None:
        """
        Remove the subject photo of the caller's publication.

        Raises:
            NotFoundException: If the publication or its photo does not exist
            UnauthorizedException: If the caller is not the author
        """
        user_id = parse_user_id(raw_user_id)
        publication = await self.authorize(user_id, publication_id)

        await self._delete_photo_blob(publication.subject_photo_url)
        await self.publications_repo.update_publication_photo_url(publication_id, None)

        logger.info("publication_photo_deleted", publication_id=str(publication_id))

    @trace_function("publication.update_details")
    async def update_publication_details(
        self,
        raw_user_id: str,
        publication_id: UUID,
        publication_details_dto: UpdatePublicationDetailsRequest
    ) -> PublicationDetailsResponse:
        """
        Overwrite the editable fields of the caller's publication.

        Identity, author, votes and photo are preserved; the category name is
        re-copied from the (possibly new) category.

        Raises:
            BadRequestException: If the category does not exist
            NotFoundException: If the publication does not exist
            UnauthorizedException: If the caller is not the author
        """
        user_id = parse_user_id(raw_user_id)
        category = await self._get_category(publication_details_dto.subject_category_id)

        publication = await self.authorize(user_id, publication_id)
        mapper.apply_details_request(publication_details_dto, publication)
        publication.subject_category_name = category.display_name
        publication.last_modification_date = self.date_time_provider.utc_now

        await self.publications_repo.replace_one(publication)

        logger.info("publication_details_updated", publication_id=str(publication_id))
        return await self._get_publication_details(publication_id, user_id)

    @trace_function("publication.delete")
    async def delete_publication(self, raw_user_id: str, publication_id: UUID) -> None:
        """
        Delete the caller's publication.

        Raises:
            NotFoundException: If the publication does not exist
            UnauthorizedException: If the caller is not the author
        """
        user_id = parse_user_id(raw_user_id)
        await self.authorize(user_id, publication_id)

        await self.publications_repo.delete_one(
            self.publications_repo.by_exposed_id(publication_id)
        )

        logger.info("publication_removed", publication_id=str(publication_id), user_id=str(user_id))
        if self.metrics:
            self.metrics.publications_deleted.inc()

    # ========================================================================
    # Listing and details
    # ========================================================================

    @trace_function("publication.list")
    async def get_publications(
        self,
        raw_user_id: str,
        resource_parameters: PublicationsResourceParameters
    ) -> Tuple[List[PublicationBaseDataResponse], PaginationMetadata]:
        """
        List publications matching the parameters.

        Matches are sorted by incident date (newest first) and paginated in
        memory, so the total count covers the whole filtered set.

        Args:
            raw_user_id: Caller id
            resource_parameters: Filter and pagination parameters

        Returns:
            Page of publications and pagination metadata
        """
        user_id = parse_user_id(raw_user_id)

        filter_definition = build_publications_filter(resource_parameters, user_id)
        publications = await self.publications_repo.use_filter_definition(filter_definition)

        page_size = resource_parameters.page_size
        skip = page_size * (resource_parameters.page_number - 1)
        ordered = sorted(publications, key=lambda pub: pub.incident_date, reverse=True)
        page = ordered[skip:skip + page_size]

        items = [mapper.to_base_data_response(publication, user_id) for publication in page]
        pagination_metadata = PaginationMetadata(
            total_item_count=len(publications),
            page_size=page_size,
            current_page=resource_parameters.page_number
        )

        logger.debug(
            "publications_listed",
            user_id=str(user_id),
            total=pagination_metadata.total_item_count,
            returned=len(items)
        )
        return items, pagination_metadata

    @trace_function("publication.details")
    async def get_publication_details(
        self,
        raw_user_id: str,
        publication_id: UUID
    ) -> PublicationDetailsResponse:
        """
        Get publication details with the caller's vote.

        Raises:
            NotFoundException: If the publication does not exist
        """
        user_id = parse_user_id(raw_user_id)
        return await self._get_publication_details(publication_id, user_id)

    # ========================================================================
    # State and rating
    # ========================================================================

    @trace_function("publication.update_state")
    async def update_publication_state(
        self,
        raw_user_id: str,
        publication_id: UUID,
        publication_state_dto: UpdatePublicationStateRequest
    ) -> PublicationDetailsResponse:
        """
        Open or close the caller's publication.

        Raises:
            NotFoundException: If the publication does not exist
            UnauthorizedException: If the caller is not the author
        """
        user_id = parse_user_id(raw_user_id)
        await self.authorize(user_id, publication_id)

        state = mapper.map_state(publication_state_dto.publication_state)
        await self.publications_repo.update_publication_state(publication_id, state)

        logger.info(
            "publication_state_changed",
            publication_id=str(publication_id),
            state=state.value
        )
        return await self._get_publication_details(publication_id, user_id)

    @trace_function("publication.update_rating")
    async def update_publication_rating(
        self,
        raw_user_id: str,
        publication_id: UUID,
        publication_rating_dto: UpdatePublicationRatingRequest
    ) -> PublicationDetailsResponse:
        """
        Record, change or retract the caller's vote.

        Any caller may vote, the author included. An existing vote keeps its
        original creation date when its rating changes.

        Raises:
            NotFoundException: If the publication does not exist
        """
        user_id = parse_user_id(raw_user_id)
        publication = await self._get_publication(publication_id)

        requested = publication_rating_dto.new_publication_vote
        existing_vote = publication.find_vote(user_id)

        if existing_vote is not None and requested == SinglePublicationVote.NO_VOTE:
            await self.publications_repo.delete_publication_vote(publication_id, existing_vote)
            action = "retracted"
        elif existing_vote is not None:
            mapper.apply_rating(requested, existing_vote)
            await self.publications_repo.update_publication_vote(publication_id, existing_vote)
            action = "changed"
        elif requested != SinglePublicationVote.NO_VOTE:
            vote = mapper.new_vote(requested, user_id, self.date_time_provider.utc_now)
            await self.publications_repo.insert_new_publication_vote(publication_id, vote)
            action = "cast"
        else:
            action = "unchanged"

        logger.info(
            "publication_vote_recorded",
            publication_id=str(publication_id),
            user_id=str(user_id),
            vote=requested.value,
            action=action
        )
        if self.metrics:
            self.metrics.votes_recorded.labels(action=action).inc()

        return await self._get_publication_details(publication_id, user_id)

    # ========================================================================
    # Helpers
    # ========================================================================

    async def authorize(self, user_id: UUID, publication_id: UUID) -> Publication:
        """
        Fetch a publication and check that the caller is its author.

        Args:
            user_id: Caller id
            publication_id: Exposed publication ID

        Returns:
            The publication, for reuse by the caller

        Raises:
            NotFoundException: If the publication does not exist
            UnauthorizedException: If the caller is not the author
        """
        publication = await self._get_publication(publication_id)

        if publication.author is None or publication.author.id != user_id:
            logger.warning(
                "publication_access_denied",
                publication_id=str(publication_id),
                user_id=str(user_id)
            )
            raise UnauthorizedException()

        return publication

    async def _get_publication(self, publication_id: UUID) -> Publication:
        publication = await self.publications_repo.get_single(
            self.publications_repo.by_exposed_id(publication_id)
        )
        if publication is None:
            raise NotFoundException("Publication not found.")
        return publication

    async def _get_publication_details(
        self,
        publication_id: UUID,
        user_id: UUID
    ) -> PublicationDetailsResponse:
        publication = await self._get_publication(publication_id)
        return mapper.to_details_response(publication, user_id)

    async def _get_category(self, category_id: str) -> Category:
        categories = await self.categories_repo.filter_by({"exposed_id": category_id})
        if not categories:
            logger.warning("category_not_found", category_id=category_id)
            raise BadRequestException("Category with this id does not exist")
        return categories[0]

    @staticmethod
    def _ensure_photo_not_empty(photo: Optional[FileDto]) -> None:
        if photo is None or photo.size == 0:
            raise BadRequestException("The publication photo is incorrect")

    async def _upload_photo(self, photo: FileDto) -> str:
        self._ensure_photo_not_empty(photo)
        photo_url = await self.file_storage.upload(photo)
        if self.metrics:
            self.metrics.photo_operations.labels(operation="upload").inc()
        return photo_url

    async def _delete_photo_blob(self, photo_url: Optional[str]) -> None:
        blob_name = posixpath.basename(urlparse(photo_url).path) if photo_url else ""
        if not blob_name:
            raise NotFoundException("Publication photo not found.")

        await self.file_storage.delete(blob_name)
        if self.metrics:
            self.metrics.photo_operations.labels(operation="delete").inc()
