"""
Translation between wire DTOs and persisted publication documents.

Wire enums and persisted enums share their string values but are distinct
types, so every crossing goes through the explicit tables below.
"""

from typing import Optional
from uuid import UUID

from publication_service.src.models.category import Category
from publication_service.src.models.enums import (
    PublicationState,
    PublicationType,
    SinglePublicationVote,
)
from publication_service.src.models.publication import Publication, Rating, State, Type, Vote
from publication_service.src.models.requests import (
    CreatePublicationRequest,
    UpdatePublicationDetailsRequest,
)
from publication_service.src.models.responses import (
    AuthorResponse,
    CategoryResponse,
    PublicationBaseDataResponse,
    PublicationDetailsResponse,
)

_STATE_TO_ENTITY = {
    PublicationState.OPEN: State.OPEN,
    PublicationState.CLOSED: State.CLOSED,
}
_STATE_TO_DTO = {value: key for key, value in _STATE_TO_ENTITY.items()}

_TYPE_TO_ENTITY = {
    PublicationType.LOST_SUBJECT: Type.LOST_SUBJECT,
    PublicationType.FOUND_SUBJECT: Type.FOUND_SUBJECT,
}
_TYPE_TO_DTO = {value: key for key, value in _TYPE_TO_ENTITY.items()}

_VOTE_TO_RATING = {
    SinglePublicationVote.UP: Rating.UP,
    SinglePublicationVote.DOWN: Rating.DOWN,
}
_RATING_TO_VOTE = {value: key for key, value in _VOTE_TO_RATING.items()}


def map_state(state: PublicationState) -> State:
    return _STATE_TO_ENTITY[state]


def map_type(publication_type: PublicationType) -> Type:
    return _TYPE_TO_ENTITY[publication_type]


def map_rating(vote: SinglePublicationVote) -> Rating:
    """
    Map an Up/Down vote to its persisted rating.

    Raises:
        ValueError: For ``NoVote``, which has no persisted form
    """
    if vote not in _VOTE_TO_RATING:
        raise ValueError(f"{vote.value} has no persisted rating")
    return _VOTE_TO_RATING[vote]


def map_user_vote(vote: Optional[Vote]) -> SinglePublicationVote:
    """Resolve a stored vote (or its absence) to the wire variant."""
    if vote is None:
        return SinglePublicationVote.NO_VOTE
    return _RATING_TO_VOTE[vote.rating]


def create_request_to_publication(dto: CreatePublicationRequest) -> Publication:
    """Build a new publication from a create request. Author and timestamps are set by the caller."""
    return Publication(
        title=dto.title,
        description=dto.description,
        incident_address=dto.incident_address,
        incident_date=dto.incident_date,
        subject_category_id=dto.subject_category_id,
        type=map_type(dto.publication_type),
        state=State.OPEN,
    )


def apply_details_request(dto: UpdatePublicationDetailsRequest, publication: Publication) -> Publication:
    """
    Copy editable fields onto an existing publication.

    Identity, author, votes, photo and creation time are left untouched.
    """
    publication.title = dto.title
    publication.description = dto.description
    publication.incident_address = dto.incident_address
    publication.incident_date = dto.incident_date
    publication.subject_category_id = dto.subject_category_id
    publication.type = map_type(dto.publication_type)
    publication.state = map_state(dto.publication_state)
    return publication


def new_vote(dto_vote: SinglePublicationVote, voter_id: UUID, created_at) -> Vote:
    return Vote(voter_id=voter_id, rating=map_rating(dto_vote), creation_date=created_at)


def apply_rating(dto_vote: SinglePublicationVote, vote: Vote) -> Vote:
    """Change the rating of an existing vote, keeping its creation date."""
    vote.rating = map_rating(dto_vote)
    return vote


def to_base_data_response(publication: Publication, voter_id: UUID) -> PublicationBaseDataResponse:
    return PublicationBaseDataResponse(
        publication_id=publication.exposed_id,
        title=publication.title,
        description=publication.description,
        subject_photo_url=publication.subject_photo_url,
        incident_address=publication.incident_address,
        incident_date=publication.incident_date,
        aggregate_rating=publication.aggregate_rating,
        user_vote=map_user_vote(publication.find_vote(voter_id)),
    )


def to_details_response(publication: Publication, voter_id: UUID) -> PublicationDetailsResponse:
    """Map a publication to its details DTO as seen by ``voter_id``."""
    author = None
    if publication.author is not None:
        author = AuthorResponse(id=publication.author.id, username=publication.author.username)

    return PublicationDetailsResponse(
        publication_id=publication.exposed_id,
        title=publication.title,
        description=publication.description,
        subject_photo_url=publication.subject_photo_url,
        incident_address=publication.incident_address,
        incident_date=publication.incident_date,
        aggregate_rating=publication.aggregate_rating,
        user_vote=map_user_vote(publication.find_vote(voter_id)),
        subject_category_id=publication.subject_category_id,
        subject_category_name=publication.subject_category_name,
        publication_type=_TYPE_TO_DTO[publication.type],
        publication_state=_STATE_TO_DTO[publication.state],
        creation_date=publication.creation_time,
        last_modification_date=publication.last_modification_date,
        author=author,
    )


def to_category_response(category: Category) -> CategoryResponse:
    return CategoryResponse(id=category.exposed_id, display_name=category.display_name)
