"""Unit tests for DTO <-> document mapping."""

from datetime import timedelta

import pytest

from publication_service.src import mapper
from publication_service.src.models.category import Category
from publication_service.src.models.enums import (
    PublicationState,
    PublicationType,
    SinglePublicationVote,
)
from publication_service.src.models.publication import Rating, State, Type, Vote
from publication_service.src.models.requests import (
    CreatePublicationRequest,
    UpdatePublicationDetailsRequest,
)


class TestEnumMapping:
    """Test wire and persisted enum translation"""

    def test_state_and_type(self):
        assert mapper.map_state(PublicationState.CLOSED) == State.CLOSED
        assert mapper.map_type(PublicationType.LOST_SUBJECT) == Type.LOST_SUBJECT

    def test_rating(self):
        assert mapper.map_rating(SinglePublicationVote.UP) == Rating.UP
        assert mapper.map_rating(SinglePublicationVote.DOWN) == Rating.DOWN

    def test_no_vote_has_no_rating(self):
        """Test NoVote cannot be persisted"""
        with pytest.raises(ValueError):
            mapper.map_rating(SinglePublicationVote.NO_VOTE)

    def test_user_vote(self, author_id, fixed_now):
        vote = Vote(voter_id=author_id, rating=Rating.DOWN, creation_date=fixed_now)

        assert mapper.map_user_vote(vote) == SinglePublicationVote.DOWN
        assert mapper.map_user_vote(None) == SinglePublicationVote.NO_VOTE


class TestRequestMapping:
    """Test request DTOs applied to documents"""

    def test_create_request_starts_open(self, fixed_now):
        """Test a new publication is open and has no author yet"""
        dto = CreatePublicationRequest(
            title="Umbrella",
            description="Green umbrella",
            incident_address="Bus stop 12",
            incident_date=fixed_now,
            subject_category_id="wallets",
            publication_type=PublicationType.FOUND_SUBJECT
        )

        publication = mapper.create_request_to_publication(dto)

        assert publication.state == State.OPEN
        assert publication.type == Type.FOUND_SUBJECT
        assert publication.author is None
        assert publication.votes == []

    def test_details_request_keeps_identity(self, make_publication, fixed_now):
        """Test identity, author and photo are untouched"""
        publication = make_publication(subject_photo_url="http://x/y.png")
        exposed_id = publication.exposed_id
        author = publication.author
        dto = UpdatePublicationDetailsRequest(
            title="New title",
            description="New description",
            incident_address="New address",
            incident_date=fixed_now - timedelta(days=7),
            subject_category_id="keys",
            publication_type=PublicationType.LOST_SUBJECT,
            publication_state=PublicationState.CLOSED
        )

        mapper.apply_details_request(dto, publication)

        assert publication.exposed_id == exposed_id
        assert publication.author == author
        assert publication.subject_photo_url == "http://x/y.png"
        assert publication.subject_category_id == "keys"
        assert publication.state == State.CLOSED

    def test_apply_rating_keeps_creation_date(self, author_id, fixed_now):
        vote = Vote(voter_id=author_id, rating=Rating.UP, creation_date=fixed_now)

        mapper.apply_rating(SinglePublicationVote.DOWN, vote)

        assert vote.rating == Rating.DOWN
        assert vote.creation_date == fixed_now


class TestResponseMapping:
    """Test document to response mapping"""

    def test_details_response(self, make_publication, author_id, other_user_id, fixed_now):
        publication = make_publication(votes=[
            Vote(voter_id=author_id, rating=Rating.UP, creation_date=fixed_now),
            Vote(voter_id=other_user_id, rating=Rating.UP, creation_date=fixed_now),
        ])

        response = mapper.to_details_response(publication, other_user_id)

        assert response.publication_id == publication.exposed_id
        assert response.aggregate_rating == 2
        assert response.user_vote == SinglePublicationVote.UP
        assert response.publication_type == PublicationType.FOUND_SUBJECT
        assert response.publication_state == PublicationState.OPEN
        assert response.creation_date == publication.creation_time
        assert response.author.username == "bob"
        assert response.subject_category_id == "wallets"
        assert response.subject_category_name == "Wallets"

    def test_base_data_response(self, make_publication, other_user_id):
        response = mapper.to_base_data_response(make_publication(), other_user_id)

        assert response.user_vote == SinglePublicationVote.NO_VOTE
        assert response.aggregate_rating == 0

    def test_category_response(self):
        response = mapper.to_category_response(Category(exposed_id="keys", display_name="Keys"))

        assert response.id == "keys"
        assert response.display_name == "Keys"
