"""
Unit tests for the MongoDB repositories.

The pymongo collection is replaced with a mock so the tests check the
query and update documents each repository method issues.
"""

from unittest.mock import AsyncMock, MagicMock, Mock
from uuid import uuid4

import pytest
from bson import ObjectId

from publication_service.src.models.publication import Rating, State, Vote
from publication_service.src.repositories.categories_repo import CategoriesRepository
from publication_service.src.repositories.publications_repo import PublicationsRepository


@pytest.fixture
def collection():
    collection = MagicMock()
    collection.find_one = AsyncMock()
    collection.insert_one = AsyncMock()
    collection.replace_one = AsyncMock()
    collection.update_one = AsyncMock()
    collection.delete_one = AsyncMock()
    collection.count_documents = AsyncMock()
    collection.create_index = AsyncMock()
    return collection


def cursor_returning(documents):
    cursor = Mock()
    cursor.to_list = AsyncMock(return_value=documents)
    cursor.sort = Mock(return_value=cursor)
    return cursor


class TestPublicationsRepository:
    """Test publication persistence"""

    @pytest.fixture
    def repo(self, collection):
        return PublicationsRepository(collection)

    @pytest.mark.asyncio
    async def test_get_single_maps_document(self, repo, collection, make_publication):
        """Test _id is exposed as a string id"""
        publication = make_publication()
        collection.find_one.return_value = publication.to_document()

        result = await repo.get_single(repo.by_exposed_id(publication.exposed_id))

        collection.find_one.assert_awaited_once_with({"exposed_id": publication.exposed_id})
        assert result.id == publication.id
        assert result.exposed_id == publication.exposed_id
        assert result.author == publication.author

    @pytest.mark.asyncio
    async def test_get_single_missing(self, repo, collection):
        collection.find_one.return_value = None

        assert await repo.get_single({"exposed_id": uuid4()}) is None

    @pytest.mark.asyncio
    async def test_filter_by(self, repo, collection, make_publication):
        documents = [make_publication().to_document(), make_publication().to_document()]
        collection.find = Mock(return_value=cursor_returning(documents))

        result = await repo.use_filter_definition({"state": "Open"})

        collection.find.assert_called_once_with({"state": "Open"})
        assert len(result) == 2

    @pytest.mark.asyncio
    async def test_insert_sets_internal_id(self, repo, collection, make_publication):
        publication = make_publication(id=None)
        inserted_id = ObjectId()
        collection.insert_one.return_value = Mock(inserted_id=inserted_id)

        result = await repo.insert_one(publication)

        document = collection.insert_one.await_args.args[0]
        assert "_id" not in document
        assert document["exposed_id"] == publication.exposed_id
        assert result.id == str(inserted_id)

    @pytest.mark.asyncio
    async def test_replace_keeps_internal_id(self, repo, collection, make_publication):
        """Test the replacement document does not carry _id"""
        publication = make_publication()

        await repo.replace_one(publication)

        query, document = collection.replace_one.await_args.args
        assert query == {"exposed_id": publication.exposed_id}
        assert "_id" not in document
        assert document["title"] == publication.title

    @pytest.mark.asyncio
    async def test_delete_one(self, repo, collection):
        collection.delete_one.return_value = Mock(deleted_count=1)

        assert await repo.delete_one({"exposed_id": uuid4()}) is True

    @pytest.mark.asyncio
    async def test_delete_one_nothing_matched(self, repo, collection):
        collection.delete_one.return_value = Mock(deleted_count=0)

        assert await repo.delete_one({"exposed_id": uuid4()}) is False

    @pytest.mark.asyncio
    async def test_update_photo_url(self, repo, collection):
        publication_id = uuid4()

        await repo.update_publication_photo_url(publication_id, None)

        collection.update_one.assert_awaited_once_with(
            {"exposed_id": publication_id},
            {"$set": {"subject_photo_url": None}}
        )

    @pytest.mark.asyncio
    async def test_update_state(self, repo, collection):
        publication_id = uuid4()

        await repo.update_publication_state(publication_id, State.CLOSED)

        collection.update_one.assert_awaited_once_with(
            {"exposed_id": publication_id},
            {"$set": {"state": "Closed"}}
        )

    @pytest.mark.asyncio
    async def test_vote_operations(self, repo, collection, author_id, fixed_now):
        """Test push, positional set and pull on the votes array"""
        publication_id = uuid4()
        vote = Vote(voter_id=author_id, rating=Rating.UP, creation_date=fixed_now)

        await repo.insert_new_publication_vote(publication_id, vote)
        await repo.update_publication_vote(publication_id, vote)
        await repo.delete_publication_vote(publication_id, vote)

        push, positional, pull = collection.update_one.await_args_list
        assert push.args == (
            {"exposed_id": publication_id},
            {"$push": {"votes": {"voter_id": author_id, "rating": Rating.UP, "creation_date": fixed_now}}}
        )
        assert positional.args[0] == {"exposed_id": publication_id, "votes.voter_id": author_id}
        assert "votes.$" in positional.args[1]["$set"]
        assert pull.args == (
            {"exposed_id": publication_id},
            {"$pull": {"votes": {"voter_id": author_id}}}
        )

    @pytest.mark.asyncio
    async def test_errors_propagate(self, repo, collection):
        collection.update_one.side_effect = RuntimeError("connection lost")

        with pytest.raises(RuntimeError):
            await repo.update_publication_state(uuid4(), State.OPEN)


class TestCategoriesRepository:
    """Test category lookups"""

    @pytest.fixture
    def repo(self, collection):
        return CategoriesRepository(collection)

    @pytest.mark.asyncio
    async def test_filter_by_drops_internal_id(self, repo, collection):
        collection.find = Mock(return_value=cursor_returning([
            {"_id": ObjectId(), "exposed_id": "keys", "display_name": "Keys"},
        ]))

        result = await repo.filter_by({"exposed_id": "keys"})

        assert result[0].exposed_id == "keys"
        assert result[0].display_name == "Keys"

    @pytest.mark.asyncio
    async def test_get_all_sorted(self, repo, collection):
        cursor = cursor_returning([])
        collection.find = Mock(return_value=cursor)

        await repo.get_all()

        cursor.sort.assert_called_once_with("display_name", 1)

    @pytest.mark.asyncio
    async def test_does_category_exist(self, repo, collection):
        collection.count_documents.return_value = 1

        assert await repo.does_category_exist("keys") is True
        collection.count_documents.assert_awaited_once_with({"exposed_id": "keys"}, limit=1)

    @pytest.mark.asyncio
    async def test_does_category_not_exist(self, repo, collection):
        collection.count_documents.return_value = 0

        assert await repo.does_category_exist("unicorns") is False
