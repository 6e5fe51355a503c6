"""
Unit tests for subject photo blob storage.

The aioboto3 session is replaced with a mock S3 client so no storage
endpoint is needed.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from botocore.exceptions import ClientError

from publication_service.src.config import Settings
from publication_service.src.models.files import FileDto
from publication_service.src.services.blob_storage_service import BlobStorageService


@pytest.fixture
def settings():
    return Settings(
        blob_storage_endpoint="http://minio:9000",
        blob_storage_bucket="publication-photos"
    )


@pytest.fixture
def s3_client():
    client = MagicMock()
    client.put_object = AsyncMock()
    client.delete_object = AsyncMock()
    client.create_bucket = AsyncMock()
    return client


@pytest.fixture
def storage(settings, s3_client):
    storage = BlobStorageService(settings)
    context = MagicMock()
    context.__aenter__.return_value = s3_client
    context.__aexit__.return_value = False
    storage.session = MagicMock()
    storage.session.client.return_value = context
    return storage


def client_error(code: str) -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": code}}, "operation")


class TestBlobNames:
    """Test generated blob names"""

    def test_keeps_extension(self):
        name = BlobStorageService.generate_blob_name("Holiday Photo.JPG")

        assert name.endswith(".jpg")
        assert len(name) == 32 + len(".jpg")

    def test_without_extension(self):
        assert "." not in BlobStorageService.generate_blob_name("photo")

    def test_names_are_unique(self):
        assert BlobStorageService.generate_blob_name("a.png") != BlobStorageService.generate_blob_name("a.png")


class TestBlobStorageService:
    """Test upload, delete and bucket creation"""

    @pytest.mark.asyncio
    async def test_upload_returns_url_ending_with_blob_name(self, storage, s3_client):
        photo = FileDto(name="wallet.png", content=b"\x89PNG", content_type="image/png")

        url = await storage.upload(photo)

        kwargs = s3_client.put_object.await_args.kwargs
        assert kwargs["Bucket"] == "publication-photos"
        assert kwargs["Body"] == b"\x89PNG"
        assert kwargs["ContentType"] == "image/png"
        assert url == f"http://minio:9000/publication-photos/{kwargs['Key']}"

    @pytest.mark.asyncio
    async def test_public_url_override(self, settings, storage):
        storage.base_url = Settings(
            blob_storage_public_url="https://cdn.example.com/photos/"
        ).blob_base_url

        url = await storage.upload(FileDto(name="a.jpg", content=b"x"))

        assert url.startswith("https://cdn.example.com/photos/")
        assert not url.startswith("https://cdn.example.com/photos//")

    @pytest.mark.asyncio
    async def test_delete(self, storage, s3_client):
        await storage.delete("old.jpg")

        s3_client.delete_object.assert_awaited_once_with(Bucket="publication-photos", Key="old.jpg")

    @pytest.mark.asyncio
    async def test_upload_failure_propagates(self, storage, s3_client):
        s3_client.put_object.side_effect = client_error("AccessDenied")

        with pytest.raises(ClientError):
            await storage.upload(FileDto(name="a.jpg", content=b"x"))

    @pytest.mark.asyncio
    async def test_ensure_bucket_created(self, storage):
        assert await storage.ensure_bucket() is True

    @pytest.mark.asyncio
    async def test_ensure_bucket_existing(self, storage, s3_client):
        s3_client.create_bucket.side_effect = client_error("BucketAlreadyOwnedByYou")

        assert await storage.ensure_bucket() is False

    @pytest.mark.asyncio
    async def test_ensure_bucket_other_error(self, storage, s3_client):
        s3_client.create_bucket.side_effect = client_error("AccessDenied")

        with pytest.raises(ClientError):
            await storage.ensure_bucket()
