"""
Blob storage for publication photos.

Async wrapper around aioboto3 for an S3-compatible bucket (MinIO in the
compose setup). Uploaded blobs get a random name that keeps the original
file extension; the returned URL ends with that name, so the name can be
recovered from a stored URL when the blob has to be deleted.
"""

import uuid
from pathlib import PurePosixPath

import aioboto3
import structlog
from botocore.config import Config
from botocore.exceptions import ClientError

from publication_service.src.config import Settings
from publication_service.src.models.files import FileDto

logger = structlog.get_logger(__name__)


class BlobStorageService:
    """File storage service backed by an S3-compatible bucket."""

    def __init__(self, settings: Settings, max_pool_connections: int = 20):
        """
        Initialize blob storage service.

        Args:
            settings: Application settings (endpoint, credentials, bucket)
            max_pool_connections: Maximum connection pool size
        """
        self.endpoint_url = settings.blob_storage_endpoint
        self.access_key = settings.blob_storage_access_key
        self.secret_key = settings.blob_storage_secret_key
        self.region = settings.blob_storage_region
        self.bucket = settings.blob_storage_bucket
        self.base_url = settings.blob_base_url

        self.config = Config(
            max_pool_connections=max_pool_connections,
            retries={
                'max_attempts': 3,
                'mode': 'adaptive'
            }
        )

        self.session = aioboto3.Session()

    def get_client(self):
        """
        Get an async S3 client context manager.

        Usage:
            async with storage.get_client() as s3:
                await s3.put_object(...)
        """
        return self.session.client(
            's3',
            endpoint_url=self.endpoint_url,
            aws_access_key_id=self.access_key,
            aws_secret_access_key=self.secret_key,
            region_name=self.region,
            config=self.config
        )

    @staticmethod
    def generate_blob_name(file_name: str) -> str:
        """Random blob name keeping the original extension."""
        extension = PurePosixPath(file_name).suffix.lower()
        return f"{uuid.uuid4().hex}{extension}"

    async def upload(self, file: FileDto) -> str:
        """
        Upload a file and return its public URL.

        Args:
            file: File to upload

        Returns:
            URL of the stored blob
        """
        blob_name = self.generate_blob_name(file.name)
        try:
            async with self.get_client() as s3:
                await s3.put_object(
                    Bucket=self.bucket,
                    Key=blob_name,
                    Body=file.content,
                    ContentType=file.content_type
                )
        except ClientError as e:
            logger.error(
                "blob_upload_failed",
                bucket=self.bucket,
                blob_name=blob_name,
                error=str(e)
            )
            raise

        logger.info(
            "blob_uploaded",
            bucket=self.bucket,
            blob_name=blob_name,
            size_bytes=file.size
        )
        return f"{self.base_url}/{blob_name}"

    async def delete(self, blob_name: str) -> None:
        """
        Delete a blob by name.

        Args:
            blob_name: Blob name (last segment of its URL)
        """
        try:
            async with self.get_client() as s3:
                await s3.delete_object(Bucket=self.bucket, Key=blob_name)
        except ClientError as e:
            logger.error(
                "blob_delete_failed",
                bucket=self.bucket,
                blob_name=blob_name,
                error=str(e)
            )
            raise

        logger.info("blob_deleted", bucket=self.bucket, blob_name=blob_name)

    async def ensure_bucket(self) -> bool:
        """
        Create the photo bucket if it does not exist.

        Returns:
            True if the bucket was created, False if it already existed
        """
        try:
            async with self.get_client() as s3:
                await s3.create_bucket(Bucket=self.bucket)
                logger.info("bucket_created", bucket=self.bucket)
                return True
        except ClientError as e:
            error_code = e.response.get('Error', {}).get('Code')
            if error_code in ('BucketAlreadyOwnedByYou', 'BucketAlreadyExists'):
                logger.debug("bucket_already_exists", bucket=self.bucket)
                return False
            logger.error("bucket_creation_failed", bucket=self.bucket, error=str(e))
            raise
