"""S3 storage for candidate CV files."""

import logging
from typing import Optional

import aioboto3
from botocore.exceptions import BotoCoreError, ClientError

from core.exceptions import StorageFailure

logger = logging.getLogger(__name__)


class S3Storage:
    """S3 storage handler for async operations."""

    def __init__(
        self,
        bucket_name: Optional[str],
        region: str,
        access_key_id: Optional[str] = None,
        secret_access_key: Optional[str] = None,
    ):
        """
        Initialize S3 storage.

        Args:
            bucket_name: S3 bucket name
            region: AWS region of the bucket
            access_key_id: AWS access key (default credential chain if None)
            secret_access_key: AWS secret key
        """
        if not bucket_name:
            raise ValueError("S3 bucket name not provided and AWS_S3_BUCKET not set")

        self.bucket_name = bucket_name
        self.region = region
        self.credentials = {"region_name": region}
        if access_key_id and secret_access_key:
            self.credentials["aws_access_key_id"] = access_key_id
            self.credentials["aws_secret_access_key"] = secret_access_key

    def get_url(self, key: str) -> str:
        """Public virtual-hosted-style URL of an object."""
        return f"https://{self.bucket_name}.s3.{self.region}.amazonaws.com/{key}"

    async def upload(
        self,
        key: str,
        data: bytes,
        content_type: Optional[str] = None,
    ) -> str:
        """
        Upload file to S3.

        Args:
            key: S3 object key (path)
            data: File contents
            content_type: MIME type of the file

        Returns:
            Public URL of the stored object

        Raises:
            StorageFailure: If the put request fails
        """
        upload_args = {
            "Bucket": self.bucket_name,
            "Key": key,
            "Body": data,
        }
        if content_type:
            upload_args["ContentType"] = content_type

        session = aioboto3.Session(**self.credentials)
        try:
            async with session.client("s3") as client:
                await client.put_object(**upload_args)
        except (ClientError, BotoCoreError) as exc:
            logger.error(f"Failed to upload to S3: {self.bucket_name}/{key}: {exc}")
            raise StorageFailure(f"Failed to upload file {key}", key=key) from exc

        logger.info(f"Uploaded file to S3: {self.bucket_name}/{key}")
        return self.get_url(key)

    async def delete(self, key: str) -> None:
        """
        Delete file from S3. Missing keys are not an error.

        Raises:
            StorageFailure: If the delete request fails
        """
        session = aioboto3.Session(**self.credentials)
        try:
            async with session.client("s3") as client:
                await client.delete_object(Bucket=self.bucket_name, Key=key)
        except (ClientError, BotoCoreError) as exc:
            logger.error(f"Failed to delete from S3: {self.bucket_name}/{key}: {exc}")
            raise StorageFailure(f"Failed to delete file {key}", key=key) from exc

        logger.info(f"Deleted file from S3: {self.bucket_name}/{key}")
