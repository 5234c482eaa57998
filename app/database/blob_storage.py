import boto3
from botocore.exceptions import ClientError
from supabase import Client
from app.config import settings
from typing import Protocol
import logging

logger = logging.getLogger(__name__)


class BlobStorageError(Exception):
    pass


class BlobStore(Protocol):
    def upload(self, path: str, content: bytes, content_type: str) -> str: ...

    def get_public_url(self, path: str) -> str: ...

    def remove(self, path: str) -> bool: ...


class SupabaseBlobStore:
    """Public Supabase Storage bucket, written with the caller's token."""

    def __init__(self, client: Client, bucket: str):
        self.client = client
        self.bucket = bucket

    def upload(self, path: str, content: bytes, content_type: str) -> str:
        try:
            self.client.storage.from_(self.bucket).upload(
                path,
                content,
                file_options={"content-type": content_type, "cache-control": "3600", "upsert": "false"}
            )
            return path
        except Exception as e:
            logger.error(f"Supabase Storage upload failed ({path}): {str(e)}")
            raise BlobStorageError(str(e))

    def get_public_url(self, path: str) -> str:
        return self.client.storage.from_(self.bucket).get_public_url(path)

    def remove(self, path: str) -> bool:
        try:
            self.client.storage.from_(self.bucket).remove([path])
            return True
        except Exception as e:
            logger.warning(f"Failed to delete {path} from Supabase Storage: {e}")
            return False


class S3BlobStore:
    def __init__(self):
        if not settings.s3_configured:
            raise ValueError("AWS S3 credentials and bucket name must be configured")

        self.s3_client = boto3.client(
            's3',
            aws_access_key_id=settings.aws_access_key_id,
            aws_secret_access_key=settings.aws_secret_access_key,
            region_name=settings.aws_region
        )
        self.bucket_name = settings.s3_bucket_name

    def upload(self, path: str, content: bytes, content_type: str) -> str:
        """Upload object to S3 and return its key"""
        try:
            self.s3_client.put_object(
                Bucket=self.bucket_name,
                Key=path,
                Body=content,
                ContentType=content_type,
                CacheControl="max-age=3600"
            )
            return path
        except ClientError as e:
            logger.error(f"Failed to upload file to S3: {str(e)}")
            raise BlobStorageError(str(e))

    def get_public_url(self, path: str) -> str:
        return f"https://{self.bucket_name}.s3.{settings.aws_region}.amazonaws.com/{path}"

    def remove(self, path: str) -> bool:
        """Delete object from S3"""
        try:
            self.s3_client.delete_object(Bucket=self.bucket_name, Key=path)
            return True
        except ClientError as e:
            logger.error(f"Failed to delete file from S3: {str(e)}")
            return False
