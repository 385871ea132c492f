"""
AWS S3 storage backend
"""

import logging
from pathlib import Path
from typing import Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError, NoCredentialsError

from .base import StorageBackend
from .exceptions import StorageError, StorageNotFoundError, StoragePermissionError

logger = logging.getLogger(__name__)


class S3Storage(StorageBackend):
    """
    AWS S3 storage backend
    """

    backend_type = "s3"

    def __init__(self, bucket: str, region: str = 'us-east-1', client=None):
        """
        Initialize S3 storage backend

        Args:
            bucket: S3 bucket name
            region: AWS region
            client: Optional preconfigured boto3 S3 client
        """
        self.bucket = bucket
        self.region = region

        try:
            self.s3_client = client or boto3.client('s3', region_name=region)
            logger.info(f"Initialized S3 storage backend for bucket: {bucket} in region: {region}")
        except NoCredentialsError:
            logger.error("AWS credentials not configured")
            raise

    def save_file(self, local_path: Path, remote_path: str, content_type: Optional[str] = None) -> str:
        """
        Upload file from local path to S3

        Returns:
            HTTPS URL of the uploaded object
        """
        extra_args = {'ContentType': content_type} if content_type else None
        try:
            logger.info(f"Uploading {local_path} to s3://{self.bucket}/{remote_path}")
            self.s3_client.upload_file(str(local_path), self.bucket, remote_path, ExtraArgs=extra_args)
        except ClientError as e:
            error_code = e.response['Error']['Code']
            if error_code == 'NoSuchBucket':
                raise StorageNotFoundError(f"S3 bucket does not exist: {self.bucket}") from e
            if error_code in ('AccessDenied', '403'):
                raise StoragePermissionError(f"Access denied to s3://{self.bucket}/{remote_path}") from e
            raise StorageError(f"S3 upload failed: {e}") from e
        except (BotoCoreError, OSError) as e:
            raise StorageError(f"Failed to upload file to S3: {e}") from e

        return self.get_file_url(remote_path)

    def delete_file(self, remote_path: str) -> bool:
        try:
            self.s3_client.delete_object(Bucket=self.bucket, Key=remote_path)
            return True
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Failed to delete s3://{self.bucket}/{remote_path}: {e}")
            return False

    def file_exists(self, remote_path: str) -> bool:
        try:
            self.s3_client.head_object(Bucket=self.bucket, Key=remote_path)
            return True
        except ClientError as e:
            error_code = e.response['Error']['Code']
            if error_code not in ('404', 'NoSuchKey'):
                logger.error(f"Error checking S3 object existence: {e}")
            return False
        except BotoCoreError as e:
            logger.error(f"Failed to check S3 object existence: {e}")
            return False

    def get_file_url(self, remote_path: str) -> str:
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{remote_path}"
