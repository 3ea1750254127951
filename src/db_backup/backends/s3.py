from typing import List

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from loguru import logger

from db_backup.backends.base import Backend
from db_backup.utils.config import S3Settings
from db_backup.utils.converters import FILE_SUFFIX
from db_backup.utils.errors import UploadError


class S3Backend(Backend):
    """
    Stores archives as objects in an S3 bucket.
    """

    def __init__(self, settings: S3Settings):
        """
        :param settings: credentials, region, bucket and optional endpoint
        """
        self.bucket_name = settings.bucket
        self.s3 = boto3.resource(
            's3',
            endpoint_url=settings.endpoint,
            region_name=settings.region,
            aws_access_key_id=settings.access_key_id,
            aws_secret_access_key=settings.secret_access_key,
            aws_session_token=None,
        )
        self.bucket = self.s3.Bucket(self.bucket_name)

    def upload(self, key: str, data: bytes) -> None:
        logger.info(f'Uploading {key} ({len(data)} bytes) to s3://{self.bucket_name}...')
        try:
            self.bucket.put_object(Key=key, Body=data)
        except (BotoCoreError, ClientError) as e:
            raise UploadError(f'Upload of {key} to bucket {self.bucket_name} failed: {e}') from e
        logger.info('S3 upload completed')

    def get_existing_backups(self) -> List[str]:
        """
        Get all existing archives.
        :return: list with the keys of the archives.
        """
        logger.info('Loading existing backups from s3 (listing all objects)...')
        return sorted(
            entry.key for entry in self.bucket.objects.all()
            if entry.key.endswith(FILE_SUFFIX)
        )
