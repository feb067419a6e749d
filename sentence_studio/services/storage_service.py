import os
import secrets
import time
from typing import Optional
from urllib.parse import urlparse

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError
from dotenv import load_dotenv
from fastapi.concurrency import run_in_threadpool

from sentence_studio.logging_config import setup_logger
logger = setup_logger(__name__, "storage.log")

load_dotenv()


class StorageError(Exception):
    pass


def make_object_key(prefix: str, extension: str, owner: Optional[int] = None) -> str:
    """`<prefix>/[<owner>_]<ms timestamp>_<random>.<extension>`"""
    stamp = f"{int(time.time() * 1000)}_{secrets.token_hex(4)}"
    name = f"{owner}_{stamp}" if owner is not None else stamp
    return f"{prefix.rstrip('/')}/{name}.{extension}"


class StorageService:
    """S3-compatible object storage (Cloudflare R2, MinIO, AWS)."""

    def __init__(self):
        self.access_key = os.getenv("S3_ACCESS_KEY_ID")
        self.secret_key = os.getenv("S3_SECRET_ACCESS_KEY")
        self.endpoint = (os.getenv("S3_ENDPOINT") or "").rstrip('/')
        self.bucket = os.getenv("S3_BUCKET_NAME")
        self.public_base_url = os.getenv("S3_PUBLIC_BASE_URL")
        self._client = None

    def _resolve(self):
        if not self.access_key or not self.secret_key or not self.endpoint:
            raise StorageError("Object storage is not configured: set S3_ACCESS_KEY_ID, "
                               "S3_SECRET_ACCESS_KEY and S3_ENDPOINT")

        parsed = urlparse(self.endpoint)
        if not parsed.scheme or not parsed.netloc:
            raise StorageError("S3_ENDPOINT is not a valid URL")

        origin = f"{parsed.scheme}://{parsed.netloc}"
        # the bucket may be given as the first path segment of the endpoint
        path_bucket = parsed.path.strip('/').split('/')[0] if parsed.path.strip('/') else ''
        bucket = self.bucket or path_bucket
        if not bucket:
            raise StorageError("Bucket name missing: set S3_BUCKET_NAME or include it in S3_ENDPOINT")

        public_base = (self.public_base_url or f"{origin}/{bucket}").rstrip('/')
        return origin, bucket, public_base

    def _get_client(self, origin: str):
        if self._client is None:
            self._client = boto3.client(
                's3',
                endpoint_url=origin,
                aws_access_key_id=self.access_key,
                aws_secret_access_key=self.secret_key,
                region_name='auto',
                config=Config(s3={'addressing_style': 'path'}),
            )
        return self._client

    async def upload(self, key: str, body: bytes, content_type: str) -> dict:
        origin, bucket, public_base = self._resolve()
        client = self._get_client(origin)

        try:
            await run_in_threadpool(
                client.put_object, Bucket=bucket, Key=key, Body=body, ContentType=content_type
            )
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Upload of {key} failed: {str(e)}")
            raise StorageError("Failed to upload file") from e

        logger.info(f"Uploaded {key} ({len(body)} bytes)")
        return {"url": f"{public_base}/{key}", "key": key, "size": len(body)}

    async def delete(self, key: str) -> None:
        origin, bucket, _ = self._resolve()
        client = self._get_client(origin)

        try:
            await run_in_threadpool(client.delete_object, Bucket=bucket, Key=key)
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Delete of {key} failed: {str(e)}")
            raise StorageError("Failed to delete file") from e

        logger.info(f"Deleted {key}")


def get_storage() -> StorageService:
    return StorageService()
