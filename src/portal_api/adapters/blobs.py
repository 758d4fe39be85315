"""Blob containers on S3: one bucket per container."""

import io
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, BinaryIO
from urllib.parse import quote

from boto3.s3.transfer import TransferConfig
from botocore.exceptions import ClientError
from fastapi.concurrency import run_in_threadpool

from portal_api.adapters.clients import STORAGE_RETRY, error_code, translate_client_errors
from portal_api.adapters.connection import StorageConnection
from portal_api.errors import NotFound, ResourceConflict
from portal_api.utils.decorators import async_retry, retry

logger = logging.getLogger(__name__)

# Parallel parts per multipart upload
UPLOAD_MAX_CONCURRENCY = 2

UPLOAD_TRANSFER_CONFIG = TransferConfig(
    max_concurrency=UPLOAD_MAX_CONCURRENCY,
    multipart_threshold=8 * 1024 * 1024,
    multipart_chunksize=8 * 1024 * 1024,
)


class BlobContainer(str, Enum):
    """Fixed container (bucket) names."""

    PRODUCT_IMAGES = "product-images"
    STUDENT_IMAGES = "studentimages"


class BlobNaming(str, Enum):
    """How ``upload_blob`` names the stored object."""

    UNIQUE = "unique"  # date path + random token, never overwrites
    OVERWRITE = "overwrite"  # sanitized file name, last write wins


@dataclass(frozen=True)
class StoredBlob:
    blob_name: str
    url: str
    content_type: str


@dataclass(frozen=True)
class BlobContent:
    blob_name: str
    data: bytes
    content_type: str


class BlobStore:
    """One S3 bucket standing in for a blob container."""

    def __init__(self, client: Any, container: BlobContainer, connection: StorageConnection):
        self.client = client
        self.container = container
        self.bucket_name = container.value
        self.connection = connection

    @retry(**STORAGE_RETRY)
    def ensure_exists(self) -> None:
        """Create the bucket if it is missing."""
        with translate_client_errors(f"container {self.bucket_name}"):
            try:
                self.client.head_bucket(Bucket=self.bucket_name)
                logger.info(f"Using existing container: {self.bucket_name}")
                return
            except ClientError as e:
                if error_code(e) not in ("404", "NoSuchBucket", "NotFound"):
                    raise

            create_kwargs = {"Bucket": self.bucket_name}
            # us-east-1 rejects an explicit LocationConstraint
            if self.connection.region != "us-east-1":
                create_kwargs["CreateBucketConfiguration"] = {
                    "LocationConstraint": self.connection.region
                }
            try:
                self.client.create_bucket(**create_kwargs)
                logger.info(f"Created container: {self.bucket_name}")
            except ClientError as e:
                if error_code(e) != "BucketAlreadyOwnedByYou":
                    raise

    @property
    def base_url(self) -> str:
        """Address of the container itself, without a trailing slash."""
        if self.connection.endpoint_url:
            return f"{self.connection.endpoint_url.rstrip('/')}/{self.bucket_name}"
        return f"https://{self.bucket_name}.s3.{self.connection.region}.amazonaws.com"

    def url_for(self, blob_name: str) -> str:
        """URL of ``blob_name``. No remote call, existence is not checked."""
        return f"{self.base_url}/{quote(blob_name, safe='/')}"

    async def upload(self, blob_name: str, stream: BinaryIO, content_type: str,
                     overwrite: bool) -> StoredBlob:
        """
        Upload ``stream`` under ``blob_name``.

        With ``overwrite`` disabled an existing blob raises ``ResourceConflict``
        instead of being replaced. The existence check runs once, before the
        retried put, so a put whose response was lost is not reported as a
        conflict on the next attempt.
        """
        data = stream.read()
        if not overwrite and await self._exists(blob_name):
            raise ResourceConflict(
                f"Blob {blob_name} already exists in {self.bucket_name}",
                self.bucket_name,
            )
        await self._put(blob_name, data, content_type)
        logger.info(f"Uploaded blob {blob_name} to {self.bucket_name} as {content_type}")
        return StoredBlob(blob_name=blob_name, url=self.url_for(blob_name), content_type=content_type)

    @async_retry(**STORAGE_RETRY)
    async def _put(self, blob_name: str, data: bytes, content_type: str) -> None:
        await run_in_threadpool(self._put_sync, blob_name, data, content_type)

    def _put_sync(self, blob_name: str, data: bytes, content_type: str) -> None:
        # upload_fileobj closes its file object, so every attempt gets a fresh one
        with translate_client_errors(f"container {self.bucket_name}"):
            self.client.upload_fileobj(
                Fileobj=io.BytesIO(data),
                Bucket=self.bucket_name,
                Key=blob_name,
                ExtraArgs={"ContentType": content_type},
                Config=UPLOAD_TRANSFER_CONFIG,
            )

    @async_retry(**STORAGE_RETRY)
    async def _exists(self, blob_name: str) -> bool:
        return await run_in_threadpool(self._exists_sync, blob_name)

    def _exists_sync(self, blob_name: str) -> bool:
        with translate_client_errors(f"container {self.bucket_name}"):
            try:
                self.client.head_object(Bucket=self.bucket_name, Key=blob_name)
                return True
            except ClientError as e:
                if error_code(e) in ("404", "NoSuchKey", "NotFound"):
                    return False
                raise

    @async_retry(**STORAGE_RETRY)
    async def download(self, blob_name: str) -> BlobContent:
        """Read a whole blob; raises ``NotFound`` when it does not exist."""
        return await run_in_threadpool(self._download_sync, blob_name)

    def _download_sync(self, blob_name: str) -> BlobContent:
        try:
            with translate_client_errors(f"container {self.bucket_name}"):
                response = self.client.get_object(Bucket=self.bucket_name, Key=blob_name)
                data = response["Body"].read()
        except NotFound as e:
            raise NotFound(f"Blob {blob_name} not found in {self.bucket_name}", self.bucket_name) from e
        return BlobContent(
            blob_name=blob_name,
            data=data,
            content_type=response.get("ContentType") or "application/octet-stream",
        )
