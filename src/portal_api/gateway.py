"""
Storage gateway for the retail and student portals.

One ``StorageGateway`` is built at process start and shared by every request.
It owns one handle per storage kind, each bound to a fixed resource name:

    record tables   CustomerProfile, Product, StudentMarks   (DynamoDB)
    blob containers product-images, studentimages            (S3)
    queue           order-processing                         (SQS)
    file share      contracts                                (mounted filesystem)

Table, blob and queue calls retry transient failures with capped exponential
backoff (300 ms doubling to at most 5 s, five attempts). File share calls are
not retried.
"""

import logging
from typing import Any, BinaryIO, Dict, List, Mapping, Optional, Union

from portal_api.adapters.blobs import (
    BlobContainer,
    BlobContent,
    BlobNaming,
    BlobStore,
    StoredBlob,
)
from portal_api.adapters.clients import AWSClientFactory
from portal_api.adapters.connection import StorageConnection, parse_connection_string
from portal_api.adapters.content_types import resolve_content_type
from portal_api.adapters.file_share import FileShare
from portal_api.adapters.queue import QueuePayload, SQSQueue, classify_payload
from portal_api.adapters.tables import RecordKey, RecordStore, RecordTable
from portal_api.adapters.uploads import measure_stream, sanitize_file_name, unique_blob_name
from portal_api.settings import Settings
from portal_api.utils.decorators import async_log_execution_time

logger = logging.getLogger(__name__)

ORDER_QUEUE_NAME = "order-processing"
CONTRACT_SHARE_NAME = "contracts"


class StorageGateway:
    """One call per logical storage operation."""

    def __init__(
        self,
        connection: StorageConnection,
        tables: Dict[RecordTable, RecordStore],
        containers: Dict[BlobContainer, BlobStore],
        queue: SQSQueue,
        file_share: FileShare,
    ):
        self.connection = connection
        self.tables = tables
        self.containers = containers
        self.queue = queue
        self.file_share = file_share

    @classmethod
    def from_settings(cls, settings: Settings) -> "StorageGateway":
        """Build a ready-to-use gateway from the configured connection string."""
        return cls.from_connection(parse_connection_string(settings.storage_connection_string))

    @classmethod
    def from_connection(cls, connection: StorageConnection) -> "StorageGateway":
        """
        Construct every client and provision every resource.

        Raises a ``StorageError`` if any resource cannot be provisioned; there is
        no partially initialised gateway.
        """
        factory = AWSClientFactory(connection)
        dynamodb = factory.get_client("dynamodb")
        s3 = factory.get_client("s3")
        sqs = factory.get_client("sqs")

        tables = {table: RecordStore(dynamodb, table) for table in RecordTable}
        containers = {
            container: BlobStore(s3, container, connection) for container in BlobContainer
        }
        queue = SQSQueue(sqs, ORDER_QUEUE_NAME)
        file_share = FileShare(connection.file_share_root, CONTRACT_SHARE_NAME)

        for store in tables.values():
            store.ensure_exists()
        for container in containers.values():
            container.ensure_exists()
        queue.ensure_exists()
        file_share.ensure_exists()

        logger.info("Storage gateway ready")
        return cls(connection, tables, containers, queue, file_share)

    # Records

    async def upsert_record(self, table: RecordTable, record_id: Optional[str], name: str,
                            fields: Optional[Mapping[str, Any]] = None) -> RecordKey:
        """
        Create or merge-update a record.

        The partition key comes from the first letter of ``name`` (``Z_MISC``
        when blank); the row key is ``record_id`` or a fresh uuid. Fields not
        listed keep their stored values. ``LastUpdatedUtc`` is always stamped.
        """
        return await self.tables[table].upsert(record_id, name, fields)

    async def insert_record(self, table: RecordTable, record_id: Optional[str], name: str,
                            fields: Optional[Mapping[str, Any]] = None) -> RecordKey:
        """Create a record, raising ``ResourceConflict`` if the key already exists."""
        return await self.tables[table].insert(record_id, name, fields)

    async def get_record(self, table: RecordTable, partition_key: str, row_key: str) -> Dict[str, Any]:
        return await self.tables[table].get(RecordKey(partition_key, row_key))

    async def list_records(self, table: RecordTable) -> List[Dict[str, Any]]:
        return await self.tables[table].list_all()

    # Blobs

    @async_log_execution_time
    async def upload_blob(
        self,
        file_name: str,
        stream: BinaryIO,
        content_type: Optional[str] = None,
        *,
        container: BlobContainer = BlobContainer.PRODUCT_IMAGES,
        naming: BlobNaming = BlobNaming.UNIQUE,
    ) -> StoredBlob:
        """
        Upload a blob and return its stored name and URL.

        ``UNIQUE`` stores under ``yyyy/MM/dd/<token>-<file name>`` and refuses to
        overwrite; ``OVERWRITE`` stores under the sanitized file name and
        replaces whatever was there. The extension decides the content type;
        ``content_type`` is only used for extensions missing from the table.
        """
        safe_name = sanitize_file_name(file_name)
        measure_stream(stream)
        resolved_type = resolve_content_type(safe_name, fallback=content_type)

        if naming is BlobNaming.UNIQUE:
            blob_name = unique_blob_name(safe_name)
        else:
            blob_name = safe_name

        return await self.containers[container].upload(
            blob_name,
            stream,
            resolved_type,
            overwrite=naming is BlobNaming.OVERWRITE,
        )

    def get_blob_url(self, blob_name: str, *,
                     container: BlobContainer = BlobContainer.PRODUCT_IMAGES) -> str:
        """URL for ``blob_name``. Pure: no remote call and no existence check."""
        return self.containers[container].url_for(blob_name)

    async def download_blob(self, blob_name: str, *,
                            container: BlobContainer = BlobContainer.PRODUCT_IMAGES) -> BlobContent:
        return await self.containers[container].download(blob_name)

    # Queue

    async def enqueue_message(self, payload: Union[str, QueuePayload]) -> None:
        """
        Send a message to the order queue.

        JSON objects and arrays go out verbatim; anything else is wrapped as
        ``{"text": ..., "whenUtc": ...}``.
        """
        await self.queue.send(classify_payload(payload))

    async def dequeue_one_message(self) -> Optional[str]:
        """Take one message off the order queue, or ``None`` if it is empty. Never blocks."""
        return await self.queue.receive_one()

    # File share

    @async_log_execution_time
    async def upload_file(self, file_name: str, stream: BinaryIO,
                          customer_scope: Optional[str] = None) -> str:
        """
        Store a file on the contracts share, under ``customer_scope`` if given.

        Returns the path relative to the share root, e.g. ``C42/contract.pdf``.
        """
        return await self.file_share.upload(file_name, stream, directory=customer_scope)
