"""
Keyed record tables on DynamoDB.

Every table uses the two-part key ``(PartitionKey, RowKey)``. Writes go through
``update_item`` for merge-upsert semantics or a conditional ``put_item`` when
the key must be new.
"""

import logging
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Mapping, NamedTuple, Optional

from boto3.dynamodb.types import TypeDeserializer, TypeSerializer
from botocore.exceptions import ClientError
from fastapi.concurrency import run_in_threadpool

from portal_api.adapters.clients import STORAGE_RETRY, error_code, translate_client_errors
from portal_api.errors import InvalidInput, NotFound
from portal_api.utils.decorators import async_retry, retry

logger = logging.getLogger(__name__)

PARTITION_KEY = "PartitionKey"
ROW_KEY = "RowKey"
NAME_FIELD = "Name"
LAST_UPDATED_FIELD = "LastUpdatedUtc"
MISC_PARTITION = "Z_MISC"


class RecordTable(str, Enum):
    """Fixed table names."""

    CUSTOMERS = "CustomerProfile"
    PRODUCTS = "Product"
    STUDENTS = "StudentMarks"


class RecordKey(NamedTuple):
    partition_key: str
    row_key: str


def partition_key(name: Optional[str]) -> str:
    """First character of ``name`` upper-cased, or ``Z_MISC`` for blank names."""
    if name is None or not name.strip():
        return MISC_PARTITION
    return name[0].upper()


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _storable(value: Any) -> Any:
    # DynamoDB numbers must be Decimal; str() keeps 9.99 from becoming 9.9900000000000002131...
    if isinstance(value, float):
        value = Decimal(str(value))
    if isinstance(value, Decimal):
        if not value.is_finite():
            raise ValueError(f"{value} is not a finite number")
        return value
    if isinstance(value, Mapping):
        return {k: _storable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_storable(v) for v in value]
    return value


def _plain(value: Any) -> Any:
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_plain(v) for v in value]
    if isinstance(value, set):
        return {_plain(v) for v in value}
    return value


class RecordStore:
    """One DynamoDB table addressed by ``(PartitionKey, RowKey)``."""

    def __init__(self, client: Any, table: RecordTable):
        self.client = client
        self.table = table
        self.table_name = table.value
        self._serializer = TypeSerializer()
        self._deserializer = TypeDeserializer()

    @retry(**STORAGE_RETRY)
    def ensure_exists(self) -> None:
        """Create the table if it is missing and wait until it is active."""
        with translate_client_errors(f"table {self.table_name}"):
            try:
                self.client.describe_table(TableName=self.table_name)
                logger.info(f"Using existing table: {self.table_name}")
                return
            except ClientError as e:
                if error_code(e) != "ResourceNotFoundException":
                    raise

            try:
                self.client.create_table(
                    TableName=self.table_name,
                    KeySchema=[
                        {"AttributeName": PARTITION_KEY, "KeyType": "HASH"},
                        {"AttributeName": ROW_KEY, "KeyType": "RANGE"},
                    ],
                    AttributeDefinitions=[
                        {"AttributeName": PARTITION_KEY, "AttributeType": "S"},
                        {"AttributeName": ROW_KEY, "AttributeType": "S"},
                    ],
                    BillingMode="PAY_PER_REQUEST",
                )
                logger.info(f"Created table: {self.table_name}")
            except ClientError as e:
                # another process created it between describe and create
                if error_code(e) != "ResourceInUseException":
                    raise
            self.client.get_waiter("table_exists").wait(TableName=self.table_name)

    def _key(self, record_key: RecordKey) -> Dict[str, Any]:
        return {
            PARTITION_KEY: {"S": record_key.partition_key},
            ROW_KEY: {"S": record_key.row_key},
        }

    def _record_key(self, record_id: Optional[str], name: str) -> RecordKey:
        row_key = record_id.strip() if record_id and record_id.strip() else str(uuid.uuid4())
        return RecordKey(partition_key(name), row_key)

    def _attributes(self, name: str, fields: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
        """Fields plus ``Name`` and ``LastUpdatedUtc``, already in DynamoDB wire form."""
        attributes = {k: v for k, v in (fields or {}).items() if v is not None}
        if PARTITION_KEY in attributes or ROW_KEY in attributes:
            raise InvalidInput(f"{PARTITION_KEY} and {ROW_KEY} are derived, not accepted as fields")
        attributes[NAME_FIELD] = name
        attributes[LAST_UPDATED_FIELD] = _utc_now()
        return {k: self._serialize(k, v) for k, v in attributes.items()}

    def _serialize(self, field: str, value: Any) -> Dict[str, Any]:
        try:
            return self._serializer.serialize(_storable(value))
        except (TypeError, ValueError, ArithmeticError) as e:
            raise InvalidInput(f"Field {field} cannot be stored in {self.table_name}: {e}", self.table_name) from e

    def _to_record(self, item: Dict[str, Any]) -> Dict[str, Any]:
        return {k: _plain(self._deserializer.deserialize(v)) for k, v in item.items()}

    async def upsert(self, record_id: Optional[str], name: str,
                     fields: Optional[Mapping[str, Any]] = None) -> RecordKey:
        """Merge-upsert: listed fields are set, everything else on the record is kept."""
        record_key = self._record_key(record_id, name)
        attributes = self._attributes(name, fields)
        await self._update(record_key, attributes)
        logger.info(f"Upserted {self.table_name} record {record_key.partition_key}/{record_key.row_key}")
        return record_key

    @async_retry(**STORAGE_RETRY)
    async def _update(self, record_key: RecordKey, attributes: Dict[str, Any]) -> None:
        await run_in_threadpool(self._update_sync, record_key, attributes)

    def _update_sync(self, record_key: RecordKey, attributes: Dict[str, Any]) -> None:
        names = {}
        values = {}
        assignments = []
        for i, (field, value) in enumerate(attributes.items()):
            names[f"#f{i}"] = field
            values[f":v{i}"] = value
            assignments.append(f"#f{i} = :v{i}")

        with translate_client_errors(f"table {self.table_name}"):
            self.client.update_item(
                TableName=self.table_name,
                Key=self._key(record_key),
                UpdateExpression="SET " + ", ".join(assignments),
                ExpressionAttributeNames=names,
                ExpressionAttributeValues=values,
            )

    async def insert(self, record_id: Optional[str], name: str,
                     fields: Optional[Mapping[str, Any]] = None) -> RecordKey:
        """Create a record; raises ``ResourceConflict`` if the key is taken."""
        record_key = self._record_key(record_id, name)
        attributes = self._attributes(name, fields)
        await self._put(record_key, attributes)
        logger.info(f"Inserted {self.table_name} record {record_key.partition_key}/{record_key.row_key}")
        return record_key

    @async_retry(**STORAGE_RETRY)
    async def _put(self, record_key: RecordKey, attributes: Dict[str, Any]) -> None:
        await run_in_threadpool(self._put_sync, record_key, attributes)

    def _put_sync(self, record_key: RecordKey, attributes: Dict[str, Any]) -> None:
        item = self._key(record_key)
        item.update(attributes)
        with translate_client_errors(f"table {self.table_name}"):
            self.client.put_item(
                TableName=self.table_name,
                Item=item,
                ConditionExpression="attribute_not_exists(#pk) AND attribute_not_exists(#rk)",
                ExpressionAttributeNames={"#pk": PARTITION_KEY, "#rk": ROW_KEY},
            )

    @async_retry(**STORAGE_RETRY)
    async def get(self, record_key: RecordKey) -> Dict[str, Any]:
        """Read one record; raises ``NotFound`` when it does not exist."""
        return await run_in_threadpool(self._get_sync, record_key)

    def _get_sync(self, record_key: RecordKey) -> Dict[str, Any]:
        with translate_client_errors(f"table {self.table_name}"):
            response = self.client.get_item(
                TableName=self.table_name,
                Key=self._key(record_key),
                ConsistentRead=True,
            )
        if "Item" not in response:
            raise NotFound(
                f"Record {record_key.partition_key}/{record_key.row_key} not found in {self.table_name}",
                self.table_name,
            )
        return self._to_record(response["Item"])

    @async_retry(**STORAGE_RETRY)
    async def list_all(self) -> List[Dict[str, Any]]:
        """Every record in the table, following scan pagination to the end."""
        return await run_in_threadpool(self._list_sync)

    def _list_sync(self) -> List[Dict[str, Any]]:
        records = []
        scan_kwargs: Dict[str, Any] = {"TableName": self.table_name}
        with translate_client_errors(f"table {self.table_name}"):
            while True:
                response = self.client.scan(**scan_kwargs)
                records.extend(self._to_record(item) for item in response.get("Items", []))
                last_key = response.get("LastEvaluatedKey")
                if not last_key:
                    break
                scan_kwargs["ExclusiveStartKey"] = last_key
        return records
