import io

import pytest
from botocore.exceptions import ClientError

from portal_api.adapters.blobs import BlobContainer
from portal_api.adapters.tables import RecordTable
from portal_api.errors import StorageUnavailable


def fail_first_calls(client, operation, times=1):
    """Make the next ``times`` calls of ``operation`` on ``client`` fail with a throttling error."""
    calls = []

    def throttle(**kwargs):
        calls.append(operation)
        if len(calls) <= times:
            raise ClientError(
                {
                    "Error": {"Code": "SlowDown", "Message": "Please reduce your request rate."},
                    "ResponseMetadata": {"HTTPStatusCode": 503},
                },
                operation,
            )

    service = client.meta.service_model.service_id.hyphenize()
    client.meta.events.register(f"before-call.{service}.{operation}", throttle)
    return calls


async def test_blob_upload_is_retried_after_throttling(gateway, no_sleep):
    store = gateway.containers[BlobContainer.PRODUCT_IMAGES]
    calls = fail_first_calls(store.client, "PutObject")
    stream = io.BytesIO(b"image bytes")

    stored = await gateway.upload_blob("photo.png", stream)

    assert len(calls) == 2
    assert no_sleep == pytest.approx([0.3])
    assert not stream.closed
    assert (await gateway.download_blob(stored.blob_name)).data == b"image bytes"


async def test_blob_existence_check_is_not_repeated_by_put_retries(gateway, no_sleep):
    store = gateway.containers[BlobContainer.PRODUCT_IMAGES]
    heads = fail_first_calls(store.client, "HeadObject", times=0)
    fail_first_calls(store.client, "PutObject", times=2)

    stored = await gateway.upload_blob("photo.png", io.BytesIO(b"image bytes"))

    assert len(heads) == 1
    assert stored.content_type == "image/png"


async def test_record_upsert_is_retried_after_throttling(gateway, no_sleep):
    store = gateway.tables[RecordTable.CUSTOMERS]
    calls = fail_first_calls(store.client, "UpdateItem")

    record_key = await gateway.upsert_record(RecordTable.CUSTOMERS, "C1", "alice", {"Email": "a@x.com"})

    assert len(calls) == 2
    assert no_sleep == pytest.approx([0.3])
    record = await gateway.get_record(RecordTable.CUSTOMERS, record_key.partition_key, record_key.row_key)
    assert record["Email"] == "a@x.com"


async def test_record_without_id_keeps_one_row_key_across_retries(gateway, no_sleep):
    store = gateway.tables[RecordTable.CUSTOMERS]
    fail_first_calls(store.client, "UpdateItem", times=2)

    await gateway.upsert_record(RecordTable.CUSTOMERS, None, "bob")

    assert len(await gateway.list_records(RecordTable.CUSTOMERS)) == 1


async def test_enqueue_is_retried_after_throttling(gateway, no_sleep):
    calls = fail_first_calls(gateway.queue.sqs, "SendMessage")

    await gateway.enqueue_message('{"order": "O-1"}')

    assert len(calls) == 2
    assert await gateway.dequeue_one_message() == '{"order": "O-1"}'


async def test_dequeue_is_retried_after_throttling(gateway, no_sleep):
    await gateway.enqueue_message('{"order": "O-2"}')
    calls = fail_first_calls(gateway.queue.sqs, "ReceiveMessage")

    assert await gateway.dequeue_one_message() == '{"order": "O-2"}'
    assert len(calls) == 2


async def test_retry_budget_runs_out_after_five_attempts(gateway, no_sleep):
    calls = fail_first_calls(gateway.queue.sqs, "SendMessage", times=10)

    with pytest.raises(StorageUnavailable):
        await gateway.enqueue_message("hello")

    assert len(calls) == 5
    assert no_sleep == pytest.approx([0.3, 0.6, 1.2, 2.4])
