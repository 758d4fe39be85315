import base64
import binascii
import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional, Union

from fastapi.concurrency import run_in_threadpool

from portal_api.adapters.clients import STORAGE_RETRY, translate_client_errors
from portal_api.errors import InvalidInput
from portal_api.utils.decorators import async_retry, retry

logger = logging.getLogger(__name__)

# Seconds a received message stays hidden from other receivers
VISIBILITY_TIMEOUT = 30


def _utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


@dataclass(frozen=True)
class PlainText:
    """Free text, sent wrapped as ``{"text": ..., "whenUtc": ...}``."""

    text: str
    when_utc: str = field(default_factory=_utc_timestamp)

    def render(self) -> str:
        return json.dumps({"text": self.text, "whenUtc": self.when_utc})


@dataclass(frozen=True)
class PreformattedPayload:
    """A JSON object or array, sent verbatim."""

    json_text: str

    def __post_init__(self):
        if not _is_json_document(self.json_text):
            raise InvalidInput("Preformatted queue payloads must be a JSON object or array")

    def render(self) -> str:
        return self.json_text


QueuePayload = Union[PlainText, PreformattedPayload]


def _is_json_document(text: str) -> bool:
    try:
        parsed = json.loads(text)
    except (TypeError, ValueError):
        return False
    return isinstance(parsed, (dict, list))


def classify_payload(payload: Union[str, QueuePayload]) -> QueuePayload:
    """
    Turn a raw string into a payload variant.

    Uses a full JSON parse, so ``{not json`` is treated as plain text rather
    than being sent as broken JSON.
    """
    if isinstance(payload, (PlainText, PreformattedPayload)):
        return payload
    if payload is None:
        raise InvalidInput("Queue payload is required")
    if _is_json_document(payload):
        return PreformattedPayload(payload)
    return PlainText(payload)


def encode_message(text: str) -> str:
    """Base64 of the UTF-8 payload, the transport encoding of the queue."""
    return base64.b64encode(text.encode("utf-8")).decode("ascii")


def decode_message(body: str) -> str:
    try:
        return base64.b64decode(body, validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError) as e:
        raise InvalidInput(f"Queue message is not base64 encoded UTF-8: {e}") from e


class SQSQueue:
    """Handles one AWS SQS queue"""

    def __init__(self, client: Any, queue_name: str):
        self.sqs = client
        self.queue_name = queue_name
        self.queue_url: Optional[str] = None

    @retry(**STORAGE_RETRY)
    def ensure_exists(self) -> None:
        """Create the queue if needed and remember its URL; create_queue is idempotent."""
        with translate_client_errors(f"queue {self.queue_name}"):
            response = self.sqs.create_queue(QueueName=self.queue_name)
        self.queue_url = response["QueueUrl"]
        logger.info("SQSQueue initialized")
        logger.info(f"  Queue URL: {self.queue_url}")

    @async_retry(**STORAGE_RETRY)
    async def send(self, payload: QueuePayload) -> str:
        """Send one message and return its id."""
        body = encode_message(payload.render())
        response = await run_in_threadpool(self._send_sync, body)
        logger.info(f"Message added to {self.queue_name} with ID: {response.get('MessageId')}")
        return response.get("MessageId")

    def _send_sync(self, body: str) -> dict:
        with translate_client_errors(f"queue {self.queue_name}"):
            return self.sqs.send_message(QueueUrl=self.queue_url, MessageBody=body)

    async def receive_one(self) -> Optional[str]:
        """
        Receive at most one message, acknowledge it and return its text.

        Returns ``None`` straight away when the queue is empty. A body that is
        not base64 was not written by ``send``; it is still acknowledged and
        returned as received, so a drain never gets stuck on it.
        """
        message = await self._receive()
        if message is None:
            return None

        try:
            text = decode_message(message["Body"])
        except InvalidInput as e:
            logger.warning(f"Message {message.get('MessageId')} on {self.queue_name} returned undecoded: {e}")
            text = message["Body"]
        await self._delete(message["ReceiptHandle"])
        logger.info(f"Retrieved message {message.get('MessageId')} from {self.queue_name}")
        return text

    @async_retry(**STORAGE_RETRY)
    async def _receive(self) -> Optional[dict]:
        response = await run_in_threadpool(self._receive_sync)
        messages = response.get("Messages", [])
        return messages[0] if messages else None

    def _receive_sync(self) -> dict:
        with translate_client_errors(f"queue {self.queue_name}"):
            return self.sqs.receive_message(
                QueueUrl=self.queue_url,
                MaxNumberOfMessages=1,
                VisibilityTimeout=VISIBILITY_TIMEOUT,
                WaitTimeSeconds=0,
            )

    @async_retry(**STORAGE_RETRY)
    async def _delete(self, receipt_handle: str) -> None:
        await run_in_threadpool(self._delete_sync, receipt_handle)

    def _delete_sync(self, receipt_handle: str) -> None:
        with translate_client_errors(f"queue {self.queue_name}"):
            self.sqs.delete_message(QueueUrl=self.queue_url, ReceiptHandle=receipt_handle)
