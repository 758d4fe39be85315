"""boto3 client construction and botocore error translation."""
import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator

import boto3
from botocore.config import Config
from botocore.exceptions import (
    ClientError,
    ConnectionError as BotoConnectionError,
    HTTPClientError,
    NoCredentialsError,
)

from portal_api.adapters.connection import StorageConnection
from portal_api.errors import (
    InvalidInput,
    NotFound,
    ResourceConflict,
    StorageError,
    StorageUnavailable,
)

logger = logging.getLogger(__name__)

# Applied beneath every table, blob and queue call. The file share is not retried.
STORAGE_RETRY: Dict[str, Any] = {
    "max_attempts": 5,
    "delay": 0.3,
    "backoff": 2.0,
    "max_delay": 5.0,
    "exceptions": (StorageUnavailable,),
}

TRANSIENT_ERROR_CODES = {
    "InternalError",
    "InternalServerError",
    "InternalFailure",
    "ProvisionedThroughputExceededException",
    "RequestLimitExceeded",
    "RequestTimeout",
    "RequestTimeoutException",
    "ServiceUnavailable",
    "SlowDown",
    "Throttling",
    "ThrottlingException",
}

CONFLICT_ERROR_CODES = {
    "BucketAlreadyExists",
    "ConditionalCheckFailedException",
    "PreconditionFailed",
    "QueueAlreadyExists",
    "ResourceInUseException",
}

NOT_FOUND_ERROR_CODES = {
    "404",
    "AWS.SimpleQueueService.NonExistentQueue",
    "NoSuchBucket",
    "NoSuchKey",
    "NotFound",
    "QueueDoesNotExist",
    "ResourceNotFoundException",
}

INVALID_INPUT_ERROR_CODES = {
    "InvalidArgument",
    "InvalidMessageContents",
    "InvalidParameterValue",
    "MessageTooLong",
    "ValidationException",
}


class AWSClientFactory:
    """Builds boto3 clients for one storage connection.

    botocore's own retry layer is switched off so ``STORAGE_RETRY`` is the only
    retry policy in play.
    """

    def __init__(self, connection: StorageConnection):
        self.connection = connection
        self.config = Config(
            retries={"total_max_attempts": 1, "mode": "standard"},
            connect_timeout=5,
            read_timeout=60,
        )
        self.session = boto3.Session()

        logger.info("Initializing AWSClientFactory")
        logger.info(f"  Region: {connection.region}")
        logger.info(f"  Endpoint: {connection.endpoint_url or '(AWS default)'}")

    def get_client(self, service_name: str) -> Any:
        """Create a client for ``service_name``; clients are safe to share across threads."""
        client = self.session.client(
            service_name,
            config=self.config,
            **self.connection.client_kwargs(),
        )
        logger.debug(f"Created {service_name} client")
        return client


def error_code(err: ClientError) -> str:
    return str(err.response.get("Error", {}).get("Code", ""))


def classify_client_error(err: ClientError, resource: str) -> StorageError:
    """Map a botocore ``ClientError`` onto the storage error taxonomy."""
    code = error_code(err)
    message = err.response.get("Error", {}).get("Message") or str(err)
    http_status = err.response.get("ResponseMetadata", {}).get("HTTPStatusCode", 0)

    if code in TRANSIENT_ERROR_CODES or http_status >= 500:
        return StorageUnavailable(f"{resource} unavailable ({code}): {message}", resource)
    if code in CONFLICT_ERROR_CODES:
        return ResourceConflict(f"{resource} conflict ({code}): {message}", resource)
    if code in NOT_FOUND_ERROR_CODES:
        return NotFound(f"{resource} not found ({code})", resource)
    if code in INVALID_INPUT_ERROR_CODES:
        return InvalidInput(f"{resource} rejected the request ({code}): {message}", resource)
    return StorageError(f"{resource} request failed ({code}): {message}", resource)


@contextmanager
def translate_client_errors(resource: str) -> Iterator[None]:
    """Re-raise botocore failures inside the block as ``StorageError`` subclasses."""
    try:
        yield
    except ClientError as e:
        raise classify_client_error(e, resource) from e
    except (BotoConnectionError, HTTPClientError) as e:
        raise StorageUnavailable(f"{resource} unreachable: {e}", resource) from e
    except NoCredentialsError as e:
        raise InvalidInput(f"No credentials available for {resource}", resource) from e
