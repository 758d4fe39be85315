"""Parsing of the single storage connection string."""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from portal_api.errors import InvalidInput

DEFAULT_REGION = "us-east-1"
DEFAULT_FILE_SHARE_ROOT = "storage/shares"

# lower-cased connection string key -> StorageConnection field
_KNOWN_KEYS = {
    "endpoint": "endpoint_url",
    "region": "region",
    "accesskeyid": "access_key_id",
    "secretaccesskey": "secret_access_key",
    "fileshareroot": "file_share_root",
}


@dataclass(frozen=True)
class StorageConnection:
    """Everything the gateway needs to reach the four storage kinds."""

    endpoint_url: Optional[str] = None
    region: str = DEFAULT_REGION
    access_key_id: Optional[str] = None
    secret_access_key: Optional[str] = None
    file_share_root: Path = Path(DEFAULT_FILE_SHARE_ROOT)

    def client_kwargs(self) -> Dict[str, Any]:
        """Keyword arguments shared by every boto3 client and resource."""
        kwargs: Dict[str, Any] = {"region_name": self.region}
        if self.endpoint_url:
            kwargs["endpoint_url"] = self.endpoint_url
        if self.access_key_id:
            kwargs["aws_access_key_id"] = self.access_key_id
        if self.secret_access_key:
            kwargs["aws_secret_access_key"] = self.secret_access_key
        return kwargs

    def describe(self) -> Dict[str, str]:
        """Printable view with the secret masked."""
        return {
            "Endpoint": self.endpoint_url or "(AWS default)",
            "Region": self.region,
            "AccessKeyId": self.access_key_id or "(default credential chain)",
            "SecretAccessKey": "****" if self.secret_access_key else "(default credential chain)",
            "FileShareRoot": str(self.file_share_root),
        }


def parse_connection_string(connection_string: str) -> StorageConnection:
    """
    Parse ``Key=Value;Key=Value`` pairs into a ``StorageConnection``.

    Keys are case-insensitive, empty segments are ignored and values may
    themselves contain ``=``. Unknown keys are rejected so a typo cannot
    silently fall back to a default.
    """
    if connection_string is None or not connection_string.strip():
        raise InvalidInput("Storage connection string is empty")

    values: Dict[str, Any] = {}
    for segment in connection_string.split(";"):
        segment = segment.strip()
        if not segment:
            continue
        key, sep, value = segment.partition("=")
        if not sep or not key.strip():
            raise InvalidInput(f"Malformed connection string segment: '{segment}'")
        field = _KNOWN_KEYS.get(key.strip().lower())
        if field is None:
            raise InvalidInput(f"Unknown connection string key: '{key.strip()}'")
        values[field] = value.strip()

    if "file_share_root" in values:
        values["file_share_root"] = Path(values["file_share_root"])
    if not values.get("region"):
        values.pop("region", None)

    return StorageConnection(**values)
