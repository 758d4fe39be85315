"""Filename sanitizing, blob naming and stream measurement shared by the upload paths."""
import os
import re
import uuid
from datetime import datetime, timezone
from typing import BinaryIO, Optional

from portal_api.errors import InvalidInput

_PATH_SEPARATORS = re.compile(r"[\\/]")


def sanitize_file_name(file_name: Optional[str]) -> str:
    """
    Return the last path component of ``file_name``.

    Both ``/`` and ``\\`` count as separators, so ``../../etc/passwd`` and
    ``C:\\Users\\me\\photo.png`` reduce to ``passwd`` and ``photo.png``.
    """
    if file_name is None:
        raise InvalidInput("A file name is required")
    name = _PATH_SEPARATORS.split(file_name)[-1].strip()
    if not name or name in (".", ".."):
        raise InvalidInput(f"Malformed file name: '{file_name}'")
    return name


def unique_blob_name(file_name: str, now: Optional[datetime] = None) -> str:
    """Build ``yyyy/MM/dd/<32 hex>-<sanitized file name>``."""
    now = now or datetime.now(timezone.utc)
    return f"{now:%Y/%m/%d}/{uuid.uuid4().hex}-{sanitize_file_name(file_name)}"


def measure_stream(stream: Optional[BinaryIO]) -> int:
    """
    Number of bytes between the current position and the end of ``stream``.

    The position is restored afterwards. Empty and unseekable streams are
    rejected because every upload path needs the length up front.
    """
    if stream is None:
        raise InvalidInput("No file content provided")
    try:
        start = stream.tell()
        end = stream.seek(0, os.SEEK_END)
        stream.seek(start)
    except (AttributeError, OSError, ValueError) as e:
        raise InvalidInput(f"File content must be a seekable stream: {e}") from e
    length = end - start
    if length <= 0:
        raise InvalidInput("File content is empty")
    return length


def validate_folder_name(folder_name: str) -> str:
    """
    Return ``folder_name`` stripped, or raise ``InvalidInput``.

    A folder is a single path component. ``acme/C42`` is rejected instead of
    being reduced to ``C42``, which would be a different folder.
    """
    name = folder_name.strip()
    if not name or name in (".", "..") or _PATH_SEPARATORS.search(name):
        raise InvalidInput(f"Malformed folder name: '{folder_name}'")
    return name
