"""File extension to MIME type lookup used by blob uploads."""
import os
from typing import Optional

DEFAULT_CONTENT_TYPE = "application/octet-stream"

CONTENT_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".webp": "image/webp",
    ".svg": "image/svg+xml",
    ".pdf": "application/pdf",
    ".txt": "text/plain",
    ".json": "application/json",
}


def resolve_content_type(file_name: str, fallback: Optional[str] = None) -> str:
    """Look up the extension (case-insensitive); unknown ones get ``fallback`` or octet-stream."""
    _, extension = os.path.splitext(file_name or "")
    return CONTENT_TYPES.get(extension.lower()) or fallback or DEFAULT_CONTENT_TYPE
