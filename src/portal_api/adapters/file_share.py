"""
File shares on a mounted network filesystem (EFS, NFS or SMB).

A share is a directory directly under the mount root. Files are created at
their declared length first and filled in a second step, the same two-step
protocol as an SMB/REST file share. Nothing here is retried.
"""

import logging
import os
from pathlib import Path
from typing import BinaryIO, Optional

from fastapi.concurrency import run_in_threadpool

from portal_api.adapters.uploads import measure_stream, sanitize_file_name, validate_folder_name
from portal_api.errors import InvalidInput, StorageUnavailable

logger = logging.getLogger(__name__)

COPY_CHUNK_SIZE = 1024 * 1024


class FileShare:
    """One share (top-level directory) on the mounted filesystem."""

    def __init__(self, mount_root: Path, share_name: str):
        self.mount_root = Path(mount_root)
        self.share_name = share_name
        self.root = self.mount_root / share_name

    def ensure_exists(self) -> None:
        """Create the share directory if it is missing."""
        try:
            self.root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageUnavailable(f"File share {self.root} unavailable: {e}", self.share_name) from e
        logger.info(f"File share ready at {self.root}")

    async def upload(self, file_name: str, stream: BinaryIO,
                     directory: Optional[str] = None) -> str:
        """
        Store ``stream`` as ``file_name``, optionally inside ``directory``.

        Returns the path relative to the share root. If the content step fails
        the file stays behind at its declared length.
        """
        safe_name = sanitize_file_name(file_name)
        safe_directory = validate_folder_name(directory) if directory and directory.strip() else None
        length = measure_stream(stream)
        return await run_in_threadpool(self._upload_sync, safe_name, stream, length, safe_directory)

    def _upload_sync(self, file_name: str, stream: BinaryIO, length: int,
                     directory: Optional[str]) -> str:
        parent = self.root / directory if directory else self.root
        target = parent / file_name
        try:
            if directory:
                parent.mkdir(exist_ok=True)
            self._create(target, length)
            written = self._write(target, stream, length)
        except OSError as e:
            raise StorageUnavailable(f"File share write to {target} failed: {e}", self.share_name) from e

        if written != length:
            raise InvalidInput(
                f"Declared length {length} for {file_name} but the stream held {written} bytes"
            )
        relative = target.relative_to(self.root).as_posix()
        logger.info(f"Uploaded {relative} ({length} bytes) to share {self.share_name}")
        return relative

    @staticmethod
    def _create(target: Path, length: int) -> None:
        with open(target, "wb") as fh:
            fh.truncate(length)

    @staticmethod
    def _write(target: Path, stream: BinaryIO, length: int) -> int:
        """Copy at most ``length`` bytes; one byte past it is read to detect overruns."""
        written = 0
        with open(target, "r+b") as fh:
            while written < length:
                chunk = stream.read(min(COPY_CHUNK_SIZE, length - written))
                if not chunk:
                    break
                fh.write(chunk)
                written += len(chunk)
            if written == length and stream.read(1):
                written += 1
            fh.flush()
            os.fsync(fh.fileno())
        return written
