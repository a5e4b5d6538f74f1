"""
JSON File Storage Implementation

DESIGN DECISION: A single JSON file on disk plays the role browser
local storage played for the web version: a flat map of keys to
string payloads.

TRADEOFFS:
- The whole file is rewritten on every set (fine for personal use)
- No locking; one process owns the file

Writes go to a temporary file in the same directory and are moved
into place with os.replace, so a crash mid-write leaves the previous
file intact.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Optional, Union

import structlog
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from finsnap.services.storage.interface import (
    DocumentStorageInterface,
    StorageError,
)


logger = structlog.get_logger(__name__)


class JsonFileStorage(DocumentStorageInterface):
    """
    File-backed key/value storage.

    The file holds one JSON object: {key: serialized_value}.
    """

    def __init__(self, path: Union[str, Path]):
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def _read_all(self) -> dict[str, str]:
        if not self._path.exists():
            return {}
        try:
            raw = self._path.read_text(encoding="utf-8")
        except OSError as e:
            raise StorageError(f"Failed to read {self._path}: {e}")

        if not raw.strip():
            return {}
        try:
            values = json.loads(raw)
        except json.JSONDecodeError as e:
            raise StorageError(f"Storage file {self._path} is not valid JSON: {e}")
        if not isinstance(values, dict):
            raise StorageError(f"Storage file {self._path} does not hold a JSON object")
        return values

    @retry(
        retry=retry_if_exception_type(OSError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.1, min=0.1, max=1),
        reraise=True,
    )
    def _write_all(self, values: dict[str, str]) -> None:
        """Atomically replace the storage file."""
        directory = self._path.parent
        directory.mkdir(parents=True, exist_ok=True)

        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self._path.name}.",
            suffix=".tmp",
            dir=directory,
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(values, handle)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_name, self._path)
        except OSError:
            # Leave no stray temp file behind before retrying
            try:
                os.unlink(tmp_name)
            except FileNotFoundError:
                pass
            raise

    def get(self, key: str) -> Optional[str]:
        value = self._read_all().get(key)
        if value is not None and not isinstance(value, str):
            # Older files may hold the document inline rather than as a string
            return json.dumps(value)
        return value

    def set(self, key: str, value: str) -> None:
        values = self._read_all()
        values[key] = value
        try:
            self._write_all(values)
        except OSError as e:
            logger.error("storage_write_failed", path=str(self._path), error=str(e))
            raise StorageError(f"Failed to write {self._path}: {e}")

    def delete(self, key: str) -> None:
        values = self._read_all()
        if key not in values:
            return
        del values[key]
        try:
            self._write_all(values)
        except OSError as e:
            raise StorageError(f"Failed to write {self._path}: {e}")
