"""
Persisted key-value store (browser localStorage equivalent).

Rules:
- values are strings; callers serialize their own JSON
- atomic write: temp → fsync → rename, original kept on failure
- file lock around read-modify-write; across processes the last write wins
- corrupt file → warning + treated as empty (no external recovery path)
- optional quota: an oversize write raises StorageError, file untouched
"""

import json
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from collections.abc import Generator
from contextlib import contextmanager
from pathlib import Path

from filelock import FileLock, Timeout

from ipsqr.domain.errors import ErrorCodes, StorageError

logger = logging.getLogger(__name__)


class KeyValueStore(ABC):
    """String key → string value store."""

    @abstractmethod
    def get_item(self, key: str) -> str | None:
        """Value or None if absent."""

    @abstractmethod
    def set_item(self, key: str, value: str) -> None:
        """
        Store value under key.

        Raises:
            StorageError: STORAGE_QUOTA_EXCEEDED, STORAGE_WRITE_FAILED
        """

    @abstractmethod
    def remove_item(self, key: str) -> None:
        """Remove key (no-op if absent)."""

    @abstractmethod
    def keys(self) -> list[str]:
        """All stored keys."""

    def clear(self) -> None:
        for key in self.keys():
            self.remove_item(key)


# =============================================================================
# In-memory store
# =============================================================================

class MemoryStore(KeyValueStore):
    """Non-persistent store for ephemeral sessions and tests."""

    def __init__(self, quota_bytes: int | None = None):
        self._items: dict[str, str] = {}
        self.quota_bytes = quota_bytes

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        candidate = {**self._items, key: value}
        _check_quota(_serialize(candidate), self.quota_bytes, key)
        self._items = candidate

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._items)


# =============================================================================
# JSON file store
# =============================================================================

class JsonFileStore(KeyValueStore):
    """
    Single JSON document on disk: {key: value, ...}.

    Usage:
        store = JsonFileStore(Path("data/store.json"), quota_bytes=5 * 1024 * 1024)
        store.set_item("nbs_language", "en")
    """

    # lock timeout (seconds)
    LOCK_TIMEOUT = 10.0

    def __init__(self, path: Path, quota_bytes: int | None = None):
        """
        Args:
            path: store file path (parent created on first write)
            quota_bytes: max serialized size (None = unlimited)
        """
        self.path = Path(path)
        self.quota_bytes = quota_bytes
        self._lock_path = self.path.with_name(self.path.name + ".lock")

    @contextmanager
    def _store_lock(self) -> Generator[None, None, None]:
        """
        Acquire the store file lock.

        Raises:
            StorageError: STORAGE_LOCK_TIMEOUT
        """
        self.path.parent.mkdir(parents=True, exist_ok=True)
        lock = FileLock(self._lock_path, timeout=self.LOCK_TIMEOUT)

        try:
            lock.acquire()
        except Timeout as e:
            raise StorageError(
                ErrorCodes.STORAGE_LOCK_TIMEOUT,
                f"Failed to acquire lock for store '{self.path}'",
                timeout=self.LOCK_TIMEOUT,
            ) from e

        try:
            yield
        finally:
            lock.release()

    # =========================================================================
    # KeyValueStore
    # =========================================================================

    def get_item(self, key: str) -> str | None:
        return self._read_all().get(key)

    def set_item(self, key: str, value: str) -> None:
        with self._store_lock():
            items = self._read_all()
            items[key] = value
            self._write_all(items, key)

    def remove_item(self, key: str) -> None:
        with self._store_lock():
            items = self._read_all()
            if key not in items:
                return
            del items[key]
            self._write_all(items, key)

    def keys(self) -> list[str]:
        return list(self._read_all())

    def clear(self) -> None:
        with self._store_lock():
            self._write_all({}, None)

    # =========================================================================
    # Internal Helpers
    # =========================================================================

    def _read_all(self) -> dict[str, str]:
        """Load the document; corrupt or non-object content reads as empty."""
        if not self.path.exists():
            return {}

        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.warning(f"Store file {self.path} unreadable, treating as empty: {e}")
            return {}

        if not isinstance(data, dict):
            logger.warning(
                f"Store file {self.path} is not a JSON object "
                f"({type(data).__name__}), treating as empty"
            )
            return {}

        return {str(k): v for k, v in data.items() if isinstance(v, str)}

    def _write_all(self, items: dict[str, str], key: str | None) -> None:
        serialized = _serialize(items)
        _check_quota(serialized, self.quota_bytes, key)

        try:
            _atomic_write_text(self.path, serialized)
        except OSError as e:
            logger.error(f"Failed to write store {self.path}: {e}")
            raise StorageError(
                ErrorCodes.STORAGE_WRITE_FAILED,
                f"Failed to write store: {e}",
                path=str(self.path),
            ) from e


def _serialize(items: dict[str, str]) -> str:
    return json.dumps(items, indent=2, ensure_ascii=False)


def _check_quota(serialized: str, quota_bytes: int | None, key: str | None) -> None:
    if quota_bytes is None:
        return

    size = len(serialized.encode("utf-8"))
    if size > quota_bytes:
        raise StorageError(
            ErrorCodes.STORAGE_QUOTA_EXCEEDED,
            "Storage quota exceeded",
            key=key,
            size=size,
            quota=quota_bytes,
        )


def _atomic_write_text(path: Path, text: str) -> None:
    """
    Atomic text write.

    - no intermediate state: temp → rename
    - fsync failure is logged, not raised
    - temp file removed on failure, original file kept
    """
    dir_path = path.parent
    dir_path.mkdir(parents=True, exist_ok=True)

    temp_path = None
    try:
        with tempfile.NamedTemporaryFile(
            mode="w",
            dir=dir_path,
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        ) as f:
            temp_path = Path(f.name)
            f.write(text)
            f.flush()
            try:
                os.fsync(f.fileno())
            except OSError as e:
                logger.warning(
                    f"File fsync failed for {path}: {e}. "
                    f"Data may not be durable on power loss."
                )

        os.replace(temp_path, path)

    except Exception:
        if temp_path and temp_path.exists():
            try:
                temp_path.unlink()
            except OSError:
                pass
        raise
