"""Key-value blob storage for cafepos."""

import copy
import fcntl
import json
import logging
import os
import tempfile
import threading
from contextlib import contextmanager
from decimal import InvalidOperation
from pathlib import Path
from typing import IO, Any, Callable, ContextManager, Iterator, Protocol, TypeVar

from . import config
from .errors import StorageReadError, StorageWriteError

logger = logging.getLogger(__name__)

LOCK_FILE = ".cafepos.lock"

T = TypeVar("T")

# Errors a model's from_dict raises on a malformed record
RECORD_ERRORS = (AttributeError, KeyError, TypeError, ValueError, InvalidOperation)


class _DirectoryLock:
    """Re-entrant in-process lock paired with an exclusive flock on a lock file."""

    def __init__(self, path: Path):
        self.path = path
        self._rlock = threading.RLock()
        self._depth = 0
        self._file: IO[str] | None = None

    @contextmanager
    def hold(self) -> Iterator[None]:
        with self._rlock:
            if self._depth == 0:
                self._file = open(self.path, "w")
                fcntl.flock(self._file.fileno(), fcntl.LOCK_EX)
            self._depth += 1
            try:
                yield
            finally:
                self._depth -= 1
                if self._depth == 0 and self._file is not None:
                    fcntl.flock(self._file.fileno(), fcntl.LOCK_UN)
                    self._file.close()
                    self._file = None


# One lock object per lock file, shared by every storage on that directory
_directory_locks: dict[Path, _DirectoryLock] = {}
_registry_lock = threading.Lock()


def _directory_lock(path: Path) -> _DirectoryLock:
    key = path.resolve()
    with _registry_lock:
        if key not in _directory_locks:
            _directory_locks[key] = _DirectoryLock(key)
        return _directory_locks[key]


class Storage(Protocol):
    """Protocol for blob stores backing the menu, pending and history lists.

    Implementations must give read-after-write consistency to a single
    caller and raise StorageReadError / StorageWriteError on failure.
    """

    def get(self, key: str) -> Any | None:
        """Return the decoded blob, or None if it doesn't exist."""
        ...

    def set(self, key: str, value: Any) -> None:
        """Replace the blob stored under key."""
        ...

    def delete(self, key: str) -> None:
        """Remove the blob; a missing blob is not an error."""
        ...

    def lock(self) -> ContextManager[None]:
        """Exclusive section for read-modify-write sequences."""
        ...


class JsonFileStorage:
    """Stores each key as a pretty-printed JSON file in a data directory."""

    def __init__(self, data_dir: Path | None = None):
        """
        Initialize JsonFileStorage.

        Args:
            data_dir: Override data directory (for testing).
        """
        self.data_dir = Path(data_dir) if data_dir is not None else config.data_dir()

    def _path(self, key: str) -> Path:
        return self.data_dir / f"{key}.json"

    def _ensure_dir(self) -> None:
        """Ensure data directory exists."""
        self.data_dir.mkdir(parents=True, exist_ok=True)

    @contextmanager
    def lock(self) -> Iterator[None]:
        """Acquire exclusive lock on the data directory for read-modify-write operations."""
        self._ensure_dir()
        with _directory_lock(self.data_dir / LOCK_FILE).hold():
            yield

    def exists(self, key: str) -> bool:
        return self._path(key).exists()

    def get(self, key: str) -> Any | None:
        """
        Load a blob.

        Returns:
            The decoded JSON value, or None if the blob doesn't exist.

        Raises:
            StorageReadError: If the file can't be read or isn't valid JSON.
        """
        path = self._path(key)
        if not path.exists():
            return None
        try:
            with open(path, "r", encoding="utf-8") as f:
                return json.load(f)
        except (OSError, ValueError) as e:
            raise StorageReadError(key, str(e)) from e

    def set(self, key: str, value: Any) -> None:
        """
        Save a blob atomically.

        Uses write-to-temp-then-rename, so a failed write leaves the
        previous blob untouched.

        Raises:
            StorageWriteError: If the blob can't be written.
        """
        try:
            self._ensure_dir()
            fd, temp_path = tempfile.mkstemp(
                dir=self.data_dir, prefix=f".{key}_", suffix=".tmp"
            )
        except OSError as e:
            logger.error("Could not write '%s': %s", key, e)
            raise StorageWriteError(key, str(e)) from e

        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(value, f, indent=2, ensure_ascii=False)
                f.write("\n")
            os.replace(temp_path, self._path(key))
        except (OSError, TypeError, ValueError) as e:
            try:
                os.unlink(temp_path)
            except OSError:
                pass
            logger.error("Could not write '%s': %s", key, e)
            raise StorageWriteError(key, str(e)) from e

    def delete(self, key: str) -> None:
        """
        Remove a blob. Missing blobs are ignored.

        Raises:
            StorageWriteError: If the file exists but can't be removed.
        """
        try:
            self._path(key).unlink(missing_ok=True)
        except OSError as e:
            logger.error("Could not delete '%s': %s", key, e)
            raise StorageWriteError(key, str(e)) from e


class MemoryStorage:
    """In-process storage with the same interface as JsonFileStorage.

    Values go through a JSON round-trip on the way in and a deep copy on the
    way out, so callers never share references with the stored state.
    """

    def __init__(self, initial: dict[str, Any] | None = None):
        self._blobs: dict[str, Any] = {}
        self._lock = threading.RLock()
        for key, value in (initial or {}).items():
            self.set(key, value)

    @contextmanager
    def lock(self) -> Iterator[None]:
        with self._lock:
            yield

    def exists(self, key: str) -> bool:
        return key in self._blobs

    def get(self, key: str) -> Any | None:
        if key not in self._blobs:
            return None
        return copy.deepcopy(self._blobs[key])

    def set(self, key: str, value: Any) -> None:
        try:
            self._blobs[key] = json.loads(json.dumps(value))
        except (TypeError, ValueError) as e:
            raise StorageWriteError(key, str(e)) from e

    def delete(self, key: str) -> None:
        self._blobs.pop(key, None)


def load_list(storage: Storage, key: str) -> list[Any]:
    """
    Load a blob that holds a list of records.

    Returns:
        The stored list, or an empty list if the blob doesn't exist.

    Raises:
        StorageReadError: If the blob can't be read or isn't a JSON array.
    """
    data = storage.get(key)
    if data is None:
        return []
    if not isinstance(data, list):
        raise StorageReadError(key, f"expected a JSON array, got {type(data).__name__}")
    return data


def decode_records(key: str, records: list[Any], from_dict: Callable[[Any], T]) -> list[T]:
    """
    Decode stored records, skipping the ones that can't be decoded.

    A skipped record is logged and left out of the result, so one corrupt
    entry never hides the rest of the list. The next write of the list
    drops it.
    """
    decoded = []
    for index, record in enumerate(records):
        try:
            decoded.append(from_dict(record))
        except RECORD_ERRORS as e:
            logger.warning("Skipping malformed record %d in '%s': %r", index, key, e)
    return decoded
