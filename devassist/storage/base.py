"""
Base storage class for file-based JSON storage.
"""
from abc import ABC, abstractmethod
from typing import TypeVar, Generic, Optional, List
from pathlib import Path
import json
import fcntl
from contextlib import contextmanager

from devassist.utils.custom_exceptions import StoreUnavailableError
from devassist.utils.logging_utils import logger

T = TypeVar('T')

class BaseStorage(ABC, Generic[T]):
    """
    Abstract base class for file-based storage with locking.

    The public interface is asynchronous; implementations run the blocking
    helpers below in a worker thread.
    """

    def __init__(self, base_path: Path):
        self.base_path = base_path
        try:
            self.base_path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StoreUnavailableError(f"Cannot create storage directory {base_path}: {e}") from e

    @contextmanager
    def _file_lock(self, filepath: Path, mode: str = 'r'):
        """Context manager for file locking to handle concurrent access."""
        filepath.parent.mkdir(parents=True, exist_ok=True)

        with open(filepath, mode) as f:
            try:
                fcntl.flock(f.fileno(), fcntl.LOCK_EX)
                yield f
            finally:
                fcntl.flock(f.fileno(), fcntl.LOCK_UN)

    def _lock_path(self, filepath: Path) -> Path:
        return filepath.with_suffix('.lock')

    def _read_json(self, filepath: Path) -> Optional[dict]:
        """Read JSON file with locking. Missing files read as None."""
        if not filepath.exists():
            return None
        try:
            with self._file_lock(self._lock_path(filepath), 'a'):
                with open(filepath, 'r', encoding='utf-8') as f:
                    return json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            logger.error(f"Error reading {filepath}: {e}")
            raise StoreUnavailableError(f"Cannot read {filepath.name}: {e}") from e

    def _write_json(self, filepath: Path, data: dict) -> None:
        """Write JSON file with locking and atomic write."""
        temp_path = filepath.with_suffix('.tmp')
        try:
            with self._file_lock(self._lock_path(filepath), 'a'):
                # Write to temp file first, then rename for atomicity
                with open(temp_path, 'w', encoding='utf-8') as f:
                    json.dump(data, f, indent=2, ensure_ascii=False)
                temp_path.replace(filepath)
        except OSError as e:
            # Clean up temp file on error
            if temp_path.exists():
                temp_path.unlink()
            logger.error(f"Error writing {filepath}: {e}")
            raise StoreUnavailableError(f"Cannot write {filepath.name}: {e}") from e

    def _remove(self, filepath: Path) -> bool:
        try:
            with self._file_lock(self._lock_path(filepath), 'a'):
                if not filepath.exists():
                    return False
                filepath.unlink()
            self._lock_path(filepath).unlink(missing_ok=True)
            return True
        except OSError as e:
            logger.error(f"Error deleting {filepath}: {e}")
            raise StoreUnavailableError(f"Cannot delete {filepath.name}: {e}") from e

    @abstractmethod
    async def get(self, id: str) -> Optional[T]:
        """Get a single entity by ID."""
        pass

    @abstractmethod
    async def list(self) -> List[T]:
        """List all entities."""
        pass

    @abstractmethod
    async def save(self, entity: T) -> None:
        """Insert or fully replace an entity."""
        pass

    @abstractmethod
    async def delete(self, id: str) -> None:
        """Delete an entity. Deleting a missing entity is not an error."""
        pass
