"""Durable token storage.

Provides the single-value token cell the session is built on, backed by a
pluggable key-value storage:

- FileStorage: JSON file with owner-only permissions and atomic writes
- MemoryStorage: process-local dict, used by tests and ephemeral sessions

A TokenStore created without a backend behaves as permanently logged out and
never raises.
"""

import json
import logging
from pathlib import Path
from typing import Dict, Optional, Protocol

logger = logging.getLogger(__name__)

TOKEN_KEY = "token"


class KeyValueStorage(Protocol):
    """Minimal durable key-value interface (modelled on browser storage)."""

    def get_item(self, key: str) -> Optional[str]: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...


class MemoryStorage:
    """In-memory key-value storage."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._items: Dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)


class FileStorage:
    """Key-value storage persisted as a JSON object on disk.

    The file is created with 0o600 permissions inside a 0o700 directory and
    every write goes through a temporary file followed by an atomic rename.
    """

    def __init__(self, path: Path):
        self.path = path

    def _read_all(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}

        with open(self.path, "r") as f:
            data = json.load(f)

        if not isinstance(data, dict):
            raise ValueError(f"Storage file {self.path} does not contain an object")
        return data

    def _atomic_write(self, data: Dict[str, str]) -> None:
        self.path.parent.mkdir(mode=0o700, parents=True, exist_ok=True)
        temp_path = self.path.with_suffix(".tmp")
        try:
            with open(temp_path, "w") as f:
                json.dump(data, f)
            temp_path.chmod(0o600)
            temp_path.replace(self.path)
        except OSError:
            if temp_path.exists():
                temp_path.unlink()
            raise

    def get_item(self, key: str) -> Optional[str]:
        value = self._read_all().get(key)
        return value if isinstance(value, str) else None

    def set_item(self, key: str, value: str) -> None:
        data = self._read_all()
        data[key] = value
        self._atomic_write(data)

    def remove_item(self, key: str) -> None:
        data = self._read_all()
        if key in data:
            del data[key]
            self._atomic_write(data)


class TokenStore:
    """Read/write/remove the bearer token under a fixed storage key.

    Backend failures are logged and swallowed: a store that cannot be read
    reports no token, and a store that cannot be written keeps its previous
    content.
    """

    def __init__(self, storage: Optional[KeyValueStorage] = None, key: str = TOKEN_KEY):
        self._storage = storage
        self._key = key

    @property
    def available(self) -> bool:
        return self._storage is not None

    def get(self) -> Optional[str]:
        if self._storage is None:
            return None
        try:
            return self._storage.get_item(self._key)
        except (OSError, ValueError) as e:
            logger.warning(f"Failed to read token from storage: {e}")
            return None

    def set(self, token: str) -> None:
        if self._storage is None:
            return
        try:
            self._storage.set_item(self._key, token)
        except (OSError, ValueError) as e:
            logger.warning(f"Failed to persist token: {e}")

    def remove(self) -> None:
        if self._storage is None:
            return
        try:
            self._storage.remove_item(self._key)
        except (OSError, ValueError) as e:
            logger.warning(f"Failed to remove token from storage: {e}")
