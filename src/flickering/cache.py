"""
File-backed cache store for Flickering.

Each entry is one file under the cache directory. The path is derived from
the SHA-1 of the key (``ab/cd/abcd...``) and the contents are a ten-digit
expiry timestamp followed by the JSON-encoded value.
"""

import hashlib
import json
import logging
import time
from pathlib import Path
from typing import Any, Callable, Optional

from .filesystem import Filesystem

logger = logging.getLogger(__name__)

FOREVER = 9999999999


class FileStore:
    """Key/value cache persisted in a directory."""

    def __init__(self, filesystem: Filesystem, directory: Path):
        """Initialize the store and make sure its directory exists.

        Raises:
            OSError: If the cache directory cannot be created
        """
        self.filesystem = filesystem
        self.directory = Path(directory)
        self.filesystem.make_directory(self.directory)

    def get(self, key: str, default: Any = None) -> Any:
        """Retrieve a value, or ``default`` if it is missing or expired."""
        payload = self._read(key)
        if payload is None:
            return default
        return payload[0]

    def has(self, key: str) -> bool:
        return self._read(key) is not None

    def put(self, key: str, value: Any, minutes: float) -> None:
        """Store a value for a number of minutes."""
        if minutes <= 0:
            return
        self._write(key, value, int(time.time() + minutes * 60))

    def forever(self, key: str, value: Any) -> None:
        self._write(key, value, FOREVER)

    def forget(self, key: str) -> bool:
        return self.filesystem.delete(self._path(key))

    def flush(self) -> None:
        """Remove every entry."""
        self.filesystem.clean_directory(self.directory)
        logger.debug(f"Flushed cache directory {self.directory}")

    def remember(self, key: str, minutes: float, callback: Callable[[], Any]) -> Any:
        """Get a value, computing and storing it with ``callback`` on a miss."""
        payload = self._read(key)
        if payload is not None:
            logger.debug(f"Cache hit for {key}")
            return payload[0]

        value = callback()
        self.put(key, value, minutes)
        return value

    def _read(self, key: str) -> Optional[tuple]:
        """Return ``(value,)`` for a live entry, None otherwise."""
        path = self._path(key)
        try:
            contents = self.filesystem.get(path)
            expiration = int(contents[:10])
            value = json.loads(contents[10:])
        except FileNotFoundError:
            return None
        except ValueError:
            # UnicodeDecodeError included
            logger.warning(f"Discarding unreadable cache entry {path}")
            self.filesystem.delete(path)
            return None

        if time.time() >= expiration:
            self.filesystem.delete(path)
            return None

        return (value,)

    def _write(self, key: str, value: Any, expiration: int) -> None:
        contents = f"{expiration:010d}" + json.dumps(value, separators=(",", ":"))
        self.filesystem.put(self._path(key), contents)

    def _path(self, key: str) -> Path:
        digest = hashlib.sha1(key.encode("utf-8")).hexdigest()
        return self.directory / digest[0:2] / digest[2:4] / digest
