"""
Filesystem access service for Flickering.

The configuration loader and the cache store never touch ``os`` or
``pathlib`` directly; they go through this service so a test can swap it
for an instrumented or in-memory variant.
"""

import os
import shutil
import tempfile
import logging
from pathlib import Path
from typing import List, Union

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


class Filesystem:
    """Thin wrapper over local file operations."""

    def exists(self, path: PathLike) -> bool:
        return Path(path).exists()

    def is_file(self, path: PathLike) -> bool:
        return Path(path).is_file()

    def is_directory(self, path: PathLike) -> bool:
        return Path(path).is_dir()

    def get(self, path: PathLike, encoding: str = "utf-8") -> str:
        """Read the contents of a file.

        Raises:
            FileNotFoundError: If the path is not an existing file
        """
        path = Path(path)
        if not path.is_file():
            raise FileNotFoundError(f"File does not exist at path {path}")
        return path.read_text(encoding=encoding)

    def put(self, path: PathLike, contents: str, encoding: str = "utf-8") -> int:
        """Write contents to a file atomically.

        The data goes to a temporary file in the same directory which then
        replaces the target, so readers never see a partial write.

        Returns:
            Number of bytes written
        """
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        temp_file = tempfile.NamedTemporaryFile(
            mode="w",
            encoding=encoding,
            dir=path.parent,
            delete=False,
            prefix=f".{path.name}.tmp"
        )
        try:
            try:
                temp_file.write(contents)
                temp_file.flush()
                os.fsync(temp_file.fileno())
            finally:
                temp_file.close()
            os.replace(temp_file.name, path)
        except OSError:
            if os.path.exists(temp_file.name):
                os.unlink(temp_file.name)
            raise

        return len(contents.encode(encoding))

    def delete(self, path: PathLike) -> bool:
        """Delete a file.

        Returns:
            True if a file was removed, False if there was nothing to remove
        """
        try:
            Path(path).unlink()
        except FileNotFoundError:
            return False
        return True

    def make_directory(self, path: PathLike, exist_ok: bool = True) -> Path:
        path = Path(path)
        path.mkdir(parents=True, exist_ok=exist_ok)
        return path

    def files(self, directory: PathLike) -> List[Path]:
        """List the files directly inside a directory, sorted by name."""
        directory = Path(directory)
        if not directory.is_dir():
            return []
        return sorted(p for p in directory.iterdir() if p.is_file())

    def all_files(self, directory: PathLike) -> List[Path]:
        """List every file below a directory, sorted by path."""
        directory = Path(directory)
        if not directory.is_dir():
            return []
        return sorted(p for p in directory.rglob("*") if p.is_file())

    def clean_directory(self, directory: PathLike) -> bool:
        """Remove everything inside a directory, keeping the directory.

        Returns:
            False if the directory does not exist
        """
        directory = Path(directory)
        if not directory.is_dir():
            return False

        for entry in directory.iterdir():
            if entry.is_dir() and not entry.is_symlink():
                shutil.rmtree(entry)
            else:
                entry.unlink()

        logger.debug(f"Cleaned directory {directory}")
        return True
