"""
Configuration file loader for Flickering.

Configuration is organised in groups: the group ``config`` lives in
``<root>/config.json``. Files are JSON with comments. An environment can
override a group with ``<root>/<environment>/<group>.json``, which is
deep-merged over the base file.
"""

import os
import re
import logging
import threading
from pathlib import Path
from typing import Any, Dict, Optional

import commentjson
from dotenv import dotenv_values

from ..errors import ConfigurationError
from ..filesystem import Filesystem

logger = logging.getLogger(__name__)

ENV_VAR_PATTERN = re.compile(r'\$(?:(\w+)|\{([^}]+)\})')


class FileLoader:
    """Loads configuration groups from a fixed root directory."""

    FILE_EXTENSION = ".json"
    ENV_FILE_NAME = ".env"

    def __init__(self, filesystem: Filesystem, root_dir: Path):
        """Initialize the loader.

        Args:
            filesystem: Filesystem service used for every read
            root_dir: Directory holding the group files
        """
        self.filesystem = filesystem
        self.root_dir = Path(root_dir)
        self.load_count = 0
        self._dotenv: Optional[Dict[str, Optional[str]]] = None
        self._lock = threading.Lock()

    def load(self, group: str, environment: Optional[str] = None) -> Dict[str, Any]:
        """Load a configuration group.

        Args:
            group: Group name, e.g. ``config``
            environment: Optional environment whose overrides are merged in

        Returns:
            The group's settings; an empty dict when no file exists

        Raises:
            ConfigurationError: If a file exists but cannot be parsed
        """
        with self._lock:
            self.load_count += 1

        items = self._load_file(self._group_path(group))

        if environment:
            env_path = self._group_path(group, environment)
            if self.filesystem.is_file(env_path):
                items = self._deep_merge(items, self._load_file(env_path))
                logger.debug(f"Merged {environment} overrides for group '{group}'")

        return self._resolve_env_vars(items)

    def exists(self, group: str) -> bool:
        """Check whether the base file of a group exists."""
        return self.filesystem.is_file(self._group_path(group))

    def _group_path(self, group: str, environment: Optional[str] = None) -> Path:
        filename = f"{group}{self.FILE_EXTENSION}"
        if environment:
            return self.root_dir / environment / filename
        return self.root_dir / filename

    def _load_file(self, file_path: Path) -> Dict[str, Any]:
        """Parse one JSON-with-comments file."""
        if not self.filesystem.is_file(file_path):
            logger.debug(f"Configuration file not found: {file_path}")
            return {}

        try:
            parsed = commentjson.loads(self.filesystem.get(file_path))
        except Exception as e:
            error_msg = f"Invalid JSON in {file_path}: {e}"
            logger.error(error_msg)
            raise ConfigurationError(error_msg, original_error=e) from e

        if parsed is None:
            return {}
        if not isinstance(parsed, dict):
            raise ConfigurationError(
                f"Configuration file {file_path} must contain an object, got {type(parsed).__name__}"
            )

        logger.debug(f"Loaded configuration file: {file_path}")
        return parsed

    def _resolve_env_vars(self, obj: Any) -> Any:
        """Resolve $VAR_NAME and ${VAR_NAME} references in string values."""
        if isinstance(obj, str):
            return ENV_VAR_PATTERN.sub(self._replace_env_var, obj)
        elif isinstance(obj, dict):
            return {key: self._resolve_env_vars(value) for key, value in obj.items()}
        elif isinstance(obj, list):
            return [self._resolve_env_vars(item) for item in obj]
        else:
            return obj

    def _replace_env_var(self, match: re.Match) -> str:
        var_name = match.group(1) or match.group(2)
        value = os.environ.get(var_name)
        if value is None:
            value = self._get_dotenv().get(var_name)
        if value is None:
            logger.warning(f"Environment variable not found: {var_name}")
            return match.group(0)
        return value

    def _get_dotenv(self) -> Dict[str, Optional[str]]:
        """Variables from ``<root>/.env``, read once."""
        if self._dotenv is None:
            env_file = self.root_dir / self.ENV_FILE_NAME
            if self.filesystem.is_file(env_file):
                self._dotenv = dict(dotenv_values(env_file))
            else:
                self._dotenv = {}
        return self._dotenv

    def _deep_merge(self, base: Dict[str, Any], overlay: Dict[str, Any]) -> Dict[str, Any]:
        result = base.copy()

        for key, value in overlay.items():
            if (key in result
                    and isinstance(result[key], dict)
                    and isinstance(value, dict)):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value

        return result
