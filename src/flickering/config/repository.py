"""
Read-only configuration repository for Flickering.

A repository is scoped to one configuration group and answers dotted keys
such as ``config.api_key`` or ``config.cache.lifetime``. Missing keys are
never errors: they resolve to the caller's default.
"""

import logging
import threading
from typing import Any, Dict, List, Optional, Tuple, Union

from ..errors import ConfigurationError
from .loader import FileLoader

logger = logging.getLogger(__name__)

ConfigValue = Union[str, int, float, bool, List[Any], Dict[str, Any], None]

_MISSING = object()


class Repository:
    """Configuration values of a single group, loaded once on first use."""

    def __init__(
        self,
        loader: FileLoader,
        group: str = "config",
        environment: Optional[str] = None
    ):
        self.loader = loader
        self.group = group
        self.environment = environment
        self._items: Optional[Dict[str, Any]] = None
        self._lock = threading.Lock()

    def get(self, key: str, default: ConfigValue = None) -> ConfigValue:
        """Get a value by dotted key, or ``default`` when it is absent."""
        value = self._lookup(key)
        if value is _MISSING:
            return default
        return value

    def has(self, key: str) -> bool:
        return self._lookup(key) is not _MISSING

    def all(self) -> Dict[str, Any]:
        """Copy of every value in the group."""
        return dict(self._load())

    def get_string(self, key: str, default: Optional[str] = None) -> Optional[str]:
        return self._get_typed(key, default, (str,), "string")

    def get_int(self, key: str, default: Optional[int] = None) -> Optional[int]:
        value = self._get_typed(key, default, (int,), "integer")
        if isinstance(value, bool):
            raise ConfigurationError(f"Configuration value '{key}' is not an integer", config_key=key)
        return value

    def get_float(self, key: str, default: Optional[float] = None) -> Optional[float]:
        value = self._get_typed(key, default, (int, float), "number")
        if isinstance(value, bool):
            raise ConfigurationError(f"Configuration value '{key}' is not a number", config_key=key)
        return float(value) if value is not None else None

    def get_bool(self, key: str, default: Optional[bool] = None) -> Optional[bool]:
        return self._get_typed(key, default, (bool,), "boolean")

    def get_mapping(self, key: str, default: Optional[Dict[str, Any]] = None) -> Optional[Dict[str, Any]]:
        return self._get_typed(key, default, (dict,), "mapping")

    def get_list(self, key: str, default: Optional[List[Any]] = None) -> Optional[List[Any]]:
        return self._get_typed(key, default, (list,), "list")

    def _get_typed(self, key: str, default: Any, types: Tuple[type, ...], label: str) -> Any:
        value = self._lookup(key)
        if value is _MISSING or value is None:
            return default
        if not isinstance(value, types):
            raise ConfigurationError(
                f"Configuration value '{key}' is not of type {label}: {type(value).__name__}",
                config_key=key
            )
        return value

    def _lookup(self, key: str) -> Any:
        group, _, item = key.partition(".")
        if group != self.group:
            return _MISSING

        current: Any = self._load()
        if not item:
            return dict(current)

        for segment in item.split("."):
            if not isinstance(current, dict) or segment not in current:
                return _MISSING
            current = current[segment]

        return current

    def _load(self) -> Dict[str, Any]:
        if self._items is None:
            with self._lock:
                if self._items is None:
                    self._items = self.loader.load(self.group, self.environment)
                    logger.debug(
                        f"Loaded configuration group '{self.group}' with {len(self._items)} keys"
                    )
        return self._items
