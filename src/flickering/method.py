"""
Invocation of a single Flickr API method.

A Method is built by the client without any I/O. Executing it checks the
shared cache, calls Flickr on a miss and wraps the payload in Results.
"""

import hashlib
import json
import logging
from typing import TYPE_CHECKING, Any, Dict, Mapping, Optional

from .errors import FlickeringError, MissingCredentialsError, classify_error
from .results import Results

if TYPE_CHECKING:
    from .client import Flickering

logger = logging.getLogger(__name__)

METHOD_PREFIX = "flickr."


class Method:
    """A pending or completed call to one API method."""

    def __init__(
        self,
        client: "Flickering",
        method: str,
        parameters: Optional[Mapping[str, Any]] = None
    ):
        self._client = client
        self._method = method if method.startswith(METHOD_PREFIX) else METHOD_PREFIX + method
        self._parameters: Dict[str, Any] = dict(parameters or {})
        self._results: Optional[Results] = None

    @property
    def client(self) -> "Flickering":
        return self._client

    @property
    def method(self) -> str:
        return self._method

    @property
    def parameters(self) -> Dict[str, Any]:
        return dict(self._parameters)

    @property
    def executed(self) -> bool:
        return self._results is not None

    def get_request_parameters(self) -> Dict[str, str]:
        """Build the query string sent to the API."""
        query = {
            key: self._format_value(value)
            for key, value in self._parameters.items()
            if value is not None
        }
        query.update({
            "method": self._method,
            "api_key": self._client.get_api_key() or "",
            "format": "json",
            "nojsoncallback": "1",
        })
        return query

    def get_cache_key(self) -> str:
        """Stable key for this method and its parameters, credentials excluded."""
        parameters = {
            key: self._format_value(value)
            for key, value in self._parameters.items()
            if value is not None
        }
        serialized = json.dumps([self._method, parameters], sort_keys=True)
        return "flickering." + hashlib.sha1(serialized.encode("utf-8")).hexdigest()

    def get_results(self) -> Results:
        """Execute the call, or return the results of a previous execution.

        Raises:
            MissingCredentialsError: If the client has no API key
            FlickeringError: For transport, API or cache failures
        """
        if self._results is not None:
            return self._results

        if not self._client.get_api_key():
            raise MissingCredentialsError(
                f"Cannot call {self._method} without an API key", credential="api_key"
            )

        cache = self._client.get_cache()
        lifetime = self._client.get_dependency("settings").cache_lifetime
        cache_key = self.get_cache_key()

        fetched = False

        def fetch() -> Dict[str, Any]:
            nonlocal fetched
            fetched = True
            logger.debug(f"Calling {self._method}")
            return self._client.get_request().get(self.get_request_parameters())

        try:
            if lifetime > 0:
                payload = cache.remember(cache_key, lifetime, fetch)
            else:
                payload = fetch()
        except FlickeringError:
            raise
        except Exception as e:
            error = classify_error(e)
            logger.error(f"Failed to run {self._method}: {error}")
            raise error from e

        self._results = Results.from_payload(self._method, payload, cached=not fetched)
        return self._results

    @staticmethod
    def _format_value(value: Any) -> str:
        if isinstance(value, bool):
            return "1" if value else "0"
        if isinstance(value, (set, frozenset)):
            value = sorted(value, key=str)
        if isinstance(value, (list, tuple)):
            return ",".join(str(item) for item in value)
        return str(value)

    def __repr__(self) -> str:
        return f"Method({self._method!r}, {self._parameters!r})"
