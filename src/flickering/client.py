"""
Flickr API client facade.

The client resolves its credentials, builds Method invocations and hands
out the shared services (configuration, cache, request) it gets from the
service container.
"""

import logging
from typing import Any, Mapping, Optional

from .cache import FileStore
from .config.repository import ConfigValue, Repository
from .container import ServiceContainer, get_container
from .method import Method
from .request import Request
from .results import Results

logger = logging.getLogger(__name__)


class Flickering:
    """Entry point for calling the Flickr API.

    Example:
        >>> flickr = Flickering()
        >>> photos = flickr.get_results_of("photos.search", {"text": "otters"})
        >>> photos.get("photos.total")

    Credentials not given explicitly are read from the ``config`` group
    (``api_key`` and ``api_secret``). Missing credentials are not an error
    here; executing a Method without an API key raises
    MissingCredentialsError.
    """

    def __init__(
        self,
        key: Optional[str] = None,
        secret: Optional[str] = None,
        container: Optional[ServiceContainer] = None
    ):
        """Set up an instance of the API.

        Args:
            key: The API key
            secret: The API secret key
            container: Service container; the process-wide one when omitted
        """
        self._container = container
        self._key: Optional[str] = key or self.get_option("api_key")
        self._secret: Optional[str] = secret or self.get_option("api_secret")

        if not self._key:
            logger.debug("No API key resolved; calls will fail until one is configured")

    def call_method(self, method: str, parameters: Optional[Mapping[str, Any]] = None) -> Method:
        """Call a method on the API.

        Args:
            method: The method name
            parameters: Its parameters

        Returns:
            An unexecuted Method
        """
        return Method(self, method, parameters)

    def get_results_of(self, method: str, parameters: Optional[Mapping[str, Any]] = None) -> Results:
        """Directly get the results of a method."""
        return self.call_method(method, parameters).get_results()

    # Credentials

    def get_api_key(self) -> Optional[str]:
        return self._key

    def get_api_secret(self) -> Optional[str]:
        return self._secret

    @property
    def has_credentials(self) -> bool:
        return bool(self._key)

    def get_user(self) -> Optional[str]:
        """Get the authenticated user.

        Always None here; subclasses that hold an authenticated session
        override it.
        """
        return None

    def get_option(self, option: str, fallback: ConfigValue = None) -> ConfigValue:
        """Get an option from the config file.

        Args:
            option: The option to fetch
            fallback: Returned as-is when the option is missing
        """
        return self.get_config().get(f"config.{option}", fallback)

    # Dependencies

    def get_dependency(self, dependency: Optional[str] = None) -> Any:
        """Get a service by name, or the container when no name is given."""
        if self._container is None:
            self._container = get_container()

        if dependency:
            return self._container.get_service(dependency)
        return self._container

    def get_cache(self) -> FileStore:
        return self.get_dependency("cache")

    def get_config(self) -> Repository:
        return self.get_dependency("config")

    def get_request(self) -> Request:
        return self.get_dependency("request")
