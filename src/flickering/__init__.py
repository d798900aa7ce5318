"""
Flickering - a Python client facade for the Flickr API.

This package resolves API credentials from configuration, builds method
invocations and runs them through a shared cache and HTTP transport.
"""

__version__ = "0.1.0"
__author__ = "Flickering Team"
__license__ = "MIT"

from typing import Final

# Package metadata
VERSION: Final[str] = __version__
PACKAGE_NAME: Final[str] = "flickering"
USER_AGENT: Final[str] = f"{PACKAGE_NAME}/{VERSION}"

from .client import Flickering  # noqa: E402
from .container import (  # noqa: E402
    ServiceContainer,
    build_container,
    get_container,
    reset_container,
    resolve,
    set_container,
)
from .errors import (  # noqa: E402
    ApiError,
    AuthenticationError,
    ConfigurationError,
    DependencyResolutionError,
    FlickeringError,
    MissingCredentialsError,
    NetworkError,
)
from .method import Method  # noqa: E402
from .results import Results  # noqa: E402

__all__ = [
    "__version__",
    "VERSION",
    "PACKAGE_NAME",
    "USER_AGENT",
    "Flickering",
    "Method",
    "Results",
    "ServiceContainer",
    "build_container",
    "get_container",
    "set_container",
    "reset_container",
    "resolve",
    "FlickeringError",
    "ConfigurationError",
    "DependencyResolutionError",
    "MissingCredentialsError",
    "AuthenticationError",
    "ApiError",
    "NetworkError",
]
