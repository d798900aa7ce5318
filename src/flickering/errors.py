"""
Structured error system for Flickering.

This module provides the error taxonomy raised by the client, the service
container and the Flickr request layer.
"""

from typing import Any, Dict, Optional
import logging

import httpx

logger = logging.getLogger(__name__)


class FlickeringError(Exception):
    """Base exception for all Flickering errors."""

    def __init__(
        self,
        message: str,
        status: Optional[int] = None,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        original_error: Optional[Exception] = None
    ):
        super().__init__(message)
        self.message = message
        self.status = status
        self.code = code
        self.details = details or {}
        self.original_error = original_error

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary representation."""
        return {
            "message": self.message,
            "status": self.status,
            "code": self.code,
            "details": self.details,
            "type": self.__class__.__name__
        }

    def __str__(self) -> str:
        parts = [self.message]
        if self.status:
            parts.append(f"(Status: {self.status})")
        if self.code:
            parts.append(f"(Code: {self.code})")
        return " ".join(parts)


class ConfigurationError(FlickeringError):
    """Error related to configuration files or values."""

    def __init__(
        self,
        message: str = "Configuration error",
        config_key: Optional[str] = None,
        **kwargs
    ):
        super().__init__(message, code="CONFIGURATION_ERROR", **kwargs)
        if config_key:
            self.details["config_key"] = config_key


class DependencyResolutionError(FlickeringError):
    """Error raised when a registered service cannot be built."""

    def __init__(
        self,
        message: str = "Could not resolve dependency",
        service: Optional[str] = None,
        **kwargs
    ):
        super().__init__(message, code="DEPENDENCY_ERROR", **kwargs)
        if service:
            self.details["service"] = service


class ServiceNotFoundError(DependencyResolutionError):
    """Error raised when a service name is not registered."""

    def __init__(self, service: str, **kwargs):
        super().__init__(f"Service '{service}' is not registered", service=service, **kwargs)
        self.code = "SERVICE_NOT_FOUND"


class MissingCredentialsError(FlickeringError):
    """Error raised when a call needs credentials that were never resolved."""

    def __init__(
        self,
        message: str = "No API key configured",
        credential: Optional[str] = None,
        **kwargs
    ):
        super().__init__(message, code="MISSING_CREDENTIALS", **kwargs)
        if credential:
            self.details["credential"] = credential


class AuthenticationError(FlickeringError):
    """Error when the remote API rejects the credentials."""

    def __init__(
        self,
        message: str = "Authentication failed",
        **kwargs
    ):
        kwargs.setdefault("status", 401)
        kwargs.setdefault("code", "AUTHENTICATION_ERROR")
        super().__init__(message, **kwargs)


class ApiError(FlickeringError):
    """Error reported by the remote API itself."""

    def __init__(
        self,
        message: str = "API error",
        method: Optional[str] = None,
        **kwargs
    ):
        kwargs.setdefault("code", "API_ERROR")
        super().__init__(message, **kwargs)
        if method:
            self.details["method"] = method


class NetworkError(FlickeringError):
    """Error for network-related issues."""

    def __init__(
        self,
        message: str = "Network error",
        **kwargs
    ):
        super().__init__(message, code="NETWORK_ERROR", **kwargs)


class RequestTimeoutError(NetworkError):
    """Error for request timeouts."""

    def __init__(
        self,
        message: str = "Request timeout",
        timeout_seconds: Optional[float] = None,
        **kwargs
    ):
        super().__init__(message, **kwargs)
        self.code = "TIMEOUT_ERROR"
        if timeout_seconds:
            self.details["timeout_seconds"] = timeout_seconds


class InvalidResponseError(FlickeringError):
    """Error when the remote API answers with something unparseable."""

    def __init__(
        self,
        message: str = "Invalid response",
        **kwargs
    ):
        super().__init__(message, code="INVALID_RESPONSE", **kwargs)


def classify_error(error: Exception) -> FlickeringError:
    """
    Classify a generic exception into a structured FlickeringError.

    Args:
        error: The original exception

    Returns:
        Classified FlickeringError instance
    """
    if isinstance(error, FlickeringError):
        return error

    error_message = str(error) or error.__class__.__name__

    if isinstance(error, httpx.TimeoutException):
        return RequestTimeoutError(error_message, original_error=error)
    if isinstance(error, httpx.TransportError):
        return NetworkError(error_message, original_error=error)
    if isinstance(error, httpx.HTTPStatusError):
        status = error.response.status_code
        if status in (401, 403):
            return AuthenticationError(error_message, status=status, original_error=error)
        return ApiError(error_message, status=status, original_error=error)
    if isinstance(error, ValueError):
        return InvalidResponseError(error_message, original_error=error)
    return FlickeringError(error_message, original_error=error)


def create_user_friendly_message(error: FlickeringError) -> str:
    """
    Create a user-friendly error message.

    Args:
        error: The FlickeringError to convert

    Returns:
        User-friendly error message
    """
    if isinstance(error, MissingCredentialsError):
        return "No Flickr API key is configured. Set 'api_key' in config.json or pass it explicitly."

    elif isinstance(error, AuthenticationError):
        return "Flickr rejected the credentials. Please check your API key and secret."

    elif isinstance(error, RequestTimeoutError):
        return "The request to Flickr timed out. Please try again."

    elif isinstance(error, NetworkError):
        return "Network error occurred. Please check your internet connection and try again."

    elif isinstance(error, ApiError):
        method = error.details.get("method")
        if method:
            return f"Flickr could not complete '{method}': {error.message}"
        return f"Flickr returned an error: {error.message}"

    elif isinstance(error, ConfigurationError):
        return f"Configuration problem: {error.message}"

    else:
        return f"An error occurred: {error.message}"
