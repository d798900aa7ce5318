"""
HTTP transport for Flickr REST calls.

A Request owns one httpx client, created on first use, and turns Flickr's
answers into plain payload dictionaries or structured errors.
"""

import logging
from typing import Any, Dict, Mapping, Optional

import httpx

from . import USER_AGENT
from .errors import (
    ApiError,
    AuthenticationError,
    InvalidResponseError,
    NetworkError,
    RequestTimeoutError,
)

logger = logging.getLogger(__name__)

# Flickr error codes that mean the credentials were refused
AUTH_ERROR_CODES = {98, 100}


class Request:
    """Issues GET requests against the Flickr REST endpoint."""

    def __init__(
        self,
        endpoint: str,
        timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None
    ):
        self.endpoint = endpoint
        self.timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.Client] = None

    @property
    def client(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(
                headers={"User-Agent": USER_AGENT},
                timeout=httpx.Timeout(self.timeout),
                transport=self._transport
            )
        return self._client

    def get(self, parameters: Mapping[str, str]) -> Dict[str, Any]:
        """Call the endpoint and return the decoded payload.

        Raises:
            RequestTimeoutError: If the request timed out
            NetworkError: For other transport failures
            AuthenticationError: If Flickr refused the credentials
            ApiError: For HTTP errors and ``stat: fail`` answers
            InvalidResponseError: If the body is not a JSON object
        """
        method = parameters.get("method")

        try:
            response = self.client.get(self.endpoint, params=dict(parameters))
            response.raise_for_status()
        except httpx.TimeoutException as e:
            raise RequestTimeoutError(
                f"Request to {method} timed out", timeout_seconds=self.timeout, original_error=e
            ) from e
        except httpx.TransportError as e:
            raise NetworkError(f"Could not reach Flickr for {method}: {e}", original_error=e) from e
        except httpx.HTTPStatusError as e:
            raise self._map_http_error(e, method) from e

        try:
            payload = response.json()
        except ValueError as e:
            raise InvalidResponseError(
                f"Response to {method} is not valid JSON", original_error=e
            ) from e

        if not isinstance(payload, dict):
            raise InvalidResponseError(f"Response to {method} is not a JSON object")

        if payload.get("stat") == "fail":
            raise self._map_api_error(payload, method)

        logger.debug(f"Received response for {method}")
        return payload

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None

    def _map_http_error(self, error: httpx.HTTPStatusError, method: Optional[str]) -> Exception:
        """Map HTTP errors to appropriate exception types."""
        status_code = error.response.status_code

        if status_code in (401, 403):
            return AuthenticationError(
                f"Flickr refused access to {method}",
                status=status_code,
                original_error=error
            )
        return ApiError(
            f"HTTP {status_code} error from Flickr: {error.response.text}",
            method=method,
            status=status_code,
            original_error=error
        )

    def _map_api_error(self, payload: Dict[str, Any], method: Optional[str]) -> Exception:
        """Map a ``stat: fail`` payload to an exception."""
        code = payload.get("code")
        message = payload.get("message") or "Unknown Flickr error"

        if code in AUTH_ERROR_CODES:
            # Flickr reports these on HTTP 200, so there is no status to carry
            error = AuthenticationError(message, status=None, code=str(code))
        else:
            error = ApiError(message, method=method, code=str(code) if code is not None else None)

        logger.error(f"Flickr error for {method}: {error}")
        return error
