"""Request managers for talking to the Skrape API.

This module provides SyncRequestManager and AsyncRequestManager classes that
encapsulate the HTTP client and the error mapping shared by every
operation.

The request manager is responsible for:
- Maintaining the HTTP client (httpx.Client or httpx.AsyncClient)
- Adding the Authorization header
- Converting responses into decoded JSON, or into SkrapeError subclasses

Each call sends exactly one request. Nothing is retried.
"""

from __future__ import annotations

import json
import logging
from typing import Any

import httpx

from skrape.config import ClientConfig
from skrape.data_types import HttpMethod
from skrape.exceptions import RemoteError, TransportError

logger = logging.getLogger(__name__)

DEFAULT_ERROR_MESSAGE = "Request failed"
INVALID_JSON_MESSAGE = "Invalid JSON response"

JSON_HEADERS = {"Content-Type": "application/json"}


def parse_retry_after(value: str | None) -> int | None:
    """Parse a Retry-After header given in seconds.

    Only a non-negative whole number of seconds, optionally padded with
    whitespace, is accepted. HTTP-date values, fractions such as ``"1.5"``
    and numbers followed by other text give None rather than a partial
    value.
    """
    if value is None:
        return None
    value = value.strip()
    if not (value.isascii() and value.isdigit()):
        return None
    return int(value)


def error_message_from(response: httpx.Response) -> str:
    """Pull the ``error`` field out of an error body, with a fallback."""
    try:
        data = response.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return DEFAULT_ERROR_MESSAGE
    if isinstance(data, dict):
        error = data.get("error")
        if isinstance(error, str) and error:
            return error
    return DEFAULT_ERROR_MESSAGE


def handle_response(response: httpx.Response) -> Any:
    """Decode a response body or raise the matching SkrapeError.

    Args:
        response: The httpx response, already read.

    Returns:
        The decoded JSON body of a success response.

    Raises:
        RemoteError: If the status is not 2xx, or the body is not JSON.
    """
    if not response.is_success:
        retry_after = parse_retry_after(response.headers.get("Retry-After"))
        message = error_message_from(response)
        if retry_after is not None:
            logger.warning(
                f"Rate limited (HTTP {response.status_code}), "
                f"retry after {retry_after}s"
            )
        else:
            logger.debug(f"HTTP {response.status_code}: {message}")
        raise RemoteError(
            message,
            status=response.status_code,
            retry_after=retry_after,
        )

    try:
        return response.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise RemoteError(
            INVALID_JSON_MESSAGE, status=response.status_code
        ) from e


def _transport_error(url: str, exc: httpx.RequestError) -> TransportError:
    message = str(exc) or type(exc).__name__
    logger.debug(f"Transport failure for {url}: {message}")
    return TransportError(message)


class _BaseRequestManager:
    """Header construction shared by the sync and async managers."""

    config: ClientConfig

    def auth_headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.config.api_key}"}

    def build_headers(
        self, extra: dict[str, str] | None = None
    ) -> dict[str, str]:
        headers = self.auth_headers()
        if extra:
            headers.update(extra)
        return headers


class SyncRequestManager(_BaseRequestManager):
    """Manages HTTP requests for the synchronous client.

    This class encapsulates:

    - httpx.Client lifecycle
    - Authorization headers
    - Response and error mapping

    Example::

        manager = SyncRequestManager(ClientConfig(api_key="sk-123"))
        data = manager.request(HttpMethod.GET, "health")
    """

    def __init__(
        self,
        config: ClientConfig,
        http_client: httpx.Client | None = None,
    ) -> None:
        """Initialize the request manager.

        Args:
            config: Connection settings.
            http_client: Optional client to use instead of creating one.
                A client passed in here is not closed by close().
        """
        self.config = config
        self._owns_client = http_client is None
        self._client = http_client or httpx.Client(timeout=config.timeout)

    def close(self) -> None:
        """Close the HTTP client if this manager created it."""
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> SyncRequestManager:
        """Context manager entry."""
        return self

    def __exit__(self, *args: Any) -> None:
        """Context manager exit - closes the client."""
        self.close()

    def request(
        self,
        method: HttpMethod,
        path: str,
        *,
        json_body: dict[str, Any] | None = None,
        params: dict[str, str] | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """Send one request and return the decoded JSON body.

        Args:
            method: HTTP method.
            path: Endpoint path relative to the base URL.
            json_body: Body to send as JSON.
            params: Query string parameters.
            headers: Headers added on top of Authorization.

        Returns:
            The decoded JSON body.

        Raises:
            RemoteError: If the service returns a non-success response.
            TransportError: If no response could be obtained.
        """
        url = self.config.url_for(path)
        logger.debug(f"{method.value} {url}")
        try:
            response = self._client.request(
                method=method.value,
                url=url,
                params=params,
                headers=self.build_headers(headers),
                json=json_body,
            )
        except httpx.RequestError as e:
            raise _transport_error(url, e) from e
        return handle_response(response)


class AsyncRequestManager(_BaseRequestManager):
    """Manages HTTP requests for the asynchronous client.

    This class encapsulates:

    - httpx.AsyncClient lifecycle
    - Authorization headers
    - Response and error mapping

    Example::

        manager = AsyncRequestManager(ClientConfig(api_key="sk-123"))
        data = await manager.request(HttpMethod.GET, "health")
    """

    def __init__(
        self,
        config: ClientConfig,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the request manager.

        Args:
            config: Connection settings.
            http_client: Optional client to use instead of creating one.
                A client passed in here is not closed by close().
        """
        self.config = config
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            timeout=config.timeout
        )

    async def close(self) -> None:
        """Close the HTTP client if this manager created it."""
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> AsyncRequestManager:
        """Async context manager entry."""
        return self

    async def __aexit__(self, *args: Any) -> None:
        """Async context manager exit - closes the client."""
        await self.close()

    async def request(
        self,
        method: HttpMethod,
        path: str,
        *,
        json_body: dict[str, Any] | None = None,
        params: dict[str, str] | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """Send one request and return the decoded JSON body.

        See SyncRequestManager.request for arguments and errors.
        """
        url = self.config.url_for(path)
        logger.debug(f"{method.value} {url}")
        try:
            response = await self._client.request(
                method=method.value,
                url=url,
                params=params,
                headers=self.build_headers(headers),
                json=json_body,
            )
        except httpx.RequestError as e:
            raise _transport_error(url, e) from e
        return handle_response(response)
