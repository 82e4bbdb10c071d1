"""Skrape API clients.

Two clients share the same operations and error contract:

- Skrape: synchronous, backed by httpx.Client.
- AsyncSkrape: asynchronous, backed by httpx.AsyncClient.

Every operation sends exactly one request. Failures are raised as
SkrapeError subclasses (see skrape.exceptions); nothing is retried.

Example::

    from pydantic import BaseModel

    class Product(BaseModel):
        title: str
        price: float

    with Skrape(api_key="sk-123") as skrape:
        product = skrape.extract("https://example.com", Product)
        page = skrape.markdown("https://example.com")
        job = skrape.markdown.bulk(["https://a.example", "https://b.example"])
        status = skrape.get_job_status(job["jobId"])
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, TypeVar, cast, overload

import httpx

from skrape.config import ClientConfig
from skrape.data_types import (
    CrawlOptions,
    ExtractOptions,
    HealthStatus,
    HttpMethod,
    JobHandle,
    JobStatus,
    MarkdownOptions,
    OptionsType,
    options_to_wire,
)
from skrape.exceptions import ConfigError, RemoteError
from skrape.request_manager import (
    JSON_HEADERS,
    AsyncRequestManager,
    SyncRequestManager,
)
from skrape.schema import to_json_schema, validate_result

T = TypeVar("T")

EXTRACT_HEADERS = {**JSON_HEADERS, "Accept": "application/json"}

MISSING_MARKDOWN_MESSAGE = "Response has no markdown"


def _resolve_config(
    config: ClientConfig | None,
    api_key: str | None,
    base_url: str | None,
    timeout: float | None,
) -> ClientConfig:
    if config is not None:
        overrides = (api_key, base_url, timeout)
        if any(value is not None for value in overrides):
            raise ConfigError(
                "Pass either config or api_key/base_url/timeout, not both"
            )
        return config
    return ClientConfig.create(
        api_key=api_key, base_url=base_url, timeout=timeout
    )


def _with_options(
    body: dict[str, Any], options: OptionsType
) -> dict[str, Any]:
    wire_options = options_to_wire(options)
    if wire_options is not None:
        body["options"] = wire_options
    return body


def _extract_body(
    url: str, schema: Any, options: ExtractOptions | OptionsType
) -> dict[str, Any]:
    body = {"url": url, "schema": to_json_schema(schema)}
    return _with_options(body, options)


def _result_of(schema: Any, data: Any) -> Any:
    result = data.get("result") if isinstance(data, dict) else None
    return validate_result(schema, result)


def _markdown_of(data: Any) -> str:
    markdown = data.get("markdown") if isinstance(data, dict) else None
    if not isinstance(markdown, str):
        raise RemoteError(MISSING_MARKDOWN_MESSAGE)
    return markdown


class MarkdownResource:
    """``skrape.markdown(url)`` converts one page; ``.bulk`` starts a job."""

    def __init__(self, manager: SyncRequestManager) -> None:
        self._manager = manager

    def __call__(
        self, url: str, options: MarkdownOptions | OptionsType = None
    ) -> str:
        """Convert a page to markdown.

        Args:
            url: Page to convert.
            options: MarkdownOptions or a plain mapping.

        Returns:
            The markdown text.

        Raises:
            RemoteError: If the service rejects the request, or answers
                without a markdown field.
        """
        data = self._manager.request(
            HttpMethod.POST,
            "markdown",
            json_body=_with_options({"url": url}, options),
            headers=JSON_HEADERS,
        )
        return _markdown_of(data)

    def bulk(
        self,
        urls: Sequence[str],
        options: MarkdownOptions | OptionsType = None,
    ) -> JobHandle:
        """Start an asynchronous bulk markdown job.

        Returns:
            The job handle as sent by the service. Poll it with
            ``get_job_status``.
        """
        return cast(
            JobHandle,
            self._manager.request(
                HttpMethod.POST,
                "markdown/bulk",
                json_body=_with_options({"urls": list(urls)}, options),
                headers=JSON_HEADERS,
            ),
        )


class AsyncMarkdownResource:
    """Async counterpart of MarkdownResource."""

    def __init__(self, manager: AsyncRequestManager) -> None:
        self._manager = manager

    async def __call__(
        self, url: str, options: MarkdownOptions | OptionsType = None
    ) -> str:
        data = await self._manager.request(
            HttpMethod.POST,
            "markdown",
            json_body=_with_options({"url": url}, options),
            headers=JSON_HEADERS,
        )
        return _markdown_of(data)

    async def bulk(
        self,
        urls: Sequence[str],
        options: MarkdownOptions | OptionsType = None,
    ) -> JobHandle:
        return cast(
            JobHandle,
            await self._manager.request(
                HttpMethod.POST,
                "markdown/bulk",
                json_body=_with_options({"urls": list(urls)}, options),
                headers=JSON_HEADERS,
            ),
        )


class Skrape:
    """Synchronous Skrape client.

    The configuration is frozen at construction. A client can be used as a
    context manager, which closes the underlying httpx.Client on exit.

    Attributes:
        config: The ClientConfig in use.
        markdown: Callable markdown resource with a ``bulk`` method.
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        *,
        timeout: float | None = None,
        config: ClientConfig | None = None,
        http_client: httpx.Client | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            api_key: API key. Quote characters around it are stripped.
            base_url: API root. Defaults to https://skrape.ai/api.
            timeout: Request timeout in seconds. None means no timeout.
            config: A prebuilt ClientConfig, instead of api_key/base_url.
            http_client: Optional httpx.Client to send requests with.

        Raises:
            ConfigError: If the API key is missing or empty.
        """
        self.config = _resolve_config(config, api_key, base_url, timeout)
        self._manager = SyncRequestManager(self.config, http_client)
        self.markdown = MarkdownResource(self._manager)

    @property
    def base_url(self) -> str:
        return self.config.base_url

    @property
    def api_key(self) -> str:
        return self.config.api_key

    def close(self) -> None:
        """Close the HTTP client if this client created it."""
        self._manager.close()

    def __enter__(self) -> Skrape:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    @overload
    def extract(
        self,
        url: str,
        schema: type[T],
        options: ExtractOptions | OptionsType = None,
    ) -> T: ...

    @overload
    def extract(
        self,
        url: str,
        schema: dict[str, Any],
        options: ExtractOptions | OptionsType = None,
    ) -> Any: ...

    def extract(
        self,
        url: str,
        schema: Any,
        options: ExtractOptions | OptionsType = None,
    ) -> Any:
        """Extract structured data from a page.

        Args:
            url: Page to extract from.
            schema: Pydantic model (or other TypeAdapter type) describing
                the result, or a JSON Schema dict.
            options: ExtractOptions or a plain mapping.

        Returns:
            The result validated into ``schema``. For dict schemas the
            decoded ``result`` is returned as-is.

        Raises:
            RemoteError: If the service rejects the request.
            TransportError: If the service could not be reached.
            ResultValidationError: If the result does not match ``schema``.
        """
        data = self._manager.request(
            HttpMethod.POST,
            "extract",
            json_body=_extract_body(url, schema, options),
            headers=EXTRACT_HEADERS,
        )
        return _result_of(schema, data)

    def crawl(
        self,
        urls: Sequence[str],
        options: CrawlOptions | OptionsType = None,
    ) -> JobHandle:
        """Start an asynchronous crawl job.

        Returns:
            The job handle as sent by the service.
        """
        return cast(
            JobHandle,
            self._manager.request(
                HttpMethod.POST,
                "crawl",
                json_body=_with_options({"urls": list(urls)}, options),
                headers=JSON_HEADERS,
            ),
        )

    def get_job_status(self, job_id: str) -> JobStatus:
        """Fetch the status of a bulk markdown or crawl job."""
        return cast(
            JobStatus,
            self._manager.request(
                HttpMethod.GET, "get-job", params={"jobId": job_id}
            ),
        )

    def check_health(self) -> HealthStatus:
        """Fetch the service health report."""
        return cast(
            HealthStatus, self._manager.request(HttpMethod.GET, "health")
        )


class AsyncSkrape:
    """Asynchronous Skrape client.

    Same operations and errors as Skrape, as coroutines. Concurrent calls
    on one instance are safe: the only shared state is the frozen config
    and httpx's connection pool.

    Example::

        async with AsyncSkrape(api_key="sk-123") as skrape:
            product = await skrape.extract(url, Product)
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        *,
        timeout: float | None = None,
        config: ClientConfig | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.config = _resolve_config(config, api_key, base_url, timeout)
        self._manager = AsyncRequestManager(self.config, http_client)
        self.markdown = AsyncMarkdownResource(self._manager)

    @property
    def base_url(self) -> str:
        return self.config.base_url

    @property
    def api_key(self) -> str:
        return self.config.api_key

    async def aclose(self) -> None:
        """Close the HTTP client if this client created it."""
        await self._manager.close()

    async def __aenter__(self) -> AsyncSkrape:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()

    @overload
    async def extract(
        self,
        url: str,
        schema: type[T],
        options: ExtractOptions | OptionsType = None,
    ) -> T: ...

    @overload
    async def extract(
        self,
        url: str,
        schema: dict[str, Any],
        options: ExtractOptions | OptionsType = None,
    ) -> Any: ...

    async def extract(
        self,
        url: str,
        schema: Any,
        options: ExtractOptions | OptionsType = None,
    ) -> Any:
        data = await self._manager.request(
            HttpMethod.POST,
            "extract",
            json_body=_extract_body(url, schema, options),
            headers=EXTRACT_HEADERS,
        )
        return _result_of(schema, data)

    async def crawl(
        self,
        urls: Sequence[str],
        options: CrawlOptions | OptionsType = None,
    ) -> JobHandle:
        return cast(
            JobHandle,
            await self._manager.request(
                HttpMethod.POST,
                "crawl",
                json_body=_with_options({"urls": list(urls)}, options),
                headers=JSON_HEADERS,
            ),
        )

    async def get_job_status(self, job_id: str) -> JobStatus:
        return cast(
            JobStatus,
            await self._manager.request(
                HttpMethod.GET, "get-job", params={"jobId": job_id}
            ),
        )

    async def check_health(self) -> HealthStatus:
        return cast(
            HealthStatus,
            await self._manager.request(HttpMethod.GET, "health"),
        )
