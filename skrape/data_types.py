"""Request options and response shapes for the Skrape API.

Option models are Pydantic models whose Python attribute names are
snake_case while the wire names are camelCase (``render_js`` is sent as
``renderJs``). Unset options are omitted from the request body, and unknown
options are passed through untouched so newer server flags can be used
before this package learns about them.

Response shapes are TypedDicts: the service's JSON is returned exactly as
decoded, the types only describe it.
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from typing_extensions import NotRequired, TypedDict


class HttpMethod(Enum):
    """HTTP methods used by the Skrape API."""

    GET = "GET"
    POST = "POST"


class BaseOptions(BaseModel):
    """Base class for per-operation options."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
        frozen=True,
    )

    def to_wire(self) -> dict[str, Any]:
        """Serialize to the JSON object sent as ``options``."""
        return self.model_dump(by_alias=True, exclude_none=True)


class ExtractOptions(BaseOptions):
    """Options for ``extract``.

    Attributes:
        render_js: Render the page with JavaScript before extracting.
    """

    render_js: bool | None = None


class MarkdownOptions(BaseOptions):
    """Options for ``markdown`` and ``markdown.bulk``.

    Attributes:
        render_js: Render the page with JavaScript before converting.
        callback_url: Webhook notified when a bulk job completes.
    """

    render_js: bool | None = None
    callback_url: str | None = None


class CrawlOptions(BaseOptions):
    """Options for ``crawl``.

    Attributes:
        render_js: Render pages with JavaScript.
        max_depth: Maximum link depth from the start URLs.
        max_pages: Maximum number of pages to visit.
        max_links: Maximum number of links followed per page.
        links_only: Collect links instead of page content.
        callback_url: Webhook notified when the job completes.
    """

    render_js: bool | None = None
    max_depth: int | None = None
    max_pages: int | None = None
    max_links: int | None = None
    links_only: bool | None = None
    callback_url: str | None = None


OptionsType = BaseOptions | Mapping[str, Any] | None


def options_to_wire(options: OptionsType) -> dict[str, Any] | None:
    """Convert caller options into the JSON object sent on the wire.

    Models are serialized with their wire aliases; mappings are sent as-is.

    Args:
        options: An options model, a plain mapping, or None.

    Returns:
        The ``options`` object for the request body, or None if absent.
    """
    if options is None:
        return None
    if isinstance(options, BaseOptions):
        return options.to_wire()
    return dict(options)


class JobHandle(TypedDict):
    """Returned by ``markdown.bulk`` and ``crawl``."""

    jobId: str
    message: str


class JobStatus(TypedDict):
    """Returned by ``get_job_status``."""

    status: str
    output: NotRequired[Any]
    createdAt: str
    isCompleted: bool


class HealthStatus(TypedDict):
    """Returned by ``check_health``."""

    status: str
    timestamp: str
    environment: str
