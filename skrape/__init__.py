"""Client library for the Skrape web extraction API.

Describe the data you want with a Pydantic model, and Skrape returns it
extracted from any page::

    from pydantic import BaseModel
    from skrape import Skrape

    class Product(BaseModel):
        title: str
        price: float

    skrape = Skrape(api_key="sk-123")
    product = skrape.extract("https://example.com/item", Product)

AsyncSkrape offers the same operations as coroutines.
"""

from skrape.client import AsyncSkrape, Skrape
from skrape.config import DEFAULT_BASE_URL, ClientConfig
from skrape.data_types import (
    CrawlOptions,
    ExtractOptions,
    HealthStatus,
    JobHandle,
    JobStatus,
    MarkdownOptions,
)
from skrape.exceptions import (
    ConfigError,
    RemoteError,
    ResultValidationError,
    SkrapeError,
    TransportError,
)
from skrape.schema import to_json_schema

__all__ = [
    "AsyncSkrape",
    "ClientConfig",
    "ConfigError",
    "CrawlOptions",
    "DEFAULT_BASE_URL",
    "ExtractOptions",
    "HealthStatus",
    "JobHandle",
    "JobStatus",
    "MarkdownOptions",
    "RemoteError",
    "ResultValidationError",
    "Skrape",
    "SkrapeError",
    "TransportError",
    "to_json_schema",
]
