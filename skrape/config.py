"""Client configuration.

ClientConfig holds the API key and base URL. It is frozen after
construction so a single client can be shared between concurrent calls.

Example::

    config = ClientConfig(api_key='"sk-123"')
    config.api_key  # "sk-123"
"""

from __future__ import annotations

import os
from typing import Any

import httpx
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
)

from skrape.exceptions import ConfigError

DEFAULT_BASE_URL = "https://skrape.ai/api"

API_KEY_ENV = "SKRAPE_API_KEY"
BASE_URL_ENV = "SKRAPE_API_URL"

_QUOTE_CHARS = "\"'"
_URL_SCHEMES = ("http", "https")


class ClientConfig(BaseModel):
    """Immutable connection settings for a Skrape client.

    Attributes:
        api_key: Bearer token. Surrounding whitespace and quote characters
            are stripped, so keys pasted as ``"abc"`` still work.
        base_url: Root of the API, without a trailing slash.
        timeout: Request timeout in seconds. None means no timeout.
    """

    model_config = ConfigDict(frozen=True)

    api_key: str = Field(..., repr=False)
    base_url: str = DEFAULT_BASE_URL
    timeout: float | None = None

    @field_validator("api_key", mode="before")
    @classmethod
    def _normalize_api_key(cls, value: Any) -> Any:
        if value is None:
            raise ValueError("API key is required")
        if isinstance(value, str):
            value = value.strip().strip(_QUOTE_CHARS).strip()
            if not value:
                raise ValueError("API key must not be empty")
        return value

    @field_validator("base_url", mode="before")
    @classmethod
    def _normalize_base_url(cls, value: Any) -> Any:
        if value is None or value == "":
            return DEFAULT_BASE_URL
        if isinstance(value, str):
            value = value.strip().rstrip("/")
            try:
                url = httpx.URL(value)
            except httpx.InvalidURL as e:
                raise ValueError(f"Base URL {value!r} is invalid: {e}") from e
            if url.scheme not in _URL_SCHEMES or not url.host:
                raise ValueError(
                    f"Base URL must be an absolute http(s) URL, got {value!r}"
                )
        return value

    @classmethod
    def create(
        cls,
        api_key: str | None,
        base_url: str | None = None,
        timeout: float | None = None,
    ) -> ClientConfig:
        """Build a config, turning validation failures into ConfigError.

        Args:
            api_key: The API key. Required.
            base_url: Optional override of the API root.
            timeout: Optional request timeout in seconds.

        Returns:
            A validated, frozen ClientConfig.

        Raises:
            ConfigError: If the API key is missing or empty, or the base
                URL is not an absolute http(s) URL.
        """
        try:
            return cls(api_key=api_key, base_url=base_url, timeout=timeout)
        except ValidationError as e:
            messages = "; ".join(err["msg"] for err in e.errors())
            raise ConfigError(
                f"Invalid client configuration: {messages}"
            ) from e

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> ClientConfig:
        """Build a config from SKRAPE_API_KEY and SKRAPE_API_URL.

        Raises:
            ConfigError: If SKRAPE_API_KEY is not set.
        """
        env = os.environ if environ is None else environ
        api_key = env.get(API_KEY_ENV)
        if not api_key:
            raise ConfigError(f"{API_KEY_ENV} is required")
        return cls.create(api_key=api_key, base_url=env.get(BASE_URL_ENV))

    def url_for(self, path: str) -> str:
        """Join an endpoint path onto the base URL."""
        return f"{self.base_url}/{path.lstrip('/')}"
