"""Shared fixtures for Skrape client tests."""

from collections.abc import Generator

import pytest
from click.testing import CliRunner

from skrape import AsyncSkrape, Skrape
from tests.mock_server import API_KEY, create_app
from tests.utils import AioHttpTestServer, find_free_port


@pytest.fixture
def skrape_server() -> Generator[AioHttpTestServer, None, None]:
    """Create and start an aiohttp server running the mock Skrape API.

    This fixture starts a real HTTP server on a random port so the clients
    are tested with real HTTP requests.

    Yields:
        AioHttpTestServer instance with the mock API running.
    """
    server = AioHttpTestServer(create_app(), find_free_port())
    server.start()
    yield server
    server.stop()


@pytest.fixture
def api_url(skrape_server: AioHttpTestServer) -> str:
    """Base URL of the mock API (e.g. "http://127.0.0.1:8080/api")."""
    return f"{skrape_server.url}/api"


@pytest.fixture
def skrape(api_url: str) -> Generator[Skrape, None, None]:
    """A sync client pointed at the mock API."""
    with Skrape(api_key=API_KEY, base_url=api_url) as client:
        yield client


@pytest.fixture
def async_skrape(api_url: str) -> AsyncSkrape:
    """An async client pointed at the mock API.

    Tests close it themselves with ``async with``.
    """
    return AsyncSkrape(api_key=API_KEY, base_url=api_url)


@pytest.fixture
def unused_url() -> str:
    """A base URL nothing is listening on."""
    return f"http://127.0.0.1:{find_free_port()}/api"


@pytest.fixture
def runner() -> CliRunner:
    """Click test runner."""
    return CliRunner()
