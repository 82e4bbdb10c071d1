"""Tests for the skrape command-line interface."""

from __future__ import annotations

import json
from pathlib import Path

import click
import pytest
from click.testing import CliRunner

from skrape.cli import cli, import_schema
from tests.mock_server import (
    API_KEY,
    BULK_JOB,
    CRAWL_JOB,
    HEALTH,
    JOBS,
    MARKDOWN,
    PRODUCT_RESULT,
    RATE_LIMITED_URL,
)
from tests.schemas import Product
from tests.utils import AioHttpTestServer


def invoke(runner: CliRunner, api_url: str, *args: str):
    return runner.invoke(
        cli,
        ["--api-key", API_KEY, "--base-url", api_url, *args],
        env={"SKRAPE_API_KEY": None, "SKRAPE_API_URL": None},
    )


class TestImportSchema:
    """Tests for loading schemas from the command line."""

    def test_dotted_path(self) -> None:
        assert import_schema("tests.schemas:Product") is Product

    def test_json_file(self, tmp_path: Path) -> None:
        path = tmp_path / "schema.json"
        path.write_text(json.dumps({"type": "object"}))

        assert import_schema(str(path)) == {"type": "object"}

    @pytest.mark.parametrize(
        "value",
        [
            "no_colon_here",
            "tests.does_not_exist:Product",
            "tests.schemas:Missing",
        ],
    )
    def test_bad_dotted_path(self, value: str) -> None:
        with pytest.raises(click.BadParameter):
            import_schema(value)

    def test_invalid_json_file(self, tmp_path: Path) -> None:
        path = tmp_path / "schema.json"
        path.write_text("{not json")

        with pytest.raises(click.BadParameter):
            import_schema(str(path))

    def test_json_file_must_be_object(self, tmp_path: Path) -> None:
        path = tmp_path / "schema.json"
        path.write_text("[1, 2]")

        with pytest.raises(click.BadParameter):
            import_schema(str(path))


class TestCommands:
    """Tests for each CLI command against the mock API."""

    def test_extract(self, runner: CliRunner, api_url: str) -> None:
        result = invoke(
            runner,
            api_url,
            "extract",
            "https://example.com",
            "--schema",
            "tests.schemas:Product",
        )

        assert result.exit_code == 0, result.output
        assert json.loads(result.output) == PRODUCT_RESULT

    def test_extract_render_js(
        self,
        runner: CliRunner,
        api_url: str,
        skrape_server: AioHttpTestServer,
    ) -> None:
        result = invoke(
            runner,
            api_url,
            "extract",
            "https://example.com",
            "--schema",
            "tests.schemas:Product",
            "--render-js",
        )

        assert result.exit_code == 0, result.output
        body = skrape_server.requests[0].body
        assert body["options"] == {"renderJs": True}

    def test_markdown(self, runner: CliRunner, api_url: str) -> None:
        result = invoke(runner, api_url, "markdown", "https://example.com")

        assert result.exit_code == 0, result.output
        assert result.output == MARKDOWN + "\n"

    def test_bulk(self, runner: CliRunner, api_url: str) -> None:
        result = invoke(
            runner, api_url, "bulk", "https://a.example", "https://b.example"
        )

        assert result.exit_code == 0, result.output
        assert json.loads(result.output) == BULK_JOB

    def test_crawl(
        self,
        runner: CliRunner,
        api_url: str,
        skrape_server: AioHttpTestServer,
    ) -> None:
        result = invoke(
            runner,
            api_url,
            "crawl",
            "https://example.com",
            "--max-depth",
            "2",
            "--max-pages",
            "10",
        )

        assert result.exit_code == 0, result.output
        assert json.loads(result.output) == CRAWL_JOB
        assert skrape_server.requests[0].body["options"] == {
            "maxDepth": 2,
            "maxPages": 10,
        }

    def test_job(self, runner: CliRunner, api_url: str) -> None:
        result = invoke(runner, api_url, "job", "job123")

        assert result.exit_code == 0, result.output
        assert json.loads(result.output) == JOBS["job123"]

    def test_health(self, runner: CliRunner, api_url: str) -> None:
        result = invoke(runner, api_url, "health")

        assert result.exit_code == 0, result.output
        assert json.loads(result.output) == HEALTH


class TestErrors:
    """Tests for error reporting from the CLI."""

    def test_rate_limited(self, runner: CliRunner, api_url: str) -> None:
        result = invoke(runner, api_url, "markdown", RATE_LIMITED_URL)

        assert result.exit_code == 1
        assert "Rate limit exceeded" in result.output
        assert "status: 429" in result.output
        assert "retry after: 60s" in result.output

    def test_missing_api_key(self, runner: CliRunner) -> None:
        result = runner.invoke(
            cli,
            ["health"],
            env={"SKRAPE_API_KEY": None, "SKRAPE_API_URL": None},
        )

        assert result.exit_code == 2
        assert "SKRAPE_API_KEY" in result.output

    def test_api_key_from_env(
        self, runner: CliRunner, api_url: str
    ) -> None:
        result = runner.invoke(
            cli,
            ["health"],
            env={"SKRAPE_API_KEY": f'"{API_KEY}"', "SKRAPE_API_URL": api_url},
        )

        assert result.exit_code == 0, result.output
        assert json.loads(result.output) == HEALTH

    def test_unknown_job(self, runner: CliRunner, api_url: str) -> None:
        result = invoke(runner, api_url, "job", "missing")

        assert result.exit_code == 1
        assert "Job not found" in result.output
