"""Skrape CLI: call the Skrape API from the shell.

Usage:
    skrape extract URL --schema module.path:Model   # Extract with a model
    skrape extract URL --schema schema.json         # ... or a JSON Schema
    skrape markdown URL                             # Page as markdown
    skrape bulk URL [URL ...]                       # Start a bulk markdown job
    skrape crawl URL [URL ...] --max-pages 10       # Start a crawl job
    skrape job JOB_ID                               # Poll a job
    skrape health                                   # Service health

The API key is read from --api-key or SKRAPE_API_KEY, the base URL from
--base-url or SKRAPE_API_URL.
"""

from __future__ import annotations

import importlib
import json
import logging
from pathlib import Path
from typing import Any

import click
from pydantic import BaseModel

from skrape.client import Skrape
from skrape.config import API_KEY_ENV, BASE_URL_ENV
from skrape.data_types import CrawlOptions, ExtractOptions, MarkdownOptions
from skrape.exceptions import ConfigError, SkrapeError


def import_schema(schema_path: str) -> Any:
    """Load a schema from a dotted path or a JSON Schema file.

    Args:
        schema_path: ``"module.path:Name"`` string, or a path to a ``.json``
            file containing JSON Schema.

    Returns:
        The imported type, or the decoded JSON Schema dict.

    Raises:
        click.BadParameter: If the format is invalid or loading fails.
    """
    path = Path(schema_path)
    if path.suffix == ".json":
        try:
            schema = json.loads(path.read_text(encoding="utf-8"))
        except OSError as e:
            raise click.BadParameter(
                f"Could not read schema file '{schema_path}': {e}"
            ) from e
        except json.JSONDecodeError as e:
            raise click.BadParameter(
                f"Invalid JSON in schema file '{schema_path}': {e}"
            ) from e
        if not isinstance(schema, dict):
            raise click.BadParameter(
                f"Schema file '{schema_path}' must contain a JSON object"
            )
        return schema

    if ":" not in schema_path:
        raise click.BadParameter(
            f"Invalid schema '{schema_path}'. "
            "Expected 'module.path:Name' or a .json file"
        )

    module_path, attr_name = schema_path.rsplit(":", 1)
    try:
        module = importlib.import_module(module_path)
    except ImportError as e:
        raise click.BadParameter(
            f"Could not import module '{module_path}': {e}"
        ) from e

    try:
        return getattr(module, attr_name)
    except AttributeError as e:
        raise click.BadParameter(
            f"Module '{module_path}' has no attribute '{attr_name}'"
        ) from e


def _to_jsonable(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, list):
        return [_to_jsonable(item) for item in value]
    return value


def _echo_json(value: Any) -> None:
    click.echo(json.dumps(_to_jsonable(value), indent=2, ensure_ascii=False))


def _format_error(error: SkrapeError) -> str:
    parts = [error.message]
    if error.status is not None:
        parts.append(f"status: {error.status}")
    if error.retry_after is not None:
        parts.append(f"retry after: {error.retry_after}s")
    return " | ".join(parts)


class _ClientContext:
    """Lazily builds the client so --help works without an API key."""

    def __init__(
        self,
        api_key: str | None,
        base_url: str | None,
        timeout: float | None,
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url
        self.timeout = timeout

    def client(self) -> Skrape:
        try:
            return Skrape(
                api_key=self.api_key,
                base_url=self.base_url,
                timeout=self.timeout,
            )
        except ConfigError as e:
            raise click.UsageError(
                f"{e} (see --api-key/{API_KEY_ENV}"
                f" and --base-url/{BASE_URL_ENV})"
            ) from e


def _run(ctx: click.Context, call: Any) -> Any:
    """Run ``call(client)`` and turn SkrapeError into a CLI error."""
    with ctx.obj.client() as client:
        try:
            return call(client)
        except SkrapeError as e:
            raise click.ClickException(_format_error(e)) from e


@click.group()
@click.version_option(package_name="skrape")
@click.option(
    "--api-key",
    envvar=API_KEY_ENV,
    default=None,
    help=f"Skrape API key. [env: {API_KEY_ENV}]",
)
@click.option(
    "--base-url",
    envvar=BASE_URL_ENV,
    default=None,
    help=f"API root URL. [env: {BASE_URL_ENV}]",
)
@click.option(
    "--timeout",
    type=float,
    default=None,
    help="Request timeout in seconds (default: none).",
)
@click.option("-v", "--verbose", is_flag=True, help="Verbose logging.")
@click.pass_context
def cli(
    ctx: click.Context,
    api_key: str | None,
    base_url: str | None,
    timeout: float | None,
    verbose: bool,
) -> None:
    """Skrape: web extraction API client."""
    log_level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logging.getLogger("skrape").setLevel(log_level)
    ctx.obj = _ClientContext(api_key, base_url, timeout)


@cli.command()
@click.argument("url")
@click.option(
    "--schema",
    "schema_path",
    required=True,
    help="Schema as 'module.path:Model' or a JSON Schema .json file.",
)
@click.option("--render-js", is_flag=True, help="Render JavaScript first.")
@click.pass_context
def extract(
    ctx: click.Context, url: str, schema_path: str, render_js: bool
) -> None:
    """Extract structured data from URL."""
    schema = import_schema(schema_path)
    options = ExtractOptions(render_js=True) if render_js else None
    _echo_json(_run(ctx, lambda c: c.extract(url, schema, options)))


@cli.command()
@click.argument("url")
@click.option("--render-js", is_flag=True, help="Render JavaScript first.")
@click.option("--callback-url", default=None, help="Webhook URL.")
@click.pass_context
def markdown(
    ctx: click.Context, url: str, render_js: bool, callback_url: str | None
) -> None:
    """Convert URL to markdown."""
    options = MarkdownOptions(
        render_js=render_js or None, callback_url=callback_url
    )
    click.echo(_run(ctx, lambda c: c.markdown(url, options)))


@cli.command()
@click.argument("urls", nargs=-1, required=True)
@click.option("--render-js", is_flag=True, help="Render JavaScript first.")
@click.option("--callback-url", default=None, help="Webhook URL.")
@click.pass_context
def bulk(
    ctx: click.Context,
    urls: tuple[str, ...],
    render_js: bool,
    callback_url: str | None,
) -> None:
    """Start a bulk markdown job for URLS."""
    options = MarkdownOptions(
        render_js=render_js or None, callback_url=callback_url
    )
    _echo_json(_run(ctx, lambda c: c.markdown.bulk(list(urls), options)))


@cli.command()
@click.argument("urls", nargs=-1, required=True)
@click.option("--render-js", is_flag=True, help="Render JavaScript first.")
@click.option("--max-depth", type=int, default=None, help="Link depth.")
@click.option("--max-pages", type=int, default=None, help="Page limit.")
@click.option(
    "--max-links", type=int, default=None, help="Links followed per page."
)
@click.option("--links-only", is_flag=True, help="Collect links only.")
@click.pass_context
def crawl(
    ctx: click.Context,
    urls: tuple[str, ...],
    render_js: bool,
    max_depth: int | None,
    max_pages: int | None,
    max_links: int | None,
    links_only: bool,
) -> None:
    """Start a crawl job from URLS."""
    options = CrawlOptions(
        render_js=render_js or None,
        max_depth=max_depth,
        max_pages=max_pages,
        max_links=max_links,
        links_only=links_only or None,
    )
    _echo_json(_run(ctx, lambda c: c.crawl(list(urls), options)))


@cli.command()
@click.argument("job_id")
@click.pass_context
def job(ctx: click.Context, job_id: str) -> None:
    """Show the status of JOB_ID."""
    _echo_json(_run(ctx, lambda c: c.get_job_status(job_id)))


@cli.command()
@click.pass_context
def health(ctx: click.Context) -> None:
    """Check the service health."""
    _echo_json(_run(ctx, lambda c: c.check_health()))


def main() -> None:
    """Entry point for the ``skrape`` console script."""
    cli()
