"""CLI entry point for api-tool-catalog."""

import asyncio
import json
from pathlib import Path

import click

from api_tool_catalog.catalog.lister import list_endpoints
from api_tool_catalog.catalog.schema_provider import describe_endpoint
from api_tool_catalog.config import settings
from api_tool_catalog.errors import CatalogError
from api_tool_catalog.executor.executor import EndpointExecutor
from api_tool_catalog.executor.transport import ApiTransport
from api_tool_catalog.generator.catalog import generate_catalog
from api_tool_catalog.log import setup_logging
from api_tool_catalog.store.chunks import ChunkStore
from api_tool_catalog.sync.client import fetch_api_description
from api_tool_catalog.sync.engine import SwaggerSyncEngine


def _echo_json(data: dict) -> None:
    click.echo(json.dumps(data, indent=2, ensure_ascii=False))


def _parse_params(pairs: tuple[str, ...], data: str | None) -> dict:
    params = {}
    if data:
        try:
            loaded = json.loads(data)
        except json.JSONDecodeError as e:
            raise click.BadParameter(f"invalid JSON: {e}", param_hint="--data")
        if not isinstance(loaded, dict):
            raise click.BadParameter("must be a JSON object", param_hint="--data")
        params.update(loaded)
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise click.BadParameter(f"expected key=value, got {pair!r}", param_hint="-p")
        params[key] = value
    return params


@click.group()
@click.option("--catalog-dir", type=click.Path(path_type=Path), default=None, help="Directory holding the chunk files.")
@click.option("--log-level", default=None, help="Log level (DEBUG, INFO, WARNING, ERROR).")
@click.pass_context
def main(ctx: click.Context, catalog_dir: Path | None, log_level: str | None):
    """API Tool Catalog — sync, discover and execute API operations from a Swagger description."""
    setup_logging(level=log_level or settings.log_level, log_file=settings.log_file)
    store = ChunkStore.from_settings(settings)
    if catalog_dir is not None:
        store.directory = catalog_dir
    ctx.obj = store


@main.command()
@click.argument("source", required=False)
@click.pass_obj
def generate(store: ChunkStore, source: str | None):
    """Regenerate the whole catalog from an API description (URL or file)."""
    source = source or settings.swagger_source
    click.echo(f"Reading API description from {source}...", err=True)
    try:
        doc = asyncio.run(fetch_api_description(source, timeout=settings.sync_timeout))
        written = generate_catalog(doc, store)
    except CatalogError as e:
        raise click.ClickException(str(e))
    click.echo(f"Generated {len(written)} chunk files in {store.directory}", err=True)


@main.command()
@click.argument("source", required=False)
@click.pass_obj
def sync(store: ChunkStore, source: str | None):
    """Refresh stored schemas from the live API description."""
    engine = SwaggerSyncEngine(store, source or settings.swagger_source, timeout=settings.sync_timeout)
    report = asyncio.run(engine.sync())
    _echo_json(report.model_dump())
    if not report.success:
        raise SystemExit(1)


@main.command("list")
@click.option("--method", "method_filter", default=None, help="Only this HTTP method.")
@click.option("--category", "category_filter", default=None, help="Tag substring to match.")
@click.option("--search", "search_term", default=None, help="Text to find in name, description or path.")
@click.option("--details", is_flag=True, help="Include tags, parameter counts and body info.")
@click.pass_obj
def list_command(store: ChunkStore, method_filter, category_filter, search_term, details: bool):
    """List catalog endpoints grouped by category."""
    result = list_endpoints(store, method_filter, category_filter, search_term, details)
    _echo_json(result)
    if not result["success"]:
        raise SystemExit(1)


@main.command()
@click.argument("name")
@click.argument("method")
@click.argument("path")
@click.pass_obj
def describe(store: ChunkStore, name: str, method: str, path: str):
    """Show schemas and execution guidance for one endpoint."""
    result = describe_endpoint(store, name, method, path)
    _echo_json(result)
    if not result["success"]:
        raise SystemExit(1)


@main.command()
@click.argument("method")
@click.argument("path")
@click.option("-p", "--param", "pairs", multiple=True, help="Parameter as key=value (repeatable).")
@click.option("--data", default=None, help="Parameters as a JSON object.")
@click.option("--no-validate", is_flag=True, help="Skip the required-parameter check.")
@click.pass_obj
def execute(store: ChunkStore, method: str, path: str, pairs: tuple[str, ...], data: str | None, no_validate: bool):
    """Execute one catalog endpoint against the configured API."""
    params = _parse_params(pairs, data)

    async def _run():
        async with ApiTransport.from_settings(settings) as transport:
            executor = EndpointExecutor(store, transport, timeout=settings.request_timeout)
            return await executor.execute(path, method, params, validate=not no_validate)

    result = asyncio.run(_run())
    _echo_json(result.to_response())
    if result.is_error:
        raise SystemExit(1)
