"""Fetches the live API description over HTTP(S), or from a local file."""

import asyncio
from pathlib import Path
from typing import Any

import httpx

from api_tool_catalog.errors import SyncError
from api_tool_catalog.log import get_logger
from api_tool_catalog.parser.swagger import load_document, load_document_file

logger = get_logger(__name__)


async def fetch_api_description(
    source: str,
    timeout: float = 30.0,
    client: httpx.AsyncClient | None = None,
) -> dict[str, Any]:
    """Fetch and parse the API description at ``source``.

    ``source`` is an http(s) URL or a path to a JSON/YAML file. Fetch and parse
    failures raise SyncError; exceeding ``timeout`` raises SyncError too.
    """
    if not source.startswith(("http://", "https://")):
        return load_document_file(Path(source))

    logger.info("Fetching API description from {}", source)
    try:
        if client is not None:
            text = await asyncio.wait_for(_get_text(client, source, timeout), timeout)
        else:
            async with httpx.AsyncClient(timeout=timeout) as owned:
                text = await asyncio.wait_for(_get_text(owned, source, timeout), timeout)
    except (asyncio.TimeoutError, httpx.TimeoutException) as e:
        raise SyncError(f"Fetching API description from {source} timed out after {timeout}s") from e
    except httpx.HTTPError as e:
        raise SyncError(f"Failed to fetch API description from {source}: {e}") from e

    return load_document(text)


async def _get_text(client: httpx.AsyncClient, url: str, timeout: float) -> str:
    response = await client.get(url, timeout=timeout)
    response.raise_for_status()
    return response.text
