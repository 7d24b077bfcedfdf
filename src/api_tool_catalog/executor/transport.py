"""HTTP transport used by the executor to issue the final request.

Thin wrapper around ``httpx.AsyncClient``: no retries, no caching. Non-2xx
responses and network failures become TransportError, timeouts become
RequestTimeoutError.
"""

from typing import Any

import httpx

from api_tool_catalog.config import Settings
from api_tool_catalog.errors import RequestTimeoutError, TransportError
from api_tool_catalog.log import get_logger

logger = get_logger(__name__)


class ApiTransport:
    """Async client for the described API."""

    def __init__(
        self,
        base_url: str,
        token: str = "",
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self.client = client or httpx.AsyncClient(base_url=self.base_url, headers=headers, timeout=timeout)

    @classmethod
    def from_settings(cls, settings: Settings) -> "ApiTransport":
        return cls(settings.api_base_url, settings.api_token, settings.request_timeout)

    async def __aenter__(self) -> "ApiTransport":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.client.aclose()

    async def get(self, url: str, params: dict[str, Any] | None = None) -> Any:
        return await self.request("GET", url, params=params)

    async def post(self, url: str, data: Any = None, params: dict[str, Any] | None = None) -> Any:
        return await self.request("POST", url, params=params, data=data)

    async def put(self, url: str, data: Any = None, params: dict[str, Any] | None = None) -> Any:
        return await self.request("PUT", url, params=params, data=data)

    async def request(
        self,
        method: str,
        url: str,
        params: dict[str, Any] | None = None,
        data: Any = None,
    ) -> Any:
        """Send one request; return decoded JSON, or the body text for non-JSON responses."""
        try:
            response = await self.client.request(
                method,
                url,
                params=params or None,
                json=data,
                timeout=self.timeout,
            )
            response.raise_for_status()
        except httpx.TimeoutException as e:
            raise RequestTimeoutError(f"{method} {url} timed out after {self.timeout}s") from e
        except httpx.HTTPStatusError as e:
            raise TransportError(
                f"{method} {url} failed with status {e.response.status_code}: {e.response.text}",
                status_code=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            raise TransportError(f"{method} {url} failed: {e}") from e

        logger.debug("{} {} -> {}", method, url, response.status_code)
        if "json" in response.headers.get("content-type", ""):
            try:
                return response.json()
            except ValueError:
                return response.text
        return response.text
