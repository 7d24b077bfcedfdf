import json

import httpx
import pytest

from api_tool_catalog.config import Settings
from api_tool_catalog.errors import RequestTimeoutError, TransportError
from api_tool_catalog.executor.transport import ApiTransport


def _transport(handler) -> ApiTransport:
    client = httpx.AsyncClient(base_url="https://cms.example.com/api", transport=httpx.MockTransport(handler))
    return ApiTransport("https://cms.example.com/api", client=client)


class TestApiTransport:
    @pytest.mark.asyncio
    async def test_get_sends_query_and_decodes_json(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/api/pages/42"
            assert request.url.params["lang"] == "en"
            return httpx.Response(200, json={"id": "42"})

        async with _transport(handler) as transport:
            assert await transport.get("/pages/42", {"lang": "en"}) == {"id": "42"}

    @pytest.mark.asyncio
    async def test_post_sends_json_body(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.method == "POST"
            assert json.loads(request.content) == {"title": "Home"}
            return httpx.Response(201, json={"created": True})

        async with _transport(handler) as transport:
            assert await transport.post("/pages", {"title": "Home"}) == {"created": True}

    @pytest.mark.asyncio
    async def test_text_response(self):
        handler = lambda request: httpx.Response(200, text="plain", headers={"content-type": "text/plain"})
        async with _transport(handler) as transport:
            assert await transport.request("DELETE", "/pages/1") == "plain"

    @pytest.mark.asyncio
    async def test_error_status_raises_with_code(self):
        handler = lambda request: httpx.Response(404, text="gone")
        async with _transport(handler) as transport:
            with pytest.raises(TransportError) as exc:
                await transport.get("/pages/1")
        assert exc.value.status_code == 404
        assert "gone" in str(exc.value)

    @pytest.mark.asyncio
    async def test_timeout_raises(self):
        def handler(request):
            raise httpx.ConnectTimeout("slow", request=request)

        async with _transport(handler) as transport:
            with pytest.raises(RequestTimeoutError):
                await transport.get("/pages")

    @pytest.mark.asyncio
    async def test_network_error_raises(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        async with _transport(handler) as transport:
            with pytest.raises(TransportError, match="refused"):
                await transport.get("/pages")

    @pytest.mark.asyncio
    async def test_from_settings_sets_auth_header(self):
        transport = ApiTransport.from_settings(
            Settings(api_base_url="https://cms.example.com/", api_token="secret", request_timeout=5)
        )
        try:
            assert transport.base_url == "https://cms.example.com"
            assert transport.client.headers["Authorization"] == "Bearer secret"
        finally:
            await transport.aclose()
