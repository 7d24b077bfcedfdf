import json
import threading

import httpx
import pytest

from api_tool_catalog.errors import SyncError
from api_tool_catalog.sync.client import fetch_api_description
from api_tool_catalog.sync.engine import SwaggerSyncEngine, schemas_differ
from conftest import make_descriptor


@pytest.fixture
def source(tmp_path, cms_doc):
    path = tmp_path / "swagger.json"
    path.write_text(json.dumps(cms_doc), encoding="utf-8")
    return str(path)


def _find(store, name):
    return next(d for d in store.load_all() if d.name == name)


class TestSchemasDiffer:
    def test_equal_pairs(self):
        assert schemas_differ(({"a": [1]}, {}), ({"a": [1]}, {})) is False

    def test_nested_difference(self):
        assert schemas_differ(({"a": {"b": 1}}, {}), ({"a": {"b": 2}}, {})) is True

    def test_output_difference(self):
        assert schemas_differ(({}, {"type": "object"}), ({}, {})) is True


class TestSyncEngine:
    @pytest.mark.asyncio
    async def test_freshly_generated_catalog_is_a_no_op(self, cms_store, source):
        before = {p.name: p.read_bytes() for p in cms_store.existing_chunks()}

        report = await SwaggerSyncEngine(cms_store, source).sync()

        assert report.success is True
        assert report.updated == []
        assert report.chunks_written == []
        assert report.chunks_checked == ["tools-1.json", "tools-2.json"]
        assert {p.name: p.read_bytes() for p in cms_store.existing_chunks()} == before

    @pytest.mark.asyncio
    async def test_stale_composed_schema_updated_only_in_its_chunk(self, cms_store, cms_doc, source):
        chunk1 = cms_store.chunk_path(1)
        chunk2 = cms_store.chunk_path(2)
        descriptors = cms_store.load(chunk1)
        stale = next(d for d in descriptors if d.name == "createPage")
        stale.input_schema = cms_doc["paths"]["/pages"]["post"]["requestBody"]["content"]["application/json"]["schema"]
        cms_store.write(chunk1, descriptors)
        chunk2_before = chunk2.read_bytes()
        others_before = [d.to_json_dict() for d in descriptors if d.name != "createPage"]

        report = await SwaggerSyncEngine(cms_store, source).sync()

        assert report.success is True
        assert report.updated == ["createPage"]
        assert report.chunks_written == ["tools-1.json"]
        assert chunk2.read_bytes() == chunk2_before
        after = cms_store.load(chunk1)
        assert [d.to_json_dict() for d in after if d.name != "createPage"] == others_before
        updated = _find(cms_store, "createPage")
        assert "allOf" not in updated.input_schema
        assert updated.input_schema["required"] == ["title", "slug"]

    @pytest.mark.asyncio
    async def test_unmatched_descriptor_left_alone(self, cms_store, source):
        chunk2 = cms_store.chunk_path(2)
        retired = make_descriptor("retired", path="/retired", input_schema={"type": "string"})
        cms_store.write(chunk2, cms_store.load(chunk2) + [retired])
        before = chunk2.read_bytes()

        report = await SwaggerSyncEngine(cms_store, source).sync()

        assert report.unmatched == ["retired"]
        assert "retired" in report.invalid
        assert chunk2.read_bytes() == before
        assert _find(cms_store, "retired").input_schema == {"type": "string"}

    @pytest.mark.asyncio
    async def test_invalid_live_schema_reported_but_written(self, store, tmp_path):
        doc = {
            "paths": {
                "/tags": {
                    "get": {
                        "operationId": "listTags",
                        "responses": {
                            "200": {"content": {"application/json": {"schema": {"type": "array"}}}}
                        },
                    }
                }
            }
        }
        path = tmp_path / "tags.yaml"
        path.write_text(json.dumps(doc))
        store.write(store.chunk_path(1), [make_descriptor("listTags", path="/tags")])

        report = await SwaggerSyncEngine(store, str(path)).sync()

        assert report.success is True
        assert report.updated == ["listTags"]
        assert "output_schema" in report.invalid["listTags"]
        assert _find(store, "listTags").output_schema == {"type": "array"}

    @pytest.mark.asyncio
    async def test_chunks_read_off_the_event_loop(self, cms_store, source, monkeypatch):
        loop_thread = threading.get_ident()
        real_load = cms_store.load
        threads = []

        def recording_load(path):
            threads.append(threading.get_ident())
            return real_load(path)

        monkeypatch.setattr(cms_store, "load", recording_load)
        report = await SwaggerSyncEngine(cms_store, source).sync()

        assert report.success is True
        assert len(threads) == 2
        assert loop_thread not in threads

    @pytest.mark.asyncio
    async def test_unreadable_source_aborts(self, cms_store, tmp_path):
        before = cms_store.chunk_path(1).read_bytes()
        report = await SwaggerSyncEngine(cms_store, str(tmp_path / "missing.json")).sync()
        assert report.success is False
        assert "missing.json" in report.error
        assert report.chunks_checked == []
        assert cms_store.chunk_path(1).read_bytes() == before

    @pytest.mark.asyncio
    async def test_corrupt_chunk_aborts(self, cms_store, source):
        cms_store.chunk_path(2).write_text("not json")
        report = await SwaggerSyncEngine(cms_store, source).sync()
        assert report.success is False
        assert "tools-2.json" in report.error


class TestFetchApiDescription:
    @pytest.mark.asyncio
    async def test_fetch_over_http(self, cms_doc):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/swagger.json"
            return httpx.Response(200, json=cms_doc)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            doc = await fetch_api_description("https://api.example.com/swagger.json", client=client)
        assert "/pages/{id}" in doc["paths"]

    @pytest.mark.asyncio
    async def test_http_error_raises_sync_error(self):
        handler = lambda request: httpx.Response(503, text="unavailable")
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            with pytest.raises(SyncError, match="Failed to fetch"):
                await fetch_api_description("https://api.example.com/swagger.json", client=client)

    @pytest.mark.asyncio
    async def test_timeout_raises_sync_error(self):
        def handler(request):
            raise httpx.ReadTimeout("slow", request=request)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            with pytest.raises(SyncError, match="timed out"):
                await fetch_api_description("https://api.example.com/swagger.json", client=client)

    @pytest.mark.asyncio
    async def test_invalid_json_raises_sync_error(self):
        handler = lambda request: httpx.Response(200, text="<html>not swagger</html>")
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            with pytest.raises(SyncError):
                await fetch_api_description("https://api.example.com/swagger.json", client=client)
