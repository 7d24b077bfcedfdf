import json
from pathlib import Path

import pytest

from api_tool_catalog.generator.catalog import generate_catalog
from api_tool_catalog.models import OperationDescriptor
from api_tool_catalog.store.chunks import ChunkStore

FIXTURES = Path(__file__).parent / "fixtures"


@pytest.fixture
def cms_doc() -> dict:
    return json.loads((FIXTURES / "cms.json").read_text(encoding="utf-8"))


@pytest.fixture
def store(tmp_path) -> ChunkStore:
    return ChunkStore(tmp_path / "tools", chunk_count=5, max_entries=3)


@pytest.fixture
def cms_store(store, cms_doc) -> ChunkStore:
    generate_catalog(cms_doc, store)
    return store


def make_descriptor(name: str, method: str = "GET", path: str | None = None, **kwargs) -> OperationDescriptor:
    return OperationDescriptor(name=name, method=method, path=path or f"/{name}", **kwargs)
