"""Catalog generator — builds the full set of descriptors from an API description."""

import re
from pathlib import Path
from typing import Any

from api_tool_catalog.generator.description import enrich_description
from api_tool_catalog.log import get_logger
from api_tool_catalog.models import OperationDescriptor
from api_tool_catalog.parser.base import RawOperation
from api_tool_catalog.parser.swagger import build_input_schema, build_output_schema, parse_operations
from api_tool_catalog.store.chunks import ChunkStore

logger = get_logger(__name__)


def to_tool_name(operation_id: str) -> str:
    """Normalize an operation id into a descriptor name."""
    return re.sub(r"[^a-zA-Z0-9_]", "_", operation_id)


def build_descriptor(operation: RawOperation, name: str | None = None) -> OperationDescriptor:
    fields: dict[str, Any] = {
        "name": name or to_tool_name(operation.operation_id or ""),
        "description": enrich_description(operation),
        "method": operation.method,
        "path": operation.path,
        "input_schema": build_input_schema(operation),
        "output_schema": build_output_schema(operation),
        "tags": list(operation.tags),
    }
    if operation.summary:
        fields["summary"] = operation.summary
    if operation.description:
        fields["endpoint_description"] = operation.description
    return OperationDescriptor(**fields)


def build_catalog(doc: dict[str, Any]) -> list[OperationDescriptor]:
    """Build descriptors for every operation that has an operation id.

    Names stay unique: a repeated name gets a ``_2``, ``_3``... suffix.
    """
    descriptors = []
    seen: set[str] = set()
    for operation in parse_operations(doc):
        if not operation.operation_id:
            logger.warning("Skipping {} {}: no operationId", operation.method, operation.path)
            continue

        name = to_tool_name(operation.operation_id)
        if name in seen:
            n = 2
            while f"{name}_{n}" in seen:
                n += 1
            logger.warning("Duplicate tool name {}; using {}_{}", name, name, n)
            name = f"{name}_{n}"
        seen.add(name)

        descriptors.append(build_descriptor(operation, name))
    return descriptors


def generate_catalog(doc: dict[str, Any], store: ChunkStore) -> list[Path]:
    """Regenerate the whole catalog into the store. Returns the chunk files written."""
    descriptors = build_catalog(doc)
    written = store.write_all(descriptors)
    logger.info("Generated {} descriptors in {} chunk files", len(descriptors), len(written))
    return written
