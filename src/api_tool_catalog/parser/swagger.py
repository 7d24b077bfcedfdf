"""OpenAPI / Swagger document parser.

Reads OpenAPI 3.x and Swagger 2.0 documents (JSON or YAML) into RawOperation
models and derives the flattened input/output schemas stored in the catalog.
"""

from pathlib import Path
from typing import Any

import yaml

from api_tool_catalog.errors import SyncError
from api_tool_catalog.models import SUPPORTED_METHODS
from api_tool_catalog.schema.flattener import flatten
from api_tool_catalog.schema.refs import resolve_refs

from .base import Param, RawOperation


def load_document(text: str) -> dict[str, Any]:
    """Parse an API description and check it has a ``paths`` mapping."""
    try:
        doc = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise SyncError(f"Failed to parse API description: {e}") from e

    if not isinstance(doc, dict) or not isinstance(doc.get("paths"), dict):
        raise SyncError("Failed to parse API description: no 'paths' object found")
    return doc


def load_document_file(file_path: Path) -> dict[str, Any]:
    try:
        text = file_path.read_text(encoding="utf-8")
    except OSError as e:
        raise SyncError(f"Failed to read API description {file_path}: {e}") from e
    return load_document(text)


def parse_operations(doc: dict[str, Any]) -> list[RawOperation]:
    """Parse every supported operation in the document, in document order."""
    operations = []
    for path, path_item in doc.get("paths", {}).items():
        if not isinstance(path_item, dict):
            continue
        for method, operation in path_item.items():
            if method.upper() not in SUPPORTED_METHODS or not isinstance(operation, dict):
                continue
            operations.append(_parse_operation(doc, path, method, path_item, operation))
    return operations


def find_operation(doc: dict[str, Any], path: str, method: str) -> RawOperation | None:
    """Look up one operation by exact path and case-insensitive method."""
    path_item = doc.get("paths", {}).get(path)
    if not isinstance(path_item, dict):
        return None
    for key, operation in path_item.items():
        if key.lower() == method.strip().lower() and isinstance(operation, dict):
            return _parse_operation(doc, path, key, path_item, operation)
    return None


def build_input_schema(operation: RawOperation) -> dict[str, Any]:
    """Merge non-body parameters and the JSON request body into one flat schema."""
    properties: dict[str, Any] = {}
    required: list[str] = []
    for param in operation.parameters:
        prop = {"type": param.param_type, "in": param.location}
        if param.description:
            prop["description"] = param.description
        properties[param.name] = prop
        if param.required:
            required.append(param.name)

    params_schema: dict[str, Any] = {"type": "object", "properties": properties}
    if required:
        params_schema["required"] = required

    parts = [params_schema]
    if operation.request_schema:
        parts.append(operation.request_schema)
    return flatten({"allOf": parts})


def build_output_schema(operation: RawOperation) -> dict[str, Any]:
    if not operation.response_schema:
        return {"type": "object"}
    return flatten(operation.response_schema)


def _parse_operation(
    doc: dict[str, Any],
    path: str,
    method: str,
    path_item: dict[str, Any],
    operation: dict[str, Any],
) -> RawOperation:
    raw_params = _merge_parameters(
        resolve_refs(path_item.get("parameters", []), doc),
        resolve_refs(operation.get("parameters", []), doc),
    )

    request_schema = None
    params = []
    for p in raw_params:
        if not isinstance(p, dict) or "name" not in p:
            continue
        if p.get("in") == "body":
            # Swagger 2.0 body parameter
            request_schema = p.get("schema")
            continue
        schema = p.get("schema", {})
        params.append(
            Param(
                name=p["name"],
                location=p.get("in", "query"),
                required=bool(p.get("required", False)),
                param_type=p.get("type") or schema.get("type") or "string",
                description=p.get("description") or "",
            )
        )

    request_body = resolve_refs(operation.get("requestBody"), doc)
    if request_body:
        request_schema = _content_schema(request_body)

    return RawOperation(
        method=method.upper(),
        path=path,
        operation_id=operation.get("operationId"),
        summary=operation.get("summary") or "",
        description=operation.get("description") or "",
        tags=operation.get("tags") or [],
        parameters=params,
        request_schema=resolve_refs(request_schema, doc) if request_schema else None,
        response_schema=_success_schema(operation.get("responses") or {}, doc),
    )


def _merge_parameters(shared: list, own: list) -> list:
    """Operation-level parameters override path-level ones with the same name and location."""
    merged = {}
    for p in list(shared or []) + list(own or []):
        if isinstance(p, dict):
            merged[(p.get("name"), p.get("in"))] = p
    return list(merged.values())


def _content_schema(body: dict[str, Any]) -> dict[str, Any] | None:
    content = body.get("content", {})
    if not isinstance(content, dict):
        return None
    for content_type in ("application/json", "multipart/form-data"):
        if content_type in content:
            return content[content_type].get("schema")
    # Fallback: return first available schema
    for ct_data in content.values():
        if isinstance(ct_data, dict):
            return ct_data.get("schema")
    return None


def _success_schema(responses: dict[str, Any], doc: dict[str, Any]) -> dict[str, Any] | None:
    response = responses.get("200", responses.get(200))
    response = resolve_refs(response, doc)
    if not isinstance(response, dict):
        return None
    if "schema" in response:
        # Swagger 2.0
        return response["schema"]
    return _content_schema(response)
