"""Local ``$ref`` resolution against the document a schema came from."""

from typing import Any


def resolve_refs(schema: Any, document: dict[str, Any], _seen: frozenset[str] = frozenset()) -> Any:
    """Return a copy of ``schema`` with every local ``#/...`` reference inlined.

    A reference that points back into its own resolution chain becomes a
    placeholder object schema, as does one that cannot be found.
    """
    if isinstance(schema, list):
        return [resolve_refs(item, document, _seen) for item in schema]
    if not isinstance(schema, dict):
        return schema

    ref = schema.get("$ref")
    if isinstance(ref, str):
        if ref in _seen:
            return {"type": "object", "description": f"Circular reference detected: {ref}"}
        target = _lookup(ref, document)
        if target is None:
            return {"type": "object", "description": f"Unresolved reference: {ref}"}
        return resolve_refs(target, document, _seen | {ref})

    return {key: resolve_refs(value, document, _seen) for key, value in schema.items()}


def _lookup(ref: str, document: dict[str, Any]) -> Any:
    if not ref.startswith("#/"):
        return None
    current: Any = document
    for token in ref[2:].split("/"):
        token = token.replace("~1", "/").replace("~0", "~")
        if not isinstance(current, dict) or token not in current:
            return None
        current = current[token]
    return current
