"""allOf flattening for JSON Schemas.

Collapses ``allOf`` compositions into one schema with a single ``properties``
map and a single ``required`` list. On a property name collision the later
sub-schema's definition wins verbatim, even when its type differs.
"""

from typing import Any

COMPOSITION_KEY = "allOf"


def resolve_property_conflicts(property_maps: list[dict[str, Any]]) -> dict[str, Any]:
    """Merge property maps left to right; the last occurrence of a key wins."""
    merged: dict[str, Any] = {}
    for props in property_maps:
        if isinstance(props, dict):
            merged.update(props)
    return merged


def flatten(schema: Any) -> dict[str, Any]:
    """Flatten ``allOf`` compositions in a schema, recursively.

    Never raises: anything that is not a mapping, or any failure while
    flattening, yields an empty schema ``{}``.
    """
    try:
        return _flatten(schema)
    except Exception:
        return {}


def _flatten(schema: Any) -> dict[str, Any]:
    if not isinstance(schema, dict):
        return {}

    if not isinstance(schema.get(COMPOSITION_KEY), list):
        result = dict(schema)
        if isinstance(result.get("properties"), dict):
            result["properties"] = _flatten_properties(result["properties"])
        return result

    parts = [_flatten(sub) for sub in schema[COMPOSITION_KEY]]

    properties = resolve_property_conflicts([p.get("properties") or {} for p in parts])

    required: list[str] = []
    for part in parts:
        if isinstance(part.get("required"), list):
            for name in part["required"]:
                if name not in required:
                    required.append(name)

    result: dict[str, Any] = {}
    for part in parts:
        for key, value in part.items():
            if key in ("properties", "required", COMPOSITION_KEY):
                continue
            result[key] = value

    if properties:
        result["properties"] = _flatten_properties(properties)
    if required:
        result["required"] = required
    return result


def _flatten_properties(properties: dict[str, Any]) -> dict[str, Any]:
    return {
        name: _flatten(value) if isinstance(value, dict) else value
        for name, value in properties.items()
    }
