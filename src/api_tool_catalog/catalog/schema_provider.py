"""Schema provider — explains one endpoint's schemas and how to execute it.

Sits between discovery (``list_endpoints``) and execution: given the exact
name, method and path picked from the listing, it returns the normalized
schemas, an analysis of the parameters and an example executor call.
"""

import re
from typing import Any

from api_tool_catalog.log import get_logger
from api_tool_catalog.models import BODY_METHODS, SUPPORTED_METHODS, OperationDescriptor
from api_tool_catalog.store.chunks import ChunkStore

logger = get_logger(__name__)

PLACEHOLDER_RE = re.compile(r"\{([^}]+)\}")

METHOD_INFO = {
    "GET": {"description": "Retrieve data", "uses_query_params": True, "uses_body": False, "idempotent": True},
    "POST": {"description": "Create new resource", "uses_query_params": False, "uses_body": True, "idempotent": False},
    "PUT": {"description": "Update/replace resource", "uses_query_params": False, "uses_body": True, "idempotent": True},
    "DELETE": {"description": "Remove resource", "uses_query_params": True, "uses_body": False, "idempotent": True},
    "PATCH": {"description": "Partially update resource", "uses_query_params": True, "uses_body": False, "idempotent": False},
}


def normalize_schema(schema: Any) -> dict[str, Any]:
    if not isinstance(schema, dict):
        schema = {}
    properties = schema.get("properties") or {}
    required = schema.get("required") or []
    return {
        "type": schema.get("type", "object"),
        "properties": properties,
        "required": required,
        "description": schema.get("description", ""),
        "property_count": len(properties),
        "required_count": len(required),
        "optional_count": len(properties) - len(required),
    }


def extract_path_parameters(path: str) -> list[dict[str, Any]]:
    return [
        {"name": m.group(1), "placeholder": m.group(0), "position": m.start()}
        for m in PLACEHOLDER_RE.finditer(path)
    ]


def analyze_parameters(descriptor: OperationDescriptor) -> dict[str, Any]:
    properties = descriptor.input_schema.get("properties") or {}
    required = descriptor.input_schema.get("required") or []

    type_counts: dict[str, int] = {}
    complex_types = []
    for name, prop in properties.items():
        prop_type = prop.get("type", "unknown") if isinstance(prop, dict) else "unknown"
        type_counts[prop_type] = type_counts.get(prop_type, 0) + 1
        if prop_type in ("object", "array"):
            complex_types.append({"name": name, "type": prop_type, "schema": prop})

    method = descriptor.method.upper()
    return {
        "total_parameters": len(properties),
        "required_parameters": [_param_detail(n, properties.get(n)) for n in required],
        "optional_parameters": [_param_detail(n, p) for n, p in properties.items() if n not in required],
        "path_parameters": extract_path_parameters(descriptor.path),
        "type_analysis": {
            "type_counts": type_counts,
            "complex_types": complex_types,
            "has_complex_types": bool(complex_types),
        },
        "requires_body": method in BODY_METHODS,
        "method_info": METHOD_INFO.get(
            method,
            {"description": "Unknown method", "uses_query_params": False, "uses_body": False, "idempotent": False},
        ),
    }


def example_value(param: dict[str, Any]) -> Any:
    if "example" in param:
        return param["example"]
    param_type = param.get("type", "string")
    if param_type == "string":
        if param.get("format") == "date":
            return "2024-01-15"
        if param.get("format") == "email":
            return "user@example.com"
        return "example_value"
    if param_type in ("number", "integer"):
        return 42
    if param_type == "boolean":
        return True
    if param_type == "array":
        return ["item1", "item2"]
    if param_type == "object":
        return {}
    return "value"


def execution_instructions(descriptor: OperationDescriptor, info: dict[str, Any]) -> dict[str, Any]:
    required = info["required_parameters"]
    optional = info["optional_parameters"]

    example = {p["name"]: example_value(p) for p in required}
    if optional:
        example[optional[0]["name"]] = example_value(optional[0])

    notes = []
    if info["path_parameters"]:
        notes.append("Path parameters will be automatically interpolated into the URL")
    if info["method_info"]["uses_body"]:
        notes.append("Body parameters will be sent as JSON in the request body")
    else:
        notes.append("Parameters will be sent as query parameters")
    if info["type_analysis"]["has_complex_types"]:
        notes.append("This endpoint has complex object/array parameters - review the schema carefully")
    if required:
        notes.append(f"{len(required)} parameters are required for this endpoint")

    overview = "\n".join(
        [
            f"Execute {descriptor.method} request to {descriptor.path}",
            f"Description: {descriptor.description}",
            f"Method: {info['method_info']['description']}",
            f"Requires body data: {'Yes' if info['requires_body'] else 'No'}",
            f"Total parameters: {info['total_parameters']}",
            f"Required parameters: {len(required)}",
        ]
    )

    return {
        "next_tool": "endpoint_executor",
        "overview": overview,
        "parameter_guidance": {
            "required": [_guidance(p) for p in required],
            "optional": [_guidance(p) for p in optional],
            "path_params": [
                {"name": p["name"], "placeholder": p["placeholder"], "description": f"Path parameter: {p['name']}"}
                for p in info["path_parameters"]
            ],
            "body_structure": {"type": "object", "properties": {}} if info["requires_body"] else None,
        },
        "example_call": {
            "tool_name": "endpoint_executor",
            "parameters": {"path": descriptor.path, "method": descriptor.method, "parameters": example},
            "description": f"Example call to execute {descriptor.method} {descriptor.path}",
        },
        "validation_notes": notes,
    }


def describe_endpoint(store: ChunkStore, name: str, method: str, path: str) -> dict[str, Any]:
    """Describe the descriptor matching name, method and path exactly."""
    errors = []
    if not name or not name.strip():
        errors.append("name is required")
    if not method or method.strip().upper() not in SUPPORTED_METHODS:
        errors.append(f"method must be one of: {', '.join(SUPPORTED_METHODS)}")
    if not path or not path.strip():
        errors.append("path is required")
    elif not path.strip().startswith("/"):
        errors.append("path must start with '/'")
    if errors:
        return {
            "success": False,
            "error": "Invalid input",
            "message": "Input validation failed",
            "validation_errors": errors,
            "suggestion": "Please check the required parameters and try again",
        }

    name, method, path = name.strip(), method.strip().upper(), path.strip()
    try:
        descriptors = store.load_all()
    except Exception as e:
        logger.error("Schema provider failed to load catalog: {}", e)
        return {
            "success": False,
            "error": "Schema retrieval failed",
            "message": str(e),
            "suggestion": "Please verify the endpoint details and try again",
        }

    match = next(
        (d for d in descriptors if d.name == name and d.method.upper() == method and d.path == path),
        None,
    )
    if match is None:
        return _not_found(descriptors, name, method, path)

    info = analyze_parameters(match)
    return {
        "success": True,
        "endpoint_info": {
            "name": match.name,
            "method": match.method,
            "path": match.path,
            "description": match.description,
        },
        "input_schema": normalize_schema(match.input_schema),
        "output_schema": normalize_schema(match.output_schema),
        "parameter_info": info,
        "execution_instructions": execution_instructions(match, info),
    }


def _not_found(descriptors: list[OperationDescriptor], name: str, method: str, path: str) -> dict[str, Any]:
    suggestions = []
    groups = [
        ("name_match", "Found endpoints with same name but different method/path:", lambda d: d.name == name),
        ("method_match", "Found endpoints with same method but different name/path:", lambda d: d.method.upper() == method),
        ("path_match", "Found endpoints with same path but different name/method:", lambda d: d.path == path),
    ]
    for kind, message, predicate in groups:
        found = [d for d in descriptors if predicate(d)][:3]
        if found:
            suggestions.append(
                {
                    "type": kind,
                    "message": message,
                    "endpoints": [
                        {"name": d.name, "method": d.method, "path": d.path, "description": d.description}
                        for d in found
                    ],
                }
            )
    return {
        "success": False,
        "error": "Endpoint not found",
        "message": f"No endpoint found matching: {method} {path} ({name})",
        "suggestions": suggestions,
        "help": "Use endpoint_lister to see all available endpoints",
    }


def _param_detail(name: str, prop: Any) -> dict[str, Any]:
    return {"name": name, **(prop if isinstance(prop, dict) else {})}


def _guidance(param: dict[str, Any]) -> dict[str, Any]:
    return {
        "name": param["name"],
        "type": param.get("type", "string"),
        "description": param.get("description") or "No description provided",
        "format": param.get("format", ""),
        "example": example_value(param),
    }
