"""Validates that stored descriptors carry well-formed object schemas."""

from typing import Any

from api_tool_catalog.models import OperationDescriptor


def is_valid_schema(schema: Any) -> bool:
    """An object schema (or untyped one) whose ``properties``, if present, is a mapping."""
    if not isinstance(schema, dict):
        return False
    if "type" in schema and schema["type"] != "object":
        return False
    if "properties" in schema and not isinstance(schema["properties"], dict):
        return False
    return True


def validate_descriptor(descriptor: OperationDescriptor) -> str | None:
    """Return an error message for an invalid descriptor, or None."""
    problems = []
    if not is_valid_schema(descriptor.input_schema):
        problems.append("input_schema is not an object schema")
    if not is_valid_schema(descriptor.output_schema):
        problems.append("output_schema is not an object schema")
    return "; ".join(problems) or None


def validate_descriptors(descriptors: list[OperationDescriptor]) -> dict[str, str]:
    """Check every descriptor's schemas.

    Returns dict of {descriptor name: error_message} for descriptors with errors.
    """
    errors = {}
    for descriptor in descriptors:
        error = validate_descriptor(descriptor)
        if error:
            errors[descriptor.name] = error
    return errors
