"""Description enrichment for generated descriptors.

Tries each strategy in order (summary, tag + description, humanized
operation id) and falls back to ``METHOD /path``.
"""

import re
from collections.abc import Callable

from api_tool_catalog.parser.base import RawOperation


def from_summary(operation: RawOperation) -> str | None:
    return operation.summary.strip() or None


def from_tag(operation: RawOperation) -> str | None:
    if not operation.tags or not operation.tags[0].strip():
        return None
    tag = operation.tags[0].strip()
    if operation.description.strip():
        return f"{tag}: {operation.description.strip()}"
    return f"{tag} {operation.method} operation"


def from_operation_id(operation: RawOperation) -> str | None:
    if not operation.operation_id or not operation.operation_id.strip():
        return None
    words = re.sub(r"([a-z0-9])([A-Z])", r"\1 \2", operation.operation_id.strip())
    words = re.sub(r"[_\-.]+", " ", words).strip()
    return words[:1].upper() + words[1:].lower() if words else None


STRATEGIES: list[Callable[[RawOperation], str | None]] = [
    from_summary,
    from_tag,
    from_operation_id,
]


def enrich_description(operation: RawOperation) -> str:
    for strategy in STRATEGIES:
        result = strategy(operation)
        if result:
            return result
    return f"{operation.method} {operation.path}"
