"""Endpoint discovery: filter, search and categorize the stored catalog."""

from typing import Any

from api_tool_catalog.errors import CatalogValidationError
from api_tool_catalog.log import get_logger
from api_tool_catalog.models import BODY_METHODS, SUPPORTED_METHODS, OperationDescriptor
from api_tool_catalog.store.chunks import ChunkStore

logger = get_logger(__name__)

SEGMENT_CATEGORIES = {
    "pages": "content",
    "assets": "media",
    "users": "user-management",
    "workflows": "workflow",
    "schemas": "schema",
    "site": "site-management",
}

MIN_SEARCH_LENGTH = 2

INSTRUCTIONS = """\
Available endpoints are organized by category. To proceed:

1. Review the endpoint listing above
2. Select the most appropriate endpoint for your task
3. Use the 'endpoint_schema_provider' tool with the selected endpoint details:
   - name: exact name from the listing
   - method: HTTP method (GET, POST, PUT, DELETE, PATCH)
   - path: the endpoint path

Example:
{
  "name": "getPageById",
  "method": "GET",
  "path": "/pages/{id}"
}

The schema provider returns the input/output schemas and execution instructions."""

NEXT_STEP_INSTRUCTION = (
    "To proceed, call the 'endpoint_schema_provider' tool with the selected endpoint's "
    "name, method, and path as shown above. It returns the input/output schemas and "
    "instructions for execution."
)


def determine_category(descriptor: OperationDescriptor) -> str:
    """First tag, else a category derived from the first path segment, else 'general'."""
    if descriptor.tags:
        return descriptor.tags[0].lower()
    segments = [s for s in descriptor.path.split("/") if s]
    if segments:
        first = segments[0].lower()
        return SEGMENT_CATEGORIES.get(first, first)
    return "general"


def has_path_params(path: str) -> bool:
    return "{" in path and "}" in path


def _sort_key(descriptor: OperationDescriptor) -> tuple[int, str]:
    method = descriptor.method.upper()
    rank = SUPPORTED_METHODS.index(method) if method in SUPPORTED_METHODS else len(SUPPORTED_METHODS)
    return rank, descriptor.path


class EndpointCatalog:
    """Read-only in-memory index over the stored descriptors."""

    def __init__(self, descriptors: list[OperationDescriptor]):
        self.descriptors = list(descriptors)

    @classmethod
    def from_store(cls, store: ChunkStore) -> "EndpointCatalog":
        return cls(store.load_all())

    def available_categories(self) -> list[str]:
        return sorted({determine_category(d) for d in self.descriptors})

    def list(
        self,
        method_filter: str | None = None,
        category_filter: str | None = None,
        search_term: str | None = None,
        include_details: bool = False,
    ) -> dict[str, Any]:
        """Filter, sort and group descriptors.

        Returns ``{"categories": [...], "endpoints": {category: [entry, ...]}, "total": n}``.
        Raises CatalogValidationError for an unknown method or a too-short search term.
        """
        method = method_filter.strip().upper() if method_filter and method_filter.strip() else None
        category = category_filter.strip().lower() if category_filter and category_filter.strip() else None
        term = search_term.strip().lower() if search_term and search_term.strip() else None

        if method and method not in SUPPORTED_METHODS:
            raise CatalogValidationError(f"Invalid method filter: {method_filter}")
        if term is not None and len(term) < MIN_SEARCH_LENGTH:
            raise CatalogValidationError(
                f"Search term must be at least {MIN_SEARCH_LENGTH} characters"
            )

        matches = [
            d
            for d in self.descriptors
            if (not method or d.method.upper() == method)
            and (not category or any(category in tag.lower() for tag in d.tags))
            and (
                not term
                or term in d.name.lower()
                or term in d.description.lower()
                or term in d.path.lower()
            )
        ]
        matches.sort(key=_sort_key)

        grouped: dict[str, list[dict[str, Any]]] = {}
        for descriptor in matches:
            grouped.setdefault(determine_category(descriptor), []).append(
                self._format(descriptor, include_details)
            )

        return {"categories": list(grouped), "endpoints": grouped, "total": len(matches)}

    def _format(self, descriptor: OperationDescriptor, include_details: bool) -> dict[str, Any]:
        entry: dict[str, Any] = {
            "name": descriptor.name,
            "method": descriptor.method,
            "path": descriptor.path,
            "description": descriptor.description,
        }
        if include_details:
            properties = descriptor.input_schema.get("properties")
            entry.update(
                {
                    "tags": list(descriptor.tags),
                    "has_path_params": has_path_params(descriptor.path),
                    "requires_body": descriptor.method.upper() in BODY_METHODS,
                    "parameter_count": len(properties) if isinstance(properties, dict) else 0,
                }
            )
        return entry


def list_endpoints(
    store: ChunkStore,
    method_filter: str | None = None,
    category_filter: str | None = None,
    search_term: str | None = None,
    include_details: bool = False,
) -> dict[str, Any]:
    """Discovery call. Always returns a result dict; failures carry recovery hints."""
    try:
        catalog = EndpointCatalog.from_store(store)
        listing = catalog.list(method_filter, category_filter, search_term, include_details)
    except Exception as e:
        logger.warning("Endpoint listing failed: {}", e)
        return {
            "success": False,
            "error": "Listing failed",
            "message": str(e) or "Unable to generate endpoint listing",
            "available_filters": {
                "methods": list(SUPPORTED_METHODS),
                "categories": _known_categories(store),
            },
            "suggestion": "Please check your filters or try again.",
        }

    return {
        "success": True,
        "total_endpoints": listing["total"],
        "categories": listing["categories"],
        "endpoints": listing["endpoints"],
        "instructions": INSTRUCTIONS,
        "next_step_instruction": NEXT_STEP_INSTRUCTION,
    }


def _known_categories(store: ChunkStore) -> list[str]:
    try:
        return EndpointCatalog.from_store(store).available_categories()
    except Exception:
        return []
