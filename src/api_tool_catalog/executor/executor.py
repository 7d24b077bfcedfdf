"""Endpoint executor — resolves a catalog operation and dispatches the call.

Steps: check the input shape, resolve the exact (path, method) pair, check
required parameters, split parameters into path/query/body buckets, fill in
the path template and hand the request to the transport.
"""

import asyncio
import json
import re
from collections.abc import Mapping
from typing import Any, Protocol
from urllib.parse import quote

from api_tool_catalog.errors import (
    InputError,
    InterpolationError,
    MissingParametersError,
    OperationNotFoundError,
    RequestTimeoutError,
)
from api_tool_catalog.log import get_logger
from api_tool_catalog.models import SUPPORTED_METHODS, ExecutionResult, OperationDescriptor
from api_tool_catalog.store.chunks import ChunkStore

logger = get_logger(__name__)

FORBIDDEN_PATH_CHARS = ("<", ">", '"', "|", "?", "*")
QUERY_METHODS = ("GET", "DELETE", "PATCH")
PLACEHOLDER_RE = re.compile(r"\{([^}]+)\}")


class Transport(Protocol):
    async def get(self, url: str, params: dict[str, Any] | None = None) -> Any: ...

    async def post(self, url: str, data: Any = None, params: dict[str, Any] | None = None) -> Any: ...

    async def put(self, url: str, data: Any = None, params: dict[str, Any] | None = None) -> Any: ...

    async def request(
        self, method: str, url: str, params: dict[str, Any] | None = None, data: Any = None
    ) -> Any: ...


def validate_input(path: Any, method: Any, parameters: Any) -> tuple[str, str, dict[str, Any]]:
    """Normalize the call arguments, raising one InputError listing every problem."""
    errors = []
    if not isinstance(path, str) or not path.strip():
        errors.append("Invalid or missing endpoint path")
    elif not path.strip().startswith("/") or any(c in path for c in FORBIDDEN_PATH_CHARS):
        errors.append(f"Invalid endpoint path: {path}")
    if not isinstance(method, str) or method.strip().upper() not in SUPPORTED_METHODS:
        errors.append(f"Invalid or missing HTTP method (expected one of {', '.join(SUPPORTED_METHODS)})")
    if parameters is not None and (
        not isinstance(parameters, Mapping) or not all(isinstance(k, str) for k in parameters)
    ):
        errors.append("parameters must be a mapping of parameter names to values")
    if errors:
        raise InputError("; ".join(errors))
    return path.strip(), method.strip().upper(), dict(parameters or {})


def resolve_endpoint(path: str, method: str, descriptors: list[OperationDescriptor]) -> OperationDescriptor:
    for descriptor in descriptors:
        if descriptor.key == (method, path):
            return descriptor
    raise OperationNotFoundError(method, path)


def check_required(parameters: Mapping[str, Any], descriptor: OperationDescriptor) -> None:
    required = descriptor.input_schema.get("required") or []
    missing = [name for name in required if name not in parameters]
    if missing:
        raise MissingParametersError(missing)


def extract_placeholders(path: str) -> list[str]:
    return PLACEHOLDER_RE.findall(path)


def partition_parameters(
    parameters: Mapping[str, Any], path: str, method: str
) -> tuple[dict[str, Any], dict[str, Any], dict[str, Any]]:
    """Split parameters into (path, query, body) buckets."""
    placeholders = set(extract_placeholders(path))
    path_params: dict[str, Any] = {}
    query_params: dict[str, Any] = {}
    body: dict[str, Any] = {}
    for name, value in parameters.items():
        if name in placeholders:
            path_params[name] = value
        elif method.strip().upper() in QUERY_METHODS:
            query_params[name] = value
        else:
            body[name] = value
    return path_params, query_params, body


def interpolate_path(path: str, path_params: Mapping[str, Any]) -> str:
    """Replace ``{name}`` placeholders with URL-encoded values; leftovers raise InterpolationError."""
    url = path
    for name, value in path_params.items():
        url = url.replace(f"{{{name}}}", quote(_path_value(value), safe="!*'()"))
    unresolved = extract_placeholders(url)
    if unresolved:
        raise InterpolationError(unresolved)
    return url


def _path_value(value: Any) -> str:
    # JSON spelling for literals: true / false / null
    if isinstance(value, bool) or value is None:
        return json.dumps(value)
    return str(value)


class EndpointExecutor:
    """Executes catalog operations through a transport. Never raises from ``execute``."""

    def __init__(self, store: ChunkStore, transport: Transport, timeout: float = 30.0):
        self.store = store
        self.transport = transport
        self.timeout = timeout

    async def execute(
        self,
        path: str,
        method: str,
        parameters: Mapping[str, Any] | None = None,
        validate: bool = True,
    ) -> ExecutionResult:
        try:
            path, method, params = validate_input(path, method, parameters)
            descriptors = await asyncio.to_thread(self.store.load_all)
            descriptor = resolve_endpoint(path, method, descriptors)
            if validate:
                check_required(params, descriptor)

            path_params, query_params, body = partition_parameters(params, descriptor.path, method)
            url = interpolate_path(descriptor.path, path_params)

            logger.info(
                "Executing {} {} ({}) query={} body={}",
                method,
                url,
                descriptor.name,
                list(query_params),
                list(body),
            )
            try:
                response = await asyncio.wait_for(
                    self._dispatch(method, url, query_params, body), self.timeout
                )
            except asyncio.TimeoutError as e:
                raise RequestTimeoutError(f"{method} {url} timed out after {self.timeout}s") from e

            text = response if isinstance(response, str) else json.dumps(response, indent=2)
            return ExecutionResult.success(text, endpoint=descriptor.path, url=url, method=method)
        except Exception as e:
            logger.error("Endpoint execution failed for {} {}: {}", method, path, e)
            return ExecutionResult.failure(e)

    async def _dispatch(
        self, method: str, url: str, query_params: dict[str, Any], body: dict[str, Any]
    ) -> Any:
        data = body or None
        if method == "GET":
            return await self.transport.get(url, query_params)
        if method == "POST":
            return await self.transport.post(url, data, query_params)
        if method == "PUT":
            return await self.transport.put(url, data, query_params)
        if method == "DELETE":
            return await self.transport.request("DELETE", url, query_params)
        return await self.transport.request("PATCH", url, query_params, data)
