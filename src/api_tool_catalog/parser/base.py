"""Models for operations read out of a live Swagger / OpenAPI description.

These are ephemeral: they are rebuilt on every generate or sync run and only
their derived schemas end up in the catalog.
"""

from typing import Any

from pydantic import BaseModel


class Param(BaseModel):
    """A single non-body parameter (query, path, header, or cookie)."""

    name: str
    location: str  # query / path / header / cookie
    required: bool
    param_type: str  # string / integer / boolean / array / object
    description: str = ""


class RawOperation(BaseModel):
    """One method on one path of the API description."""

    method: str  # GET / POST / PUT / DELETE / PATCH
    path: str  # /pages/{id}
    operation_id: str | None = None
    summary: str = ""
    description: str = ""
    tags: list[str] = []
    parameters: list[Param] = []
    request_schema: dict[str, Any] | None = None
    response_schema: dict[str, Any] | None = None
