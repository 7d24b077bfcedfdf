"""Data models for the stored catalog and for per-call results.

OperationDescriptor is what the chunk files hold; ExecutionResult and
SyncReport are request-scoped and never persisted.
"""

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

SUPPORTED_METHODS = ("GET", "POST", "PUT", "DELETE", "PATCH")
BODY_METHODS = ("POST", "PUT", "PATCH")


class OperationDescriptor(BaseModel):
    """A single callable API operation as stored in a chunk file."""

    # Keys we do not model are carried through a rewrite untouched.
    model_config = ConfigDict(extra="allow")

    name: str
    description: str = ""
    method: str  # GET / POST / PUT / DELETE / PATCH
    path: str  # /pages/{id}
    input_schema: dict[str, Any] = Field(default_factory=dict)
    output_schema: dict[str, Any] = Field(default_factory=lambda: {"type": "object"})
    tags: list[str] = Field(default_factory=list)
    summary: str | None = None
    endpoint_description: str | None = None

    def to_json_dict(self) -> dict[str, Any]:
        """Dump only the keys that were set, so unchanged entries re-serialize identically.

        That holds for chunks this store wrote. A hand-edited chunk with another
        key order or ``\\uXXXX`` escapes comes back in canonical form (field
        order, raw UTF-8) once its chunk is rewritten.
        """
        return self.model_dump(mode="json", exclude_unset=True)

    @property
    def key(self) -> tuple[str, str]:
        return self.method.strip().upper(), self.path


class TextContent(BaseModel):
    type: str = "text"
    text: str


class ExecutionResult(BaseModel):
    """Outcome of one endpoint execution."""

    content: list[TextContent]
    is_error: bool = False
    metadata: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def success(cls, text: str, endpoint: str, url: str, method: str) -> "ExecutionResult":
        return cls(
            content=[TextContent(text=text)],
            metadata={
                "endpoint": endpoint,
                "url": url,
                "method": method,
                "timestamp": _now(),
                "success": True,
            },
        )

    @classmethod
    def failure(cls, error: Exception) -> "ExecutionResult":
        message = str(error) or error.__class__.__name__
        return cls(
            content=[TextContent(text=f"Execution failed: {message}")],
            is_error=True,
            metadata={
                "errorType": getattr(error, "error_type", "generic"),
                "error": message,
                "timestamp": _now(),
                "success": False,
            },
        )

    def to_response(self) -> dict[str, Any]:
        """Render in the tool-call response shape (``isError`` only on failure)."""
        data: dict[str, Any] = {
            "content": [c.model_dump() for c in self.content],
            "metadata": self.metadata,
        }
        if self.is_error:
            data["isError"] = True
        return data


class SyncReport(BaseModel):
    """What a sync run did, or why it stopped."""

    success: bool = True
    chunks_checked: list[str] = []
    chunks_written: list[str] = []
    updated: list[str] = []
    unmatched: list[str] = []
    invalid: dict[str, str] = {}
    error: str | None = None


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()
