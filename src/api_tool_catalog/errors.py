"""Exception hierarchy shared by the store, sync engine, catalog and executor.

Every error carries an ``error_type`` tag that ends up in the ``errorType``
field of structured failure results.
"""


class CatalogError(Exception):
    """Base class for all api-tool-catalog errors."""

    error_type = "generic"


class StoreError(CatalogError):
    """A chunk file could not be read, parsed or written."""

    error_type = "store"


class SyncError(CatalogError):
    """The live API description could not be fetched or parsed."""

    error_type = "sync"


class CatalogValidationError(CatalogError):
    """Discovery filters were rejected."""

    error_type = "validation"


class InputError(CatalogError):
    """Malformed path, method or parameter shape."""

    error_type = "input"


class OperationNotFoundError(CatalogError):
    error_type = "not_found"

    def __init__(self, method: str, path: str):
        super().__init__(f"No endpoint found for {method} {path}")
        self.method = method
        self.path = path


class MissingParametersError(CatalogError):
    error_type = "validation"

    def __init__(self, missing: list[str]):
        super().__init__(f"Missing required parameters: {', '.join(missing)}")
        self.missing = missing


class InterpolationError(CatalogError):
    error_type = "interpolation"

    def __init__(self, unresolved: list[str]):
        super().__init__(f"Unresolved path parameters: {', '.join(unresolved)}")
        self.unresolved = unresolved


class TransportError(CatalogError):
    """The HTTP call failed; the original message is kept verbatim."""

    error_type = "transport"

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class RequestTimeoutError(CatalogError):
    error_type = "timeout"
