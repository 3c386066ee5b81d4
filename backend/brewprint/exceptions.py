"""
Brewprint Backend — Custom Exception Hierarchy
===============================================

What:  Application-specific exceptions for the versioning and backup engine.
How:   Each exception class carries a message and optional context dict.
       Global exception handlers (registered in main.py) catch these and
       return structured JSON error responses with correct HTTP status codes.
Who:   Raised by the RecordStore and services; caught by global handlers,
       and by SnapshotRestorer, which turns them into ImportResult entries.

Exception Hierarchy:
    BrewprintError (base)
    ├── ValidationError          → 400 Bad Request (client can fix)
    ├── NotFoundError            → 404 Not Found
    ├── ConflictError            → 409 Conflict (uniqueness violation)
    ├── UnsupportedFormatError   → 422 (restore converts it to an ImportResult)
    ├── PartialReadError         → 503 Service Unavailable (export aborted)
    ├── FileStorageError         → 500 Internal Server Error
    └── DatabaseError            → 500 Internal Server Error
"""

from typing import Any, Dict, Optional


class BrewprintError(Exception):
    """
    Base exception for all Brewprint application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged but NOT returned to client)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(BrewprintError):
    """
    Raised when client input fails a business rule.

    When:    Rating outside 1-5, unknown collection name, wrong confirmation
             token, malformed backup file.
    HTTP:    400 Bad Request

    Schema-level validation (types, required fields) stays with Pydantic and
    FastAPI's automatic 422; this class is for rules the schemas can't express.
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class NotFoundError(BrewprintError):
    """
    Raised when a requested record does not exist (or belongs to another owner).

    HTTP:    404 Not Found
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)
        self.resource = resource
        self.resource_id = resource_id


class ConflictError(BrewprintError):
    """
    Raised by the RecordStore when a write violates a uniqueness constraint.

    When:    Restoring a bean whose name already exists for the owner,
             creating a second tag with the same name.
    HTTP:    409 Conflict

    SnapshotRestorer downgrades this to a warning when the caller asked
    for skip_conflicts.
    """

    def __init__(
        self,
        collection: str,
        message: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["collection"] = collection
        super().__init__(
            message=message or f"Duplicate record in {collection}",
            context=ctx,
        )
        self.collection = collection


class UnsupportedFormatError(BrewprintError):
    """
    Raised when a snapshot's format version or shape is not supported.

    SnapshotRestorer never lets this escape: it is converted into a failed
    ImportResult with zero counts. The 422 mapping exists for callers that
    validate a snapshot on their own.
    """

    def __init__(
        self,
        message: str = "Invalid or unsupported data format",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class PartialReadError(BrewprintError):
    """
    Raised when any collection query fails during snapshot export.

    What:    The whole export is abandoned; no partial snapshot is returned.
    HTTP:    503 Service Unavailable
    Carries: `collection` that failed first and the underlying `cause`.
    """

    def __init__(
        self,
        collection: str,
        cause: Optional[BaseException] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["collection"] = collection
        if cause is not None:
            ctx["cause"] = type(cause).__name__
        super().__init__(
            message=f"Export failed while reading {collection}. No data was exported.",
            context=ctx,
        )
        self.collection = collection
        self.cause = cause


class FileStorageError(BrewprintError):
    """
    Raised when backup file operations fail.

    When:    Disk full, permission denied, directory not writable, I/O error.
    HTTP:    500 Internal Server Error
    """

    def __init__(
        self,
        message: str = "File storage operation failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(BrewprintError):
    """
    Raised when a store operation fails for any reason other than a
    uniqueness conflict or a missing record.

    HTTP:    500 Internal Server Error

    The message returned to the client is always generic; the driver's
    error text is kept in `context` and logged server-side only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
