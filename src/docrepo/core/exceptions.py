"""docrepo - Repository and Pagination Exceptions.

Custom exceptions for repository and pagination operations. Every error
carries a stable machine-checkable ``kind`` and an HTTP-like ``status`` that
callers can map to responses; the library itself never performs that
mapping. Store and driver failures are not wrapped.
"""

from typing import Any


class RepositoryError(Exception):
    """Base exception for all repository-related errors.

    Attributes:
        kind: Stable identifier of the error class (e.g. "invalid_sort").
        status: HTTP-like status code associated with the error.
    """

    kind: str = "repository_error"
    status: int = 500

    def __init__(self, message: str):
        """Initialize RepositoryError.

        Args:
            message: Human-readable description.
        """
        self.message = message
        super().__init__(message)


class NotFound(RepositoryError):
    """Raised when a required document is not found.

    Attributes:
        id: The identifier or query of the document that was not found.
        repository: Optional name of the repository.
    """

    kind = "not_found"
    status = 404

    def __init__(self, id: Any = None, repository: str | None = None):
        """Initialize NotFound.

        Args:
            id: The identifier (or query) of the missing document.
            repository: Optional name of the repository.
        """
        self.id = id
        self.repository = repository
        repo_info = f" in repository '{repository}'" if repository else ""
        target = f" with id={id!r}" if id is not None else ""
        super().__init__(f"Document{target} not found{repo_info}.")


class ValidationError(RepositoryError):
    """Raised when input or document validation fails.

    Attributes:
        details: Description of what validation failed.
        field: Optional name of the field that failed validation.
        value: Optional value that failed validation.
    """

    kind = "validation_error"
    status = 400

    def __init__(
        self,
        details: str,
        field: str | None = None,
        value: Any = None,
    ):
        """Initialize ValidationError.

        Args:
            details: Human-readable description of the validation failure.
            field: Optional field name associated with the error.
            value: Optional invalid value.
        """
        self.details = details
        self.field = field
        self.value = value

        field_info = f" (field={field!r})" if field else ""
        value_info = f" [value={value!r}]" if value is not None else ""
        super().__init__(f"Validation error{field_info}: {details}{value_info}")


# =============================================================================
# PAGINATION ERRORS (caller errors, never retried)
# =============================================================================


class PaginationError(RepositoryError):
    """Base class for pagination input errors."""

    kind = "pagination_error"
    status = 400


class InvalidSort(PaginationError):
    """Raised when a sort cannot be used for keyset pagination."""

    kind = "invalid_sort"

    def __init__(self, details: str, sort: dict[str, Any] | None = None):
        self.details = details
        self.sort = sort
        super().__init__(f"Invalid sort: {details}")


class MissingSort(PaginationError):
    """Raised when keyset pagination is requested without a sort."""

    kind = "missing_sort"

    def __init__(self, message: str = "sort is required for keyset pagination"):
        super().__init__(message)


class InvalidCursor(PaginationError):
    """Raised when a cursor token cannot be decoded.

    Usually a stale, tampered or cross-repository cursor.
    """

    kind = "invalid_cursor"

    def __init__(self, details: str | None = None):
        self.details = details
        detail_info = f": {details}" if details else ""
        super().__init__(f"Invalid cursor token{detail_info}")


class SortMismatch(PaginationError):
    """Raised when a cursor is replayed against a different sort."""

    kind = "sort_mismatch"

    def __init__(self, cursor_sort: dict[str, Any], current_sort: dict[str, Any]):
        self.cursor_sort = cursor_sort
        self.current_sort = current_sort
        super().__init__(
            f"Cursor sort {cursor_sort!r} does not match current query sort {current_sort!r}"
        )


class VersionMismatch(PaginationError):
    """Raised when a cursor was issued under another cursor format version."""

    kind = "version_mismatch"

    def __init__(self, cursor_version: Any, expected_version: int):
        self.cursor_version = cursor_version
        self.expected_version = expected_version
        super().__init__(
            f"Cursor version {cursor_version} does not match expected version {expected_version}"
        )


class PageOutOfRange(PaginationError):
    """Raised when a requested page exceeds the configured maximum."""

    kind = "page_out_of_range"

    def __init__(self, page: int, max_page: int):
        self.page = page
        self.max_page = max_page
        super().__init__(f"Page {page} exceeds maximum {max_page}")


__all__ = [
    "RepositoryError",
    "NotFound",
    "ValidationError",
    "PaginationError",
    "InvalidSort",
    "MissingSort",
    "InvalidCursor",
    "SortMismatch",
    "VersionMismatch",
    "PageOutOfRange",
]
