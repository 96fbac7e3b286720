"""Pagination - offset, keyset and aggregate pagination over a document store.

Main Components
---------------
- **PaginationEngine**: runs the three pagination modes against a store.
- **PaginationConfig**: per-repository limits, thresholds and cursor version.
- **Cursor codec**: opaque, type-tagged, versioned position tokens.
- **Sort normalizer**: canonical key order and keyset sort validation.
- **Keyset filter builder**: seek-method range predicate after a cursor.
- **Limits**: limit/page sanitization and page arithmetic.

Quick Start
-----------
    >>> from docrepo.core.pagination import PaginationEngine, PaginationConfig
    >>>
    >>> engine = PaginationEngine(collection, PaginationConfig(max_limit=50))
    >>> page = await engine.stream(sort={"createdAt": -1}, limit=20)
    >>> while page.has_more:
    ...     page = await engine.stream(sort={"createdAt": -1}, after=page.next, limit=20)

Keyset pagination needs a compound index matching the normalized sort,
e.g. ``[("createdAt", -1), ("_id", -1)]``.
"""

from docrepo.core.pagination.config import PaginationConfig
from docrepo.core.pagination.cursor import (
    CursorPayload,
    CursorValueType,
    decode_cursor,
    encode_cursor,
    validate_cursor_sort,
    validate_cursor_version,
)
from docrepo.core.pagination.engine import PaginationEngine
from docrepo.core.pagination.filter import build_keyset_filter
from docrepo.core.pagination.limits import (
    calculate_skip,
    calculate_total_pages,
    should_warn_deep_pagination,
    validate_limit,
    validate_page,
)
from docrepo.core.pagination.sort import (
    ID_FIELD,
    SortSpec,
    get_direction,
    get_primary_field,
    invert_sort,
    normalize_sort,
    validate_keyset_sort,
)

__all__ = [
    "PaginationEngine",
    "PaginationConfig",
    # Cursor
    "CursorPayload",
    "CursorValueType",
    "encode_cursor",
    "decode_cursor",
    "validate_cursor_sort",
    "validate_cursor_version",
    # Filter
    "build_keyset_filter",
    # Limits
    "validate_limit",
    "validate_page",
    "should_warn_deep_pagination",
    "calculate_skip",
    "calculate_total_pages",
    # Sort
    "ID_FIELD",
    "SortSpec",
    "normalize_sort",
    "validate_keyset_sort",
    "invert_sort",
    "get_primary_field",
    "get_direction",
]
