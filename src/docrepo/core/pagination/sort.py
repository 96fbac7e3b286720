"""Sort normalization and keyset sort validation.

Sorts are plain ``dict[str, int]`` mappings (``1`` ascending, ``-1``
descending) whose insertion order is significant. Keyset pagination only
accepts a single ordering field plus the ``_id`` tie-breaker sharing its
direction: anything else cannot be expressed as one range predicate.
"""

from typing import Any

from docrepo.core.exceptions import InvalidSort

#: Unique field used to break ties between equal primary values.
ID_FIELD = "_id"

#: Accepted sort directions (pymongo ASCENDING / DESCENDING).
DIRECTIONS: frozenset[int] = frozenset({1, -1})

type SortSpec = dict[str, int]


def normalize_sort(sort: SortSpec) -> SortSpec:
    """Return a copy of ``sort`` with ``_id`` moved last.

    Other keys keep their relative order. Idempotent.
    """
    normalized = {key: direction for key, direction in sort.items() if key != ID_FIELD}
    if ID_FIELD in sort:
        normalized[ID_FIELD] = sort[ID_FIELD]
    return normalized


def _check_directions(sort: dict[str, Any]) -> None:
    for field, direction in sort.items():
        # bool is an int subclass; True must not pass as 1
        if isinstance(direction, bool) or direction not in DIRECTIONS:
            raise InvalidSort(
                f"direction for '{field}' must be 1 or -1, got {direction!r}", sort=sort
            )


def validate_keyset_sort(sort: SortSpec) -> SortSpec:
    """Validate and normalize a sort for keyset pagination.

    A single non-id field gets the ``_id`` tie-breaker injected with the same
    direction.

    Args:
        sort: Caller supplied sort specification.

    Returns:
        Normalized sort, primary field first and ``_id`` last.

    Raises:
        InvalidSort: If the sort is empty, has a bad direction, lacks the
            tie-breaker, mixes directions or has more than two keys.

    Example:
        >>> validate_keyset_sort({"createdAt": -1})
        {'createdAt': -1, '_id': -1}
    """
    if not sort:
        raise InvalidSort("keyset pagination requires at least one sort field", sort=sort)

    _check_directions(sort)
    keys = list(sort)

    if len(keys) == 1:
        field = keys[0]
        if field == ID_FIELD:
            return normalize_sort(sort)
        return normalize_sort({field: sort[field], ID_FIELD: sort[field]})

    if len(keys) == 2:
        if ID_FIELD not in sort:
            raise InvalidSort("keyset pagination requires _id as tie-breaker", sort=sort)

        primary_field = get_primary_field(sort)
        if sort[primary_field] != sort[ID_FIELD]:
            raise InvalidSort("_id direction must match primary field direction", sort=sort)

        return normalize_sort(sort)

    raise InvalidSort("keyset pagination only supports single field + tie-breaker", sort=sort)


def invert_sort(sort: SortSpec) -> SortSpec:
    """Flip every direction (1 becomes -1 and vice versa)."""
    return {key: -1 if direction == 1 else 1 for key, direction in sort.items()}


def get_primary_field(sort: SortSpec) -> str:
    """Return the first non-id field, or ``_id`` when it is the only key."""
    return next((key for key in sort if key != ID_FIELD), ID_FIELD)


def get_direction(sort: SortSpec, field: str) -> int | None:
    """Return the direction of ``field`` in ``sort``, or None."""
    return sort.get(field)


__all__ = [
    "ID_FIELD",
    "DIRECTIONS",
    "SortSpec",
    "normalize_sort",
    "validate_keyset_sort",
    "invert_sort",
    "get_primary_field",
    "get_direction",
]
