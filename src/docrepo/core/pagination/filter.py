"""Keyset range filter construction.

Builds the seek-method predicate selecting rows strictly after a cursor
position for a normalized ``{primary: d, _id: d}`` sort:

    (primary <op> value) OR (primary == value AND _id <op> id)

with ``<op>`` = ``$gt`` for ascending and ``$lt`` for descending order.
"""

from typing import Any

from docrepo.core.pagination.sort import ID_FIELD, SortSpec, get_primary_field


def keyset_condition(sort: SortSpec, cursor_value: Any, cursor_id: Any) -> dict[str, Any]:
    """Return the range condition alone, without any base filters."""
    primary_field = get_primary_field(sort)
    operator = "$gt" if sort[primary_field] == 1 else "$lt"

    if primary_field == ID_FIELD:
        return {ID_FIELD: {operator: cursor_id}}

    return {
        "$or": [
            {primary_field: {operator: cursor_value}},
            {primary_field: cursor_value, ID_FIELD: {operator: cursor_id}},
        ]
    }


def build_keyset_filter(
    base_filters: dict[str, Any] | None,
    sort: SortSpec,
    cursor_value: Any,
    cursor_id: Any,
) -> dict[str, Any]:
    """Merge the keyset range condition into ``base_filters``.

    The input dict is never mutated. When the base filters already use a
    top-level ``$or`` (or already constrain ``_id`` in an ``_id``-only sort),
    both sides are combined under ``$and`` so neither is lost.

    Args:
        base_filters: Caller filters (may be None or empty).
        sort: Normalized keyset sort (validated beforehand).
        cursor_value: Primary field value decoded from the cursor.
        cursor_id: ``_id`` decoded from the cursor.

    Returns:
        New filter document.

    Example:
        >>> build_keyset_filter({"status": "active"}, {"n": 1, "_id": 1}, 5, oid)
        {'status': 'active', '$or': [{'n': {'$gt': 5}}, {'n': 5, '_id': {'$gt': oid}}]}
    """
    base = dict(base_filters or {})
    condition = keyset_condition(sort, cursor_value, cursor_id)

    if not base:
        return condition
    if any(key in base for key in condition):
        return {"$and": [base, condition]}
    return {**base, **condition}


__all__ = ["build_keyset_filter", "keyset_condition"]
