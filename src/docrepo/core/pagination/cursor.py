"""Cursor encoding and decoding for keyset pagination.

A cursor is an opaque, URL-safe token that records where the previous page
ended: the primary sort value and ``_id`` of its last document, the sort
that produced it and a format version.

Wire format (before base64):
    {"v": "2025-01-15T10:30:00", "t": "date",
     "id": "65a4f0c2e13b9a0012345678", "idType": "objectid",
     "sort": {"createdAt": -1, "_id": -1}, "ver": 1}

JSON cannot carry datetimes or ObjectIds, so every value travels with a
type tag and is rehydrated on decode. A decoded cursor can therefore be
dropped straight into a range predicate without coercion at call sites.
"""

import base64
import binascii
import json
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum
from typing import Any, Literal

from bson import ObjectId
from bson.errors import InvalidId
from pydantic import BaseModel, Field, StrictInt
from pydantic import ValidationError as PydanticValidationError

from docrepo.core.exceptions import InvalidCursor, SortMismatch, VersionMismatch
from docrepo.core.pagination.sort import ID_FIELD, SortSpec

logger = logging.getLogger(__name__)


# =============================================================================
# VALUE VARIANTS
# =============================================================================


class CursorValueType(StrEnum):
    """Closed set of type tags a cursor value can carry."""

    DATE = "date"
    OBJECTID = "objectid"
    BOOLEAN = "boolean"
    NUMBER = "number"
    STRING = "string"
    UNKNOWN = "unknown"


@dataclass(frozen=True, slots=True)
class _Variant:
    matches: Callable[[Any], bool]
    serialize: Callable[[Any], Any]
    deserialize: Callable[[Any], Any]


def _expect(kind: type | tuple[type, ...], name: str) -> Callable[[Any], Any]:
    kinds = kind if isinstance(kind, tuple) else (kind,)

    def check(raw: Any) -> Any:
        if not isinstance(raw, kinds) or (isinstance(raw, bool) and bool not in kinds):
            raise ValueError(f"expected {name}, got {type(raw).__name__}")
        return raw

    return check


def _load_date(raw: Any) -> datetime:
    return datetime.fromisoformat(_expect(str, "ISO-8601 string")(raw))


def _load_objectid(raw: Any) -> ObjectId:
    return ObjectId(_expect(str, "ObjectId hex string")(raw))


# Detection order matters: bool is an int subclass.
_VARIANTS: dict[CursorValueType, _Variant] = {
    CursorValueType.DATE: _Variant(
        matches=lambda value: isinstance(value, datetime),
        serialize=lambda value: value.isoformat(),
        deserialize=_load_date,
    ),
    CursorValueType.OBJECTID: _Variant(
        matches=lambda value: isinstance(value, ObjectId),
        serialize=str,
        deserialize=_load_objectid,
    ),
    CursorValueType.BOOLEAN: _Variant(
        matches=lambda value: isinstance(value, bool),
        serialize=lambda value: value,
        deserialize=_expect(bool, "boolean"),
    ),
    CursorValueType.NUMBER: _Variant(
        matches=lambda value: isinstance(value, (int, float)),
        serialize=lambda value: value,
        deserialize=_expect((int, float), "number"),
    ),
    CursorValueType.STRING: _Variant(
        matches=lambda value: isinstance(value, str),
        serialize=lambda value: value,
        deserialize=_expect(str, "string"),
    ),
    CursorValueType.UNKNOWN: _Variant(
        matches=lambda value: True,
        serialize=lambda value: value,
        deserialize=lambda raw: raw,
    ),
}


def get_value_type(value: Any) -> CursorValueType:
    """Return the type tag for ``value``."""
    for value_type, variant in _VARIANTS.items():
        if variant.matches(value):
            return value_type
    return CursorValueType.UNKNOWN


def serialize_value(value: Any) -> tuple[Any, CursorValueType]:
    """Serialize ``value`` to a JSON-friendly form plus its type tag."""
    value_type = get_value_type(value)
    return _VARIANTS[value_type].serialize(value), value_type


def rehydrate_value(raw: Any, value_type: CursorValueType) -> Any:
    """Rebuild the original value from its serialized form and tag.

    Raises:
        ValueError: If ``raw`` does not fit the tagged type.
    """
    return _VARIANTS[value_type].deserialize(raw)


# =============================================================================
# PAYLOADS
# =============================================================================


class CursorToken(BaseModel):
    """Wire record stored inside a cursor token."""

    v: Any
    t: CursorValueType
    id: Any
    id_type: CursorValueType = Field(alias="idType")
    sort: dict[str, Literal[1, -1]]
    ver: StrictInt

    model_config = {"populate_by_name": True, "extra": "forbid"}


@dataclass(frozen=True, slots=True)
class CursorPayload:
    """Decoded cursor contents.

    Attributes:
        value: Primary sort field value of the last document on the page.
        id: ``_id`` of that document.
        sort: Normalized sort active when the cursor was issued.
        version: Cursor format version.
    """

    value: Any
    id: Any
    sort: SortSpec
    version: int


# =============================================================================
# ENCODE / DECODE
# =============================================================================


def _get_path(doc: Mapping[str, Any], path: str) -> Any:
    """Resolve a dot-notation path, returning None when any segment is missing."""
    current: Any = doc
    for segment in path.split("."):
        if not isinstance(current, Mapping) or segment not in current:
            return None
        current = current[segment]
    return current


def encode_cursor(
    doc: Mapping[str, Any],
    primary_field: str,
    sort: SortSpec,
    version: int = 1,
) -> str:
    """Encode the position of ``doc`` into an opaque cursor token.

    Args:
        doc: Last document of the page (raw store document).
        primary_field: Primary sort field name (dot-notation allowed).
        sort: Normalized sort specification.
        version: Cursor format version.

    Returns:
        URL-safe base64 token without padding.
    """
    value, value_type = serialize_value(_get_path(doc, primary_field))
    id_value, id_type = serialize_value(doc.get(ID_FIELD))

    payload = {
        "v": value,
        "t": value_type,
        "id": id_value,
        "idType": id_type,
        "sort": dict(sort),
        "ver": version,
    }
    raw = json.dumps(payload, separators=(",", ":"), default=str)
    return base64.urlsafe_b64encode(raw.encode("utf-8")).rstrip(b"=").decode("ascii")


def decode_cursor(token: str) -> CursorPayload:
    """Decode a cursor token and rehydrate its values.

    Args:
        token: Token previously returned by :func:`encode_cursor`.

    Returns:
        CursorPayload with typed ``value`` and ``id``.

    Raises:
        InvalidCursor: If the token is not valid base64 or JSON, misses
            required fields, or carries values that do not fit their tags.
    """
    try:
        padded = token + "=" * (-len(token) % 4)
        raw = base64.b64decode(padded, altchars=b"-_", validate=True)
        record = CursorToken.model_validate_json(raw)
        return CursorPayload(
            value=rehydrate_value(record.v, record.t),
            id=rehydrate_value(record.id, record.id_type),
            sort=dict(record.sort),
            version=record.ver,
        )
    except (binascii.Error, PydanticValidationError, InvalidId, ValueError, TypeError) as e:
        logger.debug("Rejected cursor token: %s: %s", type(e).__name__, e)
        raise InvalidCursor() from e


def validate_cursor_sort(cursor_sort: SortSpec, current_sort: SortSpec) -> None:
    """Ensure the cursor was issued under exactly the current sort.

    Key order is part of the comparison.

    Raises:
        SortMismatch: If the sorts differ.
    """
    if list(cursor_sort.items()) != list(current_sort.items()):
        raise SortMismatch(cursor_sort, current_sort)


def validate_cursor_version(cursor_version: int, expected_version: int) -> None:
    """Ensure the cursor format version matches the configured one.

    Raises:
        VersionMismatch: If the versions differ.
    """
    if cursor_version != expected_version:
        raise VersionMismatch(cursor_version, expected_version)


__all__ = [
    "CursorValueType",
    "CursorToken",
    "CursorPayload",
    "get_value_type",
    "serialize_value",
    "rehydrate_value",
    "encode_cursor",
    "decode_cursor",
    "validate_cursor_sort",
    "validate_cursor_version",
]
