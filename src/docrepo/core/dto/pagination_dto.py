"""Pagination result DTOs.

The three pagination modes return distinct models tagged by ``method``.
``PaginationResult`` is their discriminated union: branch on ``method``
(or use ``match``/``isinstance``) before reading mode-specific fields.
"""

from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field, TypeAdapter


class _PageBase(BaseModel):
    docs: list[Any] = Field(default_factory=list, description="Documents of this page")
    limit: int = Field(description="Sanitized page size")

    model_config = {"extra": "forbid", "arbitrary_types_allowed": True}


class OffsetPage(_PageBase):
    """Result of offset (skip/limit) pagination.

    Attributes:
        page: Sanitized 1-indexed page number.
        total: Total number of matching documents (may be estimated).
        pages: Total number of pages.
        has_next: Whether a following page exists.
        has_prev: Whether a previous page exists.
        warning: Deep pagination hint, when applicable.
    """

    method: Literal["offset"] = "offset"
    page: int
    total: int
    pages: int
    has_next: bool
    has_prev: bool
    warning: str | None = None


class KeysetPage(_PageBase):
    """Result of keyset (cursor) pagination.

    Attributes:
        has_more: Whether more documents follow this page.
        next: Opaque cursor for the following page, None on the last page.
    """

    method: Literal["keyset"] = "keyset"
    has_more: bool
    next: str | None = None


class AggregatePage(_PageBase):
    """Result of aggregation-pipeline pagination. Same shape as OffsetPage."""

    method: Literal["aggregate"] = "aggregate"
    page: int
    total: int
    pages: int
    has_next: bool
    has_prev: bool
    warning: str | None = None


type PaginationResult = Annotated[
    OffsetPage | KeysetPage | AggregatePage, Field(discriminator="method")
]

#: Parses a plain dict (e.g. from a cache) back into the right page model.
pagination_result_adapter: TypeAdapter[OffsetPage | KeysetPage | AggregatePage] = TypeAdapter(
    Annotated[OffsetPage | KeysetPage | AggregatePage, Field(discriminator="method")]
)


__all__ = [
    "OffsetPage",
    "KeysetPage",
    "AggregatePage",
    "PaginationResult",
    "pagination_result_adapter",
]
