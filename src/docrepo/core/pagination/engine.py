"""Pagination engine.

Orchestrates sort validation, cursor handling, range filters and limit
sanitization for the three pagination modes:

- ``paginate``: offset (skip/limit) with a total count, random page access.
- ``stream``: keyset (cursor) pagination, constant cost per page.
- ``aggregate_paginate``: offset pagination over an aggregation pipeline
  using a single ``$facet`` round trip.

The engine is stateless: every call builds its own filters and cursors, so
one instance can serve any number of concurrent requests. Store failures
propagate unchanged and nothing is retried.
"""

import asyncio
import logging
from collections.abc import Mapping, Sequence
from typing import Any

from pydantic import BaseModel

from docrepo.core.dto.pagination_dto import AggregatePage, KeysetPage, OffsetPage
from docrepo.core.exceptions import MissingSort
from docrepo.core.pagination.config import PaginationConfig
from docrepo.core.pagination.cursor import (
    decode_cursor,
    encode_cursor,
    validate_cursor_sort,
    validate_cursor_version,
)
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
    get_primary_field,
    validate_keyset_sort,
)
from docrepo.core.store.populate import Populate, populate_documents
from docrepo.core.store.protocols import Document, DocumentStore
from docrepo.core.utils import parse_select

logger = logging.getLogger(__name__)

DEFAULT_OFFSET_SORT: SortSpec = {ID_FIELD: -1}


def _keyset_projection(
    projection: dict[str, int] | None, sort: SortSpec
) -> dict[str, int] | None:
    """Keep the sort fields in the projection; the next cursor is built from them."""
    if not projection:
        return projection
    if any(value for key, value in projection.items() if key != ID_FIELD):
        return {**projection, **{field: 1 for field in sort}}
    return {key: value for key, value in projection.items() if key not in sort} or None


class PaginationEngine:
    """Pagination over a DocumentStore.

    Example:
        >>> engine = PaginationEngine(collection, PaginationConfig(default_limit=20))
        >>> page1 = await engine.paginate(page=1, limit=20)
        >>> first = await engine.stream(sort={"createdAt": -1}, limit=20)
        >>> second = await engine.stream(sort={"createdAt": -1}, after=first.next, limit=20)
    """

    def __init__(
        self,
        store: DocumentStore,
        config: PaginationConfig | None = None,
        *,
        model: type[BaseModel] | None = None,
    ):
        """Create an engine.

        Args:
            store: Collection to paginate.
            config: Pagination settings; defaults when None.
            model: Optional pydantic model documents are converted into when
                a call passes ``lean=False``.
        """
        self.store = store
        self.config = config or PaginationConfig()
        self.model = model

    # =========================================================================
    # OFFSET
    # =========================================================================

    async def paginate(
        self,
        *,
        filters: Mapping[str, Any] | None = None,
        sort: SortSpec | None = None,
        page: Any = 1,
        limit: Any = None,
        select: str | Sequence[str] | Mapping[str, Any] | None = None,
        populate: Populate | Sequence[Populate] | None = None,
        lean: bool = True,
        session: Any = None,
    ) -> OffsetPage:
        """Offset pagination with a total count.

        The document query and the count run concurrently in a task group.
        The O(1) estimated count is only used when configured and no filter
        is present; an estimate is meaningless once filters apply.

        Raises:
            PageOutOfRange: If ``page`` exceeds ``config.max_page``.
        """
        filters = dict(filters or {})
        sort = dict(sort or DEFAULT_OFFSET_SORT)
        page = validate_page(page, self.config)
        limit = validate_limit(limit, self.config)
        skip = calculate_skip(page, limit)
        projection = parse_select(select)

        # a failing query cancels its sibling; the store's own error is raised
        try:
            async with asyncio.TaskGroup() as group:
                find_task = group.create_task(
                    self._find(
                        filters,
                        sort,
                        skip=skip,
                        limit=limit,
                        projection=projection,
                        session=session,
                    )
                )
                count_task = group.create_task(self._count(filters, session=session))
        except ExceptionGroup as e:
            raise e.exceptions[0] from None
        docs, total = find_task.result(), count_task.result()

        pages = calculate_total_pages(total, limit)
        warning = None
        if should_warn_deep_pagination(page, self.config.deep_page_threshold):
            warning = (
                f"Deep pagination (page {page}). "
                "Consider stream(sort=..., after=..., limit=...) for better performance."
            )
            logger.warning("%s: %s", self.store.name, warning)

        return OffsetPage(
            docs=await self._finalize(docs, populate=populate, lean=lean, session=session),
            page=page,
            limit=limit,
            total=total,
            pages=pages,
            has_next=page < pages,
            has_prev=page > 1,
            warning=warning,
        )

    # =========================================================================
    # KEYSET
    # =========================================================================

    async def stream(
        self,
        *,
        sort: SortSpec | None,
        filters: Mapping[str, Any] | None = None,
        after: str | None = None,
        limit: Any = None,
        select: str | Sequence[str] | Mapping[str, Any] | None = None,
        populate: Populate | Sequence[Populate] | None = None,
        lean: bool = True,
        session: Any = None,
    ) -> KeysetPage:
        """Keyset (cursor) pagination.

        Pass ``next`` of the previous page as ``after`` with the same sort to
        continue. Requires an index matching the normalized sort.

        Raises:
            MissingSort: If ``sort`` is missing or empty.
            InvalidSort: If the sort is not "one field + _id" shaped.
            InvalidCursor: If ``after`` cannot be decoded.
            VersionMismatch: If ``after`` was issued under another version.
            SortMismatch: If ``after`` was issued under another sort.
        """
        if not sort:
            raise MissingSort()

        limit = validate_limit(limit, self.config)
        normalized = validate_keyset_sort(sort)
        query: dict[str, Any] = dict(filters or {})

        if after:
            cursor = decode_cursor(after)
            validate_cursor_version(cursor.version, self.config.cursor_version)
            validate_cursor_sort(cursor.sort, normalized)
            query = build_keyset_filter(query, normalized, cursor.value, cursor.id)

        projection = _keyset_projection(parse_select(select), normalized)
        docs = await self._find(
            query, normalized, limit=limit + 1, projection=projection, session=session
        )

        has_more = len(docs) > limit
        if has_more:
            docs = docs[:limit]

        next_cursor = None
        if has_more and docs:
            next_cursor = encode_cursor(
                docs[-1],
                get_primary_field(normalized),
                normalized,
                self.config.cursor_version,
            )

        return KeysetPage(
            docs=await self._finalize(docs, populate=populate, lean=lean, session=session),
            limit=limit,
            has_more=has_more,
            next=next_cursor,
        )

    # =========================================================================
    # AGGREGATE
    # =========================================================================

    async def aggregate_paginate(
        self,
        *,
        pipeline: Sequence[Mapping[str, Any]] | None = None,
        page: Any = 1,
        limit: Any = None,
        session: Any = None,
    ) -> AggregatePage:
        """Paginate an aggregation pipeline in one round trip.

        A ``$facet`` stage computing the page slice and the total count is
        appended to ``pipeline``. The page must fit in a single store response;
        a warning is attached when ``limit`` exceeds
        ``config.aggregate_safe_limit``.

        Raises:
            PageOutOfRange: If ``page`` exceeds ``config.max_page``.
        """
        page = validate_page(page, self.config)
        limit = validate_limit(limit, self.config)
        skip = calculate_skip(page, limit)

        facet_pipeline = [
            *(pipeline or []),
            {
                "$facet": {
                    "docs": [{"$skip": skip}, {"$limit": limit}],
                    "total": [{"$count": "count"}],
                }
            },
        ]

        cursor = await self.store.aggregate(facet_pipeline, session=session)
        results = await cursor.to_list()
        result = results[0] if results else {}
        docs = result.get("docs", [])
        counts = result.get("total", [])
        total = counts[0].get("count", 0) if counts else 0
        pages = calculate_total_pages(total, limit)

        warnings = []
        if should_warn_deep_pagination(page, self.config.deep_page_threshold):
            warnings.append(f"Deep pagination in aggregate (page {page}). Uses $skip internally.")
        if limit > self.config.aggregate_safe_limit:
            warnings.append(
                f"Limit {limit} exceeds the aggregate safe limit "
                f"({self.config.aggregate_safe_limit}); large pages may exceed the "
                "16MB response size limit."
            )
        warning = " ".join(warnings) or None
        if warning:
            logger.warning("%s: %s", self.store.name, warning)

        return AggregatePage(
            docs=docs,
            page=page,
            limit=limit,
            total=total,
            pages=pages,
            has_next=page < pages,
            has_prev=page > 1,
            warning=warning,
        )

    # =========================================================================
    # STORE ACCESS
    # =========================================================================

    async def _find(
        self,
        filters: Mapping[str, Any],
        sort: SortSpec,
        *,
        skip: int = 0,
        limit: int,
        projection: dict[str, int] | None,
        session: Any,
    ) -> list[Document]:
        logger.debug(
            "find on %s: filter=%r sort=%r skip=%d limit=%d",
            self.store.name,
            filters,
            sort,
            skip,
            limit,
        )
        cursor = self.store.find(
            filters,
            projection,
            sort=list(sort.items()) or None,
            skip=skip,
            limit=limit,
            session=session,
        )
        return await cursor.to_list()

    async def _count(self, filters: Mapping[str, Any], *, session: Any) -> int:
        # estimated_document_count reads collection metadata; it takes
        # neither a filter nor a session
        if self.config.use_estimated_count and not filters:
            return await self.store.estimated_document_count()
        return await self.store.count_documents(filters, session=session)

    async def _finalize(
        self,
        docs: list[Document],
        *,
        populate: Populate | Sequence[Populate] | None,
        lean: bool,
        session: Any,
    ) -> list[Any]:
        if populate:
            await populate_documents(docs, populate, session=session)
        if lean or self.model is None:
            return docs
        return [self.model.model_validate(doc) for doc in docs]


__all__ = ["PaginationEngine", "DEFAULT_OFFSET_SORT"]
