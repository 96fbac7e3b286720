"""Store - Document Store Protocols (Contracts).

Defines the contract the repository and pagination engine expect from the
underlying document store. The shapes follow pymongo's asynchronous
``AsyncCollection`` so a real collection can be passed in directly:

    >>> from pymongo import AsyncMongoClient
    >>> client = AsyncMongoClient()
    >>> repo = Repository(client.app.users)

The store owns query execution, indexing and transactions. Keyset
pagination relies on a compound index matching the normalized sort
(e.g. ``[("createdAt", -1), ("_id", -1)]``); creating it is a deployment
concern the engine cannot verify.
"""

from collections.abc import Mapping, Sequence
from typing import Any, Protocol, runtime_checkable

#: Document type: dict with BSON-compatible values.
type Document = dict[str, Any]

#: Filter document in MongoDB query language.
type Filter = Mapping[str, Any]


@runtime_checkable
class DocumentCursor(Protocol):
    """Async cursor returned by find/aggregate."""

    async def to_list(self, length: int | None = None) -> list[Document]:
        """Exhaust the cursor into a list."""
        ...


@runtime_checkable
class DocumentStore(Protocol):
    """Minimum contract of a document collection.

    Note:
        - ``session`` is an opaque driver session threaded through unmodified;
          cancellation and timeouts are the driver's responsibility.
        - ``limit=0`` means "no limit", as in pymongo.
    """

    @property
    def name(self) -> str:
        """Collection name."""
        ...

    # =========================================================================
    # READS
    # =========================================================================

    def find(
        self,
        filter: Filter | None = None,
        projection: Mapping[str, Any] | None = None,
        *,
        sort: Sequence[tuple[str, int]] | None = None,
        skip: int = 0,
        limit: int = 0,
        session: Any = None,
    ) -> DocumentCursor:
        """Return a cursor over matching documents in sort order."""
        ...

    async def find_one(
        self,
        filter: Filter | None = None,
        projection: Mapping[str, Any] | None = None,
        *,
        session: Any = None,
    ) -> Document | None:
        """Return the first matching document or None."""
        ...

    async def count_documents(self, filter: Filter, *, session: Any = None) -> int:
        """Exact count of documents matching ``filter``."""
        ...

    async def estimated_document_count(self) -> int:
        """O(1) collection size estimate from metadata; ignores filters."""
        ...

    async def aggregate(
        self, pipeline: Sequence[Mapping[str, Any]], *, session: Any = None
    ) -> DocumentCursor:
        """Run an aggregation pipeline."""
        ...

    async def distinct(
        self, key: str, filter: Filter | None = None, *, session: Any = None
    ) -> list[Any]:
        """Distinct values of ``key`` among matching documents."""
        ...

    # =========================================================================
    # WRITES
    # =========================================================================

    async def insert_one(self, document: Document, *, session: Any = None) -> Any:
        """Insert one document; result exposes ``inserted_id``."""
        ...

    async def insert_many(
        self, documents: Sequence[Document], *, ordered: bool = True, session: Any = None
    ) -> Any:
        """Insert documents; result exposes ``inserted_ids``."""
        ...

    async def find_one_and_update(
        self,
        filter: Filter,
        update: Mapping[str, Any] | Sequence[Mapping[str, Any]],
        projection: Mapping[str, Any] | None = None,
        *,
        upsert: bool = False,
        return_document: Any = None,
        session: Any = None,
    ) -> Document | None:
        """Atomically update one document and return it."""
        ...

    async def find_one_and_delete(
        self, filter: Filter, *, session: Any = None
    ) -> Document | None:
        """Atomically delete one document and return it."""
        ...

    async def update_many(
        self,
        filter: Filter,
        update: Mapping[str, Any] | Sequence[Mapping[str, Any]],
        *,
        session: Any = None,
    ) -> Any:
        """Update all matches; result exposes ``matched_count``/``modified_count``."""
        ...

    async def delete_many(self, filter: Filter, *, session: Any = None) -> Any:
        """Delete all matches; result exposes ``deleted_count``."""
        ...


__all__ = ["Document", "Filter", "DocumentCursor", "DocumentStore"]
