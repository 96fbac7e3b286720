"""Repository: CRUD and pagination over one document collection.

Every public operation runs through the same lifecycle:

1. a context dict is built from the call arguments,
2. ``before:<op>`` listeners run and may rewrite the context,
3. the operation reads its inputs back from the context and executes,
4. ``after:<op>`` (context, result) or ``error:<op>`` (context, error) runs;
   a failing ``before`` listener aborts the operation and counts as an error.

Expected outcomes of bulk writes are returned as results; missing documents
and invalid input raise typed errors from ``docrepo.core.exceptions``.
Store failures other than duplicate keys propagate unchanged.
"""

import logging
from collections.abc import Awaitable, Callable, Mapping, Sequence
from typing import Any

import inflection
from bson import ObjectId
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from docrepo.core.dto.pagination_dto import AggregatePage, KeysetPage, OffsetPage
from docrepo.core.dto.result_dto import (
    DeleteResult,
    StatusCode,
    StatusDetail,
    UpdateManyResult,
)
from docrepo.core.exceptions import NotFound, RepositoryError, ValidationError
from docrepo.core.hooks.plugin import Plugin
from docrepo.core.hooks.registry import HookRegistry
from docrepo.core.pagination.config import PaginationConfig
from docrepo.core.pagination.engine import DEFAULT_OFFSET_SORT, PaginationEngine
from docrepo.core.store.populate import Populate, populate_documents
from docrepo.core.store.protocols import Document, DocumentStore
from docrepo.core.utils import parse_select, parse_sort

logger = logging.getLogger(__name__)

type Select = str | Sequence[str] | Mapping[str, Any] | None
type PopulateOption = Populate | Sequence[Populate] | None


def _as_id(value: Any) -> Any:
    # 24-hex strings are ObjectIds
    if isinstance(value, str) and ObjectId.is_valid(value):
        return ObjectId(value)
    return value


def _as_update(data: Mapping[str, Any]) -> dict[str, Any]:
    if any(key.startswith("$") for key in data):
        return dict(data)
    return {"$set": dict(data)}


class Repository:
    """Document repository with lifecycle hooks and pagination.

    Example:
        >>> users = Repository(db["users"], plugins=[TimestampPlugin()])
        >>> user = await users.create({"name": "Ada"})
        >>> page = await users.get_all({"active": True}, sort="-createdAt", limit=20)
        >>> more = await users.get_all(sort={"createdAt": -1}, after=cursor)
    """

    def __init__(
        self,
        store: DocumentStore,
        *,
        model: type[BaseModel] | None = None,
        name: str | None = None,
        plugins: Sequence[Plugin | Callable[["Repository"], Any]] = (),
        pagination: PaginationConfig | None = None,
        hooks: HookRegistry | None = None,
    ):
        """Create a repository.

        Args:
            store: Collection the repository operates on.
            model: Optional pydantic model. Validates created documents and
                is returned by reads called with ``lean=False``.
            name: Repository name used in logs and errors. Defaults to the
                tableized model name, then to the collection name.
            plugins: Plugin instances or ``callable(repository)`` installers.
            pagination: Pagination settings.
            hooks: Registry to share between repositories; a private one
                is created when None.
        """
        self.store = store
        self.model = model
        self.name = name or (inflection.tableize(model.__name__) if model else store.name)
        self.hooks = hooks if hooks is not None else HookRegistry()
        self.pagination = PaginationEngine(store, pagination, model=model)

        for plugin in plugins:
            self.use(plugin)
        logger.debug("Repository '%s' created", self.name)

    def use(self, plugin: Plugin | Callable[["Repository"], Any]) -> "Repository":
        """Install a plugin; returns self for chaining."""
        if isinstance(plugin, Plugin):
            plugin.apply(self)
        else:
            plugin(self)
        return self

    def on(self, event: str, listener: Callable, *, priority: int = 1) -> "Repository":
        """Register a listener for ``event``; returns self for chaining."""
        self.hooks.on(event, listener, priority=priority)
        return self

    # =========================================================================
    # CREATE
    # =========================================================================

    async def create(self, data: Mapping[str, Any], *, session: Any = None) -> Document:
        """Insert one document and return it with its ``_id``.

        Raises:
            ValidationError: If model validation fails or the key is duplicated.
        """

        async def action(context: dict[str, Any]) -> Document:
            doc = self._validate(context["data"])
            result = await self.store.insert_one(doc, session=context["session"])
            doc["_id"] = result.inserted_id
            return doc

        return await self._execute("create", action, data=dict(data), session=session)

    async def create_many(
        self,
        items: Sequence[Mapping[str, Any]],
        *,
        ordered: bool = True,
        session: Any = None,
    ) -> list[Document]:
        """Insert several documents and return them with their ``_id``."""

        async def action(context: dict[str, Any]) -> list[Document]:
            docs = [self._validate(item) for item in context["data"]]
            if not docs:
                return []
            result = await self.store.insert_many(
                docs, ordered=context["ordered"], session=context["session"]
            )
            for doc, inserted_id in zip(docs, result.inserted_ids, strict=False):
                doc["_id"] = inserted_id
            return docs

        return await self._execute(
            "create_many",
            action,
            data=[dict(item) for item in items],
            ordered=ordered,
            session=session,
        )

    # =========================================================================
    # READ
    # =========================================================================

    async def get_by_id(
        self,
        id: Any,
        *,
        select: Select = None,
        populate: PopulateOption = None,
        lean: bool = True,
        throw_on_not_found: bool = True,
        include_deleted: bool = False,
        session: Any = None,
    ) -> Any:
        """Fetch one document by ``_id``.

        Raises:
            NotFound: If missing and ``throw_on_not_found`` is set.
        """
        id = _as_id(id)
        return await self._execute(
            "get_by_id",
            self._find_one,
            id=id,
            query={"_id": id},
            select=select,
            populate=populate,
            lean=lean,
            throw_on_not_found=throw_on_not_found,
            include_deleted=include_deleted,
            session=session,
        )

    async def get_by_query(
        self,
        query: Mapping[str, Any],
        *,
        select: Select = None,
        populate: PopulateOption = None,
        lean: bool = True,
        throw_on_not_found: bool = True,
        include_deleted: bool = False,
        session: Any = None,
    ) -> Any:
        """Fetch the first document matching ``query``.

        Raises:
            NotFound: If missing and ``throw_on_not_found`` is set.
        """
        return await self._execute(
            "get_by_query",
            self._find_one,
            id=None,
            query=dict(query),
            select=select,
            populate=populate,
            lean=lean,
            throw_on_not_found=throw_on_not_found,
            include_deleted=include_deleted,
            session=session,
        )

    async def get_all(
        self,
        filters: Mapping[str, Any] | None = None,
        *,
        sort: str | Mapping[str, int] | None = None,
        page: Any = None,
        limit: Any = None,
        after: str | None = None,
        mode: str | None = None,
        search: str | None = None,
        select: Select = None,
        populate: PopulateOption = None,
        lean: bool = True,
        include_deleted: bool = False,
        session: Any = None,
    ) -> OffsetPage | KeysetPage:
        """List documents with offset or keyset pagination.

        Keyset mode is used when ``after`` is given or ``mode="keyset"``;
        offset mode otherwise. ``sort`` accepts a dict or the query-string
        form (``"-createdAt"``, ``"name,-age"``). Offset mode defaults to
        ``{"_id": -1}``; keyset mode requires an explicit sort.

        Args:
            search: Optional ``$text`` search term (needs a text index).
        """

        async def action(context: dict[str, Any]) -> OffsetPage | KeysetPage:
            query = dict(context["query"])
            if context["search"]:
                query["$text"] = {"$search": context["search"]}

            options = {
                "filters": query,
                "limit": context["limit"],
                "select": context["select"],
                "populate": context["populate"],
                "lean": context["lean"],
                "session": context["session"],
            }
            if context["after"] or context["mode"] == "keyset":
                return await self.pagination.stream(
                    sort=parse_sort(context["sort"], {}), after=context["after"], **options
                )
            return await self.pagination.paginate(
                sort=parse_sort(context["sort"], DEFAULT_OFFSET_SORT),
                page=context["page"] or 1,
                **options,
            )

        return await self._execute(
            "get_all",
            action,
            query=dict(filters or {}),
            sort=sort,
            page=page,
            limit=limit,
            after=after,
            mode=mode,
            search=search,
            select=select,
            populate=populate,
            lean=lean,
            include_deleted=include_deleted,
            session=session,
        )

    async def get_or_create(
        self, query: Mapping[str, Any], data: Mapping[str, Any], *, session: Any = None
    ) -> Document:
        """Return the document matching ``query``, inserting ``data`` if none does."""

        async def action(context: dict[str, Any]) -> Document:
            return await self.store.find_one_and_update(
                context["query"],
                {"$setOnInsert": context["data"]},
                upsert=True,
                return_document=ReturnDocument.AFTER,
                session=context["session"],
            )

        return await self._execute(
            "get_or_create", action, query=dict(query), data=dict(data), session=session
        )

    async def count(
        self,
        query: Mapping[str, Any] | None = None,
        *,
        include_deleted: bool = False,
        session: Any = None,
    ) -> int:
        async def action(context: dict[str, Any]) -> int:
            return await self.store.count_documents(context["query"], session=context["session"])

        return await self._execute(
            "count",
            action,
            query=dict(query or {}),
            include_deleted=include_deleted,
            session=session,
        )

    async def exists(
        self,
        query: Mapping[str, Any],
        *,
        include_deleted: bool = False,
        session: Any = None,
    ) -> bool:
        async def action(context: dict[str, Any]) -> bool:
            doc = await self.store.find_one(
                context["query"], {"_id": 1}, session=context["session"]
            )
            return doc is not None

        return await self._execute(
            "exists",
            action,
            query=dict(query),
            include_deleted=include_deleted,
            session=session,
        )

    # =========================================================================
    # UPDATE / DELETE
    # =========================================================================

    async def update(
        self,
        id: Any,
        data: Mapping[str, Any],
        *,
        select: Select = None,
        populate: PopulateOption = None,
        lean: bool = True,
        session: Any = None,
    ) -> Any:
        """Update one document by ``_id`` and return the updated version.

        Plain field mappings are applied with ``$set``; mappings of update
        operators (``{"$inc": ...}``) are sent as they are.

        Raises:
            NotFound: If no document has this ``_id``.
        """

        async def action(context: dict[str, Any]) -> Any:
            doc = await self.store.find_one_and_update(
                context["query"],
                _as_update(context["data"]),
                parse_select(context["select"]),
                return_document=ReturnDocument.AFTER,
                session=context["session"],
            )
            if doc is None:
                raise NotFound(context["id"], self.name)
            return await self._finalize(doc, context)

        id = _as_id(id)
        return await self._execute(
            "update",
            action,
            id=id,
            query={"_id": id},
            data=dict(data),
            select=select,
            populate=populate,
            lean=lean,
            session=session,
        )

    async def update_many(
        self, query: Mapping[str, Any], data: Mapping[str, Any], *, session: Any = None
    ) -> UpdateManyResult:
        """Update every document matching ``query``.

        Returns:
            UpdateManyResult; status="error" with ``no_match`` when nothing matched.
        """

        async def action(context: dict[str, Any]) -> UpdateManyResult:
            result = await self.store.update_many(
                context["query"], _as_update(context["data"]), session=context["session"]
            )
            if result.matched_count == 0:
                return UpdateManyResult.fail(
                    StatusDetail(code=StatusCode.NO_MATCH, message="No documents matched")
                )
            return UpdateManyResult.success(
                matched_count=result.matched_count, modified_count=result.modified_count
            )

        return await self._execute(
            "update_many", action, query=dict(query), data=dict(data), session=session
        )

    async def delete(self, id: Any, *, session: Any = None) -> DeleteResult:
        """Delete one document by ``_id``.

        A ``before:delete`` listener may handle the deletion itself (for
        instance by flagging the document) and set ``context["soft_deleted"]``.

        Raises:
            NotFound: If no document has this ``_id``.
        """

        async def action(context: dict[str, Any]) -> DeleteResult:
            if context.get("soft_deleted"):
                return DeleteResult.success(
                    count=1,
                    message="Soft deleted successfully",
                    detail=StatusDetail(
                        code=StatusCode.SOFT_DELETED, message="Document flagged as deleted"
                    ),
                )
            doc = await self.store.find_one_and_delete(
                context["query"], session=context["session"]
            )
            if doc is None:
                raise NotFound(context["id"], self.name)
            return DeleteResult.success(count=1)

        id = _as_id(id)
        return await self._execute(
            "delete", action, id=id, query={"_id": id}, session=session
        )

    async def delete_many(self, query: Mapping[str, Any], *, session: Any = None) -> DeleteResult:
        """Delete every document matching ``query``.

        Returns:
            DeleteResult; status="error" with ``no_match`` when nothing matched.
        """

        async def action(context: dict[str, Any]) -> DeleteResult:
            result = await self.store.delete_many(context["query"], session=context["session"])
            if result.deleted_count == 0:
                return DeleteResult.fail(
                    StatusDetail(code=StatusCode.NO_MATCH, message="No documents matched"),
                    message="Nothing deleted",
                )
            return DeleteResult.success(count=result.deleted_count)

        return await self._execute("delete_many", action, query=dict(query), session=session)

    # =========================================================================
    # AGGREGATION
    # =========================================================================

    async def aggregate(
        self, pipeline: Sequence[Mapping[str, Any]], *, session: Any = None
    ) -> list[Document]:
        async def action(context: dict[str, Any]) -> list[Document]:
            cursor = await self.store.aggregate(context["pipeline"], session=context["session"])
            return await cursor.to_list()

        return await self._execute(
            "aggregate", action, pipeline=list(pipeline), session=session
        )

    async def aggregate_paginate(
        self,
        pipeline: Sequence[Mapping[str, Any]] | None = None,
        *,
        page: Any = 1,
        limit: Any = None,
        session: Any = None,
    ) -> AggregatePage:
        """Paginate an aggregation pipeline (see PaginationEngine.aggregate_paginate)."""

        async def action(context: dict[str, Any]) -> AggregatePage:
            return await self.pagination.aggregate_paginate(
                pipeline=context["pipeline"],
                page=context["page"],
                limit=context["limit"],
                session=context["session"],
            )

        return await self._execute(
            "aggregate_paginate",
            action,
            pipeline=list(pipeline or []),
            page=page,
            limit=limit,
            session=session,
        )

    async def distinct(
        self, field: str, query: Mapping[str, Any] | None = None, *, session: Any = None
    ) -> list[Any]:
        async def action(context: dict[str, Any]) -> list[Any]:
            return await self.store.distinct(
                context["field"], context["query"], session=context["session"]
            )

        return await self._execute(
            "distinct", action, field=field, query=dict(query or {}), session=session
        )

    # =========================================================================
    # TRANSACTIONS
    # =========================================================================

    async def with_transaction(
        self, callback: Callable[[Any], Awaitable[Any]], *, client: Any
    ) -> Any:
        """Run ``callback(session)`` inside a transaction.

        The transaction is committed when the callback returns and aborted
        when it raises; the error is re-raised.

        Args:
            callback: Coroutine function receiving the session.
            client: Driver client (``AsyncMongoClient``) owning the session.
        """
        async with client.start_session() as session:
            await session.start_transaction()
            try:
                result = await callback(session)
            except Exception:
                logger.debug("Aborting transaction on '%s'", self.name)
                await session.abort_transaction()
                raise
            await session.commit_transaction()
            return result

    # =========================================================================
    # INTERNALS
    # =========================================================================

    async def _execute(
        self,
        operation: str,
        action: Callable[[dict[str, Any]], Awaitable[Any]],
        **options: Any,
    ) -> Any:
        context = {"operation": operation, "repository": self.name, **options}

        try:
            await self.hooks.emit(f"before:{operation}", context)
            result = await action(context)
        except Exception as e:
            error = self._handle_error(e)
            await self.hooks.emit(f"error:{operation}", context, error, raise_errors=False)
            if error is e:
                raise
            raise error from e

        await self.hooks.emit(f"after:{operation}", context, result, raise_errors=False)
        return result

    def _handle_error(self, error: Exception) -> Exception:
        if isinstance(error, RepositoryError):
            return error
        if isinstance(error, DuplicateKeyError):
            key_value = (error.details or {}).get("keyValue")
            return ValidationError("duplicate key", value=key_value)
        if isinstance(error, PydanticValidationError):
            first = error.errors()[0] if error.error_count() else {}
            field = ".".join(str(part) for part in first.get("loc", ())) or None
            return ValidationError(first.get("msg", str(error)), field=field)
        return error

    def _validate(self, data: Mapping[str, Any]) -> Document:
        if self.model is None:
            return dict(data)
        return self.model.model_validate(dict(data)).model_dump(by_alias=True, exclude_none=True)

    async def _find_one(self, context: dict[str, Any]) -> Any:
        doc = await self.store.find_one(
            context["query"], parse_select(context["select"]), session=context["session"]
        )
        if doc is None:
            if context["throw_on_not_found"]:
                target = context["id"] if context["id"] is not None else context["query"]
                raise NotFound(target, self.name)
            return None
        return await self._finalize(doc, context)

    async def _finalize(self, doc: Document, context: dict[str, Any]) -> Any:
        if context["populate"]:
            await populate_documents([doc], context["populate"], session=context["session"])
        if context["lean"] or self.model is None:
            return doc
        return self.model.model_validate(doc)


__all__ = ["Repository"]
