"""In-memory DocumentStore used by the test-suite.

Evaluates the subset of the MongoDB query language the repository and the
pagination engine produce, following BSON comparison order across types.
Every call is recorded in ``calls`` as ``(method, kwargs)``.
"""

from copy import deepcopy
from datetime import datetime
from types import SimpleNamespace
from typing import Any

from bson import ObjectId
from pymongo.errors import DuplicateKeyError

MISSING = object()


def get_path(doc: Any, path: str) -> Any:
    current = doc
    for part in path.split("."):
        if not isinstance(current, dict) or part not in current:
            return MISSING
        current = current[part]
    return current


def _rank(value: Any) -> int:
    if value is None or value is MISSING:
        return 1
    if isinstance(value, bool):
        return 8
    if isinstance(value, int | float):
        return 2
    if isinstance(value, str):
        return 3
    if isinstance(value, dict):
        return 4
    if isinstance(value, list):
        return 5
    if isinstance(value, ObjectId):
        return 7
    if isinstance(value, datetime):
        return 9
    return 10


def sort_key(value: Any) -> tuple[int, Any]:
    rank = _rank(value)
    if rank == 1:
        return (rank, 0)
    if rank in (4, 5, 10):
        return (rank, repr(value))
    return (rank, value)


def _compare(left: Any, right: Any) -> int | None:
    if left is MISSING or _rank(left) != _rank(right):
        return None
    a, b = sort_key(left), sort_key(right)
    return (a > b) - (a < b)


def _equals(value: Any, target: Any) -> bool:
    if value is MISSING:
        return target is None
    if isinstance(value, list) and not isinstance(target, list):
        return any(_equals(item, target) for item in value)
    if isinstance(value, bool) != isinstance(target, bool):
        return False
    return value == target


def _match_operators(value: Any, condition: dict[str, Any]) -> bool:
    for op, arg in condition.items():
        if op == "$exists":
            ok = (value is not MISSING) == bool(arg)
        elif op == "$eq":
            ok = _equals(value, arg)
        elif op == "$ne":
            ok = not _equals(value, arg)
        elif op == "$in":
            ok = any(_equals(value, item) for item in arg)
        elif op == "$nin":
            ok = not any(_equals(value, item) for item in arg)
        elif op in ("$gt", "$gte", "$lt", "$lte"):
            result = _compare(value, arg)
            ok = result is not None and {
                "$gt": result > 0,
                "$gte": result >= 0,
                "$lt": result < 0,
                "$lte": result <= 0,
            }[op]
        else:
            raise NotImplementedError(f"operator {op} is not supported by MemoryStore")
        if not ok:
            return False
    return True


def _text_match(doc: dict[str, Any], term: str) -> bool:
    term = term.lower()
    return any(isinstance(value, str) and term in value.lower() for value in doc.values())


def matches(doc: dict[str, Any], filter: dict[str, Any] | None) -> bool:
    for key, condition in (filter or {}).items():
        if key == "$and":
            ok = all(matches(doc, sub) for sub in condition)
        elif key == "$or":
            ok = any(matches(doc, sub) for sub in condition)
        elif key == "$text":
            ok = _text_match(doc, condition["$search"])
        elif isinstance(condition, dict) and condition and all(k.startswith("$") for k in condition):
            ok = _match_operators(get_path(doc, key), condition)
        else:
            ok = _equals(get_path(doc, key), condition)
        if not ok:
            return False
    return True


def sort_documents(docs: list[dict[str, Any]], sort: list[tuple[str, int]] | None) -> list[dict]:
    ordered = list(docs)
    for field, direction in reversed(sort or []):
        ordered.sort(key=lambda d, f=field: sort_key(get_path(d, f)), reverse=direction == -1)
    return ordered


def project(doc: dict[str, Any], projection: dict[str, Any] | None) -> dict[str, Any]:
    if not projection:
        return doc
    includes = {key for key, value in projection.items() if value and key != "_id"}
    if includes:
        projected = {key: doc[key] for key in includes if key in doc}
        if projection.get("_id", 1) and "_id" in doc:
            projected["_id"] = doc["_id"]
        return projected
    return {key: value for key, value in doc.items() if projection.get(key, 1)}


def apply_update(doc: dict[str, Any], update: dict[str, Any], *, inserting: bool) -> None:
    for op, fields in update.items():
        if op == "$set" or (op == "$setOnInsert" and inserting):
            doc.update(deepcopy(fields))
        elif op == "$setOnInsert":
            continue
        elif op == "$unset":
            for key in fields:
                doc.pop(key, None)
        elif op == "$inc":
            for key, amount in fields.items():
                doc[key] = doc.get(key, 0) + amount
        else:
            raise NotImplementedError(f"update operator {op} is not supported by MemoryStore")


class MemoryCursor:
    def __init__(self, docs: list[dict[str, Any]]):
        self._docs = docs

    async def to_list(self, length: int | None = None) -> list[dict[str, Any]]:
        docs = self._docs if length is None else self._docs[:length]
        return deepcopy(docs)


class MemoryStore:
    """List-backed collection with unique ``_id`` and optional unique fields."""

    def __init__(
        self,
        name: str = "items",
        docs: list[dict[str, Any]] | None = None,
        *,
        unique: tuple[str, ...] = (),
        estimated_count: int | None = None,
    ):
        self._name = name
        self.docs: list[dict[str, Any]] = deepcopy(docs or [])
        self.unique = unique
        self.estimated_count = estimated_count
        self.calls: list[tuple[str, dict[str, Any]]] = []

    @property
    def name(self) -> str:
        return self._name

    def calls_to(self, method: str) -> list[dict[str, Any]]:
        return [kwargs for name, kwargs in self.calls if name == method]

    def _select(self, filter: dict[str, Any] | None) -> list[dict[str, Any]]:
        return [doc for doc in self.docs if matches(doc, filter)]

    # reads

    def find(self, filter=None, projection=None, *, sort=None, skip=0, limit=0, session=None):
        self.calls.append(
            (
                "find",
                {
                    "filter": deepcopy(filter),
                    "projection": projection,
                    "sort": sort,
                    "skip": skip,
                    "limit": limit,
                    "session": session,
                },
            )
        )
        docs = sort_documents(self._select(filter), sort)[skip:]
        if limit:
            docs = docs[:limit]
        return MemoryCursor([project(doc, projection) for doc in docs])

    async def find_one(self, filter=None, projection=None, *, session=None):
        self.calls.append(("find_one", {"filter": deepcopy(filter), "session": session}))
        for doc in self.docs:
            if matches(doc, filter):
                return deepcopy(project(doc, projection))
        return None

    async def count_documents(self, filter, *, session=None):
        self.calls.append(("count_documents", {"filter": deepcopy(filter), "session": session}))
        return len(self._select(filter))

    async def estimated_document_count(self):
        self.calls.append(("estimated_document_count", {}))
        if self.estimated_count is not None:
            return self.estimated_count
        return len(self.docs)

    async def aggregate(self, pipeline, *, session=None):
        self.calls.append(("aggregate", {"pipeline": deepcopy(pipeline), "session": session}))
        return MemoryCursor(self._run_pipeline(deepcopy(self.docs), pipeline))

    def _run_pipeline(self, docs: list[dict[str, Any]], pipeline) -> list[dict[str, Any]]:
        for stage in pipeline:
            (name, arg), = stage.items()
            if name == "$match":
                docs = [doc for doc in docs if matches(doc, arg)]
            elif name == "$sort":
                docs = sort_documents(docs, list(arg.items()))
            elif name == "$skip":
                docs = docs[arg:]
            elif name == "$limit":
                docs = docs[:arg]
            elif name == "$project":
                docs = [project(doc, arg) for doc in docs]
            elif name == "$count":
                docs = [{arg: len(docs)}] if docs else []
            elif name == "$facet":
                docs = [{key: self._run_pipeline(list(docs), sub) for key, sub in arg.items()}]
            else:
                raise NotImplementedError(f"stage {name} is not supported by MemoryStore")
        return docs

    async def distinct(self, key, filter=None, *, session=None):
        self.calls.append(("distinct", {"key": key, "filter": deepcopy(filter), "session": session}))
        values: list[Any] = []
        for doc in self._select(filter):
            value = get_path(doc, key)
            if value is not MISSING and value not in values:
                values.append(value)
        return values

    # writes

    def _check_unique(self, doc: dict[str, Any], ignore: dict[str, Any] | None = None) -> None:
        for field in ("_id", *self.unique):
            if field not in doc:
                continue
            for existing in self.docs:
                if existing is not ignore and existing.get(field) == doc[field]:
                    raise DuplicateKeyError(
                        f"E11000 duplicate key error collection: {self._name}",
                        code=11000,
                        details={"keyValue": {field: doc[field]}},
                    )

    def _insert(self, document: dict[str, Any]) -> Any:
        document.setdefault("_id", ObjectId())
        self._check_unique(document)
        self.docs.append(deepcopy(document))
        return document["_id"]

    async def insert_one(self, document, *, session=None):
        self.calls.append(("insert_one", {"document": deepcopy(document), "session": session}))
        return SimpleNamespace(inserted_id=self._insert(document))

    async def insert_many(self, documents, *, ordered=True, session=None):
        self.calls.append(("insert_many", {"ordered": ordered, "session": session}))
        return SimpleNamespace(inserted_ids=[self._insert(document) for document in documents])

    async def find_one_and_update(
        self,
        filter,
        update,
        projection=None,
        *,
        upsert=False,
        return_document=False,
        session=None,
    ):
        self.calls.append(
            ("find_one_and_update", {"filter": deepcopy(filter), "update": deepcopy(update),
                                     "upsert": upsert, "session": session})
        )
        for doc in self.docs:
            if matches(doc, filter):
                before = deepcopy(doc)
                apply_update(doc, update, inserting=False)
                return deepcopy(project(doc if return_document else before, projection))
        if not upsert:
            return None
        doc = {
            key: value
            for key, value in filter.items()
            if not key.startswith("$") and not isinstance(value, dict)
        }
        apply_update(doc, update, inserting=True)
        self._insert(doc)
        return deepcopy(project(doc, projection)) if return_document else None

    async def find_one_and_delete(self, filter, *, session=None):
        self.calls.append(("find_one_and_delete", {"filter": deepcopy(filter), "session": session}))
        for doc in self.docs:
            if matches(doc, filter):
                self.docs.remove(doc)
                return deepcopy(doc)
        return None

    async def update_many(self, filter, update, *, session=None):
        self.calls.append(("update_many", {"filter": deepcopy(filter), "session": session}))
        matched = self._select(filter)
        modified = 0
        for doc in matched:
            before = deepcopy(doc)
            apply_update(doc, update, inserting=False)
            modified += doc != before
        return SimpleNamespace(matched_count=len(matched), modified_count=modified)

    async def delete_many(self, filter, *, session=None):
        self.calls.append(("delete_many", {"filter": deepcopy(filter), "session": session}))
        matched = self._select(filter)
        self.docs = [doc for doc in self.docs if doc not in matched]
        return SimpleNamespace(deleted_count=len(matched))


class FakeSession:
    """Records transaction calls the way AsyncClientSession receives them."""

    def __init__(self):
        self.events: list[str] = []

    async def __aenter__(self):
        self.events.append("enter")
        return self

    async def __aexit__(self, *exc_info):
        self.events.append("exit")
        return False

    async def start_transaction(self):
        self.events.append("start")

    async def commit_transaction(self):
        self.events.append("commit")

    async def abort_transaction(self):
        self.events.append("abort")


class FakeClient:
    def __init__(self):
        self.session = FakeSession()

    def start_session(self):
        return self.session
