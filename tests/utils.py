"""Test helpers and shared constants."""

from datetime import UTC, datetime, timedelta

from bson import ObjectId

BASE_TIME = datetime(2024, 1, 1, tzinfo=UTC)


def oid(n: int) -> ObjectId:
    """Deterministic ObjectId; ordering follows ``n``."""
    return ObjectId(f"{n:024x}")


def make_items(count: int) -> list[dict]:
    """Items with unique ``createdAt``, repeating ``score`` and increasing ``_id``."""
    return [
        {
            "_id": oid(i + 1),
            "name": f"item-{i + 1:02d}",
            "score": i % 5,
            "active": i % 2 == 0,
            "createdAt": BASE_TIME + timedelta(minutes=i),
        }
        for i in range(count)
    ]


def ids(docs: list[dict]) -> list[ObjectId]:
    return [doc["_id"] for doc in docs]
