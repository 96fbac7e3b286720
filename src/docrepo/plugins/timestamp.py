"""Timestamp plugin: maintains ``createdAt``/``updatedAt`` fields."""

from datetime import UTC, datetime
from typing import Any

from docrepo.core.hooks import Plugin, hook


def _now() -> datetime:
    return datetime.now(UTC)


def _touch(data: dict[str, Any], field: str, now: datetime) -> None:
    # operator updates carry plain fields under $set; the caller owns the nested dict
    if any(key.startswith("$") for key in data):
        data["$set"] = {**data.get("$set", {}), field: now}
    else:
        data[field] = now


class TimestampPlugin(Plugin):
    """Sets ``createdAt``/``updatedAt`` on create and ``updatedAt`` on update.

    Values supplied by the caller on create are kept.
    """

    def __init__(self, created_field: str = "createdAt", updated_field: str = "updatedAt"):
        self.created_field = created_field
        self.updated_field = updated_field

    def _stamp_new(self, data: dict[str, Any], now: datetime) -> None:
        data.setdefault(self.created_field, now)
        data.setdefault(self.updated_field, now)

    @hook("before:create")
    def stamp_create(self, context: dict[str, Any]) -> None:
        self._stamp_new(context["data"], _now())

    @hook("before:create_many")
    def stamp_create_many(self, context: dict[str, Any]) -> None:
        now = _now()
        for item in context["data"]:
            self._stamp_new(item, now)

    @hook("before:get_or_create")
    def stamp_get_or_create(self, context: dict[str, Any]) -> None:
        self._stamp_new(context["data"], _now())

    @hook("before:update")
    def stamp_update(self, context: dict[str, Any]) -> None:
        _touch(context["data"], self.updated_field, _now())

    @hook("before:update_many")
    def stamp_update_many(self, context: dict[str, Any]) -> None:
        _touch(context["data"], self.updated_field, _now())


__all__ = ["TimestampPlugin"]
