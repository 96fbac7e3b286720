"""Soft delete plugin.

Deleting flags the document with a timestamp instead of removing it, and
reads skip flagged documents unless the call passes
``include_deleted=True``.
"""

import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from pymongo import ReturnDocument

from docrepo.core.exceptions import NotFound
from docrepo.core.hooks import Plugin, hook

if TYPE_CHECKING:
    from docrepo.core.repository import Repository

logger = logging.getLogger(__name__)

READ_OPERATIONS = ("get_all", "get_by_id", "get_by_query", "count", "exists")


class SoftDeletePlugin(Plugin):
    """Turns ``delete`` into an update setting ``deleted_field``.

    Args:
        deleted_field: Field holding the deletion timestamp.
        deleted_by_field: Field receiving the id of ``context["user"]``
            when an earlier listener put a user in the context.
    """

    def __init__(self, deleted_field: str = "deletedAt", deleted_by_field: str = "deletedBy"):
        self.deleted_field = deleted_field
        self.deleted_by_field = deleted_by_field
        self.repository: "Repository | None" = None

    def activated(self, repository: "Repository") -> None:
        self.repository = repository
        # reads share one listener; register it for every read operation
        for operation in READ_OPERATIONS:
            repository.hooks.on(
                f"before:{operation}", self.exclude_deleted, plugin_id=self.id
            )

    def exclude_deleted(self, context: dict[str, Any]) -> None:
        if context.get("include_deleted"):
            return
        context["query"] = {**context["query"], self.deleted_field: {"$exists": False}}

    @hook("before:delete", priority=10)
    async def flag_deleted(self, context: dict[str, Any]) -> None:
        update: dict[str, Any] = {self.deleted_field: datetime.now(UTC)}
        user = context.get("user")
        if user:
            update[self.deleted_by_field] = user.get("_id") or user.get("id")

        doc = await self.repository.store.find_one_and_update(
            {**context["query"], self.deleted_field: {"$exists": False}},
            {"$set": update},
            {"_id": 1},
            return_document=ReturnDocument.AFTER,
            session=context.get("session"),
        )
        if doc is None:
            raise NotFound(context.get("id"), context["repository"])

        context["soft_deleted"] = True
        logger.debug("Soft deleted %r in '%s'", context.get("id"), context["repository"])


__all__ = ["SoftDeletePlugin", "READ_OPERATIONS"]
