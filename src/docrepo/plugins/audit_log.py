"""Audit log plugin: logs writes and write failures."""

import logging
from typing import Any

from docrepo.core.hooks import Plugin, hook


def _user_id(context: dict[str, Any]) -> Any:
    user = context.get("user") or {}
    return user.get("_id") or user.get("id")


def _result_id(result: Any) -> Any:
    if isinstance(result, dict):
        return result.get("_id")
    return getattr(result, "id", None)


class AuditLogPlugin(Plugin):
    """Logs create/update/delete outcomes.

    Args:
        logger: Logger receiving the records; ``docrepo.audit`` by default.
    """

    def __init__(self, logger: logging.Logger | None = None):
        self.logger = logger or logging.getLogger("docrepo.audit")

    @hook("after:create")
    def log_create(self, context: dict[str, Any], result: Any) -> None:
        self.logger.info(
            "Document created in '%s': id=%r user=%r",
            context["repository"],
            _result_id(result),
            _user_id(context),
        )

    @hook("after:update")
    def log_update(self, context: dict[str, Any], result: Any) -> None:
        self.logger.info(
            "Document updated in '%s': id=%r user=%r",
            context["repository"],
            context.get("id") or _result_id(result),
            _user_id(context),
        )

    @hook("after:delete")
    def log_delete(self, context: dict[str, Any], result: Any) -> None:
        self.logger.info(
            "Document deleted in '%s': id=%r user=%r soft=%s",
            context["repository"],
            context.get("id"),
            _user_id(context),
            bool(context.get("soft_deleted")),
        )

    @hook("error:create")
    def log_create_error(self, context: dict[str, Any], error: Exception) -> None:
        self.logger.error(
            "Create failed in '%s': %s user=%r", context["repository"], error, _user_id(context)
        )

    @hook("error:update")
    def log_update_error(self, context: dict[str, Any], error: Exception) -> None:
        self.logger.error(
            "Update failed in '%s': id=%r %s user=%r",
            context["repository"],
            context.get("id"),
            error,
            _user_id(context),
        )

    @hook("error:delete")
    def log_delete_error(self, context: dict[str, Any], error: Exception) -> None:
        self.logger.error(
            "Delete failed in '%s': id=%r %s user=%r",
            context["repository"],
            context.get("id"),
            error,
            _user_id(context),
        )


__all__ = ["AuditLogPlugin"]
