"""Base result types for repository write operations.

Expected outcomes of writes (nothing matched, soft-deleted) are
returned as results, while caller errors and driver failures raise the
typed exceptions from ``docrepo.core.exceptions``.
"""

from typing import Any, Final, Literal, Self

from pydantic import BaseModel, Field


class StatusDetail(BaseModel):
    """Structured status information for operation results.

    Attributes:
        code: Machine-readable status code (e.g., "no_match", "soft_deleted").
        message: Human-readable status description.
        context: Additional diagnostic data (safe to log/serialize).
    """

    code: str = Field(description="Status code: 'no_match', 'soft_deleted', etc.")
    message: str = Field(description="Human-readable status description")
    context: dict[str, Any] = Field(default_factory=dict, description="Diagnostic context")


class BaseResult(BaseModel):
    """Base class for repository operation results.

    Pattern:
    - status="success" -> operation succeeded, specific fields populated
    - status="error" -> expected failure, detail contains the reason

    Example:
        >>> result = await repo.delete_many({"status": "archived"})
        >>> if result.is_ok():
        ...     print(f"Deleted {result.count}")
    """

    status: Literal["success", "error"] = Field(default="success", description="Operation status")
    detail: StatusDetail | None = Field(
        default=None, description="Status details (present for error or soft-deleted results)"
    )

    model_config = {"extra": "forbid"}

    def is_ok(self) -> bool:
        """Check if operation succeeded."""
        return self.status == "success"

    def is_error(self) -> bool:
        """Check if operation failed with expected error."""
        return self.status == "error"

    @classmethod
    def success(cls, *, detail: StatusDetail | None = None, **kwargs: Any) -> Self:
        """Factory method for successful result."""
        return cls(status="success", detail=detail, **kwargs)

    @classmethod
    def fail(cls, detail: StatusDetail, **kwargs: Any) -> Self:
        """Factory method for expected failure result."""
        return cls(status="error", detail=detail, **kwargs)


class StatusCode:
    """Centralized registry of status codes used by repository results."""

    NO_MATCH: Final = "no_match"
    """No document matched the query (expected state, not error)."""

    SOFT_DELETED: Final = "soft_deleted"
    """Delete was turned into an update by the soft-delete plugin."""


class DeleteResult(BaseResult):
    """Result of a delete operation.

    Attributes:
        count: Number of documents removed (or flagged when soft-deleted).
        message: Human-readable summary.
    """

    count: int = Field(default=0, description="Documents affected")
    message: str = Field(default="Deleted successfully", description="Summary")


class UpdateManyResult(BaseResult):
    """Result of a multi-document update.

    Attributes:
        matched_count: Documents matched by the query.
        modified_count: Documents actually modified.
    """

    matched_count: int = Field(default=0)
    modified_count: int = Field(default=0)


__all__ = [
    "BaseResult",
    "StatusDetail",
    "StatusCode",
    "DeleteResult",
    "UpdateManyResult",
]
