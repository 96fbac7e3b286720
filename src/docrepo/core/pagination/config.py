"""Pagination configuration model."""

from pydantic import BaseModel, Field


class PaginationConfig(BaseModel):
    """Per-repository pagination settings.

    Set once when the repository (or engine) is built and shared by every
    request against it.

    Attributes:
        default_limit: Page size used when the caller's limit is unusable.
        max_limit: Upper bound applied to every requested limit.
        max_page: Highest page number accepted in offset/aggregate mode.
        deep_page_threshold: Page number past which a warning is attached.
        cursor_version: Format version stamped into every cursor token.
        use_estimated_count: Use the O(1) collection estimate for unfiltered
            offset queries.
        aggregate_safe_limit: Limit above which aggregate pagination warns
            about the single-response size ceiling. A heuristic, not derived
            from actual document sizes.
    """

    default_limit: int = Field(default=10, ge=1)
    max_limit: int = Field(default=100, ge=1)
    max_page: int = Field(default=10000, ge=1)
    deep_page_threshold: int = Field(default=100, ge=1)
    cursor_version: int = Field(default=1, ge=1)
    use_estimated_count: bool = False
    aggregate_safe_limit: int = Field(default=1000, ge=1)

    model_config = {"frozen": True, "extra": "forbid"}


__all__ = ["PaginationConfig"]
