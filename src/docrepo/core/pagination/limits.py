"""Limit and page sanitization.

``limit`` is the one input silently repaired: anything unusable falls back to
the configured default. An excessive ``page`` is rejected instead, since
serving a different page than requested would be a worse surprise.
"""

import math
from typing import Any

from docrepo.core.exceptions import PageOutOfRange
from docrepo.core.pagination.config import PaginationConfig


def _to_number(value: Any) -> float | None:
    """Coerce ints, floats and numeric strings; None when not possible."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int):
        try:
            return float(value)
        except OverflowError:
            return math.inf if value > 0 else -math.inf
    if isinstance(value, float):
        return value
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return None
    return None


def validate_limit(value: Any, config: PaginationConfig) -> int:
    """Return a usable page size between 1 and ``config.max_limit``.

    Examples:
        ``"abc"`` -> default, ``50.7`` -> 50, ``200`` -> max_limit,
        ``0`` or ``-5`` -> default.
    """
    parsed = _to_number(value)
    if parsed is None or not math.isfinite(parsed) or parsed < 1:
        return config.default_limit
    return min(math.floor(parsed), config.max_limit)


def validate_page(value: Any, config: PaginationConfig) -> int:
    """Return a 1-indexed page number.

    Raises:
        PageOutOfRange: If the floored page exceeds ``config.max_page``.
    """
    parsed = _to_number(value)
    if parsed is None or not math.isfinite(parsed) or parsed < 1:
        return 1

    page = math.floor(parsed)
    if page > config.max_page:
        raise PageOutOfRange(page, config.max_page)
    return page


def should_warn_deep_pagination(page: int, threshold: int) -> bool:
    return page > threshold


def calculate_skip(page: int, limit: int) -> int:
    return (page - 1) * limit


def calculate_total_pages(total: int, limit: int) -> int:
    return math.ceil(total / limit)


__all__ = [
    "validate_limit",
    "validate_page",
    "should_warn_deep_pagination",
    "calculate_skip",
    "calculate_total_pages",
]
