"""Small core utilities used across the project."""

import inspect
import logging
from collections.abc import Callable, Mapping, Sequence
from typing import Any

from docrepo.core.exceptions import ValidationError

# Set up a module-level logger
logger = logging.getLogger(__name__)


async def run_sync_or_async(func: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
    """Call ``func`` and await the result when it is awaitable."""
    result = func(*args, **kwargs)
    if inspect.isawaitable(result):
        return await result
    return result


def parse_sort(sort: str | Mapping[str, int] | None, default: Mapping[str, int]) -> dict[str, int]:
    """Turn a sort parameter into a sort dict.

    Accepts a mapping (returned as a dict copy) or the query-string form
    where a leading ``-`` means descending and fields are separated by
    commas or spaces: ``"-createdAt"``, ``"name,-age"``.
    """
    if not sort:
        return dict(default)
    if isinstance(sort, Mapping):
        return dict(sort)

    parsed: dict[str, int] = {}
    for token in sort.replace(",", " ").split():
        if token.startswith("-"):
            parsed[token[1:]] = -1
        else:
            parsed[token.lstrip("+")] = 1
    return parsed or dict(default)


def parse_select(
    select: str | Sequence[str] | Mapping[str, Any] | None,
) -> dict[str, int] | None:
    """Turn a field selection into a projection document.

    ``"name email"`` / ``["name", "email"]`` include fields, ``"-password"``
    excludes them. Mixing inclusion and exclusion is rejected, except for
    ``_id`` which may always be excluded.

    Raises:
        ValidationError: When inclusion and exclusion are mixed.
    """
    if not select:
        return None
    if isinstance(select, Mapping):
        return {key: int(value) for key, value in select.items()}

    tokens = select.replace(",", " ").split() if isinstance(select, str) else list(select)
    projection: dict[str, int] = {}
    for token in tokens:
        token = token.strip()
        if not token:
            continue
        if token.startswith("-"):
            projection[token[1:]] = 0
        else:
            projection[token.lstrip("+")] = 1

    modes = {value for key, value in projection.items() if key != "_id"}
    if len(modes) > 1:
        raise ValidationError("cannot mix field inclusion and exclusion", field="select")
    return projection or None


__all__ = ["run_sync_or_async", "parse_sort", "parse_select"]
