"""Hook decorator and related data structures."""

from collections.abc import Callable


# class to represent a @hook
class RepoHook:
    """Represents a listener bound to a repository event."""

    def __init__(self, name: str, func: Callable, priority: int):
        """Create a RepoHook.

        Args:
            name: Event name, e.g. "before:create".
            func: Underlying callable (sync or async).
            priority: Hook priority (higher executes first).
        """
        self.function = func
        self.name = name
        self.priority = priority
        self.plugin_id: str | None = None

    def __repr__(self) -> str:
        """Return a compact debug representation."""
        return f"RepoHook(plugin_id={self.plugin_id}, name={self.name}, priority={self.priority})"


def hook(*args: str | Callable, priority: int = 1) -> Callable:
    """Decorate a function (or plugin method) as a repository event listener.

    Event names follow ``<phase>:<operation>`` with phase one of ``before``,
    ``after`` or ``error``.

    Args:
        *args: Event name, or the function itself for ``@hook``.
        priority: Hook priority (higher executes first).

    Returns:
        A decorator that wraps the function into a RepoHook.

    Example:
        >>> @hook("before:create", priority=5)
        ... def stamp(context):
        ...     context["data"]["source"] = "api"
    """

    def _make_with_name(event: str) -> Callable:
        def _make_hook(func: Callable) -> RepoHook:
            return RepoHook(name=event, func=func, priority=priority)

        return _make_hook

    if len(args) == 1 and isinstance(args[0], str):
        # Example usage: @hook("before:create", priority=2)
        return _make_with_name(args[0])
    elif len(args) == 1 and callable(args[0]):
        # the function name is the event: before_create -> before:create
        # Example usage: @hook
        return _make_with_name(_event_from_name(args[0].__name__))(args[0])
    elif len(args) == 0:
        # Example usage: @hook(priority=2)
        def _partial(func: Callable) -> RepoHook:
            return _make_with_name(_event_from_name(func.__name__))(func)

        return _partial
    else:
        raise ValueError("Too many arguments for hook decorator")


def _event_from_name(func_name: str) -> str:
    phase, _, operation = func_name.partition("_")
    if phase not in ("before", "after", "error") or not operation:
        raise ValueError(
            f"Cannot derive an event from '{func_name}'; "
            "name it <phase>_<operation> or pass the event explicitly"
        )
    return f"{phase}:{operation}"


__all__ = ["RepoHook", "hook"]
