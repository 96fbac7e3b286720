"""Per-repository hook registry.

Each repository owns one HookRegistry; nothing is global. Listeners are
kept per event and run in descending priority (registration order breaks
ties). Events used by the repository:

- ``before:<op>``: ``listener(context)``; may mutate the context. An
  exception aborts the operation.
- ``after:<op>``: ``listener(context, result)``.
- ``error:<op>``: ``listener(context, error)``.

Failures inside ``after``/``error`` listeners are logged and swallowed: the
operation already happened and its outcome must reach the caller.
"""

import logging
from collections.abc import Callable
from typing import Any

from docrepo.core.hooks.decorators import RepoHook
from docrepo.core.utils import run_sync_or_async

logger = logging.getLogger(__name__)


class HookRegistry:
    """Listener registry for repository lifecycle events."""

    def __init__(self) -> None:
        self._hooks: dict[str, list[RepoHook]] = {}

    def on(
        self,
        event: str,
        listener: Callable | RepoHook,
        *,
        priority: int = 1,
        plugin_id: str | None = None,
    ) -> RepoHook:
        """Register ``listener`` for ``event``.

        Returns:
            The registered RepoHook (pass it or the listener to off()).
        """
        if isinstance(listener, RepoHook):
            entry = listener
        else:
            entry = RepoHook(name=event, func=listener, priority=priority)
            entry.plugin_id = plugin_id
        return self.register(entry, event=event)

    def register(self, entry: RepoHook, *, event: str | None = None) -> RepoHook:
        """Register an existing RepoHook, optionally under another event."""
        event = event or entry.name
        hooks = self._hooks.setdefault(event, [])
        hooks.append(entry)
        hooks.sort(key=lambda h: h.priority, reverse=True)
        logger.debug("Registered %r on '%s'", entry, event)
        return entry

    def off(self, event: str, listener: Callable | RepoHook) -> bool:
        """Remove a listener; returns False when it was not registered."""
        hooks = self._hooks.get(event, [])
        for entry in hooks:
            if entry is listener or entry.function is listener:
                hooks.remove(entry)
                return True
        return False

    def remove_plugin(self, plugin_id: str) -> int:
        """Remove every listener registered by ``plugin_id``; returns the count."""
        removed = 0
        for event, hooks in self._hooks.items():
            kept = [h for h in hooks if h.plugin_id != plugin_id]
            removed += len(hooks) - len(kept)
            self._hooks[event] = kept
        return removed

    def listeners(self, event: str) -> list[RepoHook]:
        """Listeners for ``event`` in execution order."""
        return list(self._hooks.get(event, []))

    def has_listeners(self, event: str) -> bool:
        return bool(self._hooks.get(event))

    async def emit(self, event: str, *args: Any, raise_errors: bool = True) -> None:
        """Run every listener of ``event`` with ``args``.

        Args:
            event: Event name.
            *args: Arguments passed to each listener.
            raise_errors: Propagate the first listener failure. When False,
                failures are logged and the remaining listeners still run.
        """
        for entry in self.listeners(event):
            logger.debug(
                "Executing %s::%s with priority %s", entry.plugin_id, entry.name, entry.priority
            )
            try:
                await run_sync_or_async(entry.function, *args)
            except Exception:
                if raise_errors:
                    raise
                logger.error(
                    "Error in listener %s::%s", entry.plugin_id, event, exc_info=True
                )


__all__ = ["HookRegistry"]
