"""Repository plugin base class.

A plugin groups ``@hook``-decorated methods; ``apply`` binds them to a
repository instance and registers them on its HookRegistry.
"""

import logging
from inspect import getmembers
from types import MethodType
from typing import TYPE_CHECKING

import inflection

from docrepo.core.hooks.decorators import RepoHook

if TYPE_CHECKING:
    from docrepo.core.repository.repository import Repository

logger = logging.getLogger(__name__)


class Plugin:
    """Base class for repository plugins.

    Example:
        >>> class StampPlugin(Plugin):
        ...     @hook("before:create")
        ...     def stamp(self, context):
        ...         context["data"]["stamped"] = True
        >>>
        >>> repo = Repository(collection, plugins=[StampPlugin()])
    """

    #: Optional explicit id; derived from the class name otherwise.
    name: str | None = None

    @property
    def id(self) -> str:
        """Plugin id, e.g. ``SoftDeletePlugin`` -> ``soft_delete``."""
        if self.name:
            return self.name
        class_name = inflection.underscore(type(self).__name__)
        return class_name.removesuffix("_plugin")

    def hooks(self) -> list[RepoHook]:
        """Return this plugin's hooks bound to the instance."""
        bound = []
        for _, attr in getmembers(type(self), lambda obj: isinstance(obj, RepoHook)):
            entry = RepoHook(
                name=attr.name, func=MethodType(attr.function, self), priority=attr.priority
            )
            entry.plugin_id = self.id
            bound.append(entry)
        return bound

    def apply(self, repository: "Repository") -> None:
        """Register hooks on ``repository`` and run ``activated``."""
        for entry in self.hooks():
            repository.hooks.register(entry)
        self.activated(repository)
        logger.debug("Plugin '%s' applied to repository '%s'", self.id, repository.name)

    def activated(self, repository: "Repository") -> None:
        """Override to run custom logic after the hooks are registered."""


__all__ = ["Plugin"]
