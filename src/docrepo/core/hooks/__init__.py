"""Repository lifecycle hooks and plugins."""

from .decorators import RepoHook, hook
from .plugin import Plugin
from .registry import HookRegistry

__all__ = ["hook", "RepoHook", "HookRegistry", "Plugin"]
