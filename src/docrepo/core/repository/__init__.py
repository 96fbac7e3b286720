"""Document repository built on the pagination engine and hook registry."""

from .repository import Repository

__all__ = ["Repository"]
