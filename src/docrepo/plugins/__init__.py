"""Ready-made repository plugins.

Plugin keyword arguments can come from Settings, keyed by ``Plugin.id``:

    >>> options = settings.get_plugin_config("soft_delete")
    >>> repo.use(SoftDeletePlugin(**options))
"""

from .audit_log import AuditLogPlugin
from .soft_delete import SoftDeletePlugin
from .timestamp import TimestampPlugin

__all__ = ["AuditLogPlugin", "SoftDeletePlugin", "TimestampPlugin"]
