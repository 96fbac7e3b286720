"""Settings - configuration loader for docrepo.

Settings are read from a JSON file, a dict passed by the application and
environment variables (a ``.env`` file is loaded first).

Configuration hierarchy:
- pagination: PaginationConfig fields (default_limit, max_limit, ...)
- plugins: Plugin-specific configurations
  - <plugin_id>: Keyword arguments for the plugin, e.g. soft_delete

Environment variables follow the naming convention
DOCREPO__<SECTION>__<KEY> for nested values; values are parsed as JSON
when possible.
Example: DOCREPO__PAGINATION__DEFAULT_LIMIT=20
         DOCREPO__PLUGINS__SOFT_DELETE__DELETED_FIELD="removedAt"
"""

import json
import logging
import os
from copy import deepcopy
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from docrepo.core.pagination.config import PaginationConfig

logger = logging.getLogger(__name__)

load_dotenv()

SECTIONS = ("pagination", "plugins")


class Settings:
    """Configuration manager for repositories.

    Priority (highest to lowest):
    1. Environment variables
    2. JSON file
    3. Provided config dict
    4. Default values

    Example:
        >>> settings = Settings("docrepo.json")
        >>> repo = Repository(collection, pagination=settings.pagination_config())
    """

    ENV_PREFIX = "DOCREPO"
    ENV_SEPARATOR = "__"

    def __init__(self, config_path: str | Path | None = None):
        """Create a Settings instance.

        Args:
            config_path: Path to a JSON configuration file. If None, only the
                passed dict and environment variables are used.
        """
        self._config_path = config_path
        self._config = self.default_config()
        self._loaded = False
        logger.debug("Settings created with config_path=%s", config_path)

    @staticmethod
    def default_config() -> dict[str, Any]:
        return {"pagination": {}, "plugins": {}}

    def load(self, config: dict[str, Any] | None = None) -> None:
        """Load configuration from all sources; later sources win.

        Args:
            config: Optional config dict merged before the JSON file.

        Raises:
            ValueError: If a source is not shaped like the hierarchy above.
        """
        if self._loaded:
            logger.debug("Configuration already loaded, skipping reload")
            return

        self._config = self.default_config()
        if config is not None:
            self._merge(config, source="dict")
        if self._config_path:
            self._load_from_json()
        self._load_from_env()

        self._loaded = True
        logger.debug(
            "Configuration loaded: pagination keys=%s, plugins=%s",
            list(self._config["pagination"]),
            list(self._config["plugins"]),
        )

    def _load_from_json(self) -> None:
        config_file = Path(self._config_path)
        if not config_file.exists():
            logger.warning("Config file not found: %s", self._config_path)
            return

        try:
            with open(config_file, encoding="utf-8") as f:
                json_config = json.load(f)
        except json.JSONDecodeError as e:
            logger.error("Invalid JSON in config file %s: %s", self._config_path, e)
            raise ValueError(f"Invalid JSON configuration file: {e}") from e

        self._merge(json_config, source=str(config_file))
        logger.info("Loaded configuration from JSON: %s", self._config_path)

    def _merge(self, config: Any, *, source: str) -> None:
        if not isinstance(config, dict):
            raise ValueError(f"Configuration from {source} must be an object")

        for section in SECTIONS:
            if section not in config:
                continue
            if not isinstance(config[section], dict):
                raise ValueError(f"'{section}' section from {source} must be an object")
            merged = self._config[section]
            for key, value in deepcopy(config[section]).items():
                if section == "plugins" and isinstance(value, dict):
                    merged.setdefault(key, {}).update(value)
                else:
                    merged[key] = value

    def _load_from_env(self) -> None:
        prefix = f"{self.ENV_PREFIX}{self.ENV_SEPARATOR}"

        for env_key, env_value in os.environ.items():
            if not env_key.startswith(prefix):
                continue

            key_path = [part.lower() for part in env_key[len(prefix) :].split(self.ENV_SEPARATOR)]
            section = key_path[0]
            if section not in SECTIONS or len(key_path) < 2:
                logger.warning("Ignoring env var with unknown layout: %s", env_key)
                continue
            if section == "plugins" and len(key_path) < 3:
                logger.warning("Plugin env var too short: %s", env_key)
                continue

            target = self._config[section]
            for key in key_path[1:-1]:
                target = target.setdefault(key, {})
            target[key_path[-1]] = self._parse_env_value(env_value)
            logger.debug("Set from env: %s", env_key)

    @staticmethod
    def _parse_env_value(value: str) -> Any:
        # numbers, booleans, null, arrays and objects; anything else stays a string
        try:
            return json.loads(value)
        except ValueError:
            return value

    def pagination_config(self) -> PaginationConfig:
        """Build the PaginationConfig from the loaded settings.

        Raises:
            pydantic.ValidationError: If a value is out of range or unknown.
        """
        if not self._loaded:
            self.load()
        return PaginationConfig.model_validate(self._config["pagination"])

    def get_plugin_config(
        self, plugin_id: str, key: str | None = None, default: Any = None
    ) -> Any:
        """Get plugin-specific configuration.

        Args:
            plugin_id: Plugin identifier (``Plugin.id``).
            key: Specific key. If None, returns the whole plugin config.
            default: Value returned when ``key`` is missing.
        """
        if not self._loaded:
            self.load()

        plugin_config = self._config["plugins"].get(plugin_id, {})
        if key is None:
            return deepcopy(plugin_config)
        return plugin_config.get(key, default)

    def get_all_config(self) -> dict[str, Any]:
        if not self._loaded:
            self.load()
        return deepcopy(self._config)

    def reload(self, config: dict[str, Any] | None = None) -> None:
        """Reload configuration from every source."""
        self._loaded = False
        self.load(config)
        logger.info("Configuration reloaded")

    @property
    def config_path(self) -> str | Path | None:
        return self._config_path

    @property
    def is_loaded(self) -> bool:
        return self._loaded


__all__ = ["Settings"]
