"""
Manages loading, validation, and migration of the INI configuration file.
"""

import configparser
import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from cacheflow.exceptions import ConfigurationError
from cacheflow.models.config import CacheFlowConfig

log = logging.getLogger(__name__)

DEFAULTS_SECTION = "DEFAULT"


class ConfigManager:
    """Handles all operations related to the library's INI config file."""

    def __init__(self, config_file_path: Path):
        self.config_file_path = config_file_path
        self._parser = configparser.ConfigParser()

    def load_config(self, overrides: dict[str, Any] | None = None) -> CacheFlowConfig:
        """
        Loads configuration from the INI file, applies overrides, and validates it.

        Args:
            overrides: Settings provided in code or on the command line, including
            the code-only hooks such as `response_model`.

        Returns:
            A validated CacheFlowConfig object.

        Raises:
            ConfigurationError: If the config file is missing, invalid, or validation
            fails.
        """
        if not self.config_file_path.is_file():
            raise ConfigurationError(
                f"Configuration file not found at '{self.config_file_path}'. "
                "Please run 'cacheflow init' first."
            )

        try:
            self._parser.read(self.config_file_path)
        except configparser.Error as e:
            raise ConfigurationError(f"Error parsing configuration file: {e}") from e

        if self._migrate_if_needed():
            log.info(
                "[yellow]Configuration file was updated with new default values."
                "[/yellow]"
            )

        settings = self.get_config_as_dict()
        if overrides:
            settings.update(overrides)

        try:
            return CacheFlowConfig(**settings)
        except (ValidationError, ValueError) as e:
            raise ConfigurationError(f"Configuration validation failed:\n{e}") from e

    def save_new_config(self, settings: dict[str, Any], base_url: str = "") -> None:
        """
        Creates and saves a new configuration file.

        Args:
            settings: A dictionary of settings to save; missing keys take the model
            defaults.
            base_url: The base URL relative request paths are resolved against.
        """
        config = configparser.ConfigParser()
        config[DEFAULTS_SECTION] = {"base_url": base_url}
        defaults = CacheFlowConfig()

        for key in sorted(CacheFlowConfig.get_ini_keys()):
            value = settings.get(key, getattr(defaults, key))
            config[DEFAULTS_SECTION][key] = self._to_ini_value(value)

        try:
            self.config_file_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.config_file_path, "w", encoding="utf-8") as configfile:
                config.write(configfile)
        except OSError as e:
            raise ConfigurationError(f"Failed to save configuration file: {e}") from e

    def get_base_url(self) -> str:
        """Returns the configured base URL, reading the file if needed."""
        if not self._parser.has_option(DEFAULTS_SECTION, "base_url"):
            self._parser.read(self.config_file_path)
        return self._parser[DEFAULTS_SECTION].get("base_url", "")

    def get_config_as_dict(self) -> dict[str, Any]:
        """Reads the 'DEFAULT' section of the INI file into a dictionary."""
        section = self._parser[DEFAULTS_SECTION]
        defaults = CacheFlowConfig()
        return {
            "ttl": section.getint("ttl", int(defaults.ttl.total_seconds())),
            "offline_mode_enabled": section.getboolean(
                "offline_mode_enabled", defaults.offline_mode_enabled
            ),
            "refresh_on_cache_hit": section.getboolean(
                "refresh_on_cache_hit", defaults.refresh_on_cache_hit
            ),
            "max_connections": section.getint(
                "max_connections", defaults.max_connections
            ),
            "request_timeout": section.getfloat(
                "request_timeout", defaults.request_timeout
            ),
        }

    @staticmethod
    def _to_ini_value(value: Any) -> str:
        if isinstance(value, bool):
            return "true" if value else "false"
        if hasattr(value, "total_seconds"):
            return str(int(value.total_seconds()))
        return str(value)

    def _migrate_if_needed(self) -> bool:
        """Adds missing default values to an existing config file."""
        defaults = CacheFlowConfig()
        config_section = self._parser[DEFAULTS_SECTION]
        needs_saving = False

        for key in sorted(CacheFlowConfig.get_ini_keys()):
            if key not in config_section:
                config_section[key] = self._to_ini_value(getattr(defaults, key))
                needs_saving = True
                log.debug(
                    f"Migrating config: added missing key '{key}' with "
                    f"value '{config_section[key]}'."
                )

        if needs_saving:
            try:
                with open(self.config_file_path, "w", encoding="utf-8") as f:
                    self._parser.write(f)
            except OSError as e:
                log.error(f"Could not save migrated configuration file: {e}")
                return False

        return needs_saving
