"""
Depot Configuration Manager.

Centralized configuration with:
- Schema-driven validation
- Environment variable and .env loading
- Type conversion with default fallback
"""

import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from dotenv import load_dotenv

from depot.shared.gate import GateLogger

_log = GateLogger.get("Config")

from depot.Config.schema import (
    CONFIG_SCHEMA,
    ConfigField,
    ConfigType,
    ConfigCategory,
    get_schema_by_key,
    get_required_fields,
)
from depot.FileSystemGate.models import DataRoot


# Config file paths
PROJECT_ROOT = Path(__file__).resolve().parents[2]
ENV_FILE = PROJECT_ROOT / ".env"


class ConfigManager:
    """
    Manages Depot configuration.

    Priority order:
    1. Environment variables
    2. .env file
    3. Schema defaults
    """

    def __init__(self, env_file: Optional[Path] = None):
        self._env_file = env_file or ENV_FILE
        self._cache: Dict[str, Any] = {}
        self._loaded = False
        self._load()

    def _load(self):
        """Load configuration from all sources."""
        # Existing environment variables win over .env entries
        load_dotenv(self._env_file)

        for field in CONFIG_SCHEMA:
            value = os.environ.get(field.env_var)

            if value is None or value == "":
                value = field.default

            self._cache[field.key] = self._convert(field, value)

        self._loaded = True

    def _convert(self, field: ConfigField, value: Any) -> Any:
        """Convert value to the field's type, falling back to its default."""
        if value is None:
            return None

        try:
            return self._convert_type(value, field.config_type)
        except (ValueError, TypeError):
            _log.warning(
                f"Invalid value for {field.key}: {value!r}, using default {field.default!r}"
            )
            return field.default

    def _convert_type(self, value: Any, config_type: ConfigType) -> Any:
        """Convert value to appropriate type."""
        if config_type == ConfigType.INTEGER:
            return int(value)
        return str(value)

    def get(self, key: str, default: Any = None) -> Any:
        """Get a configuration value."""
        if not self._loaded:
            self._load()
        value = self._cache.get(key)
        return default if value is None else value

    def get_all(self) -> Dict[str, Any]:
        """Get all configuration values."""
        return {field.key: self._cache.get(field.key) for field in CONFIG_SCHEMA}

    def get_status(self) -> Dict[str, Any]:
        """Get configuration status with missing/invalid checks."""
        missing = []
        invalid = []
        configured = []

        for field in CONFIG_SCHEMA:
            value = self._cache.get(field.key)

            if value is None or value == "":
                if field.required:
                    missing.append({
                        "key": field.key,
                        "description": field.description,
                        "category": field.category.value,
                    })
            elif field.options and value not in field.options:
                invalid.append({
                    "key": field.key,
                    "value": value,
                    "options": field.options,
                })
            else:
                configured.append(field.key)

        return {
            "status": "ok" if not missing and not invalid else "incomplete",
            "missing": missing,
            "invalid": invalid,
            "configured_count": len(configured),
            "total_count": len(CONFIG_SCHEMA),
        }

    def validate(self) -> Tuple[bool, List[str]]:
        """
        Validate configuration.

        Returns:
            (is_valid, list of error messages)
        """
        errors = []

        for field in CONFIG_SCHEMA:
            value = self._cache.get(field.key)

            # Check required
            if field.required and (value is None or value == ""):
                errors.append(f"Required config missing: {field.key}")
                continue

            # Check options
            if value and field.options and value not in field.options:
                errors.append(f"Invalid option for {field.key}: {value}")

        return len(errors) == 0, errors

    def build_data_root(self) -> DataRoot:
        """
        Build the immutable root configuration for the file gate.

        Raises:
            ValueError: If DATA_DIR is not configured or the chunk size is invalid
        """
        data_dir = self.get("DATA_DIR")
        if not data_dir:
            raise ValueError("DATA_DIR is not configured")

        return DataRoot(
            path=data_dir,
            chunk_size=self.get("TRANSFER_CHUNK_SIZE"),
        )


# Global instance
_manager: Optional[ConfigManager] = None


def get_manager() -> ConfigManager:
    """Get or create the global ConfigManager."""
    global _manager
    if _manager is None:
        _manager = ConfigManager()
    return _manager


def reload():
    """Reload configuration from the environment."""
    global _manager
    _manager = ConfigManager()


# Convenience functions
def get(key: str, default: Any = None) -> Any:
    """Get a config value."""
    return get_manager().get(key, default)


def get_all() -> Dict:
    """Get all config values."""
    return get_manager().get_all()


def get_status() -> Dict:
    """Get config status."""
    return get_manager().get_status()


def validate() -> Tuple[bool, List[str]]:
    """Validate configuration."""
    return get_manager().validate()


def build_data_root() -> DataRoot:
    """Build the DataRoot from the current configuration."""
    return get_manager().build_data_root()


__all__ = [
    "ConfigManager",
    "ConfigField",
    "ConfigType",
    "ConfigCategory",
    "CONFIG_SCHEMA",
    "get_manager",
    "reload",
    "get",
    "get_all",
    "get_status",
    "validate",
    "build_data_root",
    "get_schema_by_key",
    "get_required_fields",
]
