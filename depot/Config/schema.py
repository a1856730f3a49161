"""
Configuration schema for Depot.

Defines all configurable options with metadata for validation
and documentation.
"""

from enum import Enum
from typing import Optional, List, Any
from dataclasses import dataclass


class ConfigType(Enum):
    """Configuration value types."""
    STRING = "string"
    INTEGER = "integer"
    PATH = "path"          # File system path


class ConfigCategory(Enum):
    """Configuration categories for grouping."""
    PATHS = "paths"
    SERVER = "server"
    TRANSFER = "transfer"


@dataclass
class ConfigField:
    """Definition of a configuration field."""
    key: str
    description: str
    config_type: ConfigType
    category: ConfigCategory
    required: bool = False
    default: Any = None
    env_var: str = None          # Override env var name (defaults to key)
    options: List[str] = None    # For enumerated types

    def __post_init__(self):
        if self.env_var is None:
            self.env_var = self.key


# ==================== Schema Definition ====================

CONFIG_SCHEMA: List[ConfigField] = [
    # === Paths ===
    ConfigField(
        key="DATA_DIR",
        description="Root directory served by the file API; every path is confined to it",
        config_type=ConfigType.PATH,
        category=ConfigCategory.PATHS,
        required=True,
    ),
    ConfigField(
        key="ASSETS_DIR",
        description="Directory with the static web UI (served at / when present)",
        config_type=ConfigType.PATH,
        category=ConfigCategory.PATHS,
        required=False,
        default="assets",
    ),

    # === Server ===
    ConfigField(
        key="HOST",
        description="Server bind address",
        config_type=ConfigType.STRING,
        category=ConfigCategory.SERVER,
        required=False,
        default="0.0.0.0",
    ),
    ConfigField(
        key="PORT",
        description="Server port",
        config_type=ConfigType.INTEGER,
        category=ConfigCategory.SERVER,
        required=False,
        default=3000,
    ),
    ConfigField(
        key="LOG_LEVEL",
        description="Logging verbosity",
        config_type=ConfigType.STRING,
        category=ConfigCategory.SERVER,
        required=False,
        default="INFO",
        options=["DEBUG", "INFO", "WARNING", "ERROR"],
    ),

    # === Transfer ===
    ConfigField(
        key="TRANSFER_CHUNK_SIZE",
        description="Upload buffer and download chunk size in bytes",
        config_type=ConfigType.INTEGER,
        category=ConfigCategory.TRANSFER,
        required=False,
        default=64 * 1024,
    ),
]


def get_schema_by_key(key: str) -> Optional[ConfigField]:
    """Get schema field by key."""
    for field in CONFIG_SCHEMA:
        if field.key == key:
            return field
    return None


def get_schema_by_category(category: ConfigCategory) -> List[ConfigField]:
    """Get all fields in a category."""
    return [f for f in CONFIG_SCHEMA if f.category == category]


def get_required_fields() -> List[ConfigField]:
    """Get all required fields."""
    return [f for f in CONFIG_SCHEMA if f.required]
