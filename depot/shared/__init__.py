"""
Shared utilities for Depot.

Provides access to common functionality used across Gate implementations.
"""

from depot.shared.gate import (
    GateLogger,
    build_health_status,
    get_logger,
)

__all__ = [
    "GateLogger",
    "build_health_status",
    "get_logger",
]
