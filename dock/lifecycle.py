from __future__ import annotations

from depot.FileSystemGate import FileSystemGate
from depot.shared.gate import GateLogger

# Lifecycle logger
_log = GateLogger.get("Lifecycle")


async def startup(gate: FileSystemGate):
    """Report readiness on server startup."""
    if gate.is_healthy():
        _log.info(f"Data directory ready: {gate.root.path}")
    else:
        checks = gate.get_health_status()["checks"]
        failed = ", ".join(name for name, ok in checks.items() if not ok)
        _log.warning(f"Data directory {gate.root.path} failed checks: {failed}")


async def shutdown():
    """Cleanup on server shutdown."""
    _log.info("Server stopped")


__all__ = ["startup", "shutdown"]
