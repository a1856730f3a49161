"""
Health check API endpoint.

Reports the FileSystemGate health status.
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Response

from depot.FileSystemGate import FileSystemGate


def create_router(gate: FileSystemGate) -> APIRouter:
    router = APIRouter()

    @router.get("/api/health")
    async def api_health(response: Response) -> Dict[str, Any]:
        """
        Get the gate's health status.

        Returns 200 when healthy, 503 when the data root is missing or
        not readable and writable.
        """
        status = gate.get_health_status()

        if not status["healthy"]:
            response.status_code = 503

        return status

    return router


__all__ = ["create_router"]
