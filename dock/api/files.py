from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Query
from fastapi.requests import Request
from fastapi.responses import JSONResponse, StreamingResponse
from starlette.background import BackgroundTask

from depot.FileSystemGate import (
    DownloadQuery,
    ErrorKind,
    FileSystemGate,
    MoveQuery,
    OperationResult,
    PathQuery,
)


STATUS_BY_KIND = {
    ErrorKind.INVALID_PATH: 400,
    ErrorKind.ALREADY_EXISTS: 400,
    ErrorKind.INVALID_SOURCE: 400,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.NOT_A_DIRECTORY: 404,
    ErrorKind.NOT_A_FILE: 404,
    ErrorKind.INTERNAL_IO: 500,
}


def status_for(result: OperationResult) -> int:
    """HTTP status for an operation result."""
    if result.success:
        return 200
    return STATUS_BY_KIND.get(result.kind, 500)


def envelope(result: OperationResult, **extra: Any) -> JSONResponse:
    """Render a result as the {success, message} response envelope."""
    content = {
        "success": result.success,
        "message": result.message if result.success else (result.error or ""),
        **extra,
    }
    return JSONResponse(status_code=status_for(result), content=content)


# ==================== Query decoding ====================


def listing_query(path: str = "") -> PathQuery:
    return PathQuery(path=path)


def path_query(path: str = Query(...)) -> PathQuery:
    return PathQuery(path=path)


def move_query(
    source: str = Query(..., alias="from"),
    destination: str = Query(..., alias="to"),
) -> MoveQuery:
    return MoveQuery(source=source, destination=destination)


def download_query(path: str = Query(...), peek: bool = False) -> DownloadQuery:
    return DownloadQuery(path=path, peek=peek)


def create_router(gate: FileSystemGate) -> APIRouter:
    router = APIRouter(prefix="/api/v1")

    @router.get("/ls")
    async def api_list(query: PathQuery = Depends(listing_query)):
        """List directory contents."""
        result = await gate.list_dir(query.path)
        return envelope(result, files=result.data or [])

    @router.put("/mkdir")
    async def api_mkdir(query: PathQuery = Depends(path_query)):
        """Create a directory."""
        return envelope(await gate.mkdir(query.path))

    @router.delete("/rmdir")
    async def api_rmdir(query: PathQuery = Depends(path_query)):
        """Delete a directory and its contents."""
        return envelope(await gate.rmdir(query.path))

    @router.put("/mv")
    async def api_move(query: MoveQuery = Depends(move_query)):
        """Move a file or directory."""
        return envelope(await gate.move(query.source, query.destination))

    @router.put("/cp")
    async def api_copy(query: MoveQuery = Depends(move_query)):
        """Copy a file or directory."""
        return envelope(await gate.copy(query.source, query.destination))

    @router.delete("/rm")
    async def api_remove_file(query: PathQuery = Depends(path_query)):
        """Delete a file."""
        return envelope(await gate.remove_file(query.path))

    @router.put("/upload")
    async def api_upload(request: Request, query: PathQuery = Depends(path_query)):
        """Upload the raw request body as a new file."""
        return envelope(await gate.upload(query.path, request.stream()))

    @router.get("/download")
    async def api_download(query: DownloadQuery = Depends(download_query)):
        """Stream a file to the client."""
        result, download = await gate.download(query.path, query.peek)
        if download is None:
            return envelope(result)

        return StreamingResponse(
            download,
            media_type=download.media_type,
            headers=download.headers,
            background=BackgroundTask(download.aclose),
        )

    return router


__all__ = ["create_router", "envelope", "status_for", "STATUS_BY_KIND"]
