import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
load_dotenv()

import uvicorn
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.requests import Request
from fastapi.responses import FileResponse, JSONResponse
from fastapi.staticfiles import StaticFiles
from pydantic import ValidationError

from depot import Config
from depot.FileSystemGate import FileSystemGate
from depot.shared.gate import GateLogger

from dock import lifecycle
from dock.api import files as files_api
from dock.api import health as health_api

_log = GateLogger.get("Server")


async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Answer malformed or missing query parameters with the standard envelope."""
    fields = sorted({
        str(error["loc"][-1]) for error in exc.errors() if error.get("loc")
    })
    return JSONResponse(
        status_code=400,
        content={
            "success": False,
            "message": f"Invalid request parameters: {', '.join(fields)}",
        },
    )


def create_app(gate: FileSystemGate, assets_dir: Optional[str] = None) -> FastAPI:
    """
    Build the FastAPI application around a configured gate.

    Args:
        gate: FileSystemGate bound to the data root
        assets_dir: Static web UI directory, mounted at / when it exists.
            / serves html/index.html from it when that file is present.

    Returns:
        The application
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await lifecycle.startup(gate)
        yield
        await lifecycle.shutdown()

    app = FastAPI(title="Depot", lifespan=lifespan)
    app.add_exception_handler(RequestValidationError, validation_error_handler)

    app.include_router(files_api.create_router(gate))
    app.include_router(health_api.create_router(gate))

    # Mounted last so the API routes match first
    if assets_dir and Path(assets_dir).is_dir():
        index_page = Path(assets_dir) / "html" / "index.html"
        if index_page.is_file():
            @app.get("/", include_in_schema=False)
            async def serve_index():
                """Serve the web UI."""
                return FileResponse(index_page)

        app.mount("/", StaticFiles(directory=assets_dir, html=True), name="assets")
    elif assets_dir:
        _log.info(f"No assets directory at {assets_dir}, web UI disabled")

    return app


def main() -> int:
    """Load configuration and serve until interrupted."""
    is_valid, errors = Config.validate()
    if not is_valid:
        for error in errors:
            _log.error(error)
        _log.error("Set DATA_DIR to the directory to serve")
        return 1

    GateLogger.set_level(Config.get("LOG_LEVEL"))

    try:
        gate = FileSystemGate(Config.build_data_root())
    except (FileNotFoundError, NotADirectoryError, ValueError, ValidationError) as e:
        _log.error(f"Cannot serve data directory: {e}")
        return 1

    app = create_app(gate, Config.get("ASSETS_DIR"))

    host = Config.get("HOST")
    port = Config.get("PORT")
    _log.info(f"Listening on http://{host}:{port}")

    # uvicorn handles SIGINT/SIGTERM and drains connections before exiting
    uvicorn.run(app, host=host, port=port)
    return 0


if __name__ == "__main__":
    sys.exit(main())
