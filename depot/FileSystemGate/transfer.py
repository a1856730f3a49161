"""
FileSystemGate streaming transfers.

Uploads pull an async byte stream into a newly created file through a
fixed-size buffer; downloads hand out a lazy iterator of file chunks.
Neither side holds a whole payload in memory.
"""

import asyncio
import os
from typing import AsyncIterable, AsyncIterator, Dict, Optional, Tuple
from urllib.parse import quote

import aiofiles
import aiofiles.os

from depot.shared.gate import GateLogger

from .models import DataRoot, ErrorKind, OperationResult
from .operations import guess_mime_type, _rejected, _io_failure
from .security import resolve_path

_log = GateLogger.get("FileSystemGate")


# ==================== Upload ====================


async def _pump(stream: AsyncIterable[bytes], out, chunk_size: int) -> int:
    """Copy stream into out, writing whenever the buffer reaches chunk_size."""
    buffer = bytearray()
    written = 0

    async for piece in stream:
        if not piece:
            continue
        buffer.extend(piece)
        if len(buffer) >= chunk_size:
            await out.write(bytes(buffer))
            written += len(buffer)
            buffer.clear()

    if buffer:
        await out.write(bytes(buffer))
        written += len(buffer)

    await out.flush()
    return written


def _unlink_partial(path: str) -> None:
    """Delete a partial upload without awaiting. Failures are only logged."""
    try:
        os.remove(path)
    except OSError as e:
        _log.warning(f"Could not remove partial upload {path}: {e}")


async def _discard_partial(out, path: str) -> None:
    """Close and delete a partially written upload. Failures are only logged."""
    try:
        await out.close()
    except OSError as e:
        _log.warning(f"Could not close partial upload {path}: {e}")
    try:
        await aiofiles.os.remove(path)
    except OSError as e:
        _log.warning(f"Could not remove partial upload {path}: {e}")


async def upload_file(
    root: DataRoot,
    relative_path: str,
    stream: AsyncIterable[bytes]
) -> OperationResult:
    """
    Write an inbound byte stream to a new file.

    The file is created exclusively, so of two racing uploads to the same
    path only one can succeed. If reading the stream or writing the file
    fails, or the task is cancelled, the partial file is deleted.

    Args:
        root: Data root configuration
        relative_path: Destination path relative to the root
        stream: Async iterable of body chunks

    Returns:
        OperationResult
    """
    is_valid, resolved, error = resolve_path(root.path, relative_path)
    if not is_valid:
        return _rejected("upload", relative_path, error)

    if os.path.lexists(resolved):
        return OperationResult.fail(
            "upload", relative_path, ErrorKind.ALREADY_EXISTS, "File already exists"
        )

    try:
        out = await aiofiles.open(resolved, "xb")
    except FileExistsError:
        return OperationResult.fail(
            "upload", relative_path, ErrorKind.ALREADY_EXISTS, "File already exists"
        )
    except OSError as e:
        return _io_failure("upload", relative_path, "Failed to upload file", e)

    try:
        written = await _pump(stream, out, root.chunk_size)
        await out.close()
    except asyncio.CancelledError:
        # A cancel scope re-cancels every await, so unlink before awaiting
        _unlink_partial(resolved)
        try:
            await out.close()
        except OSError as e:
            _log.warning(f"Could not close partial upload {resolved}: {e}")
        raise
    except Exception as e:
        # Body stream errors (client disconnects included) are not OSErrors
        await _discard_partial(out, resolved)
        return _io_failure("upload", relative_path, "Failed to upload file", e)

    _log.info(f"Uploaded {relative_path!r} ({written} bytes)")
    return OperationResult.ok(
        "upload", relative_path, message="File uploaded successfully", data={"size": written}
    )


# ==================== Download ====================


def content_disposition(name: str) -> str:
    """
    Build an attachment Content-Disposition header for a file name.

    Names that need escaping carry both a plain ASCII filename for old
    clients and an RFC 5987 filename* with the exact name.
    """
    fallback = name.encode("ascii", "replace").decode("ascii")
    fallback = fallback.replace("\\", "\\\\").replace('"', '\\"')
    quoted = quote(name)
    if quoted == name:
        return f'attachment; filename="{fallback}"'
    return f"attachment; filename=\"{fallback}\"; filename*=utf-8''{quoted}"

class FileDownload:
    """
    An opened file ready to stream.

    Iterating yields chunks until the file is exhausted and then closes it.
    Single pass only. aclose() releases the handle if the response never
    finishes iterating.
    """

    def __init__(self, handle, name: str, size: int, chunk_size: int, peek: bool = False):
        self._handle = handle
        self.name = name
        self.size = size
        self.chunk_size = chunk_size
        self.media_type = guess_mime_type(name)
        self.disposition: Optional[str] = None if peek else content_disposition(name)

    @property
    def headers(self) -> Dict[str, str]:
        headers = {"Content-Length": str(self.size)}
        if self.disposition is not None:
            headers["Content-Disposition"] = self.disposition
        return headers

    async def __aiter__(self) -> AsyncIterator[bytes]:
        try:
            while True:
                chunk = await self._handle.read(self.chunk_size)
                if not chunk:
                    break
                yield chunk
        finally:
            await self.aclose()

    async def aclose(self) -> None:
        await self._handle.close()


async def open_download(
    root: DataRoot,
    relative_path: str,
    peek: bool = False
) -> Tuple[OperationResult, Optional[FileDownload]]:
    """
    Open a file for streaming to a client.

    The file is opened here, before any response bytes go out, so open
    failures can still be reported as an error.

    Args:
        root: Data root configuration
        relative_path: Path relative to the root
        peek: Omit the attachment disposition so clients render inline

    Returns:
        Tuple of (OperationResult, FileDownload on success)
    """
    is_valid, resolved, error = resolve_path(root.path, relative_path, allow_root=True)
    if not is_valid:
        return _rejected("download", relative_path, error), None

    if not os.path.isfile(resolved):
        return OperationResult.fail(
            "download", relative_path, ErrorKind.NOT_FOUND, "File not found"
        ), None

    try:
        handle = await aiofiles.open(resolved, "rb")
    except FileNotFoundError:
        return OperationResult.fail(
            "download", relative_path, ErrorKind.NOT_FOUND, "File not found"
        ), None
    except OSError as e:
        return _io_failure("download", relative_path, "Failed to open file", e), None

    try:
        size = os.fstat(handle.fileno()).st_size
    except OSError as e:
        await handle.close()
        return _io_failure("download", relative_path, "Failed to read file size", e), None

    download = FileDownload(
        handle,
        name=os.path.basename(resolved),
        size=size,
        chunk_size=root.chunk_size,
        peek=peek,
    )
    return OperationResult.ok(
        "download", relative_path, message="File ready", data={"size": size}
    ), download
