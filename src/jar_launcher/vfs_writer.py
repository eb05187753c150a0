from __future__ import annotations

import logging
from typing import Any

from .bridge import RuntimeBridge
from .errors import FilesystemError

logger = logging.getLogger(__name__)


class VirtualFileWriter:
    """
    Open/write/close against the staging filesystem as one scoped operation.

    The handle is always closed. Writes to the same path are not serialized here;
    callers must not stage two payloads to one path concurrently.
    """

    def __init__(self, bridge: RuntimeBridge) -> None:
        self._bridge = bridge

    async def write(self, path: str, data: bytes) -> int:
        try:
            handle = await self._bridge.open(path, "w")
        except Exception as e:
            raise FilesystemError(f"open failed for {path}: {e}", path=path) from e

        try:
            written = await self._write_all(handle, path, data)
        finally:
            await self._close(handle, path)
        logger.debug(f"Wrote {written} bytes to {path}")
        return written

    async def _write_all(self, handle: Any, path: str, data: bytes) -> int:
        try:
            written = await self._bridge.write(handle, data, 0, len(data))
        except Exception as e:
            raise FilesystemError(f"write failed for {path}: {e}", path=path) from e
        if written is not None and int(written) != len(data):
            raise FilesystemError(f"short write for {path} ({written} of {len(data)} bytes)", path=path)
        return len(data)

    async def _close(self, handle: Any, path: str) -> None:
        try:
            await self._bridge.close(handle)
        except Exception as e:
            raise FilesystemError(f"close failed for {path}: {e}", path=path) from e
