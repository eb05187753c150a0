from __future__ import annotations

import asyncio
import logging
import os
import shutil
from pathlib import Path
from typing import Any, BinaryIO, Optional, Sequence

logger = logging.getLogger(__name__)


def _norm_staging_path(p: str) -> str:
    s = (p or "").strip().replace("\\", "/")
    if not s.startswith("/"):
        raise ValueError(f"staging path must be absolute: {p!r}")
    s = s.lstrip("/")
    if not s or s == ".":
        raise ValueError("empty staging path")
    if ".." in s.split("/"):
        raise ValueError("path traversal not allowed")
    return s


class LocalDirectoryBridge:
    """
    Runtime bridge backed by a host directory and a local `java` binary.

    Staging path `/files/client.jar` maps to `<root>/files/client.jar`.
    `create_directory` creates missing ancestors but fails on an existing leaf,
    and `delete_tree` fails on missing trees; the core treats both as advisory.
    """

    def __init__(
        self,
        root: Path,
        *,
        java: str = "java",
        jvm_options: Sequence[str] = (),
        cwd: Optional[Path] = None,
    ) -> None:
        self.root = Path(root)
        self._java = java
        self._jvm_options = tuple(jvm_options)
        self._cwd = cwd

    def host_path(self, path: str) -> Path:
        return self.root / _norm_staging_path(path)

    async def open(self, path: str, mode: str) -> BinaryIO:
        if mode != "w":
            raise ValueError(f"unsupported mode: {mode!r}")
        return open(self.host_path(path), "wb")

    async def write(self, handle: Any, data: bytes, offset: int, length: int) -> int:
        return handle.write(memoryview(data)[offset : offset + length])

    async def close(self, handle: Any) -> None:
        handle.close()

    async def create_directory(self, path: str) -> None:
        # Missing ancestors are created; an existing leaf still raises FileExistsError.
        self.host_path(path).mkdir(parents=True)

    async def delete_tree(self, path: str) -> None:
        shutil.rmtree(self.host_path(path))

    async def run_entry_point(self, main_class: str, classpath: str, *args: str) -> int:
        host_cp = os.pathsep.join(str(self.host_path(e)) for e in classpath.split(":") if e)
        cmd = [self._java, *self._jvm_options, "-cp", host_cp, main_class, *args]
        logger.info(f"Starting {main_class} with {self._java}")
        proc = await asyncio.create_subprocess_exec(*cmd, cwd=str(self._cwd or self.root))
        return await proc.wait()
