from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class RuntimeBridge(Protocol):
    """
    Host runtime that owns the staging filesystem and runs JVM entry points.

    Every method is a suspension point. Implementations signal failure by raising;
    the core wraps filesystem failures into FilesystemError.
    """

    async def open(self, path: str, mode: str) -> Any: ...

    async def write(self, handle: Any, data: bytes, offset: int, length: int) -> int: ...

    async def close(self, handle: Any) -> None: ...

    async def create_directory(self, path: str) -> None: ...

    async def delete_tree(self, path: str) -> None: ...

    async def run_entry_point(self, main_class: str, classpath: str, *args: str) -> int: ...
