from __future__ import annotations

from .bridge import RuntimeBridge
from .steps import CLEAN_MODS, PREPARE_DIRECTORY, PipelineStep, run_step


def parent_dir(path: str) -> str:
    """Directory part of a staging path: everything before the last '/'."""
    idx = (path or "").rfind("/")
    if idx <= 0:
        return ""
    return path[:idx]


class DirectoryPreparer:
    """
    Lenient directory management on the staging filesystem.

    Failures (typically "already exists" or "not found") are logged and swallowed;
    a write into a directory that truly could not be created fails loudly on its own.
    """

    def __init__(self, bridge: RuntimeBridge) -> None:
        self._bridge = bridge

    async def ensure(self, path: str, *, step: PipelineStep = PREPARE_DIRECTORY) -> None:
        if not path:
            return
        await run_step(step, self._bridge.create_directory(path))

    async def ensure_parent(self, file_path: str) -> None:
        await self.ensure(parent_dir(file_path))

    async def remove_tree(self, path: str, *, step: PipelineStep = CLEAN_MODS) -> None:
        if not path:
            return
        await run_step(step, self._bridge.delete_tree(path))
