from __future__ import annotations

import logging
from typing import Optional, Protocol

from .errors import MissingSourceError
from .progress import ProgressCallback, notify_progress
from .types import AssetSource, InlineSource, NetworkSource, StagedAsset
from .vfs_writer import VirtualFileWriter

logger = logging.getLogger(__name__)


class Fetcher(Protocol):
    async def fetch(
        self,
        url: str,
        on_progress: Optional[ProgressCallback] = None,
        *,
        expected_blake3: str = "",
    ) -> bytes: ...


class AssetStager:
    """
    Materializes one payload at a staging path.

    The full payload is held in memory before the single write, so later stages
    never observe a partial file written by this class.
    """

    def __init__(self, fetcher: Fetcher, writer: VirtualFileWriter) -> None:
        self._fetcher = fetcher
        self._writer = writer

    async def stage(
        self,
        source: AssetSource,
        target_path: str,
        on_progress: Optional[ProgressCallback] = None,
        *,
        expected_blake3: str = "",
    ) -> str:
        if isinstance(source, NetworkSource):
            logger.debug(f"Fetching {source.url} -> {target_path}")
            data = await self._fetcher.fetch(source.url, on_progress, expected_blake3=expected_blake3)
            await self._writer.write(target_path, data)
            return target_path

        if isinstance(source, InlineSource):
            await self._writer.write(target_path, source.data)
            notify_progress(on_progress, source.size, source.size)
            return target_path

        raise MissingSourceError(f"unsupported asset source: {type(source).__name__}")

    async def stage_asset(self, asset: StagedAsset, on_progress: Optional[ProgressCallback] = None) -> str:
        return await self.stage(asset.source, asset.target_path, on_progress)
