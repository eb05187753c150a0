from __future__ import annotations

import logging
from typing import List, Optional

from .bridge import RuntimeBridge
from .classpath import classpath_entries
from .config import LaunchSettings
from .directories import DirectoryPreparer
from .errors import AlreadyRunningError, MissingSourceError
from .fetcher import ChunkedFetcher
from .progress import LogFeedback, ProgressBar, ProgressCallback, ProgressReporter, chain_progress
from .stager import AssetStager, Fetcher
from .steps import LAUNCH, STAGE_LIBRARY, STAGE_PRIMARY, STAGE_SIDELOADED, run_step
from .types import InlineSource, LaunchConfig, LaunchPhase, NetworkSource, RunState
from .vfs_writer import VirtualFileWriter

logger = logging.getLogger(__name__)


class LaunchOrchestrator:
    """
    Stages the client jar, mods and libraries into the bridge filesystem and runs
    the main class.

    Sequence (each step awaited before the next starts):
      1. stage the primary jar to `settings.primary_path`
      2. jar/jar-zip variants: clear the mods dir (advisory), recreate it and
         stage every side-loaded `.jar` into it
      3. stage each complete library descriptor (parent dir prep is advisory)
      4. build the classpath and call `bridge.run_entry_point`

    One instance runs at most one launch at a time; `run()` raises
    AlreadyRunningError otherwise. Separate instances are independent.
    """

    def __init__(
        self,
        bridge: RuntimeBridge,
        settings: Optional[LaunchSettings] = None,
        *,
        fetcher: Optional[Fetcher] = None,
        on_progress: Optional[ProgressCallback] = None,
        log_feedback: Optional[LogFeedback] = None,
        progress_bar: Optional[ProgressBar] = None,
    ) -> None:
        self._bridge = bridge
        self._settings = settings or LaunchSettings()
        self._stager = AssetStager(fetcher or ChunkedFetcher(), VirtualFileWriter(bridge))
        self._dirs = DirectoryPreparer(bridge)
        self._reporter = ProgressReporter(log_feedback=log_feedback, progress_bar=progress_bar)
        self._on_progress = on_progress
        self._phase = LaunchPhase.IDLE
        self._last_launch: Optional[LaunchConfig] = None

    @property
    def settings(self) -> LaunchSettings:
        return self._settings

    @property
    def phase(self) -> LaunchPhase:
        return self._phase

    @property
    def state(self) -> RunState:
        return RunState.IDLE if self._phase is LaunchPhase.IDLE else RunState.RUNNING

    @property
    def is_running(self) -> bool:
        return self.state is RunState.RUNNING

    @property
    def last_launch(self) -> Optional[LaunchConfig]:
        return self._last_launch

    async def run(self) -> int:
        # No await between the check and the set: the guard is atomic on the loop.
        if self._phase is not LaunchPhase.IDLE:
            raise AlreadyRunningError()
        self._phase = LaunchPhase.STAGING
        try:
            try:
                return await self._run_sequence()
            except BaseException:
                self._phase = LaunchPhase.FAILED
                raise
        finally:
            self._phase = LaunchPhase.IDLE

    async def _run_sequence(self) -> int:
        s = self._settings
        await run_step(STAGE_PRIMARY, self._stage_primary())

        if s.version_type.sideloads_mods:
            await self._dirs.remove_tree(s.mods_dir)
            await self._stage_sideloaded()

        dependency_paths = await self._stage_libraries()

        self._phase = LaunchPhase.CONFIGURING
        launch = LaunchConfig(
            primary_jar_path=s.primary_path,
            main_class_name=s.resolved_main_class(),
            classpath_entries=tuple(classpath_entries(s.primary_path, dependency_paths, s.runtime_support_paths)),
            jvm_args=tuple(s.jvm_args),
        )
        self._last_launch = launch

        self._phase = LaunchPhase.LAUNCHING
        self._reporter.feedback(f"Launching Minecraft from {launch.primary_jar_path} ...")
        logger.debug(f"main={launch.main_class_name} classpath={launch.classpath} args={list(launch.jvm_args)}")
        exit_code = await run_step(
            LAUNCH, self._bridge.run_entry_point(launch.main_class_name, launch.classpath, *launch.jvm_args)
        )
        logger.info(f"Entry point {launch.main_class_name} exited with status {exit_code}")
        return exit_code  # type: ignore[return-value]

    async def _stage_primary(self) -> None:
        source = self._settings.primary_source
        target = self._settings.primary_path
        if isinstance(source, InlineSource):
            self._reporter.feedback("Writing modded jar to staging filesystem...")
            await self._stager.stage(source, target, self._on_progress)
            self._reporter.primary_inline_done()
        elif isinstance(source, NetworkSource) and source.url.strip():
            self._reporter.feedback("Downloading original jar to staging filesystem...")
            await self._stager.stage(
                source, target, chain_progress(self._reporter.primary_download, self._on_progress)
            )
        else:
            self._reporter.feedback("No jar source provided!")
            raise MissingSourceError("No jar source provided")

    async def _stage_sideloaded(self) -> None:
        s = self._settings
        await self._dirs.ensure(s.minecraft_dir)
        await self._dirs.ensure(s.mods_dir)
        for archive in s.sideloaded_archives:
            if not archive.has_extension(s.sideload_extension):
                logger.info(f"Skipping side-loaded file without {s.sideload_extension} extension: {archive.name}")
                continue
            target = f"{s.mods_dir.rstrip('/')}/{archive.name}"
            await run_step(STAGE_SIDELOADED, self._stager.stage(InlineSource(data=archive.data), target))
            logger.info(f"Staged side-loaded archive {archive.name} -> {target}")

    async def _stage_libraries(self) -> List[str]:
        staged: List[str] = []
        for lib in self._settings.libraries:
            if not lib.is_complete:
                logger.debug(f"Skipping incomplete library descriptor: {lib!r}")
                continue
            await self._dirs.ensure_parent(lib.path)

            def _log_progress(done: int, total: int, url: str = lib.url) -> None:
                logger.debug(f"Downloading {url}: {done}/{total}")

            await run_step(
                STAGE_LIBRARY,
                self._stager.stage(
                    NetworkSource(url=lib.url), lib.path, _log_progress, expected_blake3=lib.blake3
                ),
            )
            staged.append(lib.path)
        return staged
