from __future__ import annotations

import logging
from typing import Any, Callable, Optional, Protocol

from .types import ProgressSample

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]
LogFeedback = Callable[[str], None]

# The progress bar spans four stage units: the primary download fills 1..2.
PROGRESS_STAGE_UNITS = 4
PRIMARY_DOWNLOAD_BASE = 1
PRIMARY_INLINE_VALUE = 2


class ProgressBar(Protocol):
    value: float
    max: float


def notify_progress(cb: Optional[ProgressCallback], downloaded: int, total: int) -> None:
    """Best-effort progress notification; a missing or failing sink is ignored."""
    if cb is None:
        return
    try:
        cb(downloaded, total)
    except Exception as e:
        logger.debug(f"progress callback failed: {e}")


def chain_progress(*cbs: Optional[ProgressCallback]) -> ProgressCallback:
    live = [cb for cb in cbs if cb is not None]

    def _fanout(downloaded: int, total: int) -> None:
        for cb in live:
            notify_progress(cb, downloaded, total)

    return _fanout


class ProgressReporter:
    """Maps byte progress and log lines onto the caller's optional feedback sinks."""

    def __init__(
        self,
        *,
        log_feedback: Optional[LogFeedback] = None,
        progress_bar: Optional[ProgressBar] = None,
    ) -> None:
        self._log_feedback = log_feedback if callable(log_feedback) else None
        self._bar = progress_bar

    def feedback(self, message: str) -> None:
        logger.info(message)
        if self._log_feedback is None:
            return
        try:
            self._log_feedback(message)
        except Exception as e:
            logger.debug(f"log feedback sink failed: {e}")

    def _set_bar(self, value: float, maximum: Optional[float] = None) -> None:
        bar: Any = self._bar
        if bar is None:
            return
        try:
            if maximum is not None:
                bar.max = maximum
            bar.value = value
        except Exception as e:
            logger.debug(f"progress bar update failed: {e}")

    def primary_inline_done(self) -> None:
        self._set_bar(PRIMARY_INLINE_VALUE)

    def primary_download(self, downloaded: int, total: int) -> None:
        sample = ProgressSample(downloaded_bytes=downloaded, total_bytes=total)
        self._set_bar(PRIMARY_DOWNLOAD_BASE + sample.fraction, PROGRESS_STAGE_UNITS)
