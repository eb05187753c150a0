from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class StepPolicy(str, Enum):
    FATAL = "fatal"
    ADVISORY = "advisory"


@dataclass(frozen=True)
class PipelineStep:
    """A named pipeline step and whether its failures abort the launch."""

    name: str
    policy: StepPolicy = StepPolicy.FATAL

    @property
    def advisory(self) -> bool:
        return self.policy is StepPolicy.ADVISORY


async def run_step(step: PipelineStep, aw: Awaitable[T]) -> Optional[T]:
    """
    Await `aw` under the step's policy.

    FATAL steps propagate every exception unchanged. ADVISORY steps log and
    swallow ordinary exceptions and return None; cancellation still propagates.
    """
    if not step.advisory:
        return await aw
    try:
        return await aw
    except Exception as e:
        logger.info(f"Advisory step '{step.name}' failed, continuing: {e}")
        return None


CLEAN_MODS = PipelineStep("clean-mods", StepPolicy.ADVISORY)
PREPARE_DIRECTORY = PipelineStep("prepare-directory", StepPolicy.ADVISORY)
STAGE_PRIMARY = PipelineStep("stage-primary", StepPolicy.FATAL)
STAGE_SIDELOADED = PipelineStep("stage-sideloaded", StepPolicy.FATAL)
STAGE_LIBRARY = PipelineStep("stage-library", StepPolicy.FATAL)
LAUNCH = PipelineStep("launch", StepPolicy.FATAL)
