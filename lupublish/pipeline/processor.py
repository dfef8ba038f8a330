"""
Stage interface of the publish pipeline.

Each publish stage (locate, compile, resolve, assign) is a Processor that
accepts the frame type it owns and returns the next one.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import TYPE_CHECKING, Union

if TYPE_CHECKING:
    from .context import PipelineContext
    from .frames import Frame


# One frame, several frames, or None to end the run
ProcessorResult = Union["Frame", Sequence["Frame"], None]


class Processor(ABC):
    """
    One publish stage.

    Rules every stage follows:
    - a frame of a type the stage does not own is returned unchanged, so
      ErrorFrames and early PublishCompletedFrames reach the result
    - failures are raised, never returned; the pipeline wraps them
    - per-publish state lives in the PipelineContext, not on the stage
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Stage name used in logs, timings and ErrorFrames."""
        ...

    async def initialize(self, context: PipelineContext) -> None:
        """Called once before the first frame. No-op by default."""

    async def cleanup(self) -> None:
        """Called once after the run, also when it failed. No-op by default."""

    @abstractmethod
    async def process(
        self,
        frame: Frame,
        ctx: PipelineContext,
    ) -> ProcessorResult:
        """
        Handle one frame.

        Args:
            frame: Output of the previous stage
            ctx: Context of the current publish

        Returns:
            The next frame (or frames), or None to end the run
        """
        ...

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"
