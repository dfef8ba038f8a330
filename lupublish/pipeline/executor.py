"""
Sequential stage runner.

A publish runs its stages in a fixed order: locate, compile, resolve the
account, assign. Each stage gets every frame the previous stage emitted.
A stage that raises does not stop the run; its exception is wrapped in an
ErrorFrame that the remaining stages hand through, so the result always
says which stage failed and why.

    pipeline = Pipeline([
        ResourceLocatorProcessor(),
        CompilerProcessor(builder),
        AccountResolverProcessor(client),
        AssignmentProcessor(client),
    ])
    result = await pipeline.execute(PublishRequestFrame(...), ctx)
"""
from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING

from .context import PipelineContext, PipelineResult
from .frames import ErrorFrame, Frame

if TYPE_CHECKING:
    from .processor import Processor, ProcessorResult

logger = logging.getLogger(__name__)


def _as_frames(output: ProcessorResult) -> list[Frame]:
    if output is None:
        return []
    if isinstance(output, Frame):
        return [output]
    return list(output)


def _judge(result: PipelineResult) -> None:
    """Set success and error on result from its output frames."""
    errors = [f for f in result.output_frames if isinstance(f, ErrorFrame)]
    if not errors:
        return

    fatal = next((f for f in errors if f.is_fatal), None)
    if fatal is not None:
        result.success = False
        result.error = fatal.error_message
    elif len(errors) == len(result.output_frames):
        # Only non-fatal errors and nothing else survived
        result.success = False
        result.error = errors[0].error_message


class Pipeline:
    """
    Runs frames through an ordered list of stages.

    Every stage is initialized before the first frame is processed.
    Stages whose ``initialize()`` completed get ``cleanup()`` afterwards,
    whether the run succeeded or not. An ``initialize()`` failure is
    raised to the caller; ``process()`` failures become ErrorFrames.
    The run stops early when a stage emits no frames.
    """

    def __init__(self, processors: list[Processor]):
        if not processors:
            raise ValueError("A pipeline needs at least one processor")
        self.processors = processors
        self._live: list[Processor] = []

    @property
    def processor_names(self) -> list[str]:
        return [p.name for p in self.processors]

    async def _start(self, ctx: PipelineContext) -> None:
        self._live = []
        for processor in self.processors:
            try:
                await processor.initialize(ctx)
            except Exception as e:
                logger.error(f"Processor '{processor.name}' failed to initialize: {e}")
                raise
            self._live.append(processor)

    async def _stop(self) -> None:
        live, self._live = self._live, []
        for processor in live:
            try:
                await processor.cleanup()
            except Exception as e:
                # Cleanup problems must not hide the publish outcome
                logger.error(f"Processor '{processor.name}' failed to clean up: {e}")

    async def _run_stage(
        self,
        processor: Processor,
        frames: list[Frame],
        ctx: PipelineContext,
    ) -> list[Frame]:
        emitted: list[Frame] = []
        started = time.perf_counter()

        for frame in frames:
            ctx.record_frame(frame.to_dict(), processor.name)
            try:
                emitted.extend(_as_frames(await processor.process(frame, ctx)))
            except Exception as e:
                logger.error(f"Processor '{processor.name}' raised: {e}", exc_info=True)
                emitted.append(ErrorFrame.from_exception(e, processor.name, frame))

        took_ms = (time.perf_counter() - started) * 1000
        ctx.record_timing(processor.name, took_ms)
        logger.debug(
            f"{processor.name}: {len(frames)} frame(s) in, "
            f"{len(emitted)} out, {took_ms:.1f}ms"
        )
        return emitted

    async def execute(
        self,
        initial_frame: Frame,
        ctx: PipelineContext | None = None,
    ) -> PipelineResult:
        """
        Run initial_frame through every stage.

        Args:
            initial_frame: First frame, usually a PublishRequestFrame
            ctx: Context of this publish; a fresh one when omitted

        Returns:
            PipelineResult holding the frames the last stage emitted
        """
        ctx = ctx or PipelineContext()
        run_id = str(ctx.execution_id)[:8]
        logger.info(f"Pipeline {run_id} starting: {self.processor_names}")

        frames: list[Frame] = [initial_frame]
        try:
            await self._start(ctx)
            for processor in self.processors:
                if not frames:
                    logger.warning(f"Pipeline {run_id}: nothing left for '{processor.name}'")
                    break
                frames = await self._run_stage(processor, frames, ctx)
        finally:
            await self._stop()

        result = PipelineResult(context=ctx, output_frames=frames)
        _judge(result)

        logger.info(
            f"Pipeline {run_id} finished: success={result.success}, "
            f"frames={len(frames)}, {ctx.elapsed_ms:.1f}ms"
        )
        return result

    def __repr__(self) -> str:
        return f"Pipeline({self.processor_names})"


class PipelineBuilder:
    """Fluent construction of a Pipeline."""

    def __init__(self) -> None:
        self._stages: list[Processor] = []

    def add(self, processor: Processor) -> PipelineBuilder:
        self._stages.append(processor)
        return self

    def build(self) -> Pipeline:
        return Pipeline(list(self._stages))
