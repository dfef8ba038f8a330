"""
Per-publish context and pipeline result.

A PipelineContext is created for every publish and handed to every
stage. It names the bot being published, points at the project on disk,
and carries the two side channels of a publish: the notifier and the
cancellation token. Nothing in it outlives the publish.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any
from uuid import UUID, uuid4

from .cancellation import CancellationToken

if TYPE_CHECKING:
    from lupublish.config.schemas import RuntimeSettings

    from .observability import Notifier


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class PipelineContext:
    """
    State shared by the stages of one publish.

    ``bot_name`` and ``environment`` give the default prediction account
    name; ``project_path`` and ``runtime`` decide where the build output
    lives. ``processor_timings`` and ``frame_log`` are filled by the
    executor.
    """

    execution_id: UUID = field(default_factory=uuid4)
    started_at: datetime = field(default_factory=_utc_now)

    bot_name: str = ""
    environment: str = ""
    project_path: str = ""
    runtime: RuntimeSettings | None = None

    notifier: Notifier | None = None
    cancellation: CancellationToken = field(default_factory=CancellationToken)

    processor_timings: dict[str, float] = field(default_factory=dict)
    frame_log: list[dict[str, Any]] = field(default_factory=list)

    @property
    def elapsed_ms(self) -> float:
        return (_utc_now() - self.started_at).total_seconds() * 1000

    def record_frame(self, frame_dict: dict[str, Any], processor_name: str) -> None:
        """Append a frame entering processor_name to the audit trail."""
        self.frame_log.append(
            {
                "processor": processor_name,
                "frame": frame_dict,
                "elapsed_ms": self.elapsed_ms,
            }
        )

    def record_timing(self, processor_name: str, duration_ms: float) -> None:
        self.processor_timings[processor_name] = duration_ms


@dataclass
class PipelineResult:
    """Frames left after the last stage, plus the context they ran in."""

    context: PipelineContext
    output_frames: list[Any] = field(default_factory=list)
    success: bool = True
    error: str | None = None

    @property
    def execution_id(self) -> UUID:
        return self.context.execution_id

    @property
    def duration_ms(self) -> float:
        return self.context.elapsed_ms

    def get_frame(self, frame_type: type) -> Any | None:
        """First output frame of frame_type, or None."""
        return next((f for f in self.output_frames if isinstance(f, frame_type)), None)

    def to_dict(self) -> dict[str, Any]:
        return {
            "execution_id": str(self.execution_id),
            "success": self.success,
            "error": self.error,
            "duration_ms": self.duration_ms,
            "output_frame_types": [f.frame_type for f in self.output_frames],
        }
