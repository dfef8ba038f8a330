"""
Base frame types for the publish pipeline.

A publish is a chain of immutable frames: each stage reads the frame the
previous stage produced and emits the next one. A frame never changes
after creation. Each stage sets ``source_frame_id`` to the frame it
consumed, so the audit trail of a publish can be rebuilt from the links.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any
from uuid import UUID, uuid4

from lupublish.integrations.base import AuthenticationError, IntegrationError
from lupublish.pipeline.errors import (
    AccountNotFoundError,
    AssignmentFailed,
    CompileError,
    ConfigError,
    CredentialExpiredError,
    TransientNetworkError,
)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True, kw_only=True, slots=True)
class Frame:
    """
    Base class for publish frames.

    Carries identity (``id``, ``created_at``), lineage
    (``source_frame_id``) and free-form ``metadata``. Stage payloads live
    on subclasses.
    """

    id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=_utc_now)
    source_frame_id: UUID | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def frame_type(self) -> str:
        return self.__class__.__name__

    def to_dict(self) -> dict[str, Any]:
        """Audit-log form of the frame. Payloads with secrets must not be added here."""
        return {
            "id": str(self.id),
            "frame_type": self.frame_type,
            "created_at": self.created_at.isoformat(),
            "source_frame_id": str(self.source_frame_id) if self.source_frame_id else None,
            "metadata": self.metadata,
        }

    def __repr__(self) -> str:
        return f"{self.frame_type}(id={str(self.id)[:8]}...)"


# =============================================================================
# Errors
# =============================================================================


class ErrorType:
    """Error categories reported on ErrorFrames."""

    CONFIG = "config"
    COMPILE = "compile"
    ACCOUNT = "account"
    AUTH = "auth"
    NETWORK = "network"
    ASSIGNMENT = "assignment"
    INTERNAL = "internal"


# First match wins
_ERROR_TYPES: tuple[tuple[type[BaseException], str], ...] = (
    (ConfigError, ErrorType.CONFIG),
    (CompileError, ErrorType.COMPILE),
    (AccountNotFoundError, ErrorType.ACCOUNT),
    (CredentialExpiredError, ErrorType.AUTH),
    (AuthenticationError, ErrorType.AUTH),
    (TransientNetworkError, ErrorType.NETWORK),
    (asyncio.TimeoutError, ErrorType.NETWORK),
    (IntegrationError, ErrorType.NETWORK),
    (AssignmentFailed, ErrorType.ASSIGNMENT),
)


def _classify_error(exc: BaseException) -> str:
    for error_class, error_type in _ERROR_TYPES:
        if isinstance(exc, error_class):
            return error_type
    return ErrorType.INTERNAL


@dataclass(frozen=True, kw_only=True, slots=True)
class ErrorFrame(Frame):
    """
    A stage raised instead of producing its frame.

    Later stages pass the ErrorFrame through, so it reaches the pipeline
    result and names the failing stage. ``exception`` holds the raised
    exception so the publisher can re-raise fatal ones unchanged.
    """

    error_type: str = ErrorType.INTERNAL
    error_message: str = ""
    processor_name: str = ""
    original_frame_type: str = ""
    exception_class: str | None = None
    is_fatal: bool = True
    exception: BaseException | None = field(default=None, repr=False, compare=False)

    @classmethod
    def from_exception(
        cls,
        exc: BaseException,
        processor_name: str,
        source_frame: Frame | None = None,
    ) -> ErrorFrame:
        """Wrap exc. Exceptions without a ``fatal`` attribute are fatal."""
        return cls(
            error_type=_classify_error(exc),
            error_message=str(exc),
            processor_name=processor_name,
            original_frame_type=source_frame.frame_type if source_frame else "",
            exception_class=type(exc).__name__,
            is_fatal=getattr(exc, "fatal", True),
            source_frame_id=source_frame.id if source_frame else None,
            exception=exc,
        )

    def to_dict(self) -> dict[str, Any]:
        data = Frame.to_dict(self)
        data.update(
            error_type=self.error_type,
            error_message=self.error_message,
            processor_name=self.processor_name,
            original_frame_type=self.original_frame_type,
            exception_class=self.exception_class,
            is_fatal=self.is_fatal,
        )
        return data
