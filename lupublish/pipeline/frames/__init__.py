"""
lupublish Pipeline Frames

Frames are immutable data containers that flow through the pipeline.
Each frame type represents one stage of a publish.
"""

from .base import ErrorFrame, ErrorType, Frame
from .publish import (
    AccountResolvedFrame,
    ApplicationsCompiledFrame,
    AssignmentOutcome,
    CompiledApplicationMap,
    OutcomeStatus,
    PublishCompletedFrame,
    PublishRequestFrame,
    ResourcesLocatedFrame,
)
from .resources import (
    FileInfo,
    FileStore,
    LocatedResource,
    LocateResult,
    LocateStatus,
    ResourceKind,
    ResourceReference,
)

__all__ = [
    # Base
    "Frame",
    "ErrorFrame",
    "ErrorType",
    # Resources
    "FileInfo",
    "FileStore",
    "LocatedResource",
    "LocateResult",
    "LocateStatus",
    "ResourceKind",
    "ResourceReference",
    # Publish stages
    "PublishRequestFrame",
    "ResourcesLocatedFrame",
    "ApplicationsCompiledFrame",
    "AccountResolvedFrame",
    "PublishCompletedFrame",
    "CompiledApplicationMap",
    # Outcomes
    "AssignmentOutcome",
    "OutcomeStatus",
]
