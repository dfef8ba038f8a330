"""
Publish frame types.

Frame Flow:
    PublishRequestFrame
        → ResourceLocatorProcessor  → ResourcesLocatedFrame
        → CompilerProcessor         → ApplicationsCompiledFrame
        → AccountResolverProcessor  → AccountResolvedFrame
                                      (or PublishCompletedFrame when nothing was compiled)
        → AssignmentProcessor       → PublishCompletedFrame

Every frame after the request carries the request forward, so any stage
can read the original settings without reaching back into the context.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

from .base import Frame
from .resources import LocateResult, ResourceReference

if TYPE_CHECKING:
    from lupublish.config.schemas import DownsamplingPolicy, LuisSettings, QnaSettings
    from lupublish.integrations.luis.schemas import AzureAccount

    from .resources import FileStore

# dialog id -> {"appId": ..., ...}
CompiledApplicationMap = dict[str, dict[str, Any]]


# =============================================================================
# Assignment Outcomes
# =============================================================================


class OutcomeStatus(str, Enum):
    """Result of binding an account to one application."""

    SUCCESS = "success"
    RETRIED_THEN_SUCCEEDED = "retried_then_succeeded"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class AssignmentOutcome:
    """Per-application assignment result."""

    app_id: str
    status: OutcomeStatus
    dialog: str = ""
    attempts: int = 1
    reason: str | None = None

    @property
    def ok(self) -> bool:
        return self.status is not OutcomeStatus.FAILED

    def to_dict(self) -> dict[str, Any]:
        return {
            "app_id": self.app_id,
            "dialog": self.dialog,
            "status": self.status.value,
            "attempts": self.attempts,
            "reason": self.reason,
        }


# =============================================================================
# Frames
# =============================================================================


@dataclass(frozen=True, kw_only=True, slots=True)
class PublishRequestFrame(Frame):
    """Input of a publish: declared resources plus project settings."""

    lu_resources: tuple[ResourceReference, ...] = ()
    qna_resources: tuple[ResourceReference, ...] = ()
    files: FileStore | None = None
    luis: LuisSettings | None = None
    qna: QnaSettings | None = None
    downsampling: DownsamplingPolicy | None = None
    luis_resource: str | None = None

    def to_dict(self) -> dict[str, Any]:
        base = Frame.to_dict(self)
        base.update(
            {
                "lu_resources": [r.id for r in self.lu_resources],
                "qna_resources": [r.id for r in self.qna_resources],
                "luis_resource": self.luis_resource,
            }
        )
        return base


@dataclass(frozen=True, kw_only=True, slots=True)
class ResourcesLocatedFrame(Frame):
    """Declared resources resolved against the file store."""

    request: PublishRequestFrame
    located: LocateResult

    def to_dict(self) -> dict[str, Any]:
        base = Frame.to_dict(self)
        base["located"] = self.located.to_dict()
        return base


@dataclass(frozen=True, kw_only=True, slots=True)
class ApplicationsCompiledFrame(Frame):
    """Build finished; ``apps`` maps each dialog to its remote application."""

    request: PublishRequestFrame
    located: LocateResult
    apps: CompiledApplicationMap = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        base = Frame.to_dict(self)
        base["apps"] = {k: v.get("appId") for k, v in self.apps.items()}
        return base


@dataclass(frozen=True, kw_only=True, slots=True)
class AccountResolvedFrame(Frame):
    """Prediction account found for the compiled applications."""

    request: PublishRequestFrame
    located: LocateResult
    apps: CompiledApplicationMap
    account: AzureAccount

    def to_dict(self) -> dict[str, Any]:
        base = Frame.to_dict(self)
        base["apps"] = {k: v.get("appId") for k, v in self.apps.items()}
        base["account_name"] = self.account.account_name
        return base


@dataclass(frozen=True, kw_only=True, slots=True)
class PublishCompletedFrame(Frame):
    """Terminal frame: per-application outcomes and the settings to persist."""

    located: LocateResult
    apps: CompiledApplicationMap = field(default_factory=dict)
    account: AzureAccount | None = None
    outcomes: dict[str, AssignmentOutcome] = field(default_factory=dict)

    @property
    def failed_app_ids(self) -> list[str]:
        return [app_id for app_id, o in self.outcomes.items() if not o.ok]

    def to_dict(self) -> dict[str, Any]:
        base = Frame.to_dict(self)
        base.update(
            {
                "apps": {k: v.get("appId") for k, v in self.apps.items()},
                "account_name": self.account.account_name if self.account else None,
                "outcomes": {k: o.status.value for k, o in self.outcomes.items()},
            }
        )
        return base
