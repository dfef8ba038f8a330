"""
Publish pipeline building blocks.

A publish is a chain of immutable frames handed from stage to stage by
``Pipeline``. ``PipelineContext`` holds per-publish state: the target
bot, the notifier and the cancellation token. Control-plane calls go
through ``with_retry``; status events go through ``notify``.

The stages are in ``lupublish.pipeline.processors``; the assembled
publish pipeline is in ``lupublish.pipeline.builder``.
"""

from .cancellation import CancellationToken, OperationCancelled
from .context import PipelineContext, PipelineResult
from .errors import (
    AccountNotFoundError,
    AssignmentFailed,
    CompileError,
    ConfigError,
    CredentialExpiredError,
    PublishError,
    TransientNetworkError,
)
from .executor import Pipeline, PipelineBuilder
from .observability import (
    CollectingNotifier,
    DeployStatus,
    JSONLogger,
    LoggingNotifier,
    LogLevel,
    Notifier,
    PublishEvent,
    notify,
)
from .processor import Processor
from .retry import (
    RETRY_ONCE,
    BackoffStrategy,
    ConstantBackoff,
    NoBackoff,
    RetryPolicy,
    RetryResult,
    with_retry,
)

__all__ = [
    # Core
    "Pipeline",
    "PipelineBuilder",
    "PipelineContext",
    "PipelineResult",
    "Processor",
    # Errors
    "PublishError",
    "ConfigError",
    "CompileError",
    "AccountNotFoundError",
    "CredentialExpiredError",
    "TransientNetworkError",
    "AssignmentFailed",
    # Cancellation
    "CancellationToken",
    "OperationCancelled",
    # Retry
    "BackoffStrategy",
    "NoBackoff",
    "ConstantBackoff",
    "RetryPolicy",
    "RetryResult",
    "with_retry",
    "RETRY_ONCE",
    # Observability
    "LogLevel",
    "JSONLogger",
    "DeployStatus",
    "PublishEvent",
    "Notifier",
    "LoggingNotifier",
    "CollectingNotifier",
    "notify",
]
