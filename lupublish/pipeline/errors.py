"""
Publish pipeline errors.

Every error raised by a pipeline stage derives from PublishError. The
``fatal`` flag decides propagation:

- Fatal errors unwind to the caller of the whole publish and stop all
  further work (bad configuration, unreadable build output, missing
  account, expired credentials, exhausted network retries).
- Non-fatal errors are captured into the per-application outcome mapping
  and do not stop sibling work.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from lupublish.integrations.luis.schemas import LuisErrorBody

REMEDIATION_REFRESH_TOKEN = (
    "run az account get-access-token, then replace the accessToken in your configuration"
)

BIND_FAILURE_MESSAGE = (
    "Failed to bind luis prediction resource to luis applications. "
    "Please check if your luisResource is set to luis prediction service name "
    "in your publish profile."
)


class PublishError(Exception):
    """Base class for publish pipeline errors."""

    fatal: bool = True


class ConfigError(PublishError):
    """Required credentials or settings are missing."""


class CompileError(PublishError):
    """The LU build failed or its output could not be read."""


class AccountNotFoundError(PublishError):
    """No Azure account matches the target account name."""

    def __init__(self, account_name: str, available: list[str] | None = None):
        self.account_name = account_name
        self.available = available or []
        super().__init__(
            f"No Azure account named '{account_name}' is visible to the access token"
            + (f" (found: {', '.join(self.available)})" if self.available else "")
        )


class CredentialExpiredError(PublishError):
    """The ARM access token expired; the whole publish must be re-authenticated."""

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        remediation: str = REMEDIATION_REFRESH_TOKEN,
        outcomes: dict[str, Any] | None = None,
    ):
        self.code = code
        self.detail = message
        self.remediation = remediation
        # Assignment outcomes recorded before the abort
        self.outcomes: dict[str, Any] = outcomes or {}
        super().__init__(f"Type: {code}, Message: {message}, {remediation}")

    @classmethod
    def from_error_body(cls, body: LuisErrorBody) -> CredentialExpiredError:
        detail = body.error
        return cls(
            detail.message if detail and detail.message else "access token expired",
            code=detail.code if detail else None,
        )


class TransientNetworkError(PublishError):
    """A retryable call kept failing after its retry budget was spent."""

    def __init__(self, message: str, cause: BaseException | None = None):
        self.cause = cause
        super().__init__(message)


class AssignmentFailed(PublishError):
    """Binding an account to one application failed; sibling apps continue."""

    fatal = False

    def __init__(self, app_id: str, cause: BaseException | None = None):
        self.app_id = app_id
        self.cause = cause
        message = f"{BIND_FAILURE_MESSAGE} (app id: {app_id})"
        if cause is not None:
            message += f" Cause: {cause}"
        super().__init__(message)
