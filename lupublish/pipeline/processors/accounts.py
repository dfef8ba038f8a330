"""
Account Resolver for lupublish.

Finds the Azure prediction account that compiled LUIS applications will
be bound to. The account is looked up by name among the accounts visible
to the ARM access token; the name defaults to ``<bot>-<environment>-luis``,
the name the provisioning step gives the prediction resource.

Failure handling:
    - the listing call is retried once
    - after the second failure an expired token raises CredentialExpiredError,
      anything else raises TransientNetworkError
    - no account with the target name raises AccountNotFoundError
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING

from lupublish.integrations.base import IntegrationError
from lupublish.integrations.luis.schemas import LuisErrorBody
from lupublish.pipeline.errors import (
    AccountNotFoundError,
    ConfigError,
    CredentialExpiredError,
    PublishError,
    TransientNetworkError,
)
from lupublish.pipeline.frames import (
    AccountResolvedFrame,
    ApplicationsCompiledFrame,
    PublishCompletedFrame,
)
from lupublish.pipeline.observability import DeployStatus, notify
from lupublish.pipeline.processor import Processor
from lupublish.pipeline.retry import RETRY_ONCE, RetryPolicy, with_retry

if TYPE_CHECKING:
    from lupublish.integrations.luis import LuisAuthoringClient
    from lupublish.integrations.luis.schemas import AzureAccount
    from lupublish.pipeline.context import PipelineContext
    from lupublish.pipeline.frames import Frame
    from lupublish.pipeline.observability import Notifier

logger = logging.getLogger(__name__)


# =============================================================================
# Helpers
# =============================================================================


def default_account_name(bot_name: str, environment: str) -> str:
    """Name of the prediction resource provisioned for a bot/environment."""
    return f"{bot_name}-{environment}-luis"


def find_account(accounts: Iterable[AzureAccount], account_name: str) -> AzureAccount | None:
    """Return the first account whose name equals account_name."""
    for account in accounts:
        if account.account_name == account_name:
            return account
    return None


def _error_body(error: BaseException) -> LuisErrorBody | None:
    if isinstance(error, IntegrationError):
        return LuisErrorBody.parse(error.response_body)
    return None


def is_token_expiry(error: BaseException) -> bool:
    """True when a failed call was rejected because the access token expired."""
    body = _error_body(error)
    return body is not None and body.is_token_expiry


def credential_error_from(error: BaseException) -> CredentialExpiredError:
    """Build the user-facing credential error for a token-expiry failure."""
    body = _error_body(error)
    if body is None:
        return CredentialExpiredError(str(error))
    return CredentialExpiredError.from_error_body(body)


# =============================================================================
# Processor
# =============================================================================


class AccountResolverProcessor(Processor):
    """
    Resolves the prediction account for compiled applications.

    Turns an ApplicationsCompiledFrame into an AccountResolvedFrame. When
    the build produced no applications there is nothing to assign: the
    publish completes with an empty outcome and no network call is made.
    """

    def __init__(
        self,
        client: LuisAuthoringClient,
        *,
        retry_policy: RetryPolicy = RETRY_ONCE,
    ):
        self._client = client
        self._retry_policy = retry_policy.with_terminal(is_token_expiry)

    @property
    def name(self) -> str:
        return "account_resolver"

    async def resolve(
        self,
        account_name: str | None = None,
        *,
        bot_name: str = "",
        environment: str = "",
        notifier: Notifier | None = None,
    ) -> AzureAccount:
        """
        Fetch the visible accounts and pick the one named account_name.

        account_name defaults to ``<bot_name>-<environment>-luis``.

        Raises:
            ConfigError: No account name given and none can be derived
            CredentialExpiredError: The access token expired
            TransientNetworkError: The listing kept failing
            AccountNotFoundError: No account has that name

        Each of these is also sent to notifier as an ERROR event.
        """
        try:
            return await self._resolve(account_name, bot_name, environment, notifier)
        except PublishError as e:
            notify(notifier, DeployStatus.ERROR, str(e))
            raise

    async def _resolve(
        self,
        account_name: str | None,
        bot_name: str,
        environment: str,
        notifier: Notifier | None,
    ) -> AzureAccount:
        if not account_name:
            if not bot_name or not environment:
                raise ConfigError(
                    "luisResource is not set and no bot name/environment to derive it from"
                )
            account_name = default_account_name(bot_name, environment)

        result = await with_retry(
            self._client.list_azure_accounts,
            self._retry_policy,
            operation_name="list_azure_accounts",
            on_retry=lambda attempt, e: notify(
                notifier, DeployStatus.ERROR, f"Listing Azure accounts failed, retrying: {e}"
            ),
        )

        if not result.success:
            error = result.final_error
            if result.terminal:
                raise credential_error_from(error) from error
            raise TransientNetworkError(
                f"Listing Azure accounts failed after {result.attempts} attempts: {error}",
                cause=error,
            ) from error

        accounts: list[AzureAccount] = result.result
        account = find_account(accounts, account_name)
        if account is None:
            raise AccountNotFoundError(account_name, [a.account_name for a in accounts])

        logger.info(
            f"Resolved account '{account.account_name}' "
            f"(resource group {account.resource_group or '-'})"
        )
        return account

    async def process(
        self,
        frame: Frame,
        ctx: PipelineContext,
    ) -> Frame:
        if not isinstance(frame, ApplicationsCompiledFrame):
            return frame

        if not frame.apps:
            return PublishCompletedFrame(located=frame.located, source_frame_id=frame.id)

        notify(ctx.notifier, DeployStatus.INFO, "start publish luis")

        account = await self.resolve(
            frame.request.luis_resource,
            bot_name=ctx.bot_name,
            environment=ctx.environment,
            notifier=ctx.notifier,
        )

        return AccountResolvedFrame(
            request=frame.request,
            located=frame.located,
            apps=frame.apps,
            account=account,
            source_frame_id=frame.id,
        )
