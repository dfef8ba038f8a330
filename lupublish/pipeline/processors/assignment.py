"""
Assignment Orchestrator for lupublish.

Binds the resolved prediction account to every compiled LUIS application.

Per application:
    1. POST the account to the application's azureaccounts endpoint
    2. on failure retry once
    3. after the second failure:
       - expired token → cancel the remaining work and raise
         CredentialExpiredError (retrying other apps with the same token
         cannot succeed)
       - anything else → record FAILED for this app and continue

Applications are independent, so they may be assigned by a bounded pool
of workers. With ``max_concurrency=1`` (the default) they are assigned
strictly in the order of the compiled application map. Outcomes are
collected after all workers finished and are returned in that order.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from lupublish.pipeline.cancellation import CancellationToken, OperationCancelled
from lupublish.pipeline.errors import AssignmentFailed, CredentialExpiredError, PublishError
from lupublish.pipeline.frames import (
    AccountResolvedFrame,
    AssignmentOutcome,
    CompiledApplicationMap,
    OutcomeStatus,
    PublishCompletedFrame,
)
from lupublish.pipeline.observability import DeployStatus, notify
from lupublish.pipeline.processor import Processor
from lupublish.pipeline.retry import RETRY_ONCE, RetryPolicy, with_retry

from .accounts import credential_error_from, is_token_expiry

if TYPE_CHECKING:
    from lupublish.integrations.luis import LuisAuthoringClient
    from lupublish.integrations.luis.schemas import AzureAccount
    from lupublish.pipeline.context import PipelineContext
    from lupublish.pipeline.frames import Frame
    from lupublish.pipeline.observability import Notifier

logger = logging.getLogger(__name__)


def application_ids(apps: CompiledApplicationMap) -> list[tuple[str, str]]:
    """
    Flatten the compiled application map into ordered (dialog, app id) pairs.

    Entries without an app id are skipped; an app id shared by several
    dialogs is assigned once, under the first dialog.
    """
    pairs: list[tuple[str, str]] = []
    seen: set[str] = set()
    for dialog, entry in apps.items():
        app_id = entry.get("appId") if isinstance(entry, dict) else None
        if not app_id:
            logger.warning(f"Dialog '{dialog}' has no LUIS app id, skipping")
            continue
        if app_id in seen:
            continue
        seen.add(app_id)
        pairs.append((dialog, app_id))
    return pairs


class AssignmentProcessor(Processor):
    """
    Assigns the resolved account to each compiled application.

    Turns an AccountResolvedFrame into a PublishCompletedFrame.
    """

    def __init__(
        self,
        client: LuisAuthoringClient,
        *,
        retry_policy: RetryPolicy = RETRY_ONCE,
        max_concurrency: int = 1,
    ):
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        self._client = client
        self._retry_policy = retry_policy.with_terminal(is_token_expiry)
        self._max_concurrency = max_concurrency

    @property
    def name(self) -> str:
        return "assignment"

    async def assign(
        self,
        account: AzureAccount,
        apps: CompiledApplicationMap,
        *,
        notifier: Notifier | None = None,
        cancellation: CancellationToken | None = None,
    ) -> dict[str, AssignmentOutcome]:
        """
        Bind account to every application in apps.

        Args:
            account: Account returned by the resolver
            apps: Compiled application map
            notifier: Receives progress events
            cancellation: Shared token; a fresh one is used when omitted

        Returns:
            App id → outcome, in map order

        Raises:
            CredentialExpiredError: The access token expired; ``outcomes``
                on the error holds what was recorded before the abort
        """
        pairs = application_ids(apps)
        if not pairs:
            return {}

        token = cancellation or CancellationToken()
        semaphore = asyncio.Semaphore(self._max_concurrency)

        async def assign_one(dialog: str, app_id: str) -> AssignmentOutcome | None:
            async with semaphore:
                if token.cancelled:
                    return None

                notify(notifier, DeployStatus.INFO, f"Assigning to luis app id: {app_id}")
                result = await with_retry(
                    lambda: self._client.assign_azure_account(app_id, account),
                    self._retry_policy,
                    operation_name=f"assign_azure_account[{app_id}]",
                    on_retry=lambda attempt, e: notify(
                        notifier,
                        DeployStatus.ERROR,
                        f"Assigning account to luis app {app_id} failed, retrying: {e}",
                        app_id=app_id,
                    ),
                    cancellation=token,
                )

                if result.success:
                    status = (
                        OutcomeStatus.RETRIED_THEN_SUCCEEDED
                        if result.retried
                        else OutcomeStatus.SUCCESS
                    )
                    return AssignmentOutcome(
                        app_id=app_id, status=status, dialog=dialog, attempts=result.attempts
                    )

                if result.cancelled:
                    return None

                error = result.final_error
                if result.terminal:
                    # Cancel while still holding the slot so queued workers see it
                    token.cancel(credential_error_from(error))
                    return None

                failure = AssignmentFailed(app_id, error)
                notify(notifier, DeployStatus.ERROR, str(failure), app_id=app_id)
                return AssignmentOutcome(
                    app_id=app_id,
                    status=OutcomeStatus.FAILED,
                    dialog=dialog,
                    attempts=result.attempts,
                    reason=str(failure),
                )

        results = await asyncio.gather(*(assign_one(d, a) for d, a in pairs))
        outcomes = {o.app_id: o for o in results if o is not None}

        if token.cancelled:
            reason = token.reason
            if isinstance(reason, CredentialExpiredError):
                reason.outcomes = outcomes
                notify(notifier, DeployStatus.ERROR, str(reason))
                raise reason
            if isinstance(reason, PublishError):
                raise reason
            raise OperationCancelled(reason)

        failed = [o.app_id for o in outcomes.values() if not o.ok]
        if failed:
            notify(
                notifier,
                DeployStatus.ERROR,
                f"Luis publish finished with {len(failed)} failed app(s): {', '.join(failed)}",
            )
        else:
            notify(notifier, DeployStatus.INFO, "Luis Publish Success! ...")
        return outcomes

    async def process(
        self,
        frame: Frame,
        ctx: PipelineContext,
    ) -> Frame:
        if not isinstance(frame, AccountResolvedFrame):
            return frame

        outcomes = await self.assign(
            frame.account,
            frame.apps,
            notifier=ctx.notifier,
            cancellation=ctx.cancellation,
        )

        return PublishCompletedFrame(
            located=frame.located,
            apps=frame.apps,
            account=frame.account,
            outcomes=outcomes,
            source_frame_id=frame.id,
        )
