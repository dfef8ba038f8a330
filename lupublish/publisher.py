"""
LUIS/QnA publisher.

Entry point of a publish: builds the project's LU/QnA resources, then binds
the bot's prediction account to every compiled LUIS application.

Usage:
    profile = load_publish_profile("profiles/dev.yaml")
    publisher = LuisPublisher(profile, builder, notifier=LoggingNotifier())

    result = await publisher.publish(
        project_path="/bots/foo",
        files=project_files,
        lu_resources=[ResourceReference("greeting")],
        qna_resources=[ResourceReference("faq", is_empty=True)],
    )

    settings["luis"].update(result.settings_patch["luis"])
    if result.failed_app_ids:
        ...  # fix those dialogs' LUIS apps; the rest of the bot is live

Fatal errors (ConfigError, CompileError, AccountNotFoundError,
CredentialExpiredError, TransientNetworkError) are raised; per-application
failures are reported in the result.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import httpx

from lupublish.config import PublishProfile, authoring_endpoint
from lupublish.integrations.luis import LuisAuthoringClient, LuisAuthoringConfig
from lupublish.pipeline import (
    ConfigError,
    ConstantBackoff,
    DeployStatus,
    PipelineContext,
    PublishError,
    RetryPolicy,
    notify,
)
from lupublish.pipeline.builder import create_publish_pipeline
from lupublish.pipeline.frames import (
    AssignmentOutcome,
    CompiledApplicationMap,
    ErrorFrame,
    LocateResult,
    PublishCompletedFrame,
    PublishRequestFrame,
    ResourceReference,
)

if TYPE_CHECKING:
    from lupublish.integrations.luis.schemas import AzureAccount
    from lupublish.pipeline import Notifier
    from lupublish.pipeline.frames import FileStore
    from lupublish.pipeline.processors import LuBuilder

logger = logging.getLogger(__name__)


@dataclass
class PublishResult:
    """Outcome of a publish that did not fail fatally."""

    apps: CompiledApplicationMap = field(default_factory=dict)
    outcomes: dict[str, AssignmentOutcome] = field(default_factory=dict)
    located: LocateResult = field(default_factory=LocateResult)
    account: AzureAccount | None = None
    execution_id: str = ""

    @property
    def failed_app_ids(self) -> list[str]:
        return [app_id for app_id, o in self.outcomes.items() if not o.ok]

    @property
    def succeeded_app_ids(self) -> list[str]:
        return [app_id for app_id, o in self.outcomes.items() if o.ok]

    @property
    def ok(self) -> bool:
        return not self.failed_app_ids

    @property
    def settings_patch(self) -> dict[str, Any]:
        """Fragment to merge into the project's persisted settings."""
        return {"luis": dict(self.apps)}

    def to_dict(self) -> dict[str, Any]:
        return {
            "execution_id": self.execution_id,
            "apps": {k: v.get("appId") for k, v in self.apps.items()},
            "account_name": self.account.account_name if self.account else None,
            "outcomes": {k: o.to_dict() for k, o in self.outcomes.items()},
            "failed_app_ids": self.failed_app_ids,
            "resources": self.located.to_dict(),
        }


class LuisPublisher:
    """
    Runs the publish pipeline for one bot/environment.

    Each publish() call builds a fresh context, client and pipeline; the
    publisher holds no state between calls.
    """

    def __init__(
        self,
        profile: PublishProfile,
        builder: LuBuilder,
        *,
        notifier: Notifier | None = None,
        retry_policy: RetryPolicy | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._profile = profile
        self._builder = builder
        self._notifier = notifier
        self._retry_policy = retry_policy or RetryPolicy(
            max_attempts=2,
            backoff=ConstantBackoff(delay=0.5),
            attempt_timeout=profile.request_timeout,
        )
        self._transport = transport

    @property
    def profile(self) -> PublishProfile:
        return self._profile

    def _create_client(self) -> LuisAuthoringClient:
        """Build the authoring client, failing before any network call if credentials are missing."""
        profile = self._profile
        access_token = profile.access_token.get_secret_value() if profile.access_token else ""
        authoring_key = (
            profile.luis.authoring_key.get_secret_value() if profile.luis.authoring_key else ""
        )
        try:
            config = LuisAuthoringConfig(
                api_key=authoring_key,
                access_token=access_token,
                base_url=authoring_endpoint(profile.luis),
                timeout=profile.request_timeout,
            )
        except ValueError as e:
            raise ConfigError(str(e)) from e
        return LuisAuthoringClient(config, transport=self._transport)

    async def publish(
        self,
        project_path: str,
        files: FileStore,
        lu_resources: Iterable[ResourceReference],
        qna_resources: Iterable[ResourceReference] = (),
    ) -> PublishResult:
        """
        Build the project's resources and assign the prediction account.

        Args:
            project_path: Bot project directory
            files: Project file store
            lu_resources: Declared LU resources
            qna_resources: Declared QnA resources

        Returns:
            PublishResult with compiled apps and per-application outcomes

        Raises:
            PublishError: Any fatal pipeline error
        """
        profile = self._profile
        try:
            client = self._create_client()
        except ConfigError as e:
            notify(self._notifier, DeployStatus.ERROR, str(e))
            raise

        ctx = PipelineContext(
            bot_name=profile.name,
            environment=profile.environment,
            project_path=project_path,
            runtime=profile.runtime,
            notifier=self._notifier,
        )
        request = PublishRequestFrame(
            lu_resources=tuple(lu_resources),
            qna_resources=tuple(qna_resources),
            files=files,
            luis=profile.luis,
            qna=profile.qna,
            downsampling=profile.downsampling,
            luis_resource=profile.luis_resource,
        )

        async with client:
            pipeline = create_publish_pipeline(
                self._builder,
                client,
                retry_policy=self._retry_policy,
                max_concurrency=profile.max_concurrency,
            )
            result = await pipeline.execute(request, ctx)

        for frame in result.output_frames:
            if isinstance(frame, ErrorFrame) and frame.is_fatal:
                logger.error(
                    f"Publish of '{profile.name}' ({profile.environment}) failed "
                    f"in {frame.processor_name}: {frame.error_message}"
                )
                if frame.exception is not None:
                    raise frame.exception
                raise PublishError(frame.error_message)

        completed = result.get_frame(PublishCompletedFrame)
        if completed is None:
            raise PublishError("Publish pipeline ended without a result")

        publish_result = PublishResult(
            apps=completed.apps,
            outcomes=completed.outcomes,
            located=completed.located,
            account=completed.account,
            execution_id=str(ctx.execution_id),
        )
        logger.info(
            f"Publish of '{profile.name}' ({profile.environment}) finished: "
            f"{len(publish_result.succeeded_app_ids)} assigned, "
            f"{len(publish_result.failed_app_ids)} failed"
        )
        return publish_result
