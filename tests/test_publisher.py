"""
End-to-end tests for LuisPublisher.

The LU build is faked by writing luis.settings fragments; the LUIS
authoring API is served by an httpx.MockTransport.
"""

import pytest

from conftest import FakeBuilder, FakeLuisService, account_record, expiry_response, server_error
from lupublish import LuisPublisher, PublishProfile, ResourceReference
from lupublish.pipeline import (
    AccountNotFoundError,
    CollectingNotifier,
    CompileError,
    ConfigError,
    CredentialExpiredError,
    DeployStatus,
    TransientNetworkError,
)
from lupublish.pipeline.frames import OutcomeStatus

GREETING_APP = {"greeting_en_us_lu": {"appId": "app-1", "version": "0.1"}}


def make_publisher(profile, builder, service, notifier=None, fast_retry=None):
    return LuisPublisher(
        profile,
        builder,
        notifier=notifier,
        retry_policy=fast_retry,
        transport=service.transport,
    )


async def publish_greeting(publisher, project_path, files):
    return await publisher.publish(
        project_path=str(project_path),
        files=files,
        lu_resources=[ResourceReference("greeting")],
        qna_resources=[ResourceReference("faq", is_empty=True)],
    )


class TestPublish:
    @pytest.mark.asyncio
    async def test_greeting_and_empty_faq(self, tmp_path, profile, project_files, fast_retry):
        builder = FakeBuilder({"luis.settings.dev.westus.json": GREETING_APP})
        service = FakeLuisService()
        notifier = CollectingNotifier()

        result = await publish_greeting(
            make_publisher(profile, builder, service, notifier, fast_retry), tmp_path, project_files
        )

        # Build saw only greeting.lu; faq.qna was marked empty
        call = builder.build_calls[0]
        assert call["lu"] == ["greeting.lu"]
        assert call["qna"] == []
        assert call["empty"] == {"faq.qna": True}
        assert builder.root_dir == str(tmp_path)
        assert builder.copy_calls == [True]

        assert result.apps == GREETING_APP
        assert result.settings_patch == {"luis": GREETING_APP}
        assert result.outcomes["app-1"].status is OutcomeStatus.SUCCESS
        assert result.ok
        assert result.succeeded_app_ids == ["app-1"]
        assert result.account.account_name == "Foo-dev-luis"

        assert service.list_calls == 1
        assert service.assigned_app_ids == ["app-1"]
        assert notifier.messages == [
            "start publish luis",
            "Assigning to luis app id: app-1",
            "Luis Publish Success! ...",
        ]
        assert all(e.status is DeployStatus.INFO for e in notifier.events)

    @pytest.mark.asyncio
    async def test_nothing_compiled(self, tmp_path, profile, project_files, fast_retry):
        builder = FakeBuilder()
        service = FakeLuisService()
        notifier = CollectingNotifier()

        result = await publish_greeting(
            make_publisher(profile, builder, service, notifier, fast_retry), tmp_path, project_files
        )

        assert result.apps == {}
        assert result.outcomes == {}
        assert result.settings_patch == {"luis": {}}
        assert service.requests == []
        assert notifier.events == []

    @pytest.mark.asyncio
    async def test_partial_failure(self, tmp_path, profile, project_files, fast_retry):
        apps = {"a": {"appId": "app-1"}, "b": {"appId": "app-2"}}
        builder = FakeBuilder({"luis.settings.json": apps})
        service = FakeLuisService()
        service.assign_script["app-1"] = [server_error(), server_error()]

        result = await publish_greeting(
            make_publisher(profile, builder, service, None, fast_retry), tmp_path, project_files
        )

        assert result.failed_app_ids == ["app-1"]
        assert result.succeeded_app_ids == ["app-2"]
        assert not result.ok
        assert result.settings_patch == {"luis": apps}
        assert result.to_dict()["failed_app_ids"] == ["app-1"]

    @pytest.mark.asyncio
    async def test_missing_file_reported(self, tmp_path, profile, project_files, fast_retry):
        builder = FakeBuilder({"luis.settings.json": GREETING_APP})
        notifier = CollectingNotifier()

        result = await make_publisher(
            profile, builder, FakeLuisService(), notifier, fast_retry
        ).publish(
            project_path=str(tmp_path),
            files=project_files,
            lu_resources=[ResourceReference("greeting"), ResourceReference("order")],
        )

        assert notifier.messages[0] == "Skipping order.lu: file not found in project"
        assert [r.file_name for r in result.located.missing] == ["order.lu"]

    @pytest.mark.asyncio
    async def test_legacy_runtime_layout(self, tmp_path, profile, project_files, fast_retry):
        legacy = profile.model_copy(update={"runtime": None})
        builder = FakeBuilder({"luis.settings.json": GREETING_APP})

        await publish_greeting(
            make_publisher(legacy, builder, FakeLuisService(), None, fast_retry),
            tmp_path,
            project_files,
        )

        assert builder.root_dir == str(tmp_path / "ComposerDialogs")
        assert builder.copy_calls == [False]


class TestFatalErrors:
    @pytest.mark.asyncio
    async def test_missing_access_token(self, tmp_path, project_files, fast_retry):
        profile = PublishProfile.model_validate(
            {"name": "Foo", "luis": {"authoringKey": "lk"}}
        )
        builder = FakeBuilder({"luis.settings.json": GREETING_APP})
        service = FakeLuisService()

        with pytest.raises(ConfigError):
            await publish_greeting(
                make_publisher(profile, builder, service, None, fast_retry), tmp_path, project_files
            )

        assert builder.build_calls == []
        assert service.requests == []

    @pytest.mark.asyncio
    async def test_missing_authoring_key(self, tmp_path, project_files, fast_retry):
        profile = PublishProfile.model_validate({"name": "Foo", "accessToken": "tok"})
        service = FakeLuisService()

        with pytest.raises(ConfigError):
            await publish_greeting(
                make_publisher(profile, FakeBuilder(), service, None, fast_retry),
                tmp_path,
                project_files,
            )

        assert service.requests == []

    @pytest.mark.asyncio
    async def test_build_failure(self, tmp_path, profile, project_files, fast_retry):
        builder = FakeBuilder(fail_with=RuntimeError("syntax error in greeting.lu"))
        service = FakeLuisService()

        with pytest.raises(CompileError):
            await publish_greeting(
                make_publisher(profile, builder, service, None, fast_retry), tmp_path, project_files
            )

        assert service.requests == []

    @pytest.mark.asyncio
    async def test_build_failure_is_reported(self, tmp_path, profile, project_files, fast_retry):
        builder = FakeBuilder(fail_with=RuntimeError("syntax error in greeting.lu"))
        notifier = CollectingNotifier()

        with pytest.raises(CompileError) as exc_info:
            await publish_greeting(
                make_publisher(profile, builder, FakeLuisService(), notifier, fast_retry),
                tmp_path,
                project_files,
            )

        assert [e.message for e in notifier.errors()] == [str(exc_info.value)]

    @pytest.mark.asyncio
    async def test_missing_credentials_are_reported(self, tmp_path, project_files, fast_retry):
        profile = PublishProfile.model_validate({"name": "Foo", "accessToken": "tok"})
        notifier = CollectingNotifier()

        with pytest.raises(ConfigError):
            await publish_greeting(
                make_publisher(profile, FakeBuilder(), FakeLuisService(), notifier, fast_retry),
                tmp_path,
                project_files,
            )

        assert len(notifier.errors()) == 1

    @pytest.mark.asyncio
    async def test_account_not_found(self, tmp_path, profile, project_files, fast_retry):
        builder = FakeBuilder({"luis.settings.json": GREETING_APP})
        service = FakeLuisService(accounts=[account_record("Bar-dev-luis")])

        with pytest.raises(AccountNotFoundError):
            await publish_greeting(
                make_publisher(profile, builder, service, None, fast_retry), tmp_path, project_files
            )

        assert service.assigned_app_ids == []

    @pytest.mark.asyncio
    async def test_token_expired_while_listing(self, tmp_path, profile, project_files, fast_retry):
        builder = FakeBuilder({"luis.settings.json": GREETING_APP})
        service = FakeLuisService()
        service.list_script = [expiry_response(), expiry_response()]

        with pytest.raises(CredentialExpiredError):
            await publish_greeting(
                make_publisher(profile, builder, service, None, fast_retry), tmp_path, project_files
            )

        assert service.assigned_app_ids == []

    @pytest.mark.asyncio
    async def test_token_expired_while_assigning(self, tmp_path, profile, project_files, fast_retry):
        apps = {"a": {"appId": "app-1"}, "b": {"appId": "app-2"}, "c": {"appId": "app-3"}}
        builder = FakeBuilder({"luis.settings.json": apps})
        service = FakeLuisService()
        service.assign_script["app-2"] = [expiry_response(), expiry_response()]

        with pytest.raises(CredentialExpiredError) as exc_info:
            await publish_greeting(
                make_publisher(profile, builder, service, None, fast_retry), tmp_path, project_files
            )

        assert "app-3" not in service.assigned_app_ids
        assert list(exc_info.value.outcomes) == ["app-1"]

    @pytest.mark.asyncio
    async def test_listing_keeps_failing(self, tmp_path, profile, project_files, fast_retry):
        builder = FakeBuilder({"luis.settings.json": GREETING_APP})
        service = FakeLuisService()
        service.list_script = [server_error(), server_error()]

        with pytest.raises(TransientNetworkError):
            await publish_greeting(
                make_publisher(profile, builder, service, None, fast_retry), tmp_path, project_files
            )


class TestPublisherConfig:
    def test_default_retry_policy_follows_profile_timeout(self, profile):
        tuned = profile.model_copy(update={"request_timeout": 12.0})
        publisher = LuisPublisher(tuned, FakeBuilder())

        assert publisher._retry_policy.max_attempts == 2
        assert publisher._retry_policy.attempt_timeout == 12.0

    def test_explicit_luis_resource(self, profile):
        custom = profile.model_copy(update={"luis_resource": "shared-luis"})
        assert LuisPublisher(custom, FakeBuilder()).profile.luis_resource == "shared-luis"
