"""
Tests for the compiler adapter.

Tests cover:
- Runtime layout (adaptive vs legacy)
- Discovery and merge of generated luis.settings fragments
- CompilerProcessor build flow and error wrapping
"""

import json

import pytest

from conftest import FakeBuilder
from lupublish.config import LuisSettings, QnaSettings, RuntimeSettings, configure
from lupublish.pipeline import CompileError, ConfigError, PipelineContext
from lupublish.pipeline.frames import (
    ApplicationsCompiledFrame,
    FileInfo,
    LocateResult,
    PublishRequestFrame,
    ResourcesLocatedFrame,
)
from lupublish.pipeline.processors import (
    CompilerProcessor,
    bot_path,
    is_using_adaptive_runtime,
    read_compiled_applications,
)

ADAPTIVE = RuntimeSettings(key="adaptive-runtime-dotnet-webapp")
LEGACY = RuntimeSettings(key="csharp-azurewebapp")


def write_settings(path, luis):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps({"luis": luis}), encoding="utf-8")


@pytest.fixture
def build_config():
    return configure(LuisSettings(authoringKey="lk", authoringRegion="westus"), QnaSettings())


# =============================================================================
# Runtime Layout
# =============================================================================


class TestRuntimeLayout:
    @pytest.mark.parametrize(
        "key,expected",
        [
            ("adaptive-runtime-dotnet-webapp", True),
            ("adaptive-runtime-js-functions", True),
            ("csharp-azurewebapp-v2", True),
            ("csharp-azurewebapp", False),
            ("", False),
        ],
    )
    def test_is_using_adaptive_runtime(self, key, expected):
        assert is_using_adaptive_runtime(RuntimeSettings(key=key)) is expected

    def test_no_runtime_is_legacy(self):
        assert not is_using_adaptive_runtime(None)

    def test_bot_path_adaptive(self, tmp_path):
        assert bot_path(tmp_path, ADAPTIVE) == tmp_path

    def test_bot_path_legacy(self, tmp_path):
        assert bot_path(tmp_path, LEGACY) == tmp_path / "ComposerDialogs"
        assert bot_path(tmp_path) == tmp_path / "ComposerDialogs"


# =============================================================================
# Discovery
# =============================================================================


class TestReadCompiledApplications:
    def test_merges_all_fragments(self, tmp_path):
        write_settings(tmp_path / "generated" / "luis.settings.dev.westus.json", {"a": {"appId": "1"}})
        write_settings(tmp_path / "nested" / "deep" / "luis.settings.test.json", {"b": {"appId": "2"}})

        apps = read_compiled_applications(tmp_path)

        assert apps == {"a": {"appId": "1"}, "b": {"appId": "2"}}

    def test_later_file_wins_on_collision(self, tmp_path):
        write_settings(tmp_path / "a" / "luis.settings.json", {"greeting": {"appId": "old"}})
        write_settings(tmp_path / "b" / "luis.settings.json", {"greeting": {"appId": "new"}})

        assert read_compiled_applications(tmp_path) == {"greeting": {"appId": "new"}}

    def test_ignores_other_files(self, tmp_path):
        write_settings(tmp_path / "settings" / "appsettings.json", {"x": {"appId": "nope"}})
        write_settings(tmp_path / "generated" / "qnamaker.settings.json", {"y": {"appId": "nope"}})

        assert read_compiled_applications(tmp_path) == {}

    def test_fragment_without_luis_key(self, tmp_path):
        (tmp_path / "luis.settings.json").write_text("{}")
        assert read_compiled_applications(tmp_path) == {}

    def test_invalid_json(self, tmp_path):
        (tmp_path / "luis.settings.json").write_text("{not json")
        with pytest.raises(CompileError):
            read_compiled_applications(tmp_path)

    def test_luis_not_a_mapping(self, tmp_path):
        (tmp_path / "luis.settings.json").write_text(json.dumps({"luis": ["a"]}))
        with pytest.raises(CompileError):
            read_compiled_applications(tmp_path)

    def test_missing_root(self, tmp_path):
        with pytest.raises(CompileError):
            read_compiled_applications(tmp_path / "missing")


# =============================================================================
# CompilerProcessor
# =============================================================================


class TestCompilerProcessor:
    @pytest.mark.asyncio
    async def test_build_adaptive(self, tmp_path, build_config):
        builder = FakeBuilder({"luis.settings.dev.westus.json": {"greeting_en_us_lu": {"appId": "app-1"}}})
        lu = [FileInfo(name="greeting.lu", content="# Greet")]

        apps = await CompilerProcessor(builder).build(
            build_config,
            lu,
            [],
            lu,
            {"faq.qna"},
            project_path=tmp_path,
            runtime=ADAPTIVE,
        )

        assert apps == {"greeting_en_us_lu": {"appId": "app-1"}}
        assert builder.root_dir == str(tmp_path)
        assert builder.build_config["authoringKey"] == "lk"
        assert builder.build_config["authoringRegion"] == "westus"
        assert builder.downsampling == {"maxImbalanceRatio": -1, "maxUtteranceAllowed": 15000}
        assert builder.build_calls == [
            {"lu": ["greeting.lu"], "qna": [], "all": ["greeting.lu"], "empty": {"faq.qna": True}}
        ]
        assert builder.copy_calls == [True]

    @pytest.mark.asyncio
    async def test_build_legacy_layout(self, tmp_path, build_config):
        builder = FakeBuilder({"luis.settings.json": {"d": {"appId": "app-9"}}})

        apps = await CompilerProcessor(builder).build(
            build_config, [], [], [], [], project_path=tmp_path, runtime=LEGACY
        )

        assert apps == {"d": {"appId": "app-9"}}
        assert builder.root_dir == str(tmp_path / "ComposerDialogs")
        assert builder.copy_calls == [False]

    @pytest.mark.asyncio
    async def test_nothing_compiled_skips_copy(self, tmp_path, build_config):
        builder = FakeBuilder()

        apps = await CompilerProcessor(builder).build(
            build_config, [], [], [], [], project_path=tmp_path, runtime=ADAPTIVE
        )

        assert apps == {}
        assert builder.copy_calls == []

    @pytest.mark.asyncio
    async def test_builder_failure_becomes_compile_error(self, tmp_path, build_config):
        builder = FakeBuilder(fail_with=RuntimeError("lu syntax error"))

        with pytest.raises(CompileError, match="lu syntax error"):
            await CompilerProcessor(builder).build(
                build_config, [], [], [], [], project_path=tmp_path, runtime=ADAPTIVE
            )

    @pytest.mark.asyncio
    async def test_copy_failure_becomes_compile_error(self, tmp_path, build_config):
        builder = FakeBuilder({"luis.settings.json": {"d": {"appId": "app-1"}}})
        builder.copy_fail_with = OSError("disk full")

        with pytest.raises(CompileError, match="disk full"):
            await CompilerProcessor(builder).build(
                build_config, [], [], [], [], project_path=tmp_path, runtime=ADAPTIVE
            )

    @pytest.mark.asyncio
    async def test_process(self, tmp_path, project_files):
        builder = FakeBuilder({"luis.settings.json": {"greeting_en_us_lu": {"appId": "app-1"}}})
        request = PublishRequestFrame(
            files=project_files,
            luis=LuisSettings(authoringKey="lk"),
            qna=QnaSettings(subscriptionKey="qk"),
        )
        located = LocateResult(
            lu_files=(project_files["greeting.lu"],),
            empty_markers=frozenset({"faq.qna"}),
        )
        frame = ResourcesLocatedFrame(request=request, located=located)
        ctx = PipelineContext(project_path=str(tmp_path), runtime=ADAPTIVE)

        output = await CompilerProcessor(builder).process(frame, ctx)

        assert isinstance(output, ApplicationsCompiledFrame)
        assert output.apps == {"greeting_en_us_lu": {"appId": "app-1"}}
        assert output.located is located
        assert builder.build_config["subscriptionKey"] == "qk"
        call = builder.build_calls[0]
        assert call["lu"] == ["greeting.lu"]
        assert call["all"] == ["greeting.lu", "faq.qna", "foo.dialog"]
        assert call["empty"] == {"faq.qna": True}

    @pytest.mark.asyncio
    async def test_process_without_authoring_key(self, tmp_path):
        builder = FakeBuilder()
        frame = ResourcesLocatedFrame(request=PublishRequestFrame(), located=LocateResult())

        with pytest.raises(ConfigError):
            await CompilerProcessor(builder).process(frame, PipelineContext(project_path=str(tmp_path)))

        assert builder.build_calls == []
