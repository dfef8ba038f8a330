"""
Compiler Adapter for lupublish.

Drives the external LU build over the located resources, then reads the
application ids the build produced.

The build itself (uploading, training and publishing LUIS/QnA models) is
done by an external compiler reached through the LuBuilder protocol. For
every compiled dialog it writes a settings fragment whose file name
contains ``luis.settings``:

    generated/luis.settings.dev.westus.json
    {"luis": {"greeting_en_us_lu": {"appId": "abc-123", "version": "0.1"}}}

Those fragments are the authoritative link between local dialogs and
remote applications; they are merged last-writer-wins.

Bot layout:
    adaptive runtime  →  <project>/
    legacy runtime    →  <project>/ComposerDialogs/
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import TYPE_CHECKING, Any, Protocol

from lupublish.config.schemas import LuisSettings, QnaSettings
from lupublish.config.service import configure
from lupublish.pipeline.errors import CompileError, PublishError
from lupublish.pipeline.frames import (
    ApplicationsCompiledFrame,
    CompiledApplicationMap,
    FileInfo,
    ResourcesLocatedFrame,
)
from lupublish.pipeline.observability import DeployStatus, notify
from lupublish.pipeline.processor import Processor

if TYPE_CHECKING:
    from lupublish.config.schemas import BuildConfig, RuntimeSettings
    from lupublish.pipeline.context import PipelineContext
    from lupublish.pipeline.frames import Frame

logger = logging.getLogger(__name__)

LUIS_SETTINGS_MARKER = "luis.settings"
LEGACY_DIALOGS_DIR = "ComposerDialogs"
ADAPTIVE_RUNTIME_KEY_PREFIX = "adaptive-runtime"
LEGACY_ADAPTIVE_RUNTIME_KEY = "csharp-azurewebapp-v2"


# =============================================================================
# Runtime Layout
# =============================================================================


def is_using_adaptive_runtime(runtime: RuntimeSettings | None) -> bool:
    """True when the bot runs on the unified (adaptive) runtime."""
    if runtime is None or not runtime.key:
        return False
    return runtime.key == LEGACY_ADAPTIVE_RUNTIME_KEY or runtime.key.startswith(
        ADAPTIVE_RUNTIME_KEY_PREFIX
    )


def bot_path(project_path: str | Path, runtime: RuntimeSettings | None = None) -> Path:
    """Directory the build writes to and the deployable bot lives in."""
    path = Path(project_path)
    return path if is_using_adaptive_runtime(runtime) else path / LEGACY_DIALOGS_DIR


# =============================================================================
# Build Output Discovery
# =============================================================================


def find_luis_settings_files(root: Path) -> list[Path]:
    """Recursively list generated LUIS settings fragments under root, sorted by path."""
    if not root.is_dir():
        raise CompileError(f"Build output directory {root} does not exist")
    try:
        return sorted(
            p for p in root.rglob("*") if p.is_file() and LUIS_SETTINGS_MARKER in p.name
        )
    except OSError as e:
        raise CompileError(f"Cannot scan build output under {root}: {e}") from e


def read_compiled_applications(root: Path) -> CompiledApplicationMap:
    """
    Merge the ``luis`` mappings of every settings fragment under root.

    Later files overwrite earlier ones on key collision.

    Raises:
        CompileError: On any I/O or parse error
    """
    apps: CompiledApplicationMap = {}
    for settings_file in find_luis_settings_files(root):
        try:
            data = json.loads(settings_file.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise CompileError(f"Cannot read LUIS settings {settings_file}: {e}") from e

        if not isinstance(data, dict):
            raise CompileError(f"LUIS settings {settings_file} is not a JSON object")

        luis = data.get("luis") or {}
        if not isinstance(luis, dict):
            raise CompileError(f"'luis' in {settings_file} is not a mapping")

        logger.debug(f"Read {len(luis)} app id(s) from {settings_file.name}")
        apps.update(luis)
    return apps


# =============================================================================
# Compiler Boundary
# =============================================================================


class LuBuilder(Protocol):
    """The external LU/QnA compiler."""

    root_dir: str

    def set_build_config(self, config: Mapping[str, Any], downsampling: Mapping[str, Any]) -> None: ...

    async def build(
        self,
        lu_files: list[FileInfo],
        qna_files: list[FileInfo],
        all_files: list[FileInfo],
        empty_files: dict[str, bool],
    ) -> None: ...

    async def copy_model_path_to_bot(self, is_adaptive: bool) -> None: ...


# =============================================================================
# Processor
# =============================================================================


class CompilerProcessor(Processor):
    """
    Builds located resources and discovers the compiled applications.

    Turns a ResourcesLocatedFrame into an ApplicationsCompiledFrame.
    """

    def __init__(self, builder: LuBuilder):
        self._builder = builder

    @property
    def name(self) -> str:
        return "compiler"

    async def build(
        self,
        config: BuildConfig,
        lu_files: Iterable[FileInfo],
        qna_files: Iterable[FileInfo],
        all_files: Iterable[FileInfo],
        empty_markers: Iterable[str],
        *,
        project_path: str | Path,
        runtime: RuntimeSettings | None = None,
    ) -> CompiledApplicationMap:
        """
        Run the external build and return the compiled application map.

        Args:
            config: Merged build configuration
            lu_files: LU content to compile
            qna_files: QnA content to compile
            all_files: Every project file (for cross-file references)
            empty_markers: File names of resources skipped on purpose
            project_path: Bot project directory
            runtime: Runtime template, decides the output layout

        Returns:
            Dialog id → {"appId": ...}; empty when nothing was compiled

        Raises:
            CompileError: If the build fails or its output cannot be read
        """
        root = bot_path(project_path, runtime)
        empty_files = {name: True for name in sorted(empty_markers)}

        self._builder.root_dir = str(root)
        self._builder.set_build_config(
            config.to_builder_settings(), config.downsampling.to_builder_dict()
        )

        try:
            await self._builder.build(
                list(lu_files), list(qna_files), list(all_files), empty_files
            )
        except CompileError:
            raise
        except Exception as e:
            raise CompileError(f"LU build failed: {e}") from e

        apps = read_compiled_applications(root)
        # Models are copied into the bot only when LUIS apps came back;
        # a QnA-only build leaves its generated models where the builder wrote them
        if not apps:
            logger.info(f"No LUIS applications produced under {root}")
            return apps

        try:
            await self._builder.copy_model_path_to_bot(is_using_adaptive_runtime(runtime))
        except Exception as e:
            raise CompileError(f"Copying generated models into {root} failed: {e}") from e

        logger.info(f"Compiled {len(apps)} LUIS application(s): {', '.join(apps)}")
        return apps

    async def process(
        self,
        frame: Frame,
        ctx: PipelineContext,
    ) -> Frame:
        if not isinstance(frame, ResourcesLocatedFrame):
            return frame

        request = frame.request
        located = frame.located
        try:
            config = configure(
                request.luis or LuisSettings(),
                request.qna or QnaSettings(),
                request.downsampling,
            )
            apps = await self.build(
                config,
                located.lu_files,
                located.qna_files,
                list((request.files or {}).values()),
                located.empty_markers,
                project_path=ctx.project_path,
                runtime=ctx.runtime,
            )
        except PublishError as e:
            notify(ctx.notifier, DeployStatus.ERROR, str(e))
            raise

        return ApplicationsCompiledFrame(
            request=request,
            located=located,
            apps=apps,
            source_frame_id=frame.id,
        )
