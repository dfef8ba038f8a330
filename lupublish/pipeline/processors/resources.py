"""
Resource Locator for lupublish.

Resolves the project's declared LU and QnA resource ids to files in the
project's file store. Pure: reads the store, never writes.

Resolution rules:
    - the file name is ``<id>.lu`` or ``<id>.qna``
    - an empty reference is recorded in ``empty_markers`` and its content
      is never handed to the compiler, whether or not a file exists
    - a present file is included
    - a missing non-empty file is left out without error and tagged
      MISSING, so callers can warn about it
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING

from lupublish.pipeline.frames import (
    FileInfo,
    LocatedResource,
    LocateResult,
    LocateStatus,
    PublishRequestFrame,
    ResourceKind,
    ResourceReference,
    ResourcesLocatedFrame,
)
from lupublish.pipeline.observability import DeployStatus, notify
from lupublish.pipeline.processor import Processor

if TYPE_CHECKING:
    from lupublish.pipeline.context import PipelineContext
    from lupublish.pipeline.frames import FileStore, Frame

logger = logging.getLogger(__name__)


def locate(
    references: Iterable[ResourceReference],
    kind: ResourceKind,
    file_store: FileStore,
) -> list[LocatedResource]:
    """
    Resolve references of one kind against the file store.

    Args:
        references: Declared resources
        kind: LU or QnA, decides the file suffix
        file_store: Project files keyed by file name

    Returns:
        One LocatedResource per reference, in declaration order
    """
    located: list[LocatedResource] = []
    for ref in references:
        file_name = kind.file_name(ref.id)
        if ref.is_empty:
            located.append(LocatedResource(ref, kind, LocateStatus.EMPTY))
            continue

        file = file_store.get(file_name)
        if file is None:
            logger.warning(f"Resource file '{file_name}' is declared but not in the project")
            located.append(LocatedResource(ref, kind, LocateStatus.MISSING))
        else:
            located.append(LocatedResource(ref, kind, LocateStatus.FOUND, file))
    return located


def locate_resources(
    lu_resources: Iterable[ResourceReference],
    qna_resources: Iterable[ResourceReference],
    file_store: FileStore,
) -> LocateResult:
    """Resolve both resource kinds into the set handed to the compiler."""
    located = locate(lu_resources, ResourceKind.LU, file_store) + locate(
        qna_resources, ResourceKind.QNA, file_store
    )

    def files_of(kind: ResourceKind) -> tuple[FileInfo, ...]:
        return tuple(
            r.file
            for r in located
            if r.kind is kind and r.status is LocateStatus.FOUND and r.file is not None
        )

    return LocateResult(
        lu_files=files_of(ResourceKind.LU),
        qna_files=files_of(ResourceKind.QNA),
        empty_markers=frozenset(r.file_name for r in located if r.status is LocateStatus.EMPTY),
        located=tuple(located),
    )


class ResourceLocatorProcessor(Processor):
    """
    Turns a PublishRequestFrame into a ResourcesLocatedFrame.

    Missing files are reported to the notifier as informational events;
    they do not fail the publish.
    """

    @property
    def name(self) -> str:
        return "resource_locator"

    async def process(
        self,
        frame: Frame,
        ctx: PipelineContext,
    ) -> Frame:
        if not isinstance(frame, PublishRequestFrame):
            return frame

        result = locate_resources(frame.lu_resources, frame.qna_resources, frame.files or {})

        for missing in result.missing:
            notify(
                ctx.notifier,
                DeployStatus.INFO,
                f"Skipping {missing.file_name}: file not found in project",
            )

        logger.info(
            f"Located {len(result.lu_files)} lu and {len(result.qna_files)} qna files, "
            f"{len(result.empty_markers)} empty, {len(result.missing)} missing"
        )

        return ResourcesLocatedFrame(
            request=frame,
            located=result,
            source_frame_id=frame.id,
        )
