"""
Tests for resource location.
"""

import pytest

from lupublish.pipeline import CollectingNotifier, DeployStatus, PipelineContext
from lupublish.pipeline.frames import (
    FileInfo,
    Frame,
    LocateStatus,
    PublishRequestFrame,
    ResourceKind,
    ResourceReference,
    ResourcesLocatedFrame,
)
from lupublish.pipeline.processors import ResourceLocatorProcessor, locate, locate_resources


class TestResourceReference:
    def test_from_dict(self):
        ref = ResourceReference.from_dict({"id": "faq", "isEmpty": True})
        assert ref == ResourceReference("faq", is_empty=True)

    def test_from_dict_defaults_not_empty(self):
        assert not ResourceReference.from_dict({"id": "greeting"}).is_empty


class TestLocate:
    def test_found(self, project_files):
        [located] = locate([ResourceReference("greeting")], ResourceKind.LU, project_files)
        assert located.status is LocateStatus.FOUND
        assert located.file is project_files["greeting.lu"]
        assert located.file_name == "greeting.lu"

    def test_missing(self, project_files):
        [located] = locate([ResourceReference("order")], ResourceKind.LU, project_files)
        assert located.status is LocateStatus.MISSING
        assert located.file is None

    def test_empty_with_file_present(self, project_files):
        [located] = locate([ResourceReference("faq", is_empty=True)], ResourceKind.QNA, project_files)
        assert located.status is LocateStatus.EMPTY
        assert located.file is None

    def test_suffix_follows_kind(self, project_files):
        # greeting.qna does not exist even though greeting.lu does
        [located] = locate([ResourceReference("greeting")], ResourceKind.QNA, project_files)
        assert located.status is LocateStatus.MISSING

    def test_declaration_order_kept(self):
        files = {n: FileInfo(name=n) for n in ("c.lu", "a.lu", "b.lu")}
        refs = [ResourceReference(i) for i in ("b", "c", "a")]
        assert [r.file_name for r in locate(refs, ResourceKind.LU, files)] == ["b.lu", "c.lu", "a.lu"]


class TestLocateResources:
    def test_greeting_and_empty_faq(self, project_files):
        result = locate_resources(
            [ResourceReference("greeting")],
            [ResourceReference("faq", is_empty=True)],
            project_files,
        )

        assert [f.name for f in result.lu_files] == ["greeting.lu"]
        assert result.qna_files == ()
        assert result.empty_markers == frozenset({"faq.qna"})
        assert result.empty_files() == {"faq.qna": True}
        assert result.missing == []

    def test_empty_resources_never_in_file_lists(self, project_files):
        result = locate_resources(
            [ResourceReference("greeting", is_empty=True)],
            [ResourceReference("faq", is_empty=True)],
            project_files,
        )

        assert result.files == ()
        assert result.empty_markers == frozenset({"greeting.lu", "faq.qna"})

    def test_missing_files_left_out(self, project_files):
        result = locate_resources(
            [ResourceReference("greeting"), ResourceReference("order")],
            [],
            project_files,
        )

        assert [f.name for f in result.lu_files] == ["greeting.lu"]
        assert [r.file_name for r in result.missing] == ["order.lu"]
        assert result.to_dict()["missing"] == ["order.lu"]

    def test_nothing_declared(self, project_files):
        result = locate_resources([], [], project_files)
        assert result.files == ()
        assert result.empty_markers == frozenset()


class TestResourceLocatorProcessor:
    @pytest.mark.asyncio
    async def test_produces_located_frame(self, project_files):
        notifier = CollectingNotifier()
        ctx = PipelineContext(notifier=notifier)
        request = PublishRequestFrame(
            lu_resources=(ResourceReference("greeting"), ResourceReference("order")),
            qna_resources=(ResourceReference("faq", is_empty=True),),
            files=project_files,
        )

        output = await ResourceLocatorProcessor().process(request, ctx)

        assert isinstance(output, ResourcesLocatedFrame)
        assert output.request is request
        assert output.source_frame_id == request.id
        assert [f.name for f in output.located.lu_files] == ["greeting.lu"]
        assert notifier.messages == ["Skipping order.lu: file not found in project"]
        assert notifier.events[0].status is DeployStatus.INFO

    @pytest.mark.asyncio
    async def test_passes_other_frames_through(self):
        frame = Frame()
        output = await ResourceLocatorProcessor().process(frame, PipelineContext())
        assert output is frame
