"""
Resource types shared by the publish frames.

A bot project declares its language-understanding (``.lu``) and
question-answering (``.qna``) resources by id. The locator resolves every
declared id against the project's file store and tags the result as
found, missing or intentionally empty.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol


class ResourceKind(str, Enum):
    """Kind of authored resource, valued by its file suffix."""

    LU = ".lu"
    QNA = ".qna"

    def file_name(self, resource_id: str) -> str:
        return f"{resource_id}{self.value}"


class LocateStatus(str, Enum):
    """Outcome of resolving one declared resource."""

    FOUND = "found"
    MISSING = "missing"
    EMPTY = "empty"


@dataclass(frozen=True, slots=True)
class ResourceReference:
    """A declared resource id and whether it has no authored content."""

    id: str
    is_empty: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ResourceReference:
        """Build from the project's ``{"id": ..., "isEmpty": ...}`` shape."""
        return cls(id=data["id"], is_empty=bool(data.get("isEmpty", data.get("is_empty", False))))


@dataclass(frozen=True, slots=True)
class FileInfo:
    """A file owned by the project's file store."""

    name: str
    content: str = ""
    path: str = ""
    last_modified: str = ""


class FileStore(Protocol):
    """Read access to a project's files. A ``dict[str, FileInfo]`` qualifies."""

    def get(self, name: str) -> FileInfo | None: ...

    def values(self) -> Iterable[FileInfo]: ...


@dataclass(frozen=True, slots=True)
class LocatedResource:
    """Resolution of one declared resource."""

    reference: ResourceReference
    kind: ResourceKind
    status: LocateStatus
    file: FileInfo | None = None

    @property
    def file_name(self) -> str:
        return self.kind.file_name(self.reference.id)


@dataclass(frozen=True, slots=True)
class LocateResult:
    """
    Resolved resource set handed to the compiler.

    ``lu_files``/``qna_files`` hold content to compile; ``empty_markers``
    holds the file names of resources that were skipped on purpose.
    Empty resources never appear in the file lists, even when a file for
    them exists in the store.
    """

    lu_files: tuple[FileInfo, ...] = ()
    qna_files: tuple[FileInfo, ...] = ()
    empty_markers: frozenset[str] = field(default_factory=frozenset)
    located: tuple[LocatedResource, ...] = ()

    @property
    def files(self) -> tuple[FileInfo, ...]:
        return self.lu_files + self.qna_files

    @property
    def missing(self) -> list[LocatedResource]:
        return [r for r in self.located if r.status is LocateStatus.MISSING]

    def empty_files(self) -> dict[str, bool]:
        """Empty markers in the ``{file_name: True}`` shape the compiler expects."""
        return {name: True for name in sorted(self.empty_markers)}

    def to_dict(self) -> dict[str, Any]:
        return {
            "lu_files": [f.name for f in self.lu_files],
            "qna_files": [f.name for f in self.qna_files],
            "empty": sorted(self.empty_markers),
            "missing": [r.file_name for r in self.missing],
        }
