"""Capabilities the switching engine needs from the project and solution layers."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol, runtime_checkable

from refswitch.dotnet.solution import SolutionProject


class ItemType(str, Enum):
    """MSBuild item types the switcher reads and writes."""
    PACKAGE_REFERENCE = "PackageReference"
    REFERENCE = "Reference"
    PROJECT_REFERENCE = "ProjectReference"


@dataclass
class ProjectItem:
    """One evaluated item of a project.

    ``include`` is the evaluated include; ``metadata`` maps metadata names to
    evaluated values in document order.
    """
    item_type: str
    include: str
    metadata: dict[str, str] = field(default_factory=dict)
    handle: Any = field(default=None, repr=False, compare=False)

    @property
    def reference_name(self) -> str:
        """Include up to the first comma, e.g. ``Foo`` for ``Foo, Version=1.0.0.0``."""
        return self.include.split(",")[0].strip()


@runtime_checkable
class ProjectDocument(Protocol):
    """An editable project file, open until :meth:`close` is called."""

    path: str

    def items(self, *item_types: str) -> list[ProjectItem]:
        """Return the items of the given types in document order."""
        ...

    def get_property(self, name: str) -> str | None:
        """Return the evaluated value of a property, or None when undefined."""
        ...

    def remove_item(self, item: ProjectItem) -> None:
        ...

    def add_item(
        self,
        item_type: str,
        include: str,
        metadata: list[tuple[str, str]] | None = None,
        metadata_as_attributes: bool = False,
    ) -> ProjectItem:
        ...

    def save(self) -> None:
        """Write the project back, keeping its original line endings."""
        ...

    def close(self) -> None:
        ...

    def __enter__(self) -> ProjectDocument:
        ...

    def __exit__(self, *exc_info: object) -> None:
        ...


@runtime_checkable
class SolutionWorkspace(Protocol):
    """Read access to solutions and projects, plus out-of-process membership edits."""

    def open_solution(self, solution_path: str) -> list[SolutionProject]:
        """Enumerate member projects.

        Raises:
            UnsupportedSolutionError: the solution format is not recognised.
            SolutionLoadError: the solution could not be read.
        """
        ...

    def global_properties(self, solution_path: str) -> dict[str, str]:
        ...

    def load_project(self, project_path: str, global_properties: dict[str, str]) -> ProjectDocument:
        """Raises ProjectLoadError when the project cannot be loaded."""
        ...

    def add_projects(
        self, solution_path: str, project_paths: list[str], solution_folder: str | None = None
    ) -> None:
        """Raises SolutionCommandError when the membership change fails."""
        ...

    def remove_projects(self, solution_path: str, project_paths: list[str]) -> None:
        """Raises SolutionCommandError when the membership change fails."""
        ...
