"""Shared fakes and fixtures for the switcher tests."""

from __future__ import annotations

import os
import re
import shutil
import subprocess
import uuid

import pytest

from refswitch.dotnet.solution import SolutionProject
from refswitch.errors import ProjectLoadError, SolutionCommandError, UnsupportedSolutionError
from refswitch.paths import file_stem
from refswitch.switching.base import ProjectItem

FIXTURES_DIR = os.path.join(os.path.dirname(__file__), "fixtures")

_CSHARP_SDK_GUID = "9A19103F-16F7-4668-BE54-9A1E7A4F7556"
_SLN_BLOCK_RE = re.compile(
    r'^Project\("\{[^}]+\}"\)\s*=\s*"[^"]+"\s*,\s*"([^"]+)"\s*,\s*"\{[^}]+\}"\n(?:.*\n)*?EndProject\n',
    re.MULTILINE,
)


class FakeProject:
    """In-memory project document."""

    def __init__(
        self, path: str, items: list[ProjectItem] | None = None,
        properties: dict[str, str] | None = None,
    ) -> None:
        self.path = path
        self._items = list(items or [])
        self.properties = dict(properties or {})
        self.saves = 0
        self.closed = False

    def items(self, *item_types: str) -> list[ProjectItem]:
        return [i for i in self._items if i.item_type in item_types]

    def all_items(self) -> list[ProjectItem]:
        return list(self._items)

    def get_property(self, name: str) -> str | None:
        return self.properties.get(name)

    def remove_item(self, item: ProjectItem) -> None:
        index = next(i for i, existing in enumerate(self._items) if existing is item)
        del self._items[index]

    def add_item(self, item_type, include, metadata=None, metadata_as_attributes=False) -> ProjectItem:
        item = ProjectItem(item_type, include, dict(metadata or []))
        self._items.append(item)
        return item

    def save(self) -> None:
        self.saves += 1

    def close(self) -> None:
        self.closed = True

    def __enter__(self) -> FakeProject:
        self.closed = False
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


class FakeWorkspace:
    """In-memory solution whose membership commands succeed or fail on demand."""

    def __init__(self, projects: list[FakeProject] | None = None, solution_path: str = "") -> None:
        self.projects = {p.path: p for p in projects or []}
        self.members = [
            SolutionProject(name=file_stem(p.path), path=p.path, file_path=p.path)
            for p in projects or []
        ]
        self.solution_path = solution_path
        self.unsupported = False
        self.fail_commands = False
        self.broken: set[str] = set()
        self.added: list[tuple[list[str], str | None]] = []
        self.removed: list[list[str]] = []

    def open_solution(self, solution_path: str) -> list[SolutionProject]:
        if self.unsupported:
            raise UnsupportedSolutionError(solution_path)
        return list(self.members)

    def global_properties(self, solution_path: str) -> dict[str, str]:
        return {"SolutionDir": os.path.dirname(solution_path) + os.sep}

    def load_project(self, project_path: str, global_properties: dict[str, str]) -> FakeProject:
        if project_path in self.broken:
            raise ProjectLoadError(project_path, "malformed XML")
        if project_path not in self.projects:
            self.projects[project_path] = FakeProject(project_path)
        return self.projects[project_path]

    def add_projects(self, solution_path, project_paths, solution_folder=None) -> None:
        if self.fail_commands:
            raise SolutionCommandError(solution_path, "dotnet not found")
        self.added.append((list(project_paths), solution_folder))
        for path in project_paths:
            self.members.append(SolutionProject(name=file_stem(path), path=path, file_path=path))

    def remove_projects(self, solution_path, project_paths) -> None:
        if self.fail_commands:
            raise SolutionCommandError(solution_path, "dotnet not found")
        self.removed.append(list(project_paths))
        self.members = [m for m in self.members if m.file_path not in project_paths]


class FakeDotnet:
    """Stands in for ``dotnet sln add/remove`` by editing the .sln text directly."""

    def __init__(self, returncode: int = 0) -> None:
        self.returncode = returncode
        self.calls: list[list[str]] = []

    def __call__(self, args, **kwargs) -> subprocess.CompletedProcess:
        self.calls.append(list(args))
        if self.returncode != 0:
            return subprocess.CompletedProcess(args, self.returncode, stdout="", stderr="boom")

        _, _, solution_path, action, *rest = args
        if "--solution-folder" in rest:
            rest = rest[:rest.index("--solution-folder")]
        with open(solution_path, "r", encoding="utf-8") as f:
            content = f.read()
        solution_dir = os.path.dirname(solution_path)

        if action == "add":
            blocks = ""
            for path in rest:
                relative = os.path.relpath(path, solution_dir).replace(os.sep, "\\")
                blocks += (
                    f'Project("{{{_CSHARP_SDK_GUID}}}") = "{file_stem(path)}", "{relative}", '
                    f'"{{{str(uuid.uuid4()).upper()}}}"\nEndProject\n'
                )
            content = re.sub(r"^Global$", lambda m: blocks + "Global", content, count=1, flags=re.MULTILINE)
        else:
            targets = {os.path.normcase(os.path.abspath(p)) for p in rest}

            def _drop(match: re.Match) -> str:
                resolved = os.path.abspath(os.path.join(solution_dir, match.group(1).replace("\\", os.sep)))
                return "" if os.path.normcase(resolved) in targets else match.group(0)

            content = _SLN_BLOCK_RE.sub(_drop, content)

        with open(solution_path, "w", encoding="utf-8") as f:
            f.write(content)
        return subprocess.CompletedProcess(args, 0, stdout="", stderr="")


@pytest.fixture
def sample_solution(tmp_path) -> str:
    """A writable copy of the sample solution; returns the switcher.json path."""
    target = tmp_path / "solution"
    shutil.copytree(os.path.join(FIXTURES_DIR, "solution_switch"), target)
    return str(target / "switcher.json")
