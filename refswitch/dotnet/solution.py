"""Read solution membership from .sln (text) and .slnx (XML) files."""

from __future__ import annotations

import os
import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from typing import Callable

from refswitch.errors import SolutionLoadError, UnsupportedSolutionError
from refswitch.paths import file_stem, to_absolute


@dataclass
class SolutionProject:
    """A project entry from a solution file."""
    name: str
    path: str
    file_path: str
    type_guid: str = ""
    project_guid: str = ""


# Regex to match Project lines in .sln files
# Project("{TYPE-GUID}") = "Name", "Path\To\Project.csproj", "{PROJECT-GUID}"
_PROJECT_RE = re.compile(
    r'^Project\(\"\{([^}]+)\}\"\)\s*=\s*\"([^\"]+)\"\s*,\s*\"([^\"]+)\"\s*,\s*\"\{([^}]+)\}\"',
    re.MULTILINE,
)

_SOLUTION_FOLDER_GUID = "2150E333-8FDC-42A3-9474-1A3956D46DE8"


def parse_sln(sln_path: str) -> list[SolutionProject]:
    """Parse a .sln file and return project entries.

    Excludes solution folders (virtual projects for organising).
    """
    with open(sln_path, "r", encoding="utf-8-sig") as f:
        content = f.read()

    solution_dir = os.path.dirname(os.path.abspath(sln_path))
    projects = []
    for match in _PROJECT_RE.finditer(content):
        type_guid = match.group(1).upper()
        if type_guid == _SOLUTION_FOLDER_GUID:
            continue

        path = match.group(3).replace("\\", "/")
        projects.append(SolutionProject(
            name=match.group(2),
            path=path,
            file_path=to_absolute(path, solution_dir),
            type_guid=type_guid,
            project_guid=match.group(4).upper(),
        ))

    return projects


def parse_slnx(slnx_path: str) -> list[SolutionProject]:
    """Parse an XML .slnx solution. Projects may sit at any folder depth."""
    root = ET.parse(slnx_path).getroot()
    solution_dir = os.path.dirname(os.path.abspath(slnx_path))

    projects = []
    for element in root.iter("Project"):
        path = element.get("Path", "")
        if not path:
            continue
        path = path.replace("\\", "/")
        projects.append(SolutionProject(
            name=element.get("DisplayName") or file_stem(path),
            path=path,
            file_path=to_absolute(path, solution_dir),
            type_guid=element.get("Type", ""),
            project_guid=element.get("Id", ""),
        ))

    return projects


_READERS: dict[str, Callable[[str], list[SolutionProject]]] = {
    ".sln": parse_sln,
    ".slnx": parse_slnx,
}


def supported_solution_extensions() -> set[str]:
    return set(_READERS)


def open_solution(solution_path: str) -> list[SolutionProject]:
    """Enumerate the projects of a solution, choosing the reader by extension.

    Raises:
        UnsupportedSolutionError: no reader for the extension.
        SolutionLoadError: the file is missing or malformed.
    """
    ext = os.path.splitext(solution_path)[1].lower()
    reader = _READERS.get(ext)
    if reader is None:
        raise UnsupportedSolutionError(solution_path)

    try:
        return reader(solution_path)
    except (ET.ParseError, OSError, UnicodeDecodeError) as e:
        raise SolutionLoadError(f"Solution {solution_path} could not be loaded. {e}") from e
