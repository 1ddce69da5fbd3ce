"""Path normalisation shared by the switcher, the project editor and the solution reader.

Paths found in project and solution files may use either separator, so every
comparison goes through :func:`normalize` first. Includes written back into
project files use the MSBuild separator (``\\``), which dotnet accepts on
every platform.
"""

from __future__ import annotations

import os

MSBUILD_SEPARATOR = "\\"


def normalize(path: str) -> str:
    """Collapse separators and ``.``/``..`` segments into the platform form."""
    return os.path.normpath(path.replace("\\", "/"))


def to_absolute(path: str, base_directory: str) -> str:
    """Resolve ``path`` against ``base_directory`` unless it is already absolute."""
    path = path.replace("\\", "/")
    if os.path.isabs(path):
        return normalize(path)
    return normalize(os.path.join(os.path.abspath(base_directory), path))


def to_relative(target_path: str, from_directory: str) -> str:
    """Express ``target_path`` relative to ``from_directory`` using MSBuild separators."""
    target = to_absolute(target_path, from_directory)
    try:
        relative = os.path.relpath(target, os.path.abspath(from_directory))
    except ValueError:
        # Different drives on Windows: no relative form exists
        relative = target
    return relative.replace(os.sep, MSBUILD_SEPARATOR).replace("/", MSBUILD_SEPARATOR)


def file_stem(path: str) -> str:
    """Return the file name without extension, e.g. ``Lib`` for ``src/Lib/Lib.csproj``."""
    return os.path.splitext(file_name(path))[0]


def file_name(path: str) -> str:
    return os.path.basename(path.replace("\\", "/"))


class PathComparer:
    """Compares file system paths with a configurable case sensitivity.

    Defaults to case-insensitive, matching Windows and macOS developer
    machines where solution files are most often edited.
    """

    def __init__(self, case_sensitive: bool = False) -> None:
        self.case_sensitive = case_sensitive

    def key(self, path: str) -> str:
        """Canonical form of ``path`` used for equality and membership checks."""
        normalized = normalize(path)
        return normalized if self.case_sensitive else normalized.casefold()

    def equal(self, a: str, b: str) -> bool:
        return self.key(a) == self.key(b)

    def contains(self, paths: list[str], path: str) -> bool:
        wanted = self.key(path)
        return any(self.key(p) == wanted for p in paths)


def paths_equal(a: str, b: str, case_sensitive: bool = False) -> bool:
    """Compare two paths after normalisation."""
    return PathComparer(case_sensitive).equal(a, b)
