"""Resolve the configured package -> project paths mapping into its working form."""

from __future__ import annotations

from dataclasses import dataclass, field

from refswitch.config import SwitcherConfiguration
from refswitch.paths import PathComparer, to_relative


@dataclass
class ResolvedMapping:
    """A package name and the absolute paths of the projects that replace it."""
    package_name: str
    project_paths: list[str]
    comparer: PathComparer = field(default_factory=PathComparer)

    def relative_paths(self, project_directory: str) -> list[str]:
        """Mapped paths as they should be written into a project in ``project_directory``."""
        return [to_relative(p, project_directory) for p in self.project_paths]

    def contains(self, absolute_path: str) -> bool:
        return self.comparer.contains(self.project_paths, absolute_path)


def resolve_mappings(config: SwitcherConfiguration) -> list[ResolvedMapping]:
    """Resolve every mapping entry, in configuration order.

    Duplicate paths are removed within one entry only; the same project may
    still appear under several package names.
    """
    comparer = PathComparer(config.case_sensitive_paths)
    resolved = []
    for package_name, paths in config.mappings.items():
        seen: set[str] = set()
        absolute_paths = []
        for path in paths:
            absolute = config.actual_path(path)
            key = comparer.key(absolute)
            if key in seen:
                continue
            seen.add(key)
            absolute_paths.append(absolute)
        resolved.append(ResolvedMapping(package_name, absolute_paths, comparer))
    return resolved


def all_mapped_paths(mappings: list[ResolvedMapping]) -> list[str]:
    """Every mapped project path across all entries, first occurrence wins."""
    seen: set[str] = set()
    paths = []
    for mapping in mappings:
        for path in mapping.project_paths:
            key = mapping.comparer.key(path)
            if key not in seen:
                seen.add(key)
                paths.append(path)
    return paths
