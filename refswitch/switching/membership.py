"""Keep mapped projects in (or out of) the solution's project list."""

from __future__ import annotations

import logging
import os

from refswitch.dotnet.solution import SolutionProject
from refswitch.paths import PathComparer, file_stem
from refswitch.switching.base import SolutionWorkspace
from refswitch.switching.mapping import ResolvedMapping, all_mapped_paths

logger = logging.getLogger(__name__)


def _is_member(path: str, members: list[SolutionProject], comparer: PathComparer) -> bool:
    name = file_stem(path).casefold()
    return any(
        m.name.casefold() == name or comparer.equal(m.file_path, path)
        for m in members
    )


def missing_members(
    members: list[SolutionProject], mappings: list[ResolvedMapping], comparer: PathComparer,
) -> list[str]:
    """Mapped project paths that are not yet part of the solution."""
    return [p for p in all_mapped_paths(mappings) if not _is_member(p, members, comparer)]


def present_members(
    members: list[SolutionProject], mappings: list[ResolvedMapping], comparer: PathComparer,
) -> list[str]:
    """Mapped project paths that resolve to a current solution member."""
    return [
        p for p in all_mapped_paths(mappings)
        if any(comparer.equal(m.file_path, p) for m in members)
    ]


def ensure_members(
    workspace: SolutionWorkspace,
    solution_path: str,
    members: list[SolutionProject],
    mappings: list[ResolvedMapping],
    solution_folder: str | None = None,
    comparer: PathComparer | None = None,
) -> list[str]:
    """Add every missing mapped project to the solution in one batch.

    Returns the paths that were added. Raises SolutionCommandError when the
    dotnet CLI fails.
    """
    comparer = comparer or PathComparer()
    missing = missing_members(members, mappings, comparer)
    if not missing:
        logger.debug(f"All mapped projects already belong to {os.path.basename(solution_path)}")
        return []

    logger.info(f"Adding {len(missing)} project(s) to {solution_path}")
    workspace.add_projects(solution_path, missing, solution_folder)
    return missing


def remove_members(
    workspace: SolutionWorkspace,
    solution_path: str,
    members: list[SolutionProject],
    mappings: list[ResolvedMapping],
    comparer: PathComparer | None = None,
) -> list[str]:
    """Remove mapped projects that are currently solution members, in one batch."""
    comparer = comparer or PathComparer()
    present = present_members(members, mappings, comparer)
    if not present:
        return []

    logger.info(f"Removing {len(present)} project(s) from {solution_path}")
    workspace.remove_projects(solution_path, present)
    return present
