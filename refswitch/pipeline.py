"""Run orchestration for both switch directions.

A run opens the solution, adjusts its membership, rewrites every project
for every mapping, and leaves the updated restore state on the
configuration for the caller to save. Every failure at an external boundary
is reported through the :class:`SwitchReporter`; only an unreadable
solution stops a run early.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from refswitch.config import SwitcherConfiguration
from refswitch.dotnet.solution import SolutionProject
from refswitch.dotnet.workspace import MsBuildWorkspace
from refswitch.errors import SolutionCommandError, SwitcherError
from refswitch.output import SwitchReporter
from refswitch.paths import PathComparer, file_name
from refswitch.switching.base import SolutionWorkspace
from refswitch.switching.mapping import all_mapped_paths, resolve_mappings
from refswitch.switching.membership import ensure_members, remove_members
from refswitch.switching.to_packages import is_supported_project, switch_to_packages
from refswitch.switching.to_projects import switch_to_projects

logger = logging.getLogger(__name__)


@dataclass
class SwitchResult:
    solution_opened: bool = False
    switched_projects: list[str] = field(default_factory=list)
    added_members: list[str] = field(default_factory=list)
    removed_members: list[str] = field(default_factory=list)


def _open_solution(
    workspace: SolutionWorkspace, solution_path: str, reporter: SwitchReporter,
) -> list[SolutionProject] | None:
    try:
        return workspace.open_solution(solution_path)
    except SwitcherError as e:
        reporter.error(str(e))
        return None


def run_switch_to_projects(
    config: SwitcherConfiguration,
    workspace: SolutionWorkspace | None = None,
    reporter: SwitchReporter | None = None,
) -> SwitchResult:
    """Switch package references to project references across the solution."""
    workspace = workspace or MsBuildWorkspace()
    reporter = reporter or SwitchReporter()
    result = SwitchResult()
    solution_path = config.actual_solution_path
    mappings = resolve_mappings(config)
    comparer = PathComparer(config.case_sensitive_paths)

    members = _open_solution(workspace, solution_path, reporter)
    if members is None:
        return result
    result.solution_opened = True

    # Mapped projects must be members before anything can reference them
    try:
        result.added_members = ensure_members(
            workspace, solution_path, members, mappings, config.solution_folder, comparer,
        )
    except SolutionCommandError as e:
        reporter.error(str(e))

    if result.added_members:
        reopened = _open_solution(workspace, solution_path, reporter)
        if reopened is not None:
            members = reopened

    global_properties = workspace.global_properties(solution_path)
    for member in members:
        try:
            with workspace.load_project(member.file_path, global_properties) as project:
                changed = False
                for mapping in mappings:
                    switched = switch_to_projects(project, mapping, config.restore_state)
                    for project_path, version in switched.items():
                        reporter.switched_to_projects(
                            project_path, mapping.package_name, version, mapping.project_paths,
                        )
                    changed = changed or bool(switched)
                if changed:
                    result.switched_projects.append(member.file_path)
        except Exception as e:
            logger.debug(f"Failed to switch {member.file_path}", exc_info=True)
            reporter.error(
                str(e) if isinstance(e, SwitcherError)
                else f"The project '{member.file_path}' could not be loaded: {e}"
            )

    return result


def run_switch_to_packages(
    config: SwitcherConfiguration,
    workspace: SolutionWorkspace | None = None,
    reporter: SwitchReporter | None = None,
) -> SwitchResult:
    """Switch project references back to the recorded package references.

    Clears the restore state once the solution has been processed. When the
    solution cannot be opened the restore state is left intact.
    """
    workspace = workspace or MsBuildWorkspace()
    reporter = reporter or SwitchReporter()
    result = SwitchResult()
    solution_path = config.actual_solution_path
    mappings = resolve_mappings(config)
    comparer = PathComparer(config.case_sensitive_paths)
    remove_projects = config.remove_projects_on_switch_back
    mapped_file_names = [file_name(p) for p in all_mapped_paths(mappings)]

    members = _open_solution(workspace, solution_path, reporter)
    if members is None:
        return result
    result.solution_opened = True

    global_properties = workspace.global_properties(solution_path)
    for member in members:
        if not is_supported_project(member.file_path):
            continue
        try:
            with workspace.load_project(member.file_path, global_properties) as project:
                changed = False
                for mapping in mappings:
                    restored = switch_to_packages(
                        project, mapping, config.restore_state, mapped_file_names, remove_projects,
                    )
                    if restored:
                        # Every candidate restores the same package
                        reporter.switched_to_packages(
                            member.name, mapping.project_paths, mapping.package_name, restored[0][1],
                        )
                        changed = True
                if changed:
                    result.switched_projects.append(member.file_path)
        except Exception as e:
            logger.debug(f"Failed to switch {member.file_path}", exc_info=True)
            reporter.error(
                str(e) if isinstance(e, SwitcherError)
                else f"The project '{member.file_path}' could not be loaded: {e}"
            )

    # Removal comes last so no remaining project is left with a dangling reference
    if remove_projects:
        try:
            result.removed_members = remove_members(
                workspace, solution_path, members, mappings, comparer,
            )
        except SolutionCommandError as e:
            reporter.error(str(e))

    config.restore_state.clear()
    return result
