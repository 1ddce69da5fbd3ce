"""File-backed workspace: real solution files, project files and the dotnet CLI."""

from __future__ import annotations

import subprocess

from refswitch.dotnet.project import MsBuildProject, load_project, solution_global_properties
from refswitch.dotnet.sln_command import Runner, run_sln_command
from refswitch.dotnet.solution import SolutionProject, open_solution


class MsBuildWorkspace:
    """Default :class:`~refswitch.switching.base.SolutionWorkspace` implementation."""

    def __init__(self, runner: Runner | None = None) -> None:
        self.runner = runner or subprocess.run

    def open_solution(self, solution_path: str) -> list[SolutionProject]:
        return open_solution(solution_path)

    def global_properties(self, solution_path: str) -> dict[str, str]:
        return solution_global_properties(solution_path)

    def load_project(self, project_path: str, global_properties: dict[str, str]) -> MsBuildProject:
        return load_project(project_path, global_properties)

    def add_projects(
        self, solution_path: str, project_paths: list[str], solution_folder: str | None = None
    ) -> None:
        run_sln_command(solution_path, "add", project_paths, solution_folder, runner=self.runner)

    def remove_projects(self, solution_path: str, project_paths: list[str]) -> None:
        run_sln_command(solution_path, "remove", project_paths, runner=self.runner)
