"""Exception types raised at the external boundaries of a switch run."""

from __future__ import annotations


class SwitcherError(Exception):
    """Base class for all reference switcher failures."""


class ConfigurationError(SwitcherError):
    """The switcher configuration file is missing or cannot be parsed."""


class UnsupportedSolutionError(SwitcherError):
    """No solution reader is registered for the file's extension."""

    def __init__(self, solution_path: str) -> None:
        super().__init__(
            f"Solution {solution_path} could not be loaded as it's not recognized by the serializer"
        )
        self.solution_path = solution_path


class SolutionLoadError(SwitcherError):
    """The solution file exists in a known format but could not be read."""


class ProjectLoadError(SwitcherError):
    """A project file could not be loaded for editing."""

    def __init__(self, project_path: str, cause: Exception | str) -> None:
        super().__init__(f"The project '{project_path}' could not be loaded: {cause}")
        self.project_path = project_path
        self.cause = cause


class SolutionCommandError(SwitcherError):
    """Adding or removing solution members through the dotnet CLI failed."""

    def __init__(self, solution_path: str, message: str) -> None:
        super().__init__(f"Solution {solution_path} could not be updated. {message}")
        self.solution_path = solution_path
