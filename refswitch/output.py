"""User-facing summary lines and error reporting."""

from __future__ import annotations

import logging

from rich.console import Console
from rich.markup import escape

from refswitch.paths import file_name

logger = logging.getLogger(__name__)


def _version(version: str | None) -> str:
    return "" if version is None else version


class SwitchReporter:
    """Writes switch summaries to stdout and errors to stderr.

    Errors are counted so the CLI can decide on an exit status; they never
    interrupt a run.
    """

    def __init__(
        self,
        console: Console | None = None,
        error_console: Console | None = None,
        quiet: bool = False,
    ) -> None:
        self.console = console or Console(highlight=False)
        self.error_console = error_console or Console(stderr=True, highlight=False)
        self.quiet = quiet
        self.errors: list[str] = []

    def message(self, text: str) -> None:
        if not self.quiet:
            self.console.print(escape(text), soft_wrap=True)

    def error(self, text: str) -> None:
        self.errors.append(text)
        logger.debug(text)
        self.error_console.print(f"[red]{escape(text)}[/red]", soft_wrap=True)

    def switched_to_projects(
        self, project_path: str, package_name: str, version: str | None, project_paths: list[str],
    ) -> None:
        lines = [
            f"Project {file_name(project_path)} packages:",
            f"    {package_name} v{_version(version)}",
            "    replaced by:",
        ]
        lines += [f"    {file_name(p)}" for p in project_paths]
        self.message("\n".join(lines))

    def switched_to_packages(
        self, project_name: str, project_paths: list[str], package_name: str, version: str | None,
    ) -> None:
        lines = [f"Project {project_name} with project references:"]
        lines += [f"    {file_name(p)}" for p in project_paths]
        lines.append(f"    replaced by package: {package_name} v{_version(version)}")
        self.message("\n".join(lines))

    def summary(self, switched_projects: int) -> None:
        if self.quiet:
            return
        if self.errors:
            self.console.print(
                f"[yellow]Switched {switched_projects} project(s) with {len(self.errors)} error(s)[/yellow]"
            )
        else:
            self.console.print(f"[green]Switched {switched_projects} project(s)[/green]")
