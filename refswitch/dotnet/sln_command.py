"""Change solution membership through the ``dotnet sln`` command."""

from __future__ import annotations

import logging
import os
import subprocess
from typing import Callable

from refswitch.errors import SolutionCommandError

logger = logging.getLogger(__name__)

DOTNET_ENV_VAR = "REFSWITCH_DOTNET"

Runner = Callable[..., subprocess.CompletedProcess]


def dotnet_executable() -> str:
    return os.environ.get(DOTNET_ENV_VAR, "dotnet")


def build_sln_command(
    solution_path: str, action: str, project_paths: list[str], solution_folder: str | None = None,
) -> list[str]:
    """Argument list for ``dotnet sln <solution> add|remove <projects...>``."""
    args = [dotnet_executable(), "sln", solution_path, action, *project_paths]
    if solution_folder:
        args += ["--solution-folder", solution_folder]
    return args


def run_sln_command(
    solution_path: str,
    action: str,
    project_paths: list[str],
    solution_folder: str | None = None,
    runner: Runner = subprocess.run,
    timeout: float = 300,
) -> str:
    """Run one ``dotnet sln`` batch and return its standard output.

    Raises:
        SolutionCommandError: dotnet is missing, timed out, or exited non-zero.
    """
    args = build_sln_command(solution_path, action, project_paths, solution_folder)
    logger.debug(f"Running {' '.join(args)}")
    try:
        result = runner(args, capture_output=True, text=True, timeout=timeout)
    except (subprocess.TimeoutExpired, OSError) as e:
        raise SolutionCommandError(solution_path, str(e)) from e

    if result.returncode != 0:
        message = (result.stderr or result.stdout or "").strip()
        raise SolutionCommandError(
            solution_path, message or f"dotnet exited with code {result.returncode}"
        )
    return result.stdout or ""
