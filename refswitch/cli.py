"""refswitch CLI - Switch between NuGet package references and project references."""

from __future__ import annotations

import logging
import sys
from typing import Callable

import click
from rich.console import Console
from rich.logging import RichHandler

from refswitch import __version__
from refswitch.config import DEFAULT_CONFIGURATION, SwitcherConfiguration, load_configuration, save_configuration
from refswitch.errors import ConfigurationError
from refswitch.output import SwitchReporter
from refswitch.pipeline import SwitchResult, run_switch_to_packages, run_switch_to_projects


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _run(
    configuration: str,
    verbose: bool,
    quiet: bool,
    run: Callable[[SwitcherConfiguration, None, SwitchReporter], SwitchResult],
) -> None:
    _setup_logging(verbose)
    reporter = SwitchReporter(quiet=quiet)

    try:
        config = load_configuration(configuration)
    except ConfigurationError as e:
        reporter.error(str(e))
        sys.exit(1)

    result = run(config, None, reporter)
    save_configuration(config)
    reporter.summary(len(result.switched_projects))

    if not result.solution_opened:
        sys.exit(1)


@click.group()
@click.version_option(__version__, prog_name="refswitch")
def cli() -> None:
    """refswitch - Develop against the source of your NuGet dependencies."""
    pass


@cli.command("switch-to-projects")
@click.argument("configuration", default=DEFAULT_CONFIGURATION, type=click.Path(dir_okay=False))
@click.option("--verbose", is_flag=True, help="Log every item decision")
@click.option("--quiet", is_flag=True, help="Suppress all output except errors")
def switch_to_projects_cmd(configuration: str, verbose: bool, quiet: bool) -> None:
    """Switch NuGet references to project references."""
    _run(configuration, verbose, quiet, run_switch_to_projects)


@cli.command("switch-to-packages")
@click.argument("configuration", default=DEFAULT_CONFIGURATION, type=click.Path(dir_okay=False))
@click.option("--verbose", is_flag=True, help="Log every item decision")
@click.option("--quiet", is_flag=True, help="Suppress all output except errors")
def switch_to_packages_cmd(configuration: str, verbose: bool, quiet: bool) -> None:
    """Switch project references to NuGet references."""
    _run(configuration, verbose, quiet, run_switch_to_packages)


if __name__ == "__main__":
    cli()
