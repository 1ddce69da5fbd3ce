"""The switcher configuration file."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from typing import Any

from refswitch.errors import ConfigurationError
from refswitch.paths import to_absolute
from refswitch.switching.state import RestoreState

logger = logging.getLogger(__name__)

DEFAULT_CONFIGURATION = "switcher.json"

_KNOWN_KEYS = {"solution", "solutionFolder", "removeProjects", "mappings", "restore", "caseSensitivePaths"}


@dataclass
class SwitcherConfiguration:
    """Contents of a ``switcher.json`` file.

    Paths in ``solution_path`` and ``mappings`` are relative to the directory
    of the configuration file; use :meth:`actual_path` to resolve them.
    """
    path: str
    solution_path: str = ""
    solution_folder: str | None = None
    remove_projects_on_switch_back: bool = False
    mappings: dict[str, list[str]] = field(default_factory=dict)
    restore_state: RestoreState = field(default_factory=RestoreState)
    case_sensitive_paths: bool = False
    extra: dict[str, Any] = field(default_factory=dict)

    @property
    def directory(self) -> str:
        return os.path.dirname(os.path.abspath(self.path))

    @property
    def actual_solution_path(self) -> str:
        return self.actual_path(self.solution_path)

    def actual_path(self, path: str) -> str:
        """Resolve a configured path against the configuration file's directory."""
        return to_absolute(path, self.directory)

    def to_json(self) -> dict[str, Any]:
        data: dict[str, Any] = {"solution": self.solution_path}
        if self.solution_folder:
            data["solutionFolder"] = self.solution_folder
        data["removeProjects"] = self.remove_projects_on_switch_back
        if self.case_sensitive_paths:
            data["caseSensitivePaths"] = True
        data["mappings"] = {name: list(paths) for name, paths in self.mappings.items()}
        if len(self.restore_state):
            data["restore"] = self.restore_state.to_json()
        data.update(self.extra)
        return data


def load_configuration(config_path: str) -> SwitcherConfiguration:
    """Load a switcher configuration from JSON.

    Raises:
        ConfigurationError: the file is missing, is not valid JSON, or has
            malformed ``mappings`` or ``restore`` sections.
    """
    try:
        with open(config_path, "r", encoding="utf-8-sig") as f:
            data = json.load(f)
    except FileNotFoundError:
        raise ConfigurationError(f"The configuration file '{config_path}' does not exist.") from None
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"The configuration file '{config_path}' could not be read: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"The configuration file '{config_path}' must contain a JSON object.")

    mappings = data.get("mappings") or {}
    if not isinstance(mappings, dict) or not all(isinstance(v, list) for v in mappings.values()):
        raise ConfigurationError(
            f"The configuration file '{config_path}' has invalid mappings: "
            "expected an object of package name to a list of project paths."
        )

    try:
        restore_state = RestoreState.from_json(data.get("restore"))
    except ValueError as e:
        raise ConfigurationError(f"The configuration file '{config_path}' has an invalid restore section: {e}") from e

    config = SwitcherConfiguration(
        path=config_path,
        solution_path=data.get("solution") or "",
        solution_folder=data.get("solutionFolder") or None,
        remove_projects_on_switch_back=bool(data.get("removeProjects", False)),
        mappings={name: [str(p) for p in paths] for name, paths in mappings.items()},
        restore_state=restore_state,
        case_sensitive_paths=bool(data.get("caseSensitivePaths", False)),
        extra={k: v for k, v in data.items() if k not in _KNOWN_KEYS},
    )
    if not config.solution_path:
        raise ConfigurationError(f"The configuration file '{config_path}' does not name a solution.")

    logger.debug(f"Loaded configuration {config_path} with {len(config.mappings)} mappings")
    return config


def save_configuration(config: SwitcherConfiguration) -> None:
    """Write the configuration back to its file."""
    with open(config.path, "w", encoding="utf-8") as f:
        json.dump(config.to_json(), f, indent=2)
        f.write("\n")
