"""Switch state store: what a forward switch removed, keyed by project and package.

The store is the only memory shared between a ``switch-to-projects`` run and
the ``switch-to-packages`` run that undoes it. It is persisted inside the
configuration file under ``restore`` and threaded explicitly through both
switch directions.

Project and package names are matched case-insensitively.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Union


@dataclass(frozen=True)
class PackageRestore:
    """A switched ``PackageReference``.

    ``package_version`` is None when versions are managed centrally, in which
    case the restored reference carries no ``Version`` attribute.
    """
    package_name: str
    package_version: str | None = None


@dataclass(frozen=True)
class LegacyRestore:
    """A switched ``Reference`` item, restored verbatim from ``include`` and ``metadata``."""
    package_name: str
    include: str
    metadata: tuple[tuple[str, str], ...] = ()
    package_version: str | None = None


SwitchedPackage = Union[PackageRestore, LegacyRestore]


@dataclass
class RestoreEntry:
    """All packages switched in one project."""
    project_name: str
    switched_packages: dict[str, SwitchedPackage] = field(default_factory=dict)

    def get(self, package_name: str) -> SwitchedPackage | None:
        return self.switched_packages.get(package_name.casefold())

    def put(self, switched: SwitchedPackage) -> None:
        self.switched_packages[switched.package_name.casefold()] = switched

    def packages(self) -> list[SwitchedPackage]:
        return list(self.switched_packages.values())


class RestoreState:
    """Case-insensitive index of restore entries by project name."""

    def __init__(self, entries: list[RestoreEntry] | None = None) -> None:
        self._entries: dict[str, RestoreEntry] = {}
        for entry in entries or []:
            self._entries[entry.project_name.casefold()] = entry

    def __len__(self) -> int:
        return len(self._entries)

    def entries(self) -> list[RestoreEntry]:
        return list(self._entries.values())

    def entry(self, project_name: str) -> RestoreEntry | None:
        return self._entries.get(project_name.casefold())

    def lookup(self, project_name: str, package_name: str) -> SwitchedPackage | None:
        """Return the switched package recorded for the pair, or None."""
        entry = self.entry(project_name)
        if entry is None:
            return None
        return entry.get(package_name)

    def record(self, project_name: str, switched: SwitchedPackage) -> None:
        """Create or overwrite the record for ``(project_name, switched.package_name)``."""
        key = project_name.casefold()
        entry = self._entries.get(key)
        if entry is None:
            entry = RestoreEntry(project_name=project_name)
            self._entries[key] = entry
        entry.put(switched)

    def clear(self) -> None:
        self._entries.clear()

    # --- JSON ---

    @classmethod
    def from_json(cls, data: Any) -> RestoreState:
        """Build the store from the ``restore`` section of a configuration file.

        Raises:
            ValueError: the section does not have the expected shape.
        """
        if data is None:
            return cls()
        if not isinstance(data, list):
            raise ValueError("expected a list of project entries")
        entries = []
        for raw_entry in data:
            if not isinstance(raw_entry, dict) or not isinstance(raw_entry.get("name"), str):
                raise ValueError(f"project entry {raw_entry!r} has no name")
            entry = RestoreEntry(project_name=raw_entry["name"])
            raw_packages = raw_entry.get("packages") or []
            if not isinstance(raw_packages, list):
                raise ValueError(f"packages of {entry.project_name} must be a list")
            for raw_package in raw_packages:
                entry.put(_package_from_json(raw_package))
            entries.append(entry)
        return cls(entries)

    def to_json(self) -> list[dict[str, Any]]:
        return [
            {
                "name": entry.project_name,
                "packages": [_package_to_json(p) for p in entry.packages()],
            }
            for entry in self._entries.values()
        ]


def _package_from_json(raw: Any) -> SwitchedPackage:
    if not isinstance(raw, dict) or not isinstance(raw.get("packageName"), str):
        raise ValueError(f"package entry {raw!r} has no packageName")
    name = raw["packageName"]
    version = raw.get("packageVersion")
    if version is not None and not isinstance(version, str):
        raise ValueError(f"packageVersion of {name} must be a string")
    include = raw.get("include")
    if include:
        raw_metadata = raw.get("metadata") or []
        if not isinstance(raw_metadata, list) or not all(
            isinstance(item, dict) and isinstance(item.get("Key"), str) for item in raw_metadata
        ):
            raise ValueError(f"metadata of {name} must be a list of Key/Value objects")
        metadata = tuple((item["Key"], str(item.get("Value") or "")) for item in raw_metadata)
        return LegacyRestore(
            package_name=name, include=str(include), metadata=metadata, package_version=version,
        )
    return PackageRestore(package_name=name, package_version=version)


def _package_to_json(package: SwitchedPackage) -> dict[str, Any]:
    data: dict[str, Any] = {
        "packageName": package.package_name,
        "packageVersion": package.package_version,
    }
    if isinstance(package, LegacyRestore):
        data["include"] = package.include
        data["metadata"] = [{"Key": k, "Value": v} for k, v in package.metadata]
    return data
