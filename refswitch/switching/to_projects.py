"""Forward switch: replace package references with project references."""

from __future__ import annotations

import logging
import os

from refswitch.paths import file_stem, to_absolute
from refswitch.switching.base import ItemType, ProjectDocument, ProjectItem
from refswitch.switching.mapping import ResolvedMapping
from refswitch.switching.state import LegacyRestore, PackageRestore, RestoreState, SwitchedPackage

logger = logging.getLogger(__name__)


def uses_central_versioning(project: ProjectDocument) -> bool:
    """True when package versions come from a central file rather than each reference.

    Covers both the Microsoft.Build.CentralPackageVersions SDK
    (``CentralPackagesFile``) and NuGet central package management
    (``ManagePackageVersionsCentrally``).
    """
    if project.get_property("CentralPackagesFile") is not None:
        return True
    value = project.get_property("ManagePackageVersionsCentrally") or ""
    return value.strip().lower() == "true"


def _capture(item: ProjectItem, package_name: str, version: str | None) -> SwitchedPackage:
    if item.item_type == ItemType.REFERENCE.value:
        return LegacyRestore(
            package_name=package_name,
            include=item.include,
            metadata=tuple(item.metadata.items()),
            package_version=version,
        )
    return PackageRestore(package_name=package_name, package_version=version)


def _has_project_reference(
    project: ProjectDocument, absolute_path: str, mapping: ResolvedMapping, project_directory: str,
) -> bool:
    return any(
        mapping.comparer.equal(to_absolute(item.include, project_directory), absolute_path)
        for item in project.items(ItemType.PROJECT_REFERENCE.value)
    )


def switch_to_projects(
    project: ProjectDocument, mapping: ResolvedMapping, restore_state: RestoreState,
) -> dict[str, str | None]:
    """Switch every reference to ``mapping.package_name`` in ``project``.

    Matching ``PackageReference`` and ``Reference`` items are removed and one
    ``ProjectReference`` per mapped project is added. What was removed is
    recorded in ``restore_state`` so the reverse switch can rebuild it.

    Returns:
        ``{project file path: captured version}``, empty when nothing matched.
        The project is saved only when something was switched.
    """
    switched: dict[str, str | None] = {}
    project_name = file_stem(project.path)
    project_directory = os.path.dirname(os.path.abspath(project.path))
    package_name = mapping.package_name
    central_versioning = uses_central_versioning(project)
    captured: SwitchedPackage | None = None

    candidates = [
        item for item in project.items(ItemType.PACKAGE_REFERENCE.value, ItemType.REFERENCE.value)
        if item.reference_name == package_name
    ]

    for item in candidates:
        version = None if central_versioning else item.metadata.get("Version")
        project.remove_item(item)

        for absolute_path, relative_path in zip(
            mapping.project_paths, mapping.relative_paths(project_directory)
        ):
            if _has_project_reference(project, absolute_path, mapping, project_directory):
                logger.debug(f"{project_name}: project reference {relative_path} already present")
                continue
            project.add_item(ItemType.PROJECT_REFERENCE.value, relative_path)

        restore = _capture(item, package_name, version)
        if captured is not None and type(captured) is not type(restore):
            # A project holding both a PackageReference and a Reference for the
            # same name has no single original shape; the last one wins.
            logger.warning(
                f"{project_name}: both a PackageReference and a Reference match "
                f"{package_name}; restoring as {item.item_type}"
            )
        captured = restore
        restore_state.record(project_name, restore)
        switched[project.path] = version

    if switched:
        project.save()
        logger.debug(f"{project_name}: switched {package_name} to {len(mapping.project_paths)} project(s)")

    return switched
