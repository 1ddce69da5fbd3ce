"""Reverse switch: turn project references back into the recorded package references."""

from __future__ import annotations

import logging
import os

from refswitch.paths import file_name, file_stem, to_absolute
from refswitch.switching.base import ItemType, ProjectDocument
from refswitch.switching.mapping import ResolvedMapping
from refswitch.switching.state import LegacyRestore, RestoreState, SwitchedPackage

logger = logging.getLogger(__name__)

SUPPORTED_PROJECT_EXTENSIONS = (".csproj", ".vbproj", ".fsproj")


def is_supported_project(project_path: str) -> bool:
    return project_path.lower().endswith(SUPPORTED_PROJECT_EXTENSIONS)


def _restore_reference(project: ProjectDocument, switched: SwitchedPackage) -> None:
    """Add the original reference back unless an equivalent one is already present."""
    if isinstance(switched, LegacyRestore):
        if any(i.include == switched.include for i in project.items(ItemType.REFERENCE.value)):
            return
        project.add_item(ItemType.REFERENCE.value, switched.include, list(switched.metadata))
        return

    wanted = switched.package_name.casefold()
    if any(
        i.reference_name.casefold() == wanted
        for i in project.items(ItemType.PACKAGE_REFERENCE.value)
    ):
        return

    # No version means central package management is in use
    metadata = [] if switched.package_version is None else [("Version", switched.package_version)]
    project.add_item(
        ItemType.PACKAGE_REFERENCE.value,
        switched.package_name,
        metadata,
        metadata_as_attributes=True,
    )


def switch_to_packages(
    project: ProjectDocument,
    mapping: ResolvedMapping,
    restore_state: RestoreState,
    mapped_file_names: list[str] | None = None,
    remove_projects: bool = False,
) -> list[tuple[str, str | None]]:
    """Replace project references to ``mapping``'s projects with the recorded package.

    Projects that are themselves mapped are left alone when they are about to
    be removed from the solution. Projects without restore state for this
    package are skipped silently.

    Returns:
        One ``(project file path, package version)`` pair per removed project
        reference. The project is saved only when something was removed.
    """
    project_name = file_stem(project.path)
    project_directory = os.path.dirname(os.path.abspath(project.path))

    if remove_projects and mapped_file_names:
        own_name = file_name(project.path).casefold()
        if any(own_name == n.casefold() for n in mapped_file_names):
            logger.debug(f"{project_name}: mapped project will be removed, not rewriting")
            return []

    switched = restore_state.lookup(project_name, mapping.package_name)
    if switched is None:
        return []

    candidates = [
        item for item in project.items(ItemType.PROJECT_REFERENCE.value)
        if mapping.contains(to_absolute(item.include, project_directory))
    ]

    restored: list[tuple[str, str | None]] = []
    for item in candidates:
        project.remove_item(item)
        _restore_reference(project, switched)
        restored.append((project.path, switched.package_version))

    if restored:
        project.save()
        logger.debug(
            f"{project_name}: {len(restored)} project reference(s) replaced by {mapping.package_name}"
        )

    return restored
