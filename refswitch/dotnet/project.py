"""Edit .csproj/.vbproj/.fsproj files (XML with MSBuild schema) in place.

Only the parts of a project file the switcher owns are touched: items are
removed and added, everything else (comments, indentation, the XML
declaration, a UTF-8 BOM and the original line endings) is written back as
it was read. Handles both SDK-style and legacy (namespaced) project formats.

Evaluation is deliberately shallow: ``$(Property)`` references are expanded
from global properties, ``Directory.Build.props``, the project's own
unconditioned properties and ``Directory.Packages.props``. Conditions and
explicit imports are not evaluated.
"""

from __future__ import annotations

import codecs
import logging
import os
import re
import xml.etree.ElementTree as ET

from refswitch.errors import ProjectLoadError
from refswitch.switching.base import ProjectItem

logger = logging.getLogger(__name__)

# Attributes of an item element that are not metadata
_ITEM_ATTRIBUTES = {
    "Include", "Exclude", "Remove", "Update", "Condition", "Label",
    "KeepMetadata", "RemoveMetadata", "KeepDuplicates", "MatchOnMetadata",
    "MatchOnMetadataOptions",
}

_PROPERTY_RE = re.compile(r"\$\(([A-Za-z_][A-Za-z0-9_.\-]*)\)")
# Comments, processing instructions, a DOCTYPE and whitespace outside the root element
_MISC = r"<!--(?:(?!-->).)*-->|<\?(?:(?!\?>).)*\?>|\s"
_PROLOG_RE = re.compile(rf"(?:{_MISC}|<!DOCTYPE[^>]*>)*", re.S)
_TRAILING_RE = re.compile(rf"(?:{_MISC})*\Z", re.S)
_START_TAG_RE = re.compile(r"""<[^\s>/]+(?:\s+[^\s=/>]+\s*=\s*(?:"[^"]*"|'[^']*'))*\s*/?>""")

_DEFAULT_INDENT = "  "


def _local(tag: object) -> str:
    """Strip the namespace from a tag; comments and PIs have no string tag."""
    if not isinstance(tag, str):
        return ""
    return tag.split("}", 1)[1] if tag.startswith("{") else tag


def _is_indent(text: str | None) -> bool:
    return bool(text) and "\n" in text and not text.strip()


def _find_upwards(start_dir: str, file_name: str) -> str | None:
    """Nearest ``file_name`` in ``start_dir`` or one of its ancestors."""
    current = os.path.abspath(start_dir)
    while True:
        candidate = os.path.join(current, file_name)
        if os.path.isfile(candidate):
            return candidate
        parent = os.path.dirname(current)
        if parent == current:
            return None
        current = parent


def solution_global_properties(solution_path: str) -> dict[str, str]:
    """Global properties MSBuild defines when building projects through a solution."""
    solution_path = os.path.abspath(solution_path)
    file_name = os.path.basename(solution_path)
    name, ext = os.path.splitext(file_name)
    return {
        "SolutionDir": os.path.dirname(solution_path) + os.sep,
        "SolutionExt": ext,
        "SolutionFileName": file_name,
        "SolutionName": name,
        "SolutionPath": solution_path,
    }


class MsBuildProject:
    """An editable MSBuild project file.

    Use as a context manager, or call :meth:`close` when done. Items are
    returned as :class:`ProjectItem` whose ``handle`` points back at the
    underlying XML element.
    """

    def __init__(self, path: str, global_properties: dict[str, str] | None = None) -> None:
        self.path = os.path.abspath(path)
        self.global_properties = dict(global_properties or {})
        self._root: ET.Element | None = None
        self._ns = ""
        self._bom = False
        self._newline = "\n"
        self._prolog = ""
        self._start_tag = ""
        self._trailing = ""
        self._indent = _DEFAULT_INDENT
        self._properties: dict[str, str] = {}
        self._load()

    # --- Loading ---

    def _load(self) -> None:
        try:
            with open(self.path, "rb") as f:
                raw = f.read()
            text = raw.decode("utf-8-sig")
        except (OSError, UnicodeDecodeError) as e:
            raise ProjectLoadError(self.path, e) from e

        parser = ET.XMLParser(target=ET.TreeBuilder(insert_comments=True, insert_pis=True))
        try:
            parser.feed(raw)
            root = parser.close()
        except ET.ParseError as e:
            raise ProjectLoadError(self.path, e) from e

        if _local(root.tag) != "Project":
            raise ProjectLoadError(self.path, f"root element is <{_local(root.tag)}>, expected <Project>")

        root.tail = None
        self._root = root
        self._ns = root.tag[1:].split("}")[0] if root.tag.startswith("{") else ""
        self._bom = raw.startswith(codecs.BOM_UTF8)
        self._newline = "\r\n" if "\r\n" in text else "\n"

        # The tree holds nothing outside the root element, so keep that text verbatim
        prolog_end = _PROLOG_RE.match(text).end()
        self._prolog = text[:prolog_end].replace("\r\n", "\n")
        start_tag = _START_TAG_RE.match(text, prolog_end)
        self._start_tag = start_tag.group(0).replace("\r\n", "\n") if start_tag else ""
        self._trailing = _TRAILING_RE.search(text).group(0).replace("\r\n", "\n")

        if root.text and "\n" in root.text:
            self._indent = root.text.rsplit("\n", 1)[1] or _DEFAULT_INDENT

        self._properties = self._evaluate_properties()

    def _evaluate_properties(self) -> dict[str, str]:
        directory = os.path.dirname(self.path)
        name, ext = os.path.splitext(os.path.basename(self.path))
        properties = {
            "msbuildprojectdirectory": directory,
            "msbuildprojectfullpath": self.path,
            "msbuildprojectfile": name + ext,
            "msbuildprojectname": name,
            "msbuildprojectextension": ext,
        }
        for key, value in self.global_properties.items():
            properties[key.casefold()] = value

        build_props = _find_upwards(directory, "Directory.Build.props")
        if build_props:
            self._read_properties(self._parse_import(build_props), properties)
        self._read_properties(self._root, properties)
        packages_props = _find_upwards(directory, "Directory.Packages.props")
        if packages_props:
            self._read_properties(self._parse_import(packages_props), properties)

        return properties

    def _parse_import(self, path: str) -> ET.Element | None:
        try:
            return ET.parse(path).getroot()
        except (ET.ParseError, OSError) as e:
            logger.warning(f"Failed to read {path}: {e}")
            return None

    def _read_properties(self, root: ET.Element | None, properties: dict[str, str]) -> None:
        if root is None:
            return
        globals_ = {k.casefold() for k in self.global_properties}
        for group in root.iter():
            if _local(group.tag) != "PropertyGroup" or group.get("Condition"):
                continue
            for prop in group:
                name = _local(prop.tag)
                if not name or prop.get("Condition"):
                    continue
                key = name.casefold()
                if key in globals_:
                    # Global properties cannot be overridden by project files
                    continue
                properties[key] = self._expand((prop.text or "").strip(), properties)

    def _expand(self, value: str, properties: dict[str, str] | None = None) -> str:
        props = self._properties if properties is None else properties
        return _PROPERTY_RE.sub(lambda m: props.get(m.group(1).casefold(), ""), value)

    # --- Queries ---

    def get_property(self, name: str) -> str | None:
        return self._properties.get(name.casefold())

    def _item_groups(self, element: ET.Element | None = None):
        """ItemGroups at evaluation level, i.e. not inside a Target."""
        element = self._require_root() if element is None else element
        for child in element:
            tag = _local(child.tag)
            if tag == "Target":
                continue
            if tag == "ItemGroup":
                yield child
            elif tag:
                yield from self._item_groups(child)

    def items(self, *item_types: str) -> list[ProjectItem]:
        wanted = set(item_types)
        result = []
        for group in self._item_groups():
            for element in group:
                item_type = _local(element.tag)
                if item_type not in wanted or element.get("Include") is None:
                    continue
                result.append(self._to_item(item_type, element, group))
        return result

    def _to_item(self, item_type: str, element: ET.Element, group: ET.Element) -> ProjectItem:
        metadata: dict[str, str] = {}
        for key, value in element.attrib.items():
            if key not in _ITEM_ATTRIBUTES:
                metadata[key] = self._expand(value)
        for child in element:
            name = _local(child.tag)
            if name:
                metadata[name] = self._expand((child.text or "").strip())
        return ProjectItem(
            item_type=item_type,
            include=self._expand(element.get("Include", "")),
            metadata=metadata,
            handle=(element, group),
        )

    # --- Edits ---

    def remove_item(self, item: ProjectItem) -> None:
        element, group = item.handle
        self._remove_child(group, element)
        if len(group) == 0:
            parent = self._parent_of(group)
            if parent is not None:
                self._remove_child(parent, group)

    def add_item(
        self,
        item_type: str,
        include: str,
        metadata: list[tuple[str, str]] | None = None,
        metadata_as_attributes: bool = False,
    ) -> ProjectItem:
        group, index = self._group_for(item_type, include)
        depth = self._depth(group)

        element = ET.Element(self._tag(item_type), {"Include": include})
        for name, value in metadata or []:
            if metadata_as_attributes:
                element.set(name, value)
            else:
                child = ET.Element(self._tag(name))
                child.text = value
                self._insert_child(element, len(element), child, depth + 1)

        self._insert_child(group, index, element, depth)
        return self._to_item(item_type, element, group)

    def _group_for(self, item_type: str, include: str) -> tuple[ET.Element, int]:
        """Pick the ItemGroup (and position) a new item of ``item_type`` goes into.

        Uses the first unconditioned group already holding items of the same
        type. Within it the item is placed in include order when the existing
        items are sorted, after the last of them otherwise. Without such a
        group a new one is created after the last top-level ItemGroup.
        """
        for group in self._item_groups():
            if group.get("Condition"):
                continue
            positions = [i for i, el in enumerate(group) if _local(el.tag) == item_type]
            if not positions:
                continue
            includes = [(group[i].get("Include") or "").casefold() for i in positions]
            if includes == sorted(includes):
                for position, existing in zip(positions, includes):
                    if include.casefold() < existing:
                        return group, position
            return group, positions[-1] + 1

        root = self._require_root()
        group = ET.Element(self._tag("ItemGroup"))
        top_level_groups = [i for i, el in enumerate(root) if _local(el.tag) == "ItemGroup"]
        index = top_level_groups[-1] + 1 if top_level_groups else len(root)
        self._insert_child(root, index, group, 0)
        return group, 0

    def _tag(self, name: str) -> str:
        return f"{{{self._ns}}}{name}" if self._ns else name

    def _insert_child(self, parent: ET.Element, index: int, child: ET.Element, depth: int) -> None:
        """Insert ``child`` reusing the whitespace already separating its siblings."""
        child_indent = "\n" + self._indent * (depth + 1)
        if len(parent) == 0:
            parent.text = child_indent
            child.tail = "\n" + self._indent * depth
            parent.append(child)
            return

        if index >= len(parent):
            last = parent[-1]
            child.tail = last.tail
            separator = parent[-2].tail if len(parent) > 1 else parent.text
            last.tail = separator if _is_indent(separator) else child_indent
            parent.append(child)
        elif index == 0:
            child.tail = parent.text if _is_indent(parent.text) else child_indent
            parent.insert(0, child)
        else:
            child.tail = parent[index - 1].tail
            parent.insert(index, child)

    def _remove_child(self, parent: ET.Element, child: ET.Element) -> None:
        children = list(parent)
        index = next(i for i, el in enumerate(children) if el is child)
        if index > 0:
            children[index - 1].tail = child.tail
        elif len(children) == 1:
            parent.text = None
        parent.remove(child)

    def _parent_of(self, element: ET.Element) -> ET.Element | None:
        for candidate in self._require_root().iter():
            for child in candidate:
                if child is element:
                    return candidate
        return None

    def _depth(self, element: ET.Element) -> int:
        depth = 0
        current = self._parent_of(element)
        while current is not None:
            depth += 1
            current = self._parent_of(current)
        return depth

    # --- Persistence ---

    def _require_root(self) -> ET.Element:
        if self._root is None:
            raise ValueError(f"Project {self.path} is closed")
        return self._root

    def to_string(self) -> str:
        """Serialise the project with its original prolog and line endings."""
        root = self._require_root()
        if self._ns:
            body = ET.tostring(root, encoding="unicode", default_namespace=self._ns)
        else:
            body = ET.tostring(root, encoding="unicode")
        body = self._restore_start_tag(body)
        text = self._prolog + body + self._trailing
        if self._newline != "\n":
            text = text.replace("\n", self._newline)
        return text

    def _restore_start_tag(self, body: str) -> str:
        """Put back the root start tag as written; ElementTree reorders xmlns first."""
        end = body.find(">") + 1
        if not self._start_tag or not end:
            return body
        if body[:end].endswith("/>") != self._start_tag.endswith("/>"):
            return body
        return self._start_tag + body[end:]

    def save(self) -> None:
        data = self.to_string().encode("utf-8")
        if self._bom:
            data = codecs.BOM_UTF8 + data
        with open(self.path, "wb") as f:
            f.write(data)
        logger.debug(f"Saved {self.path}")

    def close(self) -> None:
        self._root = None

    def __enter__(self) -> MsBuildProject:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def load_project(project_path: str, global_properties: dict[str, str] | None = None) -> MsBuildProject:
    """Load a project file for editing. Raises ProjectLoadError on failure."""
    return MsBuildProject(project_path, global_properties)
