"""Minimal POM reader for dependency descriptors.

Only what the resolver needs is read: coordinates, parent, properties,
dependencies and dependency management. Placeholders are interpolated from
``project.*`` values and ``<properties>``.
"""
from __future__ import annotations

import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

from artifacts.models import ArtifactCoordinate, Dependency, Exclusion
from common.exceptions import DescriptorError

_PLACEHOLDER = re.compile(r"\$\{([^}]+)\}")
_MAX_INTERPOLATION_PASSES = 10


@dataclass
class PomModel:
    """Raw, uninterpolated content of one POM."""
    group_id: Optional[str]
    artifact_id: str
    version: Optional[str]
    packaging: str = "jar"
    parent: Optional[Tuple[str, str, str]] = None
    properties: Dict[str, str] = field(default_factory=dict)
    dependencies: List[Dict[str, Any]] = field(default_factory=list)
    managed_dependencies: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def effective_group(self) -> str:
        return self.group_id or (self.parent[0] if self.parent else "")

    @property
    def effective_version(self) -> str:
        return self.version or (self.parent[2] if self.parent else "")

    def builtin_properties(self) -> Dict[str, str]:
        values = {
            "project.groupId": self.effective_group,
            "project.artifactId": self.artifact_id,
            "project.version": self.effective_version,
            "project.packaging": self.packaging,
        }
        if self.parent:
            values.update({
                "project.parent.groupId": self.parent[0],
                "project.parent.artifactId": self.parent[1],
                "project.parent.version": self.parent[2],
            })
        for key in list(values):
            values[key.replace("project.", "pom.", 1)] = values[key]
        values["groupId"] = values["project.groupId"]
        values["version"] = values["project.version"]
        return values


def _strip_namespaces(root: ET.Element) -> ET.Element:
    for element in root.iter():
        if isinstance(element.tag, str) and element.tag.startswith("{"):
            element.tag = element.tag.split("}", 1)[1]
    return root


def _text(element: Optional[ET.Element], tag: str) -> Optional[str]:
    if element is None:
        return None
    child = element.find(tag)
    if child is None or child.text is None:
        return None
    value = child.text.strip()
    return value or None


def _read_dependency(node: ET.Element) -> Dict[str, Any]:
    return {
        "group_id": _text(node, "groupId"),
        "artifact_id": _text(node, "artifactId"),
        "version": _text(node, "version"),
        "type": _text(node, "type"),
        "classifier": _text(node, "classifier"),
        "scope": _text(node, "scope"),
        "optional": _text(node, "optional"),
        "exclusions": [
            (_text(e, "groupId") or "*", _text(e, "artifactId") or "*")
            for e in node.findall("exclusions/exclusion")
        ],
    }


def parse_pom(text: str, source: str) -> PomModel:
    """Parse POM ``text``; ``source`` names it in error messages."""
    try:
        root = _strip_namespaces(ET.fromstring(text))
    except ET.ParseError as exc:
        raise DescriptorError(f"Malformed POM {source}: {exc}", subject=source) from exc

    artifact_id = _text(root, "artifactId")
    if not artifact_id:
        raise DescriptorError(f"POM {source} has no artifactId", subject=source)

    parent = None
    parent_node = root.find("parent")
    if parent_node is not None:
        parent_coords = (
            _text(parent_node, "groupId"),
            _text(parent_node, "artifactId"),
            _text(parent_node, "version"),
        )
        if not all(parent_coords):
            raise DescriptorError(f"POM {source} has an incomplete parent", subject=source)
        parent = parent_coords  # type: ignore[assignment]

    properties = {}
    properties_node = root.find("properties")
    if properties_node is not None:
        for prop in properties_node:
            if isinstance(prop.tag, str):
                properties[prop.tag] = (prop.text or "").strip()

    return PomModel(
        group_id=_text(root, "groupId"),
        artifact_id=artifact_id,
        version=_text(root, "version"),
        packaging=_text(root, "packaging") or "jar",
        parent=parent,
        properties=properties,
        dependencies=[_read_dependency(d) for d in root.findall("dependencies/dependency")],
        managed_dependencies=[
            _read_dependency(d) for d in root.findall("dependencyManagement/dependencies/dependency")
        ],
    )


def interpolate(value: Optional[str], properties: Mapping[str, str]) -> Optional[str]:
    """Replace ``${name}`` placeholders; unknown placeholders are left as-is."""
    if value is None:
        return None
    for _ in range(_MAX_INTERPOLATION_PASSES):
        replaced = _PLACEHOLDER.sub(lambda m: properties.get(m.group(1), m.group(0)), value)
        if replaced == value:
            break
        value = replaced
    return value


def to_dependency(raw: Mapping[str, Any], properties: Mapping[str, str], source: str) -> Dependency:
    """Interpolate a raw dependency entry into a ``Dependency``."""
    group_id = interpolate(raw.get("group_id"), properties)
    artifact_id = interpolate(raw.get("artifact_id"), properties)
    if not group_id or not artifact_id:
        raise DescriptorError(f"POM {source} declares a dependency without coordinates", subject=source)
    version = interpolate(raw.get("version"), properties) or ""
    if "${" in version:
        raise DescriptorError(
            f"POM {source} uses unresolvable version {version} for {group_id}:{artifact_id}",
            subject=source,
        )
    optional = (interpolate(raw.get("optional"), properties) or "").lower() == "true"
    return Dependency(
        coordinate=ArtifactCoordinate.of(
            group_id,
            artifact_id,
            version,
            type=interpolate(raw.get("type"), properties),
            classifier=interpolate(raw.get("classifier"), properties),
        ),
        scope=interpolate(raw.get("scope"), properties),
        optional=optional,
        exclusions=tuple(Exclusion(g, a) for g, a in raw.get("exclusions") or ()),
    )


def snapshot_version(metadata_text: str, coordinate: ArtifactCoordinate) -> Optional[str]:
    """Timestamped version of a ``-SNAPSHOT`` coordinate from ``maven-metadata.xml``.

    Returns None when the metadata does not describe a deployed snapshot.
    """
    try:
        root = _strip_namespaces(ET.fromstring(metadata_text))
    except ET.ParseError:
        return None

    for item in root.findall("versioning/snapshotVersions/snapshotVersion"):
        if _text(item, "extension") != coordinate.extension:
            continue
        if (_text(item, "classifier") or None) != (coordinate.classifier or None):
            continue
        value = _text(item, "value")
        if value:
            return value

    snapshot = root.find("versioning/snapshot")
    timestamp = _text(snapshot, "timestamp")
    build_number = _text(snapshot, "buildNumber")
    if timestamp and build_number:
        base = coordinate.base_version[: -len("SNAPSHOT")]
        return f"{base}{timestamp}-{build_number}"
    return None
