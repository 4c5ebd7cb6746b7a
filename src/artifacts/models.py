"""Value types describing artifacts, dependency declarations and graph nodes."""
from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import List, Optional, Tuple

from common.exceptions import ConfigurationError
from constants import Constants

from . import types as artifact_types

_SNAPSHOT_TIMESTAMP = re.compile(r"^(.*)-(\d{8}\.\d{6})-(\d+)$")
_SNAPSHOT = "SNAPSHOT"


class RepositoryContext(Enum):
    """Which repository list and resolution policy governs a request."""
    MAIN = "project"
    PLUGIN = "plugin"

    @property
    def request_context(self) -> str:
        """Label handed to the repository client for this context."""
        return self.value

    @classmethod
    def parse(cls, raw) -> "RepositoryContext":
        """Accept an enum member, a member name (``MAIN``) or a request context (``plugin``)."""
        if isinstance(raw, cls):
            return raw
        if isinstance(raw, str):
            token = raw.strip()
            for member in cls:
                if token.upper() == member.name or token.lower() == member.value:
                    return member
        raise ConfigurationError(f"Unknown repository type: {raw!r}")


@dataclass(frozen=True)
class ArtifactCoordinate:
    """Addressable artifact file.

    Equality covers group, name, version, extension and classifier. The
    declared ``type`` is kept for display only: ``test-jar`` and ``jar`` with
    classifier ``tests`` address the same file.
    """
    group: str
    name: str
    version: str
    extension: str = "jar"
    classifier: Optional[str] = None
    type: Optional[str] = field(default=None, compare=False)

    @classmethod
    def of(
        cls,
        group: str,
        name: str,
        version: str,
        type: Optional[str] = None,  # pylint: disable=redefined-builtin
        classifier: Optional[str] = None,
    ) -> "ArtifactCoordinate":
        """Build a coordinate from a declared type; an explicit classifier wins."""
        layout = artifact_types.lookup(type)
        return cls(
            group=group,
            name=name,
            version=version or "",
            extension=layout.extension,
            classifier=classifier or layout.classifier,
            type=layout.name,
        )

    @property
    def base_version(self) -> str:
        """Version with timestamped snapshots folded back to ``-SNAPSHOT``."""
        match = _SNAPSHOT_TIMESTAMP.match(self.version)
        if match:
            return f"{match.group(1)}-{_SNAPSHOT}"
        return self.version

    @property
    def is_snapshot(self) -> bool:
        return self.base_version.endswith(_SNAPSHOT)

    @property
    def management_key(self) -> Tuple[str, str]:
        return (self.group, self.name)

    @property
    def conflict_key(self) -> Tuple[str, str, str, Optional[str]]:
        """Identity ignoring version; two coordinates with the same key compete."""
        return (self.group, self.name, self.extension, self.classifier)

    def with_classifier(self, classifier: Optional[str]) -> "ArtifactCoordinate":
        return replace(self, classifier=classifier)

    def with_version(self, version: str) -> "ArtifactCoordinate":
        return replace(self, version=version)

    def with_extension(self, extension: str) -> "ArtifactCoordinate":
        return replace(self, extension=extension, classifier=None, type=extension)

    def __str__(self) -> str:
        parts = [self.group, self.name, self.extension]
        if self.classifier:
            parts.append(self.classifier)
        parts.append(self.version)
        return ":".join(parts)


@dataclass(frozen=True)
class ArtifactRequest:
    """A coordinate bound to the repository context it is resolved against."""
    coordinate: ArtifactCoordinate
    context: RepositoryContext

    def __str__(self) -> str:
        return f"{self.coordinate} ({self.context.request_context})"


@dataclass(frozen=True)
class Exclusion:
    """Excludes ``group:name`` (``*`` wildcards allowed) from a sub-graph."""
    group: str
    name: str

    def matches(self, coordinate: ArtifactCoordinate) -> bool:
        return (self.group in ("*", coordinate.group)) and (self.name in ("*", coordinate.name))


@dataclass(frozen=True)
class Dependency:
    """A declared dependency edge.

    ``scope`` is None when the declaration does not state one, so dependency
    management can tell a default from an explicit ``compile``.
    """
    coordinate: ArtifactCoordinate
    scope: Optional[str] = None
    optional: bool = False
    exclusions: Tuple[Exclusion, ...] = ()

    @property
    def effective_scope(self) -> str:
        return self.scope or Constants.DEFAULT_SCOPE

    def with_coordinate(self, coordinate: ArtifactCoordinate) -> "Dependency":
        return replace(self, coordinate=coordinate)

    def with_scope(self, scope: Optional[str]) -> "Dependency":
        return replace(self, scope=scope)

    def __str__(self) -> str:
        suffix = " (optional)" if self.optional else ""
        return f"{self.coordinate} [{self.effective_scope}]{suffix}"


@dataclass
class DependencyNode:
    """Node of a collected dependency graph.

    The root of a module graph carries the module artifact and no dependency
    edge; every other node carries the (managed) dependency that led to it.
    """
    artifact: ArtifactCoordinate
    dependency: Optional[Dependency] = None
    depth: int = 0
    children: List["DependencyNode"] = field(default_factory=list)
    premanaged_version: Optional[str] = None

    def walk(self):
        """Yield this node and its descendants depth-first."""
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))
