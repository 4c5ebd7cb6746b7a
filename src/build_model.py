"""Build model: the modules of the current reactor, their dependencies and plugins.

Reading real build descriptors is left to the host build tool. This module
defines what the resolver needs from it and a static provider fed from plain
mappings (e.g. the ``reactor`` section of the configuration file).
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from artifacts.models import ArtifactCoordinate, Dependency, Exclusion
from artifacts.reactor import ReactorKey
from common.exceptions import ConfigurationError
from constants import Constants
from repository.client import ArtifactDescriptor


@dataclass
class PluginDeclaration:
    """A build plugin and the extra dependencies declared on it."""
    group: str
    name: str
    version: str
    dependencies: List[Dependency] = field(default_factory=list)

    @property
    def coordinate(self) -> ArtifactCoordinate:
        return ArtifactCoordinate.of(self.group, self.name, self.version, type=Constants.PLUGIN_TYPE)


@dataclass
class BuildModule:
    """One module of the reactor."""
    group: str
    name: str
    version: str
    packaging: str = "jar"
    dependencies: List[Dependency] = field(default_factory=list)
    managed_dependencies: List[Dependency] = field(default_factory=list)
    plugins: List[PluginDeclaration] = field(default_factory=list)

    @property
    def coordinate(self) -> ArtifactCoordinate:
        return ArtifactCoordinate.of(self.group, self.name, self.version, type=self.packaging)

    def descriptor(self) -> ArtifactDescriptor:
        """The module's declarations in the shape a repository would return them."""
        return ArtifactDescriptor(
            coordinate=self.coordinate.with_extension("pom"),
            dependencies=list(self.dependencies),
            managed_dependencies=list(self.managed_dependencies),
        )

    def __str__(self) -> str:
        return f"{self.group}:{self.name}"


class BuildModelProvider(ABC):
    """Supplies the modules of the current build."""

    @abstractmethod
    def modules(self) -> Sequence[BuildModule]:
        """All modules of the reactor, in build order."""

    def workspace(self) -> Dict[ReactorKey, ArtifactDescriptor]:
        """Descriptors of reactor modules keyed for reactor lookups."""
        return {ReactorKey.from_coordinate(m.coordinate): m.descriptor() for m in self.modules()}


class StaticBuildModel(BuildModelProvider):
    """Build model held in memory."""

    def __init__(self, modules: Iterable[BuildModule]):
        self._modules = list(modules)

    @classmethod
    def from_data(cls, data: Optional[Sequence[Mapping[str, Any]]]) -> "StaticBuildModel":
        if data is None:
            return cls([])
        if not isinstance(data, list):
            raise ConfigurationError("reactor must be a list of modules")
        return cls(module_from_mapping(entry, f"reactor[{i}]") for i, entry in enumerate(data))

    def modules(self) -> Sequence[BuildModule]:
        return list(self._modules)


def _require(data: Mapping[str, Any], key: str, where: str) -> str:
    value = data.get(key)
    if value is None or not str(value).strip():
        raise ConfigurationError(f"{where}: missing required field '{key}'")
    return str(value).strip()


def _mapping(data: Any, where: str) -> Mapping[str, Any]:
    if not isinstance(data, Mapping):
        raise ConfigurationError(f"{where}: expected a mapping, got {type(data).__name__}")
    return data


def dependency_from_mapping(data: Any, where: str, require_version: bool = False) -> Dependency:
    """Parse ``{group_id, artifact_id, version?, type?, classifier?, scope?, optional?, exclusions?}``."""
    data = _mapping(data, where)
    version = _require(data, "version", where) if require_version else str(data.get("version") or "")
    exclusions = tuple(
        Exclusion(
            _require(_mapping(e, f"{where}.exclusions[{i}]"), "group_id", f"{where}.exclusions[{i}]"),
            _require(e, "artifact_id", f"{where}.exclusions[{i}]"),
        )
        for i, e in enumerate(data.get("exclusions") or [])
    )
    return Dependency(
        coordinate=ArtifactCoordinate.of(
            _require(data, "group_id", where),
            _require(data, "artifact_id", where),
            version,
            type=data.get("type"),
            classifier=data.get("classifier"),
        ),
        scope=data.get("scope"),
        optional=bool(data.get("optional", False)),
        exclusions=exclusions,
    )


def plugin_from_mapping(data: Any, where: str) -> PluginDeclaration:
    data = _mapping(data, where)
    return PluginDeclaration(
        group=_require(data, "group_id", where),
        name=_require(data, "artifact_id", where),
        version=_require(data, "version", where),
        dependencies=[
            dependency_from_mapping(d, f"{where}.dependencies[{i}]")
            for i, d in enumerate(data.get("dependencies") or [])
        ],
    )


def module_from_mapping(data: Any, where: str) -> BuildModule:
    data = _mapping(data, where)
    return BuildModule(
        group=_require(data, "group_id", where),
        name=_require(data, "artifact_id", where),
        version=_require(data, "version", where),
        packaging=str(data.get("packaging") or "jar"),
        dependencies=[
            dependency_from_mapping(d, f"{where}.dependencies[{i}]")
            for i, d in enumerate(data.get("dependencies") or [])
        ],
        managed_dependencies=[
            dependency_from_mapping(d, f"{where}.dependency_management[{i}]")
            for i, d in enumerate(data.get("dependency_management") or [])
        ],
        plugins=[
            plugin_from_mapping(p, f"{where}.plugins[{i}]")
            for i, p in enumerate(data.get("plugins") or [])
        ],
    )
