"""Run configuration loaded from a YAML document.

Every problem found here is a ``ConfigurationError``: the run is aborted
before any resolution starts.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional

import yaml

from artifacts.models import ArtifactCoordinate, RepositoryContext
from common.exceptions import ConfigurationError
from constants import Constants
from repository.client import RemoteRepository

logger = logging.getLogger(__name__)


@dataclass
class DynamicDependency:
    """An extra artifact the build needs that appears in no dependency tree.

    Typical examples are artifacts loaded by plugins at build time.
    """
    group_id: Optional[str] = None
    artifact_id: Optional[str] = None
    version: Optional[str] = None
    classifier: Optional[str] = None
    type: str = Constants.DEFAULT_TYPE
    repository_type: Optional[RepositoryContext] = None

    def validate(self, where: str = "dynamic dependency") -> None:
        """Raise ``ConfigurationError`` unless every required field is set."""
        for name in ("group_id", "artifact_id", "version"):
            value = getattr(self, name)
            if value is None or not str(value).strip():
                raise ConfigurationError(f"{where}: missing required field '{name}'")
        if not isinstance(self.repository_type, RepositoryContext):
            raise ConfigurationError(f"{where}: repository_type must be one of MAIN, PLUGIN")

    @property
    def coordinate(self) -> ArtifactCoordinate:
        return ArtifactCoordinate.of(
            self.group_id or "",
            self.artifact_id or "",
            self.version or "",
            type=self.type,
            classifier=self.classifier,
        )

    def __str__(self) -> str:
        return f"{self.group_id}:{self.artifact_id}"


@dataclass
class OfflineConfig:
    """Everything a run needs besides the build model."""
    local_repository: str = Constants.DEFAULT_LOCAL_REPOSITORY
    repositories: List[RemoteRepository] = field(default_factory=list)
    plugin_repositories: List[RemoteRepository] = field(default_factory=list)
    dynamic_dependencies: List[DynamicDependency] = field(default_factory=list)
    download_sources: bool = False
    download_javadoc: bool = False
    fail_on_errors: bool = False
    strict_optional: bool = False
    max_workers: int = Constants.DEFAULT_MAX_WORKERS
    download_batch_size: int = Constants.DEFAULT_DOWNLOAD_BATCH_SIZE
    reactor: List[Mapping[str, Any]] = field(default_factory=list)

    def validate(self) -> None:
        for index, dependency in enumerate(self.dynamic_dependencies):
            dependency.validate(f"dynamic_dependencies[{index}]")
        if self.max_workers < 1:
            raise ConfigurationError("max_workers must be at least 1")
        if self.download_batch_size < 1:
            raise ConfigurationError("download_batch_size must be at least 1")


def _repository(data: Any, where: str) -> RemoteRepository:
    if not isinstance(data, Mapping) or not data.get("url"):
        raise ConfigurationError(f"{where}: a repository needs at least a url")
    return RemoteRepository(
        id=str(data.get("id") or data["url"]),
        url=str(data["url"]),
        username=data.get("username"),
        password=data.get("password"),
    )


def _dynamic_dependency(data: Any, where: str) -> DynamicDependency:
    if not isinstance(data, Mapping):
        raise ConfigurationError(f"{where}: expected a mapping")
    raw_type = data.get("repository_type")
    return DynamicDependency(
        group_id=data.get("group_id"),
        artifact_id=data.get("artifact_id"),
        version=None if data.get("version") is None else str(data["version"]),
        classifier=data.get("classifier"),
        type=str(data.get("type") or Constants.DEFAULT_TYPE),
        repository_type=None if raw_type is None else RepositoryContext.parse(raw_type),
    )


def _int(data: Mapping[str, Any], key: str, default: int) -> int:
    raw = data.get(key, default)
    try:
        return int(raw)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"{key} must be an integer, got {raw!r}") from exc


def config_from_mapping(data: Optional[Mapping[str, Any]]) -> OfflineConfig:
    """Build and validate an ``OfflineConfig`` from a parsed document."""
    data = data or {}
    if not isinstance(data, Mapping):
        raise ConfigurationError("configuration root must be a mapping")

    repositories = [
        _repository(r, f"repositories[{i}]") for i, r in enumerate(data.get("repositories") or [])
    ]
    if not repositories:
        repositories = [RemoteRepository(Constants.CENTRAL_ID, Constants.CENTRAL_URL)]
    plugin_repositories = [
        _repository(r, f"plugin_repositories[{i}]")
        for i, r in enumerate(data.get("plugin_repositories") or [])
    ] or list(repositories)

    local_repository = (
        os.environ.get(Constants.ENV_LOCAL_REPOSITORY)
        or data.get("local_repository")
        or Constants.DEFAULT_LOCAL_REPOSITORY
    )

    config = OfflineConfig(
        local_repository=os.path.expanduser(str(local_repository)),
        repositories=repositories,
        plugin_repositories=plugin_repositories,
        dynamic_dependencies=[
            _dynamic_dependency(d, f"dynamic_dependencies[{i}]")
            for i, d in enumerate(data.get("dynamic_dependencies") or [])
        ],
        download_sources=bool(data.get("download_sources", False)),
        download_javadoc=bool(data.get("download_javadoc", False)),
        fail_on_errors=bool(data.get("fail_on_errors", False)),
        strict_optional=bool(data.get("strict_optional", False)),
        max_workers=_int(data, "max_workers", Constants.DEFAULT_MAX_WORKERS),
        download_batch_size=_int(data, "download_batch_size", Constants.DEFAULT_DOWNLOAD_BATCH_SIZE),
        reactor=list(data.get("reactor") or []),
    )
    config.validate()
    return config


def load_config(path: str) -> OfflineConfig:
    """Load the YAML configuration at ``path``."""
    if not os.path.isfile(path):
        raise ConfigurationError(f"Config file not found: {path}")
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Failed to parse config {path}: {exc}") from exc
    except OSError as exc:
        raise ConfigurationError(f"Failed to read config {path}: {exc}") from exc
    logger.info("Loaded configuration from %s", path)
    return config_from_mapping(data)
