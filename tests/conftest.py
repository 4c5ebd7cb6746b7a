"""Shared fixtures: an in-memory repository client and coordinate helpers."""
from __future__ import annotations

import threading
from typing import Dict, Iterable, List, Optional, Sequence, Set

import pytest

from artifacts.models import ArtifactCoordinate, Dependency, Exclusion
from common.exceptions import ArtifactNotFoundError, DescriptorError
from repository.client import ArtifactDescriptor, FetchResult, RemoteRepository, RepositoryClient
from resolution.errors import ErrorSink
from resolution.session import init_sessions

MAIN_REPO = RemoteRepository("central", "https://repo.example.org/maven2")
PLUGIN_REPO = RemoteRepository("plugins", "https://plugins.example.org/maven2")


def coord(gav: str, type: Optional[str] = None, classifier: Optional[str] = None) -> ArtifactCoordinate:
    """``group:name:version`` to a coordinate."""
    group, name, version = gav.split(":")
    return ArtifactCoordinate.of(group, name, version, type=type, classifier=classifier)


def dep(
    gav: str,
    scope: Optional[str] = None,
    optional: bool = False,
    exclusions: Iterable[str] = (),
    type: Optional[str] = None,
    classifier: Optional[str] = None,
) -> Dependency:
    """``group:name[:version]`` to a dependency declaration."""
    parts = gav.split(":")
    if len(parts) == 2:
        parts.append("")
    group, name, version = parts
    return Dependency(
        coordinate=ArtifactCoordinate.of(group, name, version, type=type, classifier=classifier),
        scope=scope,
        optional=optional,
        exclusions=tuple(Exclusion(*e.split(":")) for e in exclusions),
    )


class FakeRepositoryClient(RepositoryClient):
    """In-memory repository.

    ``descriptors`` maps ``group:name:version`` to declared dependencies.
    Unknown coordinates have no dependencies unless listed in ``broken``.
    Fetching succeeds unless the coordinate string is in ``missing``.
    """

    def __init__(
        self,
        descriptors: Optional[Dict[str, List[Dependency]]] = None,
        managed: Optional[Dict[str, List[Dependency]]] = None,
        broken: Iterable[str] = (),
        missing: Iterable[str] = (),
        fail_batches: bool = False,
    ):
        self.descriptors = descriptors or {}
        self.managed = managed or {}
        self.broken: Set[str] = set(broken)
        self.missing: Set[str] = set(missing)
        self.fail_batches = fail_batches
        self._lock = threading.Lock()
        self.descriptor_reads: List[tuple] = []
        self.fetch_calls: List[tuple] = []

    def read_descriptor(self, coordinate, repositories) -> ArtifactDescriptor:
        key = f"{coordinate.group}:{coordinate.name}:{coordinate.version}"
        with self._lock:
            self.descriptor_reads.append((key, tuple(r.id for r in repositories)))
        if key in self.broken:
            raise DescriptorError(f"Broken metadata for {key}", subject=key)
        return ArtifactDescriptor(
            coordinate=coordinate,
            dependencies=list(self.descriptors.get(key, [])),
            managed_dependencies=list(self.managed.get(key, [])),
        )

    def fetch(self, coordinates: Sequence[ArtifactCoordinate], repositories) -> List[FetchResult]:
        with self._lock:
            self.fetch_calls.append((tuple(coordinates), tuple(r.id for r in repositories)))
        if self.fail_batches:
            raise RuntimeError("repository unreachable")
        results = []
        for coordinate in coordinates:
            if str(coordinate) in self.missing:
                results.append(FetchResult(coordinate, error=ArtifactNotFoundError(f"Could not find artifact {coordinate}")))
            else:
                results.append(FetchResult(coordinate, path=f"/cache/{coordinate}"))
        return results

    def fetched(self) -> Dict[str, Set[ArtifactCoordinate]]:
        """Fetched coordinates per repository id."""
        out: Dict[str, Set[ArtifactCoordinate]] = {}
        for coordinates, repos in self.fetch_calls:
            for repo in repos:
                out.setdefault(repo, set()).update(coordinates)
        return out


@pytest.fixture
def client():
    return FakeRepositoryClient()


@pytest.fixture
def sessions(client):
    return init_sessions(client, [MAIN_REPO], [PLUGIN_REPO])


@pytest.fixture
def errors():
    return ErrorSink()
