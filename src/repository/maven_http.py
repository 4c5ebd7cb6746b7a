"""Repository client for Maven-2 layout HTTP repositories."""
from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence, Set, Tuple

from artifacts.models import ArtifactCoordinate, Dependency
from common import http_client
from common.exceptions import ArtifactNotFoundError, DescriptorError, ResolutionError, TransferError
from common.logging_utils import Timer, extra_context, is_debug_enabled
from constants import Scopes

from .client import ArtifactDescriptor, FetchResult, RemoteRepository, RepositoryClient
from .local import LocalRepository
from .pom import PomModel, parse_pom, snapshot_version, to_dependency

logger = logging.getLogger(__name__)

_MAX_PARENT_DEPTH = 32


class MavenHttpRepositoryClient(RepositoryClient):
    """Downloads POMs and artifacts into a ``LocalRepository``.

    Files already present locally are never downloaded again, which makes a
    second run against a warm cache cheap and lets the build run offline.
    Repositories are tried in order; the first one serving the file wins.
    """

    def __init__(self, local: LocalRepository):
        self.local = local

    def read_descriptor(
        self,
        coordinate: ArtifactCoordinate,
        repositories: Sequence[RemoteRepository],
    ) -> ArtifactDescriptor:
        chain = self._pom_chain(coordinate, repositories)
        model = chain[0]

        properties: Dict[str, str] = {}
        for ancestor in reversed(chain):
            properties.update(ancestor.properties)
        properties.update(model.builtin_properties())

        source = str(coordinate)
        managed: List[Dependency] = []
        for pom in chain:
            for raw in pom.managed_dependencies:
                entry = to_dependency(raw, properties, source)
                if entry.scope == Scopes.IMPORT.value:
                    if is_debug_enabled(logger):
                        logger.debug("Not expanding imported BOM %s in %s", entry.coordinate, source)
                    continue
                managed.append(entry)

        by_key: Dict[Tuple[str, str], Dependency] = {}
        for entry in managed:
            by_key.setdefault(entry.coordinate.management_key, entry)

        dependencies: List[Dependency] = []
        declared: Set[Tuple] = set()
        for pom in chain:
            for raw in pom.dependencies:
                dependency = _complete(to_dependency(raw, properties, source), by_key)
                if dependency.coordinate.conflict_key in declared:
                    continue
                declared.add(dependency.coordinate.conflict_key)
                dependencies.append(dependency)

        return ArtifactDescriptor(coordinate=coordinate, dependencies=dependencies, managed_dependencies=managed)

    def fetch(
        self,
        coordinates: Sequence[ArtifactCoordinate],
        repositories: Sequence[RemoteRepository],
    ) -> List[FetchResult]:
        results = []
        for coordinate in coordinates:
            try:
                path = self.download(coordinate, repositories)
            except ResolutionError as exc:
                results.append(FetchResult(coordinate, error=exc))
            except OSError as exc:
                results.append(FetchResult(
                    coordinate,
                    error=TransferError(f"Could not store {coordinate}: {exc}", subject=str(coordinate)),
                ))
            else:
                results.append(FetchResult(coordinate, path=path))
        return results

    def download(self, coordinate: ArtifactCoordinate, repositories: Sequence[RemoteRepository]) -> str:
        """Make ``coordinate`` available locally and return its path.

        Raises:
            ArtifactNotFoundError: when no repository serves the file.
            TransferError: when a repository could not be reached and none
                of the others had the file.
        """
        destination = self.local.path_for(coordinate)
        with self.local.lock_for(coordinate):
            if self.local.contains(coordinate):
                return destination

            last_transfer_error: Optional[TransferError] = None
            misses = []
            for repository in repositories:
                url = repository.artifact_url(self._remote_path(coordinate, repository))
                with Timer() as t:
                    try:
                        status = http_client.download_to_file(
                            url, destination, context=repository.id, auth=repository.auth
                        )
                    except TransferError as exc:
                        last_transfer_error = exc
                        continue
                if status == 200:
                    logger.info(
                        "Downloaded %s from %s",
                        coordinate,
                        repository.id,
                        extra=extra_context(
                            event="download",
                            component="maven_http",
                            outcome="success",
                            target=repository.id,
                            duration_ms=t.duration_ms(),
                        ),
                    )
                    return destination
                misses.append(f"{repository.id} (HTTP {status})")

        if last_transfer_error is not None and not misses:
            raise last_transfer_error
        tried = ", ".join(misses) or "no repositories configured"
        raise ArtifactNotFoundError(f"Could not find artifact {coordinate} in {tried}", subject=str(coordinate))

    def _remote_path(self, coordinate: ArtifactCoordinate, repository: RemoteRepository) -> str:
        """Path of ``coordinate`` on ``repository``; snapshots resolve to their timestamped file."""
        if not coordinate.version.endswith("-SNAPSHOT"):
            return self.local.relative_path(coordinate)
        directory = self.local.directory(coordinate)
        try:
            status, text = http_client.get_text(
                repository.artifact_url(f"{directory}/maven-metadata.xml"),
                context=repository.id,
                auth=repository.auth,
            )
        except TransferError:
            status, text = 0, ""
        version = snapshot_version(text, coordinate) if status == 200 else None
        return f"{directory}/{self.local.filename(coordinate, version)}"

    def _pom_chain(
        self,
        coordinate: ArtifactCoordinate,
        repositories: Sequence[RemoteRepository],
    ) -> List[PomModel]:
        """The POM of ``coordinate`` followed by its ancestors, nearest first."""
        chain: List[PomModel] = []
        seen: Set[Tuple[str, str, str]] = set()
        current: Optional[Tuple[str, str, str]] = (coordinate.group, coordinate.name, coordinate.version)
        while current is not None:
            if current in seen or len(chain) >= _MAX_PARENT_DEPTH:
                raise DescriptorError(f"Parent cycle in POM hierarchy of {coordinate}", subject=str(coordinate))
            seen.add(current)
            pom_coordinate = ArtifactCoordinate(current[0], current[1], current[2], extension="pom", type="pom")
            chain.append(self._load_pom(pom_coordinate, repositories))
            current = chain[-1].parent
        return chain

    def _load_pom(self, coordinate: ArtifactCoordinate, repositories: Sequence[RemoteRepository]) -> PomModel:
        try:
            path = self.download(coordinate, repositories)
        except ArtifactNotFoundError as exc:
            raise DescriptorError(f"Missing POM for {coordinate}: {exc}", subject=str(coordinate)) from exc
        try:
            with open(path, "r", encoding="utf-8") as fh:
                text = fh.read()
        except (OSError, UnicodeDecodeError) as exc:
            raise DescriptorError(f"Could not read POM {path}: {exc}", subject=str(coordinate)) from exc
        return parse_pom(text, str(coordinate))


def _complete(dependency: Dependency, managed: Dict[Tuple[str, str], Dependency]) -> Dependency:
    """Fill a missing version and scope from the effective dependency management."""
    entry = managed.get(dependency.coordinate.management_key)
    if entry is None:
        return dependency
    if not dependency.coordinate.version and entry.coordinate.version:
        dependency = dependency.with_coordinate(dependency.coordinate.with_version(entry.coordinate.version))
    if dependency.scope is None and entry.scope:
        dependency = dependency.with_scope(entry.scope)
    return dependency
