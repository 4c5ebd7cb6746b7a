"""Dependency graph collection.

Builds the transitive dependency graph of one root breadth-first, applying
dependency management, exclusions and the session's selector, then flattens
it into a set of ``ArtifactRequest`` tagged with the session's context.

Traversal rules:

* Direct declarations of a reactor module are never filtered by scope or
  optionality; everything found in descriptors, and the plugin-level
  declarations merged into a plugin root, is.
* Nearest wins: once a ``group:name:extension:classifier`` is reached with
  some version, farther declarations of another version are dropped.
* A coordinate is expanded at most once. Reaching it again through another
  path still adds a node, which flattening collapses.
"""
from __future__ import annotations

import logging
from collections import deque
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Set, Tuple

from artifacts.models import (
    ArtifactCoordinate,
    ArtifactRequest,
    Dependency,
    DependencyNode,
    Exclusion,
)
from artifacts.reactor import ReactorExclusionSet, ReactorKey
from common.exceptions import DescriptorError, ResolutionError
from common.logging_utils import Timer, extra_context, is_debug_enabled
from repository.client import ArtifactDescriptor

from .errors import ErrorKind, ErrorSink
from .session import ResolutionSession

logger = logging.getLogger(__name__)

_Frame = Tuple[DependencyNode, Tuple[ArtifactCoordinate, ...], Tuple[Exclusion, ...], Sequence[Dependency], bool]


class DependencyCollector:
    """Collects the artifacts one root needs, never raising past ``collect``.

    Args:
        reactor: Artifacts built by the current reactor; dropped from results.
        errors: Sink receiving one record per failed root.
        workspace: Descriptors of reactor modules, used instead of asking the
            remote repositories for artifacts that are not published yet.
    """

    def __init__(
        self,
        reactor: ReactorExclusionSet,
        errors: ErrorSink,
        workspace: Optional[Mapping[ReactorKey, ArtifactDescriptor]] = None,
    ):
        self.reactor = reactor
        self.errors = errors
        self.workspace: Mapping[ReactorKey, ArtifactDescriptor] = dict(workspace or {})

    def collect(
        self,
        session: ResolutionSession,
        root: ArtifactCoordinate,
        dependencies: Sequence[Dependency] = (),
        managed_dependencies: Sequence[Dependency] = (),
        *,
        subject: Optional[str] = None,
        root_is_dependency: bool = False,
    ) -> Set[ArtifactRequest]:
        """Collect and flatten the graph of ``root``.

        A failure is recorded in the error sink and yields an empty set for
        this root only.
        """
        subject = subject or str(root)
        with Timer() as t:
            try:
                graph = self.resolve_graph(
                    session,
                    root,
                    dependencies,
                    managed_dependencies,
                    root_is_dependency=root_is_dependency,
                )
            except ResolutionError as exc:
                self.errors.record(
                    ErrorKind.GRAPH_COLLECTION,
                    subject,
                    f"Error resolving dependencies: {exc}",
                )
                return set()

        requests = self.flatten(graph, session)
        logger.info(
            "Collected %d artifacts for %s",
            len(requests),
            subject,
            extra=extra_context(
                event="collect",
                component="collector",
                context=session.context.request_context,
                count=len(requests),
                duration_ms=t.duration_ms(),
            ),
        )
        return requests

    def resolve_graph(
        self,
        session: ResolutionSession,
        root: ArtifactCoordinate,
        dependencies: Sequence[Dependency] = (),
        managed_dependencies: Sequence[Dependency] = (),
        *,
        root_is_dependency: bool = False,
    ) -> DependencyNode:
        """Build the dependency graph of ``root``.

        With ``root_is_dependency`` the root is itself resolved (plugins and
        dynamic dependencies): its descriptor is read and the dependencies it
        declares are treated as transitive. The given ``dependencies`` (plugin-level
        declarations) are merged ahead of them and filtered the same way.
        Otherwise the root is a reactor module whose direct dependencies are
        given and never filtered by scope or optionality.

        Raises:
            ResolutionError: when any descriptor on the way cannot be read or
                a dependency ends up without a version.
        """
        managed = self._management(managed_dependencies)
        root_node = DependencyNode(
            artifact=root,
            dependency=Dependency(root) if root_is_dependency else None,
        )

        frames: deque = deque()
        frames.append((root_node, (root,), (), list(dependencies), root_is_dependency))
        if root_is_dependency:
            descriptor = self._read_descriptor(session, root)
            for key, entry in self._management(descriptor.managed_dependencies).items():
                managed.setdefault(key, entry)
            frames.append((root_node, (root,), (), self._declared(descriptor), True))

        nearest: Dict[Tuple, str] = {root.conflict_key: root.version}
        expanded: Set[ArtifactCoordinate] = {root}

        while frames:
            node, path, exclusions, declared, transitive = frames.popleft()
            for declaration in declared:
                child = self._visit(session, node, path, exclusions, declaration, transitive, managed, nearest)
                if child is None:
                    continue
                node.children.append(child)
                coordinate = child.artifact
                if coordinate in expanded:
                    continue
                expanded.add(coordinate)
                descriptor = self._read_descriptor(session, coordinate)
                frames.append((
                    child,
                    path + (coordinate,),
                    exclusions + tuple(child.dependency.exclusions),
                    self._declared(descriptor),
                    True,
                ))
        return root_node

    def flatten(self, graph: DependencyNode, session: ResolutionSession) -> Set[ArtifactRequest]:
        """Every non-reactor artifact of ``graph``, root included, tagged with the session context."""
        return {
            ArtifactRequest(node.artifact, session.context)
            for node in graph.walk()
            if not self.reactor.is_excluded(node.artifact)
        }

    def _visit(
        self,
        session: ResolutionSession,
        parent: DependencyNode,
        path: Tuple[ArtifactCoordinate, ...],
        exclusions: Tuple[Exclusion, ...],
        declaration: Dependency,
        transitive: bool,
        managed: Dict[Tuple[str, str], Dependency],
        nearest: Dict[Tuple, str],
    ) -> Optional[DependencyNode]:
        if any(exclusion.matches(declaration.coordinate) for exclusion in exclusions):
            return None
        if not session.selector.select(declaration, path, transitive):
            if is_debug_enabled(logger):
                logger.debug("Skipping %s declared by %s", declaration, parent.artifact)
            return None

        dependency, premanaged = self._apply_management(declaration, managed, transitive)
        coordinate = dependency.coordinate
        if not coordinate.version:
            raise DescriptorError(
                f"No version for {coordinate.group}:{coordinate.name} declared by {parent.artifact}",
                subject=str(parent.artifact),
            )

        winner = nearest.setdefault(coordinate.conflict_key, coordinate.version)
        if winner != coordinate.version:
            if is_debug_enabled(logger):
                logger.debug("Omitting %s for conflict with %s", coordinate, winner)
            return None

        return DependencyNode(
            artifact=coordinate,
            dependency=dependency,
            depth=parent.depth + 1,
            premanaged_version=premanaged,
        )

    @staticmethod
    def _apply_management(
        declaration: Dependency,
        managed: Dict[Tuple[str, str], Dependency],
        transitive: bool,
    ) -> Tuple[Dependency, Optional[str]]:
        """Override version (and, transitively, scope) from dependency management.

        Direct declarations only pick up a managed version when they do not
        state one themselves.
        """
        entry = managed.get(declaration.coordinate.management_key)
        if entry is None:
            return declaration, None

        dependency = declaration
        premanaged = None
        managed_version = entry.coordinate.version
        if managed_version and (transitive or not declaration.coordinate.version):
            if managed_version != declaration.coordinate.version:
                premanaged = declaration.coordinate.version or None
            dependency = dependency.with_coordinate(dependency.coordinate.with_version(managed_version))
        if transitive and entry.scope:
            dependency = dependency.with_scope(entry.scope)
        return dependency, premanaged

    @classmethod
    def _declared(cls, descriptor: ArtifactDescriptor) -> List[Dependency]:
        """Dependencies of ``descriptor``, completed from its own dependency management.

        A declaration without a version (or scope) takes it from the
        descriptor's managed entry, as the effective model of the artifact
        would. Stated values are kept.
        """
        if not descriptor.managed_dependencies:
            return list(descriptor.dependencies)
        own = cls._management(descriptor.managed_dependencies)
        declared = []
        for dependency in descriptor.dependencies:
            entry = own.get(dependency.coordinate.management_key)
            if entry is not None:
                if not dependency.coordinate.version and entry.coordinate.version:
                    dependency = dependency.with_coordinate(
                        dependency.coordinate.with_version(entry.coordinate.version)
                    )
                if dependency.scope is None and entry.scope:
                    dependency = dependency.with_scope(entry.scope)
            declared.append(dependency)
        return declared

    @staticmethod
    def _management(entries: Iterable[Dependency]) -> Dict[Tuple[str, str], Dependency]:
        managed: Dict[Tuple[str, str], Dependency] = {}
        for entry in entries:
            managed.setdefault(entry.coordinate.management_key, entry)
        return managed

    def _read_descriptor(self, session: ResolutionSession, coordinate: ArtifactCoordinate) -> ArtifactDescriptor:
        local = self.workspace.get(ReactorKey.from_coordinate(coordinate))
        if local is not None:
            return local
        return session.read_descriptor(coordinate)
