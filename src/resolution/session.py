"""Resolution sessions for the MAIN and PLUGIN repository contexts.

Each session owns its repository list, its dependency selector and its own
descriptor cache. The two caches are never shared: different repository lists
may legitimately disagree on what a coordinate resolves to, and plugin graphs
may be filtered differently from module graphs.
"""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Dict, Optional, Sequence, Tuple

from artifacts.models import ArtifactCoordinate, RepositoryContext
from repository.client import ArtifactDescriptor, RemoteRepository, RepositoryClient

from .selectors import AndSelector, DependencySelector, OptionalSelector, ScopeSelector, default_selector

logger = logging.getLogger(__name__)


class DescriptorCache:
    """Per-session descriptor cache, safe for concurrent jobs."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entries: Dict[ArtifactCoordinate, ArtifactDescriptor] = {}

    def get(self, coordinate: ArtifactCoordinate) -> Optional[ArtifactDescriptor]:
        with self._lock:
            return self._entries.get(coordinate)

    def put(self, coordinate: ArtifactCoordinate, descriptor: ArtifactDescriptor) -> None:
        with self._lock:
            self._entries[coordinate] = descriptor

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


@dataclass
class ResolutionSession:
    """Everything a job needs to resolve against one repository context."""
    context: RepositoryContext
    repositories: Tuple[RemoteRepository, ...]
    selector: DependencySelector
    client: RepositoryClient
    cache: DescriptorCache = field(default_factory=DescriptorCache)

    def read_descriptor(self, coordinate: ArtifactCoordinate) -> ArtifactDescriptor:
        """Descriptor of ``coordinate``, read through this session's cache.

        All files of one group:name:version share a descriptor, so the cache is
        keyed by the POM coordinate.
        """
        key = coordinate.with_extension("pom")
        cached = self.cache.get(key)
        if cached is not None:
            return cached
        descriptor = self.client.read_descriptor(key, self.repositories)
        self.cache.put(key, descriptor)
        return descriptor


@dataclass(frozen=True)
class SessionPair:
    """The two independently owned sessions of a run."""
    main: ResolutionSession
    plugin: ResolutionSession

    def for_context(self, context: RepositoryContext) -> ResolutionSession:
        if context is RepositoryContext.MAIN:
            return self.main
        if context is RepositoryContext.PLUGIN:
            return self.plugin
        raise ValueError(f"Unknown repository context {context!r}")


def init_sessions(
    client: RepositoryClient,
    repositories: Sequence[RemoteRepository],
    plugin_repositories: Sequence[RemoteRepository],
    plugin_filter: Optional[DependencySelector] = None,
) -> SessionPair:
    """Create the MAIN and PLUGIN sessions.

    Both sessions drop transitive test/system/provided and optional
    dependencies. The plugin session additionally applies ``plugin_filter``,
    the host tool's own exclusion policy, when one is supplied; without it
    plugin graphs may contain artifacts the host tool provides itself.
    """
    main_selector = default_selector()
    if plugin_filter is None:
        logger.warning(
            "No host tool exclusion filter configured, plugin dependencies might not be resolved exactly"
        )
        plugin_selector: DependencySelector = default_selector()
    else:
        plugin_selector = AndSelector(ScopeSelector(), OptionalSelector(), plugin_filter)

    return SessionPair(
        main=ResolutionSession(
            context=RepositoryContext.MAIN,
            repositories=tuple(repositories),
            selector=main_selector,
            client=client,
        ),
        plugin=ResolutionSession(
            context=RepositoryContext.PLUGIN,
            repositories=tuple(plugin_repositories),
            selector=plugin_selector,
            client=client,
        ),
    )
