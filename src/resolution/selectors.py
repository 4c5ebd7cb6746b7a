"""Dependency selection policies applied while building a graph.

A selector decides, for each declared dependency reached during traversal,
whether the edge is followed. ``transitive`` is False for dependencies
declared directly on the collection root and True for everything found in a
descriptor further down, so direct declarations are never filtered by scope or
optionality.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterable, Sequence, Tuple

from artifacts.models import ArtifactCoordinate, Dependency
from constants import Constants


class DependencySelector(ABC):
    """Decides whether a dependency edge becomes part of the graph."""

    @abstractmethod
    def select(
        self,
        dependency: Dependency,
        path: Sequence[ArtifactCoordinate],
        transitive: bool,
    ) -> bool:
        """Return True to keep ``dependency``.

        Args:
            dependency: The (managed) declaration being considered.
            path: Artifacts from the root down to the declaring parent.
            transitive: Whether the declaration was found below the root.
        """


class AcceptAllSelector(DependencySelector):
    """No-op policy used when an optional filter is not available."""

    def select(self, dependency, path, transitive) -> bool:
        return True


class ScopeSelector(DependencySelector):
    """Drops transitive dependencies declared with an excluded scope."""

    def __init__(self, excluded: Iterable[str] = Constants.EXCLUDED_TRANSITIVE_SCOPES):
        self.excluded = frozenset(s.lower() for s in excluded)

    def select(self, dependency, path, transitive) -> bool:
        if not transitive:
            return True
        return dependency.effective_scope.lower() not in self.excluded


class OptionalSelector(DependencySelector):
    """Drops transitive dependencies marked optional."""

    def select(self, dependency, path, transitive) -> bool:
        return not (transitive and dependency.optional)


class LegacyCoreWagonSelector(DependencySelector):
    """Keeps wagon providers out of plugin graphs below legacy core artifacts.

    The host build tool ships its own transport providers; a plugin that
    depends on a 2.x core artifact would otherwise drag in wagon providers
    the tool never loads from the plugin class path.
    """

    CORE_GROUP = "org.apache.maven"
    WAGON_GROUP = "org.apache.maven.wagon"

    def select(self, dependency, path, transitive) -> bool:
        if not any(self._is_legacy_core(a) for a in path):
            return True
        return not self._is_wagon_provider(dependency.coordinate)

    def _is_legacy_core(self, artifact: ArtifactCoordinate) -> bool:
        return (
            artifact.group == self.CORE_GROUP
            and artifact.name.startswith("maven-")
            and artifact.version.startswith("2.")
        )

    def _is_wagon_provider(self, artifact: ArtifactCoordinate) -> bool:
        return artifact.group == self.WAGON_GROUP and artifact.name.startswith("wagon-")


class AndSelector(DependencySelector):
    """Keeps a dependency only if every wrapped selector keeps it."""

    def __init__(self, *selectors: DependencySelector):
        self.selectors: Tuple[DependencySelector, ...] = tuple(selectors)

    def select(self, dependency, path, transitive) -> bool:
        return all(s.select(dependency, path, transitive) for s in self.selectors)


def default_selector() -> DependencySelector:
    """Scope and optionality filtering used for module dependency graphs."""
    return AndSelector(ScopeSelector(), OptionalSelector())
