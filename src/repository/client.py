"""Contract between the resolver and whatever talks to artifact repositories."""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from artifacts.models import ArtifactCoordinate, Dependency


@dataclass(frozen=True)
class RemoteRepository:
    """A remote repository endpoint."""
    id: str
    url: str
    username: Optional[str] = field(default=None, repr=False)
    password: Optional[str] = field(default=None, repr=False)

    @property
    def auth(self) -> Optional[Tuple[str, str]]:
        if self.username is None:
            return None
        return (self.username, self.password or "")

    def artifact_url(self, relative_path: str) -> str:
        return f"{self.url.rstrip('/')}/{relative_path.lstrip('/')}"


@dataclass
class ArtifactDescriptor:
    """What an artifact declares about itself: its dependencies and dependency management."""
    coordinate: ArtifactCoordinate
    dependencies: List[Dependency] = field(default_factory=list)
    managed_dependencies: List[Dependency] = field(default_factory=list)


@dataclass
class FetchResult:
    """Outcome of fetching one coordinate.

    Exactly one of ``path`` and ``error`` is set.
    """
    coordinate: ArtifactCoordinate
    path: Optional[str] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class RepositoryClient(ABC):
    """Reads descriptors and fetches artifact files from remote repositories.

    Implementations own transport concerns (timeouts, retries, auth, local
    storage). They must be safe to call from several threads at once.
    """

    @abstractmethod
    def read_descriptor(
        self,
        coordinate: ArtifactCoordinate,
        repositories: Sequence[RemoteRepository],
    ) -> ArtifactDescriptor:
        """Return the declared dependencies of ``coordinate``.

        Raises:
            ResolutionError: when the descriptor is unavailable or unusable.
        """

    @abstractmethod
    def fetch(
        self,
        coordinates: Sequence[ArtifactCoordinate],
        repositories: Sequence[RemoteRepository],
    ) -> List[FetchResult]:
        """Fetch a batch of artifacts into the local cache.

        Returns one ``FetchResult`` per input coordinate; a failure of one
        coordinate must not affect the others. May raise for batch-wide
        failures, in which case every coordinate of the batch counts as failed.
        """
