"""Repository client contract and the Maven HTTP implementation."""

from .client import ArtifactDescriptor, FetchResult, RemoteRepository, RepositoryClient
from .local import LocalRepository
from .maven_http import MavenHttpRepositoryClient

__all__ = [
    "ArtifactDescriptor",
    "FetchResult",
    "RemoteRepository",
    "RepositoryClient",
    "LocalRepository",
    "MavenHttpRepositoryClient",
]
