"""Artifact identity types and the reactor exclusion set."""

from .models import (
    ArtifactCoordinate,
    ArtifactRequest,
    Dependency,
    DependencyNode,
    Exclusion,
    RepositoryContext,
)
from .reactor import ReactorExclusionSet, ReactorKey

__all__ = [
    "ArtifactCoordinate",
    "ArtifactRequest",
    "Dependency",
    "DependencyNode",
    "Exclusion",
    "RepositoryContext",
    "ReactorExclusionSet",
    "ReactorKey",
]
