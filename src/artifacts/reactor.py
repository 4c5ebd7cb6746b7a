"""Reactor exclusion set.

Artifacts produced by the current multi-module build are available locally and
must not be downloaded. A module may emit several files (different types and
classifiers) that are only known at build time, so matching ignores type and
classifier and compares group, name and base version only.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import FrozenSet, Iterable

from .models import ArtifactCoordinate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReactorKey:
    """group:name:baseVersion of a reactor artifact."""
    group: str
    name: str
    base_version: str

    @classmethod
    def from_coordinate(cls, coordinate: ArtifactCoordinate) -> "ReactorKey":
        return cls(coordinate.group, coordinate.name, coordinate.base_version)


class ReactorExclusionSet:
    """Read-only set of reactor keys, built once per run."""

    def __init__(self, keys: Iterable[ReactorKey] = ()):
        self._keys: FrozenSet[ReactorKey] = frozenset(keys)

    @classmethod
    def from_coordinates(cls, coordinates: Iterable[ArtifactCoordinate]) -> "ReactorExclusionSet":
        reactor = cls(ReactorKey.from_coordinate(c) for c in coordinates)
        logger.debug("Reactor exclusion set holds %d artifacts", len(reactor))
        return reactor

    def is_excluded(self, coordinate: ArtifactCoordinate) -> bool:
        return ReactorKey.from_coordinate(coordinate) in self._keys

    def __contains__(self, coordinate: object) -> bool:
        return isinstance(coordinate, ArtifactCoordinate) and self.is_excluded(coordinate)

    def __len__(self) -> int:
        return len(self._keys)
