"""Artifact type registry.

A declared dependency ``type`` is not the file extension: ``test-jar`` is a
``jar`` file with classifier ``tests``, ``maven-plugin`` is a ``jar`` and so
on. The registry maps a type to the ``(extension, classifier)`` pair used to
address the file in a repository.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional


@dataclass(frozen=True)
class ArtifactType:
    """Physical layout of a declared artifact type."""
    name: str
    extension: str
    classifier: Optional[str] = None


_KNOWN_TYPES: Dict[str, ArtifactType] = {
    t.name: t
    for t in (
        ArtifactType("jar", "jar"),
        ArtifactType("pom", "pom"),
        ArtifactType("maven-plugin", "jar"),
        ArtifactType("test-jar", "jar", "tests"),
        ArtifactType("ejb", "jar"),
        ArtifactType("ejb-client", "jar", "client"),
        ArtifactType("bundle", "jar"),
        ArtifactType("war", "war"),
        ArtifactType("ear", "ear"),
        ArtifactType("rar", "rar"),
        ArtifactType("java-source", "jar", "sources"),
        ArtifactType("javadoc", "jar", "javadoc"),
    )
}


def lookup(type_name: Optional[str]) -> ArtifactType:
    """Return the layout for ``type_name``; unknown types map onto themselves."""
    name = (type_name or "jar").strip() or "jar"
    known = _KNOWN_TYPES.get(name)
    if known is not None:
        return known
    return ArtifactType(name, name)
