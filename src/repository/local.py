"""Local artifact cache using the Maven-2 repository layout."""
from __future__ import annotations

import os
import threading
from typing import Dict, Optional

from artifacts.models import ArtifactCoordinate


class LocalRepository:
    """Maps coordinates onto ``group/path/name/baseVersion/file`` under ``basedir``."""

    def __init__(self, basedir: str):
        self.basedir = os.path.abspath(os.path.expanduser(basedir))
        self._locks: Dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    @staticmethod
    def directory(coordinate: ArtifactCoordinate) -> str:
        return "/".join([coordinate.group.replace(".", "/"), coordinate.name, coordinate.base_version])

    @staticmethod
    def filename(coordinate: ArtifactCoordinate, version: Optional[str] = None) -> str:
        name = f"{coordinate.name}-{version or coordinate.version}"
        if coordinate.classifier:
            name += f"-{coordinate.classifier}"
        return f"{name}.{coordinate.extension}"

    def relative_path(self, coordinate: ArtifactCoordinate) -> str:
        return f"{self.directory(coordinate)}/{self.filename(coordinate)}"

    def path_for(self, coordinate: ArtifactCoordinate) -> str:
        return os.path.join(self.basedir, *self.relative_path(coordinate).split("/"))

    def contains(self, coordinate: ArtifactCoordinate) -> bool:
        path = self.path_for(coordinate)
        return os.path.isfile(path) and os.path.getsize(path) > 0

    def lock_for(self, coordinate: ArtifactCoordinate) -> threading.Lock:
        """Lock serializing writers of one local file.

        One lock is kept per path ever requested and none is released, so the
        map grows with the number of distinct files of a run. A client is
        built per run, which bounds it.
        """
        path = self.path_for(coordinate)
        with self._locks_guard:
            lock = self._locks.get(path)
            if lock is None:
                lock = self._locks[path] = threading.Lock()
            return lock
