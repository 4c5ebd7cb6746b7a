"""Thread-safe error sink shared by every job of a run."""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple

from common.logging_utils import extra_context

logger = logging.getLogger(__name__)


class ErrorKind(Enum):
    """Non-fatal failure categories accumulated during a run."""
    GRAPH_COLLECTION = "graph_collection"
    REQUIRED_DOWNLOAD = "required_download"
    OPTIONAL_DOWNLOAD = "optional_download"

    @property
    def is_optional(self) -> bool:
        return self is ErrorKind.OPTIONAL_DOWNLOAD


@dataclass(frozen=True)
class ErrorRecord:
    """A recorded failure and what triggered it."""
    kind: ErrorKind
    subject: str
    message: str
    exception: Optional[BaseException] = None

    def __str__(self) -> str:
        return f"{self.subject}: {self.message}"


class ErrorSink:
    """Append-only, lock-guarded list of ``ErrorRecord``.

    Readers get immutable snapshots, so draining the sink while jobs are still
    appending never observes a half-written list.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._records: List[ErrorRecord] = []

    def record(
        self,
        kind: ErrorKind,
        subject: str,
        error: BaseException | str,
    ) -> ErrorRecord:
        """Append a failure and log it at a severity matching its kind."""
        if isinstance(error, BaseException):
            entry = ErrorRecord(kind, subject, str(error) or type(error).__name__, error)
        else:
            entry = ErrorRecord(kind, subject, error)

        with self._lock:
            self._records.append(entry)

        level = logging.WARNING if kind.is_optional else logging.ERROR
        logger.log(
            level,
            "%s: %s",
            subject,
            entry.message,
            extra=extra_context(event="error_recorded", component="error_sink", outcome=kind.value),
        )
        if entry.exception is not None:
            logger.debug("Failure detail for %s", subject, exc_info=entry.exception)
        return entry

    def records(self) -> Tuple[ErrorRecord, ...]:
        with self._lock:
            return tuple(self._records)

    def required(self) -> Tuple[ErrorRecord, ...]:
        """Records that affect artifacts the build cannot do without."""
        return tuple(r for r in self.records() if not r.kind.is_optional)

    def optional(self) -> Tuple[ErrorRecord, ...]:
        return tuple(r for r in self.records() if r.kind.is_optional)

    def has_errors(self, include_optional: bool = False) -> bool:
        if include_optional:
            return bool(self.records())
        return bool(self.required())

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)
