"""Bounded worker pool running independent resolution jobs."""
from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Callable, Generic, Sequence, Set, TypeVar

from common.logging_utils import Timer, extra_context
from constants import Constants

from .errors import ErrorKind, ErrorSink

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class Job(Generic[T]):
    """A named unit of work producing a set of results."""
    name: str
    run: Callable[[], Set[T]]


class TaskScheduler:
    """Runs jobs concurrently and joins them before returning.

    Jobs are independent: their order is irrelevant and results are combined
    by set union once every job has finished. A job that raises is recorded
    in the error sink and contributes nothing; it never stops its siblings.
    There is no cancellation or timeout at this level.
    """

    def __init__(self, errors: ErrorSink, max_workers: int = Constants.DEFAULT_MAX_WORKERS):
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self.errors = errors
        self.max_workers = max_workers

    def run_all(
        self,
        jobs: Sequence[Job[T]],
        failure_kind: ErrorKind = ErrorKind.GRAPH_COLLECTION,
    ) -> Set[T]:
        results: Set[T] = set()
        if not jobs:
            return results

        with Timer() as t:
            with ThreadPoolExecutor(
                max_workers=min(self.max_workers, len(jobs)),
                thread_name_prefix="gooffline",
            ) as executor:
                futures = {executor.submit(job.run): job for job in jobs}
                for future in as_completed(futures):
                    job = futures[future]
                    try:
                        results |= future.result()
                    except Exception as exc:  # pylint: disable=broad-exception-caught
                        self.errors.record(failure_kind, job.name, exc)

        logger.debug(
            "Joined %d jobs",
            len(jobs),
            extra=extra_context(
                event="join",
                component="scheduler",
                count=len(jobs),
                duration_ms=t.duration_ms(),
            ),
        )
        return results
