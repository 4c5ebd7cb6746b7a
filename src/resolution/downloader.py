"""Download phase: fetches the complete, deduplicated request set."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Sequence, Set

from artifacts.models import ArtifactCoordinate, ArtifactRequest, RepositoryContext
from artifacts.reactor import ReactorExclusionSet
from common.logging_utils import extra_context
from constants import Constants

from .errors import ErrorKind, ErrorSink
from .scheduler import Job, TaskScheduler
from .session import ResolutionSession, SessionPair

logger = logging.getLogger(__name__)


@dataclass
class DownloadPlan:
    """Requests of one context, split into required artifacts and best-effort variants."""
    context: RepositoryContext
    required: List[ArtifactRequest] = field(default_factory=list)
    optional: List[ArtifactRequest] = field(default_factory=list)


@dataclass
class DownloadReport:
    """What the download phase achieved."""
    downloaded: Set[ArtifactRequest] = field(default_factory=set)
    failed: Set[ArtifactRequest] = field(default_factory=set)
    optional_missing: Set[ArtifactRequest] = field(default_factory=set)


class DownloadOrchestrator:
    """Issues batched fetches per repository context.

    For every MAIN artifact stored as a jar, ``download_sources`` and
    ``download_javadoc`` add best-effort requests for the ``sources`` and
    ``javadoc`` classified variants. Their absence upstream is common and is
    recorded as an optional failure only.
    """

    def __init__(
        self,
        sessions: SessionPair,
        reactor: ReactorExclusionSet,
        errors: ErrorSink,
        scheduler: TaskScheduler,
        *,
        download_sources: bool = False,
        download_javadoc: bool = False,
        batch_size: int = Constants.DEFAULT_DOWNLOAD_BATCH_SIZE,
    ):
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        self.sessions = sessions
        self.reactor = reactor
        self.errors = errors
        self.scheduler = scheduler
        self.download_sources = download_sources
        self.download_javadoc = download_javadoc
        self.batch_size = batch_size

    def plan(self, requests: Iterable[ArtifactRequest]) -> Dict[RepositoryContext, DownloadPlan]:
        """Partition ``requests`` by context and add source/javadoc variants."""
        plans = {context: DownloadPlan(context) for context in RepositoryContext}
        required: Set[ArtifactRequest] = set()
        optional: Set[ArtifactRequest] = set()

        for request in requests:
            if self.reactor.is_excluded(request.coordinate):
                continue
            required.add(request)
            if request.context is RepositoryContext.MAIN:
                optional.update(self._variants(request))

        optional -= required
        for request in sorted(required, key=str):
            plans[request.context].required.append(request)
        for request in sorted(optional, key=str):
            plans[request.context].optional.append(request)
        return plans

    def download(self, requests: Iterable[ArtifactRequest]) -> DownloadReport:
        """Fetch every planned request; failures are recorded, never raised."""
        plans = self.plan(requests)
        jobs: List[Job[ArtifactRequest]] = []
        for context, plan in plans.items():
            session = self.sessions.for_context(context)
            jobs.extend(self._jobs(session, plan.required, optional=False))
            jobs.extend(self._jobs(session, plan.optional, optional=True))
            logger.info(
                "Downloading %d artifacts (%d optional) from %s repositories",
                len(plan.required) + len(plan.optional),
                len(plan.optional),
                context.request_context,
                extra=extra_context(event="download", component="downloader", context=context.request_context),
            )

        downloaded = self.scheduler.run_all(jobs, failure_kind=ErrorKind.REQUIRED_DOWNLOAD)

        report = DownloadReport(downloaded=downloaded)
        for plan in plans.values():
            report.failed.update(r for r in plan.required if r not in downloaded)
            report.optional_missing.update(r for r in plan.optional if r not in downloaded)
        return report

    def _variants(self, request: ArtifactRequest) -> List[ArtifactRequest]:
        coordinate = request.coordinate
        if coordinate.extension != Constants.BINARY_ARCHIVE_EXTENSION:
            return []
        classifiers = []
        if self.download_sources:
            classifiers.append(Constants.SOURCES_CLASSIFIER)
        if self.download_javadoc:
            classifiers.append(Constants.JAVADOC_CLASSIFIER)
        return [ArtifactRequest(coordinate.with_classifier(c), request.context) for c in classifiers]

    def _jobs(
        self,
        session: ResolutionSession,
        requests: Sequence[ArtifactRequest],
        optional: bool,
    ) -> List[Job[ArtifactRequest]]:
        kind = "optional" if optional else "required"
        jobs = []
        for start in range(0, len(requests), self.batch_size):
            batch = list(requests[start:start + self.batch_size])
            jobs.append(Job(
                name=f"{session.context.request_context} {kind} batch {start // self.batch_size + 1}",
                run=lambda batch=batch: self._fetch_batch(session, batch, optional),
            ))
        return jobs

    def _fetch_batch(
        self,
        session: ResolutionSession,
        batch: List[ArtifactRequest],
        optional: bool,
    ) -> Set[ArtifactRequest]:
        kind = ErrorKind.OPTIONAL_DOWNLOAD if optional else ErrorKind.REQUIRED_DOWNLOAD
        by_coordinate: Dict[ArtifactCoordinate, ArtifactRequest] = {r.coordinate: r for r in batch}

        try:
            results = session.client.fetch(list(by_coordinate), session.repositories)
        except Exception as exc:  # pylint: disable=broad-exception-caught
            for request in batch:
                self.errors.record(kind, str(request), exc)
            return set()

        fetched: Set[ArtifactRequest] = set()
        reported: Set[ArtifactCoordinate] = set()
        for result in results:
            request = by_coordinate.get(result.coordinate)
            if request is None:
                continue
            reported.add(result.coordinate)
            if result.ok:
                fetched.add(request)
            else:
                self.errors.record(kind, str(request), result.error)

        for coordinate, request in by_coordinate.items():
            if coordinate not in reported:
                self.errors.record(kind, str(request), "No result returned by the repository client")
        return fetched
