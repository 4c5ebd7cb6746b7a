"""One offline-prefetch run: collect every graph, then download the union."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Set, Tuple

from artifacts.models import ArtifactCoordinate, ArtifactRequest, RepositoryContext
from artifacts.reactor import ReactorExclusionSet, ReactorKey
from build_model import BuildModule, PluginDeclaration
from common.logging_utils import Timer, extra_context
from config import DynamicDependency
from constants import Constants
from repository.client import ArtifactDescriptor

from .collector import DependencyCollector
from .downloader import DownloadOrchestrator, DownloadReport
from .errors import ErrorRecord, ErrorSink
from .scheduler import Job, TaskScheduler
from .session import SessionPair

logger = logging.getLogger(__name__)


@dataclass
class RunResult:
    """Outcome of a run. Partial success is a normal outcome."""
    requests: Set[ArtifactRequest] = field(default_factory=set)
    report: DownloadReport = field(default_factory=DownloadReport)
    errors: Tuple[ErrorRecord, ...] = ()

    @property
    def required_errors(self) -> Tuple[ErrorRecord, ...]:
        return tuple(e for e in self.errors if not e.kind.is_optional)

    def should_fail(self, fail_on_errors: bool, strict_optional: bool = False) -> bool:
        """Apply the caller's fail-on-errors policy to the recorded errors."""
        if not fail_on_errors:
            return False
        relevant = self.errors if strict_optional else self.required_errors
        return bool(relevant)


def merge_plugins(modules: Iterable[BuildModule]) -> List[PluginDeclaration]:
    """Distinct plugins across ``modules``.

    Plugins are keyed by coordinate; dependencies declared on the same plugin
    in different modules are merged, first declaration first.
    """
    merged: Dict[ArtifactCoordinate, PluginDeclaration] = {}
    for module in modules:
        for plugin in module.plugins:
            known = merged.get(plugin.coordinate)
            if known is None:
                merged[plugin.coordinate] = PluginDeclaration(
                    plugin.group, plugin.name, plugin.version, list(plugin.dependencies)
                )
                continue
            for dependency in plugin.dependencies:
                if dependency not in known.dependencies:
                    known.dependencies.append(dependency)
    return list(merged.values())


class OfflineResolver:
    """Computes and fetches everything a reactor build needs to run offline.

    The resolver is composed once with both sessions; ``run`` may be called
    repeatedly and gets a fresh error sink each time.
    """

    def __init__(
        self,
        sessions: SessionPair,
        *,
        download_sources: bool = False,
        download_javadoc: bool = False,
        max_workers: int = Constants.DEFAULT_MAX_WORKERS,
        download_batch_size: int = Constants.DEFAULT_DOWNLOAD_BATCH_SIZE,
    ):
        self.sessions = sessions
        self.download_sources = download_sources
        self.download_javadoc = download_javadoc
        self.max_workers = max_workers
        self.download_batch_size = download_batch_size

    def run(
        self,
        modules: Sequence[BuildModule],
        dynamic_dependencies: Sequence[DynamicDependency] = (),
        workspace: Optional[Mapping[ReactorKey, ArtifactDescriptor]] = None,
    ) -> RunResult:
        """Collect all graphs concurrently, join, then download the union.

        Raises:
            ConfigurationError: for an invalid dynamic dependency, before any
                resolution starts.
        """
        for index, dependency in enumerate(dynamic_dependencies):
            dependency.validate(f"dynamic_dependencies[{index}]")

        errors = ErrorSink()
        scheduler = TaskScheduler(errors, self.max_workers)
        reactor = ReactorExclusionSet.from_coordinates(m.coordinate for m in modules)
        if workspace is None:
            workspace = {ReactorKey.from_coordinate(m.coordinate): m.descriptor() for m in modules}
        collector = DependencyCollector(reactor, errors, workspace)

        with Timer() as t:
            jobs = self.collection_jobs(collector, modules, dynamic_dependencies)
            logger.info(
                "Resolving %d modules, plugins and dynamic dependencies",
                len(jobs),
                extra=extra_context(event="start", component="orchestrator", count=len(jobs)),
            )
            requests = scheduler.run_all(jobs)

            downloader = DownloadOrchestrator(
                self.sessions,
                reactor,
                errors,
                scheduler,
                download_sources=self.download_sources,
                download_javadoc=self.download_javadoc,
                batch_size=self.download_batch_size,
            )
            report = downloader.download(requests)

        result = RunResult(requests=requests, report=report, errors=errors.records())
        logger.info(
            "Cached %d artifacts, %d failed, %d optional variants unavailable",
            len(report.downloaded),
            len(report.failed),
            len(report.optional_missing),
            extra=extra_context(
                event="finish",
                component="orchestrator",
                outcome="partial" if result.required_errors else "success",
                duration_ms=t.duration_ms(),
            ),
        )
        return result

    def collection_jobs(
        self,
        collector: DependencyCollector,
        modules: Sequence[BuildModule],
        dynamic_dependencies: Sequence[DynamicDependency] = (),
    ) -> List[Job[ArtifactRequest]]:
        """One job per module, per distinct plugin and per dynamic dependency."""
        main = self.sessions.main
        plugin_session = self.sessions.plugin
        jobs: List[Job[ArtifactRequest]] = []

        for module in modules:
            jobs.append(Job(
                name=f"module {module}",
                run=lambda module=module: collector.collect(
                    main,
                    module.coordinate,
                    module.dependencies,
                    module.managed_dependencies,
                    subject=f"project {module}",
                ),
            ))

        for plugin in merge_plugins(modules):
            jobs.append(Job(
                name=f"plugin {plugin.group}:{plugin.name}",
                run=lambda plugin=plugin: collector.collect(
                    plugin_session,
                    plugin.coordinate,
                    plugin.dependencies,
                    subject=f"plugin {plugin.group}:{plugin.name}",
                    root_is_dependency=True,
                ),
            ))

        for dependency in dynamic_dependencies:
            session = self.sessions.for_context(dependency.repository_type or RepositoryContext.MAIN)
            jobs.append(Job(
                name=f"dynamic dependency {dependency}",
                run=lambda dependency=dependency, session=session: collector.collect(
                    session,
                    dependency.coordinate,
                    subject=f"dynamic dependency {dependency}",
                    root_is_dependency=True,
                ),
            ))
        return jobs
