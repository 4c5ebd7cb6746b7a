"""Dependency resolution and download orchestration engine."""

from .collector import DependencyCollector
from .downloader import DownloadOrchestrator, DownloadReport
from .errors import ErrorKind, ErrorRecord, ErrorSink
from .orchestrator import OfflineResolver, RunResult, merge_plugins
from .scheduler import Job, TaskScheduler
from .session import ResolutionSession, SessionPair, init_sessions

__all__ = [
    "DependencyCollector",
    "DownloadOrchestrator",
    "DownloadReport",
    "ErrorKind",
    "ErrorRecord",
    "ErrorSink",
    "OfflineResolver",
    "RunResult",
    "merge_plugins",
    "Job",
    "TaskScheduler",
    "ResolutionSession",
    "SessionPair",
    "init_sessions",
]
