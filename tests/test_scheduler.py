"""Tests for the task scheduler and the error sink."""

import threading

import pytest

from resolution.errors import ErrorKind, ErrorSink
from resolution.scheduler import Job, TaskScheduler


class TestTaskScheduler:

    def test_results_are_unioned(self, errors):
        scheduler = TaskScheduler(errors, max_workers=4)
        jobs = [Job(f"job {i}", lambda i=i: {i, i + 1}) for i in range(3)]
        assert scheduler.run_all(jobs) == {0, 1, 2, 3}
        assert not errors.records()

    def test_failing_job_is_recorded_and_does_not_stop_siblings(self, errors):
        def boom():
            raise RuntimeError("descriptor server on fire")

        scheduler = TaskScheduler(errors, max_workers=2)
        result = scheduler.run_all([Job("ok", lambda: {"a"}), Job("broken", boom), Job("ok2", lambda: {"b"})])

        assert result == {"a", "b"}
        (record,) = errors.records()
        assert record.kind is ErrorKind.GRAPH_COLLECTION
        assert record.subject == "broken"
        assert "descriptor server on fire" in record.message

    def test_failure_kind_is_configurable(self, errors):
        def boom():
            raise OSError("disk full")

        TaskScheduler(errors).run_all([Job("batch", boom)], failure_kind=ErrorKind.REQUIRED_DOWNLOAD)
        assert errors.records()[0].kind is ErrorKind.REQUIRED_DOWNLOAD

    def test_jobs_run_concurrently(self, errors):
        barrier = threading.Barrier(3, timeout=5)

        def wait_for_siblings(value):
            barrier.wait()
            return {value}

        jobs = [Job(str(i), lambda i=i: wait_for_siblings(i)) for i in range(3)]
        assert TaskScheduler(errors, max_workers=3).run_all(jobs) == {0, 1, 2}
        assert not errors.records()

    def test_no_jobs(self, errors):
        assert TaskScheduler(errors).run_all([]) == set()

    def test_rejects_empty_pool(self, errors):
        with pytest.raises(ValueError):
            TaskScheduler(errors, max_workers=0)


class TestErrorSink:

    def test_records_exceptions_and_messages(self):
        sink = ErrorSink()
        sink.record(ErrorKind.GRAPH_COLLECTION, "project com.x:app", ValueError("bad pom"))
        sink.record(ErrorKind.OPTIONAL_DOWNLOAD, "g:a:jar:sources:1 (project)", "not found")

        first, second = sink.records()
        assert first.message == "bad pom"
        assert isinstance(first.exception, ValueError)
        assert second.exception is None
        assert str(first) == "project com.x:app: bad pom"
        assert len(sink) == 2

    def test_exception_without_message_uses_type_name(self):
        sink = ErrorSink()
        entry = sink.record(ErrorKind.REQUIRED_DOWNLOAD, "x", KeyError())
        assert entry.message == "KeyError"

    def test_required_and_optional_split(self):
        sink = ErrorSink()
        sink.record(ErrorKind.OPTIONAL_DOWNLOAD, "a", "missing")
        assert not sink.has_errors()
        assert sink.has_errors(include_optional=True)

        sink.record(ErrorKind.REQUIRED_DOWNLOAD, "b", "missing")
        assert sink.has_errors()
        assert [r.subject for r in sink.required()] == ["b"]
        assert [r.subject for r in sink.optional()] == ["a"]

    def test_concurrent_appends_are_not_lost(self):
        sink = ErrorSink()

        def spam(n):
            for i in range(50):
                sink.record(ErrorKind.GRAPH_COLLECTION, f"{n}-{i}", "x")

        threads = [threading.Thread(target=spam, args=(n,)) for n in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        assert len(sink.records()) == 200
