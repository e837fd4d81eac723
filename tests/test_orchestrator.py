"""
Unit tests for the concurrent install orchestrator.
"""

import random
import threading

import pytest

from devsetup.errors import InstallFailure
from devsetup.orchestrator import InstallOrchestrator, default_pool_size
from devsetup.outcomes import EventKind, InstallOutcome, OutcomeStatus
from tests.fakes import FakeBrew


class TestRunBatch:
    """Test batch ordering, isolation and progress."""

    @pytest.mark.parametrize("n", [0, 1, 10, 1000])
    def test_one_outcome_per_tool_in_input_order(self, n, make_orchestrator):
        tools = [f"tool{i}" for i in range(n)]
        orchestrator = make_orchestrator(FakeBrew(), max_workers=8)

        report = orchestrator.run_batch(tools, label="Batch")

        assert len(report) == n
        assert [o.tool for o in report] == tools
        assert orchestrator.last_progress.completed == n
        assert orchestrator.last_progress.total == n

    def test_order_is_index_based_not_completion_based(self, make_orchestrator):
        tools = [f"t{i}" for i in range(12)]
        rng = random.Random(7)
        # Earlier tools finish last.
        delays = {t: 0.002 * (len(tools) - i) + rng.random() * 0.002 for i, t in enumerate(tools)}
        completion_order = []
        lock = threading.Lock()

        def on_event(event):
            if event.kind is EventKind.SUCCEEDED:
                with lock:
                    completion_order.append(event.tool)

        orchestrator = make_orchestrator(FakeBrew(delays=delays), max_workers=6, on_event=on_event)
        report = orchestrator.run_batch(tools)

        assert [o.tool for o in report] == tools
        assert sorted(completion_order) == sorted(tools)

    def test_failing_tool_does_not_cancel_siblings(self, make_orchestrator):
        tools = ["git", "broken", "curl", "wget"]
        fake = FakeBrew(installed=["wget"], failing={"broken": "Error: broken formula"})

        report = make_orchestrator(fake).run_batch(tools)

        assert report.statuses == [
            OutcomeStatus.INSTALLED_OK,
            OutcomeStatus.INSTALL_FAILED,
            OutcomeStatus.INSTALLED_OK,
            OutcomeStatus.ALREADY_PRESENT,
        ]
        assert report.succeeded == 3
        assert report.failed == 1
        assert report.failures[0].diagnostic == "Error: broken formula"
        assert sorted(fake.installs()) == ["broken", "curl", "git"]

    def test_unexpected_installer_error_becomes_failed_outcome(self, quiet_console):
        class ExplodingInstaller:
            def install(self, tool, on_event=None):
                if tool == "boom":
                    raise KeyError("boom")
                return InstallOutcome.installed(tool)

        orchestrator = InstallOrchestrator(ExplodingInstaller(), max_workers=2, console=quiet_console)
        report = orchestrator.run_batch(["a", "boom", "b"])

        assert report.statuses == [
            OutcomeStatus.INSTALLED_OK,
            OutcomeStatus.INSTALL_FAILED,
            OutcomeStatus.INSTALLED_OK,
        ]
        assert "KeyError" in report.outcomes[1].diagnostic
        assert orchestrator.last_progress.completed == 3

    def test_duplicate_tools_are_independent_items(self, make_orchestrator):
        fake = FakeBrew()
        report = make_orchestrator(fake, max_workers=1).run_batch(["jq", "jq"])

        assert len(report) == 2
        # Single worker: the second item sees the first one's install.
        assert report.statuses == [OutcomeStatus.INSTALLED_OK, OutcomeStatus.ALREADY_PRESENT]

    def test_progress_events_reach_total(self, make_orchestrator):
        ticks = []
        lock = threading.Lock()

        def on_event(event):
            if event.kind is EventKind.PROGRESS:
                with lock:
                    ticks.append(event.extra["completed"])

        make_orchestrator(FakeBrew(), on_event=on_event).run_batch(["a", "b", "c"])

        assert sorted(ticks) == [1, 2, 3]

    def test_event_handler_error_does_not_abort_batch(self, make_orchestrator):
        """A handler that cannot print (e.g. non-UTF-8 stream) loses no outcomes."""
        seen = []
        lock = threading.Lock()

        def on_event(event):
            with lock:
                seen.append((event.kind, event.tool))
            if event.tool == "bad" and event.kind in (EventKind.SUCCEEDED, EventKind.FAILED, EventKind.PROGRESS):
                raise UnicodeEncodeError("ascii", "✓", 0, 1, "ordinal not in range(128)")

        orchestrator = make_orchestrator(FakeBrew(), on_event=on_event)
        report = orchestrator.run_batch(["git", "bad", "curl"])

        assert len(report) == 3
        assert [o.tool for o in report] == ["git", "bad", "curl"]
        assert report.statuses == [OutcomeStatus.INSTALLED_OK] * 3
        assert orchestrator.last_progress.completed == 3
        assert (EventKind.PROGRESS, "bad") in seen

    def test_event_handler_error_on_unexpected_failure(self, quiet_console):
        class ExplodingInstaller:
            def install(self, tool, on_event=None):
                raise KeyError(tool)

        def on_event(event):
            raise UnicodeEncodeError("ascii", "✗", 0, 1, "ordinal not in range(128)")

        orchestrator = InstallOrchestrator(
            ExplodingInstaller(), max_workers=2, console=quiet_console, on_event=on_event
        )
        report = orchestrator.run_batch(["a", "b"])

        assert report.statuses == [OutcomeStatus.INSTALL_FAILED, OutcomeStatus.INSTALL_FAILED]
        assert orchestrator.last_progress.completed == 2

    def test_label_is_recorded(self, make_orchestrator):
        report = make_orchestrator(FakeBrew()).run_batch(["git"], label="Basic")
        assert report.stage == "Basic"
        assert not report.cancelled


class TestBatchReport:
    """Test report helpers."""

    def test_raise_for_failures(self, make_orchestrator):
        report = make_orchestrator(FakeBrew(failing={"x": "nope"})).run_batch(["x", "y"])
        with pytest.raises(InstallFailure) as exc_info:
            report.raise_for_failures()
        assert exc_info.value.tools == ["x"]
        assert not exc_info.value.is_fatal

    def test_no_failures_does_not_raise(self, make_orchestrator):
        report = make_orchestrator(FakeBrew()).run_batch(["x"])
        report.raise_for_failures()
        assert report.count(OutcomeStatus.INSTALLED_OK) == 1


class TestDefaultPoolSize:
    """Test worker pool sizing."""

    def test_empty_batch_needs_no_workers(self):
        assert default_pool_size(0) == 0

    def test_never_more_workers_than_tools(self):
        assert default_pool_size(1) == 1

    def test_capped_by_max_workers(self):
        assert default_pool_size(100, max_workers=2) <= 2

    def test_at_least_one_worker(self):
        assert default_pool_size(5, max_workers=1) == 1
