from __future__ import annotations

import logging
import os
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, Sequence

from rich.console import Console

from .lib.pkgmgr import PackageInstaller
from .outcomes import BatchReport, EventKind, EventSink, InstallEvent, InstallOutcome, ignore_event
from .progress import ProgressSnapshot, ProgressTracker

logger = logging.getLogger(__name__)


def default_pool_size(n_tools: int, max_workers: Optional[int] = None) -> int:
    """Worker count for a batch: available parallelism, capped by max_workers."""

    if n_tools <= 0:
        return 0
    size = os.cpu_count() or 1
    if max_workers:
        size = min(size, max_workers)
    return max(1, min(size, n_tools))


class InstallOrchestrator:
    """Run one batch of installs concurrently.

    Each tool gets exactly one attempt; a failure is recorded for that tool and
    never cancels its siblings. Outcomes come back in input order.
    """

    def __init__(
        self,
        installer: PackageInstaller,
        *,
        max_workers: Optional[int] = None,
        console: Optional[Console] = None,
        on_event: EventSink = ignore_event,
    ) -> None:
        self.installer = installer
        self.max_workers = max_workers
        self.console = console
        self.on_event = on_event
        self.last_progress: Optional[ProgressSnapshot] = None

    def _emit(self, event: InstallEvent) -> None:
        # A broken display must never cost a tool its outcome.
        try:
            self.on_event(event)
        except Exception:
            logger.warning("Event handler failed on %s for %s", event.kind.name, event.tool, exc_info=True)

    def _install_one(self, tool: str) -> InstallOutcome:
        try:
            return self.installer.install(tool, on_event=self._emit)
        except Exception as e:
            logger.exception("Unexpected error while installing %s", tool)
            self._emit(InstallEvent(EventKind.FAILED, tool, str(e)))
            return InstallOutcome.failed(tool, f"{type(e).__name__}: {e}")

    def run_batch(self, tools: Sequence[str], *, label: str = "") -> BatchReport:
        tools = list(tools)
        n = len(tools)
        results: List[Optional[InstallOutcome]] = [None] * n
        tracker = ProgressTracker.start(n, label=label, console=self.console)

        def work(index: int) -> None:
            results[index] = self._install_one(tools[index])
            completed = tracker.advance()
            self._emit(InstallEvent(EventKind.PROGRESS, tools[index], extra={"completed": completed, "total": n}))

        workers = default_pool_size(n, self.max_workers)
        logger.info("Batch %r: %d tool(s) on %d worker(s)", label, n, workers)
        try:
            if n:
                with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="install") as pool:
                    futures = [pool.submit(work, i) for i in range(n)]
                # Surface bookkeeping errors (not install failures) after the join.
                for f in futures:
                    f.result()
        finally:
            self.last_progress = tracker.finish("Installation complete")

        missing = [tools[i] for i, r in enumerate(results) if r is None]
        if missing:
            raise RuntimeError(f"No outcome recorded for: {', '.join(missing)}")
        return BatchReport(stage=label, outcomes=tuple(r for r in results if r is not None))
