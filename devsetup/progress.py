from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Optional

from rich.console import Console
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    TaskID,
    TextColumn,
    TimeRemainingColumn,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProgressSnapshot:
    completed: int
    total: int

    @property
    def done(self) -> bool:
        return self.completed >= self.total


class ProgressTracker:
    """Completed-of-total counter for one batch, shared by all workers.

    Usage:
        tracker = ProgressTracker.start(len(tools), label="Languages")
        tracker.advance()          # from any worker thread
        tracker.finish("Installation complete")

    The count is only reachable through advance()/snapshot(); the live bar is
    owned by this instance until finish().
    """

    def __init__(self, total: int, *, label: str = "", console: Optional[Console] = None) -> None:
        if total < 0:
            raise ValueError("total must be >= 0")
        self._total = int(total)
        self._completed = 0
        self._finished = False
        self._lock = threading.Lock()
        self.label = label
        self.console = console or Console(stderr=True)
        self._progress = Progress(
            TextColumn("[bold]{task.description}"),
            BarColumn(),
            MofNCompleteColumn(),
            TextColumn("eta"),
            TimeRemainingColumn(),
            console=self.console,
        )
        self._task: Optional[TaskID] = None

    @classmethod
    def start(cls, total: int, *, label: str = "", console: Optional[Console] = None) -> "ProgressTracker":
        tracker = cls(total, label=label, console=console)
        tracker._progress.start()
        tracker._task = tracker._progress.add_task(label or "Installing", total=tracker._total)
        logger.debug("Progress started: %s (%d units)", label, total)
        return tracker

    def advance(self) -> int:
        """Register one completed unit. Returns the new completed count."""
        with self._lock:
            if self._finished:
                raise RuntimeError("advance() called after finish()")
            if self._completed >= self._total:
                raise ValueError(f"progress already at {self._completed}/{self._total}")
            self._completed += 1
            completed = self._completed
            if self._task is not None:
                self._progress.update(self._task, completed=completed)
        return completed

    def snapshot(self) -> ProgressSnapshot:
        with self._lock:
            return ProgressSnapshot(completed=self._completed, total=self._total)

    @property
    def finished(self) -> bool:
        return self._finished

    def finish(self, message: str = "Installation complete") -> ProgressSnapshot:
        with self._lock:
            if self._finished:
                return ProgressSnapshot(completed=self._completed, total=self._total)
            self._finished = True
            snap = ProgressSnapshot(completed=self._completed, total=self._total)
        self._progress.stop()
        if message:
            self.console.print(f"{message} ({snap.completed}/{snap.total})")
        logger.info("Progress finished: %s %d/%d", self.label, snap.completed, snap.total)
        return snap
