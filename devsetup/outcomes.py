from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Iterator, Optional, Tuple

from .errors import InstallFailure


class OutcomeStatus(str, Enum):
    ALREADY_PRESENT = "already_present"
    INSTALLED_OK = "installed_ok"
    INSTALL_FAILED = "install_failed"


@dataclass(frozen=True)
class InstallOutcome:
    """Result of one install attempt for one tool."""

    tool: str
    status: OutcomeStatus
    diagnostic: str = ""

    @classmethod
    def already_present(cls, tool: str) -> "InstallOutcome":
        return cls(tool=tool, status=OutcomeStatus.ALREADY_PRESENT)

    @classmethod
    def installed(cls, tool: str) -> "InstallOutcome":
        return cls(tool=tool, status=OutcomeStatus.INSTALLED_OK)

    @classmethod
    def failed(cls, tool: str, diagnostic: str) -> "InstallOutcome":
        return cls(tool=tool, status=OutcomeStatus.INSTALL_FAILED, diagnostic=diagnostic)

    @property
    def ok(self) -> bool:
        return self.status is not OutcomeStatus.INSTALL_FAILED


@dataclass(frozen=True)
class BatchReport:
    """Outcomes of one batch, in the order the tools were submitted."""

    stage: str
    outcomes: Tuple[InstallOutcome, ...] = ()
    cancelled: bool = False

    @classmethod
    def empty(cls, stage: str, *, cancelled: bool = False) -> "BatchReport":
        return cls(stage=stage, outcomes=(), cancelled=cancelled)

    def __len__(self) -> int:
        return len(self.outcomes)

    def __iter__(self) -> Iterator[InstallOutcome]:
        return iter(self.outcomes)

    @property
    def statuses(self) -> list[OutcomeStatus]:
        return [o.status for o in self.outcomes]

    @property
    def succeeded(self) -> int:
        return sum(1 for o in self.outcomes if o.ok)

    @property
    def failed(self) -> int:
        return len(self.outcomes) - self.succeeded

    @property
    def failures(self) -> list[InstallOutcome]:
        return [o for o in self.outcomes if not o.ok]

    def count(self, status: OutcomeStatus) -> int:
        return sum(1 for o in self.outcomes if o.status is status)

    def raise_for_failures(self) -> None:
        if self.failed:
            raise InstallFailure([o.tool for o in self.failures])


class EventKind(str, Enum):
    PROBED = "probed"
    STARTED = "started"
    ALREADY_PRESENT = "already_present"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    PROGRESS = "progress"


@dataclass(frozen=True)
class InstallEvent:
    kind: EventKind
    tool: Optional[str] = None
    detail: str = ""
    extra: dict = field(default_factory=dict)


EventSink = Callable[[InstallEvent], None]


def ignore_event(event: InstallEvent) -> None:
    return None
