from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple

from .orchestrator import InstallOrchestrator
from .outcomes import BatchReport

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Stage:
    """A named group of tools installed together."""

    label: str
    tools: Tuple[str, ...]

    @classmethod
    def of(cls, label: str, tools: Sequence[str]) -> "Stage":
        return cls(label=label, tools=tuple(tools))

    def __len__(self) -> int:
        return len(self.tools)


# Returns indices into stage.tools, or None when the user cancelled.
SelectionFn = Callable[[Stage], Optional[Sequence[int]]]


def select_all(stage: Stage) -> List[int]:
    return list(range(len(stage.tools)))


def resolve_selection(stage: Stage, indices: Sequence[int]) -> List[str]:
    n = len(stage.tools)
    tools: List[str] = []
    for i in indices:
        if not 0 <= i < n:
            raise ValueError(f"Selection index {i} out of range for stage {stage.label!r} ({n} tools)")
        tools.append(stage.tools[i])
    return tools


class StageRunner:
    def __init__(self, orchestrator: InstallOrchestrator) -> None:
        self.orchestrator = orchestrator

    def run_stage(self, stage: Stage, customize: bool, selector: SelectionFn = select_all) -> BatchReport:
        """Narrow the stage's tools (optionally) and install the result as one batch."""

        if customize:
            indices = selector(stage)
            if indices is None:
                logger.info("Stage %s: selection cancelled, nothing installed", stage.label)
                return BatchReport.empty(stage.label, cancelled=True)
        else:
            indices = select_all(stage)

        tools = resolve_selection(stage, indices)
        logger.info("Stage %s: %d of %d tool(s) selected", stage.label, len(tools), len(stage.tools))
        return self.orchestrator.run_batch(tools, label=stage.label)
