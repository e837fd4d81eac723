from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Dict, List, Optional

from rich.markup import escape

from .config_store import ConfigStore, SetupConfig
from .errors import ConfigIOFailure
from .lib.command import CommandRunner, run_cmd
from .lib.pkgmgr import ensure_package_manager
from .lib.sysinfo import detect_system
from .outcomes import BatchReport
from .prompts import Prompter
from .reporting import ConsoleReporter
from .stages import Stage, StageRunner

logger = logging.getLogger(__name__)


class ProfileKind(str, Enum):
    BASIC = "basic"
    FULL = "full"
    CUSTOMIZED = "customized"

    @property
    def display_name(self) -> str:
        return self.value.capitalize()


PROFILE_ORDER = [ProfileKind.BASIC, ProfileKind.FULL, ProfileKind.CUSTOMIZED]


class SetupProfileRunner:
    """Sequences the stages of one setup profile.

    The configuration value is passed in by the caller; the runner only writes
    back through the store (customized profile).
    """

    def __init__(
        self,
        config: SetupConfig,
        *,
        store: ConfigStore,
        prompter: Prompter,
        stage_runner: StageRunner,
        reporter: Optional[ConsoleReporter] = None,
        runner: CommandRunner = run_cmd,
        dry_run: bool = False,
    ) -> None:
        self.config = config
        self.store = store
        self.prompter = prompter
        self.stage_runner = stage_runner
        self.reporter = reporter
        self.runner = runner
        self.dry_run = dry_run
        self.system: Dict[str, Any] = {}

    def preflight(self) -> None:
        """Detect the OS (informational) and make sure the package manager exists.

        Raises BootstrapFailure when the package manager cannot be installed.
        """
        self.system = detect_system()
        if self.reporter:
            self.reporter.console.print(
                f"OS Type: {self.system['os_type']}, OS Release: {self.system['os_release']}"
            )
        ensure_package_manager(self.config.package_manager, runner=self.runner, dry_run=self.dry_run)

    def run(self, kind: ProfileKind) -> List[BatchReport]:
        self.preflight()
        logger.info("Running %s setup", kind.value)
        if kind is ProfileKind.BASIC:
            return [self.run_basic()]
        if kind is ProfileKind.FULL:
            return self.run_full()
        if kind is ProfileKind.CUSTOMIZED:
            return [self.run_customized()]
        raise ValueError(f"Unknown profile: {kind!r}")

    def _dispatch(self, stage: Stage) -> BatchReport:
        if self.reporter:
            self.reporter.stage_header(stage.label)
        report = self.stage_runner.orchestrator.run_batch(list(stage.tools), label=stage.label)
        if self.reporter:
            self.reporter.summary(report)
        return report

    def run_basic(self) -> BatchReport:
        return self._dispatch(Stage.of("Basic", self.config.basic))

    def run_full(self) -> List[BatchReport]:
        reports: List[BatchReport] = []
        for stage in self.config.stages:
            if self.reporter:
                self.reporter.stage_header(stage.label)
            customize = self.prompter.confirm(
                f"Do you want to customize the tools in this stage for {stage.label}?"
            )
            report = self.stage_runner.run_stage(stage, customize, self.prompter.select)
            if self.reporter:
                self.reporter.summary(report)
            reports.append(report)
        return reports

    def collect_custom_tools(self) -> List[str]:
        tools: List[str] = []
        while True:
            tool = self.prompter.ask_text("Enter a tool to install (leave empty to finish)").strip()
            if not tool:
                break
            tools.append(tool)
        return tools

    def run_customized(self) -> BatchReport:
        tools = self.collect_custom_tools()
        self.config = self.config.with_customized(tools)
        try:
            self.store.save(self.config)
        except ConfigIOFailure as e:
            # The list is still installed; only persisting it failed.
            logger.error("%s", e)
            if self.reporter:
                self.reporter.console.print(f"[yellow]Could not save customized tools:[/yellow] {escape(str(e))}")
        return self._dispatch(Stage.of("Customized", tools))
