from __future__ import annotations

import argparse
import logging
from typing import List, Optional

from rich.console import Console
from rich.markup import escape

from . import __version__
from .config_store import DEFAULT_CONFIG_PATH, ConfigStore
from .errors import DevSetupError
from .lib.command import CommandRunner, run_cmd
from .lib.pkgmgr import PackageInstaller
from .logging_utils import DEFAULT_LOG_PATH, configure_logging
from .orchestrator import InstallOrchestrator
from .outcomes import BatchReport
from .profiles import PROFILE_ORDER, ProfileKind, SetupProfileRunner
from .prompts import Prompter, RichPrompter
from .reporting import ConsoleReporter
from .selfinstall import CLI_CONFIG_PATH, DEFAULT_TARGET_DIR, install_command_link
from .stages import StageRunner

logger = logging.getLogger(__name__)


def run(
    *,
    setup_type: Optional[ProfileKind] = None,
    config_path: str = DEFAULT_CONFIG_PATH,
    workers: Optional[int] = None,
    dry_run: bool = False,
    verbose: bool = False,
    console: Optional[Console] = None,
    prompter: Optional[Prompter] = None,
    runner: CommandRunner = run_cmd,
) -> List[BatchReport]:
    """Load the configuration and run one setup profile."""

    console = console or Console()
    prompter = prompter or RichPrompter(console)

    store = ConfigStore(config_path)
    config = store.load()

    if setup_type is None:
        options = [k.display_name for k in PROFILE_ORDER]
        setup_type = PROFILE_ORDER[prompter.choose("Choose your setup type", options, default=0)]

    reporter = ConsoleReporter(console, verbose=verbose)
    installer = PackageInstaller(config.package_manager, runner=runner, dry_run=dry_run)
    orchestrator = InstallOrchestrator(
        installer,
        max_workers=workers or config.max_workers,
        console=console,
        on_event=reporter,
    )
    profile_runner = SetupProfileRunner(
        config,
        store=store,
        prompter=prompter,
        stage_runner=StageRunner(orchestrator),
        reporter=reporter,
        runner=runner,
        dry_run=dry_run,
    )
    return profile_runner.run(setup_type)


def _positive_int(value: str) -> int:
    n = int(value)
    if n < 1:
        raise argparse.ArgumentTypeError("must be >= 1")
    return n


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="devsetup", description="Sets up development environments")
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    p.add_argument(
        "-s",
        "--setup-type",
        choices=[k.value for k in ProfileKind],
        default=None,
        help="Profile to run (asked interactively when omitted)",
    )
    p.add_argument("-c", "--config", default=DEFAULT_CONFIG_PATH, help="Path to tool catalog (yaml|json)")
    p.add_argument("--log", default=DEFAULT_LOG_PATH, help="Path to log file")
    p.add_argument("-w", "--workers", type=_positive_int, default=None, help="Max concurrent installs")
    p.add_argument("--dry-run", action="store_true", help="Log package manager commands without running them")
    p.add_argument("-v", "--verbose", action="store_true", help="Show per-tool progress and info logs")

    sub = p.add_subparsers(dest="command")
    init = sub.add_parser("init", help="Install the devsetup command into your PATH")
    init.add_argument("--target-dir", default=DEFAULT_TARGET_DIR)
    init.add_argument("--cli-config", default=CLI_CONFIG_PATH)
    return p


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(
        log_path=args.log,
        console_level=logging.INFO if args.verbose else logging.ERROR,
    )
    console = Console()

    try:
        if args.command == "init":
            link = install_command_link(target_dir=args.target_dir, cli_config_path=args.cli_config)
            if link is None:
                console.print("devsetup is already installed.")
            else:
                console.print(f"devsetup command installed at {link}. You might need to restart your terminal.")
            return 0

        console.print("[cyan]Welcome to DevQuickSetup[/cyan]")
        reports = run(
            setup_type=ProfileKind(args.setup_type) if args.setup_type else None,
            config_path=args.config,
            workers=args.workers,
            dry_run=bool(args.dry_run),
            verbose=bool(args.verbose),
            console=console,
        )
    except DevSetupError as e:
        if not e.is_fatal:
            raise
        logger.exception("Setup aborted")
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        return 1
    except KeyboardInterrupt:
        console.print("\nInterrupted.")
        return 130

    failed = sum(r.failed for r in reports)
    if failed:
        console.print(f"[yellow]{failed} tool(s) failed to install; see the log for details.[/yellow]")
    return 0
