from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence

from ..errors import BootstrapFailure, ProbeError
from ..outcomes import EventKind, EventSink, InstallEvent, InstallOutcome, ignore_event
from .command import CommandRunner, run_cmd

logger = logging.getLogger(__name__)

HOMEBREW_INSTALL_URL = "https://raw.githubusercontent.com/Homebrew/install/HEAD/install.sh"

DIAGNOSTIC_LIMIT = 800

_ANSI_RE = re.compile(r"\x1b\[[0-?]*[ -/]*[@-~]")
_CONTROL_RE = re.compile(r"[\x00-\x08\x0b-\x1f\x7f]")


@dataclass(frozen=True)
class ManagerCommands:
    """Command shapes issued to the package manager.

    `query` and `install` are argv templates; every "{tool}" element is
    replaced by the package name.
    """

    name: str = "brew"
    version: List[str] = field(default_factory=lambda: ["brew", "--version"])
    query: List[str] = field(default_factory=lambda: ["brew", "list", "{tool}"])
    install: List[str] = field(default_factory=lambda: ["brew", "install", "{tool}"])
    bootstrap: List[str] = field(
        default_factory=lambda: [
            "/bin/bash",
            "-c",
            f'/bin/bash -c "$(curl -fsSL {HOMEBREW_INSTALL_URL})"',
        ]
    )

    @classmethod
    def from_mapping(cls, raw: Optional[Mapping[str, Any]]) -> "ManagerCommands":
        raw = raw or {}
        defaults = cls()
        kwargs: Dict[str, Any] = {"name": str(raw.get("name") or defaults.name)}
        for key in ("version", "query", "install", "bootstrap"):
            value = raw.get(key)
            if value is None:
                kwargs[key] = list(getattr(defaults, key))
                continue
            if not isinstance(value, list) or not value:
                raise ValueError(f"package_manager.{key} must be a non-empty list of arguments")
            kwargs[key] = [str(v) for v in value]
        return cls(**kwargs)

    def to_mapping(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "version": list(self.version),
            "query": list(self.query),
            "install": list(self.install),
            "bootstrap": list(self.bootstrap),
        }

    def render(self, template: Sequence[str], tool: str) -> List[str]:
        return [a.replace("{tool}", tool) for a in template]


def sanitize_diagnostic(text: str, *, limit: int = DIAGNOSTIC_LIMIT) -> str:
    """Make captured stderr safe to print on one terminal line block.

    Strips ANSI escapes and control characters; keeps the tail when too long,
    since package managers print the actual error last.
    """

    cleaned = _ANSI_RE.sub("", text or "")
    cleaned = cleaned.replace("\r\n", "\n").replace("\r", "\n")
    cleaned = _CONTROL_RE.sub("", cleaned)
    cleaned = "\n".join(line.rstrip() for line in cleaned.strip().splitlines() if line.strip())
    if len(cleaned) > limit:
        cleaned = "..." + cleaned[-(limit - 3):]
    return cleaned


class PackageProbe:
    def __init__(self, commands: ManagerCommands, *, runner: CommandRunner = run_cmd, dry_run: bool = False) -> None:
        self.commands = commands
        self.runner = runner
        self.dry_run = dry_run

    def is_present(self, tool: str) -> bool:
        """Return True if the package manager reports `tool` as installed.

        A non-zero exit is a normal "not installed" answer. Only failures to
        run the query at all raise ProbeError.
        """
        if self.dry_run:
            # Plan every install in dry-run.
            return False
        argv = self.commands.render(self.commands.query, tool)
        try:
            r = self.runner(argv, check=False)
        except OSError as e:
            raise ProbeError(tool, str(e)) from e
        return r.returncode == 0


class PackageInstaller:
    def __init__(
        self,
        commands: ManagerCommands,
        *,
        probe: Optional[PackageProbe] = None,
        runner: CommandRunner = run_cmd,
        dry_run: bool = False,
    ) -> None:
        self.commands = commands
        self.runner = runner
        self.dry_run = dry_run
        self.probe = probe or PackageProbe(commands, runner=runner, dry_run=dry_run)

    def install(self, tool: str, *, on_event: EventSink = ignore_event) -> InstallOutcome:
        try:
            present = self.probe.is_present(tool)
        except ProbeError as e:
            logger.warning("%s; attempting install anyway", e)
            present = False
        on_event(InstallEvent(EventKind.PROBED, tool, "present" if present else "absent"))

        if present:
            logger.info("%s is already installed", tool)
            on_event(InstallEvent(EventKind.ALREADY_PRESENT, tool))
            return InstallOutcome.already_present(tool)

        on_event(InstallEvent(EventKind.STARTED, tool))
        argv = self.commands.render(self.commands.install, tool)
        try:
            r = self.runner(argv, check=False, dry_run=self.dry_run)
        except OSError as e:
            diagnostic = sanitize_diagnostic(str(e))
            logger.warning("Install of %s could not start: %s", tool, diagnostic)
            on_event(InstallEvent(EventKind.FAILED, tool, diagnostic))
            return InstallOutcome.failed(tool, diagnostic)

        if r.returncode == 0:
            logger.info("Installed %s", tool)
            on_event(InstallEvent(EventKind.SUCCEEDED, tool))
            return InstallOutcome.installed(tool)

        diagnostic = sanitize_diagnostic(r.stderr) or f"exit status {r.returncode}"
        logger.warning("Install of %s failed (%s): %s", tool, r.returncode, diagnostic)
        on_event(InstallEvent(EventKind.FAILED, tool, diagnostic, {"returncode": r.returncode}))
        return InstallOutcome.failed(tool, diagnostic)


def manager_available(commands: ManagerCommands, *, runner: CommandRunner = run_cmd) -> bool:
    try:
        r = runner(commands.version, check=False)
    except OSError as e:
        logger.info("%s version probe failed: %s", commands.name, e)
        return False
    return r.returncode == 0


def ensure_package_manager(
    commands: ManagerCommands,
    *,
    runner: CommandRunner = run_cmd,
    dry_run: bool = False,
) -> bool:
    """Install the package manager itself if its version probe fails.

    Returns True when a bootstrap ran. Raises BootstrapFailure if the install
    script fails or the manager is still unusable afterwards.
    """

    if manager_available(commands, runner=runner):
        logger.info("%s is already installed", commands.name)
        return False

    logger.warning("%s is not installed, attempting to install it", commands.name)
    try:
        r = runner(commands.bootstrap, check=False, capture=False, dry_run=dry_run)
    except OSError as e:
        raise BootstrapFailure(f"Failed to install {commands.name}: {e}") from e
    if r.returncode != 0:
        raise BootstrapFailure(f"Failed to install {commands.name} (exit status {r.returncode})")

    if not dry_run and not manager_available(commands, runner=runner):
        raise BootstrapFailure(f"{commands.name} is still unavailable after running its installer")
    return True
