from __future__ import annotations

from enum import Enum


class ErrorCategory(str, Enum):
    """How far an error is allowed to travel.

    - FATAL stops the whole run with a clear message.
    - RECOVERABLE is handled where it happens (per tool) and never cancels
      sibling work or later stages.
    """

    FATAL = "fatal"
    RECOVERABLE = "recoverable"


class DevSetupError(Exception):
    category: ErrorCategory = ErrorCategory.FATAL

    @property
    def is_fatal(self) -> bool:
        return self.category is ErrorCategory.FATAL


class ProbeError(DevSetupError):
    """The package manager could not be queried (binary missing, permission denied)."""

    category = ErrorCategory.RECOVERABLE

    def __init__(self, tool: str, reason: str) -> None:
        super().__init__(f"Could not query package manager for {tool}: {reason}")
        self.tool = tool
        self.reason = reason


class InstallFailure(DevSetupError):
    category = ErrorCategory.RECOVERABLE

    def __init__(self, tools: list[str]) -> None:
        super().__init__(f"Failed to install: {', '.join(tools)}")
        self.tools = tools


class BootstrapFailure(DevSetupError):
    """The package manager itself could not be installed."""


class ConfigIOFailure(DevSetupError):
    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Configuration error ({path}): {reason}")
        self.path = path
        self.reason = reason


class SelfInstallError(DevSetupError):
    pass
