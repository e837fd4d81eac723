"""DevQuickSetup: bootstrap a development machine from a tool catalog.

Core design goals:
- One batch per stage, installed concurrently
- Per-tool failure isolation (a failed install never cancels its siblings)
- Idempotent installs (already-present tools are never reinstalled)
- Configuration passed in explicitly, never wiped on load
- Centralized logging
"""

__version__ = "1.0.0"

__all__ = ["__version__"]
