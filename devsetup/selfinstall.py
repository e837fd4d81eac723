from __future__ import annotations

import json
import logging
import platform
import shutil
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .config_store import CONFIG_DIR
from .errors import SelfInstallError
from .lib.sysinfo import normalize_arch

logger = logging.getLogger(__name__)

CLI_CONFIG_PATH = str(CONFIG_DIR / "cli_config.json")
DEFAULT_TARGET_DIR = "/usr/local/bin"
SUPPORTED_ARCHES = {"amd64", "arm64"}


@dataclass(frozen=True)
class CLIConfig:
    default_command: str = "devsetup"


def load_or_init_cli_config(path: str = CLI_CONFIG_PATH) -> CLIConfig:
    """Load the CLI config, writing the default one on first use."""

    p = Path(path)
    try:
        if not p.exists():
            p.parent.mkdir(parents=True, exist_ok=True)
            config = CLIConfig()
            p.write_text(json.dumps({"default_command": config.default_command}, indent=2) + "\n", encoding="utf-8")
            logger.info("Wrote default CLI config to %s", p)
            return config
        data = json.loads(p.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        raise SelfInstallError(f"Could not read CLI config {p}: {e}") from e

    if not isinstance(data, dict):
        raise SelfInstallError(f"CLI config {p} must contain an object")
    return CLIConfig(default_command=str(data.get("default_command") or CLIConfig.default_command))


def current_executable() -> Path:
    argv0 = sys.argv[0] if sys.argv and sys.argv[0] else "devsetup"
    found = shutil.which(argv0)
    return Path(found or argv0).resolve()


def install_command_link(
    *,
    target_dir: str = DEFAULT_TARGET_DIR,
    cli_config_path: str = CLI_CONFIG_PATH,
    source: Optional[Path] = None,
    machine: Optional[str] = None,
) -> Optional[Path]:
    """Symlink the running devsetup executable into target_dir.

    Returns the link path, or None when a command of that name already exists.
    """

    cli_config = load_or_init_cli_config(cli_config_path)

    arch = normalize_arch(machine or platform.machine())
    logger.info("Detected CPU architecture: %s", arch)
    if arch not in SUPPORTED_ARCHES:
        raise SelfInstallError(f"Unsupported architecture: {arch}")

    target = Path(target_dir) / cli_config.default_command
    if target.exists() or target.is_symlink():
        logger.info("%s is already installed at %s", cli_config.default_command, target)
        return None

    src = source or current_executable()
    logger.info("Creating symlink %s -> %s", target, src)
    try:
        target.symlink_to(src)
    except PermissionError as e:
        raise SelfInstallError("Permission denied. Rerun with sudo.") from e
    except OSError as e:
        raise SelfInstallError(f"Could not create {target}: {e}") from e
    return target
