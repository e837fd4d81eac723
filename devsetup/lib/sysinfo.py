from __future__ import annotations

import logging
import platform
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


def normalize_arch(machine: str) -> str:
    m = machine.lower()
    return {
        "x86_64": "amd64",
        "amd64": "amd64",
        "aarch64": "arm64",
        "arm64": "arm64",
        "armv7l": "armhf",
        "armv6l": "armhf",
    }.get(m, m)


def _read_os_release() -> Dict[str, str]:
    """Parse /etc/os-release when present (Linux only)."""

    data: Dict[str, str] = {}
    try:
        text = Path("/etc/os-release").read_text(encoding="utf-8", errors="ignore")
    except OSError:
        return data
    for line in text.splitlines():
        if "=" not in line or line.startswith("#"):
            continue
        key, _, value = line.partition("=")
        data[key.strip()] = value.strip().strip('"')
    return data


def _distribution() -> Optional[str]:
    system = platform.system()
    if system == "Darwin":
        version = platform.mac_ver()[0]
        return f"macOS {version}" if version else "macOS"
    if system == "Linux":
        return _read_os_release().get("PRETTY_NAME")
    return None


def detect_system() -> Dict[str, Any]:
    """Best-effort OS family/version detection.

    Informational only: never raises, missing signals are reported as "unknown".
    """

    info: Dict[str, Any] = {
        "os_type": "unknown",
        "os_release": "unknown",
        "arch": "unknown",
        "distribution": None,
    }
    try:
        info["os_type"] = platform.system() or "unknown"
        info["os_release"] = platform.release() or "unknown"
        info["arch"] = normalize_arch(platform.machine())
        info["distribution"] = _distribution()
    except Exception:
        logger.debug("System detection incomplete", exc_info=True)

    logger.info(
        "System: os_type=%s os_release=%s arch=%s distribution=%s",
        info["os_type"],
        info["os_release"],
        info["arch"],
        info["distribution"],
    )
    return info
