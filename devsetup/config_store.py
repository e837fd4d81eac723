from __future__ import annotations

import copy
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .errors import ConfigIOFailure
from .lib.pkgmgr import ManagerCommands
from .stages import Stage

logger = logging.getLogger(__name__)

CONFIG_DIR = Path.home() / ".dev_quick_setup"
DEFAULT_CONFIG_PATH = str(CONFIG_DIR / "config.yaml")
CATALOG_PATH = Path(__file__).resolve().parent / "manifests" / "catalog.yaml"


def stage_label(key: str) -> str:
    """Display label for a catalog stage key ("text_editors" -> "Text Editors")."""
    if "_" in key or key.islower():
        return key.replace("_", " ").strip().title()
    return key


def _str_list(value: Any, where: str) -> List[str]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValueError(f"{where} must be a list of tool names")
    return [str(v).strip() for v in value if str(v).strip()]


@dataclass(frozen=True)
class SetupConfig:
    raw: Dict[str, Any]

    @property
    def basic(self) -> List[str]:
        return _str_list(self.raw.get("basic"), "basic")

    @property
    def full(self) -> Dict[str, List[str]]:
        full = self.raw.get("full") or {}
        if not isinstance(full, dict):
            raise ValueError("full must be a mapping of stage name to tool list")
        return {str(k): _str_list(v, f"full.{k}") for k, v in full.items()}

    @property
    def stages(self) -> List[Stage]:
        return [Stage.of(stage_label(k), tools) for k, tools in self.full.items()]

    @property
    def customized(self) -> List[str]:
        return _str_list(self.raw.get("customized"), "customized")

    @property
    def package_manager(self) -> ManagerCommands:
        return ManagerCommands.from_mapping(self.raw.get("package_manager"))

    @property
    def max_workers(self) -> Optional[int]:
        value = self.raw.get("max_workers")
        if value is None:
            return None
        workers = int(value)
        if workers < 1:
            raise ValueError("max_workers must be >= 1")
        return workers

    def with_customized(self, tools: List[str]) -> "SetupConfig":
        raw = copy.deepcopy(self.raw)
        raw["customized"] = list(tools)
        logger.info("Updating customized tools: %s", tools)
        return SetupConfig(raw=raw)

    def validate(self) -> "SetupConfig":
        # Malformed data fails at load time, not mid-run.
        for name in ("basic", "stages", "customized", "package_manager", "max_workers"):
            getattr(self, name)
        return self


def _detect_format(path: Path) -> str:
    ext = path.suffix.lower().lstrip(".")
    if ext in {"json", "yaml", "yml"}:
        return ext
    return "yaml"


def _read_mapping(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if _detect_format(path) == "json":
        data = json.loads(text)
    else:
        data = yaml.safe_load(text) or {}
    if not isinstance(data, dict):
        raise ValueError(f"expected a mapping/object, got {type(data).__name__}")
    return data


def load_catalog() -> Dict[str, Any]:
    """The bundled default tool catalog."""
    try:
        return _read_mapping(CATALOG_PATH)
    except (OSError, ValueError, yaml.YAMLError) as e:
        raise ConfigIOFailure(str(CATALOG_PATH), str(e)) from e


class ConfigStore:
    """Reads and writes the user's configuration file.

    A missing file is seeded from the bundled catalog. An existing file is
    read as-is and never removed or reset.
    """

    def __init__(self, path: str = DEFAULT_CONFIG_PATH) -> None:
        self.path = Path(path).expanduser()

    def load(self) -> SetupConfig:
        if not self.path.exists():
            logger.info("No configuration at %s, seeding from default catalog", self.path)
            config = SetupConfig(raw=load_catalog()).validate()
            self.save(config)
            return config

        try:
            raw = _read_mapping(self.path)
            config = SetupConfig(raw=raw).validate()
        except (OSError, ValueError, TypeError, yaml.YAMLError) as e:
            raise ConfigIOFailure(str(self.path), str(e)) from e
        logger.info("Loaded configuration from %s", self.path)
        return config

    def save(self, config: SetupConfig) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            if _detect_format(self.path) == "json":
                text = json.dumps(config.raw, indent=2) + "\n"
            else:
                text = yaml.safe_dump(config.raw, sort_keys=False)
            self.path.write_text(text, encoding="utf-8")
        except (OSError, yaml.YAMLError, TypeError) as e:
            raise ConfigIOFailure(str(self.path), str(e)) from e
        logger.info("Config saved to %s", self.path)
