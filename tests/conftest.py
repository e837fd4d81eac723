"""
Pytest configuration and shared fixtures for devsetup tests.
"""

import io

import pytest
from rich.console import Console

from devsetup.config_store import ConfigStore, SetupConfig
from devsetup.lib.pkgmgr import ManagerCommands, PackageInstaller
from devsetup.orchestrator import InstallOrchestrator
from devsetup.stages import StageRunner
from tests.fakes import FakeBrew


@pytest.fixture
def quiet_console():
    """A rich console writing to memory instead of the terminal."""
    return Console(file=io.StringIO(), force_terminal=False, color_system=None, width=120)


@pytest.fixture
def commands():
    return ManagerCommands()


@pytest.fixture
def brew():
    return FakeBrew()


@pytest.fixture
def make_orchestrator(commands, quiet_console):
    """Build an orchestrator wired to a fake package manager."""

    def _make(fake, *, max_workers=4, on_event=None):
        installer = PackageInstaller(commands, runner=fake)
        kwargs = {"max_workers": max_workers, "console": quiet_console}
        if on_event is not None:
            kwargs["on_event"] = on_event
        return InstallOrchestrator(installer, **kwargs)

    return _make


@pytest.fixture
def make_stage_runner(make_orchestrator):
    def _make(fake, **kwargs):
        return StageRunner(make_orchestrator(fake, **kwargs))

    return _make


@pytest.fixture
def config_path(tmp_path):
    return tmp_path / "dev_quick_setup" / "config.yaml"


@pytest.fixture
def store(config_path):
    return ConfigStore(str(config_path))


@pytest.fixture
def sample_config():
    return SetupConfig(
        raw={
            "basic": ["git", "curl"],
            "full": {
                "languages": ["rust", "python"],
                "text_editors": ["neovim"],
            },
            "customized": [],
        }
    )
