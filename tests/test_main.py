"""
Tests for the command line entry point.
"""

import logging

import pytest
import yaml

from devsetup.main import build_parser, main, run
from devsetup.outcomes import OutcomeStatus
from devsetup.profiles import ProfileKind
from tests.fakes import FakeBrew, ScriptedPrompter


@pytest.fixture(autouse=True)
def restore_logging():
    """main() configures the root logger; undo it after each test."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    for h in root.handlers:
        if h not in handlers:
            h.close()
    root.handlers = handlers
    root.setLevel(level)
    for attr in ("_devsetup_configured", "_devsetup_log_path"):
        if hasattr(root, attr):
            delattr(root, attr)


@pytest.fixture
def catalog_file(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        yaml.safe_dump({"basic": ["git", "curl"], "full": {"languages": ["rust", "python"]}, "customized": []}),
        encoding="utf-8",
    )
    return path


class TestRun:
    def test_basic_profile_end_to_end(self, catalog_file, quiet_console):
        fake = FakeBrew()
        reports = run(
            setup_type=ProfileKind.BASIC,
            config_path=str(catalog_file),
            console=quiet_console,
            prompter=ScriptedPrompter(),
            runner=fake,
        )
        assert reports[0].statuses == [OutcomeStatus.INSTALLED_OK, OutcomeStatus.INSTALLED_OK]
        output = quiet_console.file.getvalue()
        assert "git ✓" in output
        assert "curl ✓" in output

    def test_profile_chosen_interactively(self, catalog_file, quiet_console):
        fake = FakeBrew()
        prompter = ScriptedPrompter(choice=1)
        reports = run(config_path=str(catalog_file), console=quiet_console, prompter=prompter, runner=fake)

        assert [r.stage for r in reports] == ["Languages"]
        assert prompter.asked[0] == "Choose your setup type"

    def test_failures_are_printed(self, catalog_file, quiet_console):
        fake = FakeBrew(failing={"curl": "Error: download failed"})
        run(
            setup_type=ProfileKind.BASIC,
            config_path=str(catalog_file),
            console=quiet_console,
            prompter=ScriptedPrompter(),
            runner=fake,
        )
        output = quiet_console.file.getvalue()
        assert "curl ✗" in output
        assert "Error: download failed" in output
        assert "1 failed" in output

    def test_dry_run_installs_nothing(self, catalog_file, quiet_console):
        fake = FakeBrew(installed=["git"])
        reports = run(
            setup_type=ProfileKind.BASIC,
            config_path=str(catalog_file),
            console=quiet_console,
            prompter=ScriptedPrompter(),
            runner=fake,
            dry_run=True,
        )
        assert reports[0].statuses == [OutcomeStatus.INSTALLED_OK, OutcomeStatus.INSTALLED_OK]
        assert fake.probes() == []
        assert fake.installed == {"git"}


class TestMain:
    def test_parser_defaults(self):
        args = build_parser().parse_args([])
        assert args.setup_type is None
        assert args.command is None
        assert args.workers is None

    def test_parser_rejects_zero_workers(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["--workers", "0"])

    def test_malformed_config_exits_with_error(self, tmp_path, capsys):
        bad = tmp_path / "config.yaml"
        bad.write_text("basic: [git\n", encoding="utf-8")

        code = main(["--setup-type", "basic", "--config", str(bad), "--log", str(tmp_path / "devsetup.log")])

        assert code == 1
        assert "Configuration error" in capsys.readouterr().out

    def test_init_creates_link(self, tmp_path, monkeypatch):
        monkeypatch.setattr("platform.machine", lambda: "x86_64")
        bin_dir = tmp_path / "bin"
        bin_dir.mkdir()

        code = main(
            [
                "--log",
                str(tmp_path / "devsetup.log"),
                "init",
                "--target-dir",
                str(bin_dir),
                "--cli-config",
                str(tmp_path / "cli_config.json"),
            ]
        )

        assert code == 0
        assert (bin_dir / "devsetup").is_symlink()
