"""Tests for CLI commands — no git, compilers or package managers needed (mocked)."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from pkt.cli import main
from pkt.exceptions import BuildError
from pkt.orchestrator import InstallResult
from pkt.progress import ProgressTracker
from pkt.source.sync import SyncMode


@pytest.fixture
def env(tmp_path: Path) -> dict[str, str]:
    return {
        "PKT_HOME": str(tmp_path / "home"),
        "PKT_REGISTRY": str(tmp_path / "registry.toml"),
        "PKT_LOG_LEVEL": "WARNING",
    }


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


def _result(success: bool, **kwargs) -> InstallResult:
    progress = ProgressTracker()
    progress.start_phase("validate")
    progress.complete_phase("validate")
    return InstallResult(package="nnn", success=success, progress=progress, **kwargs)


class TestInstall:
    def test_unknown_package_exits_1(self, runner: CliRunner, env):
        result = runner.invoke(main, ["install", "emacs"], env=env)
        assert result.exit_code == 1
        assert "Unknown package 'emacs'" in result.output

    def test_success_exit_0(self, runner: CliRunner, env, tmp_path: Path):
        with patch("pkt.cli.Installer.install", return_value=_result(True, artifact=tmp_path / "nnn")) as m:
            result = runner.invoke(main, ["install", "nnn"], env=env)
        assert result.exit_code == 0
        assert "Successfully installed nnn" in result.output
        assert "[+] validate" in result.output
        assert "Pipeline summary (" in result.output
        m.assert_called_once_with("nnn", SyncMode.REUSE)

    def test_update_mode_argument(self, runner: CliRunner, env):
        with patch("pkt.cli.Installer.install", return_value=_result(True)) as m:
            runner.invoke(main, ["install", "nnn", "update"], env=env)
        m.assert_called_once_with("nnn", SyncMode.UPDATE)

    def test_invalid_mode_rejected(self, runner: CliRunner, env):
        result = runner.invoke(main, ["install", "nnn", "latest"], env=env)
        assert result.exit_code == 2

    def test_failure_prints_reason_and_log_tail(self, runner: CliRunner, env):
        failed = _result(
            False,
            error=BuildError("Build failed for nnn: 'make' failed"),
            log="$ make  (exit 2)\nnnn.c:1: fatal error: curses.h: No such file\n",
        )
        with patch("pkt.cli.Installer.install", return_value=failed):
            result = runner.invoke(main, ["install", "nnn"], env=env)
        assert result.exit_code == 1
        assert "Install failed for nnn" in result.output
        assert "curses.h" in result.output

    def test_invalid_registry_file(self, runner: CliRunner, env):
        Path(env["PKT_REGISTRY"]).write_text("[packages.x\n")
        result = runner.invoke(main, ["install", "nnn"], env=env)
        assert result.exit_code == 1
        assert "Cannot read registry file" in result.output

    def test_invalid_build_timeout(self, runner: CliRunner, env):
        env["PKT_BUILD_TIMEOUT"] = "ten minutes"
        result = runner.invoke(main, ["list"], env=env)
        assert result.exit_code == 1
        assert "PKT_BUILD_TIMEOUT must be a number" in result.output
        assert "Traceback" not in result.output


class TestList:
    def test_empty(self, runner: CliRunner, env):
        result = runner.invoke(main, ["list"], env=env)
        assert result.exit_code == 0
        assert "No packages installed." in result.output

    def test_lists_ledger(self, runner: CliRunner, env):
        home = Path(env["PKT_HOME"])
        home.mkdir()
        (home / "installed.json").write_text(json.dumps({"installed": ["bat", "lf"]}))
        result = runner.invoke(main, ["list"], env=env)
        assert result.output.split() == ["bat", "lf"]


class TestAvailableAndInfo:
    def test_available_marks_installed(self, runner: CliRunner, env):
        home = Path(env["PKT_HOME"])
        home.mkdir()
        (home / "installed.json").write_text(json.dumps({"installed": ["bat"]}))
        result = runner.invoke(main, ["available"], env=env)
        assert result.exit_code == 0
        lines = result.output.splitlines()
        assert any(line.startswith("* bat") for line in lines)
        assert any(line.startswith("  nnn") for line in lines)

    def test_available_includes_user_registry(self, runner: CliRunner, env):
        Path(env["PKT_REGISTRY"]).write_text('[packages.fzf]\nrepo = "https://github.com/junegunn/fzf.git"\n')
        result = runner.invoke(main, ["available"], env=env)
        assert "fzf" in result.output

    def test_info(self, runner: CliRunner, env):
        result = runner.invoke(main, ["info", "bat"], env=env)
        assert result.exit_code == 0
        assert "https://github.com/sharkdp/bat.git" in result.output
        assert "cargo build --release" in result.output
        assert "Installed:   no" in result.output

    def test_info_unknown(self, runner: CliRunner, env):
        result = runner.invoke(main, ["info", "emacs"], env=env)
        assert result.exit_code == 1


class TestDetect:
    def test_shows_plan(self, runner: CliRunner, env, tmp_path: Path):
        src = tmp_path / "src"
        src.mkdir()
        (src / "CMakeLists.txt").write_text("")
        (src / "Makefile").write_text("install:\n\ttrue\n")
        result = runner.invoke(main, ["detect", str(src)], env=env)
        assert result.exit_code == 0
        assert "Build system: makefile (found Makefile)" in result.output
        assert f"make PREFIX={env['PKT_HOME']} install" in result.output

    def test_gradle_prerequisites_listed(self, runner: CliRunner, env, tmp_path: Path):
        (tmp_path / "build.gradle").write_text("")
        result = runner.invoke(main, ["detect", str(tmp_path)], env=env)
        assert "Requires:     java (package openjdk-17)" in result.output
        assert "Requires:     gradle (package gradle)" in result.output

    def test_unrecognized(self, runner: CliRunner, env, tmp_path: Path):
        result = runner.invoke(main, ["detect", str(tmp_path)], env=env)
        assert result.exit_code == 1
        assert "No recognized build system" in result.output
