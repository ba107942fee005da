"""Tests for Settings and ManagedHome."""

from __future__ import annotations

from pathlib import Path

import pytest

from pkt.config import ManagedHome, Settings
from pkt.exceptions import ConfigError


class TestSettings:
    def test_defaults(self):
        settings = Settings.from_env({})
        assert settings.home.root == Path.home() / ".pkt"
        assert settings.registry_path == Path.home() / ".pkt" / "registry.toml"
        assert settings.build_timeout is None
        assert settings.package_managers == ("pkg", "apt")
        assert settings.java_runtime == "java"
        assert settings.java_package == "openjdk-17"

    def test_overrides(self, tmp_path: Path):
        settings = Settings.from_env(
            {
                "PKT_HOME": str(tmp_path),
                "PKT_REGISTRY": str(tmp_path / "custom.toml"),
                "PKT_BUILD_TIMEOUT": "600",
                "PKT_PACKAGE_MANAGERS": "apt, dnf ,",
                "PKT_JAVA": "/opt/jdk/bin/java",
                "PKT_JAVA_PACKAGE": "openjdk-21",
            }
        )
        assert settings.home.root == tmp_path
        assert settings.registry_path == tmp_path / "custom.toml"
        assert settings.build_timeout == 600.0
        assert settings.package_managers == ("apt", "dnf")
        assert settings.java_runtime == "/opt/jdk/bin/java"
        assert settings.java_package == "openjdk-21"

    def test_non_positive_timeout_disables(self):
        assert Settings.from_env({"PKT_BUILD_TIMEOUT": "0"}).build_timeout is None
        assert Settings.from_env({"PKT_BUILD_TIMEOUT": " "}).build_timeout is None

    def test_non_numeric_timeout_rejected(self):
        with pytest.raises(ConfigError, match="PKT_BUILD_TIMEOUT"):
            Settings.from_env({"PKT_BUILD_TIMEOUT": "10m"})


class TestManagedHome:
    def test_layout(self, tmp_path: Path):
        home = ManagedHome(tmp_path)
        assert home.bin_dir == tmp_path / "bin"
        assert home.src_dir == tmp_path / "src"
        assert home.ledger_path == tmp_path / "installed.json"
        assert home.working_tree("nnn") == tmp_path / "src" / "nnn"

    def test_ensure_creates_directories(self, tmp_path: Path):
        home = ManagedHome(tmp_path / "h")
        home.ensure()
        assert home.bin_dir.is_dir()
        assert home.src_dir.is_dir()
        assert home.lock_dir.is_dir()
        assert not home.ledger_path.exists()
