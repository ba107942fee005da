"""Tests for PackageRegistry and user registry files."""

from __future__ import annotations

from pathlib import Path

import pytest

from pkt.exceptions import RegistryError, UnknownPackageError
from pkt.models.package import Command
from pkt.registry import BUILTIN_PACKAGES, PackageRegistry, load_registry_file


class TestBuiltinRegistry:
    def test_all_builtin_packages_present(self):
        registry = PackageRegistry.default()
        expected = {
            "termux-api", "termux-styling", "termux-boot", "nnn",
            "lazygit", "gotop", "lf", "croc", "glow", "bat",
        }
        assert {spec.name for spec in registry} == expected
        assert len(registry) == len(BUILTIN_PACKAGES)

    def test_names_are_unique(self):
        names = [spec.name for spec in BUILTIN_PACKAGES]
        assert len(names) == len(set(names))

    def test_auto_package(self):
        spec = PackageRegistry.default().get("nnn")
        assert spec.is_auto
        assert spec.os_packages == ("make", "libncurses", "readline")

    def test_explicit_package_has_argv_commands(self):
        spec = PackageRegistry.default().get("gotop")
        assert spec.build == (
            Command.of("go", "build", "-o", "gotop", "./cmd/gotop"),
            Command.of("cp", "gotop", "{bin}/"),
        )

    def test_unknown_package(self):
        with pytest.raises(UnknownPackageError) as exc:
            PackageRegistry.default().get("emacs")
        assert exc.value.name == "emacs"

    def test_sorted_iteration(self):
        registry = PackageRegistry.default()
        names = [s.name for s in registry]
        assert names == sorted(names)


class TestUserRegistryFile:
    def test_missing_file_is_ignored(self, tmp_path: Path):
        registry = PackageRegistry.default(tmp_path / "absent.toml")
        assert len(registry) == len(BUILTIN_PACKAGES)

    def test_adds_and_overrides(self, tmp_path: Path):
        path = tmp_path / "registry.toml"
        path.write_text(
            """
[packages.fzf]
repo = "https://github.com/junegunn/fzf.git"
build = ["go build -o fzf", ["cp", "fzf", "{bin}/"]]
tools = ["go"]
os_packages = ["golang"]

[packages.nnn]
repo = "https://example.com/nnn-fork.git"
"""
        )
        registry = PackageRegistry.default(path)
        fzf = registry.get("fzf")
        assert fzf.binary == "fzf"
        assert fzf.build == (
            Command.of("go", "build", "-o", "fzf"),
            Command.of("cp", "fzf", "{bin}/"),
        )
        assert fzf.tools == ("go",)
        nnn = registry.get("nnn")
        assert nnn.repo_url == "https://example.com/nnn-fork.git"
        assert nnn.is_auto

    def test_invalid_build_value(self, tmp_path: Path):
        path = tmp_path / "registry.toml"
        path.write_text('[packages.x]\nrepo = "u"\nbuild = "make all"\n')
        with pytest.raises(RegistryError, match="package 'x'"):
            load_registry_file(path)

    def test_missing_repo(self, tmp_path: Path):
        path = tmp_path / "registry.toml"
        path.write_text('[packages.x]\nbinary = "x"\n')
        with pytest.raises(RegistryError):
            load_registry_file(path)

    def test_unknown_key_rejected(self, tmp_path: Path):
        path = tmp_path / "registry.toml"
        path.write_text('[packages.x]\nrepo = "u"\nbranch = "main"\n')
        with pytest.raises(RegistryError):
            load_registry_file(path)

    def test_malformed_toml(self, tmp_path: Path):
        path = tmp_path / "registry.toml"
        path.write_text("[packages.x\n")
        with pytest.raises(RegistryError, match="Cannot read"):
            load_registry_file(path)

    @pytest.mark.parametrize("name", ['"../escape"', '"a/b"', '".."', '""'])
    def test_package_name_must_be_single_path_component(self, tmp_path: Path, name: str):
        path = tmp_path / "registry.toml"
        path.write_text(f'[packages.{name}]\nrepo = "u"\n')
        with pytest.raises(RegistryError, match="invalid package name"):
            load_registry_file(path)

    def test_binary_must_be_plain_file_name(self, tmp_path: Path):
        path = tmp_path / "registry.toml"
        path.write_text('[packages.x]\nrepo = "u"\nbinary = "../../.bashrc"\n')
        with pytest.raises(RegistryError, match="binary must be a plain file name"):
            load_registry_file(path)
