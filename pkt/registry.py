"""Package registry — one table of immutable PackageSpec records keyed by name.

The built-in table can be extended or overridden by a TOML file::

    [packages.fzf]
    repo = "https://github.com/junegunn/fzf.git"
    build = ["go build -o fzf", "cp fzf {bin}/"]
    binary = "fzf"
    tools = ["go"]
    os_packages = ["golang"]

``build`` is either ``"auto"`` or a list of commands. A command is a string
split with shell-like quoting (never run through a shell) or a list of argv
tokens. Tokens may use the ``{home}``, ``{bin}``, ``{src}`` and ``{name}``
placeholders.
"""

from __future__ import annotations

import tomllib
from collections.abc import Iterator
from pathlib import Path

import structlog
from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from pkt.exceptions import RegistryError, UnknownPackageError
from pkt.models.package import AUTO, Command, PackageSpec

log = structlog.get_logger(__name__)


def _cmds(*lines: str) -> tuple[Command, ...]:
    return tuple(Command.parse(line) for line in lines)


BUILTIN_PACKAGES: tuple[PackageSpec, ...] = (
    PackageSpec(
        name="termux-api",
        repo_url="https://github.com/termux/termux-api.git",
        binary="termux-api",
        tools=("make",),
        os_packages=("make",),
    ),
    PackageSpec(
        name="termux-styling",
        repo_url="https://github.com/termux/termux-styling.git",
        binary="termux-styling",
        tools=("make",),
        os_packages=("make",),
    ),
    PackageSpec(
        name="termux-boot",
        repo_url="https://github.com/termux/termux-boot.git",
        binary="termux-boot",
        tools=("make",),
        os_packages=("make",),
    ),
    PackageSpec(
        name="nnn",
        repo_url="https://github.com/jarun/nnn.git",
        binary="nnn",
        tools=("make",),
        os_packages=("make", "libncurses", "readline"),
    ),
    PackageSpec(
        name="lazygit",
        repo_url="https://github.com/jesseduffield/lazygit.git",
        binary="lazygit",
        build=_cmds("go build -o lazygit", "cp lazygit {bin}/"),
        tools=("go",),
        os_packages=("golang",),
    ),
    PackageSpec(
        name="gotop",
        repo_url="https://github.com/xxxserxxx/gotop.git",
        binary="gotop",
        build=_cmds("go build -o gotop ./cmd/gotop", "cp gotop {bin}/"),
        tools=("go",),
        os_packages=("golang",),
    ),
    PackageSpec(
        name="lf",
        repo_url="https://github.com/gokcehan/lf.git",
        binary="lf",
        build=_cmds("go build -o lf", "cp lf {bin}/"),
        tools=("go",),
        os_packages=("golang",),
    ),
    PackageSpec(
        name="croc",
        repo_url="https://github.com/schollz/croc.git",
        binary="croc",
        build=_cmds("go build -o croc", "cp croc {bin}/"),
        tools=("go",),
        os_packages=("golang",),
    ),
    PackageSpec(
        name="glow",
        repo_url="https://github.com/charmbracelet/glow.git",
        binary="glow",
        build=_cmds("go build -o glow", "cp glow {bin}/"),
        tools=("go",),
        os_packages=("golang",),
    ),
    PackageSpec(
        name="bat",
        repo_url="https://github.com/sharkdp/bat.git",
        binary="bat",
        build=_cmds("cargo build --release", "cp target/release/bat {bin}/"),
        tools=("cargo",),
        os_packages=("rust",),
    ),
)


def _is_file_name(value: str) -> bool:
    """A single path component, usable as a directory or file name."""
    return value not in ("", ".", "..") and "/" not in value and "\0" not in value


class RegistryEntrySchema(BaseModel):
    """One ``[packages.<name>]`` table of a user registry file."""

    model_config = ConfigDict(extra="forbid")

    repo: str
    build: str | list[str | list[str]] = AUTO
    binary: str | None = None
    tools: list[str] = []
    os_packages: list[str] = []

    @field_validator("repo", mode="before")
    @classmethod
    def _strip_whitespace(cls, v: str) -> str:
        return v.strip() if isinstance(v, str) else v

    @field_validator("build")
    @classmethod
    def _auto_or_commands(cls, v: str | list) -> str | list:
        if isinstance(v, str) and v != AUTO:
            raise ValueError(f"build must be '{AUTO}' or a list of commands")
        if isinstance(v, list) and not v:
            raise ValueError("build command list must not be empty")
        return v

    @field_validator("binary")
    @classmethod
    def _binary_is_file_name(cls, v: str | None) -> str | None:
        if v is not None and not _is_file_name(v):
            raise ValueError(f"binary must be a plain file name, got {v!r}")
        return v

    def to_spec(self, name: str) -> PackageSpec:
        build: tuple[Command, ...] | None = None
        if isinstance(self.build, list):
            build = tuple(
                Command.parse(cmd) if isinstance(cmd, str) else Command(tuple(cmd))
                for cmd in self.build
            )
        return PackageSpec(
            name=name,
            repo_url=self.repo,
            binary=self.binary or name,
            build=build,
            tools=tuple(self.tools),
            os_packages=tuple(self.os_packages),
        )


def load_registry_file(path: Path) -> list[PackageSpec]:
    """Parse and validate a user registry file."""
    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except (OSError, tomllib.TOMLDecodeError) as e:
        raise RegistryError(f"Cannot read registry file {path}: {e}") from e

    packages = data.get("packages", {})
    if not isinstance(packages, dict):
        raise RegistryError(f"{path}: 'packages' must be a table")

    specs = []
    for name, entry in packages.items():
        if not _is_file_name(name):
            raise RegistryError(f"{path}: invalid package name {name!r}")
        try:
            specs.append(RegistryEntrySchema.model_validate(entry).to_spec(name))
        except (ValidationError, ValueError) as e:
            raise RegistryError(f"{path}: invalid entry for package '{name}': {e}") from e
    return specs


class PackageRegistry:
    def __init__(self, specs: tuple[PackageSpec, ...] | list[PackageSpec] = ()) -> None:
        self._specs: dict[str, PackageSpec] = {}
        for spec in specs:
            self._specs[spec.name] = spec

    @classmethod
    def default(cls, user_file: Path | None = None) -> PackageRegistry:
        """Built-in table, overlaid with *user_file* when it exists."""
        registry = cls(BUILTIN_PACKAGES)
        if user_file is not None and user_file.is_file():
            overrides = load_registry_file(user_file)
            for spec in overrides:
                registry._specs[spec.name] = spec
            log.debug("registry.loaded", path=str(user_file), packages=len(overrides))
        return registry

    def get(self, name: str) -> PackageSpec:
        try:
            return self._specs[name]
        except KeyError:
            raise UnknownPackageError(name) from None

    def __iter__(self) -> Iterator[PackageSpec]:
        return iter(sorted(self._specs.values(), key=lambda s: s.name))

    def __len__(self) -> int:
        return len(self._specs)
