"""Data models for registry entries and explicit build commands."""

from __future__ import annotations

import shlex
from collections.abc import Mapping
from dataclasses import dataclass, field

AUTO = "auto"


@dataclass(frozen=True)
class Command:
    """One external program invocation: argv only, never a shell string."""

    argv: tuple[str, ...]

    def __post_init__(self) -> None:
        if not self.argv:
            raise ValueError("Command requires at least a program name")

    @classmethod
    def of(cls, *argv: str) -> Command:
        return cls(tuple(argv))

    @classmethod
    def parse(cls, text: str) -> Command:
        """Split *text* with shell-like quoting. Operators like ``&&`` are not interpreted."""
        return cls(tuple(shlex.split(text)))

    @property
    def program(self) -> str:
        return self.argv[0]

    def expand(self, values: Mapping[str, str]) -> Command:
        """Substitute ``{key}`` placeholders in every token."""
        expanded = []
        for token in self.argv:
            for key, value in values.items():
                token = token.replace("{" + key + "}", value)
            expanded.append(token)
        return Command(tuple(expanded))

    def __str__(self) -> str:
        return shlex.join(self.argv)


@dataclass(frozen=True)
class PackageSpec:
    """Registry record for one installable package."""

    name: str
    repo_url: str
    binary: str
    build: tuple[Command, ...] | None = None  # None means "auto"
    tools: tuple[str, ...] = field(default_factory=tuple)
    os_packages: tuple[str, ...] = field(default_factory=tuple)

    @property
    def is_auto(self) -> bool:
        return self.build is None

    @property
    def build_label(self) -> str:
        if self.build is None:
            return AUTO
        return " ; ".join(str(cmd) for cmd in self.build)
