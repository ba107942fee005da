"""Data models for build strategies and build outcomes."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from pathlib import Path

from pkt.models.package import Command


class BuildSystem(str, enum.Enum):
    MAKEFILE = "makefile"
    CONFIGURE = "configure"
    AUTOGEN = "autogen"
    CMAKE = "cmake"
    SETUP_PY = "setup.py"
    CARGO = "cargo"
    GO_MODULE = "go"
    GRADLE = "gradle"
    EXPLICIT = "explicit"
    UNRECOGNIZED = "unrecognized"


class ArtifactKind(str, enum.Enum):
    PREFIX = "prefix"  # build installs into the managed prefix itself
    SEARCH = "search"  # artifact left in the tree, must be located and copied
    GRADLE = "gradle"  # packaged archive under build/libs, wrapped by a launcher


@dataclass(frozen=True)
class Prerequisite:
    """A host tool the build needs beyond the package's own declared tools."""

    tool: str
    os_package: str


@dataclass(frozen=True)
class ArtifactHints:
    kind: ArtifactKind
    search_dirs: tuple[str, ...] = (".",)


@dataclass(frozen=True)
class BuildStrategy:
    """Detected (or explicit) build plan for one working tree."""

    system: BuildSystem
    commands: tuple[Command, ...] = ()
    artifact: ArtifactHints = field(default_factory=lambda: ArtifactHints(ArtifactKind.SEARCH))
    marker: str | None = None  # e.g. "CMakeLists.txt"
    prerequisites: tuple[Prerequisite, ...] = ()

    @property
    def recognized(self) -> bool:
        return self.system is not BuildSystem.UNRECOGNIZED


@dataclass
class BuildOutcome:
    """Result of running a strategy, consumed immediately by the orchestrator."""

    success: bool
    artifact: Path | None = None
    log: str = ""
    failed_command: Command | None = None
