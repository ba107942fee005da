"""Build system detection from marker files.

A tree may hold several markers (a CMake project vendoring a Makefile-based
dependency, say), so the first rule in DETECTION_RULES wins. Order is fixed
and never depends on filesystem listing order.
"""

from __future__ import annotations

import re
from pathlib import Path

import structlog

from pkt.models.build import (
    ArtifactHints,
    ArtifactKind,
    BuildStrategy,
    BuildSystem,
    Prerequisite,
)
from pkt.models.package import Command

log = structlog.get_logger(__name__)

MAKEFILE_NAMES = ("Makefile", "makefile", "GNUmakefile")

# (marker files, build system), ordered by priority
DETECTION_RULES: list[tuple[tuple[str, ...], BuildSystem]] = [
    (MAKEFILE_NAMES, BuildSystem.MAKEFILE),
    (("configure",), BuildSystem.CONFIGURE),
    (("autogen.sh",), BuildSystem.AUTOGEN),
    (("CMakeLists.txt",), BuildSystem.CMAKE),
    (("setup.py",), BuildSystem.SETUP_PY),
    (("Cargo.toml",), BuildSystem.CARGO),
    (("go.mod",), BuildSystem.GO_MODULE),
    (("gradlew", "build.gradle", "build.gradle.kts"), BuildSystem.GRADLE),
]

_INSTALL_TARGET_RE = re.compile(r"^install:", re.MULTILINE)

_PREFIX_INSTALL = ArtifactHints(ArtifactKind.PREFIX, (".",))


def has_install_target(root: Path) -> bool:
    """True if any Makefile-family file in *root* defines ``install:`` at line start."""
    for name in MAKEFILE_NAMES:
        path = root / name
        if path.is_file():
            text = path.read_text(encoding="utf-8", errors="replace")
            if _INSTALL_TARGET_RE.search(text):
                return True
    return False


class BuildSystemDetector:
    """Pick exactly one build strategy for a source tree.

    Commands install into *prefix* where the build system understands an
    install prefix; everything else leaves its output in the tree for the
    artifact locator.
    """

    def __init__(self, prefix: Path, java_package: str = "openjdk-17") -> None:
        self.prefix = prefix
        self.java_package = java_package

    def detect(self, directory: Path, package_name: str | None = None) -> BuildStrategy:
        root = Path(directory)
        name = package_name or root.name

        for markers, system in DETECTION_RULES:
            for marker in markers:
                if (root / marker).is_file():
                    strategy = self._strategy_for(system, root, marker, name)
                    log.info("detect.matched", build_system=system.value, marker=marker)
                    return strategy

        log.warning("detect.unrecognized", path=str(root))
        return BuildStrategy(system=BuildSystem.UNRECOGNIZED)

    def _strategy_for(
        self, system: BuildSystem, root: Path, marker: str, name: str
    ) -> BuildStrategy:
        prefix = str(self.prefix)
        configure = (
            Command.of("./configure", f"--prefix={prefix}"),
            Command.of("make"),
            Command.of("make", "install"),
        )

        if system is BuildSystem.MAKEFILE:
            if has_install_target(root):
                return BuildStrategy(
                    system,
                    (Command.of("make"), Command.of("make", f"PREFIX={prefix}", "install")),
                    _PREFIX_INSTALL,
                    marker,
                )
            # Most Makefiles ignore PREFIX and leave the binary in the tree root.
            return BuildStrategy(
                system, (Command.of("make"),), ArtifactHints(ArtifactKind.SEARCH, (".",)), marker
            )

        if system is BuildSystem.CONFIGURE:
            return BuildStrategy(system, configure, _PREFIX_INSTALL, marker)

        if system is BuildSystem.AUTOGEN:
            return BuildStrategy(
                system, (Command.of("./autogen.sh"),) + configure, _PREFIX_INSTALL, marker
            )

        if system is BuildSystem.CMAKE:
            return BuildStrategy(
                system,
                (
                    Command.of("cmake", "-S", ".", "-B", "build", f"-DCMAKE_INSTALL_PREFIX={prefix}"),
                    Command.of("cmake", "--build", "build"),
                    Command.of("cmake", "--install", "build"),
                ),
                ArtifactHints(ArtifactKind.PREFIX, ("build",)),
                marker,
            )

        if system is BuildSystem.SETUP_PY:
            return BuildStrategy(
                system,
                (Command.of("pip", "install", "--prefix", prefix, "."),),
                ArtifactHints(ArtifactKind.PREFIX, ()),
                marker,
            )

        if system is BuildSystem.CARGO:
            return BuildStrategy(
                system,
                (Command.of("cargo", "build", "--release"),),
                ArtifactHints(ArtifactKind.SEARCH, ("target/release",)),
                marker,
            )

        if system is BuildSystem.GO_MODULE:
            return BuildStrategy(
                system,
                (Command.of("go", "build", "-o", name),),
                ArtifactHints(ArtifactKind.SEARCH, (".",)),
                marker,
            )

        if system is BuildSystem.GRADLE:
            prerequisites = [Prerequisite("java", self.java_package)]
            if (root / "gradlew").is_file():
                commands = (
                    Command.of("chmod", "+x", "gradlew"),
                    Command.of("./gradlew", "build", "--no-daemon"),
                )
            else:
                prerequisites.append(Prerequisite("gradle", "gradle"))
                commands = (Command.of("gradle", "build", "--no-daemon"),)
            return BuildStrategy(
                system,
                commands,
                ArtifactHints(ArtifactKind.GRADLE, ("build/native", "build/bin", "build/exe")),
                marker,
                tuple(prerequisites),
            )

        raise ValueError(f"No command plan for build system {system}")
