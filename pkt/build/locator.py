"""Locate a build's deliverable and make it reachable from the managed bin dir."""

from __future__ import annotations

import os
import shlex
import shutil
from pathlib import Path

import structlog

from pkt.exceptions import ArtifactNotFoundError, BuildError
from pkt.models.build import ArtifactKind, BuildStrategy

log = structlog.get_logger(__name__)

# Interpreted-script sources are almost never the compiled deliverable.
SCRIPT_EXTENSIONS = frozenset({".sh", ".bash", ".py", ".pl", ".rb"})

GRADLE_ARCHIVE_DIR = "build/libs"
_GRADLE_SUBARCHIVE_SUFFIXES = ("-sources.jar", "-javadoc.jar")

_SKIP_DIRS = {".git", ".hg", ".svn"}

_LAUNCHER_TEMPLATE = """#!/bin/sh
exec {runtime} -jar {archive} "$@"
"""


def _is_candidate_executable(path: Path) -> bool:
    return (
        path.is_file()
        and not path.is_symlink()
        and path.suffix.lower() not in SCRIPT_EXTENSIONS
        and os.access(path, os.X_OK)
    )


def find_gradle_archive(root: Path) -> Path | None:
    """First packaged archive under ``build/libs``, skipping sources/javadoc jars."""
    libs = root / GRADLE_ARCHIVE_DIR
    if not libs.is_dir():
        return None
    for jar in sorted(libs.rglob("*.jar")):
        if jar.is_file() and not jar.name.endswith(_GRADLE_SUBARCHIVE_SUFFIXES):
            return jar
    return None


def render_launcher(runtime: str, archive: Path) -> str:
    return _LAUNCHER_TEMPLATE.format(
        runtime=shlex.quote(runtime), archive=shlex.quote(str(archive))
    )


class ArtifactLocator:
    """
    Search priority for a generic tree, stopping at the first hit:
      1. ``<root>/<expected_name>``
      2. any executable, non-script file within two directory levels of root

    Gradle trees look for a packaged archive first and wrap it in a launcher.
    """

    def __init__(self, bin_dir: Path, java_runtime: str = "java") -> None:
        self.bin_dir = bin_dir
        self.java_runtime = java_runtime

    def locate(self, search_root: Path, expected_name: str) -> Path | None:
        root = Path(search_root)
        if not root.is_dir():
            return None

        exact = root / expected_name
        if exact.is_file():
            log.debug("locate.exact", path=str(exact))
            return exact

        # Breadth-first, sorted: root files first, then one level of subdirs.
        level = [root]
        for _ in range(2):
            subdirs: list[Path] = []
            for directory in level:
                for entry in sorted(directory.iterdir()):
                    if entry.is_dir() and not entry.is_symlink():
                        if entry.name not in _SKIP_DIRS:
                            subdirs.append(entry)
                    elif _is_candidate_executable(entry):
                        log.debug("locate.executable", path=str(entry))
                        return entry
            level = subdirs

        return None

    def install_binary(self, artifact: Path) -> Path:
        """Copy *artifact* into the bin dir under its own name, keeping its mode."""
        dest = self.bin_dir / artifact.name
        if dest.exists() and dest.resolve() == artifact.resolve():
            return dest
        try:
            self.bin_dir.mkdir(parents=True, exist_ok=True)
            shutil.copy2(artifact, dest)
        except OSError as e:
            raise BuildError(f"Cannot install {artifact.name} into {self.bin_dir}: {e}") from e
        log.info("artifact.installed", source=str(artifact), dest=str(dest))
        return dest

    def install_archive(self, archive: Path, launcher_name: str) -> Path:
        """Copy *archive* into the bin dir and write an executable launcher for it."""
        installed = self.bin_dir / archive.name
        launcher = self.bin_dir / launcher_name
        try:
            self.bin_dir.mkdir(parents=True, exist_ok=True)
            shutil.copy2(archive, installed)
            launcher.write_text(render_launcher(self.java_runtime, installed.resolve()))
            launcher.chmod(0o755)
        except OSError as e:
            raise BuildError(f"Cannot install {archive.name} into {self.bin_dir}: {e}") from e
        log.info("artifact.launcher_written", archive=str(installed), launcher=str(launcher))
        return launcher

    def _search_and_install(
        self, workdir: Path, dirs: tuple[str, ...], expected_name: str
    ) -> Path | None:
        for rel in dirs:
            found = self.locate(workdir / rel, expected_name)
            if found is not None:
                return self.install_binary(found)
        return None

    def resolve(self, strategy: BuildStrategy, workdir: Path, expected_name: str) -> Path:
        """Return the installed artifact path for a finished build.

        Raises ``ArtifactNotFoundError`` when nothing plausible exists.
        """
        hints = strategy.artifact
        artifact: Path | None = None

        if hints.kind is ArtifactKind.GRADLE:
            archive = find_gradle_archive(workdir)
            if archive is not None:
                artifact = self.install_archive(archive, expected_name)
            else:
                artifact = self._search_and_install(workdir, hints.search_dirs, expected_name)
        elif hints.kind is ArtifactKind.PREFIX:
            installed = self.bin_dir / expected_name
            if installed.is_file():
                artifact = installed
            else:
                artifact = self._search_and_install(workdir, hints.search_dirs, expected_name)
        else:
            artifact = self._search_and_install(workdir, hints.search_dirs, expected_name)

        if artifact is None:
            searched = ", ".join(hints.search_dirs) or "(none)"
            raise ArtifactNotFoundError(
                f"Build succeeded but no artifact for '{expected_name}' was found "
                f"(kind={hints.kind.value}, searched: {searched})"
            )
        return artifact
