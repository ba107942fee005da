"""Source synchronizer — keep one git working tree per package."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from pathlib import Path

import structlog

from pkt.config import ManagedHome
from pkt.exceptions import SyncError
from pkt.models.package import Command, PackageSpec
from pkt.runner import CommandRunner

log = structlog.get_logger(__name__)


class SyncMode(str, enum.Enum):
    REUSE = "reuse"  # build an existing tree exactly as found, no pull
    UPDATE = "update"  # pull before building


class SyncAction(str, enum.Enum):
    CLONED = "cloned"
    PULLED = "pulled"
    REUSED = "reused"


@dataclass
class SyncResult:
    path: Path
    action: SyncAction
    output: str = ""


class SourceSynchronizer:
    def __init__(self, home: ManagedHome, runner: CommandRunner) -> None:
        self.home = home
        self.runner = runner

    def sync(self, spec: PackageSpec, mode: SyncMode = SyncMode.REUSE) -> SyncResult:
        """Make sure ``<src>/<name>`` exists and is at the revision *mode* asks for.

        Raises ``SyncError`` if the clone or pull fails.
        """
        target = self.home.working_tree(spec.name)

        if not target.exists():
            target.parent.mkdir(parents=True, exist_ok=True)
            log.info("sync.cloning", repo=spec.repo_url, path=str(target))
            result = self.runner.run(
                Command.of("git", "clone", "--depth", "1", "--", spec.repo_url, str(target)),
                cwd=target.parent,
            )
            if not result.ok:
                raise SyncError(
                    f"git clone of {spec.repo_url} failed (exit {result.returncode})",
                    result.output,
                )
            return SyncResult(target, SyncAction.CLONED, result.output)

        if mode is SyncMode.UPDATE:
            log.info("sync.pulling", path=str(target))
            result = self.runner.run(Command.of("git", "pull"), cwd=target)
            if not result.ok:
                raise SyncError(
                    f"git pull in {target} failed (exit {result.returncode})", result.output
                )
            return SyncResult(target, SyncAction.PULLED, result.output)

        log.warning(
            "sync.reusing_existing_source",
            path=str(target),
            mode=mode.value,
            hint="pass 'update' to pull the latest source first",
        )
        return SyncResult(target, SyncAction.REUSED)
