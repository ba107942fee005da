"""Build driver — run a strategy's commands in order, stopping at the first failure."""

from __future__ import annotations

from pathlib import Path

import structlog

from pkt.host.deps import DependencyEnsurer
from pkt.models.build import (
    ArtifactHints,
    ArtifactKind,
    BuildOutcome,
    BuildStrategy,
    BuildSystem,
)
from pkt.models.package import Command
from pkt.runner import CommandRunner

log = structlog.get_logger(__name__)


def explicit_strategy(
    commands: tuple[Command, ...], search_dirs: tuple[str, ...] = (".",)
) -> BuildStrategy:
    """Wrap a registry-provided command sequence as a strategy.

    Explicit builds usually copy their output into the bin dir themselves,
    so the artifact is looked up there first.
    """
    return BuildStrategy(
        system=BuildSystem.EXPLICIT,
        commands=commands,
        artifact=ArtifactHints(ArtifactKind.PREFIX, search_dirs),
    )


class BuildDriver:
    def __init__(
        self,
        runner: CommandRunner,
        ensurer: DependencyEnsurer | None = None,
    ) -> None:
        self.runner = runner
        self.ensurer = ensurer

    def run(self, strategy: BuildStrategy, workdir: Path) -> BuildOutcome:
        if not strategy.recognized:
            return BuildOutcome(success=False, log="No recognized build system found\n")

        chunks: list[str] = []

        if strategy.prerequisites and self.ensurer is not None:
            for prereq in strategy.prerequisites:
                report = self.ensurer.ensure([prereq.tool], [prereq.os_package])
                chunks.append(f"# prerequisite {prereq.tool}: {report.summary()}\n")

        for command in strategy.commands:
            result = self.runner.run(command, cwd=workdir)
            chunks.append(result.describe())
            if not result.ok:
                log.error(
                    "build.step_failed",
                    build_system=strategy.system.value,
                    command=str(command),
                    returncode=result.returncode,
                )
                return BuildOutcome(success=False, log="".join(chunks), failed_command=command)
            log.debug("build.step_ok", command=str(command))

        log.info("build.completed", build_system=strategy.system.value, steps=len(strategy.commands))
        return BuildOutcome(success=True, log="".join(chunks))
