"""OS package manager collaborator: ``refresh-index`` and ``install <name>``."""

from __future__ import annotations

import shutil
from collections.abc import Callable

import structlog

from pkt.models.package import Command
from pkt.runner import CommandResult, CommandRunner

log = structlog.get_logger(__name__)


class PackageManager:
    """Drive the first available OS package manager out of an ordered list.

    Each primitive is tried against every available manager in order and
    stops at the first success, like ``pkg install -y x || apt install -y x``.
    """

    def __init__(
        self,
        runner: CommandRunner,
        managers: tuple[str, ...] = ("pkg", "apt"),
        which: Callable[[str], str | None] = shutil.which,
    ) -> None:
        self.runner = runner
        self.managers = managers
        self._which = which

    def available(self) -> list[str]:
        return [m for m in self.managers if self._which(m)]

    def _first_success(self, *args: str) -> CommandResult | None:
        last: CommandResult | None = None
        for manager in self.available():
            last = self.runner.run(Command.of(manager, *args))
            if last.ok:
                return last
        return last

    def refresh_index(self) -> bool:
        result = self._first_success("update", "-y")
        ok = result is not None and result.ok
        if not ok:
            log.warning("package_manager.refresh_failed", managers=list(self.managers))
        return ok

    def install(self, package: str) -> bool:
        result = self._first_success("install", "-y", package)
        ok = result is not None and result.ok
        if not ok:
            log.warning("package_manager.install_failed", os_package=package)
        return ok
