"""Dependency ensurer — install missing host tools through the OS package manager.

Policy is optimistic: refresh and per-package install failures are logged
and reported, never raised. A tool that really is missing makes the build
fail later on its own.
"""

from __future__ import annotations

import shutil
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

import structlog

from pkt.host.package_manager import PackageManager

log = structlog.get_logger(__name__)


@dataclass
class EnsureReport:
    missing: list[str] = field(default_factory=list)
    installed: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    index_refreshed: bool = False

    def summary(self) -> str:
        if not self.missing:
            return "all dependencies satisfied"
        parts = [f"missing: {', '.join(self.missing)}"]
        if not self.index_refreshed:
            parts.append("index refresh failed")
        if self.installed:
            parts.append(f"installed: {', '.join(self.installed)}")
        if self.failed:
            parts.append(f"failed: {', '.join(self.failed)}")
        return "; ".join(parts)


class DependencyEnsurer:
    def __init__(
        self,
        package_manager: PackageManager,
        which: Callable[[str], str | None] = shutil.which,
    ) -> None:
        self.package_manager = package_manager
        self._which = which

    def missing_tools(self, tools: Sequence[str]) -> list[str]:
        return [t for t in tools if self._which(t) is None]

    def ensure(self, tools: Sequence[str], os_packages: Sequence[str]) -> EnsureReport:
        """Install *os_packages* if any of *tools* is absent from PATH."""
        report = EnsureReport(missing=self.missing_tools(tools))
        if not report.missing:
            log.info("deps.satisfied", tools=list(tools))
            return report

        log.info("deps.missing", missing=report.missing)
        report.index_refreshed = self.package_manager.refresh_index()
        for pkg in os_packages:
            if self.package_manager.install(pkg):
                report.installed.append(pkg)
            else:
                report.failed.append(pkg)

        if report.failed:
            log.warning("deps.partial_failure", failed=report.failed)
        else:
            log.info("deps.installed", packages=report.installed)
        return report
