"""Installation orchestrator — the 7-phase install pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

import structlog

from pkt.build.detector import BuildSystemDetector
from pkt.build.driver import BuildDriver, explicit_strategy
from pkt.build.locator import ArtifactLocator
from pkt.config import Settings
from pkt.exceptions import BuildError, DetectionError, PktError
from pkt.host.deps import DependencyEnsurer
from pkt.host.package_manager import PackageManager
from pkt.ledger import InstalledLedger
from pkt.lock import package_lock
from pkt.models.build import BuildStrategy
from pkt.models.package import PackageSpec
from pkt.progress import ProgressTracker
from pkt.registry import PackageRegistry
from pkt.runner import CommandRunner
from pkt.source.sync import SourceSynchronizer, SyncMode

log = structlog.get_logger(__name__)


@dataclass
class InstallResult:
    """Orchestrator return value."""

    package: str
    success: bool
    artifact: Path | None = None
    strategy: BuildStrategy | None = None
    error: PktError | None = None
    log: str = ""
    progress: ProgressTracker = field(default_factory=ProgressTracker)

    @property
    def exit_code(self) -> int:
        return 0 if self.success else 1


class Installer:
    """
    Orchestrate one package install:

    Phase 1: validate      registry lookup (no side effects on failure)
    Phase 2: dependencies  DependencyEnsurer.ensure() — never fatal
    Phase 3: sync          SourceSynchronizer.sync()
    Phase 4: detect        BuildSystemDetector.detect() (skipped for explicit builds)
    Phase 5: build         BuildDriver.run()
    Phase 6: locate        ArtifactLocator.resolve()
    Phase 7: record        InstalledLedger.add()

    Phases 3-6 run under a per-package lock. Any failure is reported once;
    there is no retry and no rollback of files already copied.
    """

    def __init__(
        self,
        settings: Settings,
        registry: PackageRegistry,
        ensurer: DependencyEnsurer,
        synchronizer: SourceSynchronizer,
        detector: BuildSystemDetector,
        driver: BuildDriver,
        locator: ArtifactLocator,
        ledger: InstalledLedger,
    ) -> None:
        self.settings = settings
        self.registry = registry
        self.ensurer = ensurer
        self.synchronizer = synchronizer
        self.detector = detector
        self.driver = driver
        self.locator = locator
        self.ledger = ledger

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        registry: PackageRegistry | None = None,
        runner: CommandRunner | None = None,
    ) -> Installer:
        home = settings.home
        if registry is None:
            registry = PackageRegistry.default(settings.registry_path)
        # Git and the package manager run without the build timeout.
        host_runner = runner or CommandRunner()
        build_runner = runner or CommandRunner(timeout=settings.build_timeout)
        ensurer = DependencyEnsurer(PackageManager(host_runner, settings.package_managers))
        return cls(
            settings=settings,
            registry=registry,
            ensurer=ensurer,
            synchronizer=SourceSynchronizer(home, host_runner),
            detector=BuildSystemDetector(home.root, java_package=settings.java_package),
            driver=BuildDriver(build_runner, ensurer),
            locator=ArtifactLocator(home.bin_dir, java_runtime=settings.java_runtime),
            ledger=InstalledLedger(home.ledger_path),
        )

    def install(self, name: str, mode: SyncMode = SyncMode.REUSE) -> InstallResult:
        progress = ProgressTracker()
        result = InstallResult(package=name, success=False, progress=progress)
        structlog.contextvars.bind_contextvars(package=name)
        log.info("install.started", mode=mode.value)
        try:
            self._run(name, mode, result)
        except PktError as e:
            self._fail(result, e)
        except OSError as e:
            # Filesystem trouble outside a build step (home, lock dir).
            wrapped = PktError(f"{type(e).__name__}: {e}")
            wrapped.__cause__ = e
            self._fail(result, wrapped)
        finally:
            structlog.contextvars.unbind_contextvars("package")
        return result

    def _fail(self, result: InstallResult, e: PktError) -> None:
        current = result.progress.current
        if current is not None:
            result.progress.fail_phase(current.phase, str(e))
        result.error = e
        extra = getattr(e, "log", "") or getattr(e, "output", "")
        if extra and extra not in result.log:
            result.log += extra
        log.error("install.failed", error=str(e), error_type=type(e).__name__)

    def _run(self, name: str, mode: SyncMode, result: InstallResult) -> None:
        progress = result.progress
        home = self.settings.home

        # Phase 1: validate
        progress.start_phase("validate")
        spec = self.registry.get(name)
        progress.complete_phase("validate", spec.repo_url)

        # Phase 2: dependencies
        progress.start_phase("dependencies")
        report = self.ensurer.ensure(spec.tools, spec.os_packages)
        progress.complete_phase("dependencies", report.summary())

        home.ensure()
        with package_lock(home.lock_dir, spec.name):
            # Phase 3: sync
            progress.start_phase("sync")
            synced = self.synchronizer.sync(spec, mode)
            workdir = synced.path
            progress.complete_phase("sync", f"{synced.action.value} {workdir}")

            # Phase 4: detect
            strategy = self._strategy(spec, workdir, progress)
            result.strategy = strategy

            # Phase 5: build
            progress.start_phase("build")
            outcome = self.driver.run(strategy, workdir)
            result.log = outcome.log
            if not outcome.success:
                failed = outcome.failed_command
                what = f"'{failed}' failed" if failed else "build failed"
                raise BuildError(f"Build failed for {spec.name}: {what}")
            progress.complete_phase("build", f"{len(strategy.commands)} step(s)")

            # Phase 6: locate
            progress.start_phase("locate")
            result.artifact = self.locator.resolve(strategy, workdir, spec.binary)
            progress.complete_phase("locate", str(result.artifact))

        # Phase 7: record
        progress.start_phase("record")
        added = self.ledger.add(spec.name)
        progress.complete_phase("record", "added" if added else "already recorded")

        result.success = True
        log.info("install.succeeded", artifact=str(result.artifact))

    def _strategy(
        self, spec: PackageSpec, workdir: Path, progress: ProgressTracker
    ) -> BuildStrategy:
        if spec.build is not None:
            progress.skip_phase("detect", "explicit build commands")
            values = self._placeholders(spec, workdir)
            commands = tuple(cmd.expand(values) for cmd in spec.build)
            return explicit_strategy(commands)

        progress.start_phase("detect")
        strategy = self.detector.detect(workdir, spec.name)
        if not strategy.recognized:
            raise DetectionError(f"No recognized build system found in {workdir}")
        progress.complete_phase("detect", f"{strategy.system.value} ({strategy.marker})")
        return strategy

    def _placeholders(self, spec: PackageSpec, workdir: Path) -> dict[str, str]:
        home = self.settings.home
        return {
            "home": str(home.root),
            "bin": str(home.bin_dir),
            "src": str(workdir),
            "name": spec.name,
        }
