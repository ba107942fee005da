"""CLI entry point: pkt.

Subcommands:
    pkt install <package> [update]   # build and install (exit 0 / 1)
    pkt list                          # installed packages
    pkt available                     # registry contents
    pkt info <package>                # one registry record
    pkt detect /path/to/source        # show which build plan would run
"""

from __future__ import annotations

import sys
from pathlib import Path

import click

from pkt.build.detector import BuildSystemDetector
from pkt.config import Settings
from pkt.core.logging import setup_logging
from pkt.exceptions import PktError
from pkt.ledger import InstalledLedger
from pkt.orchestrator import InstallResult, Installer
from pkt.registry import PackageRegistry
from pkt.source.sync import SyncMode

_LOG_TAIL_LINES = 40


def _load_registry(settings: Settings) -> PackageRegistry:
    try:
        return PackageRegistry.default(settings.registry_path)
    except PktError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


def _report(result: InstallResult) -> None:
    summary = result.progress.get_summary()
    click.echo(f"\nPipeline summary ({summary['total_duration']}s):")
    for line in result.progress.render():
        click.echo(f"  {line}")

    if result.success:
        click.echo(f"\nSuccessfully installed {result.package} -> {result.artifact}")
        return

    click.echo(f"\nInstall failed for {result.package}: {result.error}", err=True)
    if result.log.strip():
        tail = result.log.rstrip().splitlines()[-_LOG_TAIL_LINES:]
        click.echo("\nLast build output:", err=True)
        for line in tail:
            click.echo(f"  {line}", err=True)


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Verbose logging")
@click.pass_context
def main(ctx: click.Context, verbose: bool) -> None:
    """pkt: build and install tools from source."""
    setup_logging(verbose)
    try:
        ctx.obj = Settings.from_env()
    except PktError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


@main.command("install")
@click.argument("package")
@click.argument(
    "mode",
    required=False,
    default=SyncMode.REUSE.value,
    type=click.Choice([m.value for m in SyncMode]),
)
@click.pass_obj
def install(settings: Settings, package: str, mode: str) -> None:
    """Install PACKAGE. MODE 'update' pulls the latest source first; the
    default 'reuse' rebuilds an existing checkout exactly as found."""
    registry = _load_registry(settings)
    installer = Installer.from_settings(settings, registry=registry)
    result = installer.install(package, SyncMode(mode))
    _report(result)
    sys.exit(result.exit_code)


@main.command("list")
@click.pass_obj
def list_installed(settings: Settings) -> None:
    """List packages installed at least once."""
    names = InstalledLedger(settings.home.ledger_path).names()
    if not names:
        click.echo("No packages installed.")
        return
    for name in names:
        click.echo(name)


@main.command("available")
@click.pass_obj
def available(settings: Settings) -> None:
    """List packages known to the registry."""
    registry = _load_registry(settings)
    installed = set(InstalledLedger(settings.home.ledger_path).names())
    for spec in registry:
        mark = "*" if spec.name in installed else " "
        click.echo(f"{mark} {spec.name:20s} {spec.repo_url}")


@main.command("info")
@click.argument("package")
@click.pass_obj
def info(settings: Settings, package: str) -> None:
    """Show the registry record for PACKAGE."""
    registry = _load_registry(settings)
    try:
        spec = registry.get(package)
    except PktError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    ledger = InstalledLedger(settings.home.ledger_path)
    click.echo(f"Name:        {spec.name}")
    click.echo(f"Repository:  {spec.repo_url}")
    click.echo(f"Binary:      {spec.binary}")
    click.echo(f"Build:       {spec.build_label}")
    click.echo(f"Tools:       {', '.join(spec.tools) or '-'}")
    click.echo(f"OS packages: {', '.join(spec.os_packages) or '-'}")
    click.echo(f"Installed:   {'yes' if ledger.contains(spec.name) else 'no'}")
    click.echo(f"Source:      {settings.home.working_tree(spec.name)}")


@main.command("detect")
@click.argument("path", type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.option("--name", default=None, help="Package name used for output files")
@click.pass_obj
def detect(settings: Settings, path: Path, name: str | None) -> None:
    """Show the build plan that would run for the source tree at PATH."""
    detector = BuildSystemDetector(settings.home.root, java_package=settings.java_package)
    strategy = detector.detect(path, name)
    if not strategy.recognized:
        click.echo(f"No recognized build system in {path}", err=True)
        sys.exit(1)
    click.echo(f"Build system: {strategy.system.value} (found {strategy.marker})")
    click.echo(f"Artifact:     {strategy.artifact.kind.value}")
    for prereq in strategy.prerequisites:
        click.echo(f"Requires:     {prereq.tool} (package {prereq.os_package})")
    click.echo("Commands:")
    for command in strategy.commands:
        click.echo(f"  {command}")


if __name__ == "__main__":
    main()
