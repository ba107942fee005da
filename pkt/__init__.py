"""pkt: minimal source-based package manager."""

__version__ = "0.1.0"

from pkt.build.detector import BuildSystemDetector
from pkt.build.driver import BuildDriver
from pkt.build.locator import ArtifactLocator
from pkt.config import ManagedHome, Settings
from pkt.ledger import InstalledLedger
from pkt.models.build import BuildOutcome, BuildStrategy, BuildSystem
from pkt.models.package import Command, PackageSpec
from pkt.orchestrator import InstallResult, Installer
from pkt.registry import PackageRegistry
from pkt.source.sync import SourceSynchronizer, SyncMode

__all__ = [
    "ArtifactLocator",
    "BuildDriver",
    "BuildOutcome",
    "BuildStrategy",
    "BuildSystem",
    "BuildSystemDetector",
    "Command",
    "InstallResult",
    "Installer",
    "InstalledLedger",
    "ManagedHome",
    "PackageRegistry",
    "PackageSpec",
    "Settings",
    "SourceSynchronizer",
    "SyncMode",
]
