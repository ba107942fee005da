"""Custom exceptions for pkt."""


class PktError(Exception):
    """Base exception for all pkt errors."""


class UnknownPackageError(PktError):
    """Raised when a package name is not in the registry."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Unknown package '{name}'")


class RegistryError(PktError):
    """Raised when a user registry file cannot be read or validated."""


class SyncError(PktError):
    """Raised when cloning or pulling a package's source fails."""

    def __init__(self, message: str, output: str = ""):
        self.output = output
        super().__init__(message)


class BuildError(PktError):
    """Raised when a build step fails."""

    def __init__(self, message: str, log: str = ""):
        self.log = log
        super().__init__(message)


class DetectionError(BuildError):
    """Raised when no recognized build system marker is found."""


class ArtifactNotFoundError(BuildError):
    """Raised when a build succeeded but produced no discoverable artifact."""


class PackageLockedError(PktError):
    """Raised when another invocation is already working on the same package."""


class LedgerError(PktError):
    """Raised when the installed-package ledger cannot be written."""


class ConfigError(PktError):
    """Raised when an environment setting has an invalid value."""
