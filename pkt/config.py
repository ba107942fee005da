"""Runtime settings and managed home layout, read from environment variables.

    PKT_HOME              managed home directory (default: ~/.pkt)
    PKT_REGISTRY          user registry file (default: $PKT_HOME/registry.toml)
    PKT_BUILD_TIMEOUT     per-command build timeout in seconds (default: none)
    PKT_PACKAGE_MANAGERS  comma-separated OS package managers, tried in order
    PKT_JAVA              runtime invoked by generated launchers
    PKT_JAVA_PACKAGE      OS package that provides the Java runtime
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from pkt.exceptions import ConfigError

_DEFAULT_PACKAGE_MANAGERS = ("pkg", "apt")


@dataclass(frozen=True)
class ManagedHome:
    """Filesystem layout under the managed home directory."""

    root: Path

    @property
    def bin_dir(self) -> Path:
        return self.root / "bin"

    @property
    def src_dir(self) -> Path:
        return self.root / "src"

    @property
    def ledger_path(self) -> Path:
        return self.root / "installed.json"

    @property
    def lock_dir(self) -> Path:
        return self.root / "locks"

    def working_tree(self, package: str) -> Path:
        return self.src_dir / package

    def ensure(self) -> None:
        for d in (self.bin_dir, self.src_dir, self.lock_dir):
            d.mkdir(parents=True, exist_ok=True)


def _parse_timeout(raw: str | None) -> float | None:
    if raw is None or not raw.strip():
        return None
    try:
        value = float(raw)
    except ValueError:
        raise ConfigError(f"PKT_BUILD_TIMEOUT must be a number of seconds, got {raw!r}") from None
    return value if value > 0 else None


@dataclass(frozen=True)
class Settings:
    home: ManagedHome
    registry_path: Path
    build_timeout: float | None = None
    package_managers: tuple[str, ...] = _DEFAULT_PACKAGE_MANAGERS
    java_runtime: str = "java"
    java_package: str = "openjdk-17"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Settings:
        env = os.environ if environ is None else environ
        root = Path(env.get("PKT_HOME") or Path.home() / ".pkt").expanduser()
        registry = env.get("PKT_REGISTRY")
        managers = tuple(
            m.strip() for m in env.get("PKT_PACKAGE_MANAGERS", "").split(",") if m.strip()
        )
        return cls(
            home=ManagedHome(root),
            registry_path=Path(registry).expanduser() if registry else root / "registry.toml",
            build_timeout=_parse_timeout(env.get("PKT_BUILD_TIMEOUT")),
            package_managers=managers or _DEFAULT_PACKAGE_MANAGERS,
            java_runtime=env.get("PKT_JAVA", "java"),
            java_package=env.get("PKT_JAVA_PACKAGE", "openjdk-17"),
        )
