"""Per-package advisory lock around sync + build + locate."""

from __future__ import annotations

import contextlib
import fcntl
from collections.abc import Iterator
from pathlib import Path

import structlog

from pkt.exceptions import PackageLockedError

log = structlog.get_logger(__name__)


@contextlib.contextmanager
def package_lock(lock_dir: Path, package: str) -> Iterator[Path]:
    """Hold an exclusive ``flock`` on ``<lock_dir>/<package>.lock``.

    Fails fast with PackageLockedError if another process holds it.
    """
    lock_dir.mkdir(parents=True, exist_ok=True)
    lock_path = lock_dir / f"{package}.lock"
    with lock_path.open("a+", encoding="utf-8") as lf:
        try:
            fcntl.flock(lf.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
        except BlockingIOError as e:
            raise PackageLockedError(
                f"Another pkt process is already installing '{package}' ({lock_path})"
            ) from e
        log.debug("lock.acquired", path=str(lock_path))
        try:
            yield lock_path
        finally:
            fcntl.flock(lf.fileno(), fcntl.LOCK_UN)
