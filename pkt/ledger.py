"""Persisted set of successfully installed package names.

Stored as ``{"installed": [...]}``. Every change is a full
load -> mutate -> serialize cycle written through a temporary sibling file.
"""

from __future__ import annotations

import json
import os
from pathlib import Path

import structlog

from pkt.exceptions import LedgerError

log = structlog.get_logger(__name__)


class InstalledLedger:
    def __init__(self, path: Path) -> None:
        self.path = path

    def _load(self) -> list[str]:
        if not self.path.exists():
            return []
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except json.JSONDecodeError:
            log.warning("ledger.corrupt", path=str(self.path))
            return []
        names = data.get("installed", []) if isinstance(data, dict) else None
        if not isinstance(names, list):
            log.warning("ledger.corrupt", path=str(self.path))
            return []
        # Drop duplicates a hand-edited file may carry, keeping first occurrence.
        return list(dict.fromkeys(n for n in names if isinstance(n, str)))

    def _save(self, names: list[str]) -> None:
        tmp = self.path.with_suffix(".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(json.dumps({"installed": names}, indent=2) + "\n", encoding="utf-8")
            os.replace(tmp, self.path)
        except OSError as e:
            raise LedgerError(f"Cannot write {self.path}: {e}") from e

    def names(self) -> list[str]:
        return self._load()

    def contains(self, name: str) -> bool:
        return name in self._load()

    def add(self, name: str) -> bool:
        """Record *name* if absent. Returns True when the ledger changed."""
        names = self._load()
        if name in names:
            return False
        names.append(name)
        self._save(names)
        log.info("ledger.added", package=name)
        return True
