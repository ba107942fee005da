"""Test doubles for pkt — run the install pipeline without git, compilers or apt.

Usage::

    from pkt.testing import FakeRunner

    runner = FakeRunner()
    runner.on("git", "clone", effect=materialize({"go.mod": "module x\\n"}))
    runner.on("make", returncode=2, output="error: missing header")

Commands with no matching handler succeed with empty output.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from pathlib import Path

from pkt.models.package import Command
from pkt.runner import CommandResult, CommandRunner

Effect = Callable[[Command, Path | None], None]


def make_executable(path: Path, content: str = "\x7fELF fake binary\n") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    path.chmod(0o755)
    return path


def materialize(files: Mapping[str, str], executables: tuple[str, ...] = ()) -> Effect:
    """A ``git clone`` effect writing *files* into the clone target (last argv token)."""

    def effect(command: Command, cwd: Path | None) -> None:
        target = Path(command.argv[-1])
        target.mkdir(parents=True, exist_ok=True)
        for rel, content in files.items():
            path = target / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content)
            if rel in executables:
                path.chmod(0o755)

    return effect


class FakeRunner(CommandRunner):
    """Drop-in replacement for CommandRunner that records instead of executing.

    Handlers are matched by argv prefix; the most recently registered match wins.
    """

    def __init__(self) -> None:
        super().__init__()
        self.calls: list[tuple[tuple[str, ...], Path | None]] = []
        self._handlers: list[tuple[tuple[str, ...], int, str, Effect | None]] = []

    def on(
        self,
        *prefix: str,
        returncode: int = 0,
        output: str = "",
        effect: Effect | None = None,
    ) -> FakeRunner:
        self._handlers.append((prefix, returncode, output, effect))
        return self

    def run(
        self,
        command: Command,
        cwd: Path | None = None,
        timeout: float | None = None,
    ) -> CommandResult:
        self.calls.append((command.argv, cwd))
        for prefix, returncode, output, effect in reversed(self._handlers):
            if command.argv[: len(prefix)] == prefix:
                if effect is not None:
                    effect(command, cwd)
                return CommandResult(command, returncode, output)
        return CommandResult(command, 0, "")

    @property
    def argvs(self) -> list[tuple[str, ...]]:
        """Argv of every command received — useful for assertions in tests."""
        return [argv for argv, _ in self.calls]
