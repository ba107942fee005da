"""External process execution. Every step runs to completion before the next."""

from __future__ import annotations

import subprocess
from dataclasses import dataclass
from pathlib import Path

import structlog

from pkt.models.package import Command

log = structlog.get_logger(__name__)

EXIT_NOT_FOUND = 127
EXIT_TIMEOUT = 124
EXIT_NOT_EXECUTABLE = 126


@dataclass
class CommandResult:
    command: Command
    returncode: int
    output: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    def describe(self) -> str:
        """Render as a diagnostic log block."""
        header = f"$ {self.command}  (exit {self.returncode})"
        body = self.output.rstrip()
        return f"{header}\n{body}\n" if body else f"{header}\n"


class CommandRunner:
    """Run argv commands in an explicit working directory, capturing combined output."""

    def __init__(self, timeout: float | None = None) -> None:
        self.timeout = timeout

    def run(
        self,
        command: Command,
        cwd: Path | None = None,
        timeout: float | None = None,
    ) -> CommandResult:
        effective_timeout = timeout if timeout is not None else self.timeout
        log.debug("command.run", argv=list(command.argv), cwd=str(cwd) if cwd else None)
        try:
            proc = subprocess.run(
                list(command.argv),
                cwd=cwd,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                stdin=subprocess.DEVNULL,
                text=True,
                errors="replace",
                timeout=effective_timeout,
            )
        except FileNotFoundError:
            log.debug("command.not_found", program=command.program)
            return CommandResult(command, EXIT_NOT_FOUND, f"{command.program}: command not found")
        except OSError as e:
            log.debug("command.spawn_failed", program=command.program, error=str(e))
            return CommandResult(
                command, EXIT_NOT_EXECUTABLE, f"{command.program}: {e.strerror or e}"
            )
        except subprocess.TimeoutExpired as e:
            partial = e.output if isinstance(e.output, str) else ""
            log.warning("command.timeout", argv=list(command.argv), timeout=effective_timeout)
            return CommandResult(
                command,
                EXIT_TIMEOUT,
                partial + f"\ntimed out after {effective_timeout}s",
            )
        return CommandResult(command, proc.returncode, proc.stdout or "")
