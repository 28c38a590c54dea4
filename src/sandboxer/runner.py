"""
Local command execution with output appended to a run log.

Operator-facing output stays terse; the full output of every tool invocation
(git, npm, the sandbox CLI) lands in a single append-only log file. Secrets
passed to the runner are masked before anything is written.
"""

from __future__ import annotations

import subprocess
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Sequence

import structlog

logger = structlog.get_logger()

MASK = "***"
COMMAND_NOT_FOUND = 127


@dataclass
class CommandResult:
    """Outcome of one command invocation."""

    args: list[str]
    returncode: int
    stdout: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class CommandRunner:
    """Runs commands, appending masked output to ``log_path``."""

    def __init__(self, log_path: Path, secrets: Iterable[str] = ()):
        self.log_path = log_path
        self._secrets = [s for s in secrets if s]
        self.log_path.parent.mkdir(parents=True, exist_ok=True)
        self.log_path.touch(exist_ok=True)

    def add_secret(self, value: str) -> None:
        if value and value not in self._secrets:
            self._secrets.append(value)

    def mask(self, text: str) -> str:
        for secret in self._secrets:
            text = text.replace(secret, MASK)
        return text

    def write(self, text: str) -> None:
        """Append a line of text to the run log."""
        with open(self.log_path, "a") as log:
            log.write(self.mask(text))
            if not text.endswith("\n"):
                log.write("\n")

    def section(self, title: str) -> None:
        stamp = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")
        self.write(f"\n==== {title} [{stamp}] ====")

    def run(
        self,
        args: Sequence[str],
        cwd: Path | None = None,
        capture: bool = False,
    ) -> CommandResult:
        """
        Run a command and append its output to the log.

        Args:
            args: Command and arguments
            cwd: Working directory
            capture: Keep stdout separate from stderr and return it, for
                commands whose output is parsed (e.g. JSON)

        Returns:
            CommandResult; a missing executable yields returncode 127
        """
        argv = [str(a) for a in args]
        self.write(f"$ {' '.join(argv)}")
        logger.debug("command_started", command=self.mask(" ".join(argv)), cwd=str(cwd or ""))

        try:
            if capture:
                result = self._run_captured(argv, cwd)
            else:
                result = self._run_streamed(argv, cwd)
        except FileNotFoundError:
            self.write(f"command not found: {argv[0]}")
            result = CommandResult(args=argv, returncode=COMMAND_NOT_FOUND)

        self.write(f"[exit {result.returncode}]")
        logger.debug("command_finished", command=argv[0], returncode=result.returncode)
        return result

    def _run_streamed(self, argv: list[str], cwd: Path | None) -> CommandResult:
        with open(self.log_path, "a") as log:
            with subprocess.Popen(
                argv,
                cwd=cwd,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
            ) as proc:
                for line in proc.stdout or ():
                    log.write(self.mask(line))
                    log.flush()
        return CommandResult(args=argv, returncode=proc.returncode)

    def _run_captured(self, argv: list[str], cwd: Path | None) -> CommandResult:
        proc = subprocess.run(argv, cwd=cwd, capture_output=True, text=True)
        if proc.stdout:
            self.write(proc.stdout)
        if proc.stderr:
            self.write(proc.stderr)
        return CommandResult(args=argv, returncode=proc.returncode, stdout=proc.stdout)
