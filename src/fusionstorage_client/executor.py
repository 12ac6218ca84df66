"""Process execution for the FusionStorage CLI binary."""

from __future__ import annotations

import logging
import subprocess
import threading
import time
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol

from .exceptions import OperationCancelledError, TransportError

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ProcessResult:
    """Exit status and combined stdout/stderr text of one process."""

    returncode: int
    output: str


class ProcessExecutor(Protocol):
    """Run an argument vector and return its combined output.

    Implementations raise `TransportError` when the process cannot be started
    or does not finish within `timeout`, and `OperationCancelledError` when
    `cancel` is set while waiting.
    """

    def run(
        self,
        argv: Sequence[str],
        *,
        timeout: float | None = None,
        cancel: threading.Event | None = None,
    ) -> ProcessResult: ...


class SubprocessExecutor:
    """Default executor built on `subprocess.Popen`."""

    def __init__(self, *, poll_interval: float = 0.2) -> None:
        self.poll_interval = poll_interval

    def run(
        self,
        argv: Sequence[str],
        *,
        timeout: float | None = None,
        cancel: threading.Event | None = None,
    ) -> ProcessResult:
        command = list(argv)
        try:
            proc = subprocess.Popen(
                command,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
            )
        except OSError as exc:
            raise TransportError(
                f"Failed to start {command[0]}: {exc}", details=str(exc)
            ) from exc

        deadline = None if timeout is None else time.monotonic() + timeout
        while True:
            if cancel is not None and cancel.is_set():
                self._kill(proc)
                raise OperationCancelledError(f"Command {command[0]} cancelled")
            wait = self.poll_interval
            if deadline is not None:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    self._kill(proc)
                    raise TransportError(
                        f"Command {command[0]} timed out after {timeout} seconds",
                        details=" ".join(command),
                    )
                wait = min(wait, remaining)
            try:
                output, _ = proc.communicate(timeout=wait)
            except subprocess.TimeoutExpired:
                continue
            return ProcessResult(returncode=proc.returncode, output=output or "")

    @staticmethod
    def _kill(proc: subprocess.Popen) -> None:
        proc.kill()
        proc.communicate()
        logger.debug("Killed process %s", proc.pid)
