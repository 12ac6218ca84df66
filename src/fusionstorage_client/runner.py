"""First-success command failover across redundant CLI agents."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Sequence
from dataclasses import dataclass, field

from .config import CliConfig
from .errors import ErrorTranslator
from .exceptions import AgentUnreachableError, OperationCancelledError, TransportError
from .executor import ProcessExecutor, SubprocessExecutor

logger = logging.getLogger(__name__)

RESULT_PREFIX = "result="
SUCCESS_CODE = "0"


@dataclass(frozen=True, slots=True)
class EndpointSet:
    """Ordered agent addresses plus the coordinator (manage) address."""

    coordinator: str
    agents: tuple[str, ...]

    def __post_init__(self) -> None:
        if not self.coordinator or not self.agents:
            raise ValueError("Both a coordinator address and at least one agent address are required.")

    @classmethod
    def of(cls, coordinator: str, agents: Sequence[str]) -> EndpointSet:
        return cls(coordinator=coordinator, agents=tuple(agents))


@dataclass(frozen=True, slots=True)
class CommandInvocation:
    """One logical command addressed to one agent."""

    args: tuple[str, ...]
    agent: str
    coordinator: str

    def argv(self, binary: str) -> list[str]:
        return [binary, *self.args, "--manage_ip", self.coordinator, "--ip", self.agent]


@dataclass(frozen=True, slots=True)
class CommandOutcome:
    """Output lines of one invocation and the authoritative result code."""

    lines: tuple[str, ...]
    result_code: str | None = None
    result_index: int | None = None

    @property
    def succeeded(self) -> bool:
        return self.result_code == SUCCESS_CODE

    @property
    def payload(self) -> list[str]:
        if self.result_index is None:
            return list(self.lines)
        return list(self.lines[: self.result_index])


@dataclass(frozen=True, slots=True)
class AgentAttempt:
    """What happened when one agent was tried."""

    agent: str
    result_code: str | None = None
    error: TransportError | None = field(default=None, compare=False)


def parse_outcome(output: str) -> CommandOutcome:
    """Split CLI output into lines and find the last `result=` line."""

    text = output.strip()
    lines = tuple(text.splitlines()) if text else ()
    code: str | None = None
    index: int | None = None
    # Diagnostic lines may also carry the prefix; the final one wins.
    for position, line in enumerate(lines):
        if line.startswith(RESULT_PREFIX):
            code = line[len(RESULT_PREFIX):]
            index = position
    return CommandOutcome(lines=lines, result_code=code, result_index=index)


class FailoverCommandRunner:
    """Run a CLI command against each agent in order until one succeeds."""

    def __init__(
        self,
        endpoints: EndpointSet,
        *,
        config: CliConfig | None = None,
        executor: ProcessExecutor | None = None,
        translator: ErrorTranslator | None = None,
        sleep=time.sleep,
    ) -> None:
        self.endpoints = endpoints
        self.config = config or CliConfig()
        self.executor = executor or SubprocessExecutor()
        self.translator = translator or ErrorTranslator()
        self._sleep = sleep

    def run(self, *base_args: str, cancel: threading.Event | None = None) -> list[str]:
        """Return the payload lines of the first agent reporting success.

        Raises `CliError` built from the last observed result code when every
        agent is exhausted. With `distinguish_transport_errors` enabled, a
        sweep in which no agent produced a result code raises
        `AgentUnreachableError` instead.
        """
        args = tuple(base_args)
        attempts: list[AgentAttempt] = []
        last_code = ""

        for agent in self.endpoints.agents:
            if cancel is not None and cancel.is_set():
                raise OperationCancelledError(f"Command {args[:2]} cancelled before agent {agent}")
            invocation = CommandInvocation(args=args, agent=agent, coordinator=self.endpoints.coordinator)
            logger.debug("Running %s on agent %s", " ".join(args), agent)
            try:
                result = self.executor.run(
                    invocation.argv(self.config.binary),
                    timeout=self.config.timeout,
                    cancel=cancel,
                )
            except TransportError as exc:
                logger.warning("CLI agent %s unavailable: %s", agent, exc)
                attempts.append(AgentAttempt(agent=agent, error=exc))
                continue

            outcome = parse_outcome(result.output)
            attempts.append(AgentAttempt(agent=agent, result_code=outcome.result_code))
            if outcome.succeeded:
                return outcome.payload
            if outcome.result_code is not None:
                last_code = outcome.result_code
            logger.debug("Agent %s returned result=%s", agent, outcome.result_code)

        if self.config.distinguish_transport_errors and _unreachable(attempts):
            raise AgentUnreachableError(
                f"No CLI agent could run the command: {', '.join(self.endpoints.agents)}",
                attempts=attempts,
            )
        raise self.translator.to_error(last_code, attempts=attempts)

    def start_server(self) -> None:
        """Start the local CLI server and wait for it to settle."""

        result = self.executor.run(
            [self.config.binary, "--op", "startServer"],
            timeout=self.config.timeout,
        )
        if result.returncode != 0:
            raise TransportError(
                f"Failed to start CLI server (exit status {result.returncode})",
                details=result.output,
            )
        self._sleep(self.config.server_settle_seconds)
        logger.info("FusionStorage CLI server started")


def _unreachable(attempts: Sequence[AgentAttempt]) -> bool:
    if any(attempt.result_code is not None for attempt in attempts):
        return False
    return any(attempt.error is not None for attempt in attempts)


__all__ = [
    "AgentAttempt",
    "CommandInvocation",
    "CommandOutcome",
    "EndpointSet",
    "FailoverCommandRunner",
    "parse_outcome",
]
