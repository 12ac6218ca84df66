import threading

import pytest

from fusionstorage_client.config import CliConfig
from fusionstorage_client.errors import FALLBACK_MESSAGE
from fusionstorage_client.exceptions import (
    AgentUnreachableError,
    CliError,
    OperationCancelledError,
    TransportError,
)
from fusionstorage_client.executor import ProcessResult
from fusionstorage_client.runner import EndpointSet, FailoverCommandRunner, parse_outcome

COORDINATOR = "10.0.0.1"
AGENTS = ("10.0.0.11", "10.0.0.12", "10.0.0.13")


class FakeExecutor:
    """Answer each agent with a canned output or exception."""

    def __init__(self, responses):
        self.responses = responses
        self.calls: list[list[str]] = []
        self.timeouts: list[float | None] = []

    def run(self, argv, *, timeout=None, cancel=None):
        self.calls.append(list(argv))
        self.timeouts.append(timeout)
        response = self.responses[argv[-1]]
        if isinstance(response, Exception):
            raise response
        if isinstance(response, ProcessResult):
            return response
        return ProcessResult(returncode=0, output=response)

    @property
    def contacted(self) -> list[str]:
        return [call[-1] for call in self.calls]


def build_runner(responses, **config) -> tuple[FailoverCommandRunner, FakeExecutor]:
    executor = FakeExecutor(responses)
    runner = FailoverCommandRunner(
        EndpointSet.of(COORDINATOR, AGENTS),
        config=CliConfig(**config),
        executor=executor,
    )
    return runner, executor


def test_stops_at_first_agent_reporting_success():
    runner, executor = build_runner(
        {
            AGENTS[0]: "connecting\nresult=50150012",
            AGENTS[1]: "192.168.1.10:3260\nresult=0",
            AGENTS[2]: "should not run\nresult=0",
        }
    )

    lines = runner.run("--op", "queryIscsiPortalInfo", "--portName", "iqn.x")

    assert lines == ["192.168.1.10:3260"]
    assert executor.contacted == [AGENTS[0], AGENTS[1]]


def test_argument_vector_carries_coordinator_and_agent():
    runner, executor = build_runner({AGENTS[0]: "result=0"})

    runner.run("--op", "queryIscsiPortalInfo", "--portName", "iqn.x")

    assert executor.calls[0] == [
        "fsc_cli",
        "--op",
        "queryIscsiPortalInfo",
        "--portName",
        "iqn.x",
        "--manage_ip",
        COORDINATOR,
        "--ip",
        AGENTS[0],
    ]


def test_each_agent_gets_a_fresh_argument_vector():
    runner, executor = build_runner(
        {AGENTS[0]: "result=1", AGENTS[1]: "result=1", AGENTS[2]: "result=0"}
    )

    runner.run("--op", "startServer")

    assert [call[:-1] for call in executor.calls] == [executor.calls[0][:-1]] * 3
    assert [call.count("--ip") for call in executor.calls] == [1, 1, 1]


def test_failure_reports_code_from_last_agent():
    runner, executor = build_runner(
        {
            AGENTS[0]: "result=50150005",
            AGENTS[1]: "result=50150006",
            AGENTS[2]: "result=50150016",
        }
    )

    with pytest.raises(CliError) as excinfo:
        runner.run("--op", "deleteVolume")

    assert excinfo.value.code == "50150016"
    assert excinfo.value.message == "VBS handle queue busy"
    assert [attempt.result_code for attempt in excinfo.value.attempts] == [
        "50150005",
        "50150006",
        "50150016",
    ]
    assert executor.contacted == list(AGENTS)


def test_agent_without_result_line_keeps_last_observed_code():
    runner, _ = build_runner(
        {AGENTS[0]: "result=50150005", AGENTS[1]: "result=50150009", AGENTS[2]: "garbled"}
    )

    with pytest.raises(CliError) as excinfo:
        runner.run("--op", "createVolume")

    assert excinfo.value.code == "50150009"
    assert excinfo.value.message == "VBS space is not enough"


def test_last_result_line_is_authoritative_for_success():
    runner, _ = build_runner({AGENTS[0]: "result=50150001 retrying\npayload\nresult=0"})

    lines = runner.run("--op", "queryVolume")

    assert lines == ["result=50150001 retrying", "payload"]


def test_last_result_line_is_authoritative_for_failure():
    runner, _ = build_runner(
        {AGENTS[0]: "result=0\nresult=50150005", AGENTS[1]: "", AGENTS[2]: ""}
    )

    with pytest.raises(CliError) as excinfo:
        runner.run("--op", "queryVolume")

    assert excinfo.value.code == "50150005"


def test_no_parseable_result_uses_fallback_message():
    runner, _ = build_runner({AGENTS[0]: "", AGENTS[1]: "hello", AGENTS[2]: "\n\n"})

    with pytest.raises(CliError) as excinfo:
        runner.run("--op", "queryVolume")

    assert excinfo.value.code == ""
    assert excinfo.value.message == FALLBACK_MESSAGE


def test_transport_failure_moves_on_to_next_agent():
    runner, executor = build_runner(
        {AGENTS[0]: TransportError("host unreachable"), AGENTS[1]: "ok\nresult=0"}
    )

    assert runner.run("--op", "queryVolume") == ["ok"]
    assert executor.contacted == [AGENTS[0], AGENTS[1]]


def test_transport_failures_are_visible_on_cli_error():
    unreachable = TransportError("host unreachable")
    runner, _ = build_runner(
        {AGENTS[0]: unreachable, AGENTS[1]: "result=50150004", AGENTS[2]: unreachable}
    )

    with pytest.raises(CliError) as excinfo:
        runner.run("--op", "queryVolume")

    attempts = excinfo.value.attempts
    assert excinfo.value.code == "50150004"
    assert attempts[0].error is unreachable
    assert attempts[1].error is None and attempts[1].result_code == "50150004"
    assert attempts[2].error is unreachable


def test_all_agents_unreachable_is_cli_error_by_default():
    runner, _ = build_runner({agent: TransportError("down") for agent in AGENTS})

    with pytest.raises(CliError) as excinfo:
        runner.run("--op", "queryVolume")

    assert excinfo.value.code == ""
    assert excinfo.value.message == FALLBACK_MESSAGE


def test_all_agents_unreachable_can_be_distinguished():
    runner, _ = build_runner(
        {agent: TransportError("down") for agent in AGENTS},
        distinguish_transport_errors=True,
    )

    with pytest.raises(AgentUnreachableError) as excinfo:
        runner.run("--op", "queryVolume")

    assert len(excinfo.value.attempts) == 3


def test_backend_code_still_wins_when_distinguishing_transport_errors():
    runner, _ = build_runner(
        {
            AGENTS[0]: TransportError("down"),
            AGENTS[1]: "result=50150005",
            AGENTS[2]: TransportError("down"),
        },
        distinguish_transport_errors=True,
    )

    with pytest.raises(CliError) as excinfo:
        runner.run("--op", "queryVolume")

    assert excinfo.value.code == "50150005"


def test_cancelled_sweep_contacts_no_agent():
    runner, executor = build_runner({agent: "result=0" for agent in AGENTS})
    cancel = threading.Event()
    cancel.set()

    with pytest.raises(OperationCancelledError):
        runner.run("--op", "queryVolume", cancel=cancel)

    assert executor.calls == []


def test_cancellation_is_not_treated_as_agent_failure():
    runner, executor = build_runner(
        {AGENTS[0]: OperationCancelledError("stop"), AGENTS[1]: "result=0"}
    )

    with pytest.raises(OperationCancelledError):
        runner.run("--op", "queryVolume")

    assert executor.contacted == [AGENTS[0]]


def test_configured_timeout_is_passed_to_executor():
    runner, executor = build_runner({AGENTS[0]: "result=0"}, timeout=12.5)

    runner.run("--op", "queryVolume")

    assert executor.timeouts == [12.5]


def test_start_server_waits_for_settle_interval():
    executor = FakeExecutor({"startServer": "started"})
    slept: list[float] = []
    runner = FailoverCommandRunner(
        EndpointSet.of(COORDINATOR, AGENTS),
        executor=executor,
        sleep=slept.append,
    )

    runner.start_server()

    assert executor.calls == [["fsc_cli", "--op", "startServer"]]
    assert slept == [3.0]


def test_start_server_failure_raises_transport_error():
    executor = FakeExecutor({"startServer": ProcessResult(returncode=1, output="boom")})
    slept: list[float] = []
    runner = FailoverCommandRunner(
        EndpointSet.of(COORDINATOR, AGENTS),
        executor=executor,
        sleep=slept.append,
    )

    with pytest.raises(TransportError) as excinfo:
        runner.start_server()

    assert excinfo.value.details == "boom"
    assert slept == []


@pytest.mark.parametrize("coordinator,agents", [("", AGENTS), (COORDINATOR, ())])
def test_endpoint_set_requires_coordinator_and_agents(coordinator, agents):
    with pytest.raises(ValueError):
        EndpointSet.of(coordinator, agents)


def test_parse_outcome_handles_empty_output():
    outcome = parse_outcome("")

    assert outcome.lines == ()
    assert outcome.result_code is None
    assert outcome.payload == []
    assert not outcome.succeeded


def test_parse_outcome_strips_surrounding_whitespace():
    outcome = parse_outcome("\n  line one\nresult=0\n\n")

    assert outcome.succeeded
    assert outcome.payload == ["line one"]


def test_result_code_is_compared_exactly():
    outcome = parse_outcome("result= 0")

    assert outcome.result_code == " 0"
    assert not outcome.succeeded


def test_padded_success_code_is_not_accepted_by_any_agent():
    runner, executor = build_runner({agent: "listing\nresult= 0" for agent in AGENTS})

    with pytest.raises(CliError) as excinfo:
        runner.run("--op", "queryAllPoolInfo")

    assert excinfo.value.code == " 0"
    assert executor.contacted == list(AGENTS)
