"""High-level FusionStorage control client."""

from __future__ import annotations

import logging
import threading
from collections.abc import Mapping, Sequence
from typing import Any

import requests

from .config import DEFAULT_API_ROOT, CliConfig, ClientConfig, Credentials
from .errors import ErrorTranslator
from .executor import ProcessExecutor
from .resources import (
    HostsResource,
    PoolsResource,
    PortsResource,
    SnapshotsResource,
    VolumesResource,
)
from .runner import EndpointSet, FailoverCommandRunner
from .session import SessionClient

logger = logging.getLogger(__name__)


class StorageControlClient:
    """Expose FusionStorage operations over the REST and CLI transports."""

    def __init__(
        self,
        *,
        base_url: str,
        username: str,
        password: str,
        manage_ip: str,
        agent_ips: Sequence[str],
        verify_ssl: bool | str = True,
        timeout: float = 30.0,
        api_root: str = DEFAULT_API_ROOT,
        default_headers: Mapping[str, str] | None = None,
        cli_binary: str = "fsc_cli",
        cli_timeout: float | None = 60.0,
        server_settle_seconds: float = 3.0,
        distinguish_transport_errors: bool = False,
        session: requests.Session | None = None,
        executor: ProcessExecutor | None = None,
        translator: ErrorTranslator | None = None,
    ) -> None:
        self.config = ClientConfig(
            base_url=base_url.rstrip("/"),
            api_root=api_root,
            verify_ssl=verify_ssl,
            timeout=timeout,
            default_headers=default_headers,
        )
        self.cli_config = CliConfig(
            binary=cli_binary,
            timeout=cli_timeout,
            server_settle_seconds=server_settle_seconds,
            distinguish_transport_errors=distinguish_transport_errors,
        )
        self.endpoints = EndpointSet.of(manage_ip, agent_ips)
        self.rest = SessionClient(
            self.config,
            Credentials(username=username, password=password),
            http_session=session,
        )
        self.cli = FailoverCommandRunner(
            self.endpoints,
            config=self.cli_config,
            executor=executor,
            translator=translator,
        )
        self.pools = PoolsResource(self)
        self.volumes = VolumesResource(self)
        self.snapshots = SnapshotsResource(self)
        self.hosts = HostsResource(self)
        self.ports = PortsResource(self)

    # Context manager helpers -------------------------------------------------
    def __enter__(self) -> StorageControlClient:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # pragma: no cover - passthrough
        self.close()

    # Public API --------------------------------------------------------------
    def login(self) -> None:
        self.rest.establish_session()

    def start_server(self) -> None:
        self.cli.start_server()

    def request(
        self,
        method: str,
        path: str,
        *,
        payload: Mapping[str, Any] | None = None,
        bootstrap: bool = False,
        cancel: threading.Event | None = None,
    ) -> dict[str, Any]:
        envelope = self.rest.execute(
            path,
            method,
            bootstrap=bootstrap,
            payload=payload,
            cancel=cancel,
        )
        return envelope.payload

    def run_command(self, *args: str, cancel: threading.Event | None = None) -> list[str]:
        return self.cli.run(*args, cancel=cancel)

    @property
    def version(self) -> str | None:
        return self.rest.session.version

    def close(self) -> None:
        self.rest.close()
