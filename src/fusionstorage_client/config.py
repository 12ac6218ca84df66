"""Configuration helpers for the FusionStorage client."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field

DEFAULT_API_ROOT = "/dsware/service/"
VERSION_PATH = "rest/version"
LOGIN_PATH = "/sec/login"
TOKEN_HEADER = "X-Auth-Token"
ENVELOPE_CODE_FIELD = "result"
CLI_BINARY = "fsc_cli"


@dataclass(frozen=True, slots=True)
class Credentials:
    """Username and password used to open a REST session."""

    username: str
    password: str = field(repr=False)


@dataclass(slots=True)
class ClientConfig:
    """Typed configuration for the REST transport."""

    base_url: str
    api_root: str = DEFAULT_API_ROOT
    verify_ssl: bool | str = True
    timeout: float = 30.0
    default_headers: Mapping[str, str] | None = None
    envelope_code_field: str = ENVELOPE_CODE_FIELD

    @property
    def api_base(self) -> str:
        return f"{self.base_url}{self.api_root}"

    def resolved_headers(self) -> dict[str, str]:
        headers: dict[str, str] = {
            "Accept": "application/json",
            "Content-Type": "application/json;charset=UTF-8",
        }
        if self.default_headers:
            headers.update(self.default_headers)
        return headers


@dataclass(slots=True)
class CliConfig:
    """Typed configuration for the CLI transport."""

    binary: str = CLI_BINARY
    timeout: float | None = 60.0
    server_settle_seconds: float = 3.0
    distinguish_transport_errors: bool = False
