"""Authenticated, versioned REST session handling."""

from __future__ import annotations

import logging
import threading
from collections.abc import Mapping
from typing import Any

import requests
import urllib3
from urllib3.exceptions import InsecureRequestWarning

from .config import LOGIN_PATH, TOKEN_HEADER, VERSION_PATH, ClientConfig, Credentials
from .exceptions import (
    FusionStorageError,
    OperationCancelledError,
    SessionEstablishmentError,
    UnexpectedResponseError,
)
from .http import ResponseEnvelope
from .http import request as http_request

logger = logging.getLogger(__name__)


class Session:
    """Lock-guarded holder for the headers, API version and token of one login."""

    def __init__(self, headers: Mapping[str, str] | None = None) -> None:
        self._lock = threading.Lock()
        self._base_headers: dict[str, str] = dict(headers or {})
        self._headers: dict[str, str] = dict(self._base_headers)
        self._version: str | None = None
        self._token: str | None = None
        self.discovery_error: FusionStorageError | None = None

    @property
    def version(self) -> str | None:
        with self._lock:
            return self._version

    @property
    def token(self) -> str | None:
        with self._lock:
            return self._token

    def current_headers(self) -> dict[str, str]:
        with self._lock:
            headers = dict(self._headers)
            if self._token:
                headers[TOKEN_HEADER] = self._token
            return headers

    def apply_token_update(self, token: str) -> None:
        with self._lock:
            self._token = token

    def set_version(self, version: str) -> None:
        with self._lock:
            self._version = version

    def set_discovery_error(self, error: FusionStorageError) -> None:
        with self._lock:
            self.discovery_error = error

    def set_header(self, name: str, value: str) -> None:
        with self._lock:
            self._headers[name] = value

    def reset(self) -> None:
        with self._lock:
            self._headers = dict(self._base_headers)
            self._version = None
            self._token = None
            self.discovery_error = None


class SessionClient:
    """Execute REST exchanges against one FusionStorage manager."""

    def __init__(
        self,
        config: ClientConfig,
        credentials: Credentials,
        *,
        http_session: requests.Session | None = None,
    ) -> None:
        self.config = config
        self.credentials = credentials
        self.session = Session(config.resolved_headers())
        self._http = http_session or requests.Session()
        self._login_lock = threading.Lock()
        self._suppress_insecure_warning_if_needed()

    def __enter__(self) -> SessionClient:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # pragma: no cover - passthrough
        self.close()

    def establish_session(
        self,
        credentials: Credentials | None = None,
        base_url: str | None = None,
    ) -> None:
        """Discover the API version and log in, capturing the session token.

        A failed version discovery is logged and recorded on
        `session.discovery_error`; login still proceeds without a version
        segment in the URL.
        """
        with self._login_lock:
            if credentials is not None:
                self.credentials = credentials
            if base_url is not None:
                self.config.base_url = base_url.rstrip("/")
            self.session.reset()
            self._discover_version()
            payload = {
                "userName": self.credentials.username,
                "password": self.credentials.password,
            }
            try:
                self.execute(LOGIN_PATH, "POST", payload=payload)
            except FusionStorageError as exc:
                raise SessionEstablishmentError(
                    f"Failed to log in to FusionStorage at {self.config.base_url}: {exc}",
                    status_code=exc.status_code,
                    details=exc.details,
                ) from exc
            logger.info(
                "FusionStorage session established (version=%s)",
                self.session.version or "unresolved",
            )

    def execute(
        self,
        path: str,
        method: str = "GET",
        *,
        bootstrap: bool = False,
        payload: Mapping[str, Any] | None = None,
        cancel: threading.Event | None = None,
    ) -> ResponseEnvelope:
        url = self.build_url(path, bootstrap=bootstrap)
        if cancel is not None and cancel.is_set():
            raise OperationCancelledError(f"Request cancelled before sending, url is {url}")
        self._log_request(method, url)
        envelope = http_request(
            self._http,
            method,
            url,
            headers=self.session.current_headers(),
            json_payload=payload,
            timeout=self.config.timeout,
            verify=self.config.verify_ssl,
            code_field=self.config.envelope_code_field,
        )
        if envelope.token:
            self.session.apply_token_update(envelope.token)
        if cancel is not None and cancel.is_set():
            raise OperationCancelledError(f"Request cancelled while in flight, url is {url}")
        return envelope

    def build_url(self, path: str, *, bootstrap: bool = False) -> str:
        version = "" if bootstrap else (self.session.version or "")
        return f"{self.config.api_base}{version}{path}"

    def close(self) -> None:
        self._http.close()

    # Internal helpers -------------------------------------------------------
    def _discover_version(self) -> None:
        self.session.set_header("Referer", self.config.api_base)
        try:
            envelope = self.execute(VERSION_PATH, "GET", bootstrap=True)
            version = envelope.payload.get("currentVersion")
            if not isinstance(version, str) or not version:
                raise UnexpectedResponseError(
                    "Version response did not include currentVersion", details=envelope.raw
                )
        except FusionStorageError as exc:
            self.session.set_discovery_error(exc)
            logger.warning(
                "FusionStorage version discovery failed, continuing login without a version: %s",
                exc,
            )
            return
        self.session.set_version(version)

    def _log_request(self, method: str, url: str) -> None:
        logger.info("FusionStorage request %s %s", method.upper(), url)

    def _suppress_insecure_warning_if_needed(self) -> None:
        if isinstance(self.config.verify_ssl, bool) and not self.config.verify_ssl:
            urllib3.disable_warnings(InsecureRequestWarning)
