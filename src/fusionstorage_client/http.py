"""HTTP utilities for FusionStorage REST access."""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

import requests
from requests import Response, Session

from .config import ENVELOPE_CODE_FIELD, TOKEN_HEADER
from .exceptions import DecodeError, EnvelopeError, HttpStatusError, TransportError

SUCCESS_CODE = 0


@dataclass(slots=True)
class ResponseEnvelope:
    """Decoded REST response with its envelope code and optional new token."""

    code: int
    payload: dict[str, Any]
    raw: str
    status_code: int
    token: str | None = None
    headers: Mapping[str, str] = field(default_factory=dict)


def ensure_success(response: Response, body: str) -> None:
    """Raise `HttpStatusError` if the status signals a client or server failure."""

    if 400 <= response.status_code <= 599:
        raise HttpStatusError(response.status_code, body)


def parse_envelope(
    response: Response,
    body: str,
    *,
    code_field: str = ENVELOPE_CODE_FIELD,
) -> ResponseEnvelope:
    """Decode the body and validate the envelope code."""

    try:
        payload = json.loads(body)
    except ValueError as exc:
        raise DecodeError(
            "Response did not contain valid JSON",
            status_code=response.status_code,
            details=body,
        ) from exc
    if not isinstance(payload, dict):
        raise DecodeError(
            "Response envelope is not a JSON object",
            status_code=response.status_code,
            details=body,
        )

    # Bootstrap responses omit the code entirely.
    code = payload.get(code_field, SUCCESS_CODE)
    if isinstance(code, bool) or not isinstance(code, int):
        raise DecodeError(
            f"Response envelope field {code_field!r} is not an integer",
            status_code=response.status_code,
            details=body,
        )
    if code != SUCCESS_CODE:
        raise EnvelopeError(code, body, status_code=response.status_code)

    return ResponseEnvelope(
        code=code,
        payload=payload,
        raw=body,
        status_code=response.status_code,
        token=response.headers.get(TOKEN_HEADER) or None,
        headers=response.headers,
    )


def request(
    session: Session,
    method: str,
    url: str,
    *,
    headers: Mapping[str, str] | None = None,
    json_payload: Mapping[str, Any] | None = None,
    timeout: float | tuple[float, float] | None = None,
    verify: bool | str = True,
    code_field: str = ENVELOPE_CODE_FIELD,
) -> ResponseEnvelope:
    """Make a request and return the validated response envelope."""

    data: bytes | None = None
    if json_payload:
        data = json.dumps(json_payload).encode("utf-8")

    try:
        response = session.request(
            method=method.upper(),
            url=url,
            headers=dict(headers or {}),
            data=data,
            timeout=timeout,
            verify=verify,
        )
        body = response.text
    except requests.RequestException as exc:
        reason = str(exc).strip() or exc.__class__.__name__
        raise TransportError(
            f"Failed to communicate with FusionStorage API: {reason}, url is {url}",
            details=reason,
        ) from exc

    ensure_success(response, body)
    return parse_envelope(response, body, code_field=code_field)
