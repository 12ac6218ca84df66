"""Common helpers for resource wrappers."""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from ..exceptions import UnexpectedResponseError

if TYPE_CHECKING:  # pragma: no cover - import-time guard
    from ..client import StorageControlClient


class ResourceBase:
    """Provide shared helpers for resource modules."""

    def __init__(self, client: StorageControlClient) -> None:
        self._client = client

    def _get(self, path: str, *, bootstrap: bool = False) -> dict[str, Any]:
        return self._client.request("GET", path, bootstrap=bootstrap)

    def _post(
        self,
        path: str,
        payload: Mapping[str, Any],
        *,
        bootstrap: bool = False,
    ) -> dict[str, Any]:
        return self._client.request("POST", path, payload=payload, bootstrap=bootstrap)

    def _run(self, *args: str) -> list[str]:
        return self._client.run_command(*args)

    @staticmethod
    def _extract(payload: Mapping[str, Any], key: str, expected: type) -> Any:
        """Return `payload[key]`, an empty `expected` when absent, or raise on a wrong type."""
        value = payload.get(key)
        if value is None:
            return expected()
        if not isinstance(value, expected):
            raise UnexpectedResponseError(
                f"Expected {key!r} to be a {expected.__name__} in the FusionStorage response",
                details=dict(payload),
            )
        return value
