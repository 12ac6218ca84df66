"""iSCSI initiator port helpers."""

from __future__ import annotations

from typing import Any

from ..exceptions import UnexpectedResponseError
from .base import ResourceBase


class PortsResource(ResourceBase):
    """Manage iSCSI initiator ports."""

    def create(self, initiator: str) -> dict[str, Any]:
        return self._post("iscsi/createPort", {"portName": initiator}, bootstrap=True)

    def get(self, initiator: str) -> dict[str, Any]:
        return self._post("iscsi/queryPortInfo", {"portName": initiator}, bootstrap=True)

    def delete(self, initiator: str) -> dict[str, Any]:
        return self._post("iscsi/deletePort", {"portName": initiator}, bootstrap=True)

    def iscsi_portal(self, initiator: str) -> str:
        """Return the iSCSI target portal for an initiator.

        The portal is only exposed through the CLI transport, so this call
        goes through the agent failover sweep.
        """
        lines = self._run("--op", "queryIscsiPortalInfo", "--portName", initiator)
        if lines:
            return lines[0]
        raise UnexpectedResponseError("The iscsi target portal is empty.")
