"""Host abstractions."""

from __future__ import annotations

from typing import Any

from .base import ResourceBase


class HostsResource(ResourceBase):
    """Manage iSCSI hosts, their ports and their LUNs."""

    def list(self) -> list[dict[str, Any]]:
        payload = self._get("iscsi/queryAllHost", bootstrap=True)
        return self._extract(payload, "hostList", list)

    def exists(self, host_name: str) -> bool:
        return any(host.get("hostName") == host_name for host in self.list())

    def create(self, host_name: str, ip_address: str) -> dict[str, Any]:
        """Create a host.

        Args:
            host_name: The host name.
            ip_address: The host IP address.
        """
        payload = {"hostName": host_name, "ipAddress": ip_address}
        return self._post("iscsi/createHost", payload, bootstrap=True)

    def delete(self, host_name: str) -> dict[str, Any]:
        return self._post("iscsi/deleteHost", {"hostName": host_name}, bootstrap=True)

    def add_port(self, host_name: str, initiator: str) -> dict[str, Any]:
        payload = {"hostName": host_name, "portNames": [initiator]}
        return self._post("iscsi/addPortToHost", payload, bootstrap=True)

    def remove_port(self, host_name: str, initiator: str) -> dict[str, Any]:
        payload = {"hostName": host_name, "portNames": [initiator]}
        return self._post("iscsi/deletePortFromHost", payload, bootstrap=True)

    def by_port(self, initiator: str) -> dict[str, list[str]]:
        """Return the initiator to host-name mapping for a port.

        Args:
            initiator: The initiator IQN.

        Returns:
            The `portHostMap` object, keyed by initiator.
        """
        payload = self._post("iscsi/queryHostByPort", {"portName": [initiator]}, bootstrap=True)
        return self._extract(payload, "portHostMap", dict)

    def add_lun(self, host_name: str, lun_name: str) -> dict[str, Any]:
        payload = {"hostName": host_name, "lunNames": [lun_name]}
        return self._post("iscsi/addLunsToHost", payload, bootstrap=True)

    def remove_lun(self, host_name: str, lun_name: str) -> dict[str, Any]:
        payload = {"hostName": host_name, "lunNames": [lun_name]}
        return self._post("iscsi/deleteLunFromHost", payload, bootstrap=True)

    def luns(self, host_name: str) -> list[dict[str, Any]]:
        payload = self._post("iscsi/queryHostLunInfo", {"hostName": host_name}, bootstrap=True)
        return self._extract(payload, "hostLunList", list)

    def for_volume(self, lun_name: str) -> list[dict[str, Any]]:
        payload = self._post("iscsi/queryHostFromVolume", {"lunName": lun_name}, bootstrap=True)
        return self._extract(payload, "hostList", list)
