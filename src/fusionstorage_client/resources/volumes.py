"""Volume operations."""

from __future__ import annotations

from typing import Any

from .base import ResourceBase


class VolumesResource(ResourceBase):
    """Create, delete, attach and expand volumes."""

    def create(self, name: str, pool_id: int | str, size: int) -> dict[str, Any]:
        """Create a volume in a pool.

        Args:
            name: The volume name.
            pool_id: The numeric pool identifier; strings are converted.
            size: The volume size in MB.
        """
        payload = {"volName": name, "volSize": size, "poolId": int(pool_id)}
        return self._post("/volume/create", payload)

    def delete(self, name: str) -> dict[str, Any]:
        return self._post("/volume/delete", {"volNames": [name]})

    def attach(self, name: str, manage_ip: str) -> dict[str, Any]:
        return self._post("/volume/attach", {"volName": [name], "ipList": [manage_ip]})

    def expand(self, name: str, new_size: int) -> dict[str, Any]:
        return self._post("/volume/expand", {"volName": name, "newVolSize": new_size})
