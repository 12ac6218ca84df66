"""Storage pool helpers."""

from __future__ import annotations

from typing import Any

from .base import ResourceBase


class PoolsResource(ResourceBase):
    """Query FusionStorage storage pools."""

    def list(self) -> list[dict[str, Any]]:
        payload = self._get("/storagePool")
        return self._extract(payload, "storagePools", list)

    def get(self, pool_id: int | str) -> dict[str, Any] | None:
        """Find a storage pool by its identifier.

        Args:
            pool_id: The numeric pool identifier, as an int or a string.

        Returns:
            The pool object if found, else None.
        """
        for pool in self.list():
            if str(pool.get("poolId")) == str(pool_id):
                return pool
        return None
