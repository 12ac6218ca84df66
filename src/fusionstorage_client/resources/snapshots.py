"""Snapshot helpers."""

from __future__ import annotations

from typing import Any

from .base import ResourceBase


class SnapshotsResource(ResourceBase):
    """Create and delete volume snapshots."""

    def create(self, snapshot_name: str, volume_name: str) -> dict[str, Any]:
        return self._post(
            "/snapshot/create",
            {"volName": volume_name, "snapshotName": snapshot_name},
        )

    def delete(self, snapshot_name: str) -> dict[str, Any]:
        return self._post("/snapshot/delete", {"snapshotName": snapshot_name})
