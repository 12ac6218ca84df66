"""Resource-specific convenience wrappers."""
from .hosts import HostsResource
from .pools import PoolsResource
from .ports import PortsResource
from .snapshots import SnapshotsResource
from .volumes import VolumesResource

__all__ = [
    "PoolsResource",
    "VolumesResource",
    "SnapshotsResource",
    "HostsResource",
    "PortsResource",
]
