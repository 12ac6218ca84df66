"""High-level FusionStorage client entrypoints."""
from .client import StorageControlClient
from .config import CliConfig, ClientConfig, Credentials
from .errors import ErrorRecord, ErrorTranslator
from .exceptions import FusionStorageError
from .runner import EndpointSet, FailoverCommandRunner
from .session import SessionClient

__all__ = [
    "StorageControlClient",
    "SessionClient",
    "FailoverCommandRunner",
    "EndpointSet",
    "ErrorTranslator",
    "ErrorRecord",
    "ClientConfig",
    "CliConfig",
    "Credentials",
    "FusionStorageError",
]
