"""Remote service client for the bot backend."""

from .directory_client import DEFAULT_BASE_URL, DirectoryClient, filter_reachable
from .errors import (
    AuthenticationError,
    ClientCastError,
    ConfigError,
    DecodeError,
    ProtocolError,
    TransportError,
)

__all__ = [
    "DEFAULT_BASE_URL",
    "DirectoryClient",
    "filter_reachable",
    "AuthenticationError",
    "ClientCastError",
    "ConfigError",
    "DecodeError",
    "ProtocolError",
    "TransportError",
]
