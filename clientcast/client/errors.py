"""Error taxonomy for remote calls and configuration."""

from __future__ import annotations


class ClientCastError(Exception):
    """Base class for every error raised by clientcast."""


class TransportError(ClientCastError):
    """Connection failure or timeout before a response was received."""


class ProtocolError(ClientCastError):
    def __init__(self, status_code: int, body: str, url: str = "") -> None:
        self.status_code = status_code
        self.body = body
        self.url = url
        super().__init__(f"API error: status {status_code}, response: {body[:500]}")


class DecodeError(ClientCastError):
    """Response body was not the JSON shape the endpoint promises."""


class AuthenticationError(ClientCastError):
    pass


class ConfigError(ClientCastError):
    pass
