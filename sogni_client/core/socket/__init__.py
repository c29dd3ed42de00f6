"""
Socket Package

Persistent channel to the socket server:
- SocketClient: connection lifecycle, framing, typed events
- TransportStrategy: header vs cookie identity, keep-alive support
- ErrorCode: close code taxonomy
"""
from .envelope import decode_message, encode_message
from .error_codes import ErrorCode, is_not_recoverable
from .socket_client import (
    Connection,
    ServerConnectData,
    ServerDisconnectData,
    SocketClient,
    SocketState
)
from .strategies import (
    CookieTransport,
    HandshakeOptions,
    HeaderTransport,
    TransportStrategy,
    create_transport_strategy
)

__all__ = [
    "SocketClient",
    "SocketState",
    "Connection",
    "ServerConnectData",
    "ServerDisconnectData",
    "ErrorCode",
    "is_not_recoverable",
    "encode_message",
    "decode_message",
    "TransportStrategy",
    "HeaderTransport",
    "CookieTransport",
    "HandshakeOptions",
    "create_transport_strategy",
]
