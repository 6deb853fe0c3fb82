"""Common modules for net-testkit.

This package contains shared code used by both clients:
- protocol: Transport enum, ports, deadlines, buffer size
- connection: Endpoint dataclass and the error taxonomy
- io: Bounded socket I/O (Session, connect/send/receive with deadlines)
- report: Reporting abstractions
"""

from common.connection import (
    ConnectFailedError,
    ConnectFailure,
    DeadlineExceededError,
    Endpoint,
    InvalidAddressError,
    InvalidPortError,
    NetClientError,
    PeerClosedError,
    TransportError,
)
from common.protocol import (
    CONNECT_DEADLINE_S,
    DAYTIME_PORT,
    DEFAULT_HOST,
    ECHO_PORT,
    QUIT_COMMANDS,
    RECEIVE_DEADLINE_S,
    RECV_BUFFER_SIZE,
    Transport,
)

__all__ = [
    # Protocol
    "Transport",
    "DAYTIME_PORT",
    "ECHO_PORT",
    "DEFAULT_HOST",
    "CONNECT_DEADLINE_S",
    "RECEIVE_DEADLINE_S",
    "RECV_BUFFER_SIZE",
    "QUIT_COMMANDS",
    # Connection
    "Endpoint",
    "ConnectFailure",
    # Exceptions
    "NetClientError",
    "ConnectFailedError",
    "DeadlineExceededError",
    "InvalidAddressError",
    "InvalidPortError",
    "PeerClosedError",
    "TransportError",
]
