"""Endpoint and error types for net-testkit.

Contains:
- Endpoint: Validated destination address
- ConnectFailure: Reason a stream handshake failed
- NetClientError and subclasses: Error taxonomy for bounded I/O
"""

from dataclasses import dataclass
from enum import Enum

from common.protocol import MAX_PORT, MIN_PORT


class NetClientError(Exception):
    """Base class for all client errors."""

    pass


class InvalidAddressError(NetClientError):
    """Raised when the host is not a usable address."""

    pass


class InvalidPortError(NetClientError, ValueError):
    """Raised when a port is outside 1-65535."""

    pass


class DeadlineExceededError(NetClientError):
    """Raised when an operation does not complete within its deadline."""

    pass


class PeerClosedError(NetClientError):
    """Raised when the peer closed its side of a stream."""

    pass


class TransportError(NetClientError):
    """Raised on any other socket failure.

    The OS diagnostic text is kept in `detail`.
    """

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail


class ConnectFailure(Enum):
    """Why a connection handshake failed."""

    TIMEOUT = "timeout"
    REFUSED = "refused"
    UNREACHABLE = "unreachable"
    ERROR = "error"


class ConnectFailedError(NetClientError):
    """Raised when the stream handshake fails."""

    def __init__(self, reason: ConnectFailure, detail: str) -> None:
        super().__init__(f"{reason.value}: {detail}")
        self.reason = reason
        self.detail = detail


def validate_port(port: int) -> int:
    """Return port unchanged, or raise InvalidPortError if out of range."""
    # bool is an int subclass but never a port
    if isinstance(port, bool) or not isinstance(port, int):
        raise InvalidPortError(f"Port must be an integer, got {port!r}")
    if not MIN_PORT <= port <= MAX_PORT:
        raise InvalidPortError(f"Port {port} outside {MIN_PORT}-{MAX_PORT}")
    return port


@dataclass(frozen=True)
class Endpoint:
    """Destination host and port."""

    host: str
    port: int

    def __post_init__(self) -> None:
        """Validate invariants."""
        validate_port(self.port)

    def __str__(self) -> str:
        if ":" in self.host:
            return f"[{self.host}]:{self.port}"
        return f"{self.host}:{self.port}"
