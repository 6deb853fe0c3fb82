"""Bounded socket I/O for net-testkit.

Contains:
- Session: Single-owner socket handle, closed exactly once
- resolve_address: Turn an Endpoint into a socket family and address
- resolve_and_prepare: Create a Session for an Endpoint
- connect_with_deadline: Stream handshake bounded by a deadline
- send_all: Single-shot send of a payload
- receive_with_deadline: One receive call bounded by a deadline
- close: Release a Session

Every operation either completes, fails or times out before returning.
Failures are raised as NetClientError subclasses.
"""

import errno
import logging
import os
import select
import socket
from types import TracebackType

from common.connection import (
    ConnectFailedError,
    ConnectFailure,
    DeadlineExceededError,
    Endpoint,
    InvalidAddressError,
    PeerClosedError,
    TransportError,
)
from common.protocol import (
    CONNECT_DEADLINE_S,
    RECEIVE_DEADLINE_S,
    RECV_BUFFER_SIZE,
    SEND_DEADLINE_S,
    TRACE,
    Transport,
)

logger = logging.getLogger(__name__)

# connect_ex() results meaning "handshake still in progress"
_CONNECT_PENDING = {
    errno.EINPROGRESS,
    errno.EWOULDBLOCK,
    errno.EAGAIN,
    getattr(errno, "WSAEWOULDBLOCK", errno.EWOULDBLOCK),
}

_CONNECT_REFUSED = {errno.ECONNREFUSED}
_CONNECT_UNREACHABLE = {
    errno.ENETUNREACH,
    errno.EHOSTUNREACH,
    errno.ENETDOWN,
    getattr(errno, "EHOSTDOWN", errno.EHOSTUNREACH),
}
_CONNECT_TIMEOUT = {errno.ETIMEDOUT}


def _describe(err: OSError) -> str:
    """Return the OS diagnostic text for an error."""
    return err.strerror or str(err)


def _check_deadline(deadline_s: float) -> None:
    if deadline_s <= 0:
        raise ValueError(f"Deadline must be positive, got {deadline_s}")


def _socket_type(transport: Transport) -> socket.SocketKind:
    if transport is Transport.DATAGRAM:
        return socket.SOCK_DGRAM
    return socket.SOCK_STREAM


class Session:
    """Socket handle for one exchange or interactive run.

    Owned by a single caller and used from a single thread. Use as a
    context manager so the socket is released on every exit path.
    """

    def __init__(
        self,
        sock: socket.socket,
        endpoint: Endpoint,
        transport: Transport,
        family: socket.AddressFamily,
        address: tuple,
    ) -> None:
        self._sock: socket.socket | None = sock
        self.endpoint = endpoint
        self.transport = transport
        self.family = family
        self.address = address

    @property
    def closed(self) -> bool:
        return self._sock is None

    @property
    def sock(self) -> socket.socket:
        """The underlying socket. Raises TransportError once closed."""
        if self._sock is None:
            raise TransportError(f"Session to {self.endpoint} is closed")
        return self._sock

    def close(self) -> None:
        """Release the socket. Later calls do nothing."""
        if self._sock is None:
            return
        sock, self._sock = self._sock, None
        sock.close()
        logger.debug(f"Closed {self.transport.value} session to {self.endpoint}")

    def __enter__(self) -> "Session":
        return self

    def __exit__(
        self,
        _exc_type: type[BaseException] | None,
        _exc: BaseException | None,
        _tb: TracebackType | None,
    ) -> None:
        self.close()

    def __repr__(self) -> str:
        state = "closed" if self.closed else "open"
        return f"Session({self.transport.value}, {self.endpoint}, {state})"


def resolve_address(
    endpoint: Endpoint, transport: Transport
) -> tuple[socket.AddressFamily, tuple]:
    """Resolve endpoint to (family, sockaddr).

    Numeric IPv4 and IPv6 addresses are parsed directly. Anything else is
    looked up with getaddrinfo and the first result is used.

    Raises:
        InvalidAddressError: If the host is empty, malformed or unresolvable.
    """
    host = endpoint.host
    if not host:
        raise InvalidAddressError("Empty host")

    try:
        socket.inet_pton(socket.AF_INET, host)
        return socket.AF_INET, (host, endpoint.port)
    except (OSError, ValueError):
        pass

    try:
        socket.inet_pton(socket.AF_INET6, host)
        return socket.AF_INET6, (host, endpoint.port, 0, 0)
    except (OSError, ValueError):
        pass

    try:
        infos = socket.getaddrinfo(host, endpoint.port, type=_socket_type(transport))
    except (OSError, UnicodeError) as e:
        raise InvalidAddressError(f"Invalid address {host!r}: {e}") from e
    if not infos:
        raise InvalidAddressError(f"Invalid address {host!r}: no results")

    family, _, _, _, sockaddr = infos[0]
    logger.debug(f"Resolved {host} to {sockaddr[0]}")
    return family, sockaddr


def resolve_and_prepare(endpoint: Endpoint, transport: Transport) -> Session:
    """Resolve endpoint and create an unconnected socket for it.

    Raises:
        InvalidAddressError: If the host cannot be used.
        TransportError: If the socket cannot be created.
    """
    family, address = resolve_address(endpoint, transport)
    try:
        sock = socket.socket(family, _socket_type(transport))
    except OSError as e:
        raise TransportError(f"Cannot create socket: {_describe(e)}") from e

    logger.debug(f"Prepared {transport.value} session to {endpoint}")
    return Session(sock, endpoint, transport, family, address)


def _classify_connect_error(code: int) -> ConnectFailure:
    if code in _CONNECT_REFUSED:
        return ConnectFailure.REFUSED
    if code in _CONNECT_UNREACHABLE:
        return ConnectFailure.UNREACHABLE
    if code in _CONNECT_TIMEOUT:
        return ConnectFailure.TIMEOUT
    return ConnectFailure.ERROR


def connect_with_deadline(
    session: Session, deadline_s: float = CONNECT_DEADLINE_S
) -> None:
    """Connect a stream session, waiting at most deadline_s.

    The socket is switched to non-blocking mode for the attempt and its
    original mode is restored before returning, whatever the outcome.

    Raises:
        ConnectFailedError: On timeout, refusal, unreachable peer or other
            connect failure.
        TransportError: If the session is not a stream session.
    """
    _check_deadline(deadline_s)
    if session.transport is not Transport.STREAM:
        raise TransportError("connect requires a stream session")

    sock = session.sock
    original_timeout = sock.gettimeout()
    sock.setblocking(False)
    try:
        code = sock.connect_ex(session.address)
        if code in _CONNECT_PENDING:
            logger.log(TRACE, f"Connect to {session.endpoint} pending, waiting {deadline_s}s")
            _, writable, _ = select.select([], [sock], [], deadline_s)
            if not writable:
                raise ConnectFailedError(
                    ConnectFailure.TIMEOUT,
                    f"no response from {session.endpoint} within {deadline_s}s",
                )
            code = sock.getsockopt(socket.SOL_SOCKET, socket.SO_ERROR)
        if code != 0:
            raise ConnectFailedError(_classify_connect_error(code), os.strerror(code))
    except OSError as e:
        raise ConnectFailedError(ConnectFailure.ERROR, _describe(e)) from e
    finally:
        sock.settimeout(original_timeout)

    logger.debug(f"Connected to {session.endpoint}")


def send_all(
    session: Session, data: bytes, deadline_s: float = SEND_DEADLINE_S
) -> int:
    """Send data with a single send call. Returns bytes written.

    Datagram sessions send one datagram to the resolved address. A short
    write on a stream is not resumed.

    Raises:
        DeadlineExceededError: If the send does not complete in time.
        TransportError: On short write or any other socket failure.
    """
    _check_deadline(deadline_s)
    sock = session.sock
    sock.settimeout(deadline_s)
    try:
        if session.transport is Transport.DATAGRAM:
            sent = sock.sendto(data, session.address)
        else:
            sent = sock.send(data)
    except (socket.timeout, BlockingIOError) as e:
        raise DeadlineExceededError(
            f"Send to {session.endpoint} did not complete within {deadline_s}s"
        ) from e
    except OSError as e:
        raise TransportError(f"Send failed: {_describe(e)}") from e

    if sent != len(data):
        raise TransportError(f"Short write: {sent} of {len(data)} bytes")

    logger.log(TRACE, f"Sent {sent} bytes to {session.endpoint}")
    return sent


def _same_peer(session: Session, sender: tuple) -> bool:
    """Return True if a datagram sender matches the session's address."""
    try:
        return sender[1] == session.address[1] and socket.inet_pton(
            session.family, sender[0]
        ) == socket.inet_pton(session.family, session.address[0])
    except (OSError, ValueError, IndexError):
        return False


def receive_with_deadline(
    session: Session,
    max_bytes: int = RECV_BUFFER_SIZE,
    deadline_s: float = RECEIVE_DEADLINE_S,
) -> bytes:
    """Perform one receive call, waiting at most deadline_s.

    Whatever arrives in that call is the whole reply.

    Raises:
        DeadlineExceededError: If nothing arrives in time.
        PeerClosedError: On a zero-length read from a stream.
        TransportError: On any other socket failure, or a datagram from
            an address other than the session's peer.
    """
    _check_deadline(deadline_s)
    sock = session.sock
    sock.settimeout(deadline_s)
    try:
        if session.transport is Transport.DATAGRAM:
            data, sender = sock.recvfrom(max_bytes)
        else:
            data, sender = sock.recv(max_bytes), None
    except (socket.timeout, BlockingIOError) as e:
        raise DeadlineExceededError(
            f"No reply from {session.endpoint} within {deadline_s}s"
        ) from e
    except OSError as e:
        raise TransportError(f"Receive failed: {_describe(e)}") from e

    if sender is not None and not _same_peer(session, sender):
        raise TransportError(f"Reply from unexpected sender {sender[0]}:{sender[1]}")
    if session.transport is Transport.STREAM and not data:
        raise PeerClosedError(f"{session.endpoint} closed the connection")

    logger.log(TRACE, f"Received {len(data)} bytes from {session.endpoint}")
    return data


def close(session: Session) -> None:
    """Release a session's socket. Safe to call more than once."""
    session.close()
