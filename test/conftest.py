"""pytest configuration and fixtures for net-testkit tests.

Provides:
- UdpResponder: Local daytime-style datagram stub
- TcpResponder: Local stream stub (echo, silent, close after read)
- FakeSocket: Scriptable socket for connect-path unit tests
- Fixtures starting stubs on 127.0.0.1 and finding unused ports
- Markers for unit vs integration tests
"""

import socket
import threading
from collections.abc import Generator
from pathlib import Path

import pytest

STUB_HOST = "127.0.0.1"
POLL_INTERVAL_S = 0.05
DAYTIME_REPLY = b"2024-01-01 00:00:00\n"


class UdpResponder:
    """Datagram stub bound to 127.0.0.1.

    Answers every datagram with `reply`, or stays silent if reply is None.
    With reply_from_other_socket=True, the answer comes from a different
    port than the one the request was sent to.
    """

    def __init__(self, reply: bytes | None, reply_from_other_socket: bool = False) -> None:
        self.reply = reply
        self.requests: list[bytes] = []
        self._sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        self._sock.bind((STUB_HOST, 0))
        self._sock.settimeout(POLL_INTERVAL_S)
        self._other = (
            socket.socket(socket.AF_INET, socket.SOCK_DGRAM) if reply_from_other_socket else None
        )
        self.port: int = self._sock.getsockname()[1]
        self._stop = threading.Event()
        self._thread = threading.Thread(target=self._serve, daemon=True)
        self._thread.start()

    def _serve(self) -> None:
        while not self._stop.is_set():
            try:
                data, addr = self._sock.recvfrom(4096)
            except socket.timeout:
                continue
            except OSError:
                break
            self.requests.append(data)
            if self.reply is None:
                continue
            sender = self._other if self._other is not None else self._sock
            sender.sendto(self.reply, addr)

    def close(self) -> None:
        self._stop.set()
        self._thread.join(timeout=2)
        self._sock.close()
        if self._other is not None:
            self._other.close()


class TcpResponder:
    """Stream stub bound to 127.0.0.1, serving one connection at a time.

    Modes:
    - "echo": send back every chunk received
    - "silent": read everything, never reply
    - "close": read one chunk, then close the connection without replying
    - "echo_once": echo the first chunk, then shut down the write side
      and keep reading silently

    Every byte received is recorded in `received`.
    """

    def __init__(self, mode: str = "echo") -> None:
        self.mode = mode
        self.received = bytearray()
        self.connections = 0
        self.disconnected = threading.Event()
        self._lock = threading.Lock()
        self._listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self._listener.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        self._listener.bind((STUB_HOST, 0))
        self._listener.listen(1)
        self._listener.settimeout(POLL_INTERVAL_S)
        self.port: int = self._listener.getsockname()[1]
        self._stop = threading.Event()
        self._thread = threading.Thread(target=self._serve, daemon=True)
        self._thread.start()

    def _serve(self) -> None:
        while not self._stop.is_set():
            try:
                conn, _ = self._listener.accept()
            except socket.timeout:
                continue
            except OSError:
                break
            with conn:
                self.connections += 1
                conn.settimeout(POLL_INTERVAL_S)
                self._handle(conn)
            self.disconnected.set()

    def _handle(self, conn: socket.socket) -> None:
        half_closed = False
        while not self._stop.is_set():
            try:
                data = conn.recv(4096)
            except socket.timeout:
                continue
            except OSError:
                return
            if not data:
                return
            with self._lock:
                self.received.extend(data)
            if self.mode == "silent" or half_closed:
                continue
            if self.mode == "close":
                return
            conn.sendall(data)
            if self.mode == "echo_once":
                conn.shutdown(socket.SHUT_WR)
                half_closed = True

    def received_bytes(self) -> bytes:
        with self._lock:
            return bytes(self.received)

    def close(self) -> None:
        self._stop.set()
        self._thread.join(timeout=2)
        self._listener.close()


class FakeSocket:
    """Socket stand-in for exercising connect_with_deadline branches."""

    def __init__(self, connect_result: int, so_error: int = 0, timeout: float | None = None) -> None:
        self.connect_result = connect_result
        self.so_error = so_error
        self._timeout = timeout
        self.blocking_history: list[float | None] = []
        self.closed = False

    def gettimeout(self) -> float | None:
        return self._timeout

    def setblocking(self, flag: bool) -> None:
        self._timeout = None if flag else 0.0
        self.blocking_history.append(self._timeout)

    def settimeout(self, value: float | None) -> None:
        self._timeout = value
        self.blocking_history.append(value)

    def connect_ex(self, _address: tuple) -> int:
        return self.connect_result

    def getsockopt(self, _level: int, _option: int) -> int:
        return self.so_error

    def close(self) -> None:
        self.closed = True


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: mark test as unit test")
    config.addinivalue_line("markers", "integration: mark test as integration test (local sockets)")


@pytest.fixture
def daytime_stub() -> Generator[UdpResponder, None, None]:
    """Datagram stub answering every request with a fixed timestamp."""
    stub = UdpResponder(DAYTIME_REPLY)
    yield stub
    stub.close()


@pytest.fixture
def silent_udp_stub() -> Generator[UdpResponder, None, None]:
    """Datagram stub that never answers."""
    stub = UdpResponder(None)
    yield stub
    stub.close()


@pytest.fixture
def echo_stub() -> Generator[TcpResponder, None, None]:
    """Stream stub echoing every chunk verbatim."""
    stub = TcpResponder("echo")
    yield stub
    stub.close()


@pytest.fixture
def tcp_stub_factory() -> Generator:
    """Factory for stream stubs in any mode, closed after the test."""
    stubs: list[TcpResponder] = []

    def make(mode: str) -> TcpResponder:
        stub = TcpResponder(mode)
        stubs.append(stub)
        return stub

    yield make
    for stub in stubs:
        stub.close()


@pytest.fixture
def unused_tcp_port() -> int:
    """Return a local TCP port with no listener."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind((STUB_HOST, 0))
        return s.getsockname()[1]


@pytest.fixture
def script_dir() -> Path:
    """Return path to the project root."""
    return Path(__file__).parent.parent


@pytest.fixture
def netclient_path(script_dir: Path) -> Path:
    """Return path to netclient.py."""
    return script_dir / "netclient.py"


@pytest.fixture
def misdirected_udp_stub() -> Generator[UdpResponder, None, None]:
    """Datagram stub whose answers come from a different port."""
    stub = UdpResponder(DAYTIME_REPLY, reply_from_other_socket=True)
    yield stub
    stub.close()


@pytest.fixture
def fake_socket() -> type[FakeSocket]:
    """Return the FakeSocket class for building scripted sockets."""
    return FakeSocket
