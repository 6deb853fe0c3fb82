"""Interactive stream (echo) client for net-testkit.

Contains:
- StreamState: Lifecycle of a StreamClient
- StreamClient: prepare -> handshake -> exchange loop -> close

States:
  UNINITIALIZED -> RESOLVED -> CONNECTING -> CONNECTED -> EXCHANGING -> CLOSED

Any state can move to CLOSED. close_reason records why.
"""

import logging
from collections.abc import Iterable
from enum import Enum
from types import TracebackType

from client.handshake import stream_handshake
from common.connection import (
    ConnectFailedError,
    Endpoint,
    InvalidAddressError,
    NetClientError,
)
from common.io import Session, resolve_and_prepare
from common.protocol import (
    CONNECT_DEADLINE_S,
    RECEIVE_DEADLINE_S,
    RECV_BUFFER_SIZE,
    Transport,
)
from session.exchange import OutcomeCallback, exchange_loop
from session.result import StreamResult, Termination

logger = logging.getLogger(__name__)


class StreamState(Enum):
    """Lifecycle of a StreamClient."""

    UNINITIALIZED = "uninitialized"
    RESOLVED = "resolved"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    EXCHANGING = "exchanging"
    CLOSED = "closed"


class StreamClient:
    """Echo client owning one stream session.

    Not reusable: once CLOSED, create a new client for a new session.
    """

    def __init__(
        self,
        endpoint: Endpoint,
        connect_deadline_s: float = CONNECT_DEADLINE_S,
        receive_deadline_s: float = RECEIVE_DEADLINE_S,
        max_bytes: int = RECV_BUFFER_SIZE,
    ) -> None:
        self.endpoint = endpoint
        self.connect_deadline_s = connect_deadline_s
        self.receive_deadline_s = receive_deadline_s
        self.max_bytes = max_bytes
        self.state = StreamState.UNINITIALIZED
        self.close_reason: Termination | None = None
        self._session: Session | None = None

    def _require(self, state: StreamState, action: str) -> None:
        if self.state is not state:
            raise RuntimeError(f"Cannot {action} in state {self.state.value}")

    def _set_state(self, state: StreamState) -> None:
        logger.debug(f"Client: {self.state.value} -> {state.value}")
        self.state = state

    def prepare(self) -> Session:
        """Resolve the endpoint and create the stream socket.

        Raises InvalidAddressError or TransportError; the client is then CLOSED.
        """
        self._require(StreamState.UNINITIALIZED, "prepare")
        try:
            self._session = resolve_and_prepare(self.endpoint, Transport.STREAM)
        except InvalidAddressError:
            self.close(Termination.INVALID_ADDRESS)
            raise
        except NetClientError:
            self.close(Termination.CONNECT_FAILED)
            raise
        self._set_state(StreamState.RESOLVED)
        return self._session

    def handshake(self) -> None:
        """Connect within the connect deadline.

        Raises ConnectFailedError; the client is then CLOSED.
        """
        self._require(StreamState.RESOLVED, "handshake")
        assert self._session is not None
        self._set_state(StreamState.CONNECTING)
        try:
            stream_handshake(self._session, deadline_s=self.connect_deadline_s)
        except ConnectFailedError:
            self.close(Termination.CONNECT_FAILED)
            raise
        self._set_state(StreamState.CONNECTED)

    def exchange(
        self,
        messages: Iterable[str],
        on_outcome: OutcomeCallback | None = None,
    ) -> StreamResult:
        """Run the exchange loop, then close the session."""
        self._require(StreamState.CONNECTED, "exchange")
        assert self._session is not None
        self._set_state(StreamState.EXCHANGING)
        try:
            result = exchange_loop(
                self._session,
                messages,
                on_outcome=on_outcome,
                max_bytes=self.max_bytes,
                deadline_s=self.receive_deadline_s,
            )
        finally:
            self.close()
        self.close_reason = result.termination
        return result

    def run(
        self,
        messages: Iterable[str],
        on_outcome: OutcomeCallback | None = None,
    ) -> StreamResult:
        """Prepare, connect and exchange. Always returns a StreamResult.

        Client errors never escape; they become the result's termination
        and error. The session is closed on every path.
        """
        try:
            try:
                self.prepare()
                self.handshake()
            except InvalidAddressError as e:
                return StreamResult(termination=Termination.INVALID_ADDRESS, error=e)
            except NetClientError as e:
                return StreamResult(termination=Termination.CONNECT_FAILED, error=e)
            return self.exchange(messages, on_outcome)
        finally:
            self.close()

    def close(self, reason: Termination | None = None) -> None:
        """Release the session. Later calls do nothing."""
        if self.state is StreamState.CLOSED:
            return
        if self._session is not None:
            self._session.close()
        if self.close_reason is None:
            self.close_reason = reason
        self._set_state(StreamState.CLOSED)

    def __enter__(self) -> "StreamClient":
        return self

    def __exit__(
        self,
        _exc_type: type[BaseException] | None,
        _exc: BaseException | None,
        _tb: TracebackType | None,
    ) -> None:
        self.close()
