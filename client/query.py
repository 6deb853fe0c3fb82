"""Connectionless daytime query for net-testkit.

One empty request datagram, one bounded wait for one reply datagram.
The session is closed on every path.
"""

import logging
import time
from enum import Enum

from common.connection import Endpoint, NetClientError
from common.io import receive_with_deadline, resolve_and_prepare, send_all
from common.protocol import (
    DAYTIME_REQUEST,
    RECEIVE_DEADLINE_S,
    RECV_BUFFER_SIZE,
    TRACE,
    Transport,
)
from session.result import ExchangeOutcome

logger = logging.getLogger(__name__)


class QueryState(Enum):
    """Progress of a single query."""

    UNINITIALIZED = "uninitialized"
    READY = "ready"
    SENT = "sent"
    AWAITING_REPLY = "awaiting_reply"
    DONE = "done"


def _enter(state: QueryState, endpoint: Endpoint) -> QueryState:
    logger.log(TRACE, f"Query: {endpoint} -> {state.value}")
    return state


def query(
    endpoint: Endpoint,
    deadline_s: float = RECEIVE_DEADLINE_S,
    max_bytes: int = RECV_BUFFER_SIZE,
) -> ExchangeOutcome:
    """Ask a daytime server for the current time.

    Returns a SUCCESS outcome with the reply bytes, or TIMEOUT,
    TRANSPORT_ERROR or INVALID_ADDRESS. Never raises for I/O failures.
    """
    state = _enter(QueryState.UNINITIALIZED, endpoint)

    try:
        session = resolve_and_prepare(endpoint, Transport.DATAGRAM)
    except NetClientError as e:
        logger.error(f"Query: cannot prepare session for {endpoint}: {e}")
        _enter(QueryState.DONE, endpoint)
        return ExchangeOutcome.from_error(e)

    with session:
        state = _enter(QueryState.READY, endpoint)
        rtt_start = time.monotonic()
        try:
            send_all(session, DAYTIME_REQUEST, deadline_s=deadline_s)
            state = _enter(QueryState.SENT, endpoint)
            state = _enter(QueryState.AWAITING_REPLY, endpoint)
            reply = receive_with_deadline(session, max_bytes, deadline_s=deadline_s)
        except NetClientError as e:
            logger.warning(f"Query: failed in state {state.value}: {e}")
            outcome = ExchangeOutcome.from_error(e)
        else:
            rtt = time.monotonic() - rtt_start
            logger.debug(f"Query: {len(reply)} bytes from {endpoint} (RTT={rtt * 1000:.2f}ms)")
            outcome = ExchangeOutcome.success(reply, rtt_s=rtt)

    _enter(QueryState.DONE, endpoint)
    return outcome
