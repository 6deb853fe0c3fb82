"""Request/reply exchange for net-testkit.

Contains:
- exchange_loop: Interactive stream loop driven by a message iterable
"""

import logging
import time
from collections.abc import Callable, Iterable

from common.connection import NetClientError, PeerClosedError
from common.io import Session, receive_with_deadline, send_all
from common.protocol import (
    MESSAGE_ENCODING,
    QUIT_COMMANDS,
    RECEIVE_DEADLINE_S,
    RECV_BUFFER_SIZE,
    TRACE,
)
from session.result import ExchangeOutcome, StreamResult, Termination

logger = logging.getLogger(__name__)

OutcomeCallback = Callable[[ExchangeOutcome], None]


def _is_quit(message: str) -> bool:
    return message in QUIT_COMMANDS


def exchange_loop(
    session: Session,
    messages: Iterable[str],
    on_outcome: OutcomeCallback | None = None,
    max_bytes: int = RECV_BUFFER_SIZE,
    deadline_s: float = RECEIVE_DEADLINE_S,
) -> StreamResult:
    """Exchange messages over a connected stream session, one at a time.

    Messages are pulled lazily. Empty messages are skipped, a quit command
    ends the loop without sending anything, and running out of messages
    ends it cleanly. Each message that reaches the wire produces one
    outcome, passed to on_outcome before the next message is pulled. The
    first failure ends the loop.

    Args:
        session: Connected stream session.
        messages: Outbound messages, consumed one per iteration.
        on_outcome: Called with each outcome as it is produced.
        max_bytes: Receive buffer size.
        deadline_s: Per-operation deadline for send and receive.

    Returns:
        StreamResult with outcomes, termination and statistics.
    """
    result = StreamResult(termination=Termination.INPUT_CLOSED)
    start = time.monotonic()

    logger.info(f"Client: starting exchange with {session.endpoint}")

    for message in messages:
        if not message:
            result.skipped += 1
            logger.info("Client: empty message, nothing sent")
            continue

        if _is_quit(message):
            logger.info(f"Client: {message!r} entered, ending session")
            result.termination = Termination.USER_QUIT
            break

        request = message.encode(MESSAGE_ENCODING)
        rtt_start = time.monotonic()
        try:
            result.bytes_sent += send_all(session, request, deadline_s=deadline_s)
            result.sent += 1
            reply = receive_with_deadline(session, max_bytes, deadline_s=deadline_s)
        except PeerClosedError as e:
            logger.warning(f"Client: peer closed connection after {result.received} replies")
            result.termination = Termination.PEER_CLOSED
            result.error = e
        except NetClientError as e:
            logger.error(f"Client: exchange {result.sent} failed: {e}")
            result.termination = Termination.EXCHANGE_FAILED
            result.error = e

        if result.error is not None:
            outcome = ExchangeOutcome.from_error(result.error)
            result.outcomes.append(outcome)
            if on_outcome is not None:
                on_outcome(outcome)
            break

        rtt = time.monotonic() - rtt_start
        result.received += 1
        result.bytes_received += len(reply)
        result.rtt_samples.append(rtt)
        logger.log(TRACE, f"Client: reply {result.received} ({len(reply)} bytes, RTT={rtt * 1000:.2f}ms)")

        outcome = ExchangeOutcome.success(reply, rtt_s=rtt)
        result.outcomes.append(outcome)
        if on_outcome is not None:
            on_outcome(outcome)

    result.elapsed_s = time.monotonic() - start
    logger.info(
        f"Client: exchange ended ({result.termination.value}, "
        f"{result.sent} sent, {result.received} received)"
    )
    return result
