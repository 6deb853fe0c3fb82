"""Client-side stream handshake for net-testkit.

A single bounded connect attempt. Any failure is terminal: there is no
retry and no fallback address.
"""

import logging
import time

from common.connection import ConnectFailedError
from common.io import Session, connect_with_deadline
from common.protocol import CONNECT_DEADLINE_S

logger = logging.getLogger(__name__)


def stream_handshake(session: Session, deadline_s: float = CONNECT_DEADLINE_S) -> None:
    """Connect a prepared stream session to its endpoint.

    Raises ConnectFailedError on timeout, refusal or unreachable peer.
    """
    logger.info(f"Client: connecting to {session.endpoint} (deadline {deadline_s}s)")
    start = time.monotonic()

    try:
        connect_with_deadline(session, deadline_s=deadline_s)
    except ConnectFailedError as e:
        logger.warning(
            f"Client: connect to {session.endpoint} failed after "
            f"{time.monotonic() - start:.2f}s ({e.reason.value}: {e.detail})"
        )
        raise

    logger.info(
        f"Client: connection established ({session.endpoint}, "
        f"{(time.monotonic() - start) * 1000:.1f}ms)"
    )
