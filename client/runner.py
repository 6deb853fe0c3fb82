"""Client runners for net-testkit.

Contains run_daytime() and run_echo(), which validate the destination,
drive a client, print reports and return an exit code.
"""

import logging
from collections.abc import Iterable
from enum import IntEnum

from client.query import query
from client.stream import StreamClient
from common.connection import (
    ConnectFailedError,
    Endpoint,
    InvalidAddressError,
    InvalidPortError,
    NetClientError,
)
from common.protocol import (
    CONNECT_DEADLINE_S,
    DAYTIME_PORT,
    ECHO_PORT,
    RECEIVE_DEADLINE_S,
    Transport,
)
from common.report import ConnectReport
from session.report import QueryReport, SessionReport, describe_outcome
from session.result import ExchangeOutcome, Outcome

logger = logging.getLogger(__name__)


class ExitCode(IntEnum):
    """Exit codes for client operations."""

    SUCCESS = 0  # Reply received / session ended cleanly
    INVALID_ARGS = 1  # Bad port or address, nothing sent
    CONNECT_FAILED = 2  # Handshake timeout, refusal or unreachable peer
    EXCHANGE_FAILED = 3  # Timeout, peer close or transport error mid-exchange
    INTERRUPTED = 130  # Ctrl-C


def make_endpoint(host: str, port: int) -> Endpoint | None:
    """Build an Endpoint, logging and returning None if the port is invalid."""
    try:
        return Endpoint(host=host, port=port)
    except InvalidPortError as e:
        logger.error(f"Invalid port: {e}")
        return None


def print_banner(endpoint: Endpoint, transport: Transport) -> None:
    """Print the destination before any I/O starts."""
    print(f"Server: {endpoint.host}")
    print(f"Port: {endpoint.port}")
    print(f"Protocol: {transport.value.upper()}")


def print_outcome(outcome: ExchangeOutcome) -> None:
    """Print one echo exchange as it completes."""
    if outcome.ok:
        print(f"Echo: {outcome.text()}")
    else:
        print(f"Exchange failed: {describe_outcome(outcome)}")


def run_daytime(
    host: str,
    port: int = DAYTIME_PORT,
    deadline_s: float = RECEIVE_DEADLINE_S,
) -> int:
    """Run a single daytime query. Returns exit code."""
    endpoint = make_endpoint(host, port)
    if endpoint is None:
        return ExitCode.INVALID_ARGS

    print_banner(endpoint, Transport.DATAGRAM)

    outcome = query(endpoint, deadline_s=deadline_s)
    QueryReport(endpoint=endpoint, outcome=outcome).print()

    if outcome.ok:
        return ExitCode.SUCCESS
    if outcome.kind is Outcome.INVALID_ADDRESS:
        return ExitCode.INVALID_ARGS
    return ExitCode.EXCHANGE_FAILED


def run_echo(
    host: str,
    messages: Iterable[str],
    port: int = ECHO_PORT,
    connect_deadline_s: float = CONNECT_DEADLINE_S,
    receive_deadline_s: float = RECEIVE_DEADLINE_S,
) -> int:
    """Run an interactive echo session. Returns exit code.

    The client:
    - Connects within the connect deadline (no retry)
    - Sends each message and prints the echo as it arrives
    - Stops on quit/exit, end of input, peer close or the first failure
    """
    endpoint = make_endpoint(host, port)
    if endpoint is None:
        return ExitCode.INVALID_ARGS

    print_banner(endpoint, Transport.STREAM)

    with StreamClient(
        endpoint,
        connect_deadline_s=connect_deadline_s,
        receive_deadline_s=receive_deadline_s,
    ) as client:
        try:
            client.prepare()
        except InvalidAddressError as e:
            logger.error(f"Invalid address: {e}")
            return ExitCode.INVALID_ARGS
        except NetClientError as e:
            logger.error(f"Failed to create socket: {e}")
            return ExitCode.CONNECT_FAILED

        try:
            client.handshake()
        except ConnectFailedError as e:
            ConnectReport(connected=False, endpoint=endpoint, error=e).print()
            return ExitCode.CONNECT_FAILED

        ConnectReport(connected=True, endpoint=endpoint).print()

        result = client.exchange(messages, on_outcome=print_outcome)

    SessionReport(result=result).print()

    if not result.success:
        return ExitCode.EXCHANGE_FAILED
    return ExitCode.SUCCESS
