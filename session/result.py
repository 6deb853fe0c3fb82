"""Exchange result types for net-testkit.

Contains:
- Outcome: Tag of a single request/reply exchange
- ExchangeOutcome: Result of one send+receive cycle
- Termination: Why an interactive stream session ended
- LatencyStats: Computed latency statistics in milliseconds
- compute_latency_stats: Compute stats from RTT samples
- StreamResult: Result from an interactive stream session
"""

from dataclasses import dataclass, field
from enum import Enum

from common.connection import (
    DeadlineExceededError,
    InvalidAddressError,
    NetClientError,
    PeerClosedError,
)
from common.protocol import MESSAGE_ENCODING


class Outcome(Enum):
    """Tag of an exchange outcome."""

    SUCCESS = "success"
    TIMEOUT = "timeout"
    PEER_CLOSED = "peer_closed"
    TRANSPORT_ERROR = "transport_error"
    INVALID_ADDRESS = "invalid_address"


@dataclass(frozen=True)
class ExchangeOutcome:
    """Result of one request/reply exchange.

    A SUCCESS outcome carries the reply payload and never a detail. Any
    other outcome carries a detail and never a payload.
    """

    kind: Outcome
    payload: bytes = b""
    detail: str | None = None
    rtt_s: float | None = None

    def __post_init__(self) -> None:
        """Validate invariants."""
        if self.kind is Outcome.SUCCESS:
            if self.detail is not None:
                raise ValueError("detail is not allowed on a SUCCESS outcome")
        elif self.payload or self.rtt_s is not None:
            raise ValueError(f"payload is not allowed on a {self.kind.name} outcome")

    @classmethod
    def success(cls, payload: bytes, rtt_s: float | None = None) -> "ExchangeOutcome":
        return cls(Outcome.SUCCESS, payload=payload, rtt_s=rtt_s)

    @classmethod
    def from_error(cls, error: NetClientError) -> "ExchangeOutcome":
        """Classify a client error into an outcome."""
        if isinstance(error, DeadlineExceededError):
            kind = Outcome.TIMEOUT
        elif isinstance(error, PeerClosedError):
            kind = Outcome.PEER_CLOSED
        elif isinstance(error, InvalidAddressError):
            kind = Outcome.INVALID_ADDRESS
        else:
            kind = Outcome.TRANSPORT_ERROR
        return cls(kind, detail=str(error))

    @property
    def ok(self) -> bool:
        return self.kind is Outcome.SUCCESS

    def text(self) -> str:
        """Return the payload decoded for display."""
        return self.payload.decode(MESSAGE_ENCODING, errors="replace")


class Termination(Enum):
    """Why an interactive stream session ended."""

    USER_QUIT = "user_quit"  # Quit command entered
    INPUT_CLOSED = "input_closed"  # Caller ran out of messages
    PEER_CLOSED = "peer_closed"  # Zero-length read
    EXCHANGE_FAILED = "exchange_failed"  # Timeout or transport error mid-session
    CONNECT_FAILED = "connect_failed"  # Handshake failed
    INVALID_ADDRESS = "invalid_address"  # Host could not be used


# Terminations that count as a clean run
CLEAN_TERMINATIONS = frozenset({Termination.USER_QUIT, Termination.INPUT_CLOSED})


@dataclass
class LatencyStats:
    """Computed latency statistics in milliseconds."""

    count: int
    min_ms: float
    max_ms: float
    avg_ms: float
    p50_ms: float
    p95_ms: float
    p99_ms: float


def compute_latency_stats(rtt_samples: list[float]) -> LatencyStats | None:
    """Compute latency statistics from RTT samples (in seconds).

    Returns None if no samples available.
    """
    if not rtt_samples:
        return None

    samples_ms = sorted(s * 1000 for s in rtt_samples)

    def percentile(p: float) -> float:
        return samples_ms[int(p / 100 * (len(samples_ms) - 1))]

    return LatencyStats(
        count=len(samples_ms),
        min_ms=samples_ms[0],
        max_ms=samples_ms[-1],
        avg_ms=sum(samples_ms) / len(samples_ms),
        p50_ms=percentile(50),
        p95_ms=percentile(95),
        p99_ms=percentile(99),
    )


@dataclass
class StreamResult:
    """Result from an interactive stream session.

    Attributes:
        termination: Why the session ended.
        outcomes: One outcome per message that reached the wire, in order.
            The last one is the failure when the session ended on an error.
        sent: Messages successfully written.
        received: Replies successfully read.
        skipped: Empty messages dropped without I/O.
        bytes_sent: Total bytes written.
        bytes_received: Total bytes read.
        rtt_samples: Round-trip times in seconds.
        elapsed_s: Time spent in the exchange loop.
        error: Error that ended the session, if any.
    """

    termination: Termination
    outcomes: list[ExchangeOutcome] = field(default_factory=list)
    sent: int = 0
    received: int = 0
    skipped: int = 0
    bytes_sent: int = 0
    bytes_received: int = 0
    rtt_samples: list[float] = field(default_factory=list)
    elapsed_s: float = 0.0
    error: NetClientError | None = None

    @property
    def success(self) -> bool:
        """Return True if the session ended cleanly."""
        return self.termination in CLEAN_TERMINATIONS

    @property
    def connected(self) -> bool:
        """Return True if the handshake completed."""
        return self.termination not in (
            Termination.CONNECT_FAILED,
            Termination.INVALID_ADDRESS,
        )

    @property
    def latency_stats(self) -> LatencyStats | None:
        """Compute latency statistics from RTT samples."""
        return compute_latency_stats(self.rtt_samples)
