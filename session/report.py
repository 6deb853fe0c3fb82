"""Exchange reporting for net-testkit.

Contains:
- ensure_line_terminated: Presentation helper for daytime replies
- QueryReport: Report after a daytime query
- SessionReport: Report after an interactive stream session ends
"""

from dataclasses import dataclass

from common.connection import Endpoint
from common.report import Report
from session.result import ExchangeOutcome, Outcome, StreamResult, Termination

_OUTCOME_LABELS = {
    Outcome.TIMEOUT: "no reply within deadline",
    Outcome.PEER_CLOSED: "server closed the connection",
    Outcome.TRANSPORT_ERROR: "transport error",
    Outcome.INVALID_ADDRESS: "invalid address",
}

_TERMINATION_LABELS = {
    Termination.USER_QUIT: "quit by user",
    Termination.INPUT_CLOSED: "input closed",
    Termination.PEER_CLOSED: "server closed the connection",
    Termination.EXCHANGE_FAILED: "exchange failed",
    Termination.CONNECT_FAILED: "connect failed",
    Termination.INVALID_ADDRESS: "invalid address",
}


def ensure_line_terminated(text: str) -> str:
    """Append a newline unless text already ends with one."""
    return text if text.endswith("\n") else text + "\n"


def describe_outcome(outcome: ExchangeOutcome) -> str:
    """One-line description of a failed outcome."""
    label = _OUTCOME_LABELS.get(outcome.kind, outcome.kind.value)
    return f"{label} ({outcome.detail})" if outcome.detail else label


@dataclass
class QueryReport(Report):
    """Report after a daytime query."""

    endpoint: Endpoint
    outcome: ExchangeOutcome

    def print(self) -> None:
        """Print the query report."""
        if self.outcome.ok:
            print(f"Time: {ensure_line_terminated(self.outcome.text())}", end="")
        else:
            print(f"Query: FAILED ({self.endpoint}: {describe_outcome(self.outcome)})")

    def success(self) -> bool:
        """Return True if a reply was received."""
        return self.outcome.ok


@dataclass
class SessionReport(Report):
    """Report after an interactive stream session ends."""

    result: StreamResult

    def print(self) -> None:
        """Print the session report."""
        r = self.result
        reason = _TERMINATION_LABELS[r.termination]

        if r.success:
            print(f"Session: SUCCESS ({reason}, {r.sent} sent, {r.received} received)")
        else:
            detail = f": {r.error}" if r.error is not None else ""
            print(f"Session: FAILED ({reason}{detail})")
            if r.sent > 0 or r.received > 0:
                print(f"         ({r.sent} sent, {r.received} received)")

        latency = r.latency_stats
        if latency:
            print(
                f"Latency: avg={latency.avg_ms:.2f}ms min={latency.min_ms:.2f}ms "
                f"max={latency.max_ms:.2f}ms (n={latency.count})"
            )

    def success(self) -> bool:
        """Return True if the session ended cleanly."""
        return self.result.success
