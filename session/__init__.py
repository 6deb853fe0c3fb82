"""Request/reply exchange package for net-testkit.

This package handles what happens once a session exists:
- The interactive stream loop (skip empty, stop on quit, stop on failure)
- Outcome, termination and latency statistics types
- Reporting
"""

from session.exchange import exchange_loop
from session.report import QueryReport, SessionReport, ensure_line_terminated
from session.result import (
    ExchangeOutcome,
    LatencyStats,
    Outcome,
    StreamResult,
    Termination,
    compute_latency_stats,
)

__all__ = [
    "ExchangeOutcome",
    "LatencyStats",
    "Outcome",
    "QueryReport",
    "SessionReport",
    "StreamResult",
    "Termination",
    "compute_latency_stats",
    "ensure_line_terminated",
    "exchange_loop",
]
