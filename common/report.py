"""Reporting abstractions for net-testkit.

Contains:
- Report ABC: Base class for all reports
- ConnectReport: Report after a stream handshake completes or fails
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from common.connection import Endpoint


class Report(ABC):
    """Abstract base class for client reports."""

    @abstractmethod
    def print(self) -> None:
        """Print the report to stdout."""
        pass

    @abstractmethod
    def success(self) -> bool:
        """Return True if the report indicates success."""
        pass


@dataclass
class ConnectReport(Report):
    """Report after the stream handshake.

    When connected=False, error should be set.
    """

    connected: bool
    endpoint: Endpoint
    error: Exception | None = None

    def __post_init__(self) -> None:
        """Validate invariants."""
        if not self.connected and self.error is None:
            raise ValueError("error is required when connected=False")

    def print(self) -> None:
        """Print the connect report."""
        if self.connected:
            print(f"Connect: SUCCESS ({self.endpoint})")
        else:
            print(f"Connect: FAILED ({self.endpoint}: {self.error})")

    def success(self) -> bool:
        """Return True if the handshake succeeded."""
        return self.connected
