"""Unit tests for exchange result types and reporting."""

import io
from contextlib import redirect_stdout

import pytest

from common.connection import (
    ConnectFailedError,
    ConnectFailure,
    DeadlineExceededError,
    Endpoint,
    InvalidAddressError,
    PeerClosedError,
    TransportError,
)
from common.report import ConnectReport
from session.report import QueryReport, SessionReport, ensure_line_terminated
from session.result import (
    ExchangeOutcome,
    Outcome,
    StreamResult,
    Termination,
    compute_latency_stats,
)

ENDPOINT = Endpoint("127.0.0.1", 13)


def _printed(report) -> str:
    output = io.StringIO()
    with redirect_stdout(output):
        report.print()
    return output.getvalue()


@pytest.mark.unit
class TestExchangeOutcome:
    """Tests for ExchangeOutcome invariants and classification."""

    def test_success(self) -> None:
        outcome = ExchangeOutcome.success(b"hello", rtt_s=0.01)
        assert outcome.ok
        assert outcome.kind is Outcome.SUCCESS
        assert outcome.text() == "hello"

    def test_success_rejects_detail(self) -> None:
        with pytest.raises(ValueError):
            ExchangeOutcome(Outcome.SUCCESS, payload=b"x", detail="oops")

    def test_failure_rejects_payload(self) -> None:
        with pytest.raises(ValueError):
            ExchangeOutcome(Outcome.TIMEOUT, payload=b"partial")

    def test_failure_rejects_rtt(self) -> None:
        with pytest.raises(ValueError):
            ExchangeOutcome(Outcome.TRANSPORT_ERROR, rtt_s=0.1, detail="x")

    @pytest.mark.parametrize(
        "error, kind",
        [
            (DeadlineExceededError("late"), Outcome.TIMEOUT),
            (PeerClosedError("gone"), Outcome.PEER_CLOSED),
            (InvalidAddressError("bad"), Outcome.INVALID_ADDRESS),
            (TransportError("Connection reset by peer"), Outcome.TRANSPORT_ERROR),
            (ConnectFailedError(ConnectFailure.REFUSED, "refused"), Outcome.TRANSPORT_ERROR),
        ],
    )
    def test_from_error(self, error: Exception, kind: Outcome) -> None:
        outcome = ExchangeOutcome.from_error(error)  # type: ignore[arg-type]
        assert outcome.kind is kind
        assert outcome.payload == b""
        assert outcome.detail == str(error)
        assert not outcome.ok

    def test_text_replaces_undecodable_bytes(self) -> None:
        assert ExchangeOutcome.success(b"\xffok").text() == "\ufffdok"


@pytest.mark.unit
class TestStreamResult:
    """Tests for StreamResult."""

    def test_default_values(self) -> None:
        result = StreamResult(termination=Termination.INPUT_CLOSED)
        assert result.outcomes == []
        assert result.sent == 0
        assert result.received == 0
        assert result.skipped == 0
        assert result.rtt_samples == []
        assert result.error is None

    @pytest.mark.parametrize(
        "termination, success, connected",
        [
            (Termination.USER_QUIT, True, True),
            (Termination.INPUT_CLOSED, True, True),
            (Termination.PEER_CLOSED, False, True),
            (Termination.EXCHANGE_FAILED, False, True),
            (Termination.CONNECT_FAILED, False, False),
            (Termination.INVALID_ADDRESS, False, False),
        ],
    )
    def test_success_and_connected(
        self, termination: Termination, success: bool, connected: bool
    ) -> None:
        result = StreamResult(termination=termination)
        assert result.success is success
        assert result.connected is connected

    def test_latency_stats(self) -> None:
        result = StreamResult(
            termination=Termination.USER_QUIT,
            rtt_samples=[0.001, 0.002, 0.003],
        )
        stats = result.latency_stats
        assert stats is not None
        assert stats.count == 3
        assert stats.min_ms == pytest.approx(1.0)
        assert stats.max_ms == pytest.approx(3.0)
        assert stats.avg_ms == pytest.approx(2.0)
        assert stats.p50_ms == pytest.approx(2.0)

    def test_latency_stats_empty(self) -> None:
        assert compute_latency_stats([]) is None


@pytest.mark.unit
class TestQueryReport:
    """Tests for QueryReport formatting."""

    def test_ensure_line_terminated(self) -> None:
        assert ensure_line_terminated("12:00") == "12:00\n"
        assert ensure_line_terminated("12:00\n") == "12:00\n"

    def test_success_with_newline(self) -> None:
        report = QueryReport(ENDPOINT, ExchangeOutcome.success(b"2024-01-01 00:00:00\n"))
        assert _printed(report) == "Time: 2024-01-01 00:00:00\n"
        assert report.success()

    def test_success_without_newline(self) -> None:
        """A newline is appended for display when the reply lacks one."""
        report = QueryReport(ENDPOINT, ExchangeOutcome.success(b"Mon Jan  1 00:00:00 2024"))
        assert _printed(report) == "Time: Mon Jan  1 00:00:00 2024\n"

    def test_timeout(self) -> None:
        report = QueryReport(ENDPOINT, ExchangeOutcome.from_error(DeadlineExceededError("5s")))
        text = _printed(report)
        assert "Query: FAILED" in text
        assert "no reply within deadline" in text
        assert not report.success()


@pytest.mark.unit
class TestSessionReport:
    """Tests for SessionReport formatting."""

    def test_success_report(self) -> None:
        result = StreamResult(
            termination=Termination.USER_QUIT,
            sent=3,
            received=3,
            rtt_samples=[0.002, 0.003, 0.004],
        )
        text = _printed(SessionReport(result=result))
        assert "Session: SUCCESS" in text
        assert "quit by user" in text
        assert "3 sent" in text
        assert "Latency:" in text
        assert SessionReport(result=result).success()

    def test_failed_report_with_stats(self) -> None:
        result = StreamResult(
            termination=Termination.PEER_CLOSED,
            sent=2,
            received=1,
            error=PeerClosedError("127.0.0.1:7 closed the connection"),
        )
        text = _printed(SessionReport(result=result))
        assert "Session: FAILED" in text
        assert "server closed the connection" in text
        assert "2 sent" in text
        assert "1 received" in text

    def test_no_latency_without_samples(self) -> None:
        result = StreamResult(termination=Termination.INPUT_CLOSED)
        assert "Latency:" not in _printed(SessionReport(result=result))


@pytest.mark.unit
class TestConnectReport:
    """Tests for ConnectReport."""

    def test_connected(self) -> None:
        report = ConnectReport(connected=True, endpoint=ENDPOINT)
        assert _printed(report) == "Connect: SUCCESS (127.0.0.1:13)\n"
        assert report.success()

    def test_failed(self) -> None:
        error = ConnectFailedError(ConnectFailure.REFUSED, "Connection refused")
        report = ConnectReport(connected=False, endpoint=ENDPOINT, error=error)
        text = _printed(report)
        assert "Connect: FAILED" in text
        assert "Connection refused" in text
        assert not report.success()

    def test_failed_requires_error(self) -> None:
        with pytest.raises(ValueError):
            ConnectReport(connected=False, endpoint=ENDPOINT)
