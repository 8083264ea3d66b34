"""Tests for list_foreach/observability: logging, wire dumps and metrics."""

import io
import json
import logging

from list_foreach.http.client import HttpResponse
from list_foreach.observability.logger import get_logger, log_context, setup_logging
from list_foreach.observability.metrics import RunMetrics
from list_foreach.observability.wire import WireBuffer, WireDump


class TestLogging:
    """Tests for formatters and log context."""

    def test_logger_namespace(self):
        """Module loggers live under the list_foreach logger."""
        assert get_logger("pipeline.worker").name == "list_foreach.pipeline.worker"
        assert get_logger("list_foreach.cli").name == "list_foreach.cli"

    def test_pretty_format_with_seq(self, log_stream):
        """The seed sequence number prefixes messages inside a context."""
        logger = get_logger("tests")

        with log_context(seq=4):
            logger.warning("retry url[4]: GET https://example.com")
        logger.info("outside")

        lines = log_stream.getvalue().splitlines()
        assert lines[0].endswith("WARN [#4] retry url[4]: GET https://example.com")
        assert lines[1].endswith("INFO outside")

    def test_json_format(self):
        """JSON lines carry context fields and extras."""
        stream = io.StringIO()
        setup_logging(level=logging.INFO, json_format=True, stream=stream, force=True)
        logger = get_logger("tests")

        with log_context(seq=2, url="https://example.com/v1/items"):
            logger.info("fetched", extra={"status": 200})

        entry = json.loads(stream.getvalue())
        assert entry["message"] == "fetched"
        assert entry["level"] == "info"
        assert entry["seq"] == 2
        assert entry["url"] == "https://example.com/v1/items"
        assert entry["status"] == 200

    def test_level_filters(self):
        """Debug messages are hidden at INFO level."""
        stream = io.StringIO()
        setup_logging(level=logging.INFO, stream=stream, force=True)

        get_logger("tests").debug("hidden")

        assert stream.getvalue() == ""

    def test_nested_context(self):
        """Inner contexts extend and then restore the outer one."""
        stream = io.StringIO()
        setup_logging(level=logging.INFO, json_format=True, stream=stream, force=True)
        logger = get_logger("tests")

        with log_context(seq=1):
            with log_context(attempt=2):
                logger.info("inner")
            logger.info("outer")

        inner, outer = (json.loads(line) for line in stream.getvalue().splitlines())
        assert inner["seq"] == 1 and inner["attempt"] == 2
        assert outer["seq"] == 1 and "attempt" not in outer


class TestWire:
    """Tests for raw HTTP dumps."""

    def test_request_and_response(self):
        buf = WireBuffer()
        buf.request("GET", "https://example.com/v1/items?pageToken=t", {"x-goog-user-project": "bill"})
        buf.response(HttpResponse(status=200, body=b'{"items":[]}', reason="OK", headers={"Content-Type": "application/json"}))

        assert buf.getvalue() == (
            "GET /v1/items?pageToken=t HTTP/1.1\r\n"
            "Host: example.com\r\n"
            "x-goog-user-project: bill\r\n\r\n"
            "HTTP/1.1 200 OK\r\n"
            "Content-Type: application/json\r\n\r\n"
            '{"items":[]}\n'
        )

    def test_authorization_redacted(self):
        """Bearer tokens never reach the dump."""
        buf = WireBuffer()
        buf.request("GET", "https://example.com/", {"Authorization": "Bearer secret-token"})

        assert "secret-token" not in buf.getvalue()
        assert "Authorization: Bearer <redacted>" in buf.getvalue()

    def test_flushed_on_error(self):
        """A failed attempt still dumps its request."""
        stream = io.StringIO()
        wire = WireDump(stream=stream)

        try:
            with wire.attempt() as buf:
                buf.request("GET", "https://example.com/v1/items", {})
                raise ConnectionError("refused")
        except ConnectionError:
            pass

        assert stream.getvalue().startswith("GET /v1/items HTTP/1.1")


class TestRunMetrics:
    """Tests for run counters."""

    def test_counters(self):
        metrics = RunMetrics()
        metrics.record_seed()
        metrics.record_request()
        metrics.record_request()
        metrics.record_retry(429)
        metrics.record_retry(503)
        metrics.record_retry(429)
        metrics.record_result()
        metrics.record_error("TransportError")
        metrics.complete()

        data = metrics.to_dict()
        assert data["requests"] == 2
        assert data["retries"] == 3
        assert data["retries_by_status"] == {429: 2, 503: 1}
        assert data["errors_by_type"] == {"TransportError": 1}
        assert data["ended_at"] is not None

    def test_summary(self):
        metrics = RunMetrics()
        metrics.record_dropped()
        metrics.record_retry(429)
        metrics.complete()

        summary = metrics.to_summary()

        assert "Dropped: 1" in summary
        assert "  429: 1" in summary
