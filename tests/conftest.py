"""Pytest configuration and shared fixtures."""

import io
import logging

import pytest

from list_foreach.observability.logger import setup_logging

from .fixtures.fakes import FakeHttpClient


@pytest.fixture
def fake_client() -> FakeHttpClient:
    """Empty scripted client; add routes in the test."""
    return FakeHttpClient()


@pytest.fixture
def log_stream() -> io.StringIO:
    """Capture list_foreach log output.

    The package logger does not propagate, so caplog cannot see it.
    """
    stream = io.StringIO()
    setup_logging(level=logging.DEBUG, stream=stream, force=True)
    return stream
