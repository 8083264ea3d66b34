"""Observability infrastructure for list-foreach.

Provides structured logging, raw HTTP dumps and run metrics.
"""

from .logger import LogContext, get_logger, log_context, setup_logging
from .metrics import RunMetrics
from .wire import WireBuffer, WireDump

__all__ = [
    "LogContext",
    "get_logger",
    "log_context",
    "setup_logging",
    "RunMetrics",
    "WireBuffer",
    "WireDump",
]
