"""Core types and errors for list-foreach."""

from .errors import (
    ConfigurationError,
    DecodeError,
    DispatchCancelledError,
    ListForEachError,
    PaginationLoopError,
    RetryableStatusError,
    RetryExhaustedError,
    SeedError,
    ShapeError,
    TransportError,
    classify_status,
)
from .types import InputFormat, OutputFormat, Result, Seed, WorkerState

__all__ = [
    # Errors
    "ListForEachError",
    "ConfigurationError",
    "SeedError",
    "TransportError",
    "DecodeError",
    "ShapeError",
    "PaginationLoopError",
    "RetryableStatusError",
    "RetryExhaustedError",
    "DispatchCancelledError",
    "classify_status",
    # Types
    "Seed",
    "Result",
    "WorkerState",
    "InputFormat",
    "OutputFormat",
]
