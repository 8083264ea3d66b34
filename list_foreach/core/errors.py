"""Error hierarchy for list-foreach.

All run errors inherit from ListForEachError.
Use `is_retryable` property to determine if an error can be retried.
"""

from __future__ import annotations

from typing import Any


class ListForEachError(Exception):
    """Base error for all list-foreach errors.

    Attributes:
        message: Error description
        seq: Sequence number of the related seed (if applicable)
        url: Request URL (if applicable)
    """

    def __init__(
        self,
        message: str,
        *,
        seq: int | None = None,
        url: str | None = None,
    ) -> None:
        self.seq = seq
        self.url = url
        super().__init__(message)

    @property
    def is_retryable(self) -> bool:
        """Whether this error can be retried."""
        return False

    def to_dict(self) -> dict[str, Any]:
        """Serialize for structured logging."""
        return {
            "error_type": self.__class__.__name__,
            "message": str(self),
            "seq": self.seq,
            "url": self.url,
            "is_retryable": self.is_retryable,
        }


class ConfigurationError(ListForEachError):
    """Invalid options or filter program.

    Raised before any request is made.
    """


class SeedError(ListForEachError):
    """The expansion produced something that is not a usable seed URL."""

    def __init__(
        self,
        message: str,
        *,
        value: Any = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)
        self.value = value

    def to_dict(self) -> dict[str, Any]:
        d = super().to_dict()
        d["value"] = repr(self.value)
        return d


class TransportError(ListForEachError):
    """Connection failure, timeout or malformed request.

    Not retried - a transport failure aborts the run.
    """


class DecodeError(ListForEachError):
    """Response body or input record could not be decoded."""


class ShapeError(DecodeError):
    """A decoded field is present but has the wrong JSON type."""

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        expected: str | None = None,
        value: Any = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)
        self.field = field
        self.expected = expected
        self.value = value

    def to_dict(self) -> dict[str, Any]:
        d = super().to_dict()
        d["field"] = self.field
        d["expected"] = self.expected
        return d


class PaginationLoopError(ListForEachError):
    """The endpoint returned a page token it already returned for this seed."""

    def __init__(
        self,
        message: str = "nextPageToken loop detected",
        *,
        page_token: str | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)
        self.page_token = page_token


class RetryableStatusError(ListForEachError):
    """HTTP status that is retried under the backoff schedule (429, 5xx, ...)."""

    def __init__(
        self,
        message: str = "Retryable status",
        *,
        status: int | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)
        self.status = status

    @property
    def is_retryable(self) -> bool:
        return True

    def to_dict(self) -> dict[str, Any]:
        d = super().to_dict()
        d["status"] = self.status
        return d


class RetryExhaustedError(ListForEachError):
    """Backoff schedule ran out before the endpoint answered.

    This is NOT retryable - it is what remains after retrying.
    """

    def __init__(
        self,
        message: str = "backoff finally failed",
        *,
        attempts: int | None = None,
        last_status: int | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)
        self.attempts = attempts
        self.last_status = last_status

    def to_dict(self) -> dict[str, Any]:
        d = super().to_dict()
        d["attempts"] = self.attempts
        d["last_status"] = self.last_status
        return d


class DispatchCancelledError(ListForEachError):
    """A seed was submitted after the run had already been cancelled."""

    def __init__(self, message: str = "Run cancelled", **kwargs: Any) -> None:
        super().__init__(message, **kwargs)


def classify_status(status: int) -> str:
    """Classify an HTTP status into the worker's routing decision.

    Returns:
        "ok" for 200, "terminal" for 4xx other than 429, "retry" otherwise
    """
    if status == 200:
        return "ok"
    if status == 429:
        return "retry"
    if 400 <= status < 500:
        return "terminal"
    return "retry"
