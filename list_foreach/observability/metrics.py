"""Metrics collection for a list-foreach run.

Tracks request and result counts, retries and error types.

Usage:
    metrics = RunMetrics()
    metrics.record_request()
    metrics.record_retry(status=429)
    metrics.complete()
    logger.info(metrics.to_summary())
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass
class RunMetrics:
    """Counters for a single run.

    Workers only touch these from the event loop thread, so no lock is needed.
    """

    started_at: datetime = field(default_factory=datetime.now)
    ended_at: datetime | None = None

    # Counts
    seeds: int = 0
    requests: int = 0
    pages: int = 0
    retries: int = 0
    results: int = 0
    dropped: int = 0
    client_errors: int = 0

    # Retries by status, errors by type
    retries_by_status: dict[int, int] = field(default_factory=dict)
    errors_by_type: dict[str, int] = field(default_factory=dict)

    @property
    def duration_seconds(self) -> float:
        """Total duration in seconds."""
        end = self.ended_at or datetime.now()
        return (end - self.started_at).total_seconds()

    @property
    def requests_per_minute(self) -> float:
        """Observed request rate."""
        if self.duration_seconds == 0:
            return 0.0
        return self.requests / self.duration_seconds * 60

    def record_seed(self) -> None:
        self.seeds += 1

    def record_request(self) -> None:
        self.requests += 1

    def record_page(self) -> None:
        self.pages += 1

    def record_retry(self, status: int) -> None:
        """Record a retried response status."""
        self.retries += 1
        self.retries_by_status[status] = self.retries_by_status.get(status, 0) + 1

    def record_result(self) -> None:
        self.results += 1

    def record_dropped(self) -> None:
        """Record a non-200 terminal response dropped by --filter-error."""
        self.dropped += 1

    def record_client_error(self) -> None:
        """Record a terminal 4xx response."""
        self.client_errors += 1

    def record_error(self, error_type: str) -> None:
        self.errors_by_type[error_type] = self.errors_by_type.get(error_type, 0) + 1

    def complete(self) -> None:
        """Mark the run as complete."""
        self.ended_at = datetime.now()

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        return {
            "started_at": self.started_at.isoformat(),
            "ended_at": self.ended_at.isoformat() if self.ended_at else None,
            "duration_seconds": round(self.duration_seconds, 2),
            "seeds": self.seeds,
            "requests": self.requests,
            "pages": self.pages,
            "retries": self.retries,
            "results": self.results,
            "dropped": self.dropped,
            "client_errors": self.client_errors,
            "retries_by_status": self.retries_by_status,
            "errors_by_type": self.errors_by_type,
        }

    def to_summary(self) -> str:
        """Generate human-readable summary."""
        lines = [
            "Run Summary",
            "=" * 40,
            f"Duration: {self.duration_seconds:.1f}s",
            f"Seeds: {self.seeds}",
            f"Requests: {self.requests} ({self.requests_per_minute:.1f}/min)",
            f"Pages: {self.pages}",
            f"Results: {self.results}",
        ]
        if self.dropped:
            lines.append(f"Dropped: {self.dropped}")
        if self.client_errors:
            lines.append(f"Client errors: {self.client_errors}")

        if self.retries_by_status:
            lines.append("")
            lines.append(f"Retries: {self.retries}")
            for status, count in sorted(self.retries_by_status.items()):
                lines.append(f"  {status}: {count}")

        if self.errors_by_type:
            lines.append("")
            lines.append("Errors by Type:")
            for error_type, count in sorted(
                self.errors_by_type.items(), key=lambda x: -x[1]
            ):
                lines.append(f"  {error_type}: {count}")

        return "\n".join(lines)
