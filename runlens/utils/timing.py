"""Timestamp helpers shared by the collector and the aggregator."""

from __future__ import annotations

import time
from datetime import UTC, datetime

import structlog

logger = structlog.get_logger(__name__)


def utc_now() -> datetime:
    return datetime.now(UTC)


def iso_timestamp(moment: datetime) -> str:
    """Format as ISO-8601 with millisecond precision and a ``Z`` suffix."""
    return moment.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse an ISO-8601 timestamp, returning ``None`` when it is not one.

    Naive values are assumed to be UTC so they compare with aware ones.
    """
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        logger.debug("timestamp_unparseable", value=value)
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def minutes_between(start: datetime, end: datetime) -> str:
    """Elapsed minutes between two instants, formatted to 2 decimals."""
    return f"{(end - start).total_seconds() / 60:.2f}"


class StopWatch:
    """Wall-clock start time plus a monotonic clock for the elapsed span."""

    def __init__(self) -> None:
        self._started_at = utc_now()
        self._start = time.monotonic()

    @property
    def started_at(self) -> datetime:
        return self._started_at

    def elapsed_minutes(self) -> str:
        """Return minutes since construction, formatted to 2 decimals."""
        return f"{(time.monotonic() - self._start) / 60:.2f}"
