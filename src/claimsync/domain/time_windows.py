"""Utilities for constraining claim syncs to a date range."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, time, timedelta
from typing import Protocol

DEFAULT_LOOKBACK = timedelta(days=60)


class Clock(Protocol):
    def __call__(self) -> datetime: ...


def utcnow() -> datetime:
    return datetime.now(UTC)


def _ensure_aware(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    if value.tzinfo is None:
        raise ValueError("Time window values must include timezone information")
    return value.astimezone(UTC)


def parse_iso_datetime(value: str) -> datetime:
    """Parse an ISO-8601 timestamp, treating naive values and a trailing ``Z`` as UTC."""

    try:
        normalized = value.strip()
        if normalized.endswith(("Z", "z")):
            normalized = normalized[:-1] + "+00:00"
        dt = datetime.fromisoformat(normalized)
    except (AttributeError, ValueError) as exc:
        raise ValueError(f"Invalid ISO timestamp: {value}") from exc
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def start_of_day(value: datetime) -> datetime:
    return datetime.combine(value.date(), time.min, tzinfo=UTC)


def end_of_day(value: datetime) -> datetime:
    return datetime.combine(value.date(), time(23, 59, 59, 999000), tzinfo=UTC)


@dataclass(frozen=True)
class TimeWindow:
    """Describe the desired temporal bounds for a sync run.

    Missing bounds are completed from the lookback: the end defaults to the last
    millisecond of the current UTC day and the start to midnight ``lookback`` days
    before today.
    """

    start: datetime | None = None
    end: datetime | None = None
    lookback: timedelta = DEFAULT_LOOKBACK

    def resolve(self, *, clock: Clock = utcnow) -> tuple[datetime, datetime]:
        """Resolve the window into concrete UTC timestamps."""

        if self.lookback < timedelta(0):
            raise ValueError("Lookback duration must be non-negative")

        resolved_start = _ensure_aware(self.start)
        resolved_end = _ensure_aware(self.end)

        if resolved_start is None or resolved_end is None:
            today = clock().astimezone(UTC)
            if resolved_end is None:
                resolved_end = end_of_day(today)
            if resolved_start is None:
                resolved_start = start_of_day(today - self.lookback)

        if resolved_start > resolved_end:
            raise ValueError("Time window start must be before end")

        return resolved_start, resolved_end


__all__ = [
    "DEFAULT_LOOKBACK",
    "Clock",
    "TimeWindow",
    "end_of_day",
    "parse_iso_datetime",
    "start_of_day",
    "utcnow",
]
