"""Core domain models for telemetry metrics and queries."""

import uuid
from dataclasses import dataclass
from datetime import UTC, datetime


def utc_now() -> datetime:
    """Return the current UTC instant truncated to millisecond precision."""
    now = datetime.now(UTC)
    return now.replace(microsecond=now.microsecond // 1000 * 1000)


def new_metric_id() -> str:
    """Generate a new opaque metric identity."""
    return uuid.uuid4().hex


def parse_metric_id(raw: str) -> str | None:
    """Normalize a caller-supplied metric identity.

    Args:
        raw: Identity as received from a caller.

    Returns:
        The canonical 32-character hex identity, or None if raw is malformed.
    """
    try:
        return uuid.UUID(raw.strip()).hex
    except (ValueError, AttributeError):
        return None


@dataclass(frozen=True)
class Metric:
    """A single telemetry event.

    Attributes:
        name: Metric name (e.g., cpu_usage).
        value: The measured value.
        timestamp: UTC instant assigned at creation, millisecond precision.
        tags: Optional ordered tags, None when the metric was created without tags.
        id: Store-assigned identity, None until the metric is persisted.
    """

    name: str
    value: float
    timestamp: datetime
    tags: tuple[str, ...] | None = None
    id: str | None = None


@dataclass(frozen=True)
class MetricFilter:
    """Structured predicate over stored metrics.

    An empty filter matches every metric. Tags use match-any semantics and
    the time bounds are inclusive RFC 3339 strings.
    """

    name: str | None = None
    tags: tuple[str, ...] | None = None
    start_date: str | None = None
    end_date: str | None = None


@dataclass(frozen=True)
class CreateMetricRequest:
    """Fields supplied when recording a new metric."""

    name: str
    value: float
    tags: tuple[str, ...] | None = None


@dataclass(frozen=True)
class UpdateMetricRequest:
    """Fields to change on an existing metric; None leaves a field untouched."""

    name: str | None = None
    tags: tuple[str, ...] | None = None
    value: float | None = None

    def is_empty(self) -> bool:
        """Return True when no field would be changed."""
        return self.name is None and self.tags is None and self.value is None


@dataclass(frozen=True)
class TimeRange:
    """A pair of optional UTC instants; either end may be open."""

    start: datetime | None = None
    end: datetime | None = None


@dataclass(frozen=True)
class TopN:
    """Keep the N highest-value metrics."""

    count: int


@dataclass(frozen=True)
class Average:
    """Average directive (currently returns its input unchanged)."""


@dataclass(frozen=True)
class Sum:
    """Sum directive (currently returns its input unchanged)."""


@dataclass(frozen=True)
class Count:
    """Count directive (currently returns its input unchanged)."""


AggregationType = TopN | Average | Sum | Count


@dataclass(frozen=True)
class ParsedQuery:
    """Fields extracted from a free-text prompt.

    Every field is independently optional; None means "no constraint".
    """

    metric_name: str | None = None
    tags: tuple[str, ...] | None = None
    time_range: TimeRange | None = None
    aggregation: AggregationType | None = None
    limit: int | None = None


@dataclass(frozen=True)
class QueryPrompt:
    """A free-text query as received from a caller."""

    prompt: str
