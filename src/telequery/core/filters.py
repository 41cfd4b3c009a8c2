"""Filter construction and canonical cache keys."""

import json
from datetime import UTC, datetime

from telequery.core.models import Metric, MetricFilter, ParsedQuery

CACHE_KEY_PREFIX = "metrics:"


def format_timestamp(instant: datetime) -> str:
    """Encode an instant as RFC 3339 UTC with millisecond precision."""
    return instant.astimezone(UTC).isoformat(timespec="milliseconds").replace(
        "+00:00", "Z"
    )


def parse_timestamp(value: str) -> datetime | None:
    """Decode an RFC 3339 timestamp; naive values are read as UTC.

    Returns:
        A UTC datetime, or None if value does not parse or its offset
        moves it outside the representable range.
    """
    try:
        parsed = datetime.fromisoformat(value.strip())
    except (ValueError, AttributeError):
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    try:
        return parsed.astimezone(UTC)
    except OverflowError:
        return None


def build_filter(query: ParsedQuery) -> MetricFilter:
    """Convert parsed prompt fields into a MetricFilter."""
    start_date = end_date = None
    if query.time_range is not None:
        if query.time_range.start is not None:
            start_date = format_timestamp(query.time_range.start)
        if query.time_range.end is not None:
            end_date = format_timestamp(query.time_range.end)
    return MetricFilter(
        name=query.metric_name,
        tags=query.tags,
        start_date=start_date,
        end_date=end_date,
    )


def resolve_bounds(
    metric_filter: MetricFilter,
) -> tuple[datetime | None, datetime | None]:
    """Return the filter's (start, end) instants, skipping unparseable bounds."""
    start = end = None
    if metric_filter.start_date is not None:
        start = parse_timestamp(metric_filter.start_date)
    if metric_filter.end_date is not None:
        end = parse_timestamp(metric_filter.end_date)
    return start, end


def matches(metric: Metric, metric_filter: MetricFilter) -> bool:
    """Evaluate a filter against a single metric in process."""
    if metric_filter.name is not None and metric.name != metric_filter.name:
        return False
    if metric_filter.tags is not None:
        if not metric.tags or not set(metric.tags) & set(metric_filter.tags):
            return False
    start, end = resolve_bounds(metric_filter)
    if start is not None and metric.timestamp < start:
        return False
    if end is not None and metric.timestamp > end:
        return False
    return True


def _canonical_bound(value: str | None) -> str | None:
    if value is None:
        return None
    parsed = parse_timestamp(value)
    return format_timestamp(parsed) if parsed is not None else value


def canonical_key(metric_filter: MetricFilter) -> str:
    """Derive the deterministic cache key for a filter.

    Tags are de-duplicated and sorted (membership is match-any, so order
    carries no meaning) and parseable bounds are normalized to UTC.
    """
    tags = None
    if metric_filter.tags is not None:
        tags = sorted(set(metric_filter.tags))
    document = {
        "name": metric_filter.name,
        "tags": tags,
        "start_date": _canonical_bound(metric_filter.start_date),
        "end_date": _canonical_bound(metric_filter.end_date),
    }
    return CACHE_KEY_PREFIX + json.dumps(
        document, sort_keys=True, separators=(",", ":")
    )
