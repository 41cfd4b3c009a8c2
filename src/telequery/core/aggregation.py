"""Post-fetch aggregation and result limiting."""

import math
from collections.abc import Sequence

from telequery.core.models import AggregationType, Average, Count, Metric, Sum, TopN


def _descending_value_key(metric: Metric) -> tuple[int, float]:
    # NaN sorts after every number, including -inf.
    if math.isnan(metric.value):
        return (1, 0.0)
    return (0, -metric.value)


def top_n(metrics: Sequence[Metric], count: int) -> list[Metric]:
    """Return the count highest-value metrics, highest first.

    The sort is stable, so equal values keep their incoming order.
    """
    if count <= 0:
        return []
    return sorted(metrics, key=_descending_value_key)[:count]


def aggregate(metrics: Sequence[Metric], directive: AggregationType) -> list[Metric]:
    """Apply an aggregation directive to a fetched result set.

    Only TopN reshapes the result. Average, Sum and Count return the input
    unchanged (same metrics, same order).

    Raises:
        TypeError: If directive is not a known aggregation variant.
    """
    if isinstance(directive, TopN):
        return top_n(metrics, directive.count)
    if isinstance(directive, Average):
        return list(metrics)
    if isinstance(directive, Sum):
        return list(metrics)
    if isinstance(directive, Count):
        return list(metrics)
    raise TypeError(f"Unknown aggregation directive: {directive!r}")


def apply_limit(metrics: Sequence[Metric], limit: int | None) -> list[Metric]:
    """Truncate to the first limit metrics; zero or negative yields nothing."""
    if limit is None:
        return list(metrics)
    if limit <= 0:
        return []
    return list(metrics[:limit])
