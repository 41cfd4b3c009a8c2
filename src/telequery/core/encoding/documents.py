"""JSON document encoding for metrics.

The same document shape is used for HTTP responses and for cache payloads.
"""

import json
from collections.abc import Iterable
from typing import Any

from telequery.core.filters import format_timestamp, parse_timestamp
from telequery.core.models import Metric


def metric_to_document(metric: Metric) -> dict[str, Any]:
    """Convert a metric to a JSON-compatible dict.

    The id and tags keys are omitted when absent.
    """
    document: dict[str, Any] = {}
    if metric.id is not None:
        document["id"] = metric.id
    document["name"] = metric.name
    if metric.tags is not None:
        document["tags"] = list(metric.tags)
    document["value"] = metric.value
    document["timestamp"] = format_timestamp(metric.timestamp)
    return document


def metric_from_document(document: dict[str, Any]) -> Metric:
    """Rebuild a metric from its document form.

    Raises:
        ValueError: If the document is missing fields or has invalid values.
    """
    try:
        name = document["name"]
        value = float(document["value"])
        raw_timestamp = document["timestamp"]
    except (KeyError, TypeError) as e:
        raise ValueError(f"Invalid metric document: {e!s}") from e

    timestamp = parse_timestamp(raw_timestamp)
    if not isinstance(name, str) or timestamp is None:
        raise ValueError("Invalid metric document: bad name or timestamp")

    raw_tags = document.get("tags")
    tags = None
    if raw_tags is not None:
        if not isinstance(raw_tags, list):
            raise ValueError("Invalid metric document: tags must be a list")
        tags = tuple(str(tag) for tag in raw_tags)

    metric_id = document.get("id")
    return Metric(
        id=str(metric_id) if metric_id is not None else None,
        name=name,
        tags=tags,
        value=value,
        timestamp=timestamp,
    )


def encode_metrics(metrics: Iterable[Metric]) -> str:
    """Encode metrics as a JSON array string."""
    return json.dumps([metric_to_document(m) for m in metrics])


def decode_metrics(payload: str) -> list[Metric]:
    """Decode a JSON array string produced by encode_metrics.

    Raises:
        ValueError: If the payload is not a JSON array of metric documents.
    """
    documents = json.loads(payload)
    if not isinstance(documents, list):
        raise ValueError("Metric payload must be a JSON array")
    return [metric_from_document(d) for d in documents]
