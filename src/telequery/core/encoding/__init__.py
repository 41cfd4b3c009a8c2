"""Encoders for metric documents."""

from telequery.core.encoding.documents import (
    decode_metrics,
    encode_metrics,
    metric_from_document,
    metric_to_document,
)

__all__ = [
    "decode_metrics",
    "encode_metrics",
    "metric_from_document",
    "metric_to_document",
]
