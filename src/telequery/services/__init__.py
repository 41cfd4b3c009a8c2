"""Application services composing the core with store and cache ports."""

from telequery.services.query import QueryService
from telequery.services.telemetry import TelemetryService

__all__ = ["QueryService", "TelemetryService"]
