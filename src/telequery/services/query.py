"""Query service: prompt text in, metrics out."""

import logging

from telequery.core.aggregation import aggregate, apply_limit
from telequery.core.filters import build_filter
from telequery.core.models import Metric, ParsedQuery, QueryPrompt
from telequery.core.parser import PromptParser
from telequery.services.telemetry import TelemetryService

logger = logging.getLogger(__name__)


class QueryService:
    """Runs the query pipeline.

    parse -> build filter -> cache-aside fetch -> aggregate -> limit. The
    service holds no mutable state; concurrent requests share only the
    injected telemetry service and its store and cache handles.
    """

    def __init__(
        self, telemetry_service: TelemetryService, parser: PromptParser | None = None
    ) -> None:
        self._telemetry_service = telemetry_service
        self._parser = parser or PromptParser()

    def parse_prompt(self, prompt: str) -> ParsedQuery:
        """Extract structured query fields from prompt text."""
        return self._parser.parse(prompt)

    async def execute_query(self, prompt: QueryPrompt) -> list[Metric]:
        """Answer a free-text prompt with matching metrics.

        A prompt that matches no rule yields an empty filter and therefore
        every metric, newest first.
        """
        parsed = self.parse_prompt(prompt.prompt)
        logger.debug("Parsed prompt %r into %r", prompt.prompt, parsed)

        metrics = await self._telemetry_service.get_metrics(build_filter(parsed))

        if parsed.aggregation is not None:
            metrics = aggregate(metrics, parsed.aggregation)

        return apply_limit(metrics, parsed.limit)
