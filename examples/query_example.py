"""Run prompts against an in-memory store without starting a server.

Run with:
    python examples/query_example.py
"""

import asyncio

from telequery.adapters.storage.in_memory import InMemoryCache, InMemoryMetricStore
from telequery.core.models import CreateMetricRequest, QueryPrompt
from telequery.services.query import QueryService
from telequery.services.telemetry import TelemetryService

PROMPTS = [
    "cpu metrics today",
    "top 2 cpu metrics",
    "metrics tagged with canary",
    "last 1 hour limit 1",
]


async def main() -> None:
    telemetry = TelemetryService(InMemoryMetricStore(), InMemoryCache())
    query = QueryService(telemetry)

    for name, value, tags in [
        ("cpu", 71.0, ("prod",)),
        ("cpu", 93.5, ("prod", "canary")),
        ("cpu", 12.0, None),
        ("mem", 2048.0, ("prod",)),
    ]:
        await telemetry.create_metric(CreateMetricRequest(name, value, tags))

    for prompt in PROMPTS:
        metrics = await query.execute_query(QueryPrompt(prompt))
        print(f"{prompt!r}:")
        for metric in metrics:
            print(f"  {metric.name}={metric.value} tags={metric.tags}")


if __name__ == "__main__":
    asyncio.run(main())
