"""FastAPI adapter for the metrics and query endpoints."""

import logging
import math
from collections.abc import Awaitable, Callable
from typing import Annotated, Any

from fastapi import APIRouter, Query, Response, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field, FiniteFloat

from telequery.core.encoding.documents import metric_to_document
from telequery.core.models import (
    CreateMetricRequest,
    Metric,
    MetricFilter,
    QueryPrompt,
    UpdateMetricRequest,
)
from telequery.services.query import QueryService
from telequery.services.telemetry import TelemetryService

logger = logging.getLogger(__name__)

_NOT_FOUND_BODY = {"error": "Metric not found"}


class CreateMetricBody(BaseModel):
    """Request body for POST /metrics."""

    name: str = Field(min_length=1)
    tags: list[str] | None = None
    value: FiniteFloat


class UpdateMetricBody(BaseModel):
    """Request body for PUT /metrics/{metric_id}."""

    name: str | None = Field(default=None, min_length=1)
    tags: list[str] | None = None
    value: FiniteFloat | None = None


def _as_tuple(tags: list[str] | None) -> tuple[str, ...] | None:
    return tuple(tags) if tags is not None else None


def _split_tags_param(tags: list[str] | None) -> tuple[str, ...] | None:
    """Accept repeated and comma-separated tag parameters alike."""
    if not tags:
        return None
    split = tuple(t.strip() for raw in tags for t in raw.split(",") if t.strip())
    return split or None


def _response_document(metric: Metric) -> dict[str, Any]:
    """Render a metric for a JSON response.

    Strict JSON has no NaN or Infinity, so non-finite values go out as null.
    """
    document = metric_to_document(metric)
    if not math.isfinite(document["value"]):
        document["value"] = None
    return document


def _documents(metrics: list[Metric]) -> list[dict[str, Any]]:
    return [_response_document(m) for m in metrics]


async def _handle_endpoint(
    action: str,
    endpoint_func: Callable[[], Awaitable[Response]],
) -> Response:
    """Run an endpoint, mapping infrastructure failures to a 500 response.

    Args:
        action: Short description used in the log and the error body.
        endpoint_func: Async function producing the success response.
    """
    try:
        return await endpoint_func()
    except Exception:
        logger.exception("Failed to %s", action)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": f"Failed to {action}"},
        )


def create_telemetry_router(
    telemetry_service: TelemetryService,
    query_service: QueryService,
) -> APIRouter:
    """Create a FastAPI router with the /metrics and /query endpoints.

    Args:
        telemetry_service: Service handling metric CRUD and cached listing.
        query_service: Service answering free-text prompts.

    Returns:
        APIRouter with the endpoints configured.
    """
    router = APIRouter()

    @router.post("/metrics", status_code=status.HTTP_201_CREATED)
    async def create_metric(body: CreateMetricBody) -> Response:
        """Record a metric; the server assigns identity and timestamp."""

        async def run() -> Response:
            metric = await telemetry_service.create_metric(
                CreateMetricRequest(
                    name=body.name, tags=_as_tuple(body.tags), value=body.value
                )
            )
            return JSONResponse(
                status_code=status.HTTP_201_CREATED,
                content=_response_document(metric),
            )

        return await _handle_endpoint("create metric", run)

    @router.get("/metrics")
    async def get_metrics(
        name: str | None = None,
        tags: Annotated[list[str] | None, Query()] = None,
        start_date: str | None = None,
        end_date: str | None = None,
    ) -> Response:
        """List metrics matching the filter, newest first.

        Results may be served from the cache for up to its expiry window.
        """
        metric_filter = MetricFilter(
            name=name,
            tags=_split_tags_param(tags),
            start_date=start_date,
            end_date=end_date,
        )

        async def run() -> Response:
            metrics = await telemetry_service.get_metrics(metric_filter)
            return JSONResponse(content=_documents(metrics))

        return await _handle_endpoint("get metrics", run)

    @router.put("/metrics/{metric_id}")
    async def update_metric(metric_id: str, body: UpdateMetricBody) -> Response:
        """Update name, tags or value of a metric."""

        async def run() -> Response:
            metric = await telemetry_service.update_metric(
                metric_id,
                UpdateMetricRequest(
                    name=body.name, tags=_as_tuple(body.tags), value=body.value
                ),
            )
            if metric is None:
                return JSONResponse(
                    status_code=status.HTTP_404_NOT_FOUND, content=_NOT_FOUND_BODY
                )
            return JSONResponse(content=_response_document(metric))

        return await _handle_endpoint("update metric", run)

    @router.delete("/metrics/{metric_id}")
    async def delete_metric(metric_id: str) -> Response:
        """Delete a metric by identity."""

        async def run() -> Response:
            if await telemetry_service.delete_metric(metric_id):
                return Response(status_code=status.HTTP_204_NO_CONTENT)
            return JSONResponse(
                status_code=status.HTTP_404_NOT_FOUND, content=_NOT_FOUND_BODY
            )

        return await _handle_endpoint("delete metric", run)

    @router.get("/query")
    async def query_metrics(prompt: str) -> Response:
        """Answer a free-text prompt such as "top 3 cpu metrics today"."""

        async def run() -> Response:
            metrics = await query_service.execute_query(QueryPrompt(prompt=prompt))
            return JSONResponse(content=_documents(metrics))

        return await _handle_endpoint("execute query", run)

    return router
