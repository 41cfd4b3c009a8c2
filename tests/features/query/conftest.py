"""BDD step definitions for query pipeline features."""

import pytest
from pytest_bdd import given, parsers, then, when
from tests.features.query.steps_helpers import (
    SCENARIO_NOW,
    QueryScenarioContext,
    parse_values,
    run_async,
)

from telequery.core.models import Metric, QueryPrompt


@pytest.fixture
def ctx() -> QueryScenarioContext:
    """Fresh scenario context for each test."""
    return QueryScenarioContext()


def _record(ctx: QueryScenarioContext, metric: Metric) -> None:
    run_async(ctx.store.insert(metric))


@given("an empty telemetry store")
def step_empty_store(ctx: QueryScenarioContext) -> None:
    assert ctx.store.reads == 0


@given(parsers.parse('"{name}" metrics with values {values} tagged "{tag}"'))
def step_tagged_metrics(
    ctx: QueryScenarioContext, name: str, values: str, tag: str
) -> None:
    # equal timestamps: the last value recorded is listed first
    for value in parse_values(values):
        _record(
            ctx,
            Metric(name=name, value=value, tags=(tag,), timestamp=SCENARIO_NOW),
        )


@given(parsers.parse('a "{name}" metric with value {value:g}'))
@when(parsers.parse('a "{name}" metric with value {value:g} is recorded'))
def step_single_metric(ctx: QueryScenarioContext, name: str, value: float) -> None:
    _record(ctx, Metric(name=name, value=value, timestamp=SCENARIO_NOW))


@when(parsers.parse('I query "{prompt}"'))
def step_query(ctx: QueryScenarioContext, prompt: str) -> None:
    ctx.results = run_async(ctx.query_service.execute_query(QueryPrompt(prompt)))


@then(parsers.parse("the result values are {values}"))
def step_result_values(ctx: QueryScenarioContext, values: str) -> None:
    assert [m.value for m in ctx.results] == parse_values(values)


@then(parsers.parse("the store was read {n:d} time"))
def step_store_reads(ctx: QueryScenarioContext, n: int) -> None:
    assert ctx.store.reads == n
