"""Tests for QueryService, the prompt-to-metrics pipeline."""

from collections.abc import Callable

import pytest

from telequery.core.models import Metric, QueryPrompt, TopN

pytestmark = [pytest.mark.core, pytest.mark.tier(1)]


@pytest.fixture
async def seeded(store, make_metric: Callable[..., Metric]) -> list[Metric]:
    """Store with cpu values 10, 5, 20, 1 (newest first) and one mem metric."""
    inserted = []
    for age, value in [(40, 1.0), (30, 20.0), (20, 5.0), (10, 10.0)]:
        inserted.append(
            await store.insert(
                make_metric(name="cpu", value=value, tags=("prod",), age_minutes=age)
            )
        )
    inserted.append(
        await store.insert(make_metric(name="mem", value=99.0, age_minutes=5))
    )
    return inserted


def _values(metrics: list[Metric]) -> list[float]:
    return [m.value for m in metrics]


class TestParsePrompt:
    """Tests for parse_prompt()."""

    def test_delegates_to_parser(self, query_service) -> None:
        """The service exposes the parser's structured result."""
        parsed = query_service.parse_prompt("Top 3 cpu metrics limit 2")
        assert parsed.metric_name == "cpu"
        assert parsed.aggregation == TopN(3)
        assert parsed.limit == 2


class TestExecuteQuery:
    """Tests for execute_query()."""

    @pytest.mark.tra("Query.Pipeline.MatchAll")
    async def test_unmatched_prompt_returns_everything(
        self, query_service, seeded
    ) -> None:
        """A prompt no rule understands lists all metrics newest first."""
        result = await query_service.execute_query(QueryPrompt("hello there"))
        assert _values(result) == [99.0, 10.0, 5.0, 20.0, 1.0]

    async def test_empty_prompt(self, query_service, seeded) -> None:
        """An empty prompt behaves like an unmatched one."""
        result = await query_service.execute_query(QueryPrompt(""))
        assert len(result) == len(seeded)

    async def test_filters_by_name(self, query_service, seeded) -> None:
        """The metric name narrows the fetch."""
        result = await query_service.execute_query(QueryPrompt("cpu metrics"))
        assert _values(result) == [10.0, 5.0, 20.0, 1.0]

    @pytest.mark.tra("Query.Pipeline.TopN")
    async def test_top_n(self, query_service, seeded) -> None:
        """TopN sorts by value descending and keeps N."""
        result = await query_service.execute_query(QueryPrompt("top 3 cpu metrics"))
        assert _values(result) == [20.0, 10.0, 5.0]

    async def test_limit_after_top_n(self, query_service, seeded) -> None:
        """The limit applies to the aggregated list."""
        result = await query_service.execute_query(
            QueryPrompt("top 3 cpu metrics limit 2")
        )
        assert _values(result) == [20.0, 10.0]

    async def test_limit_without_aggregation(self, query_service, seeded) -> None:
        """Without a directive the limit keeps the newest N."""
        result = await query_service.execute_query(QueryPrompt("cpu metrics limit 2"))
        assert _values(result) == [10.0, 5.0]

    @pytest.mark.tra("Query.Pipeline.PassThrough")
    @pytest.mark.parametrize("word", ["average", "sum", "count"])
    async def test_pass_through_directives(self, query_service, seeded, word) -> None:
        """Average, Sum and Count return the fetched list unchanged."""
        result = await query_service.execute_query(QueryPrompt(f"{word} of cpu metrics"))
        assert _values(result) == [10.0, 5.0, 20.0, 1.0]

    async def test_tags_and_time_range(self, query_service, seeded) -> None:
        """Tag and relative time constraints both apply."""
        result = await query_service.execute_query(
            QueryPrompt("metrics tagged with prod last 1 hour")
        )
        assert _values(result) == [10.0, 5.0, 20.0, 1.0]

    async def test_time_range_excludes_older(self, query_service, seeded) -> None:
        """Metrics outside the window are dropped."""
        result = await query_service.execute_query(QueryPrompt("last 1 hour limit 1"))
        assert _values(result) == [99.0]

    async def test_repeated_query_hits_cache(self, query_service, store, seeded) -> None:
        """The same prompt twice reads the store once."""
        await query_service.execute_query(QueryPrompt("top 2 cpu metrics"))
        await query_service.execute_query(QueryPrompt("top 2 cpu metrics"))
        assert store.find_calls == 1
