"""Prompt parser turning free text into a ParsedQuery.

Each field is extracted by an ordered tuple of rules. The first rule that
yields a value decides the field; later rules for that field are not tried.
Rules are plain data so they can be inspected and tested on their own.
"""

import re
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, time, timedelta
from typing import Generic, TypeVar

from telequery.core.models import (
    AggregationType,
    Average,
    Count,
    ParsedQuery,
    Sum,
    TimeRange,
    TopN,
)

T = TypeVar("T")

Clock = Callable[[], datetime]


@dataclass(frozen=True)
class PatternRule(Generic[T]):
    """A regex paired with an extractor for its match.

    The extractor may return None to reject a match, in which case the next
    rule for the field is tried.
    """

    pattern: re.Pattern[str]
    extract: Callable[[re.Match[str], datetime], T | None]

    def apply(self, text: str, now: datetime) -> T | None:
        match = self.pattern.search(text)
        if match is None:
            return None
        return self.extract(match, now)


@dataclass(frozen=True)
class KeywordRule(Generic[T]):
    """Yields a fixed result when any keyword occurs in the text."""

    keywords: tuple[str, ...]
    result: Callable[[datetime], T]

    def apply(self, text: str, now: datetime) -> T | None:
        if any(keyword in text for keyword in self.keywords):
            return self.result(now)
        return None


Rule = PatternRule[T] | KeywordRule[T]


def first_match(rules: tuple[Rule[T], ...], text: str, now: datetime) -> T | None:
    """Evaluate rules in order and return the first non-None result."""
    for rule in rules:
        result = rule.apply(text, now)
        if result is not None:
            return result
    return None


# --- Metric name ---


def _group(match: re.Match[str], now: datetime) -> str:
    return match.group(1)


def _capture_int(match: re.Match[str]) -> int | None:
    # int() refuses digit strings past the interpreter's conversion limit
    try:
        return int(match.group(1))
    except ValueError:
        return None


METRIC_NAME_RULES: tuple[Rule[str], ...] = (
    PatternRule(re.compile(r"metric[s]?\s+(?:named?|called?)\s+(\w+)"), _group),
    PatternRule(re.compile(r"(\w+)\s+metric[s]?"), _group),
    PatternRule(re.compile(r"event[s]?\s+(?:named?|called?)\s+(\w+)"), _group),
)


# --- Tags ---


def _split_tags(match: re.Match[str], now: datetime) -> tuple[str, ...] | None:
    tags = tuple(t.strip() for t in match.group(1).split(",") if t.strip())
    return tags or None


TAG_RULES: tuple[Rule[tuple[str, ...]], ...] = (
    PatternRule(re.compile(r"tag[s]?\s+(?:=|:)\s*\[([^\]]+)\]"), _split_tags),
    PatternRule(re.compile(r"tagged?\s+with\s+(\w+(?:\s*,\s*\w+)*)"), _split_tags),
)


# --- Time range ---

_UNITS: dict[str, timedelta] = {
    "hour": timedelta(hours=1),
    "day": timedelta(days=1),
    "week": timedelta(weeks=1),
    "month": timedelta(days=30),
}


def _start_of_day(instant: datetime) -> datetime:
    return datetime.combine(instant.date(), time.min, tzinfo=UTC)


def _today(now: datetime) -> TimeRange:
    return TimeRange(start=_start_of_day(now), end=now)


def _yesterday(now: datetime) -> TimeRange:
    day = (now - timedelta(days=1)).date()
    return TimeRange(
        start=datetime.combine(day, time(0, 0, 0), tzinfo=UTC),
        end=datetime.combine(day, time(23, 59, 59), tzinfo=UTC),
    )


def _relative(match: re.Match[str], now: datetime) -> TimeRange | None:
    amount = _capture_int(match)
    if amount is None:
        return None
    try:
        return TimeRange(start=now - _UNITS[match.group(2)] * amount, end=now)
    except OverflowError:
        return None


TIME_RANGE_RULES: tuple[Rule[TimeRange], ...] = (
    KeywordRule(("today",), _today),
    KeywordRule(("yesterday",), _yesterday),
    PatternRule(re.compile(r"last\s+(\d+)\s+(hour|day|week|month)s?"), _relative),
)


# --- Aggregation ---


def _top_n(match: re.Match[str], now: datetime) -> TopN | None:
    count = _capture_int(match)
    return TopN(count) if count is not None else None


AGGREGATION_RULES: tuple[Rule[AggregationType], ...] = (
    PatternRule(re.compile(r"top\s+(\d+)"), _top_n),
    KeywordRule(("average", "avg"), lambda now: Average()),
    KeywordRule(("sum", "total"), lambda now: Sum()),
    KeywordRule(("count", "number"), lambda now: Count()),
)


# --- Limit ---

LIMIT_RULES: tuple[Rule[int], ...] = (
    PatternRule(re.compile(r"limit\s+(\d+)"), lambda m, now: _capture_int(m)),
)


def _utc_clock() -> datetime:
    return datetime.now(UTC)


class PromptParser:
    """Extracts a ParsedQuery from a constrained free-text prompt.

    The parser never raises: any field that cannot be extracted is left as
    None. Matching is case-insensitive and relative time ranges are anchored
    to a single clock reading per call.
    """

    def __init__(self, clock: Clock | None = None) -> None:
        """Initialize the parser.

        Args:
            clock: Callable returning the current UTC instant. Defaults to
                datetime.now(UTC); tests inject a fixed clock.
        """
        self._clock = clock or _utc_clock

    def parse(self, prompt: str) -> ParsedQuery:
        """Parse a prompt into structured query fields."""
        text = prompt.lower()
        now = self._clock()
        return ParsedQuery(
            metric_name=first_match(METRIC_NAME_RULES, text, now),
            tags=first_match(TAG_RULES, text, now),
            time_range=first_match(TIME_RANGE_RULES, text, now),
            aggregation=first_match(AGGREGATION_RULES, text, now),
            limit=first_match(LIMIT_RULES, text, now),
        )
