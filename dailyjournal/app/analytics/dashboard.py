from __future__ import annotations

import logging
import re
import time
from collections import Counter
from collections.abc import Callable, Iterable, Sequence
from datetime import date, datetime, timedelta
from enum import Enum
from itertools import pairwise
from typing import TYPE_CHECKING

from ..core.config import DEFAULT_MAX_RANGE_DAYS
from ..metrics import ANALYTICS_LATENCY, ANALYTICS_RUNS
from ..schemas.analytics import (
    AnalyticsResult,
    CategoryBreakdownItem,
    MoodDistributionItem,
    TagCountItem,
    WordCountTrendItem,
)
from .moods import Category, Mood, resolve_category
from .records import JournalEntryRecord

if TYPE_CHECKING:  # pragma: no cover - typing only
    from ..core.config import Settings
    from ..services.storage import StorageService

logger = logging.getLogger(__name__)

# runs of Unicode letters/digits; underscore is a word char but not a letter
_WORD_RE = re.compile(r"[^\W_]+")
DEFAULT_TOP_TAGS = 10


class BreakdownMode(str, Enum):
    CATEGORY = "category"
    TAG_PREFIX = "tag_prefix"


class AggregationFailure(RuntimeError):
    """Raised when analytics cannot be computed because the entry fetch failed."""


class RangeTooLargeError(ValueError):
    """Raised when a requested range spans more days than the dashboard allows."""

    def __init__(self, days: int, limit: int) -> None:
        super().__init__(f"Range spans {days} days; at most {limit} are allowed.")
        self.days = days
        self.limit = limit


def normalize_day(value: date | datetime) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def normalize_range(start: date | datetime, end: date | datetime) -> tuple[date, date]:
    s = normalize_day(start)
    e = normalize_day(end)
    if e < s:
        s, e = e, s
    return s, e


def count_words(text: object) -> int:
    if not isinstance(text, str) or not text.strip():
        return 0
    return len(_WORD_RE.findall(text))


def percentage(part: int, total: int) -> float:
    if total <= 0:
        return 0.0
    return round(part * 100 / total, 2)


def current_streak(dates: set[date], today: date) -> int:
    """Consecutive days ending today, or yesterday if today has no entry yet."""

    if not dates:
        return 0
    yesterday = today - timedelta(days=1)
    if today in dates:
        anchor = today
    elif yesterday in dates:
        anchor = yesterday
    else:
        return 0
    streak = 0
    while anchor - timedelta(days=streak) in dates:
        streak += 1
    return streak


def longest_streak(dates: Iterable[date]) -> int:
    ordered = sorted(set(dates))
    if not ordered:
        return 0
    best = 1
    run = 1
    for previous, current in pairwise(ordered):
        if current == previous + timedelta(days=1):
            run += 1
            best = max(best, run)
        else:
            run = 1
    return best


def streaks_within_range(dates: Iterable[date], today: date) -> tuple[int, int]:
    """Return ``(current, longest)`` over the given entry dates."""

    distinct = set(dates)
    return current_streak(distinct, today), longest_streak(distinct)


def build_mood_distribution(
    categories: Sequence[Category],
) -> tuple[MoodDistributionItem, ...]:
    total = len(categories)
    counter = Counter(categories)
    return tuple(
        MoodDistributionItem(
            category=category,
            count=counter.get(category, 0),
            percentage=percentage(counter.get(category, 0), total),
        )
        for category in Category
    )


def build_category_breakdown(
    categories: Sequence[Category],
) -> tuple[CategoryBreakdownItem, ...]:
    total = len(categories)
    counter = Counter(categories)
    items = [
        CategoryBreakdownItem(
            category=category.value,
            count=counter[category],
            percentage=percentage(counter[category], total),
        )
        for category in Category
        if counter[category] > 0
    ]
    # stable sort keeps enum order on ties
    items.sort(key=lambda item: item.count, reverse=True)
    return tuple(items)


def build_tag_prefix_breakdown(
    entries: Sequence[JournalEntryRecord],
) -> tuple[CategoryBreakdownItem, ...]:
    """Legacy breakdown: group ``Prefix:Value`` tags by their prefix."""

    labels: dict[str, str] = {}
    counter: Counter[str] = Counter()
    for entry in entries:
        for tag in entry.tags:
            if not isinstance(tag, str) or ":" not in tag:
                continue
            prefix = tag.split(":", 1)[0].strip()
            if not prefix:
                continue
            key = prefix.lower()
            labels.setdefault(key, prefix)
            counter[key] += 1

    total = sum(counter.values())
    ranked = sorted(counter.items(), key=lambda item: (-item[1], item[0]))
    return tuple(
        CategoryBreakdownItem(
            category=labels[key],
            count=count,
            percentage=percentage(count, total),
        )
        for key, count in ranked
    )


def rank_tags(
    entries: Sequence[JournalEntryRecord],
    limit: int,
) -> tuple[TagCountItem, ...]:
    limit = max(0, limit)
    if limit == 0:
        return ()
    labels: dict[str, str] = {}
    counter: Counter[str] = Counter()
    for entry in entries:
        for tag in entry.tags:
            if not isinstance(tag, str) or not tag.strip():
                continue
            cleaned = tag.strip()
            key = cleaned.lower()
            labels.setdefault(key, cleaned)
            counter[key] += 1

    ranked = sorted(counter.items(), key=lambda item: (-item[1], item[0]))
    return tuple(
        TagCountItem(tag=labels[key], count=count)
        for key, count in ranked[:limit]
    )


def most_frequent_mood(entries: Sequence[JournalEntryRecord]) -> Mood | None:
    if not entries:
        return None
    # Counter.most_common keeps first-seen order for equal counts
    counter = Counter(entry.primary_mood for entry in entries)
    return counter.most_common(1)[0][0]


def missed_days(start: date, end: date, dates: set[date]) -> tuple[date, ...]:
    span = (end - start).days
    return tuple(
        day
        for day in (start + timedelta(days=offset) for offset in range(span + 1))
        if day not in dates
    )


def compute_analytics(
    start: date | datetime,
    end: date | datetime,
    entries: Iterable[JournalEntryRecord],
    *,
    today: date | datetime,
    top_tags: int = DEFAULT_TOP_TAGS,
    breakdown: BreakdownMode | str = BreakdownMode.CATEGORY,
) -> AnalyticsResult:
    """Aggregate the entries falling inside ``[start, end]`` into dashboard analytics.

    The range is normalized to calendar dates and swapped when reversed. ``today``
    anchors the current streak; nothing here reads the system clock.
    """

    s, e = normalize_range(start, end)
    today_day = normalize_day(today)
    mode = BreakdownMode(breakdown)

    in_range = sorted(
        (entry for entry in entries if s <= entry.date <= e),
        key=lambda entry: entry.date,
    )
    categories = [
        resolve_category(entry.category, entry.primary_mood) for entry in in_range
    ]
    entry_dates = {entry.date for entry in in_range}

    current, longest = streaks_within_range(entry_dates, today_day)

    if mode is BreakdownMode.TAG_PREFIX:
        breakdown_items = build_tag_prefix_breakdown(in_range)
    else:
        breakdown_items = build_category_breakdown(categories)

    trends = tuple(
        WordCountTrendItem(date=entry.date, word_count=count_words(entry.content))
        for entry in in_range
    )
    average = (
        sum(item.word_count for item in trends) / len(trends) if trends else 0.0
    )

    return AnalyticsResult(
        start=s,
        end=e,
        mood_distribution=build_mood_distribution(categories),
        most_frequent_mood=most_frequent_mood(in_range),
        current_streak=current,
        longest_streak=longest,
        missed_days=missed_days(s, e, entry_dates),
        most_used_tags=rank_tags(in_range, top_tags),
        tag_breakdown=breakdown_items,
        word_count_trends=trends,
        average_words_per_entry=average,
    )


class DashboardService:
    """Fetch entries from the store and compute dashboard analytics."""

    def __init__(
        self,
        storage: StorageService,
        *,
        settings: Settings | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._storage = storage
        self._clock = clock or datetime.now
        self._top_tags = settings.analytics_top_tags if settings else DEFAULT_TOP_TAGS
        self._breakdown = BreakdownMode(
            settings.analytics_breakdown_mode if settings else BreakdownMode.CATEGORY
        )
        self._max_range_days = (
            settings.analytics_max_range_days if settings else DEFAULT_MAX_RANGE_DAYS
        )

    @property
    def breakdown_mode(self) -> BreakdownMode:
        return self._breakdown

    @property
    def max_range_days(self) -> int:
        return self._max_range_days

    def today(self) -> date:
        return normalize_day(self._clock())

    async def get_analytics(
        self,
        start: date | datetime,
        end: date | datetime,
        top_tags: int | None = None,
    ) -> AnalyticsResult:
        started = time.perf_counter()
        s, e = normalize_range(start, end)
        logger.debug("Computing analytics for %s..%s", s, e)
        days = (e - s).days + 1
        if days > self._max_range_days:
            ANALYTICS_RUNS.labels(operation="dashboard", result="rejected").inc()
            raise RangeTooLargeError(days, self._max_range_days)

        records = await self._fetch_records("dashboard")
        result = compute_analytics(
            s,
            e,
            records,
            today=self.today(),
            top_tags=self._top_tags if top_tags is None else top_tags,
            breakdown=self._breakdown,
        )

        ANALYTICS_RUNS.labels(operation="dashboard", result="ok").inc()
        ANALYTICS_LATENCY.observe(time.perf_counter() - started)
        logger.info(
            "analytics computed",
            extra={
                "extra_fields": {
                    "start": s,
                    "end": e,
                    "breakdown": self._breakdown,
                    "entries": result.entries_count,
                    "most_frequent_mood": result.most_frequent_mood,
                    "missed_days": len(result.missed_days),
                }
            },
        )
        return result

    async def current_streak_over_all_history(self) -> int:
        records = await self._fetch_records("streak")
        streak = current_streak(
            {record.date for record in records},
            self.today(),
        )
        ANALYTICS_RUNS.labels(operation="streak", result="ok").inc()
        return streak

    async def _fetch_records(self, operation: str) -> list[JournalEntryRecord]:
        try:
            return list(await self._storage.list_entry_records())
        except Exception as exc:
            ANALYTICS_RUNS.labels(operation=operation, result="failed").inc()
            logger.error("Entry fetch failed during %s", operation, exc_info=True)
            raise AggregationFailure(f"{operation} analytics failed") from exc


__all__ = [
    "AggregationFailure",
    "BreakdownMode",
    "DashboardService",
    "RangeTooLargeError",
    "compute_analytics",
    "count_words",
    "current_streak",
    "longest_streak",
    "streaks_within_range",
]
