from __future__ import annotations

import datetime as dt

from pydantic import BaseModel, ConfigDict, Field

from ..analytics.moods import Category, Mood


class _FrozenModel(BaseModel):
    model_config = ConfigDict(frozen=True)


class MoodDistributionItem(_FrozenModel):
    category: Category
    count: int = Field(..., ge=0)
    percentage: float = Field(..., ge=0)


class TagCountItem(_FrozenModel):
    tag: str
    count: int = Field(..., ge=0)


class CategoryBreakdownItem(_FrozenModel):
    # a Category value, or a tag prefix in tag_prefix mode
    category: str
    count: int = Field(..., ge=0)
    percentage: float = Field(..., ge=0)


class WordCountTrendItem(_FrozenModel):
    date: dt.date
    word_count: int = Field(..., ge=0)


class AnalyticsResult(_FrozenModel):
    start: dt.date
    end: dt.date
    mood_distribution: tuple[MoodDistributionItem, ...]
    most_frequent_mood: Mood | None
    current_streak: int
    longest_streak: int
    missed_days: tuple[dt.date, ...]
    most_used_tags: tuple[TagCountItem, ...]
    tag_breakdown: tuple[CategoryBreakdownItem, ...]
    word_count_trends: tuple[WordCountTrendItem, ...]
    average_words_per_entry: float

    @property
    def category_breakdown(self) -> tuple[CategoryBreakdownItem, ...]:
        return self.tag_breakdown

    @property
    def entries_count(self) -> int:
        return sum(item.count for item in self.mood_distribution)


class DashboardQuery(BaseModel):
    start: dt.date | None = None
    end: dt.date | None = None
    top_tags: int | None = None


class StreakResponse(BaseModel):
    current_streak: int


__all__ = [
    "AnalyticsResult",
    "CategoryBreakdownItem",
    "DashboardQuery",
    "MoodDistributionItem",
    "StreakResponse",
    "TagCountItem",
    "WordCountTrendItem",
]
