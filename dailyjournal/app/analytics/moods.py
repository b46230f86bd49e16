from __future__ import annotations

from enum import Enum


class Category(str, Enum):
    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEGATIVE = "negative"


class Mood(str, Enum):
    # positive
    HAPPY = "happy"
    EXCITED = "excited"
    RELAXED = "relaxed"
    GRATEFUL = "grateful"
    CONFIDENT = "confident"

    # neutral
    CALM = "calm"
    THOUGHTFUL = "thoughtful"
    CURIOUS = "curious"
    NOSTALGIC = "nostalgic"
    BORED = "bored"

    # negative
    SAD = "sad"
    ANGRY = "angry"
    STRESSED = "stressed"
    LONELY = "lonely"
    ANXIOUS = "anxious"


MOOD_CATEGORIES: dict[Mood, Category] = {
    Mood.HAPPY: Category.POSITIVE,
    Mood.EXCITED: Category.POSITIVE,
    Mood.RELAXED: Category.POSITIVE,
    Mood.GRATEFUL: Category.POSITIVE,
    Mood.CONFIDENT: Category.POSITIVE,
    Mood.CALM: Category.NEUTRAL,
    Mood.THOUGHTFUL: Category.NEUTRAL,
    Mood.CURIOUS: Category.NEUTRAL,
    Mood.NOSTALGIC: Category.NEUTRAL,
    Mood.BORED: Category.NEUTRAL,
    Mood.SAD: Category.NEGATIVE,
    Mood.ANGRY: Category.NEGATIVE,
    Mood.STRESSED: Category.NEGATIVE,
    Mood.LONELY: Category.NEGATIVE,
    Mood.ANXIOUS: Category.NEGATIVE,
}


def category_for_mood(mood: Mood) -> Category:
    return MOOD_CATEGORIES[mood]


def resolve_category(category: Category | None, primary_mood: Mood) -> Category:
    """Explicit category wins; otherwise infer from the primary mood."""

    if category is not None:
        return category
    return category_for_mood(primary_mood)


__all__ = [
    "Category",
    "MOOD_CATEGORIES",
    "Mood",
    "category_for_mood",
    "resolve_category",
]
