from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date

from .moods import Category, Mood


@dataclass(frozen=True)
class JournalEntryRecord:
    """Read-only snapshot of a stored entry, as consumed by the analytics engine."""

    id: str
    date: date
    content: str
    primary_mood: Mood
    secondary_moods: tuple[Mood, ...] = field(default_factory=tuple)
    category: Category | None = None
    tags: tuple[str, ...] = field(default_factory=tuple)


__all__ = ["JournalEntryRecord"]
