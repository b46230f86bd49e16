from __future__ import annotations

import datetime as dt

from pydantic import BaseModel, ConfigDict, Field

from ..analytics.moods import Category, Mood


class JournalEntryWrite(BaseModel):
    title: str = Field(default="", max_length=200)
    content: str = Field(default="", max_length=100_000)
    is_markdown: bool = False
    primary_mood: Mood
    secondary_moods: list[Mood] = Field(default_factory=list)
    category: Category | None = None
    tags: list[str] = Field(default_factory=list)


class JournalEntryCreate(JournalEntryWrite):
    date: dt.date


class JournalEntryModel(BaseModel):
    id: str
    date: dt.date
    title: str
    content: str
    is_markdown: bool
    primary_mood: Mood
    secondary_moods: list[Mood]
    category: Category | None
    tags: list[str]
    created_at: dt.datetime
    updated_at: dt.datetime

    model_config = ConfigDict(from_attributes=True)


class JournalListResponse(BaseModel):
    items: list[JournalEntryModel]


__all__ = [
    "JournalEntryCreate",
    "JournalEntryModel",
    "JournalEntryWrite",
    "JournalListResponse",
]
