from __future__ import annotations

import datetime as dt
import json
import logging
from uuid import uuid4

from sqlalchemy import Boolean, Date, DateTime, Enum, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from ..analytics.moods import Category, Mood

logger = logging.getLogger(__name__)


def utcnow() -> dt.datetime:
    return dt.datetime.now(dt.UTC).replace(tzinfo=None)


def _new_id() -> str:
    return str(uuid4())


class Base(DeclarativeBase):
    """Base declarative model."""


class JournalEntry(Base):
    """One journal entry; at most one per calendar day."""

    __tablename__ = "journal_entries"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    date: Mapped[dt.date] = mapped_column(Date, unique=True, index=True, nullable=False)
    title: Mapped[str] = mapped_column(String(200), default="")
    content: Mapped[str] = mapped_column(Text, default="")
    is_markdown: Mapped[bool] = mapped_column(Boolean, default=False)
    primary_mood: Mapped[Mood] = mapped_column(
        Enum(Mood, native_enum=False, length=20, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    secondary_moods_json: Mapped[str] = mapped_column(Text, default="[]")
    category: Mapped[Category | None] = mapped_column(
        Enum(Category, native_enum=False, length=20, values_callable=lambda e: [c.value for c in e]),
        nullable=True,
    )
    tags_json: Mapped[str] = mapped_column(Text, default="[]")
    created_at: Mapped[dt.datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[dt.datetime] = mapped_column(DateTime, default=utcnow)

    @property
    def secondary_moods(self) -> list[Mood]:
        moods: list[Mood] = []
        for raw in _load_json_list(self.secondary_moods_json, "secondary_moods", self.id):
            try:
                moods.append(Mood(raw))
            except ValueError:
                logger.warning("Skipping unknown secondary mood %r on entry %s", raw, self.id)
        return moods

    @secondary_moods.setter
    def secondary_moods(self, value: list[Mood]) -> None:
        self.secondary_moods_json = json.dumps([Mood(m).value for m in value or []])

    @property
    def tags(self) -> list[str]:
        return [
            item
            for item in _load_json_list(self.tags_json, "tags", self.id)
            if isinstance(item, str)
        ]

    @tags.setter
    def tags(self, value: list[str]) -> None:
        self.tags_json = json.dumps(list(value or []), ensure_ascii=False)


class SettingEntry(Base):
    """Key-value configuration stored in DB."""

    __tablename__ = "settings"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    key: Mapped[str] = mapped_column(String(100), unique=True, nullable=False, index=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[dt.datetime] = mapped_column(
        DateTime,
        default=utcnow,
        onupdate=utcnow,
    )


def _load_json_list(raw: str | None, field: str, entry_id: str | None) -> list:
    if not raw:
        return []
    try:
        value = json.loads(raw)
    except (TypeError, ValueError):
        logger.warning("Malformed %s JSON on entry %s", field, entry_id)
        return []
    if not isinstance(value, list):
        logger.warning("Unexpected %s payload on entry %s", field, entry_id)
        return []
    return value


__all__ = [
    "Base",
    "JournalEntry",
    "SettingEntry",
    "utcnow",
]
