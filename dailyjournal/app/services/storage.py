from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Sequence
from datetime import date, datetime

from sqlalchemy import select, text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import async_sessionmaker

from ..analytics.dashboard import normalize_day
from ..analytics.moods import Category, Mood
from ..analytics.records import JournalEntryRecord
from ..db.models import JournalEntry, SettingEntry, utcnow

logger = logging.getLogger(__name__)

MAX_SECONDARY_MOODS = 2


class JournalStorageError(Exception):
    """Base error for entry store operations."""


class EntryExistsError(JournalStorageError):
    def __init__(self, day: date) -> None:
        super().__init__(f"An entry already exists for date {day.isoformat()}.")
        self.day = day


class EntryNotFoundError(JournalStorageError):
    def __init__(self, entry_id: str) -> None:
        super().__init__(f"Journal entry with id '{entry_id}' was not found.")
        self.entry_id = entry_id


def normalize_secondary_moods(moods: Iterable[Mood | str] | None) -> list[Mood]:
    result: list[Mood] = []
    for mood in moods or ():
        value = Mood(mood)
        if value not in result:
            result.append(value)
        if len(result) == MAX_SECONDARY_MOODS:
            break
    return result


def normalize_tags(tags: Iterable[str] | None) -> list[str]:
    seen: set[str] = set()
    result: list[str] = []
    for tag in tags or ():
        if not tag or not tag.strip():
            continue
        cleaned = tag.strip()
        key = cleaned.lower()
        if key in seen:
            continue
        seen.add(key)
        result.append(cleaned)
    return result


def to_record(entry: JournalEntry) -> JournalEntryRecord:
    return JournalEntryRecord(
        id=entry.id,
        date=entry.date,
        content=entry.content or "",
        primary_mood=entry.primary_mood,
        secondary_moods=tuple(entry.secondary_moods),
        category=entry.category,
        tags=tuple(entry.tags),
    )


class StorageService:
    """Persist journal entries and settings."""

    def __init__(self, session_factory: async_sessionmaker) -> None:
        self._session_factory = session_factory

    async def healthcheck(self) -> None:
        async with self._session_factory() as session:
            await session.execute(text("SELECT 1"))

    # -- settings helpers ------------------------------------------------
    async def get_setting(self, key: str) -> str | None:
        async with self._session_factory() as session:
            result = await session.execute(
                select(SettingEntry).where(SettingEntry.key == key)
            )
            entry = result.scalar_one_or_none()
            return entry.value if entry else None

    async def set_setting(self, key: str, value: str) -> None:
        async with self._session_factory() as session:
            result = await session.execute(
                select(SettingEntry).where(SettingEntry.key == key)
            )
            entry = result.scalar_one_or_none()
            if entry is None:
                entry = SettingEntry(key=key, value=value)
                session.add(entry)
            else:
                entry.value = value
            await session.commit()

    # -- lookups ---------------------------------------------------------
    async def get_entry_by_id(self, entry_id: str) -> JournalEntry | None:
        async with self._session_factory() as session:
            return await session.get(JournalEntry, str(entry_id))

    async def get_entry_by_date(self, day: date | datetime) -> JournalEntry | None:
        d = normalize_day(day)
        async with self._session_factory() as session:
            return await session.scalar(select(JournalEntry).where(JournalEntry.date == d))

    async def list_entries(self, *, limit: int = 30) -> Sequence[JournalEntry]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(JournalEntry).order_by(JournalEntry.date.desc()).limit(limit)
            )
            return list(result.scalars().all())

    async def list_all_entries(self) -> Sequence[JournalEntry]:
        async with self._session_factory() as session:
            result = await session.execute(select(JournalEntry))
            return list(result.scalars().all())

    async def list_entry_records(self) -> list[JournalEntryRecord]:
        """Snapshot every stored entry for analytics; unordered and unfiltered."""

        return [to_record(entry) for entry in await self.list_all_entries()]

    # -- writes ----------------------------------------------------------
    async def create_entry(
        self,
        *,
        day: date | datetime,
        title: str,
        content: str,
        is_markdown: bool,
        primary_mood: Mood,
        secondary_moods: Iterable[Mood] | None = None,
        category: Category | None = None,
        tags: Iterable[str] | None = None,
    ) -> JournalEntry:
        d = normalize_day(day)
        if await self.get_entry_by_date(d) is not None:
            raise EntryExistsError(d)

        now = utcnow()
        entry = JournalEntry(
            date=d,
            title=title or "",
            content=content or "",
            is_markdown=is_markdown,
            primary_mood=Mood(primary_mood),
            secondary_moods_json=json.dumps(
                [m.value for m in normalize_secondary_moods(secondary_moods)]
            ),
            category=Category(category) if category is not None else None,
            tags_json=json.dumps(normalize_tags(tags), ensure_ascii=False),
            created_at=now,
            updated_at=now,
        )
        async with self._session_factory() as session:
            session.add(entry)
            try:
                await session.commit()
            except IntegrityError as exc:
                await session.rollback()
                raise EntryExistsError(d) from exc
            await session.refresh(entry)
        logger.info("Entry created for %s", d.isoformat())
        return entry

    async def update_entry(
        self,
        entry_id: str,
        *,
        title: str,
        content: str,
        is_markdown: bool,
        primary_mood: Mood,
        secondary_moods: Iterable[Mood] | None = None,
        category: Category | None = None,
        tags: Iterable[str] | None = None,
    ) -> JournalEntry:
        async with self._session_factory() as session:
            entry = await session.get(JournalEntry, str(entry_id))
            if entry is None:
                raise EntryNotFoundError(str(entry_id))
            entry.title = title or ""
            entry.content = content or ""
            entry.is_markdown = is_markdown
            entry.primary_mood = Mood(primary_mood)
            entry.secondary_moods_json = json.dumps(
                [m.value for m in normalize_secondary_moods(secondary_moods)]
            )
            entry.category = Category(category) if category is not None else None
            entry.tags_json = json.dumps(normalize_tags(tags), ensure_ascii=False)
            entry.updated_at = utcnow()
            await session.commit()
            await session.refresh(entry)
        logger.info("Entry %s updated (date %s)", entry.id, entry.date.isoformat())
        return entry

    async def create_or_update_entry(
        self,
        *,
        day: date | datetime,
        title: str,
        content: str,
        is_markdown: bool,
        primary_mood: Mood,
        secondary_moods: Iterable[Mood] | None = None,
        category: Category | None = None,
        tags: Iterable[str] | None = None,
    ) -> JournalEntry:
        d = normalize_day(day)
        fields = {
            "title": title,
            "content": content,
            "is_markdown": is_markdown,
            "primary_mood": primary_mood,
            "secondary_moods": list(secondary_moods or []),
            "category": category,
            "tags": list(tags or []),
        }
        existing = await self.get_entry_by_date(d)
        if existing is None:
            try:
                return await self.create_entry(day=d, **fields)
            except EntryExistsError:
                # lost a race against the unique date index
                existing = await self.get_entry_by_date(d)
                if existing is None:
                    raise
        return await self.update_entry(existing.id, **fields)

    async def delete_entry(self, day: date | datetime) -> bool:
        d = normalize_day(day)
        async with self._session_factory() as session:
            entry = await session.scalar(select(JournalEntry).where(JournalEntry.date == d))
            if entry is None:
                return False
            await session.delete(entry)
            await session.commit()
        logger.info("Entry deleted for date %s", d.isoformat())
        return True

    async def delete_entry_by_id(self, entry_id: str) -> bool:
        async with self._session_factory() as session:
            entry = await session.get(JournalEntry, str(entry_id))
            if entry is None:
                return False
            await session.delete(entry)
            await session.commit()
        logger.info("Entry deleted with id %s", entry_id)
        return True

    # -- search ----------------------------------------------------------
    async def search(
        self,
        *,
        query: str | None = None,
        start: date | datetime | None = None,
        end: date | datetime | None = None,
        moods: Iterable[Mood] | None = None,
        tags: Iterable[str] | None = None,
    ) -> list[JournalEntry]:
        # filtered in memory: moods and tags live in JSON columns
        entries: Iterable[JournalEntry] = await self.list_all_entries()

        if query and query.strip():
            needle = query.strip().lower()
            entries = [
                e
                for e in entries
                if needle in (e.title or "").lower() or needle in (e.content or "").lower()
            ]

        if start is not None:
            s = normalize_day(start)
            entries = [e for e in entries if e.date >= s]

        if end is not None:
            e_day = normalize_day(end)
            entries = [e for e in entries if e.date <= e_day]

        mood_set = {Mood(m) for m in moods or ()}
        if mood_set:
            entries = [
                e
                for e in entries
                if e.primary_mood in mood_set or any(m in mood_set for m in e.secondary_moods)
            ]

        tag_set = {t.strip().lower() for t in tags or () if t and t.strip()}
        if tag_set:
            entries = [
                e for e in entries if any(t.lower() in tag_set for t in e.tags)
            ]

        return sorted(entries, key=lambda e: e.date, reverse=True)


__all__ = [
    "EntryExistsError",
    "EntryNotFoundError",
    "JournalStorageError",
    "StorageService",
    "normalize_secondary_moods",
    "normalize_tags",
    "to_record",
]
