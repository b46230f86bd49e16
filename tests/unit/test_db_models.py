from __future__ import annotations

from datetime import date

import pytest
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from dailyjournal.app.analytics.moods import Mood
from dailyjournal.app.db import JournalEntry, SettingEntry


@pytest.mark.anyio
async def test_journal_entry_json_columns(temp_session_factory):
    session_factory = temp_session_factory

    async with session_factory() as session:
        entry = JournalEntry(
            date=date(2024, 2, 29),
            title="Leap day",
            content="Вечер у реки",
            primary_mood=Mood.GRATEFUL,
        )
        entry.secondary_moods = [Mood.CALM]
        entry.tags = ["семья", "Walk"]
        session.add(entry)
        await session.commit()
        await session.refresh(entry)
        assert len(entry.id) == 36

    async with session_factory() as session:
        stored = (await session.execute(select(JournalEntry))).scalar_one()
        assert stored.secondary_moods == [Mood.CALM]
        assert stored.tags == ["семья", "Walk"]
        assert stored.category is None
        assert stored.created_at is not None


@pytest.mark.anyio
async def test_journal_entry_date_is_unique(temp_session_factory):
    session_factory = temp_session_factory

    async with session_factory() as session:
        session.add(JournalEntry(date=date(2024, 1, 1), primary_mood=Mood.HAPPY))
        await session.commit()

    async with session_factory() as session:
        session.add(JournalEntry(date=date(2024, 1, 1), primary_mood=Mood.SAD))
        with pytest.raises(IntegrityError):
            await session.commit()


@pytest.mark.anyio
async def test_setting_entry_unique_key(temp_session_factory):
    session_factory = temp_session_factory

    async with session_factory() as session:
        session.add(SettingEntry(key="theme", value="light"))
        await session.commit()

    async with session_factory() as session:
        query = select(SettingEntry).where(SettingEntry.key == "theme")
        result = await session.execute(query)
        setting = result.scalar_one()
        setting.value = "dark"
        await session.commit()

    async with session_factory() as session:
        query = select(SettingEntry).where(SettingEntry.key == "theme")
        setting = (await session.execute(query)).scalar_one()
        assert setting.value == "dark"
