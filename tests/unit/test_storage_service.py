from __future__ import annotations

import json
from datetime import date, datetime
from pathlib import Path

import pytest

from dailyjournal.app.analytics.moods import Category, Mood
from dailyjournal.app.db import JournalEntry
from dailyjournal.app.services.storage import (
    EntryExistsError,
    EntryNotFoundError,
    StorageService,
    normalize_secondary_moods,
    normalize_tags,
)
from dailyjournal.db import create_engine, create_session_factory, init_db


def _fields(**overrides):
    fields = {
        "title": "Morning pages",
        "content": "Coffee and a long walk.",
        "is_markdown": True,
        "primary_mood": Mood.CALM,
    }
    fields.update(overrides)
    return fields


@pytest.mark.anyio
async def test_storage_service_crud(tmp_path: Path) -> None:
    db_path = tmp_path / "test.db"
    database_url = f"sqlite+aiosqlite:///{db_path}"
    engine = create_engine(database_url)
    session_factory = create_session_factory(engine)
    await init_db(engine, session_factory, "test")

    storage = StorageService(session_factory)
    await storage.healthcheck()

    created = await storage.create_entry(
        day=datetime(2024, 5, 1, 22, 15),
        **_fields(tags=["walk", "Coffee"]),
    )
    assert created.id
    assert created.date == date(2024, 5, 1)
    assert created.tags == ["walk", "Coffee"]

    fetched = await storage.get_entry_by_date(date(2024, 5, 1))
    assert fetched is not None
    assert fetched.id == created.id

    updated = await storage.update_entry(
        created.id,
        **_fields(content="Rain all day.", primary_mood=Mood.BORED),
    )
    assert updated.content == "Rain all day."
    assert updated.primary_mood is Mood.BORED
    assert updated.updated_at >= created.updated_at
    assert updated.tags == []

    listed = await storage.list_entries(limit=10)
    assert [entry.id for entry in listed] == [created.id]

    assert await storage.delete_entry_by_id(created.id) is True
    assert await storage.get_entry_by_id(created.id) is None
    assert await storage.delete_entry_by_id(created.id) is False

    await engine.dispose()


@pytest.mark.anyio
async def test_duplicate_date_is_rejected(temp_session_factory) -> None:
    storage = StorageService(temp_session_factory)
    await storage.create_entry(day=date(2024, 5, 2), **_fields())

    with pytest.raises(EntryExistsError) as excinfo:
        await storage.create_entry(day=date(2024, 5, 2), **_fields(title="Again"))

    assert excinfo.value.day == date(2024, 5, 2)


@pytest.mark.anyio
async def test_update_missing_entry(temp_session_factory) -> None:
    storage = StorageService(temp_session_factory)

    with pytest.raises(EntryNotFoundError):
        await storage.update_entry("does-not-exist", **_fields())


@pytest.mark.anyio
async def test_create_or_update_and_delete_by_date(temp_session_factory) -> None:
    storage = StorageService(temp_session_factory)

    first = await storage.create_or_update_entry(day=date(2024, 6, 1), **_fields())
    second = await storage.create_or_update_entry(
        day=date(2024, 6, 1),
        **_fields(title="Evening", category=Category.POSITIVE),
    )

    assert second.id == first.id
    assert second.title == "Evening"
    assert second.category is Category.POSITIVE

    assert await storage.delete_entry(date(2024, 6, 1)) is True
    assert await storage.delete_entry(date(2024, 6, 1)) is False


@pytest.mark.anyio
async def test_search_filters(temp_session_factory) -> None:
    storage = StorageService(temp_session_factory)
    await storage.create_entry(
        day=date(2024, 7, 1),
        **_fields(content="Met Anna for lunch", tags=["Friends"]),
    )
    await storage.create_entry(
        day=date(2024, 7, 2),
        **_fields(
            content="Deadline stress",
            primary_mood=Mood.STRESSED,
            secondary_moods=[Mood.ANXIOUS],
            tags=["work"],
        ),
    )
    await storage.create_entry(
        day=date(2024, 7, 3),
        **_fields(content="Lunch at the office", tags=["work", "friends"]),
    )

    by_text = await storage.search(query="LUNCH")
    assert [e.date for e in by_text] == [date(2024, 7, 3), date(2024, 7, 1)]

    by_mood = await storage.search(moods=[Mood.ANXIOUS])
    assert [e.date for e in by_mood] == [date(2024, 7, 2)]

    by_tag = await storage.search(tags=["FRIENDS"], start=date(2024, 7, 2))
    assert [e.date for e in by_tag] == [date(2024, 7, 3)]

    bounded = await storage.search(end=date(2024, 7, 1))
    assert len(bounded) == 1


@pytest.mark.anyio
async def test_settings_roundtrip(temp_session_factory) -> None:
    storage = StorageService(temp_session_factory)

    assert await storage.get_setting("schema_version") == "test"
    assert await storage.get_setting("theme") is None

    await storage.set_setting("theme", "light")
    await storage.set_setting("theme", "dark")
    assert await storage.get_setting("theme") == "dark"


def test_normalize_secondary_moods_dedupes_and_caps() -> None:
    moods = normalize_secondary_moods(["sad", Mood.SAD, Mood.LONELY, Mood.ANGRY])
    assert moods == [Mood.SAD, Mood.LONELY]


def test_normalize_tags_trims_and_dedupes() -> None:
    assert normalize_tags([" Work ", "work", "", "   ", "Home"]) == ["Work", "Home"]


@pytest.mark.anyio
async def test_entry_records_tolerate_bad_json(temp_session_factory) -> None:
    async with temp_session_factory() as session:
        session.add(
            JournalEntry(
                date=date(2024, 8, 1),
                title="broken",
                content="one two",
                is_markdown=False,
                primary_mood=Mood.HAPPY,
                secondary_moods_json=json.dumps(["sad", "ecstatic"]),
                tags_json="{not json",
            )
        )
        await session.commit()

    storage = StorageService(temp_session_factory)
    records = await storage.list_entry_records()

    assert len(records) == 1
    record = records[0]
    assert record.tags == ()
    assert record.secondary_moods == (Mood.SAD,)
    assert record.category is None
