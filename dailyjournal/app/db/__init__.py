"""Database utilities for DailyJournal."""

from .models import Base, JournalEntry, SettingEntry

__all__ = [
    "Base",
    "JournalEntry",
    "SettingEntry",
]
