"""DailyJournal back-end: journal entry store and dashboard analytics."""
