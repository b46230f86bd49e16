"""Mood taxonomy and dashboard analytics over journal entries."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

__all__ = [
    "AggregationFailure",
    "BreakdownMode",
    "Category",
    "DashboardService",
    "JournalEntryRecord",
    "Mood",
    "RangeTooLargeError",
    "compute_analytics",
]


if TYPE_CHECKING:  # pragma: no cover - import-time helpers for type checkers only
    from .dashboard import (
        AggregationFailure,
        BreakdownMode,
        DashboardService,
        RangeTooLargeError,
        compute_analytics,
    )
    from .moods import Category, Mood
    from .records import JournalEntryRecord


def __getattr__(name: str) -> Any:  # pragma: no cover - thin import shim
    if name in {
        "AggregationFailure",
        "BreakdownMode",
        "DashboardService",
        "RangeTooLargeError",
        "compute_analytics",
    }:
        from . import dashboard

        return getattr(dashboard, name)
    if name in {"Category", "Mood"}:
        from . import moods

        return getattr(moods, name)
    if name == "JournalEntryRecord":
        from .records import JournalEntryRecord as attr

        return attr
    raise AttributeError(name)


def __dir__() -> list[str]:  # pragma: no cover - module introspection helper
    return sorted(__all__)
