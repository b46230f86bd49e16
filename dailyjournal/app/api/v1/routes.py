from __future__ import annotations

from datetime import date, timedelta

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response, status

from ...analytics.dashboard import AggregationFailure, DashboardService, RangeTooLargeError
from ...analytics.moods import Mood
from ...metrics import USER_API_COUNTER
from ...schemas.analytics import AnalyticsResult, DashboardQuery, StreakResponse
from ...schemas.journal import (
    JournalEntryCreate,
    JournalEntryModel,
    JournalEntryWrite,
    JournalListResponse,
)
from ...services.storage import EntryExistsError, EntryNotFoundError, StorageService


router = APIRouter(prefix="/api/v1", tags=["core"])

DEFAULT_DASHBOARD_DAYS = 30


def get_storage_service(request: Request) -> StorageService:
    return request.app.state.storage_service


def get_dashboard_service(request: Request) -> DashboardService:
    return request.app.state.dashboard_service


def _not_found(detail: str = "entry not found") -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


def _window_start(end: date, days: int) -> date:
    """First day of the ``days``-long window ending at ``end``, floored at ``date.min``."""

    if end - date.min < timedelta(days=days - 1):
        return date.min
    return end - timedelta(days=days - 1)


def _write_fields(payload: JournalEntryWrite) -> dict[str, object]:
    return {
        "title": payload.title,
        "content": payload.content,
        "is_markdown": payload.is_markdown,
        "primary_mood": payload.primary_mood,
        "secondary_moods": payload.secondary_moods,
        "category": payload.category,
        "tags": payload.tags,
    }


# -- entries ---------------------------------------------------------------
@router.get("/entries", response_model=JournalListResponse)
async def list_entries(
    storage: StorageService = Depends(get_storage_service),
    limit: int = Query(default=30, ge=1, le=366),
) -> JournalListResponse:
    entries = await storage.list_entries(limit=limit)
    items = [JournalEntryModel.model_validate(e, from_attributes=True) for e in entries]
    USER_API_COUNTER.labels(endpoint="entries_list").inc()
    return JournalListResponse(items=items)


@router.get("/entries/search", response_model=JournalListResponse)
async def search_entries(
    storage: StorageService = Depends(get_storage_service),
    q: str | None = Query(default=None, max_length=200),
    start: date | None = None,
    end: date | None = None,
    mood: list[Mood] | None = Query(default=None),
    tag: list[str] | None = Query(default=None),
) -> JournalListResponse:
    entries = await storage.search(query=q, start=start, end=end, moods=mood, tags=tag)
    items = [JournalEntryModel.model_validate(e, from_attributes=True) for e in entries]
    USER_API_COUNTER.labels(endpoint="entries_search").inc()
    return JournalListResponse(items=items)


@router.get("/entries/by-date/{day}", response_model=JournalEntryModel)
async def get_entry_by_date(
    day: date,
    storage: StorageService = Depends(get_storage_service),
) -> JournalEntryModel:
    entry = await storage.get_entry_by_date(day)
    if entry is None:
        raise _not_found()
    USER_API_COUNTER.labels(endpoint="entry_by_date_get").inc()
    return JournalEntryModel.model_validate(entry, from_attributes=True)


@router.put("/entries/by-date/{day}", response_model=JournalEntryModel)
async def upsert_entry_by_date(
    day: date,
    payload: JournalEntryWrite,
    storage: StorageService = Depends(get_storage_service),
) -> JournalEntryModel:
    entry = await storage.create_or_update_entry(day=day, **_write_fields(payload))
    USER_API_COUNTER.labels(endpoint="entry_by_date_put").inc()
    return JournalEntryModel.model_validate(entry, from_attributes=True)


@router.delete("/entries/by-date/{day}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_entry_by_date(
    day: date,
    storage: StorageService = Depends(get_storage_service),
) -> Response:
    if not await storage.delete_entry(day):
        raise _not_found()
    USER_API_COUNTER.labels(endpoint="entry_by_date_delete").inc()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/entries",
    response_model=JournalEntryModel,
    status_code=status.HTTP_201_CREATED,
)
async def create_entry(
    payload: JournalEntryCreate,
    storage: StorageService = Depends(get_storage_service),
) -> JournalEntryModel:
    try:
        entry = await storage.create_entry(day=payload.date, **_write_fields(payload))
    except EntryExistsError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    USER_API_COUNTER.labels(endpoint="entries_post").inc()
    return JournalEntryModel.model_validate(entry, from_attributes=True)


@router.get("/entries/{entry_id}", response_model=JournalEntryModel)
async def get_entry(
    entry_id: str,
    storage: StorageService = Depends(get_storage_service),
) -> JournalEntryModel:
    entry = await storage.get_entry_by_id(entry_id)
    if entry is None:
        raise _not_found()
    USER_API_COUNTER.labels(endpoint="entry_get").inc()
    return JournalEntryModel.model_validate(entry, from_attributes=True)


@router.put("/entries/{entry_id}", response_model=JournalEntryModel)
async def update_entry(
    entry_id: str,
    payload: JournalEntryWrite,
    storage: StorageService = Depends(get_storage_service),
) -> JournalEntryModel:
    try:
        entry = await storage.update_entry(entry_id, **_write_fields(payload))
    except EntryNotFoundError as exc:
        raise _not_found(str(exc)) from exc
    USER_API_COUNTER.labels(endpoint="entry_put").inc()
    return JournalEntryModel.model_validate(entry, from_attributes=True)


@router.delete("/entries/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_entry(
    entry_id: str,
    storage: StorageService = Depends(get_storage_service),
) -> Response:
    if not await storage.delete_entry_by_id(entry_id):
        raise _not_found()
    USER_API_COUNTER.labels(endpoint="entry_delete").inc()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# -- analytics -------------------------------------------------------------
@router.get("/analytics/dashboard", response_model=AnalyticsResult)
async def analytics_dashboard(
    query: DashboardQuery = Depends(),
    dashboard: DashboardService = Depends(get_dashboard_service),
) -> AnalyticsResult:
    end = query.end or dashboard.today()
    start = query.start or _window_start(
        end, min(DEFAULT_DASHBOARD_DAYS, dashboard.max_range_days)
    )
    try:
        result = await dashboard.get_analytics(start, end, query.top_tags)
    except RangeTooLargeError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(exc),
        ) from exc
    except AggregationFailure as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="analytics unavailable",
        ) from exc
    USER_API_COUNTER.labels(endpoint="analytics_dashboard").inc()
    return result


@router.get("/analytics/streak", response_model=StreakResponse)
async def analytics_streak(
    dashboard: DashboardService = Depends(get_dashboard_service),
) -> StreakResponse:
    try:
        streak = await dashboard.current_streak_over_all_history()
    except AggregationFailure as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="analytics unavailable",
        ) from exc
    USER_API_COUNTER.labels(endpoint="analytics_streak").inc()
    return StreakResponse(current_streak=streak)
