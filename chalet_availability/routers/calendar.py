from fastapi import APIRouter, Depends, HTTPException, status, Query
from datetime import date
from typing import List, Optional

from ..models.reservation import Property, Status
from ..schemas.calendar import (
    CalendarResponse,
    DayOverviewResponse,
    DayStatusResponse,
    PropertyResponse,
    PropertyRowResponse,
    RenderBarResponse,
    SyncStatusResponse,
)
from ..services.day_resolver import DayStatus
from ..services.feed_loader import CalendarFeedLoader
from ..services.range_renderer import (
    RenderBar,
    days_between,
    month_window,
    parse_month,
    price_bucket,
    render_calendar,
)
from ..utils.dependencies import get_feed_loader

router = APIRouter(prefix="/api/calendar", tags=["Calendar"])


def _property_response(prop: Property) -> PropertyResponse:
    return PropertyResponse(id=prop.id, display_name=prop.display_name)


def _bar_response(bar: RenderBar, window_start: date) -> RenderBarResponse:
    start_column, end_column = bar.column_span(window_start)
    return RenderBarResponse(
        status=bar.status,
        first_visible_day=bar.first_visible_day,
        last_visible_day=bar.last_visible_day,
        start_column=start_column,
        end_column=end_column,
        start_edge=bar.start_edge,
        end_edge=bar.end_edge,
        reservation_start=bar.reservation.start_day,
        reservation_end=bar.reservation.end_day,
        price=bar.price,
        price_bucket=bar.price_bucket,
    )


def _day_status_response(prop: Property, day_status: DayStatus) -> DayStatusResponse:
    reservation = day_status.reservation
    if reservation is None:
        return DayStatusResponse(property=_property_response(prop))
    return DayStatusResponse(
        property=_property_response(prop),
        status=reservation.status,
        reservation_start=reservation.start_day,
        reservation_end=reservation.end_day,
        price=reservation.price,
        price_bucket=price_bucket(reservation.price) if reservation.status == Status.FREE else None,
        is_start=day_status.is_start,
        is_end=day_status.is_end,
    )


def _select_properties(loader: CalendarFeedLoader, property_ids: Optional[List[str]]) -> List[Property]:
    properties = loader.snapshot.properties
    if not property_ids:
        return properties
    wanted = set(property_ids)
    return [p for p in properties if p.id in wanted]


def _resolve_window(month: Optional[str], start: Optional[date], end: Optional[date]):
    if start is not None or end is not None:
        if start is None or end is None:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail="Both start and end are required for a custom window"
            )
        if start > end:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail="start must be on or before end"
            )
        return start, end

    if month:
        try:
            return parse_month(month)
        except ValueError as e:
            raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))

    today = date.today()
    return month_window(today.year, today.month)


@router.get("", response_model=CalendarResponse)
@router.get("/", response_model=CalendarResponse)
async def get_calendar(
    month: Optional[str] = Query(None, description="Visible month as YYYY-MM"),
    start: Optional[date] = Query(None, description="Custom window start"),
    end: Optional[date] = Query(None, description="Custom window end"),
    property_id: Optional[List[str]] = Query(None, description="Restrict to these properties"),
    loader: CalendarFeedLoader = Depends(get_feed_loader)
):
    """
    Render bars for every property over the visible window.
    Defaults to the current month.
    """
    window_start, window_end = _resolve_window(month, start, end)
    properties = _select_properties(loader, property_id)

    rows = render_calendar(properties, loader.snapshot.reservations, window_start, window_end)

    return CalendarResponse(
        window_start=window_start,
        window_end=window_end,
        days=days_between(window_start, window_end) + 1,
        sync_status=loader.status.value,
        rows=[
            PropertyRowResponse(
                property=_property_response(row.property),
                bars=[_bar_response(bar, window_start) for bar in row.bars],
            )
            for row in rows
        ],
    )


@router.get("/day", response_model=DayOverviewResponse)
async def get_day_overview(
    day: Optional[date] = Query(None, alias="date", description="Day to resolve, defaults to today"),
    property_id: Optional[List[str]] = Query(None),
    loader: CalendarFeedLoader = Depends(get_feed_loader)
):
    """Authoritative status of each property on one day, available ones first"""
    day = day or date.today()
    properties = _select_properties(loader, property_id)
    resolver = loader.snapshot.resolver
    by_id = {p.id: p for p in properties}

    ranked = resolver.rank_properties(properties, day)
    return DayOverviewResponse(
        day=day,
        available_count=resolver.count_available(properties, day),
        properties=[_day_status_response(by_id[s.property_id], s) for s in ranked],
    )


@router.get("/properties", response_model=List[PropertyResponse])
async def list_properties(loader: CalendarFeedLoader = Depends(get_feed_loader)):
    return [_property_response(p) for p in loader.snapshot.properties]


def _sync_response(loader: CalendarFeedLoader) -> SyncStatusResponse:
    snapshot = loader.snapshot
    return SyncStatusResponse(
        status=loader.status.value,
        error=loader.error,
        source=loader.source,
        last_attempt_at=loader.last_attempt_at,
        synced_at=snapshot.synced_at,
        generated_at=snapshot.generated_at,
        season=snapshot.season,
        properties=len(snapshot.properties),
        reservations=len(snapshot.reservations),
        accepted_records=snapshot.report.accepted,
        dropped_records=dict(snapshot.report.dropped),
    )


@router.get("/sync", response_model=SyncStatusResponse)
async def get_sync_status(loader: CalendarFeedLoader = Depends(get_feed_loader)):
    return _sync_response(loader)


@router.post("/sync", response_model=SyncStatusResponse)
def trigger_sync(loader: CalendarFeedLoader = Depends(get_feed_loader)):
    """
    Re-fetch the feed and replace the calendar data.
    Returns 502 when the feed cannot be loaded.
    """
    if not loader.sync():
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=loader.error
        )
    return _sync_response(loader)
