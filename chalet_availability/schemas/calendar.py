"""
Calendar Schemas

Pydantic models for the calendar API responses.
"""

from datetime import date, datetime
from typing import Optional, List, Dict
from pydantic import BaseModel, Field

from ..models.reservation import Status
from ..services.range_renderer import Edge, PriceBucket


class PropertyResponse(BaseModel):
    id: str
    display_name: str


class RenderBarResponse(BaseModel):
    """A window-clipped bar with its grid position"""
    status: Status
    first_visible_day: date
    last_visible_day: date
    start_column: int = Field(..., description="First grid column (0-based, inclusive)")
    end_column: int = Field(..., description="Grid column after the last one (exclusive)")
    start_edge: Edge
    end_edge: Edge
    reservation_start: date
    reservation_end: date
    price: Optional[float] = None
    price_bucket: Optional[PriceBucket] = None


class PropertyRowResponse(BaseModel):
    property: PropertyResponse
    bars: List[RenderBarResponse]


class CalendarResponse(BaseModel):
    """All property rows for a visible window"""
    window_start: date
    window_end: date
    days: int
    sync_status: str
    rows: List[PropertyRowResponse]


class DayStatusResponse(BaseModel):
    property: PropertyResponse
    status: Optional[Status] = None
    reservation_start: Optional[date] = None
    reservation_end: Optional[date] = None
    price: Optional[float] = None
    price_bucket: Optional[PriceBucket] = None
    is_start: bool = False
    is_end: bool = False


class DayOverviewResponse(BaseModel):
    """Resolved status of every property on one day, free first"""
    day: date
    available_count: int
    properties: List[DayStatusResponse]


class SyncStatusResponse(BaseModel):
    status: str
    error: Optional[str] = None
    source: str
    last_attempt_at: Optional[datetime] = None
    synced_at: Optional[datetime] = None
    generated_at: Optional[str] = None
    season: Optional[str] = None
    properties: int = 0
    reservations: int = 0
    accepted_records: int = 0
    dropped_records: Dict[str, int] = Field(default_factory=dict)
