# Services package
from .reservation_normalizer import (
    normalize, normalize_feed, normalize_records,
    extract_properties, group_by_property,
    NormalizationReport, NormalizedFeed
)
from .day_resolver import resolve_day, DayResolver, DayStatus
from .range_renderer import (
    render_bars, render_calendar, price_bucket,
    month_window, parse_month, days_between,
    RenderBar, PropertyRow, PriceBucket, Edge
)
from .feed_loader import CalendarFeedLoader, CalendarSnapshot, SyncStatus, FeedError

__all__ = [
    "normalize", "normalize_feed", "normalize_records",
    "extract_properties", "group_by_property",
    "NormalizationReport", "NormalizedFeed",
    "resolve_day", "DayResolver", "DayStatus",
    "render_bars", "render_calendar", "price_bucket",
    "month_window", "parse_month", "days_between",
    "RenderBar", "PropertyRow", "PriceBucket", "Edge",
    "CalendarFeedLoader", "CalendarSnapshot", "SyncStatus", "FeedError",
]
