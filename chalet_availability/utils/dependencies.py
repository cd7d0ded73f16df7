from functools import lru_cache

from ..services.feed_loader import CalendarFeedLoader


@lru_cache()
def get_feed_loader() -> CalendarFeedLoader:
    """Process-wide loader holding the current calendar snapshot"""
    return CalendarFeedLoader()
