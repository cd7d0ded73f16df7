"""
Calendar Feed Loader

Fetches the availability feed and feeds normalized data to the engine.

State machine:
    IDLE -> SYNCING -> SUCCESS | ERROR

- One request per sync, no retry
- On SUCCESS the snapshot is replaced wholesale (never mutated)
- On ERROR the snapshot is emptied; the engine then runs on an empty set
"""

import enum
import json
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, List, Optional

import httpx
from pydantic import ValidationError

from ..config import Settings, settings as default_settings
from ..models.reservation import Property, Reservation
from ..schemas.feed import RawFeed
from ..utils.logging_config import get_logger
from .day_resolver import DayResolver
from .reservation_normalizer import NormalizationReport, normalize_feed

logger = get_logger(__name__)


class SyncStatus(str, enum.Enum):
    IDLE = "IDLE"
    SYNCING = "SYNCING"
    SUCCESS = "SUCCESS"
    ERROR = "ERROR"


class FeedError(Exception):
    """The feed could not be fetched or parsed as a whole"""


@dataclass
class CalendarSnapshot:
    """Normalized data from one successful sync"""
    properties: List[Property] = field(default_factory=list)
    reservations: List[Reservation] = field(default_factory=list)
    report: NormalizationReport = field(default_factory=NormalizationReport)
    generated_at: Optional[str] = None
    season: Optional[str] = None
    synced_at: Optional[datetime] = None

    def __post_init__(self):
        self.resolver = DayResolver(self.reservations)


class CalendarFeedLoader:
    """
    Loads the feed from FEED_PATH (local file) or FEED_URL (HTTP).

    A custom httpx.Client may be passed in; otherwise one is opened per sync.
    """

    def __init__(self, settings: Optional[Settings] = None, client: Optional[httpx.Client] = None):
        self.settings = settings or default_settings
        self.client = client
        self.status = SyncStatus.IDLE
        self.error: Optional[str] = None
        self.last_attempt_at: Optional[datetime] = None
        self.snapshot = CalendarSnapshot()

    @property
    def source(self) -> str:
        return self.settings.feed_path or self.settings.feed_url

    def _fetch(self) -> Any:
        """Raw JSON payload of the feed"""
        if self.settings.feed_path:
            try:
                with open(self.settings.feed_path, "r", encoding="utf-8") as handle:
                    return json.load(handle)
            except OSError as e:
                raise FeedError(f"Failed to read feed file: {e}")
            except ValueError as e:
                raise FeedError(f"Feed file is not valid JSON: {e}")

        try:
            if self.client is not None:
                response = self.client.get(self.settings.feed_url)
            else:
                with httpx.Client(timeout=self.settings.feed_timeout_seconds) as client:
                    response = client.get(self.settings.feed_url)
        except httpx.HTTPError as e:
            raise FeedError(f"Failed to fetch data: {e}")

        if response.status_code >= 400:
            raise FeedError(f"Failed to fetch data: HTTP {response.status_code} {response.reason_phrase}")

        try:
            return response.json()
        except ValueError as e:
            raise FeedError(f"Feed response is not valid JSON: {e}")

    def _build_snapshot(self, payload: Any) -> CalendarSnapshot:
        try:
            feed = RawFeed.from_payload(payload)
        except ValidationError as e:
            raise FeedError(f"Feed has an unexpected shape ({e.error_count()} errors)")

        normalized = normalize_feed(feed.lots)
        return CalendarSnapshot(
            properties=normalized.properties,
            reservations=normalized.reservations,
            report=normalized.report,
            generated_at=feed.generated_at,
            season=feed.season,
            synced_at=datetime.now(timezone.utc),
        )

    def _run(self, load) -> bool:
        self.status = SyncStatus.SYNCING
        self.error = None
        self.last_attempt_at = datetime.now(timezone.utc)
        start = time.time()

        try:
            snapshot = self._build_snapshot(load())
        except FeedError as e:
            duration_ms = (time.time() - start) * 1000
            self.snapshot = CalendarSnapshot()
            self.error = str(e)
            self.status = SyncStatus.ERROR
            logger.feed_failed(self.source, self.error, duration_ms)
            return False

        self.snapshot = snapshot
        self.status = SyncStatus.SUCCESS
        logger.feed_synced(
            self.source,
            len(snapshot.properties),
            len(snapshot.reservations),
            snapshot.report.dropped_total,
            (time.time() - start) * 1000,
        )
        return True

    def sync(self) -> bool:
        """Fetch and normalize the feed. Returns True on SUCCESS."""
        return self._run(self._fetch)

    def load_payload(self, payload: Any) -> bool:
        """Run the same pipeline on an in-memory payload"""
        return self._run(lambda: payload)
