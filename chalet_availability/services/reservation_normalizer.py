"""
Reservation Normalizer

Converts raw feed records into Reservations with closed day ranges:
- Maps status codes (booked/option/blocked/free) to Status
- Applies the endpoint convention per status:
  CONFIRMED/FREE ranges end on the checkout day, so the last occupied day is
  end - 1 (a same-day range keeps its single day);
  OPTION/BLOCKED ranges already end on the last night
- Drops malformed and degenerate records with a warning
- Groups output by property, each group sorted by start day (stable)
"""

from collections import Counter
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional, Union

from pydantic import ValidationError

from ..models.reservation import (
    Property,
    Reservation,
    CHECKOUT_CONVENTION_STATUSES,
    status_from_code,
)
from ..schemas.feed import RawProperty, RawRecord
from ..utils.logging_config import get_logger

logger = get_logger(__name__)

RawPropertyLike = Union[RawProperty, Dict[str, Any]]

# Drop reasons
INVALID_RECORD = "invalid_record"
INVALID_DATE = "invalid_date"
UNKNOWN_STATUS = "unknown_status"
DEGENERATE_RANGE = "degenerate_range"


@dataclass
class NormalizationReport:
    """Accepted / dropped record counts for one normalization pass"""
    accepted: int = 0
    dropped: Counter = field(default_factory=Counter)

    @property
    def dropped_total(self) -> int:
        return sum(self.dropped.values())


@dataclass
class NormalizedFeed:
    properties: List[Property]
    reservations: List[Reservation]
    report: NormalizationReport


def parse_day(value: Any) -> Optional[date]:
    """
    Parse an ISO calendar date. Date-times are reduced to their day.
    Returns None when the value is not a date.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not value or not isinstance(value, str):
        return None
    value = value.strip()
    try:
        return date.fromisoformat(value)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(value).date()
    except ValueError:
        return None


def adjust_end_day(status, raw_start: date, raw_end: date) -> date:
    """Last occupied day for a raw range, following the status convention"""
    if status in CHECKOUT_CONVENTION_STATUSES:
        if raw_start == raw_end:
            return raw_start
        return raw_end - timedelta(days=1)
    return raw_end


def _as_raw_property(raw: RawPropertyLike) -> RawProperty:
    if isinstance(raw, RawProperty):
        return raw
    return RawProperty.model_validate(raw)


def _normalize_record(
    property_id: str,
    item: Any,
    report: NormalizationReport
) -> Optional[Reservation]:
    if not isinstance(item, (dict, RawRecord)):
        report.dropped[INVALID_RECORD] += 1
        logger.record_dropped(
            property_id, INVALID_RECORD,
            f"record is not an object ({type(item).__name__})", item
        )
        return None

    try:
        record = item if isinstance(item, RawRecord) else RawRecord.model_validate(item)
    except ValidationError as e:
        report.dropped[INVALID_RECORD] += 1
        logger.record_dropped(
            property_id, INVALID_RECORD,
            f"invalid record ({e.error_count()} errors)", item
        )
        return None

    status = status_from_code(record.status)
    if status is None:
        report.dropped[UNKNOWN_STATUS] += 1
        logger.record_dropped(
            property_id, UNKNOWN_STATUS,
            f"unknown status '{record.status}'", record.model_dump()
        )
        return None

    raw_start = parse_day(record.start)
    raw_end = parse_day(record.end)
    if raw_start is None or raw_end is None:
        report.dropped[INVALID_DATE] += 1
        logger.record_dropped(
            property_id, INVALID_DATE,
            f"invalid date range {record.start} to {record.end}", record.model_dump()
        )
        return None

    end_day = adjust_end_day(status, raw_start, raw_end)
    if raw_start > end_day:
        report.dropped[DEGENERATE_RANGE] += 1
        logger.record_dropped(
            property_id, DEGENERATE_RANGE,
            f"empty range {record.start} to {record.end} ({status.value})", record.model_dump()
        )
        return None

    report.accepted += 1
    return Reservation(
        property_id=property_id,
        start_day=raw_start,
        end_day=end_day,
        status=status,
        price=record.price_total,
    )


def normalize_records(
    property_id: str,
    records: Iterable[Any],
    report: Optional[NormalizationReport] = None
) -> List[Reservation]:
    """
    Normalize the records of one property.

    Returns reservations sorted by start day; equal start days keep input order.
    """
    if report is None:
        report = NormalizationReport()

    reservations = []
    for item in records:
        reservation = _normalize_record(property_id, item, report)
        if reservation is not None:
            reservations.append(reservation)

    return sorted(reservations, key=lambda r: r.start_day)


def normalize_feed(raw_properties: Iterable[RawPropertyLike]) -> NormalizedFeed:
    """
    Normalize a whole feed: properties, reservations and a drop report.

    Properties without an id are skipped. Records of repeated ids are merged
    into the first group for that id.
    """
    report = NormalizationReport()
    groups: Dict[str, List[Reservation]] = {}
    properties: Dict[str, Property] = {}

    for raw in raw_properties:
        prop = _as_raw_property(raw)
        if not prop.id:
            logger.warning(f"Skipping property without id ({len(prop.records)} records)")
            continue

        if prop.id not in properties:
            properties[prop.id] = Property(id=prop.id, display_name=prop.label or prop.id)
            groups[prop.id] = []

        groups[prop.id].extend(normalize_records(prop.id, prop.records, report))

    reservations = []
    for property_id, group in groups.items():
        # Stable re-sort covers merged duplicate ids
        reservations.extend(sorted(group, key=lambda r: r.start_day))

    return NormalizedFeed(
        properties=sort_properties(properties.values()),
        reservations=reservations,
        report=report,
    )


def normalize(raw_properties: Iterable[RawPropertyLike]) -> List[Reservation]:
    """Normalize a feed into a reservation list grouped by property"""
    return normalize_feed(raw_properties).reservations


def sort_properties(properties: Iterable[Property]) -> List[Property]:
    return sorted(properties, key=lambda p: (p.display_name.casefold(), p.id))


def extract_properties(raw_properties: Iterable[RawPropertyLike]) -> List[Property]:
    """Properties listed by the feed, sorted by display name"""
    seen: Dict[str, Property] = {}
    for raw in raw_properties:
        prop = _as_raw_property(raw)
        if not prop.id:
            logger.warning("Skipping property without id")
            continue
        seen.setdefault(prop.id, Property(id=prop.id, display_name=prop.label or prop.id))
    return sort_properties(seen.values())


def group_by_property(reservations: Iterable[Reservation]) -> Dict[str, List[Reservation]]:
    """Index reservations by property id, keeping their order"""
    groups: Dict[str, List[Reservation]] = {}
    for reservation in reservations:
        groups.setdefault(reservation.property_id, []).append(reservation)
    return groups
