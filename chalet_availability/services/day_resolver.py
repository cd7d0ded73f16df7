"""
Day Resolver

Finds the one authoritative reservation for a property on a given day.

Rules:
1. Only reservations whose closed range [start_day, end_day] contains the day count
2. No match -> None ("no data", not the same as an explicit FREE range)
3. Overlaps -> highest STATUS_PRIORITY wins (BLOCKED > OPTION > CONFIRMED > FREE)
4. Same top status -> first in input order
"""

import logging
from functools import lru_cache
from dataclasses import dataclass
from datetime import date, datetime
from typing import Dict, Iterable, List, Optional, Sequence, Union

from ..models.reservation import Property, Reservation, Status

logger = logging.getLogger(__name__)

DayLike = Union[date, datetime]

# Memoized (property_id, day) lookups kept per resolver
RESOLVE_CACHE_SIZE = 4096

# Ordering weights for listing properties on a day (lower first)
AVAILABILITY_WEIGHT: Dict[Optional[Status], int] = {
    Status.FREE: 0,
    Status.OPTION: 1,
    Status.CONFIRMED: 2,
    Status.BLOCKED: 2,
    None: 3,
}


def as_day(value: DayLike) -> date:
    """Drop the time of day"""
    if isinstance(value, datetime):
        return value.date()
    return value


def pick_authoritative(candidates: Sequence[Reservation]) -> Optional[Reservation]:
    """
    Highest-priority reservation among candidates that all cover the same day.
    max() keeps the first of equal keys, which gives the input-order tie-break.
    """
    if not candidates:
        return None
    if len(candidates) == 1:
        return candidates[0]

    winner = max(candidates, key=lambda r: r.priority)
    ties = [r for r in candidates if r.priority == winner.priority]
    if len(ties) > 1:
        logger.debug(
            f"{len(ties)} overlapping {winner.status.value} reservations for "
            f"{winner.property_id}; using the one starting {winner.start_day}"
        )
    return winner


def resolve_day(
    property_id: str,
    day: DayLike,
    reservations: Iterable[Reservation]
) -> Optional[Reservation]:
    """Authoritative reservation for property_id on day, or None"""
    day = as_day(day)
    candidates = [
        r for r in reservations
        if r.property_id == property_id and r.covers(day)
    ]
    return pick_authoritative(candidates)


@dataclass(frozen=True)
class DayStatus:
    """Resolved state of one property on one day"""
    property_id: str
    day: date
    reservation: Optional[Reservation]

    @property
    def status(self) -> Optional[Status]:
        return self.reservation.status if self.reservation else None

    @property
    def is_start(self) -> bool:
        return self.reservation is not None and self.reservation.start_day == self.day

    @property
    def is_end(self) -> bool:
        return self.reservation is not None and self.reservation.end_day == self.day

    @property
    def is_available(self) -> bool:
        return self.status == Status.FREE


class DayResolver:
    """
    Resolver bound to one fixed reservation collection.

    Reservations are indexed by property and results are memoized in an LRU
    cache of cache_size (property_id, day) entries. Build a new resolver when
    the collection is replaced.
    """

    def __init__(self, reservations: Iterable[Reservation], cache_size: int = RESOLVE_CACHE_SIZE):
        self._by_property: Dict[str, List[Reservation]] = {}
        for reservation in reservations:
            self._by_property.setdefault(reservation.property_id, []).append(reservation)
        self._resolve_cached = lru_cache(maxsize=cache_size)(self._resolve_uncached)

    def _resolve_uncached(self, property_id: str, day: date) -> Optional[Reservation]:
        return resolve_day(property_id, day, self._by_property.get(property_id, []))

    def reservations_for(self, property_id: str) -> List[Reservation]:
        return list(self._by_property.get(property_id, []))

    def resolve(self, property_id: str, day: DayLike) -> Optional[Reservation]:
        return self._resolve_cached(property_id, as_day(day))

    def cache_info(self):
        return self._resolve_cached.cache_info()

    def day_status(self, property_id: str, day: DayLike) -> DayStatus:
        day = as_day(day)
        return DayStatus(property_id=property_id, day=day, reservation=self.resolve(property_id, day))

    def resolve_range(self, property_id: str, start: DayLike, end: DayLike) -> List[DayStatus]:
        """One DayStatus per day from start to end, both included"""
        start, end = as_day(start), as_day(end)
        return [
            self.day_status(property_id, date.fromordinal(ordinal))
            for ordinal in range(start.toordinal(), end.toordinal() + 1)
        ]

    def rank_properties(self, properties: Iterable[Property], day: DayLike) -> List[DayStatus]:
        """
        Properties ordered for a day: free first, then options, then
        booked/blocked, then those without data; equal weights by name.
        """
        day = as_day(day)
        entries = [(prop, self.day_status(prop.id, day)) for prop in properties]
        entries.sort(key=lambda e: (
            AVAILABILITY_WEIGHT[e[1].status],
            e[0].display_name.casefold(),
            e[0].id,
        ))
        return [status for _, status in entries]

    def count_available(self, properties: Iterable[Property], day: DayLike) -> int:
        return sum(1 for prop in properties if self.day_status(prop.id, day).is_available)
