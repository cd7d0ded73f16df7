"""
Reservation domain types

A reservation is a status-tagged, closed day interval for one property.
Statuses are ranked by a single priority table used by every consumer.
"""

import enum
from dataclasses import dataclass
from datetime import date
from typing import Dict, FrozenSet, Optional


class Status(str, enum.Enum):
    CONFIRMED = "CONFIRMED"
    OPTION = "OPTION"
    BLOCKED = "BLOCKED"
    FREE = "FREE"


# Overlap priority, highest wins
STATUS_PRIORITY: Dict[Status, int] = {
    Status.BLOCKED: 3,
    Status.OPTION: 2,
    Status.CONFIRMED: 1,
    Status.FREE: 0,
}

# Feed status codes
RAW_STATUS_CODES: Dict[str, Status] = {
    "booked": Status.CONFIRMED,
    "option": Status.OPTION,
    "blocked": Status.BLOCKED,
    "free": Status.FREE,
}

# Raw end date is the checkout day for these; the others give the last night
CHECKOUT_CONVENTION_STATUSES: FrozenSet[Status] = frozenset({Status.CONFIRMED, Status.FREE})


def status_from_code(code: str) -> Optional[Status]:
    """Map a feed status code to a Status, None when unknown"""
    if code is None:
        return None
    return RAW_STATUS_CODES.get(str(code).strip().lower())


@dataclass(frozen=True)
class Property:
    """A rental property as listed in the feed"""
    id: str
    display_name: str


@dataclass(frozen=True)
class Reservation:
    """Closed interval [start_day, end_day] with one status"""
    property_id: str
    start_day: date
    end_day: date
    status: Status
    price: Optional[float] = None

    @property
    def priority(self) -> int:
        return STATUS_PRIORITY[self.status]

    @property
    def nights(self) -> int:
        """Number of days covered, both ends included"""
        return (self.end_day - self.start_day).days + 1

    def covers(self, day: date) -> bool:
        return self.start_day <= day <= self.end_day

    def intersects(self, window_start: date, window_end: date) -> bool:
        return not (self.end_day < window_start or self.start_day > window_end)
