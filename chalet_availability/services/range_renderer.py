"""
Range Renderer

Turns a property's reservations into render bars for a visible window:
- Drops reservations that do not intersect [window_start, window_end]
- Clips the survivors to the window
- Emits one bar per maximal run of days owned by the same reservation
  (ownership resolved with the same priority table as the Day Resolver,
  so bars never overlap and distinct reservations are never merged)
- Tags each bar edge as a true reservation edge, a window clip or an
  overlap cut, for cap styling
- Classifies FREE bars into price buckets for the heatmap
"""

import calendar
import enum
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Iterable, List, Optional, Tuple

from ..models.reservation import Property, Reservation, Status
from .day_resolver import pick_authoritative

# Price bucket thresholds (feed totals, EUR)
LOW_PRICE_CEILING = 5000
HIGH_PRICE_FLOOR = 10000


class PriceBucket(str, enum.Enum):
    UNKNOWN = "unknown"
    LOW = "low"
    MID = "mid"
    HIGH = "high"


class Edge(str, enum.Enum):
    RESERVATION = "reservation"  # true start/end of the reservation
    WINDOW = "window"            # clipped by the visible window
    OVERLAP = "overlap"          # cut by a higher-priority reservation


def price_bucket(price: Optional[float]) -> PriceBucket:
    if price is None:
        return PriceBucket.UNKNOWN
    if price < LOW_PRICE_CEILING:
        return PriceBucket.LOW
    if price < HIGH_PRICE_FLOOR:
        return PriceBucket.MID
    return PriceBucket.HIGH


def days_between(start: date, end: date) -> int:
    return (end - start).days


def month_window(year: int, month: int) -> Tuple[date, date]:
    """First and last day of a month"""
    last = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last)


def parse_month(value: str) -> Tuple[date, date]:
    """
    Window for a "YYYY-MM" string.

    Raises:
        ValueError: if the string is not a valid month
    """
    try:
        year_str, month_str = value.strip().split("-")
        year, month = int(year_str), int(month_str)
    except (AttributeError, ValueError):
        raise ValueError(f"Invalid month '{value}', expected YYYY-MM")
    if not 1 <= month <= 12 or not 1 <= year <= 9999:
        raise ValueError(f"Invalid month '{value}', expected YYYY-MM")
    return month_window(year, month)


@dataclass(frozen=True)
class RenderBar:
    """Window-clipped run of days owned by one reservation"""
    property_id: str
    status: Status
    first_visible_day: date
    last_visible_day: date
    start_edge: Edge
    end_edge: Edge
    price: Optional[float] = None
    price_bucket: Optional[PriceBucket] = None
    reservation: Optional[Reservation] = field(default=None, compare=False, repr=False)

    @property
    def length(self) -> int:
        return days_between(self.first_visible_day, self.last_visible_day) + 1

    def column_span(self, window_start: date) -> Tuple[int, int]:
        """Half-open grid column interval relative to window_start"""
        return (
            days_between(window_start, self.first_visible_day),
            days_between(window_start, self.last_visible_day) + 1,
        )


@dataclass(frozen=True)
class PropertyRow:
    """All bars of one property for a window"""
    property: Property
    bars: List[RenderBar]


def visible_reservations(
    property_id: str,
    reservations: Iterable[Reservation],
    window_start: date,
    window_end: date
) -> List[Reservation]:
    return [
        r for r in reservations
        if r.property_id == property_id and r.intersects(window_start, window_end)
    ]


def _edge(run_day: date, reservation_day: date, window_day: date) -> Edge:
    if run_day == reservation_day:
        return Edge.RESERVATION
    if run_day == window_day:
        return Edge.WINDOW
    return Edge.OVERLAP


def _make_bar(
    reservation: Reservation,
    first: date,
    last: date,
    window_start: date,
    window_end: date
) -> RenderBar:
    bucket = price_bucket(reservation.price) if reservation.status == Status.FREE else None
    return RenderBar(
        property_id=reservation.property_id,
        status=reservation.status,
        first_visible_day=first,
        last_visible_day=last,
        start_edge=_edge(first, reservation.start_day, window_start),
        end_edge=_edge(last, reservation.end_day, window_end),
        price=reservation.price,
        price_bucket=bucket,
        reservation=reservation,
    )


def render_bars(
    property_id: str,
    reservations: Iterable[Reservation],
    window_start: date,
    window_end: date
) -> List[RenderBar]:
    """
    Render bars for one property over [window_start, window_end].

    An empty reservation set or an inverted window yields no bars.
    """
    visible = visible_reservations(property_id, reservations, window_start, window_end)

    # Clip to day ordinals; first > last cannot happen after the visibility filter
    clipped = []
    for index, r in enumerate(visible):
        first = max(r.start_day, window_start).toordinal()
        last = min(r.end_day, window_end).toordinal()
        if first > last:
            continue
        clipped.append((index, r, first, last))

    if not clipped:
        return []

    # Ownership only changes where a clipped range starts or ends, so resolve
    # once per segment between consecutive boundaries. Boundaries are ordinals;
    # last + 1 may lie past date.max and is never converted back to a date.
    boundaries = sorted({c[2] for c in clipped} | {c[3] + 1 for c in clipped})

    bars: List[RenderBar] = []
    run_owner: Optional[int] = None
    run_start: Optional[int] = None

    for segment_start in boundaries[:-1]:
        covering = [c for c in clipped if c[2] <= segment_start <= c[3]]
        winner = pick_authoritative([c[1] for c in covering])
        owner = None
        if winner is not None:
            owner = next(c[0] for c in covering if c[1] is winner)

        if owner != run_owner:
            if run_owner is not None:
                bars.append(_make_bar(
                    visible[run_owner],
                    date.fromordinal(run_start), date.fromordinal(segment_start - 1),
                    window_start, window_end
                ))
            run_owner = owner
            run_start = segment_start

    # The last boundary is one past the latest covered day
    if run_owner is not None:
        bars.append(_make_bar(
            visible[run_owner],
            date.fromordinal(run_start), date.fromordinal(boundaries[-1] - 1),
            window_start, window_end
        ))

    return bars


def render_calendar(
    properties: Iterable[Property],
    reservations: Iterable[Reservation],
    window_start: date,
    window_end: date
) -> List[PropertyRow]:
    """One row per property, in the given order, including empty rows"""
    by_property: Dict[str, List[Reservation]] = {}
    for reservation in reservations:
        by_property.setdefault(reservation.property_id, []).append(reservation)

    return [
        PropertyRow(
            property=prop,
            bars=render_bars(prop.id, by_property.get(prop.id, []), window_start, window_end),
        )
        for prop in properties
    ]
