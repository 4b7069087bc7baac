"""Day-by-day schedule assembly: TravelEvents → DaySchedules."""

from collections import defaultdict
from datetime import date, datetime, time, timedelta, tzinfo
from typing import Dict, List, Optional

from trip_itinerary.config import DISPLAY_TIMEZONE, LAYOVER_MAX_HOURS
from trip_itinerary.models import (
    Breakfast,
    CheckoutHint,
    Connection,
    DaySchedule,
    EventItem,
    EventType,
    FlightData,
    HotelData,
    Staying,
    TimelineItem,
    TravelEvent,
)

# Smallest datetime step: a connection sorts just after the arriving leg
_CONNECTION_NUDGE = timedelta(microseconds=1)
_ONE_DAY = timedelta(days=1)


def _event_order(ev: TravelEvent):
    return (ev.start_time, ev.id)


def _local_day(dt: datetime, tz: tzinfo) -> date:
    return dt.astimezone(tz).date()


def _start_of_day(d: date, tz: tzinfo) -> datetime:
    return datetime.combine(d, time.min, tzinfo=tz)


# ---------------------------------------------------------------------------
# Step 1: Every event becomes an item keyed by its start time
# ---------------------------------------------------------------------------

def place_events(events: List[TravelEvent]) -> List[EventItem]:
    return [EventItem(ev) for ev in events]


# ---------------------------------------------------------------------------
# Step 2: Layover connections between consecutive transport legs
# ---------------------------------------------------------------------------

def format_layover(delta: timedelta) -> str:
    """'2h 30m', or just '45m' under an hour."""
    minutes = int(delta.total_seconds() // 60)
    hours, minutes = divmod(minutes, 60)
    if hours:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"


def _connection_location(ev: TravelEvent) -> str:
    if ev.type == EventType.FLIGHT and isinstance(ev.data, FlightData):
        return f"at {ev.data.arrival_airport}"
    return "Layover"


def find_connections(events: List[TravelEvent]) -> List[Connection]:
    """Connections between adjacent transport-class events less than a day apart.

    Only flights, trains and generic transport are considered; a hotel or a
    dinner between two flights does not break the connection.
    """
    legs = sorted((ev for ev in events if ev.type.is_transport), key=_event_order)
    max_layover = timedelta(hours=LAYOVER_MAX_HOURS)

    connections = []
    for prev, nxt in zip(legs, legs[1:]):
        if prev.end_time is None:
            continue
        layover = nxt.start_time - prev.end_time
        if timedelta(0) < layover < max_layover:
            connections.append(Connection(
                duration_label=format_layover(layover),
                location_label=_connection_location(prev),
                sort_key=prev.end_time + _CONNECTION_NUDGE,
            ))
    return connections


# ---------------------------------------------------------------------------
# Step 3: Breakfast / checkout / staying hints around hotel stays
# ---------------------------------------------------------------------------

def hotel_items(ev: TravelEvent, tz: tzinfo) -> List[TimelineItem]:
    """Synthetic items for one hotel stay.

    Days after check-in up to and including check-out get breakfast (when
    included); the check-out day gets a checkout hint; nights strictly
    between check-in and check-out get a staying item. Stays without a
    check-out time produce nothing.
    """
    if ev.type != EventType.HOTEL or ev.end_time is None:
        return []
    hotel: HotelData = ev.data
    check_in_day = _local_day(ev.start_time, tz)
    check_out_day = _local_day(ev.end_time, tz)
    title = ev.display_title

    items: List[TimelineItem] = []
    d = check_in_day + _ONE_DAY
    while d <= check_out_day:
        if hotel.is_breakfast_included:
            items.append(Breakfast(hotel_name=hotel.hotel_name, sort_key=_start_of_day(d, tz)))
        if d == check_out_day:
            items.append(CheckoutHint(hotel_name=title, sort_key=ev.end_time))
        d += _ONE_DAY

    # The check-in day already shows the check-in event itself
    d = check_in_day + _ONE_DAY
    while d < check_out_day:
        items.append(Staying(hotel_name=title, sort_key=_start_of_day(d, tz)))
        d += _ONE_DAY

    return items


# ---------------------------------------------------------------------------
# Step 4: Group by day; fixed bucket order within each day
# ---------------------------------------------------------------------------

# breakfast → checkout → the day's events → new hotel check-in → staying
_BREAKFAST, _CHECKOUT, _MAIN, _CHECK_IN, _STAYING = range(5)


def _bucket(item: TimelineItem) -> int:
    if isinstance(item, Breakfast):
        return _BREAKFAST
    if isinstance(item, CheckoutHint):
        return _CHECKOUT
    if isinstance(item, Staying):
        return _STAYING
    if isinstance(item, EventItem) and item.is_hotel_check_in:
        return _CHECK_IN
    return _MAIN


def _item_order(item: TimelineItem):
    # On a tie with the next leg's departure the connection goes first;
    # sorted() is stable, so other equal keys keep generation order
    return (_bucket(item), item.sort_key, 0 if isinstance(item, Connection) else 1)


def group_by_day(items: List[TimelineItem], tz: tzinfo) -> List[DaySchedule]:
    by_day: Dict[date, List[TimelineItem]] = defaultdict(list)
    for item in items:
        by_day[_local_day(item.sort_key, tz)].append(item)

    schedules = []
    for day in sorted(by_day):
        day_items = sorted(by_day[day], key=_item_order)
        schedules.append(DaySchedule(day=day, items=day_items))
    return schedules


def build_schedule(events: List[TravelEvent], tz: Optional[tzinfo] = None) -> List[DaySchedule]:
    """Full pipeline: events → items → connections + hotel hints → day schedules."""
    tz = tz or DISPLAY_TIMEZONE
    ordered = sorted(events, key=_event_order)

    items: List[TimelineItem] = []
    items.extend(place_events(ordered))
    items.extend(find_connections(ordered))
    for ev in ordered:
        items.extend(hotel_items(ev, tz))

    return group_by_day(items, tz)
