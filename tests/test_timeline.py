from datetime import date, datetime, timedelta

import pytest
from dateutil import tz

from trip_itinerary.assemble.timeline import build_schedule, find_connections, format_layover
from trip_itinerary.models import Breakfast, CheckoutHint, Connection, EventItem, Staying


def _utc(day, hour=0, minute=0):
    return datetime(2026, 1, day, hour, minute, tzinfo=tz.UTC)


def _kinds(schedule):
    return [item.kind for item in schedule.items]


def _days_with(schedules, cls):
    return [s.day.day for s in schedules for item in s.items if isinstance(item, cls)]


@pytest.mark.parametrize("delta, expected", [
    (timedelta(hours=2, minutes=30), "2h 30m"),
    (timedelta(minutes=45), "45m"),
    (timedelta(hours=3), "3h 0m"),
    (timedelta(hours=23, minutes=59, seconds=59), "23h 59m"),
])
def test_format_layover(delta, expected):
    assert format_layover(delta) == expected


# --- Connections ---

def test_flight_connection(make_flight):
    first = make_flight(_utc(20, 10), _utc(20, 14), "HND", "NRT")
    second = make_flight(_utc(20, 16, 30), _utc(20, 20), "NRT", "LAX")

    schedules = build_schedule([second, first], tz.UTC)

    assert len(schedules) == 1
    items = schedules[0].items
    assert _kinds(schedules[0]) == ["event", "connection", "event"]
    connection = items[1]
    assert connection.duration_label == "2h 30m"
    assert connection.location_label == "at NRT"
    assert connection.sort_key == _utc(20, 14) + timedelta(microseconds=1)


def test_connection_before_next_leg_departing_a_second_later(make_flight):
    first = make_flight(_utc(20, 10), _utc(20, 14), "HND", "NRT")
    second = make_flight(_utc(20, 14) + timedelta(seconds=1), _utc(20, 18), "NRT", "ITM")

    [day] = build_schedule([second, first], tz.UTC)

    assert _kinds(day) == ["event", "connection", "event"]
    assert day.items[1].duration_label == "0m"
    assert day.items[2].event is second


def test_connection_before_next_leg_departing_a_microsecond_later(make_flight):
    first = make_flight(_utc(20, 10), _utc(20, 14))
    second = make_flight(_utc(20, 14) + timedelta(microseconds=1), _utc(20, 18))

    [day] = build_schedule([first, second], tz.UTC)

    assert _kinds(day) == ["event", "connection", "event"]
    assert day.items[1].sort_key == second.start_time


def test_train_connection_uses_generic_label(make_train, make_flight):
    train = make_train(_utc(20, 8), _utc(20, 9))
    flight = make_flight(_utc(20, 9, 45), _utc(20, 11))
    connections = find_connections([train, flight])
    assert [(c.duration_label, c.location_label) for c in connections] == [("45m", "Layover")]


@pytest.mark.parametrize("gap", [
    timedelta(hours=24),
    timedelta(hours=30),
    timedelta(0),
    timedelta(minutes=-30),
])
def test_no_connection_outside_window(make_flight, gap):
    first = make_flight(_utc(20, 10), _utc(20, 14))
    second = make_flight(_utc(20, 14) + gap, _utc(22, 14))
    assert find_connections([first, second]) == []


def test_connection_just_under_a_day(make_flight):
    first = make_flight(_utc(20, 10), _utc(20, 14))
    second = make_flight(_utc(21, 13, 59), _utc(21, 18))
    assert [c.duration_label for c in find_connections([first, second])] == ["23h 59m"]


def test_no_connection_without_arrival_time(make_flight):
    first = make_flight(_utc(20, 10), None)
    second = make_flight(_utc(20, 16), _utc(20, 18))
    assert find_connections([first, second]) == []


def test_non_transport_events_are_ignored(make_flight, make_car, make_other, make_hotel):
    first = make_flight(_utc(20, 10), _utc(20, 14))
    dinner = make_other(_utc(20, 15))
    car = make_car(_utc(20, 15, 30))
    hotel = make_hotel(_utc(20, 15, 45), _utc(20, 16))
    second = make_flight(_utc(20, 17), _utc(20, 19))

    connections = find_connections([first, dinner, car, hotel, second])
    assert [c.duration_label for c in connections] == ["3h 0m"]


def test_car_legs_never_connect(make_car):
    assert find_connections([make_car(_utc(20, 10)), make_car(_utc(20, 11))]) == []


# --- Hotel bracketing ---

def test_hotel_stay_with_breakfast(make_hotel):
    hotel = make_hotel(_utc(10, 14), _utc(13, 11), name="Hotel Granvia")

    schedules = build_schedule([hotel], tz.UTC)

    assert [s.day for s in schedules] == [date(2026, 1, d) for d in (10, 11, 12, 13)]
    assert _days_with(schedules, Breakfast) == [11, 12, 13]
    assert _days_with(schedules, Staying) == [11, 12]
    assert _days_with(schedules, CheckoutHint) == [13]
    assert _kinds(schedules[0]) == ["event"]
    assert _kinds(schedules[1]) == ["breakfast", "staying"]
    assert _kinds(schedules[3]) == ["breakfast", "checkout"]

    checkout = schedules[3].items[1]
    assert checkout.hotel_name == "Hotel Granvia"
    assert checkout.sort_key == _utc(13, 11)
    assert schedules[1].items[0].sort_key == _utc(11)


def test_hotel_without_breakfast(make_hotel):
    schedules = build_schedule([make_hotel(_utc(10, 14), _utc(12, 11), breakfast=False)], tz.UTC)
    assert _days_with(schedules, Breakfast) == []
    assert _days_with(schedules, Staying) == [11]
    assert _days_with(schedules, CheckoutHint) == [12]


def test_hotel_without_checkout(make_hotel):
    schedules = build_schedule([make_hotel(_utc(10, 14), None)], tz.UTC)
    assert len(schedules) == 1
    assert _kinds(schedules[0]) == ["event"]


def test_same_day_stay(make_hotel):
    schedules = build_schedule([make_hotel(_utc(10, 9), _utc(10, 18))], tz.UTC)
    assert len(schedules) == 1
    assert _kinds(schedules[0]) == ["event"]


def test_overlapping_hotels_both_contribute(make_hotel):
    a = make_hotel(_utc(10, 14), _utc(12, 11), name="A")
    b = make_hotel(_utc(11, 14), _utc(13, 11), name="B")
    schedules = build_schedule([a, b], tz.UTC)
    names = [i.hotel_name for s in schedules for i in s.items if isinstance(i, Breakfast)]
    assert sorted(names) == ["A", "A", "B", "B"]


# --- Ordering ---

def test_bucket_order_within_a_day(make_hotel, make_flight):
    leaving = make_hotel(_utc(10, 15), _utc(12, 10), name="Leaving")
    staying = make_hotel(_utc(11, 15), _utc(13, 10), name="Staying", breakfast=False)
    arriving = make_hotel(_utc(12, 6), _utc(14, 10), name="Arriving", breakfast=False)
    flight = make_flight(_utc(12, 12), _utc(12, 13))

    schedules = build_schedule([arriving, flight, staying, leaving], tz.UTC)
    day = next(s for s in schedules if s.day == date(2026, 1, 12))

    assert _kinds(day) == ["breakfast", "checkout", "event", "event", "staying"]
    assert day.items[2].event is flight
    assert day.items[3].event is arriving
    assert day.items[4].hotel_name == "Staying"


def test_output_does_not_depend_on_input_order(make_flight, make_hotel, make_other):
    events = [
        make_flight(_utc(20, 10), _utc(20, 14)),
        make_flight(_utc(20, 16), _utc(20, 18)),
        make_hotel(_utc(20, 19), _utc(23, 11)),
        make_other(_utc(21, 19)),
        make_other(_utc(21, 19), title="Same time, other id"),
    ]
    assert build_schedule(events, tz.UTC) == build_schedule(list(reversed(events)), tz.UTC)


def test_days_are_ascending_and_items_chronological(make_flight, make_other):
    events = [make_other(_utc(d, h)) for d in (25, 21, 23) for h in (20, 8)]
    events.append(make_flight(_utc(21, 12), _utc(21, 13)))
    schedules = build_schedule(events, tz.UTC)

    assert [s.day.day for s in schedules] == [21, 23, 25]
    for s in schedules:
        keys = [i.sort_key for i in s.items]
        assert keys == sorted(keys)


def test_days_follow_display_timezone(make_other):
    tokyo = tz.tzoffset("JST", 9 * 3600)
    late = make_other(_utc(20, 23, 30))

    assert build_schedule([late], tz.UTC)[0].day == date(2026, 1, 20)
    assert build_schedule([late], tokyo)[0].day == date(2026, 1, 21)


def test_event_items_wrap_every_event(make_flight, make_other):
    events = [make_flight(_utc(20, 10), _utc(20, 12)), make_other(_utc(20, 19))]
    items = [i for s in build_schedule(events, tz.UTC) for i in s.items]
    assert all(isinstance(i, (EventItem, Connection)) for i in items)
    assert [i.event for i in items if isinstance(i, EventItem)] == events


def test_empty_trip():
    assert build_schedule([], tz.UTC) == []
