import math
from datetime import datetime

import pytest
from dateutil import tz

from trip_itinerary.assemble.routes import build_routes, control_point, has_route, route_key
from trip_itinerary.models import EVENT_COLORS, EventType

START = datetime(2026, 1, 20, 9, 0, tzinfo=tz.UTC)


def _midpoint(polyline):
    return polyline.points[len(polyline.points) // 2]


def test_single_route_is_straight(make_car):
    [route] = build_routes([make_car(START)])
    assert route.points == ((1.0, 1.0), (2.0, 2.0))
    assert route.offset_factor == 0.0
    assert not route.is_curved
    assert route.color == EVENT_COLORS[EventType.CAR]


def test_three_identical_routes_fan_out(make_car):
    routes = build_routes([make_car(START) for _ in range(3)])

    assert [r.offset_factor for r in routes] == pytest.approx([-0.2, 0.0, 0.2])
    for r in routes:
        assert r.is_curved
        assert len(r.points) == 21
        assert r.points[0] == pytest.approx((1.0, 1.0))
        assert r.points[-1] == pytest.approx((2.0, 2.0))

    # The middle copy lies on the chord, the outer two mirror each other around it
    assert _midpoint(routes[1]) == pytest.approx((1.5, 1.5))
    assert _midpoint(routes[0]) == pytest.approx((1.6, 1.4))
    assert _midpoint(routes[2]) == pytest.approx((1.4, 1.6))


def test_shared_and_unique_routes(make_car, make_flight):
    shared = [make_car(START) for _ in range(4)]
    unique = [
        make_flight(START, START, origin=(35.55, 139.78), destination=(34.43, 135.23)),
        make_car(START, origin=(10.0, 10.0), destination=(11.0, 12.0)),
    ]

    routes = build_routes(shared + unique)

    curved = [r for r in routes if r.is_curved]
    straight = [r for r in routes if not r.is_curved]
    assert len(curved) == 4
    assert len(straight) == 2
    assert all(len(r.points) == 2 for r in straight)
    assert sum(r.offset_factor for r in curved) == pytest.approx(0.0)
    assert straight[0].color == EVENT_COLORS[EventType.FLIGHT]


def test_return_leg_shares_the_route(make_car):
    there = make_car(START, origin=(1.0, 1.0), destination=(2.0, 2.0))
    back = make_car(START, origin=(2.0, 2.0), destination=(1.0, 1.0))

    a, b = build_routes([there, back])

    assert a.offset_factor == pytest.approx(-0.1)
    assert b.offset_factor == pytest.approx(0.1)
    assert b.points[0] == pytest.approx((2.0, 2.0))
    assert b.points[-1] == pytest.approx((1.0, 1.0))
    # Opposite sides of the straight line
    mid_a, mid_b = _midpoint(a), _midpoint(b)
    assert ((mid_a[0] + mid_b[0]) / 2, (mid_a[1] + mid_b[1]) / 2) == pytest.approx((1.5, 1.5))
    assert mid_a != pytest.approx(mid_b)


def test_route_key_ignores_direction_and_tiny_noise():
    assert route_key((1.0, 1.0), (2.0, 2.0)) == route_key((2.0, 2.0), (1.0, 1.0))
    assert route_key((1.00001, 1.0), (2.0, 2.0)) == route_key((1.0, 1.0), (2.0, 2.0))
    assert route_key((1.0, 1.0), (2.0, 2.0)) == "1.0000,1.0000|2.0000,2.0000"


def test_route_key_has_no_negative_zero():
    assert route_key((-0.00001, 1.0), (2.0, 2.0)) == route_key((0.00001, 1.0), (2.0, 2.0))
    assert route_key((51.5, -0.00002), (48.85, 2.35)) == "48.8500,2.3500|51.5000,0.0000"


def test_events_without_a_route_are_skipped(make_car, make_other):
    same_place = make_car(START, origin=(1.0, 1.0), destination=(1.0005, 0.9995))
    no_destination = make_car(START, destination=None)
    dinner = make_other(START)
    kept = make_car(START, event_id="kept")

    assert not has_route(same_place)
    assert not has_route(no_destination)
    assert not has_route(dinner)
    assert [r.event_id for r in build_routes([same_place, no_destination, dinner, kept])] == ["kept"]


def test_output_keeps_input_order(make_car):
    events = [
        make_car(START, origin=(5.0, 5.0), destination=(6.0, 6.0), event_id="a"),
        make_car(START, event_id="b"),
        make_car(START, origin=(5.0, 5.0), destination=(6.0, 6.0), event_id="c"),
    ]
    assert [r.event_id for r in build_routes(events)] == ["a", "b", "c"]


def test_control_point_scales_with_chord_length():
    short = control_point((0.0, 0.0), (0.0, 1.0), 0.2)
    long = control_point((0.0, 0.0), (0.0, 10.0), 0.2)
    assert short == pytest.approx((-0.2, 0.5))
    assert long == pytest.approx((-2.0, 5.0))
    assert math.hypot(long[0], long[1] - 5.0) == pytest.approx(10 * math.hypot(short[0], short[1] - 0.5))
    assert control_point((3.0, 3.0), (3.0, 3.0), 0.2) == (3.0, 3.0)
