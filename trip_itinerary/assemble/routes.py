"""Map route geometry: TravelEvents → RoutedPolylines.

A journey taken once is drawn as a straight segment. When several events
share the same endpoints (in either direction) each one gets a quadratic
Bézier curve whose control point is pushed sideways by a different amount,
so the copies fan out symmetrically around the straight line.
"""

import math
from collections import Counter, defaultdict
from typing import Dict, List, Tuple

from trip_itinerary.config import (
    ROUTE_CURVE_OFFSET,
    ROUTE_CURVE_SAMPLES,
    ROUTE_KEY_PRECISION,
    ROUTE_SAME_POINT_TOLERANCE,
)
from trip_itinerary.models import GeoCoordinates, RoutedPolyline, TravelEvent

Point = Tuple[float, float]  # (lat, lng)


def _point(coords: GeoCoordinates) -> Point:
    return (coords.lat, coords.lng)


def _point_key(p: Point) -> str:
    # Adding 0.0 turns a rounded -0.0 into 0.0
    lat, lng = (round(v, ROUTE_KEY_PRECISION) + 0.0 for v in p)
    return f"{lat:.{ROUTE_KEY_PRECISION}f},{lng:.{ROUTE_KEY_PRECISION}f}"


def has_route(ev: TravelEvent) -> bool:
    """Both endpoints known and not (nearly) the same place."""
    o, d = ev.origin_coordinates, ev.destination_coordinates
    if o is None or d is None:
        return False
    return (abs(o.lat - d.lat) > ROUTE_SAME_POINT_TOLERANCE
            or abs(o.lng - d.lng) > ROUTE_SAME_POINT_TOLERANCE)


def route_key(origin: Point, destination: Point) -> str:
    """Direction-independent identity of a pair of endpoints."""
    return "|".join(sorted((_point_key(origin), _point_key(destination))))


# ---------------------------------------------------------------------------
# Geometry
# ---------------------------------------------------------------------------

def control_point(start: Point, end: Point, offset_factor: float) -> Point:
    """Chord midpoint pushed along the chord's left-hand normal.

    The push is ``offset_factor`` times the chord length, so the bend looks
    the same for short and long routes.
    """
    dx, dy = end[0] - start[0], end[1] - start[1]
    length = math.hypot(dx, dy)
    mid = ((start[0] + end[0]) / 2, (start[1] + end[1]) / 2)
    if length == 0:
        return mid
    nx, ny = -dy / length, dx / length
    return (mid[0] + nx * length * offset_factor,
            mid[1] + ny * length * offset_factor)


def quadratic_bezier(p0: Point, c: Point, p1: Point, samples: int = ROUTE_CURVE_SAMPLES) -> List[Point]:
    points = []
    for i in range(samples):
        t = i / (samples - 1)
        u = 1 - t
        points.append((
            u * u * p0[0] + 2 * u * t * c[0] + t * t * p1[0],
            u * u * p0[1] + 2 * u * t * c[1] + t * t * p1[1],
        ))
    return points


def _curve(origin: Point, destination: Point, offset_factor: float) -> List[Point]:
    # Offsets are measured against the canonical (key-ordered) chord so that
    # A→B and B→A legs share one side convention.
    if _point_key(origin) <= _point_key(destination):
        start, end = origin, destination
    else:
        start, end = destination, origin
    c = control_point(start, end, offset_factor)
    return quadratic_bezier(origin, c, destination)


# ---------------------------------------------------------------------------
# Assembly
# ---------------------------------------------------------------------------

def build_routes(events: List[TravelEvent]) -> List[RoutedPolyline]:
    """One polyline per routable event, in input order."""
    routed = [ev for ev in events if has_route(ev)]
    keys = [route_key(_point(ev.origin_coordinates), _point(ev.destination_coordinates)) for ev in routed]
    counts = Counter(keys)
    seen: Dict[str, int] = defaultdict(int)

    polylines = []
    for ev, key in zip(routed, keys):
        origin = _point(ev.origin_coordinates)
        destination = _point(ev.destination_coordinates)
        count = counts[key]

        if count == 1:
            points = [origin, destination]
            offset_factor = 0.0
        else:
            index = seen[key]
            seen[key] += 1
            centered = index - (count - 1) / 2
            offset_factor = centered * ROUTE_CURVE_OFFSET
            points = _curve(origin, destination, offset_factor)

        polylines.append(RoutedPolyline(
            event_id=ev.id,
            event_type=ev.type,
            points=tuple(points),
            color=ev.type.color,
            offset_factor=offset_factor,
        ))
    return polylines
