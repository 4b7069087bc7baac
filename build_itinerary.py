#!/usr/bin/env python3
"""CLI entry point for the trip itinerary builder.

Usage:
    python build_itinerary.py trips
    python build_itinerary.py new "Japan 2026"
    python build_itinerary.py import TRIP_ID --file booking.pdf [--no-geocode]
    python build_itinerary.py import TRIP_ID --text "JL5 NRT→HND 20 Jan 14:30"
    python build_itinerary.py schedule TRIP_ID [--json]
    python build_itinerary.py map TRIP_ID [--output-dir output/]
    python build_itinerary.py export TRIP_ID trip.json
    python build_itinerary.py load trip.json
    python build_itinerary.py delete TRIP_ID
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from dateutil import tz

from trip_itinerary.config import DISPLAY_TIMEZONE, LOG_LEVEL, OUTPUT_DIR, TRIPS_PATH
from trip_itinerary.errors import ExtractionError, TripItineraryError
from trip_itinerary.extract.cache import ExtractionCache
from trip_itinerary.models import Trip
from trip_itinerary.normalize.geocoder import NominatimGeocoder
from trip_itinerary.output import (
    format_route_map_html,
    format_schedule,
    routes_to_geojson,
    schedules_to_dict,
)
from trip_itinerary.pipeline import import_file, import_text, render_trip
from trip_itinerary.store import TripStore


def _cmd_trips(store: TripStore, args):
    if not len(store):
        print("No trips yet.")
        return
    for trip in store.trips:
        span = ""
        if trip.start_date and trip.end_date:
            span = f"  {trip.start_date:%Y-%m-%d} → {trip.end_date:%Y-%m-%d}"
        print(f"{trip.id}  {trip.name}  ({len(trip.events)} events){span}")


def _cmd_new(store: TripStore, args):
    trip = store.add_trip(Trip(id="", name=args.name))
    print(trip.id)


def _cmd_delete(store: TripStore, args):
    store.delete_trip(args.trip_id)
    print(f"Deleted {args.trip_id}")


def _cmd_import(store: TripStore, args):
    geocoder = None if args.no_geocode else NominatimGeocoder()
    cache = ExtractionCache()
    if args.file:
        report = import_file(store, args.trip_id, Path(args.file), geocoder=geocoder, cache=cache)
    else:
        report = import_text(store, args.trip_id, args.text, geocoder=geocoder, cache=cache)
    print(f"Added {len(report.events)} events ({report.summary})")
    for index, reason in report.failures:
        print(f"  item {index}: {reason}", file=sys.stderr)


def _cmd_schedule(store: TripStore, args):
    trip = store.get_trip(args.trip_id)
    schedules, _ = render_trip(trip, args.tz)
    if args.json:
        print(json.dumps(schedules_to_dict(schedules), indent=2, ensure_ascii=False))
    else:
        print(format_schedule(schedules, title=trip.name, tz=args.tz))


def _cmd_map(store: TripStore, args):
    trip = store.get_trip(args.trip_id)
    _, routes = render_trip(trip, args.tz)
    output_dir = Path(args.output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    map_path = output_dir / f"{trip.id}_map.html"
    format_route_map_html(routes, map_path, title=trip.name)
    geojson_path = output_dir / f"{trip.id}_routes.geojson"
    geojson_path.write_text(json.dumps(routes_to_geojson(routes), indent=2), encoding="utf-8")
    print(f"{len(routes)} routes written to: {map_path}, {geojson_path}")


def _cmd_export(store: TripStore, args):
    path = store.export_trip(args.trip_id, Path(args.path))
    print(f"Trip written to: {path}")


def _cmd_load(store: TripStore, args):
    trip = store.import_trip(Path(args.path))
    print(f"Imported {trip.name!r} as {trip.id} ({len(trip.events)} events)")


def _timezone(name: str):
    zone = tz.gettz(name)
    if zone is None:
        raise argparse.ArgumentTypeError(f"unknown timezone: {name}")
    return zone


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Organize travel bookings into a day-by-day itinerary and route map.",
    )
    parser.add_argument(
        "--store",
        default=str(TRIPS_PATH),
        help="Path to the trips JSON file",
    )
    parser.add_argument(
        "--tz",
        type=_timezone,
        default=DISPLAY_TIMEZONE,
        help="Timezone used to split the schedule into days (default: TRIP_TIMEZONE or UTC)",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("trips", help="List trips").set_defaults(func=_cmd_trips)

    p = sub.add_parser("new", help="Create an empty trip")
    p.add_argument("name")
    p.set_defaults(func=_cmd_new)

    p = sub.add_parser("delete", help="Delete a trip")
    p.add_argument("trip_id")
    p.set_defaults(func=_cmd_delete)

    p = sub.add_parser("import", help="Parse bookings with the LLM and add them to a trip")
    p.add_argument("trip_id")
    source = p.add_mutually_exclusive_group(required=True)
    source.add_argument("--file", help="PDF, image, HTML, .eml or text file")
    source.add_argument("--text", help="Booking text to parse")
    p.add_argument(
        "--no-geocode",
        action="store_true",
        help="Skip looking up coordinates for new events",
    )
    p.set_defaults(func=_cmd_import)

    p = sub.add_parser("schedule", help="Print the day-by-day schedule")
    p.add_argument("trip_id")
    p.add_argument("--json", action="store_true", help="Print JSON instead of text")
    p.set_defaults(func=_cmd_schedule)

    p = sub.add_parser("map", help="Write the route map (HTML + GeoJSON)")
    p.add_argument("trip_id")
    p.add_argument("--output-dir", default=str(OUTPUT_DIR), help="Output directory")
    p.set_defaults(func=_cmd_map)

    p = sub.add_parser("export", help="Write one trip to a JSON file")
    p.add_argument("trip_id")
    p.add_argument("path")
    p.set_defaults(func=_cmd_export)

    p = sub.add_parser("load", help="Import a trip JSON file under a new id")
    p.add_argument("path")
    p.set_defaults(func=_cmd_load)

    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, LOG_LEVEL, logging.INFO),
        format="[%(levelname)s] %(name)s: %(message)s",
    )
    try:
        store = TripStore(Path(args.store))
        args.func(store, args)
    except ExtractionError as exc:
        print(f"Could not parse bookings: {exc}", file=sys.stderr)
        return 1
    except TripItineraryError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
