"""Orchestrates imports (read → extract → decode → geocode → save) and renders."""

import logging
from dataclasses import replace
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from trip_itinerary.assemble.routes import build_routes
from trip_itinerary.assemble.timeline import build_schedule
from trip_itinerary.extract.cache import ExtractionCache
from trip_itinerary.extract.content import eml_bytes_to_text, html_to_text
from trip_itinerary.extract.llm_extractor import (
    extract_from_image,
    extract_from_pdf,
    extract_from_text,
)
from trip_itinerary.models import DaySchedule, RoutedPolyline, Trip
from trip_itinerary.normalize.event_codec import DecodeReport, decode_events
from trip_itinerary.normalize.geocoder import geocode_events
from trip_itinerary.store import TripStore

logger = logging.getLogger(__name__)

_IMAGE_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".webp": "image/webp",
    ".heic": "image/heic",
}


def read_document(path: Path) -> Tuple[str, Union[str, bytes]]:
    """Load a file as ("pdf" | "image" | "text", payload)."""
    path = Path(path)
    suffix = path.suffix.lower()
    if suffix == ".pdf":
        return "pdf", path.read_bytes()
    if suffix in _IMAGE_TYPES:
        return "image", path.read_bytes()
    if suffix in (".html", ".htm"):
        return "text", html_to_text(path.read_text(encoding="utf-8", errors="ignore"))
    if suffix == ".eml":
        return "text", eml_bytes_to_text(path.read_bytes())
    return "text", path.read_text(encoding="utf-8", errors="ignore")


def extract_raw_events(
    kind: str,
    payload: Union[str, bytes],
    mime_type: str = "",
    cache: Optional[ExtractionCache] = None,
) -> List[Dict[str, Any]]:
    """Run the LLM on one document, reusing a cached answer when there is one."""
    if cache is not None:
        cached = cache.get(kind, payload)
        if cached is not None:
            logger.info("Using cached %s extraction (%d items)", kind, len(cached))
            return cached

    if kind == "pdf":
        raw = extract_from_pdf(payload)
    elif kind == "image":
        raw = extract_from_image(payload, mime_type or "image/jpeg")
    else:
        raw = extract_from_text(payload)

    if cache is not None:
        cache.put(kind, payload, raw)
    return raw


def import_raw_events(store: TripStore, trip_id: str, raw_items: List[Any], geocoder=None) -> DecodeReport:
    """Decode a batch of raw events and append the good ones to a trip.

    Bad items are dropped and counted in the report. Geocoding, when a
    geocoder is given, runs before anything is added; the trip then gets
    all new events in a single update.
    """
    trip = store.get_trip(trip_id)
    report = decode_events(raw_items)

    if report.events and geocoder is not None:
        report.events = geocode_events(report.events, geocoder)

    if report.events:
        store.update_trip(replace(trip, events=trip.events + report.events))

    if report.failures:
        logger.warning("Import into %r: %s", trip.name, report.summary)
    else:
        logger.info("Import into %r: %s", trip.name, report.summary)
    return report


def import_text(store: TripStore, trip_id: str, text: str, geocoder=None,
                cache: Optional[ExtractionCache] = None) -> DecodeReport:
    store.get_trip(trip_id)  # fail fast before calling the LLM
    raw = extract_raw_events("text", text, cache=cache)
    return import_raw_events(store, trip_id, raw, geocoder=geocoder)


def import_file(store: TripStore, trip_id: str, path: Path, geocoder=None,
                cache: Optional[ExtractionCache] = None) -> DecodeReport:
    store.get_trip(trip_id)
    kind, payload = read_document(path)
    logger.info("Parsing %s as %s", path, kind)
    raw = extract_raw_events(kind, payload, _IMAGE_TYPES.get(Path(path).suffix.lower(), ""), cache=cache)
    return import_raw_events(store, trip_id, raw, geocoder=geocoder)


def render_trip(trip: Trip, tz=None) -> Tuple[List[DaySchedule], List[RoutedPolyline]]:
    """Day schedules and map routes for the trip's current events."""
    return build_schedule(trip.events, tz), build_routes(trip.events)
