"""Geocode event endpoints using OpenStreetMap's Nominatim service."""

import logging
import time
from dataclasses import replace
from typing import List, Optional

import requests

from trip_itinerary.config import (
    GEOCODER_DELAY_SECONDS,
    GEOCODER_MAX_FAILURES,
    GEOCODER_TIMEOUT_SECONDS,
    GEOCODER_URL,
    GEOCODER_USER_AGENT,
)
from trip_itinerary.errors import GeocodeUnavailable
from trip_itinerary.models import (
    CarData,
    FlightData,
    GeoCoordinates,
    HotelData,
    OtherData,
    TrainData,
    TravelEvent,
)

logger = logging.getLogger(__name__)


class NominatimGeocoder:
    """Free-text location search, at most one request per ``delay`` seconds."""

    def __init__(self, url: str = GEOCODER_URL, delay: float = GEOCODER_DELAY_SECONDS,
                 timeout: float = GEOCODER_TIMEOUT_SECONDS, session: Optional[requests.Session] = None):
        self.url = url
        self.delay = delay
        self.timeout = timeout
        self.session = session or requests.Session()
        self._last_request = 0.0

    def search(self, query: str) -> Optional[GeoCoordinates]:
        """Return coordinates for the best match, or None if nothing matched.

        Raises GeocodeUnavailable when the service can't be reached or
        answers with an error.
        """
        if not query or not query.strip():
            return None

        # Rate limiting - Nominatim allows 1 request per second
        elapsed = time.monotonic() - self._last_request
        if elapsed < self.delay:
            time.sleep(self.delay - elapsed)

        params = {"q": query, "format": "json", "limit": 1}
        headers = {"User-Agent": GEOCODER_USER_AGENT}
        self._last_request = time.monotonic()
        try:
            response = self.session.get(self.url, params=params, headers=headers, timeout=self.timeout)
            response.raise_for_status()
            results = response.json()
        except requests.Timeout as exc:
            raise GeocodeUnavailable(query, "timed out") from exc
        except (requests.RequestException, ValueError) as exc:
            raise GeocodeUnavailable(query, str(exc)) from exc

        if not results:
            return None
        best = results[0]
        return GeoCoordinates(lat=float(best["lat"]), lng=float(best["lon"]))


def origin_query(ev: TravelEvent) -> Optional[str]:
    """What to search for to place the start of an event."""
    d = ev.data
    if isinstance(d, FlightData):
        return d.departure_city or f"{d.departure_airport} Airport"
    if isinstance(d, HotelData):
        return d.address or d.hotel_name
    if isinstance(d, CarData):
        return d.origin
    if isinstance(d, TrainData):
        return f"{d.departure_station} Train Station"
    if isinstance(d, OtherData):
        return d.location
    return None


def destination_query(ev: TravelEvent) -> Optional[str]:
    d = ev.data
    if isinstance(d, FlightData):
        return d.arrival_city or f"{d.arrival_airport} Airport"
    if isinstance(d, TrainData):
        return f"{d.arrival_station} Train Station"
    if isinstance(d, CarData):
        return d.destination
    return None


def geocode_events(events: List[TravelEvent], geocoder) -> List[TravelEvent]:
    """Fill in missing coordinates, one lookup at a time.

    Returns updated copies; failed or empty lookups leave the coordinate
    unset. After GEOCODER_MAX_FAILURES consecutive service failures the
    remaining lookups are skipped.
    """
    failures = 0
    updated = []

    def lookup(query: Optional[str]) -> Optional[GeoCoordinates]:
        nonlocal failures
        if not query or failures >= GEOCODER_MAX_FAILURES:
            return None
        try:
            coords = geocoder.search(query)
        except GeocodeUnavailable as exc:
            failures += 1
            logger.warning("%s", exc)
            if failures >= GEOCODER_MAX_FAILURES:
                logger.warning("Stopping geocoding after %d consecutive failures", failures)
            return None
        failures = 0
        if coords is None:
            logger.info("No geocoding result for %r", query)
        return coords

    for ev in events:
        changes = {}
        if ev.origin_coordinates is None:
            coords = lookup(origin_query(ev))
            if coords is not None:
                changes["origin_coordinates"] = coords
        if ev.destination_coordinates is None:
            coords = lookup(destination_query(ev))
            if coords is not None:
                changes["destination_coordinates"] = coords
        updated.append(replace(ev, **changes) if changes else ev)

    return updated
