"""Local JSON persistence for trips.

All trips live in one JSON document. It is read in full when the store is
created and rewritten in full (atomically) after every mutation.
"""

import json
import logging
import os
import uuid
from pathlib import Path
from typing import List

from trip_itinerary.config import TRIPS_PATH
from trip_itinerary.errors import EventDecodeError, TripNotFound, TripStoreError
from trip_itinerary.models import Trip
from trip_itinerary.normalize.event_codec import decode_trip, encode_trip

logger = logging.getLogger(__name__)


def _write_json(path: Path, data) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_name(path.name + ".tmp")
    tmp.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
    os.replace(tmp, path)


class TripStore:
    def __init__(self, path: Path = TRIPS_PATH):
        self.path = Path(path)
        self._trips: List[Trip] = []
        self._load()

    def _load(self):
        if not self.path.exists():
            logger.info("No local trips file found at %s", self.path)
            return
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError, OSError) as exc:
            raise TripStoreError(self.path, str(exc)) from exc
        if not isinstance(raw, list):
            raise TripStoreError(self.path, f"expected a list of trips, got {type(raw).__name__}")
        try:
            self._trips = [decode_trip(obj) for obj in raw]
        except EventDecodeError as exc:
            raise TripStoreError(self.path, str(exc)) from exc
        for trip in self._trips:
            trip.sort_events()
        logger.info("Loaded %d trips from %s", len(self._trips), self.path)

    def _save(self):
        _write_json(self.path, [encode_trip(t) for t in self._trips])
        logger.debug("Saved %d trips to %s", len(self._trips), self.path)

    def _index(self, trip_id: str) -> int:
        for i, trip in enumerate(self._trips):
            if trip.id == trip_id:
                return i
        raise TripNotFound(trip_id)

    # --- Queries ---

    @property
    def trips(self) -> List[Trip]:
        return list(self._trips)

    def get_trip(self, trip_id: str) -> Trip:
        return self._trips[self._index(trip_id)]

    def __len__(self):
        return len(self._trips)

    def __contains__(self, trip_id: str) -> bool:
        return any(t.id == trip_id for t in self._trips)

    # --- Mutations (each one rewrites the file) ---

    def add_trip(self, trip: Trip) -> Trip:
        if not trip.id:
            trip.id = str(uuid.uuid4())
        trip.sort_events()
        trip.update_dates_from_events()
        self._trips.append(trip)
        self._save()
        logger.info("Added trip: %s", trip.name)
        return trip

    def update_trip(self, trip: Trip) -> Trip:
        index = self._index(trip.id)
        trip.sort_events()
        trip.update_dates_from_events()
        self._trips[index] = trip
        self._save()
        logger.info("Updated trip: %s", trip.name)
        return trip

    def delete_trip(self, trip_id: str) -> None:
        del self._trips[self._index(trip_id)]
        self._save()
        logger.info("Deleted trip with ID: %s", trip_id)

    # --- Trip files ---

    def export_trip(self, trip_id: str, path: Path) -> Path:
        """Write a single trip as a standalone JSON document."""
        path = Path(path)
        _write_json(path, encode_trip(self.get_trip(trip_id)))
        return path

    def import_trip(self, path: Path) -> Trip:
        """Add a trip from an exported document under a fresh id.

        Event ids inside the document are kept.
        """
        path = Path(path)
        try:
            doc = json.loads(path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError, OSError) as exc:
            raise TripStoreError(path, str(exc)) from exc
        trip = decode_trip(doc)
        trip.id = str(uuid.uuid4())
        return self.add_trip(trip)
