"""Error taxonomy for decoding, geocoding, extraction and storage."""

from typing import Iterable


class TripItineraryError(Exception):
    """Base class for all errors raised by this package."""


class EventDecodeError(TripItineraryError):
    """A single wire-format event could not be decoded."""


class InvalidTimestamp(EventDecodeError):
    def __init__(self, raw):
        self.raw = raw
        super().__init__(f"Invalid date format: {raw!r}")


class UnknownVariant(EventDecodeError):
    def __init__(self, keys: Iterable[str] = ()):
        self.keys = sorted(str(k) for k in keys)
        found = ", ".join(self.keys) or "none"
        super().__init__(f"Invalid event type: no known data variant (keys: {found})")


class MissingField(EventDecodeError):
    def __init__(self, variant: str, field_name: str):
        self.variant = variant
        self.field_name = field_name
        super().__init__(f"Missing required field {field_name!r} in {variant!r} data")


class InvalidFieldType(EventDecodeError):
    def __init__(self, context: str, field_name: str, value):
        self.context = context
        self.field_name = field_name
        self.value = value
        super().__init__(
            f"Field {field_name!r} in {context!r} data has unexpected value {value!r}"
        )


class InvalidTimeRange(EventDecodeError):
    def __init__(self, start, end):
        self.start = start
        self.end = end
        super().__init__(f"End time {end} is before start time {start}")


class GeocodeUnavailable(TripItineraryError):
    """The geocoding service could not be reached for one query."""

    def __init__(self, query: str, reason: str = ""):
        self.query = query
        msg = f"Geocoding unavailable for {query!r}"
        super().__init__(f"{msg}: {reason}" if reason else msg)


class TripNotFound(TripItineraryError):
    def __init__(self, trip_id: str):
        self.trip_id = trip_id
        super().__init__("The specified trip was not found.")


class ExtractionError(TripItineraryError):
    """The AI parsing service failed or returned unusable output."""


class TripStoreError(TripItineraryError):
    """The trips file exists but can't be read back."""

    def __init__(self, path, reason: str):
        self.path = path
        super().__init__(f"Could not read trips file {path}: {reason}")
