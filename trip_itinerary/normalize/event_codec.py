"""Wire-format (de)serialization of events and trips.

An event's ``data`` travels as a single-key object naming its variant::

    {"flight": {"airline": "JAL", "departureTime": "2026-01-20T14:30:00+09:00", ...}}

Payload keys are camelCase versions of the dataclass field names. Every
timestamp is read through the date normalizer and written back in ISO 8601
with a numeric offset, so files written here are always readable again.
"""

import logging
import uuid
from dataclasses import MISSING, dataclass, field, fields, is_dataclass
from datetime import datetime
from enum import Enum
from functools import lru_cache
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union, get_type_hints

from trip_itinerary.errors import (
    EventDecodeError,
    InvalidFieldType,
    InvalidTimeRange,
    MissingField,
    UnknownVariant,
)
from trip_itinerary.models import (
    VARIANTS,
    Attachment,
    BaggageItem,
    BookingSource,
    EventData,
    EventType,
    GeoCoordinates,
    TranslatedContent,
    TravelEvent,
    TravelFare,
    Trip,
    WeatherInfo,
    variant_of,
)
from trip_itinerary.normalize.date_parser import (
    format_timestamp,
    normalize_timestamp,
    parse_optional_timestamp,
)

logger = logging.getLogger(__name__)

_DATETIME_FIELDS = {
    "departure_time",
    "arrival_time",
    "pickup_time",
    "check_in_time",
    "check_out_time",
}

# Names that don't follow plain snake -> camel conversion
_WIRE_NAMES = {
    "is_ota": "isOTA",
    "is_lcc_mode": "isLCCMode",
}


def _wire_name(name: str) -> str:
    if name in _WIRE_NAMES:
        return _WIRE_NAMES[name]
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------

@lru_cache(maxsize=None)
def _field_types(cls) -> Dict[str, Any]:
    """Declared type of every field of a model class, Optional unwrapped."""
    types = {}
    for name, hint in get_type_hints(cls).items():
        args = [a for a in getattr(hint, "__args__", ()) if a is not type(None)]
        if getattr(hint, "__origin__", None) is Union and len(args) == 1:
            hint = args[0]
        types[name] = hint
    return types


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _check_scalar(context: str, wire: str, expected, value):
    """Accept a JSON value only where it fits the field's declared type."""
    if expected is bool:
        if isinstance(value, bool):
            return value
    elif expected in (int, float):
        if _is_number(value):
            return expected(value)
    elif expected is str:
        if isinstance(value, str):
            return value
        # Flight numbers, room numbers etc. often arrive as JSON numbers
        if _is_number(value):
            return str(value)
    elif isinstance(expected, type) and issubclass(expected, Enum):
        try:
            return expected(value)
        except ValueError:
            pass
    else:
        return value
    raise InvalidFieldType(context, wire, value)


def _decode_record(cls, context: str, obj):
    """Build a model dataclass from its camelCase wire object."""
    if not isinstance(obj, dict):
        raise EventDecodeError(f"{context!r} data must be an object, got {type(obj).__name__}")

    types = _field_types(cls)
    kwargs = {}
    for f in fields(cls):
        wire = _wire_name(f.name)
        value = obj.get(wire)
        if value is None:
            if f.default is MISSING and f.default_factory is MISSING:
                raise MissingField(context, wire)
            continue
        if f.name in _DATETIME_FIELDS:
            value = normalize_timestamp(value)
        elif f.name in _NESTED_DECODERS:
            value = _NESTED_DECODERS[f.name](value)
        else:
            value = _check_scalar(context, wire, types[f.name], value)
        kwargs[f.name] = value
    return cls(**kwargs)


def _decode_list(cls, context: str, items) -> list:
    if not isinstance(items, list):
        raise EventDecodeError(f"{context!r} must be a list, got {type(items).__name__}")
    return [_decode_record(cls, context, obj) for obj in items]


def _decode_fare(obj: Dict[str, Any]) -> TravelFare:
    # Amounts come back as "18500" as often as 18500
    return TravelFare(currency=str(obj["currency"]), amount=float(obj["amount"]))


def _decode_booking_source(obj) -> BookingSource:
    if isinstance(obj, dict) and obj.get("name") is None:
        obj = dict(obj, name="")
    return _decode_record(BookingSource, "bookingSource", obj)


def _decode_baggage(items) -> List[BaggageItem]:
    baggage = _decode_list(BaggageItem, "baggage", items)
    for item in baggage:
        item.id = item.id or str(uuid.uuid4())
    return baggage


def _decode_coordinates(obj) -> Optional[GeoCoordinates]:
    if obj is None:
        return None
    return GeoCoordinates(lat=float(obj["lat"]), lng=float(obj["lng"]))


def _decode_translations(obj) -> Dict[str, TranslatedContent]:
    if not isinstance(obj, dict):
        raise InvalidFieldType("event", "translations", obj)
    translations = {}
    for language, content in obj.items():
        if not isinstance(content, dict):
            raise InvalidFieldType("translations", language, content)
        labels = content.get("labels") or {}
        if not isinstance(labels, dict):
            raise InvalidFieldType("translations", "labels", labels)
        translations[language] = TranslatedContent(
            data=decode_event_data(content.get("data")),
            labels={str(k): str(v) for k, v in labels.items()},
        )
    return translations


_NESTED_DECODERS = {
    "fare": _decode_fare,
    "booking_source": _decode_booking_source,
    "baggage": _decode_baggage,
}


def _decode_payload(variant: str, payload: Dict[str, Any]) -> EventData:
    return _decode_record(VARIANTS[variant], variant, payload)


def decode_event_data(obj) -> EventData:
    """Decode the ``data`` union. Raises UnknownVariant if no known key is present."""
    if not isinstance(obj, dict):
        raise UnknownVariant()
    for variant in VARIANTS:
        if variant in obj:
            return _decode_payload(variant, obj[variant])
    raise UnknownVariant(obj.keys())


def _resolve_type(raw_type, variant: str) -> EventType:
    """Pick the event type, keeping it consistent with the data variant."""
    default = EventType.for_variant(variant)
    if not raw_type:
        return default
    try:
        event_type = EventType(str(raw_type).upper())
    except ValueError:
        logger.warning("Unknown event type %r, using %s from %r data", raw_type, default.value, variant)
        return default
    if event_type.variant != variant:
        logger.warning(
            "Event type %s disagrees with %r data, using %s",
            event_type.value, variant, default.value,
        )
        return default
    return event_type


def decode_event(obj) -> TravelEvent:
    """Decode one wire-format event. Raises an EventDecodeError subclass on failure."""
    if not isinstance(obj, dict):
        raise EventDecodeError(f"Event must be an object, got {type(obj).__name__}")

    try:
        data = decode_event_data(obj.get("data"))
        event_type = _resolve_type(obj.get("type"), variant_of(data))

        if obj.get("startTime") is None:
            raise MissingField("event", "startTime")
        start_time = normalize_timestamp(obj["startTime"])
        end_time = parse_optional_timestamp(obj.get("endTime"))
        if end_time is not None and end_time < start_time:
            raise InvalidTimeRange(start_time, end_time)

        booking_source = obj.get("bookingSource")
        attachments = obj.get("attachments")
        weather = obj.get("weather")
        translations = obj.get("translations")

        return TravelEvent(
            id=str(obj.get("id") or uuid.uuid4()),
            type=event_type,
            start_time=start_time,
            end_time=end_time,
            origin_coordinates=_decode_coordinates(obj.get("geoCoordinates")),
            destination_coordinates=_decode_coordinates(obj.get("destinationGeoCoordinates")),
            detected_language=obj.get("detectedLanguage"),
            booking_source=_decode_booking_source(booking_source) if booking_source is not None else None,
            data=data,
            translations=_decode_translations(translations) if translations is not None else None,
            attachments=_decode_list(Attachment, "attachments", attachments) if attachments is not None else None,
            weather=_decode_record(WeatherInfo, "weather", weather) if weather is not None else None,
        )
    except EventDecodeError:
        raise
    except (AttributeError, KeyError, TypeError, ValueError) as exc:
        raise EventDecodeError(f"Malformed event: {exc}") from exc


@dataclass
class DecodeReport:
    """Outcome of decoding a batch where each item may fail on its own."""
    events: List[TravelEvent] = field(default_factory=list)
    failures: List[Tuple[int, str]] = field(default_factory=list)  # (index, reason)

    @property
    def total(self) -> int:
        return len(self.events) + len(self.failures)

    @property
    def summary(self) -> str:
        if self.failures:
            return f"could not parse {len(self.failures)} of {self.total} items"
        return f"parsed {self.total} items"


def decode_events(items: Iterable[Any]) -> DecodeReport:
    """Decode a batch, dropping (and recording) items that fail."""
    report = DecodeReport()
    for i, obj in enumerate(items):
        try:
            report.events.append(decode_event(obj))
        except EventDecodeError as exc:
            logger.warning("Skipping item %d: %s", i, exc)
            report.failures.append((i, str(exc)))
    return report


# ---------------------------------------------------------------------------
# Encoding
# ---------------------------------------------------------------------------

def _encode_value(value):
    if isinstance(value, datetime):
        return format_timestamp(value)
    if isinstance(value, Enum):
        return value.value
    if is_dataclass(value):
        return _encode_dataclass(value)
    if isinstance(value, list):
        return [_encode_value(v) for v in value]
    return value


def _encode_dataclass(obj) -> Dict[str, Any]:
    out = {}
    for f in fields(obj):
        value = getattr(obj, f.name)
        if value is None:
            continue
        out[_wire_name(f.name)] = _encode_value(value)
    return out


def encode_event_data(data: EventData) -> Dict[str, Any]:
    return {variant_of(data): _encode_dataclass(data)}


def encode_event(event: TravelEvent) -> Dict[str, Any]:
    out = {
        "id": event.id,
        "type": event.type.value,
        "startTime": format_timestamp(event.start_time),
        "data": encode_event_data(event.data),
    }
    if event.end_time is not None:
        out["endTime"] = format_timestamp(event.end_time)
    if event.origin_coordinates is not None:
        out["geoCoordinates"] = _encode_dataclass(event.origin_coordinates)
    if event.destination_coordinates is not None:
        out["destinationGeoCoordinates"] = _encode_dataclass(event.destination_coordinates)
    if event.detected_language:
        out["detectedLanguage"] = event.detected_language
    if event.booking_source is not None:
        out["bookingSource"] = _encode_dataclass(event.booking_source)
    if event.translations is not None:
        out["translations"] = {
            language: {"data": encode_event_data(content.data), "labels": dict(content.labels)}
            for language, content in event.translations.items()
        }
    if event.attachments is not None:
        out["attachments"] = [_encode_dataclass(a) for a in event.attachments]
    if event.weather is not None:
        out["weather"] = _encode_dataclass(event.weather)
    return out


def encode_trip(trip: Trip) -> Dict[str, Any]:
    out = {"id": trip.id, "name": trip.name}
    if trip.start_date is not None:
        out["startDate"] = format_timestamp(trip.start_date)
    if trip.end_date is not None:
        out["endDate"] = format_timestamp(trip.end_date)
    out["events"] = [encode_event(e) for e in trip.events]
    return out


def decode_trip(obj: Dict[str, Any]) -> Trip:
    """Decode a whole trip document. Any bad event fails the whole trip."""
    if not isinstance(obj, dict):
        raise EventDecodeError(f"Trip must be an object, got {type(obj).__name__}")
    return Trip(
        id=str(obj.get("id") or ""),
        name=obj.get("name") or "Untitled trip",
        start_date=parse_optional_timestamp(obj.get("startDate")),
        end_date=parse_optional_timestamp(obj.get("endDate")),
        events=[decode_event(e) for e in obj.get("events") or []],
    )
