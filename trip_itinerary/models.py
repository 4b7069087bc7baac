"""Data models: travel events, trips, and the derived schedule/route view-models."""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import ClassVar, Dict, List, Optional, Tuple, Union


class EventType(str, Enum):
    FLIGHT = "FLIGHT"
    HOTEL = "HOTEL"
    TRAIN = "TRAIN"
    CAR = "CAR"
    TRANSPORT = "TRANSPORT"
    ACTIVITY = "ACTIVITY"
    DINING = "DINING"
    OTHER = "OTHER"

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]

    @property
    def color(self) -> str:
        return EVENT_COLORS[self]

    @property
    def variant(self) -> str:
        """Wire key of the data variant this type must carry."""
        return _TYPE_TO_VARIANT.get(self, "other")

    @property
    def is_transport(self) -> bool:
        return self in TRANSPORT_TYPES

    @classmethod
    def for_variant(cls, variant: str) -> "EventType":
        return _VARIANT_TO_TYPE[variant]


_DISPLAY_NAMES = {
    EventType.FLIGHT: "Flight",
    EventType.HOTEL: "Hotel",
    EventType.TRAIN: "Train",
    EventType.CAR: "Car Rental",
    EventType.TRANSPORT: "Transport",
    EventType.ACTIVITY: "Activity",
    EventType.DINING: "Dining",
    EventType.OTHER: "Other",
}

# Shared with the map and text renderers
EVENT_COLORS = {
    EventType.FLIGHT: "#007AFF",     # blue
    EventType.HOTEL: "#34C759",      # green
    EventType.TRAIN: "#FF9500",      # orange
    EventType.CAR: "#AF52DE",        # purple
    EventType.DINING: "#FF3B30",     # red
    EventType.ACTIVITY: "#FFCC00",   # yellow
    EventType.TRANSPORT: "#30B0C7",  # teal
    EventType.OTHER: "#8E8E93",      # gray
}

_TYPE_TO_VARIANT = {
    EventType.FLIGHT: "flight",
    EventType.HOTEL: "hotel",
    EventType.TRAIN: "train",
    EventType.CAR: "car",
}

_VARIANT_TO_TYPE = {
    "flight": EventType.FLIGHT,
    "hotel": EventType.HOTEL,
    "train": EventType.TRAIN,
    "car": EventType.CAR,
    "other": EventType.OTHER,
}

# Eligible for layover connections
TRANSPORT_TYPES = frozenset({EventType.FLIGHT, EventType.TRAIN, EventType.TRANSPORT})


class BaggageType(str, Enum):
    CARRY_ON = "Carry-on"
    CHECKED = "Checked"


@dataclass
class GeoCoordinates:
    lat: float
    lng: float


@dataclass
class BookingSource:
    name: str  # agency or platform that sold the booking
    domain: Optional[str] = None
    is_ota: Optional[bool] = None


@dataclass
class TravelFare:
    currency: str
    amount: float


@dataclass
class Attachment:
    id: str
    name: str
    type: str  # MIME type
    data: str  # base64 file content
    size: int


@dataclass
class WeatherInfo:
    code: int  # WMO weather code
    temp_max: Optional[float] = None
    temp_min: Optional[float] = None
    precipitation_probability: Optional[float] = None


@dataclass
class BaggageItem:
    type: BaggageType
    id: str = ""
    weight_kg: Optional[float] = None
    # Low-cost carrier size limits
    is_lcc_mode: bool = False
    length_cm: Optional[float] = None
    width_cm: Optional[float] = None
    height_cm: Optional[float] = None


# ---------------------------------------------------------------------------
# Mode-specific payloads
# ---------------------------------------------------------------------------

@dataclass
class FlightData:
    airline: str
    flight_number: str
    departure_airport: str  # IATA code
    arrival_airport: str
    departure_time: datetime
    arrival_time: datetime
    airline_code: Optional[str] = None
    brand_domain: Optional[str] = None
    confirmation_code: str = ""
    passenger: Optional[str] = None
    travel_class: Optional[str] = None
    departure_city: Optional[str] = None
    arrival_city: Optional[str] = None
    departure_country: Optional[str] = None
    departure_country_code: Optional[str] = None
    departure_terminal: Optional[str] = None
    departure_gate: Optional[str] = None
    check_in_desk: Optional[str] = None
    seat: Optional[str] = None
    aircraft: Optional[str] = None
    aircraft_registration: Optional[str] = None
    arrival_country: Optional[str] = None
    arrival_country_code: Optional[str] = None
    arrival_terminal: Optional[str] = None
    etkt: Optional[str] = None
    baggage: List[BaggageItem] = field(default_factory=list)
    fare: Optional[TravelFare] = None
    booking_source: Optional[BookingSource] = None


@dataclass
class TrainData:
    departure_station: str
    arrival_station: str
    departure_time: datetime
    arrival_time: datetime
    service_provider: Optional[str] = None  # operator, not the selling agency
    brand_domain: Optional[str] = None
    train_number: Optional[str] = None
    passenger: Optional[str] = None
    travel_class: Optional[str] = None
    departure_country: Optional[str] = None
    departure_country_code: Optional[str] = None
    departure_gate: Optional[str] = None
    seat: Optional[str] = None
    arrival_country: Optional[str] = None
    arrival_country_code: Optional[str] = None
    fare: Optional[TravelFare] = None
    booking_source: Optional[BookingSource] = None


@dataclass
class CarData:
    origin: str
    pickup_time: datetime
    destination: Optional[str] = None
    service_provider: Optional[str] = None
    brand_domain: Optional[str] = None
    service_type: Optional[str] = None
    departure_country: Optional[str] = None
    departure_country_code: Optional[str] = None
    arrival_country: Optional[str] = None
    arrival_country_code: Optional[str] = None
    driver: Optional[str] = None
    passenger: Optional[str] = None
    car_plate: Optional[str] = None
    car_color: Optional[str] = None
    car_brand: Optional[str] = None
    fare: Optional[TravelFare] = None
    booking_source: Optional[BookingSource] = None


@dataclass
class HotelData:
    hotel_name: str
    address: str = ""
    brand_domain: Optional[str] = None
    check_in_time: Optional[datetime] = None
    check_out_time: Optional[datetime] = None
    booking_number: Optional[str] = None
    confirmation_number: Optional[str] = None
    guest_name: Optional[str] = None
    room_type: Optional[str] = None
    number_of_nights: str = ""
    is_breakfast_included: Optional[bool] = None
    extra_included: Optional[str] = None
    fare: Optional[TravelFare] = None
    booking_source: Optional[BookingSource] = None


@dataclass
class OtherData:
    title: str
    description: Optional[str] = None
    location: Optional[str] = None
    time: Optional[str] = None  # free text, e.g. "doors open 19:00"
    fare: Optional[TravelFare] = None
    booking_source: Optional[BookingSource] = None


EventData = Union[FlightData, TrainData, CarData, HotelData, OtherData]

# Wire key -> payload class. Key order is the decoder's lookup order.
VARIANTS = {
    "flight": FlightData,
    "train": TrainData,
    "car": CarData,
    "hotel": HotelData,
    "other": OtherData,
}

_CLASS_TO_VARIANT = {cls: key for key, cls in VARIANTS.items()}


def variant_of(data: EventData) -> str:
    return _CLASS_TO_VARIANT[type(data)]


@dataclass
class TranslatedContent:
    data: EventData
    labels: Dict[str, str] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# Events and trips
# ---------------------------------------------------------------------------

@dataclass
class TravelEvent:
    id: str
    type: EventType
    start_time: datetime
    data: EventData
    end_time: Optional[datetime] = None
    origin_coordinates: Optional[GeoCoordinates] = None
    destination_coordinates: Optional[GeoCoordinates] = None
    detected_language: Optional[str] = None
    booking_source: Optional[BookingSource] = None
    # Carried through import/export untouched; nothing here renders them
    translations: Optional[Dict[str, TranslatedContent]] = None  # language code -> content
    attachments: Optional[List[Attachment]] = None
    weather: Optional[WeatherInfo] = None

    def __post_init__(self):
        for value in (self.start_time, self.end_time):
            if value is not None and value.tzinfo is None:
                raise ValueError(f"Event {self.id}: times must be timezone-aware")
        if self.end_time is not None and self.end_time < self.start_time:
            raise ValueError(f"Event {self.id}: end_time precedes start_time")
        if variant_of(self.data) != self.type.variant:
            raise ValueError(
                f"Event {self.id}: type {self.type.value} does not match "
                f"{variant_of(self.data)!r} data"
            )

    @property
    def variant(self) -> str:
        return variant_of(self.data)

    @property
    def display_title(self) -> str:
        d = self.data
        if isinstance(d, FlightData):
            if d.airline_code:
                return f"{d.airline_code}{d.flight_number}"
            return f"{d.airline} {d.flight_number}"
        if isinstance(d, HotelData):
            return d.hotel_name
        if isinstance(d, TrainData):
            return f"{d.service_provider or 'Train'} {d.train_number or ''}".strip()
        if isinstance(d, CarData):
            return d.car_brand or "Ride"
        return d.title

    @property
    def display_location(self) -> str:
        d = self.data
        if isinstance(d, FlightData):
            start = d.departure_city or d.departure_airport
            end = d.arrival_city or d.arrival_airport
            return f"{start} to {end}"
        if isinstance(d, HotelData):
            return d.address
        if isinstance(d, TrainData):
            return f"{d.departure_station} to {d.arrival_station}"
        if isinstance(d, CarData):
            if d.destination:
                return f"{d.origin} to {d.destination}"
            return d.origin
        return d.location or ""


@dataclass
class Trip:
    id: str
    name: str
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    events: List[TravelEvent] = field(default_factory=list)

    def sort_events(self):
        self.events.sort(key=lambda e: e.start_time)

    def update_dates_from_events(self):
        """Set start/end to the span covered by the trip's events."""
        if not self.events:
            return
        self.start_date = min(e.start_time for e in self.events)
        self.end_date = max(e.end_time or e.start_time for e in self.events)


# ---------------------------------------------------------------------------
# Derived view-models (recomputed on every render, never persisted)
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class EventItem:
    kind: ClassVar[str] = "event"
    event: TravelEvent

    @property
    def sort_key(self) -> datetime:
        return self.event.start_time

    @property
    def is_hotel_check_in(self) -> bool:
        return self.event.type == EventType.HOTEL


@dataclass(frozen=True)
class Connection:
    kind: ClassVar[str] = "connection"
    duration_label: str  # "2h 30m" / "45m"
    location_label: str  # "at NRT" / "Layover"
    sort_key: datetime


@dataclass(frozen=True)
class Breakfast:
    kind: ClassVar[str] = "breakfast"
    hotel_name: str
    sort_key: datetime


@dataclass(frozen=True)
class Staying:
    kind: ClassVar[str] = "staying"
    hotel_name: str
    sort_key: datetime


@dataclass(frozen=True)
class CheckoutHint:
    kind: ClassVar[str] = "checkout"
    hotel_name: str
    sort_key: datetime


TimelineItem = Union[EventItem, Connection, Breakfast, Staying, CheckoutHint]


@dataclass
class DaySchedule:
    day: date
    items: List[TimelineItem] = field(default_factory=list)


@dataclass(frozen=True)
class RoutedPolyline:
    event_id: str
    event_type: EventType
    points: Tuple[Tuple[float, float], ...]  # (lat, lng), origin first
    color: str
    offset_factor: float = 0.0  # 0.0 for straight routes

    @property
    def is_curved(self) -> bool:
        return len(self.points) > 2
