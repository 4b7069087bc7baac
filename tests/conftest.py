import itertools

import pytest

from trip_itinerary.models import (
    CarData,
    EventType,
    FlightData,
    GeoCoordinates,
    HotelData,
    OtherData,
    TrainData,
    TravelEvent,
)


def _coords(point):
    if point is None:
        return None
    return GeoCoordinates(lat=point[0], lng=point[1])


@pytest.fixture
def ids():
    counter = itertools.count(1)
    return lambda prefix: f"{prefix}-{next(counter)}"


@pytest.fixture
def make_flight(ids):
    def factory(start, end, departure_airport="HND", arrival_airport="NRT",
                origin=None, destination=None, event_id=None, **data):
        return TravelEvent(
            id=event_id or ids("flight"),
            type=EventType.FLIGHT,
            start_time=start,
            end_time=end,
            origin_coordinates=_coords(origin),
            destination_coordinates=_coords(destination),
            data=FlightData(
                airline=data.pop("airline", "Japan Airlines"),
                flight_number=data.pop("flight_number", "5"),
                departure_airport=departure_airport,
                arrival_airport=arrival_airport,
                departure_time=start,
                arrival_time=end if end is not None else start,
                **data,
            ),
        )
    return factory


@pytest.fixture
def make_hotel(ids):
    def factory(check_in, check_out, name="Park Hyatt", breakfast=True, event_id=None, **data):
        return TravelEvent(
            id=event_id or ids("hotel"),
            type=EventType.HOTEL,
            start_time=check_in,
            end_time=check_out,
            data=HotelData(
                hotel_name=name,
                check_in_time=check_in,
                check_out_time=check_out,
                is_breakfast_included=breakfast,
                **data,
            ),
        )
    return factory


@pytest.fixture
def make_train(ids):
    def factory(start, end, departure_station="Tokyo", arrival_station="Kyoto",
                origin=None, destination=None, event_id=None):
        return TravelEvent(
            id=event_id or ids("train"),
            type=EventType.TRAIN,
            start_time=start,
            end_time=end,
            origin_coordinates=_coords(origin),
            destination_coordinates=_coords(destination),
            data=TrainData(
                departure_station=departure_station,
                arrival_station=arrival_station,
                departure_time=start,
                arrival_time=end,
            ),
        )
    return factory


@pytest.fixture
def make_car(ids):
    def factory(start, origin=(1.0, 1.0), destination=(2.0, 2.0), event_id=None,
                pickup="Hotel lobby", dropoff="Airport"):
        return TravelEvent(
            id=event_id or ids("car"),
            type=EventType.CAR,
            start_time=start,
            origin_coordinates=_coords(origin),
            destination_coordinates=_coords(destination),
            data=CarData(origin=pickup, destination=dropoff, pickup_time=start),
        )
    return factory


@pytest.fixture
def make_other(ids):
    def factory(start, event_type=EventType.DINING, title="Sushi dinner", location=None, event_id=None):
        return TravelEvent(
            id=event_id or ids("other"),
            type=event_type,
            start_time=start,
            data=OtherData(title=title, location=location),
        )
    return factory


@pytest.fixture
def raw_flight():
    """A wire-format flight as the AI parsing service returns it."""
    return {
        "id": "6f1c2d1e-0000-4000-8000-000000000001",
        "type": "FLIGHT",
        "startTime": "2026-01-20T14:30:00+09:00",
        "endTime": "2026-01-20T15:45:00+09:00",
        "detectedLanguage": "ja",
        "data": {
            "flight": {
                "airline": "Japan Airlines",
                "airlineCode": "JL",
                "flightNumber": "5",
                "departureAirport": "NRT",
                "arrivalAirport": "ITM",
                "departureTime": "2026-01-20T14:30:00+09:00",
                "arrivalTime": "2026-01-20T15:45:00+09:00",
                "seat": "23A",
                "baggage": [{"type": "Checked", "weightKg": 23}],
                "fare": {"currency": "JPY", "amount": "18500"},
                "bookingSource": {"name": "Expedia", "domain": "expedia.com", "isOTA": True},
            }
        },
    }


@pytest.fixture
def raw_hotel():
    return {
        "type": "HOTEL",
        "startTime": "2026-01-20T15:00:00+09:00",
        "endTime": "2026-01-23T11:00:00+09:00",
        "data": {
            "hotel": {
                "hotelName": "Hotel Granvia Osaka",
                "address": "3-1-1 Umeda, Osaka",
                "isBreakfastIncluded": True,
            }
        },
    }
