"""LLM extraction of wire-format travel events from text, images and PDFs."""

import base64
import json
import logging
import re
from typing import Any, Dict, List, Optional, Union

from openai import OpenAI, OpenAIError

from trip_itinerary.config import (
    GOOGLE_API_KEY,
    LLM_BACKEND,
    LLM_MODEL_FALLBACK,
    LLM_MODEL_PRIMARY,
    MAX_CONTENT_CHARS,
    OPENAI_API_KEY,
)
from trip_itinerary.errors import ExtractionError
from trip_itinerary.extract.content import pdf_to_text

logger = logging.getLogger(__name__)

_client: Optional[OpenAI] = None


def _get_client() -> OpenAI:
    global _client
    if _client is None:
        if LLM_BACKEND == "gemini":
            _client = OpenAI(
                api_key=GOOGLE_API_KEY,
                base_url="https://generativelanguage.googleapis.com/v1beta/openai/",
            )
        else:
            _client = OpenAI(api_key=OPENAI_API_KEY)
    return _client


EXTRACTION_PROMPT = """\
You are an itinerary parsing engine. Extract every travel event from the
provided text, image or document and return a JSON array (no markdown fences)
of event objects shaped like this:

{
  "id": "new UUID string",
  "type": "FLIGHT" | "HOTEL" | "TRAIN" | "CAR" | "TRANSPORT" | "ACTIVITY" | "DINING" | "OTHER",
  "startTime": "ISO 8601 with offset",
  "endTime": "ISO 8601 with offset or null",
  "detectedLanguage": "language code of the source or null",
  "data": { "<variant>": { ...payload... } }
}

"data" has exactly ONE key, chosen by type:
- "flight" (FLIGHT): airline, airlineCode, brandDomain, flightNumber, confirmationCode,
  passenger, travelClass, departureAirport (IATA), departureCity, departureCountry,
  departureCountryCode, departureTerminal, departureGate, checkInDesk, seat, aircraft,
  aircraftRegistration, departureTime, arrivalAirport (IATA), arrivalCity, arrivalCountry,
  arrivalCountryCode, arrivalTerminal, arrivalTime, etkt,
  baggage: [{type: "Carry-on" | "Checked", weightKg}]
- "train" (TRAIN): serviceProvider (operator), brandDomain, trainNumber, passenger,
  travelClass, departureStation, departureCountry, departureCountryCode, departureTime,
  departureGate, seat, arrivalStation, arrivalCountry, arrivalCountryCode, arrivalTime
- "car" (CAR): serviceProvider, brandDomain, origin, destination, departureCountry,
  arrivalCountry, pickupTime, driver, passenger, carPlate, carColor, carBrand, serviceType
- "hotel" (HOTEL): hotelName, brandDomain, address, checkInTime, checkOutTime,
  bookingNumber, confirmationNumber, guestName, roomType, numberOfNights,
  isBreakfastIncluded (true/false), extraIncluded
- "other" (TRANSPORT, ACTIVITY, DINING, OTHER): title, description, location, time
Every payload may also carry "fare": {currency, amount} and
"bookingSource": {name, domain, isOTA} (the selling agency, not the operator).

Rules:
- DATES & TIMEZONES: do NOT default to "Z" unless the time is explicitly UTC.
  Infer the offset from the location (Tokyo is +09:00, New York -05:00) and write
  e.g. "2026-01-20T14:30:00+09:00" (correct), not "2026-01-20T14:30:00Z" (wrong).
- Flights and trains: startTime = departure, endTime = arrival.
- Hotels: startTime = check-in, endTime = check-out.
- Car pickups, dining and single activities: startTime only.
- Omit fields you cannot find rather than guessing.
- Return ONLY the JSON array. Return [] if there are no travel events.
"""


def _parse_response(text: str) -> List[Dict[str, Any]]:
    """Parse the LLM response into a list of raw event dicts.

    Strips markdown fences and anything outside the outermost brackets.
    """
    text = text.strip()
    if text.startswith("```"):
        text = re.sub(r"^```(?:json)?\s*", "", text)
        text = re.sub(r"\s*```$", "", text)
    first, last = text.find("["), text.rfind("]")
    if first != -1 and first < last:
        text = text[first:last + 1]
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ExtractionError(f"Could not decode model response: {text[:200]!r}") from exc

    if isinstance(parsed, dict):
        parsed = parsed.get("events", [parsed])
    if not isinstance(parsed, list):
        raise ExtractionError(f"Expected a JSON array, got {type(parsed).__name__}")
    return parsed


def extract_single(user_content: Union[str, List[Dict[str, Any]]], model: Optional[str] = None) -> List[Dict[str, Any]]:
    """One model call. ``user_content`` is text or a list of content parts."""
    client = _get_client()
    model = model or LLM_MODEL_PRIMARY
    try:
        resp = client.chat.completions.create(
            model=model,
            messages=[
                {"role": "system", "content": EXTRACTION_PROMPT},
                {"role": "user", "content": user_content},
            ],
            temperature=0.0,
            max_tokens=8192,
        )
    except OpenAIError as exc:
        raise ExtractionError(f"LLM request failed ({model}): {exc}") from exc
    raw = resp.choices[0].message.content or ""
    logger.debug("Raw %s response: %s", model, raw)
    return _parse_response(raw)


def extract_with_fallback(user_content) -> List[Dict[str, Any]]:
    """Try primary model; fall back to stronger model if the answer is unusable or empty."""
    try:
        result = extract_single(user_content, model=LLM_MODEL_PRIMARY)
        if result:
            return result
        logger.info("%s found no events, retrying with %s", LLM_MODEL_PRIMARY, LLM_MODEL_FALLBACK)
    except ExtractionError as exc:
        logger.info("%s failed (%s), retrying with %s", LLM_MODEL_PRIMARY, exc, LLM_MODEL_FALLBACK)
    return extract_single(user_content, model=LLM_MODEL_FALLBACK)


# ---------------------------------------------------------------------------
# Public entry points
# ---------------------------------------------------------------------------

def extract_from_text(text: str) -> List[Dict[str, Any]]:
    if not text or not text.strip():
        raise ExtractionError("No text to parse")
    return extract_with_fallback(f"Content:\n{text[:MAX_CONTENT_CHARS]}")


def extract_from_image(data: bytes, mime_type: str = "image/jpeg") -> List[Dict[str, Any]]:
    encoded = base64.b64encode(data).decode("ascii")
    return extract_with_fallback([
        {"type": "text", "text": "This is an image of a travel itinerary."},
        {"type": "image_url", "image_url": {"url": f"data:{mime_type};base64,{encoded}"}},
    ])


def extract_from_pdf(data: bytes) -> List[Dict[str, Any]]:
    text = pdf_to_text(data)
    if not text:
        raise ExtractionError("PDF has no extractable text")
    return extract_from_text(f"This is a PDF document of a travel itinerary.\n{text}")
