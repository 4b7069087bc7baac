"""Configuration: .env loading, paths, constants."""

import os
from pathlib import Path

from dateutil import tz
from dotenv import load_dotenv

# Project root = parent of trip_itinerary/
PROJECT_ROOT = Path(__file__).resolve().parent.parent
load_dotenv(PROJECT_ROOT / ".env")

# --- LLM API ---
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY", "")
GOOGLE_API_KEY = os.getenv("GOOGLE_API_KEY", "")

# Default to Gemini via OpenAI-compatible endpoint; fall back to OpenAI if no Google key
LLM_BACKEND = os.getenv("LLM_BACKEND", "gemini" if GOOGLE_API_KEY else "openai")
LLM_MODEL_PRIMARY = os.getenv("LLM_MODEL_PRIMARY", "gemini-2.5-flash" if LLM_BACKEND == "gemini" else "gpt-4o-mini")
LLM_MODEL_FALLBACK = os.getenv("LLM_MODEL_FALLBACK", "gemini-2.0-flash" if LLM_BACKEND == "gemini" else "gpt-4o")

# --- Paths ---
DATA_DIR = Path(os.getenv("TRIP_DATA_DIR", str(PROJECT_ROOT / "data")))
TRIPS_PATH = DATA_DIR / "trips.json"
EXTRACTION_CACHE_PATH = DATA_DIR / "extraction_cache.json"
OUTPUT_DIR = PROJECT_ROOT / "output"

# --- Display ---
# Calendar days of the schedule are cut in this zone
DISPLAY_TIMEZONE = tz.gettz(os.getenv("TRIP_TIMEZONE", "UTC")) or tz.UTC

# --- Assembly ---
LAYOVER_MAX_HOURS = 24  # connections at or above this are not shown
ROUTE_SAME_POINT_TOLERANCE = 0.001  # degrees; closer endpoints are not a route
ROUTE_KEY_PRECISION = 4  # decimals used when matching repeated routes
ROUTE_CURVE_OFFSET = 0.2  # control point offset per duplicate, as a share of chord length
ROUTE_CURVE_SAMPLES = 21

# --- Geocoding (Nominatim, 1 request per second) ---
GEOCODER_URL = os.getenv("GEOCODER_URL", "https://nominatim.openstreetmap.org/search")
GEOCODER_USER_AGENT = os.getenv("GEOCODER_USER_AGENT", "trip-itinerary/0.1")
GEOCODER_DELAY_SECONDS = 1.1
GEOCODER_TIMEOUT_SECONDS = 10
GEOCODER_MAX_FAILURES = 3  # consecutive failures before the rest are skipped

# --- Extraction ---
MAX_CONTENT_CHARS = 12000  # truncate document text sent to LLM

# --- Logging ---
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
