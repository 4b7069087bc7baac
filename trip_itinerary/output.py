"""Output formatters: human-readable schedule, JSON, GeoJSON and a Leaflet map."""

import json
from datetime import datetime
from html import escape
from pathlib import Path
from typing import Any, Dict, List, Optional

from trip_itinerary.config import DISPLAY_TIMEZONE
from trip_itinerary.models import (
    Breakfast,
    CheckoutHint,
    Connection,
    DaySchedule,
    EventItem,
    EventType,
    RoutedPolyline,
    Staying,
    TimelineItem,
)
from trip_itinerary.normalize.date_parser import format_timestamp

_ICONS = {
    EventType.FLIGHT: "✈",
    EventType.HOTEL: "🏨",
    EventType.TRAIN: "🚆",
    EventType.CAR: "🚗",
    EventType.TRANSPORT: "🚶",
    EventType.ACTIVITY: "🎫",
    EventType.DINING: "🍴",
    EventType.OTHER: "•",
}


def _clock(dt: datetime, tz) -> str:
    return dt.astimezone(tz).strftime("%H:%M")


def item_label(item: TimelineItem) -> str:
    if isinstance(item, EventItem):
        ev = item.event
        location = ev.display_location
        label = f"{ev.type.display_name}: {ev.display_title}"
        return f"{label} ({location})" if location else label
    if isinstance(item, Connection):
        if item.location_label == "Layover":
            return f"{item.duration_label} layover"
        return f"{item.duration_label} connection {item.location_label}"
    if isinstance(item, Breakfast):
        return f"Breakfast at {item.hotel_name}"
    if isinstance(item, CheckoutHint):
        return f"Check out of {item.hotel_name}"
    if isinstance(item, Staying):
        return f"Staying at {item.hotel_name}"
    return str(item)


# ---------------------------------------------------------------------------
# Human-readable schedule
# ---------------------------------------------------------------------------

def format_schedule(schedules: List[DaySchedule], title: str = "", tz=None) -> str:
    """Produce a day-by-day itinerary as plain text."""
    tz = tz or DISPLAY_TIMEZONE
    lines = []
    lines.append("=" * 72)
    lines.append(f"  {title or 'ITINERARY'} — Day by Day")
    lines.append("=" * 72)

    for schedule in schedules:
        lines.append(f"\n--- {schedule.day.strftime('%a %d %b %Y')} {'─' * 50}")
        for item in schedule.items:
            if isinstance(item, EventItem):
                icon = _ICONS[item.event.type]
                lines.append(f"  {_clock(item.sort_key, tz)}  {icon} {item_label(item)}")
            elif isinstance(item, Connection):
                lines.append(f"         ⏱ {item_label(item)}")
            else:
                lines.append(f"         · {item_label(item)}")

    lines.append(f"\n{'=' * 72}")
    events = sum(isinstance(i, EventItem) for s in schedules for i in s.items)
    lines.append(f"  Total: {len(schedules)} days, {events} events")
    lines.append("=" * 72)
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# JSON output
# ---------------------------------------------------------------------------

def _item_to_dict(item: TimelineItem) -> Dict[str, Any]:
    out = {"kind": item.kind, "time": format_timestamp(item.sort_key), "label": item_label(item)}
    if isinstance(item, EventItem):
        out["event_id"] = item.event.id
        out["type"] = item.event.type.value
    elif isinstance(item, Connection):
        out["duration"] = item.duration_label
        out["location"] = item.location_label
    else:
        out["hotel"] = item.hotel_name
    return out


def schedules_to_dict(schedules: List[DaySchedule]) -> List[Dict[str, Any]]:
    return [
        {"day": s.day.isoformat(), "items": [_item_to_dict(i) for i in s.items]}
        for s in schedules
    ]


def schedules_to_json(schedules: List[DaySchedule], path: Path):
    """Write the day schedules as JSON."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(schedules_to_dict(schedules), indent=2, ensure_ascii=False), encoding="utf-8")


def routes_to_geojson(routes: List[RoutedPolyline]) -> Dict[str, Any]:
    """GeoJSON FeatureCollection of LineStrings ([lng, lat] order)."""
    features = []
    for r in routes:
        features.append({
            "type": "Feature",
            "geometry": {
                "type": "LineString",
                "coordinates": [[lng, lat] for lat, lng in r.points],
            },
            "properties": {
                "event_id": r.event_id,
                "type": r.event_type.value,
                "color": r.color,
                "offset_factor": r.offset_factor,
            },
        })
    return {"type": "FeatureCollection", "features": features}


# ---------------------------------------------------------------------------
# Route map HTML (Leaflet.js)
# ---------------------------------------------------------------------------

def format_route_map_html(routes: List[RoutedPolyline], path: Path, title: Optional[str] = None):
    """Write an interactive Leaflet map of the routes as a single HTML file."""
    path.parent.mkdir(parents=True, exist_ok=True)

    js_routes = [
        {"points": [list(p) for p in r.points], "color": r.color, "type": r.event_type.display_name}
        for r in routes
    ]
    routes_json = json.dumps(js_routes, ensure_ascii=False)
    title = escape(title or "Trip Map")

    html = f"""<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="UTF-8">
<meta name="viewport" content="width=device-width, initial-scale=1.0">
<title>{title}</title>
<link rel="stylesheet" href="https://unpkg.com/leaflet@1.9.4/dist/leaflet.css" />
<script src="https://unpkg.com/leaflet@1.9.4/dist/leaflet.js"></script>
<style>
  * {{ margin: 0; padding: 0; box-sizing: border-box; }}
  body {{
    font-family: "Helvetica Neue", Arial, sans-serif;
    background: #f5f5f5;
  }}
  #header {{
    background: #2c3e50;
    color: white;
    padding: 18px 24px;
    text-align: center;
  }}
  #header h1 {{
    font-size: 26px;
    font-weight: 600;
  }}
  #map {{
    width: 100%;
    height: 85vh;
    min-height: 400px;
  }}
</style>
</head>
<body>
  <div id="header"><h1>{title}</h1></div>
  <div id="map"></div>
<script>
(function() {{
  var routes = {routes_json};

  var map = L.map('map').setView([20, 0], 2);
  L.tileLayer('https://{{s}}.tile.openstreetmap.org/{{z}}/{{x}}/{{y}}.png', {{
    attribution: '&copy; OpenStreetMap contributors',
    maxZoom: 18
  }}).addTo(map);

  var lines = routes.map(function(r) {{
    var line = L.polyline(r.points, {{ color: r.color, weight: 3, opacity: 0.8 }}).bindPopup(r.type).addTo(map);
    var first = r.points[0], last = r.points[r.points.length - 1];
    [first, last].forEach(function(p) {{
      L.circleMarker(p, {{ radius: 5, fillColor: r.color, color: '#fff', weight: 1, fillOpacity: 0.9 }}).addTo(map);
    }});
    return line;
  }});

  if (lines.length > 0) {{
    map.fitBounds(L.featureGroup(lines).getBounds().pad(0.1));
  }}
}})();
</script>
</body>
</html>"""

    path.write_text(html, encoding="utf-8")
