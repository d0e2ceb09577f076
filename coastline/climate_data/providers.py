"""
Climate data providers.

Implementations:
- NasaClimateDataProvider: recent events from NASA EONET, modelled
  sea level / temperature / CO2 readings (production)
- StaticClimateDataProvider: fixed reference values (offline, testing)

Providers never raise: every fetch returns a FetchResult.
"""

from __future__ import annotations
from datetime import datetime, timezone
import json
import logging
import random
import time
from typing import Any, Callable, Protocol, runtime_checkable
import urllib.error
import urllib.parse
import urllib.request

from ..engine_core.errors import TransientFetchError
from ..engine_core.state import ClimateEvent, CO2Reading, SeaLevelReading, TemperatureReading
from .result import FetchResult

logger = logging.getLogger(__name__)

EONET_EVENTS_URL = "https://eonet.gsfc.nasa.gov/api/v3/events"
EONET_CATEGORIES = "severeStorms,floods,seaLakeIce,wildfires"

CACHE_SECONDS = 30 * 60

# Magnitude added to the 0.5 base by EONET category id
CATEGORY_MAGNITUDE = {
    "severeStorms": 0.3,
    "floods": 0.4,
    "wildfires": 0.2,
}
MIN_EVENT_MAGNITUDE = 0.3

# Reference values
SATELLITE_BASE_YEAR = 1993
BASE_SEA_LEVEL_RISE = 0.08  # metres at the satellite baseline
SEA_LEVEL_TREND = 3.4  # mm per year
TEMPERATURE_ANOMALY = 1.1
TEMPERATURE_TREND = 0.02
CO2_LEVEL = 420.0
CO2_TREND = 2.5


@runtime_checkable
class ClimateDataProvider(Protocol):
    """Source of environmental trend data."""

    def fetch_sea_level(self) -> FetchResult[SeaLevelReading]:
        ...

    def fetch_temperature(self) -> FetchResult[TemperatureReading]:
        ...

    def fetch_co2(self) -> FetchResult[CO2Reading]:
        ...

    def fetch_recent_events(self, limit: int = 5) -> FetchResult[list[ClimateEvent]]:
        ...


def event_magnitude(event: dict[str, Any]) -> float:
    """Severity in [0.1, 1.0] from the event's first category."""
    magnitude = 0.5
    categories = event.get("categories") or []
    if categories and isinstance(categories[0], dict):
        magnitude += CATEGORY_MAGNITUDE.get(categories[0].get("id"), 0.0)
    return min(1.0, max(0.1, magnitude))


def parse_eonet_events(payload: Any) -> list[ClimateEvent]:
    """Convert an EONET events response into ClimateEvents."""
    if not isinstance(payload, dict) or not isinstance(payload.get("events"), list):
        raise ValueError("EONET response has no events list")

    events = []
    for raw in payload["events"]:
        if not isinstance(raw, dict):
            continue
        geometry = raw.get("geometry") or []
        latest = geometry[-1] if geometry and isinstance(geometry[-1], dict) else {}
        categories = raw.get("categories") or []
        category = categories[0] if categories and isinstance(categories[0], dict) else {}

        event = ClimateEvent(
            title=raw.get("title") or "Untitled Event",
            type=category.get("title") or "Unknown",
            magnitude=event_magnitude(raw),
            date=latest.get("date") or "",
        )
        if event.magnitude > MIN_EVENT_MAGNITUDE:
            events.append(event)
    return events


def http_get_json(url: str, timeout: float) -> Any:
    req = urllib.request.Request(url, headers={"Accept": "application/json"})
    with urllib.request.urlopen(req, timeout=timeout) as resp:
        return json.loads(resp.read().decode("utf-8"))


class NasaClimateDataProvider:
    """
    Live provider.

    Events come from EONET and are cached in memory. Sea level,
    temperature and CO2 are modelled from published trends with a
    small jitter drawn from the injected rng.
    """

    def __init__(
        self,
        rng: random.Random | None = None,
        timeout: float = 10.0,
        cache_seconds: float = CACHE_SECONDS,
        fetch_json: Callable[[str, float], Any] = http_get_json,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.rng = rng or random.Random()
        self.timeout = timeout
        self.cache_seconds = cache_seconds
        self.fetch_json = fetch_json
        self.clock = clock
        self._cache: dict[str, tuple[float, Any]] = {}

    # -------------------------------------------------------------------------
    # Cache
    # -------------------------------------------------------------------------

    def _cached(self, key: str) -> Any:
        entry = self._cache.get(key)
        if entry is None:
            return None
        stored_at, value = entry
        if self.clock() - stored_at >= self.cache_seconds:
            del self._cache[key]
            return None
        return value

    def _store(self, key: str, value: Any) -> None:
        self._cache[key] = (self.clock(), value)

    # -------------------------------------------------------------------------
    # Fetches
    # -------------------------------------------------------------------------

    def fetch_recent_events(self, limit: int = 5) -> FetchResult[list[ClimateEvent]]:
        key = f"climate_events_{limit}"
        cached = self._cached(key)
        if cached is not None:
            return FetchResult.ok(list(cached))

        query = urllib.parse.urlencode({"limit": limit, "days": 30, "category": EONET_CATEGORIES})
        url = f"{EONET_EVENTS_URL}?{query}"
        try:
            events = parse_eonet_events(self.fetch_json(url, self.timeout))
        except (urllib.error.URLError, OSError, ValueError) as e:
            logger.warning("Could not load EONET events: %s", e)
            return FetchResult.failure(TransientFetchError(f"EONET unavailable: {e}"))

        self._store(key, events)
        logger.info("Loaded %d climate events", len(events))
        return FetchResult.ok(list(events))

    def fetch_sea_level(self) -> FetchResult[SeaLevelReading]:
        cached = self._cached("sea_level")
        if cached is not None:
            return FetchResult.ok(cached)

        years = datetime.now(timezone.utc).year - SATELLITE_BASE_YEAR
        trend = SEA_LEVEL_TREND + (self.rng.random() - 0.5) * 0.2
        reading = SeaLevelReading(
            current_rise=max(BASE_SEA_LEVEL_RISE, BASE_SEA_LEVEL_RISE + years * trend / 1000),
            trend=trend,
            source="NASA Jason-3 Satellite Altimetry",
        )
        self._store("sea_level", reading)
        return FetchResult.ok(reading)

    def fetch_temperature(self) -> FetchResult[TemperatureReading]:
        return FetchResult.ok(TemperatureReading(
            anomaly=TEMPERATURE_ANOMALY + (self.rng.random() - 0.5) * 0.1,
            trend=TEMPERATURE_TREND,
        ))

    def fetch_co2(self) -> FetchResult[CO2Reading]:
        return FetchResult.ok(CO2Reading(
            level=CO2_LEVEL + self.rng.random() * 2,
            trend=CO2_TREND,
        ))


class StaticClimateDataProvider:
    """Fixed reference values. Never fails, never touches the network."""

    def __init__(self, events: list[ClimateEvent] | None = None):
        self.events = events if events is not None else [
            ClimateEvent(
                title="Sea Level Rise - Global Trend",
                type="Sea Level",
                magnitude=0.8,
            ),
            ClimateEvent(
                title="Extreme Weather Events",
                type="Severe Storms",
                magnitude=0.6,
            ),
        ]

    def fetch_sea_level(self) -> FetchResult[SeaLevelReading]:
        return FetchResult.ok(SeaLevelReading(
            current_rise=BASE_SEA_LEVEL_RISE,
            trend=SEA_LEVEL_TREND,
            source="Reference data",
        ))

    def fetch_temperature(self) -> FetchResult[TemperatureReading]:
        return FetchResult.ok(TemperatureReading(anomaly=TEMPERATURE_ANOMALY, trend=TEMPERATURE_TREND))

    def fetch_co2(self) -> FetchResult[CO2Reading]:
        return FetchResult.ok(CO2Reading(level=CO2_LEVEL, trend=CO2_TREND))

    def fetch_recent_events(self, limit: int = 5) -> FetchResult[list[ClimateEvent]]:
        return FetchResult.ok(list(self.events[:limit]))
