"""
Tests for the climate data adapters.

Tests:
- FetchResult
- EONET parsing and magnitudes
- NASA provider caching and failure handling
- Snapshot merge semantics
"""

import asyncio
import urllib.error

import pytest

from ..climate_data import (
    FetchResult,
    NasaClimateDataProvider,
    StaticClimateDataProvider,
    event_magnitude,
    merge_results,
    parse_eonet_events,
    refresh_snapshot,
    refresh_snapshot_async,
)
from ..engine_core.errors import TransientFetchError
from ..engine_core.state import EnvironmentalSnapshot, SeaLevelReading, TemperatureReading
from .conftest import FixedRandom

EONET_PAYLOAD = {
    "events": [
        {
            "title": "Tropical Cyclone Alpha",
            "categories": [{"id": "severeStorms", "title": "Severe Storms"}],
            "geometry": [{"date": "2025-01-01T00:00:00Z"}, {"date": "2025-01-03T00:00:00Z"}],
        },
        {
            "title": "Iceberg B-22",
            "categories": [{"id": "seaLakeIce", "title": "Sea and Lake Ice"}],
            "geometry": [],
        },
        {
            "categories": [{"id": "floods", "title": "Floods"}],
        },
    ]
}


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


class TestFetchResult:
    def test_ok(self):
        result = FetchResult.ok(3)
        assert result.is_ok
        assert result.unwrap_or(0) == 3

    def test_failure_from_string(self):
        result = FetchResult.failure("offline")
        assert not result.is_ok
        assert isinstance(result.error, TransientFetchError)
        assert result.unwrap_or(0) == 0


class TestEonetParsing:
    def test_magnitudes(self):
        assert event_magnitude({"categories": [{"id": "floods"}]}) == pytest.approx(0.9)
        assert event_magnitude({"categories": [{"id": "severeStorms"}]}) == pytest.approx(0.8)
        assert event_magnitude({"categories": [{"id": "seaLakeIce"}]}) == 0.5
        assert event_magnitude({}) == 0.5

    def test_parse(self):
        events = parse_eonet_events(EONET_PAYLOAD)

        assert [e.title for e in events] == ["Tropical Cyclone Alpha", "Iceberg B-22", "Untitled Event"]
        assert events[0].type == "Severe Storms"
        assert events[0].date == "2025-01-03T00:00:00Z"
        assert events[2].magnitude == pytest.approx(0.9)

    def test_missing_events_list(self):
        with pytest.raises(ValueError):
            parse_eonet_events({"error": "down"})


class TestNasaProvider:
    def test_events_are_cached(self):
        calls = []

        def fetch_json(url, timeout):
            calls.append(url)
            return EONET_PAYLOAD

        clock = FakeClock()
        provider = NasaClimateDataProvider(rng=FixedRandom(0.5), fetch_json=fetch_json, clock=clock)

        assert provider.fetch_recent_events(5).is_ok
        assert provider.fetch_recent_events(5).is_ok
        assert len(calls) == 1
        assert "limit=5" in calls[0]

        clock.now = provider.cache_seconds
        provider.fetch_recent_events(5)
        assert len(calls) == 2

    def test_network_failure_is_a_result(self):
        def fetch_json(url, timeout):
            raise urllib.error.URLError("no route to host")

        result = NasaClimateDataProvider(fetch_json=fetch_json).fetch_recent_events()

        assert not result.is_ok
        assert isinstance(result.error, TransientFetchError)

    def test_modelled_readings(self):
        provider = NasaClimateDataProvider(rng=FixedRandom(0.5))

        sea_level = provider.fetch_sea_level().value
        assert sea_level.trend == 3.4
        assert sea_level.current_rise > 0.08
        assert provider.fetch_temperature().value.anomaly == 1.1
        assert provider.fetch_co2().value.level == 421.0


class TestMergeResults:
    def test_failed_parts_keep_last_known_values(self, state):
        state.environmental_snapshot = EnvironmentalSnapshot(
            temperature=TemperatureReading(anomaly=1.0, trend=0.02),
        )
        results = {
            "sea_level": FetchResult.ok(SeaLevelReading(current_rise=0.1, trend=3.0)),
            "temperature": FetchResult.failure("timeout"),
        }

        report = merge_results(state, results)

        snapshot = state.environmental_snapshot
        assert report.updated == ["sea_level"]
        assert "temperature" in report.failed
        assert snapshot.sea_level.current_rise == 0.1
        assert snapshot.temperature.anomaly == 1.0
        assert snapshot.last_updated is not None

    def test_nothing_fetched_leaves_state_alone(self, state):
        report = merge_results(state, {"co2": FetchResult.failure("offline")})
        assert not report.any_updated
        assert state.environmental_snapshot is None

    def test_refresh_from_static_provider(self, state):
        report = refresh_snapshot(state, StaticClimateDataProvider())

        assert sorted(report.updated) == ["co2", "recent_events", "sea_level", "temperature"]
        assert len(state.environmental_snapshot.recent_events) == 2

    def test_raising_provider_is_contained(self, state):
        class BrokenCo2(StaticClimateDataProvider):
            def fetch_co2(self):
                raise RuntimeError("sensor offline")

        report = refresh_snapshot(state, BrokenCo2())

        assert "co2" in report.failed
        assert state.environmental_snapshot.co2 is None
        assert state.environmental_snapshot.sea_level is not None

    def test_async_refresh(self, state):
        report = asyncio.run(refresh_snapshot_async(state, StaticClimateDataProvider(), limit=1))

        assert len(report.updated) == 4
        assert len(state.environmental_snapshot.recent_events) == 1
