"""
Climate Data - External environmental trend data behind a Result-returning interface.
"""

from .result import FetchResult
from .providers import (
    ClimateDataProvider,
    NasaClimateDataProvider,
    StaticClimateDataProvider,
    event_magnitude,
    parse_eonet_events,
)
from .refresher import RefreshReport, merge_results, refresh_snapshot, refresh_snapshot_async

__all__ = [
    "FetchResult",
    "ClimateDataProvider",
    "NasaClimateDataProvider",
    "StaticClimateDataProvider",
    "event_magnitude",
    "parse_eonet_events",
    "RefreshReport",
    "merge_results",
    "refresh_snapshot",
    "refresh_snapshot_async",
]
