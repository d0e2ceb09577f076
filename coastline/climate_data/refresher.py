"""
Snapshot refresh - Merges fetched climate data into a live GameState.

Only state.environmental_snapshot is touched, part by part. A failed
fetch keeps the last-known value for that part. Overlapping async
refreshes are last-completed-wins.
"""

from __future__ import annotations
import asyncio
from dataclasses import dataclass, field
import logging
from typing import Any, Callable

from ..engine_core.errors import TransientFetchError
from ..engine_core.state import EnvironmentalSnapshot, GameState
from ..persistence.serialization import now_iso
from .providers import ClimateDataProvider
from .result import FetchResult

logger = logging.getLogger(__name__)

DEFAULT_EVENT_LIMIT = 5


@dataclass
class RefreshReport:
    updated: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)

    @property
    def any_updated(self) -> bool:
        return bool(self.updated)


def _fetchers(provider: ClimateDataProvider, limit: int) -> dict[str, Callable[[], FetchResult[Any]]]:
    # Keys are EnvironmentalSnapshot attribute names
    return {
        "sea_level": provider.fetch_sea_level,
        "temperature": provider.fetch_temperature,
        "co2": provider.fetch_co2,
        "recent_events": lambda: provider.fetch_recent_events(limit),
    }


def safe_fetch(fetch: Callable[[], FetchResult[Any]]) -> FetchResult[Any]:
    """Call a provider method, turning a raised exception into a failure."""
    try:
        return fetch()
    except Exception as e:
        logger.warning("Climate data provider raised: %s", e)
        return FetchResult.failure(TransientFetchError(str(e)))


def merge_results(state: GameState, results: dict[str, FetchResult[Any]]) -> RefreshReport:
    """Apply successful results to the state's snapshot."""
    report = RefreshReport()
    snapshot = state.environmental_snapshot or EnvironmentalSnapshot()

    for part, result in results.items():
        if result.is_ok:
            setattr(snapshot, part, result.value)
            report.updated.append(part)
        else:
            report.failed[part] = str(result.error)

    if report.any_updated:
        snapshot.last_updated = now_iso()
        state.environmental_snapshot = snapshot
    if report.failed:
        logger.info("Climate refresh kept last-known values for: %s", ", ".join(report.failed))
    return report


def refresh_snapshot(
    state: GameState,
    provider: ClimateDataProvider,
    limit: int = DEFAULT_EVENT_LIMIT,
) -> RefreshReport:
    """Fetch every part synchronously and merge."""
    results = {part: safe_fetch(fetch) for part, fetch in _fetchers(provider, limit).items()}
    return merge_results(state, results)


async def refresh_snapshot_async(
    state: GameState,
    provider: ClimateDataProvider,
    limit: int = DEFAULT_EVENT_LIMIT,
) -> RefreshReport:
    """
    Fetch every part in worker threads, then merge.

    The merge happens after all fetches complete, against whatever the
    state is at that moment.
    """
    fetchers = _fetchers(provider, limit)
    values = await asyncio.gather(
        *(asyncio.to_thread(safe_fetch, fetch) for fetch in fetchers.values())
    )
    return merge_results(state, dict(zip(fetchers, values)))
