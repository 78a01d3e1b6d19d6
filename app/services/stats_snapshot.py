"""
Incremental stats sync: folding a `since` fetch into a cached snapshot.

A consumer keeps the last StatsData it saw together with the local date it
was fetched on. The next fetch passes the snapshot's cursor as `since` and
its app ids as known; the (smaller) result is folded in here. A snapshot
from an earlier local date is discarded and a full fetch is made instead,
because hour buckets and daily totals are date scoped.
"""

from dataclasses import dataclass
from datetime import date
from typing import Dict, List

from app.schemas.stats_schemas import DailyAppTotal, HourlyAppEntry, StatsData
from app.services.stats_rollups import build_rollups, sort_daily, sort_hourly_entries, sort_segments


@dataclass
class StatsSnapshot:
    data: StatsData
    fetched_on: date


def should_discard(fetched_on: date, today: date) -> bool:
    return today != fetched_on


def merge_hourly(
    current: Dict[int, List[HourlyAppEntry]],
    incoming: Dict[int, List[HourlyAppEntry]]
) -> Dict[int, List[HourlyAppEntry]]:
    merged = {}
    for hour in sorted(set(current) | set(incoming)):
        by_app = {entry.app_id: entry.model_copy(deep=True) for entry in current.get(hour, [])}
        for new_entry in incoming.get(hour, []):
            existing = by_app.get(new_entry.app_id)
            if existing is None:
                by_app[new_entry.app_id] = new_entry.model_copy(deep=True)
                continue
            existing.total_time_ms += new_entry.total_time_ms
            existing.timelines = sort_segments(
                existing.timelines + [segment.model_copy() for segment in new_entry.timelines]
            )
        merged[hour] = sort_hourly_entries(list(by_app.values()))
    return merged


def merge_daily(current: List[DailyAppTotal], incoming: List[DailyAppTotal]) -> List[DailyAppTotal]:
    totals = {item.app_id: item.total_time_ms for item in current}
    for item in incoming:
        totals[item.app_id] = totals.get(item.app_id, 0) + item.total_time_ms
    return sort_daily([DailyAppTotal(app_id=app_id, total_time_ms=ms) for app_id, ms in totals.items()])


def fold(cached: StatsData, incoming: StatsData) -> StatsData:
    """Apply an incremental result to a cached snapshot of the same date range and timezone."""
    if (cached.from_date, cached.to_date, cached.time_zone) != (incoming.from_date, incoming.to_date, incoming.time_zone):
        raise ValueError("Cannot fold stats for a different date range or timezone")

    # incoming metadata wins (category may have changed)
    apps = {**cached.apps, **incoming.apps}
    hourly = merge_hourly(cached.hourly, incoming.hourly)
    daily = merge_daily(cached.daily, incoming.daily)

    cursors = [c for c in (cached.cursor, incoming.cursor) if c is not None]
    categories = {app_id: meta.category for app_id, meta in apps.items()}

    return StatsData(
        from_date=incoming.from_date,
        to_date=incoming.to_date,
        time_zone=incoming.time_zone,
        apps=apps,
        hourly=hourly,
        daily=daily,
        cursor=max(cursors) if cursors else None,
        **build_rollups(hourly, daily, categories)
    )
