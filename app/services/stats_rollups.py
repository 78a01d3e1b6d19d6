"""
Derived dashboard roll-ups and canonical orderings for stats payloads.

Shared by the server-side aggregation and the client-side fold so both
produce identical structures from identical inputs.
"""

from typing import Dict, List

from app.enums import AppCategory, CATEGORY_ORDER
from app.schemas.stats_schemas import (
    ActivityProfileRow,
    CategorySlice,
    DailyAppTotal,
    HourlyAppEntry,
    StatsSummary,
    TimelineSegment,
)

TOP_APPS_LIMIT = 10
MS_PER_MINUTE = 60 * 1000


def sort_segments(segments: List[TimelineSegment]) -> List[TimelineSegment]:
    return sorted(segments, key=lambda s: (s.start_time, s.end_time, s.device_id))


def sort_hourly_entries(entries: List[HourlyAppEntry]) -> List[HourlyAppEntry]:
    return sorted(entries, key=lambda e: (-e.total_time_ms, e.app_id))


def sort_daily(totals: List[DailyAppTotal]) -> List[DailyAppTotal]:
    return sorted(totals, key=lambda d: (-d.total_time_ms, d.app_id))


def build_rollups(
    hourly: Dict[int, List[HourlyAppEntry]],
    daily: List[DailyAppTotal],
    categories: Dict[str, AppCategory]
) -> Dict:
    """Summary, category distribution, activity profile and top apps."""

    def category_of(app_id: str) -> AppCategory:
        return AppCategory(categories.get(app_id, AppCategory.UNCATEGORIZED))

    distribution = {category: 0 for category in CATEGORY_ORDER}
    for item in daily:
        distribution[category_of(item.app_id)] += item.total_time_ms

    profile = []
    for hour in range(24):
        minutes = {category: 0 for category in CATEGORY_ORDER}
        for entry in hourly.get(hour, []):
            minutes[category_of(entry.app_id)] += entry.total_time_ms
        profile.append(ActivityProfileRow(
            hour=hour,
            label=f"{hour:02d}:00",
            **{category.value: round(ms / MS_PER_MINUTE, 3) for category, ms in minutes.items()}
        ))

    total_ms = sum(item.total_time_ms for item in daily)
    productive_ms = distribution[AppCategory.PRODUCTIVE]
    score = round(productive_ms / total_ms * 100) if total_ms > 0 else 0

    ordered_daily = sort_daily(daily)
    return {
        "summary": StatsSummary(total_time_ms=total_ms, productive_ms=productive_ms, productivity_score=score),
        "category_distribution": [
            CategorySlice(name=category, value=distribution[category]) for category in CATEGORY_ORDER
        ],
        "activity_profile": profile,
        "top_apps": ordered_daily[:TOP_APPS_LIMIT],
    }
