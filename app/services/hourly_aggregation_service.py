"""
Hourly Aggregation Service
Rebuilds per-hour, per-app usage buckets and per-app daily totals from the
stored timelines, in any IANA timezone.

Timelines are walked in sub-segments that end at the next *local* hour
boundary, found from the instant's local minute/second/microsecond rather
than a fixed one-hour stride, so DST days and half-hour offsets bucket
correctly.
"""

from datetime import date, datetime, timedelta
from typing import Dict, Iterable, List, NamedTuple, Optional, Tuple

import pytz
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.intervals import Interval
from app.core.logger import get_logger
from app.core.timezones import local_date_of, normalize_instant, resolve_timezone_or_utc, to_local, utc_now
from app.enums import AppCategory
from app.models.app_usage import AppUsage
from app.models.application import App
from app.models.daily_activity import DailyActivity
from app.models.device import Device
from app.models.usage_timeline import UsageTimeline
from app.schemas.stats_schemas import (
    AppMetadata,
    DailyAppTotal,
    HourlyAppEntry,
    StatsData,
    TimelineSegment,
)
from app.services.stats_rollups import build_rollups, sort_daily, sort_hourly_entries, sort_segments

logger = get_logger("hourly_aggregation_service")

ONE_HOUR = timedelta(hours=1)


class TimelineRow(NamedTuple):
    timeline_id: str
    start_time: datetime
    end_time: datetime
    app_id: str
    app_name: str
    category: str
    auto_suggested: bool
    device_id: str
    platform: str


class HourlyBreakdown(NamedTuple):
    hourly: Dict[int, List[HourlyAppEntry]]
    daily: List[DailyAppTotal]
    apps: Dict[str, AppMetadata]
    cursor: Optional[datetime]


def split_by_local_hour(interval: Interval, tz) -> List[Tuple[int, Interval]]:
    """Split an interval at local hour boundaries; returns (local hour, piece) pairs."""
    pieces = []
    current = interval.start
    while current < interval.end:
        local = to_local(current, tz)
        into_hour = timedelta(minutes=local.minute, seconds=local.second, microseconds=local.microsecond)
        step = min(interval.end - current, ONE_HOUR - into_hour)
        if step <= timedelta(0):
            break
        following = current + step
        pieces.append((local.hour, Interval(current, following)))
        current = following
    return pieces


def _as_utc(instant: datetime) -> datetime:
    return pytz.UTC.localize(instant)


def bucket_timelines(rows: Iterable[TimelineRow], tz) -> HourlyBreakdown:
    """Pure bucketing step: same rows and timezone always give the same breakdown."""
    hourly: Dict[int, Dict[str, HourlyAppEntry]] = {}
    daily: Dict[str, int] = {}
    apps: Dict[str, AppMetadata] = {}
    platforms: Dict[str, set] = {}
    cursor = None

    for row in rows:
        if row.app_id not in apps:
            apps[row.app_id] = AppMetadata(
                app_id=row.app_id,
                app_name=row.app_name,
                category=AppCategory(row.category or AppCategory.UNCATEGORIZED.value),
                auto_suggested=bool(row.auto_suggested)
            )
            platforms[row.app_id] = set()
        platforms[row.app_id].add(row.platform)

        if cursor is None or row.end_time > cursor:
            cursor = row.end_time

        if row.start_time >= row.end_time:
            continue

        for hour, piece in split_by_local_hour(Interval(row.start_time, row.end_time), tz):
            bucket = hourly.setdefault(hour, {})
            entry = bucket.get(row.app_id)
            if entry is None:
                entry = bucket[row.app_id] = HourlyAppEntry(app_id=row.app_id)
            entry.timelines.append(TimelineSegment(
                device_id=row.device_id,
                start_time=_as_utc(piece.start),
                end_time=_as_utc(piece.end)
            ))
            entry.total_time_ms += piece.duration_ms
            daily[row.app_id] = daily.get(row.app_id, 0) + piece.duration_ms

    for app_id, meta in apps.items():
        meta.platforms = sorted(platforms[app_id])

    ordered_hourly = {}
    for hour in sorted(hourly):
        entries = list(hourly[hour].values())
        for entry in entries:
            entry.timelines = sort_segments(entry.timelines)
        ordered_hourly[hour] = sort_hourly_entries(entries)

    return HourlyBreakdown(
        hourly=ordered_hourly,
        daily=sort_daily([DailyAppTotal(app_id=app_id, total_time_ms=ms) for app_id, ms in daily.items()]),
        apps=apps,
        cursor=_as_utc(cursor) if cursor is not None else None
    )


def resolve_date_range(
    tz,
    from_date: Optional[date] = None,
    to_date: Optional[date] = None,
    now: Optional[datetime] = None
) -> Tuple[date, date]:
    """Missing bounds default to today's date in the target timezone."""
    today = local_date_of(normalize_instant(now) if now else utc_now(), tz)
    return from_date or today, to_date or today


class HourlyAggregationService:
    """Service for building hourly usage stats (read-only)"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_stats(
        self,
        user_id: str,
        from_date: Optional[date] = None,
        to_date: Optional[date] = None,
        time_zone: Optional[str] = None,
        since: Optional[datetime] = None,
        known_app_ids: Optional[Iterable[str]] = None,
        now: Optional[datetime] = None
    ) -> StatsData:
        tz = resolve_timezone_or_utc(time_zone)
        start_date, end_date = resolve_date_range(tz, from_date, to_date, now)
        since_instant = normalize_instant(since) if since else None

        logger.info(
            f"[Stats] user {user_id} from {start_date} to {end_date} "
            f"(since: {since_instant.isoformat() if since_instant else 'none'}, timeZone: {tz.zone})"
        )

        rows = await self._load_timelines(user_id, start_date, end_date, since_instant)
        breakdown = bucket_timelines(rows, tz)

        known = set(known_app_ids or [])
        categories = {app_id: meta.category for app_id, meta in breakdown.apps.items()}
        cursor = breakdown.cursor
        if cursor is None and since_instant is not None:
            cursor = _as_utc(since_instant)

        return StatsData(
            from_date=start_date,
            to_date=end_date,
            time_zone=tz.zone,
            apps={app_id: meta for app_id, meta in breakdown.apps.items() if app_id not in known},
            hourly=breakdown.hourly,
            daily=breakdown.daily,
            cursor=cursor,
            **build_rollups(breakdown.hourly, breakdown.daily, categories)
        )

    async def _load_timelines(
        self,
        user_id: str,
        start_date: date,
        end_date: date,
        since: Optional[datetime]
    ) -> List[TimelineRow]:
        stmt = (
            select(
                UsageTimeline.id.label("timeline_id"),
                UsageTimeline.start_time,
                UsageTimeline.end_time,
                App.id.label("app_id"),
                App.name.label("app_name"),
                App.category,
                App.auto_suggested,
                Device.id.label("device_id"),
                Device.platform
            )
            .select_from(UsageTimeline)
            .join(AppUsage, UsageTimeline.app_usage_id == AppUsage.id)
            .join(App, AppUsage.app_id == App.id)
            .join(DailyActivity, AppUsage.daily_activity_id == DailyActivity.id)
            .join(Device, DailyActivity.device_id == Device.id)
            .where(
                Device.user_id == user_id,
                DailyActivity.date >= start_date,
                DailyActivity.date <= end_date
            )
        )
        if since is not None:
            # Incremental: only timelines ending after the cursor
            stmt = stmt.where(UsageTimeline.end_time > since)
        stmt = stmt.order_by(UsageTimeline.start_time, UsageTimeline.id)

        result = await self.db.execute(stmt)
        return [TimelineRow(*row) for row in result.all()]
