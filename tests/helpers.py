"""Assertion and data helpers shared by the test modules."""

from datetime import datetime, timezone

from sqlalchemy import select

from app.core.classification import default_classifier
from app.core.intervals import Interval, overlaps, to_ms
from app.models import App, AppUsage, DailyActivity, Device, UsageTimeline
from app.services.session_ingestion_service import SessionReport

DAY = "2024-01-15"


def at(clock: str, day: str = DAY) -> datetime:
    """UTC instant on the test day, e.g. at("09:30")."""
    return datetime.fromisoformat(f"{day}T{clock}:00").replace(tzinfo=timezone.utc)


def naive(clock: str, day: str = DAY) -> datetime:
    """Same as at() but naive, the way instants come back from the database."""
    return at(clock, day).replace(tzinfo=None)


def make_report(user_id, device, platform, app, start, end, time_zone="UTC") -> SessionReport:
    return SessionReport(
        device_external_id=device,
        device_platform=platform,
        app_name=app,
        start_time=start,
        end_time=end,
        time_zone=time_zone,
        user_id=user_id
    )


async def fetch_timelines(session_factory, platform=None):
    """All stored timelines as (app name, device platform, start, end), ordered by start."""
    stmt = (
        select(App.name, Device.platform, UsageTimeline.start_time, UsageTimeline.end_time)
        .join(AppUsage, UsageTimeline.app_usage_id == AppUsage.id)
        .join(App, AppUsage.app_id == App.id)
        .join(DailyActivity, AppUsage.daily_activity_id == DailyActivity.id)
        .join(Device, DailyActivity.device_id == Device.id)
        .order_by(UsageTimeline.start_time, App.name)
    )
    if platform is not None:
        stmt = stmt.where(Device.platform == platform)
    async with session_factory() as db:
        return [tuple(row) for row in (await db.execute(stmt)).all()]


async def usage_totals(session_factory):
    """{app name: summed AppUsage.total_time_ms}"""
    stmt = select(App.name, AppUsage.total_time_ms).join(App, AppUsage.app_id == App.id)
    totals = {}
    async with session_factory() as db:
        for name, total in (await db.execute(stmt)).all():
            totals[name] = totals.get(name, 0) + total
    return totals


async def count_rows(session_factory, model) -> int:
    async with session_factory() as db:
        return len((await db.execute(select(model))).scalars().all())


async def assert_ledger_consistent(session_factory):
    """Every counter equals the summed duration of its timelines, and no timeline is empty."""
    async with session_factory() as db:
        usages = (await db.execute(select(AppUsage))).scalars().all()
        for usage in usages:
            rows = (await db.execute(
                select(UsageTimeline).where(UsageTimeline.app_usage_id == usage.id)
            )).scalars().all()
            assert all(row.start_time < row.end_time for row in rows)
            assert usage.total_time_ms == sum(to_ms(row.end_time - row.start_time) for row in rows)


async def assert_no_web_native_overlap(session_factory):
    """No web timeline overlaps native, non-browser activity."""
    web = [Interval(start, end) for _, _, start, end in await fetch_timelines(session_factory, platform="web")]
    native = [
        Interval(start, end)
        for name, platform, start, end in await fetch_timelines(session_factory)
        if platform != "web" and not default_classifier.is_browser_app(name)
    ]
    for w in web:
        assert not any(overlaps(w, n) for n in native)
