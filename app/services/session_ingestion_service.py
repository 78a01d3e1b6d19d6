"""
Session Ingestion Service
Reconciles one reported usage interval against the user's other devices and
commits the resulting timeline rows in a single transaction.

Native (non-browser) activity is ground truth: a native report prunes
overlapping web timelines retroactively, and a web report is filtered
against existing native timelines before it is stored.
"""

import asyncio
from dataclasses import dataclass
from datetime import date, datetime
from typing import List, Optional, Tuple

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.classification import BrowserClassifier, default_classifier
from app.core.config import settings
from app.core.intervals import Interval, intersection, subtract, to_ms, total_duration_ms
from app.core.logger import get_logger
from app.core.timezones import as_naive_utc, local_date_of, normalize_instant, resolve_timezone
from app.database.locks import acquire_user_ingestion_lock
from app.enums import Platform
from app.exceptions.errors import (
    DeviceConflict,
    DurationTooLarge,
    IngestionTimeout,
    InvalidPlatform,
    InvalidRange,
    Unauthorized,
)
from app.models.app_usage import AppUsage
from app.models.application import App
from app.models.daily_activity import DailyActivity
from app.models.device import Device
from app.models.usage_timeline import UsageTimeline

logger = get_logger("session_ingestion_service")


@dataclass
class SessionReport:
    """One usage interval as reported by a device."""
    device_external_id: str
    device_platform: str
    app_name: str
    start_time: datetime
    end_time: datetime
    time_zone: str
    user_id: Optional[str]


@dataclass
class IngestionResult:
    filtered: bool
    duration_added_ms: int
    success: bool = True


class SessionIngestionService:
    """Service for reconciling and storing reported usage sessions"""

    def __init__(
        self,
        db: AsyncSession,
        classifier: Optional[BrowserClassifier] = None,
        max_duration_ms: Optional[int] = None,
        timeout_seconds: Optional[float] = None
    ):
        self.db = db
        self.classifier = classifier or default_classifier
        self.max_duration_ms = max_duration_ms if max_duration_ms is not None else settings.MAX_SESSION_DURATION_MS
        self.timeout_seconds = timeout_seconds if timeout_seconds is not None else settings.INGEST_TIMEOUT_SECONDS

    def validate(self, report: SessionReport) -> Tuple[Interval, Platform, object]:
        """
        Reject malformed reports before anything touches the database.

        Instants are stored at millisecond precision, so a report whose
        start and end fall within the same millisecond is also an
        InvalidRange even though start < end.
        """
        if not report.user_id:
            raise Unauthorized()

        if as_naive_utc(report.start_time) >= as_naive_utc(report.end_time):
            raise InvalidRange()

        start = normalize_instant(report.start_time)
        end = normalize_instant(report.end_time)
        if start >= end:
            raise InvalidRange("Session must last at least 1 ms")
        if to_ms(end - start) > self.max_duration_ms:
            raise DurationTooLarge()

        tz = resolve_timezone(report.time_zone)

        try:
            platform = Platform(report.device_platform)
        except ValueError:
            raise InvalidPlatform(f"Unsupported device platform: {report.device_platform}")

        return Interval(start, end), platform, tz

    async def ingest_session(self, report: SessionReport) -> IngestionResult:
        """
        Validate, reconcile and persist one report.
        Returns IngestionResult(filtered, duration_added_ms)
        """
        interval, platform, tz = self.validate(report)
        logger.info(
            f"Session: {report.app_name} ({platform.value}) {interval.duration_ms}ms "
            f"for user {report.user_id}"
        )

        try:
            return await asyncio.wait_for(
                self._ingest(report, interval, platform, tz),
                timeout=self.timeout_seconds
            )
        except asyncio.TimeoutError:
            logger.error(f"Ingestion for user {report.user_id} exceeded {self.timeout_seconds}s, rolled back")
            raise IngestionTimeout()

    async def _ingest(self, report: SessionReport, interval: Interval, platform: Platform, tz) -> IngestionResult:
        async with self.db.begin():
            await acquire_user_ingestion_lock(self.db, report.user_id)

            device = await self._find_device(report.device_external_id)
            if device is not None:
                self._check_ownership(device, report.user_id)
                if device.platform != platform.value:
                    # platform is fixed at creation; reconcile with what is stored
                    logger.warning(
                        f"Device {report.device_external_id} reported platform {platform.value}, "
                        f"registered as {device.platform}"
                    )
                    platform = Platform(device.platform)

            if not self.classifier.is_browser_like(platform, report.app_name):
                await self._prune_web_timelines(report.user_id, interval)

            segments = [interval]
            if platform == Platform.WEB:
                segments = await self._filter_against_native(report.user_id, interval)
                if not segments:
                    logger.info(f"[FILTER] Entire web session for {report.app_name} covered by native activity")
                    return IngestionResult(filtered=True, duration_added_ms=0)

            device = await self._ensure_device(device, report, platform)
            daily = await self._ensure_daily_activity(device, local_date_of(interval.start, tz))
            app = await self._ensure_app(report.app_name)
            usage = await self._ensure_app_usage(daily, app)

            duration_ms = await self._insert_timelines(usage, segments)

        return IngestionResult(filtered=False, duration_added_ms=duration_ms)

    # ------------------------------------------------------------------
    # Reconciliation
    # ------------------------------------------------------------------

    async def _prune_web_timelines(self, user_id: str, interval: Interval) -> int:
        """
        Cut the native interval out of every overlapping web timeline of this user.
        Each row is replaced by its 0-2 remnants and its AppUsage counter is
        reduced by exactly the removed overlap.
        """
        stmt = (
            select(UsageTimeline, App.name)
            .join(AppUsage, UsageTimeline.app_usage_id == AppUsage.id)
            .join(App, AppUsage.app_id == App.id)
            .join(DailyActivity, AppUsage.daily_activity_id == DailyActivity.id)
            .join(Device, DailyActivity.device_id == Device.id)
            .where(
                Device.platform == Platform.WEB.value,
                Device.user_id == user_id,
                UsageTimeline.end_time > interval.start,
                UsageTimeline.start_time < interval.end
            )
            .order_by(UsageTimeline.start_time, UsageTimeline.id)
        )
        result = await self.db.execute(stmt)
        rows = result.all()
        if not rows:
            return 0

        logger.info(f"[PRUNE] Native session {interval.start} - {interval.end} overlaps {len(rows)} web timeline(s)")

        removed_ms = 0
        for timeline, app_name in rows:
            original = Interval(timeline.start_time, timeline.end_time)
            overlap = intersection(original, interval)
            if overlap is None:
                continue

            remnants = subtract([original], interval)
            logger.info(
                f"[PRUNE] [{app_name}] {original.start} - {original.end}: removed {overlap.duration_ms}ms, "
                f"{len(remnants)} remnant(s) left"
            )

            await self.db.execute(
                update(AppUsage)
                .where(AppUsage.id == timeline.app_usage_id)
                .values(total_time_ms=AppUsage.total_time_ms - overlap.duration_ms)
                .execution_options(synchronize_session=False)
            )
            await self.db.delete(timeline)
            for remnant in remnants:
                self.db.add(UsageTimeline(
                    app_usage_id=timeline.app_usage_id,
                    start_time=remnant.start,
                    end_time=remnant.end
                ))
            removed_ms += overlap.duration_ms

        await self.db.flush()
        return removed_ms

    async def _filter_against_native(self, user_id: str, interval: Interval) -> List[Interval]:
        """Subtract every overlapping native, non-browser timeline from the incoming web interval."""
        stmt = (
            select(UsageTimeline.start_time, UsageTimeline.end_time, App.name)
            .join(AppUsage, UsageTimeline.app_usage_id == AppUsage.id)
            .join(App, AppUsage.app_id == App.id)
            .join(DailyActivity, AppUsage.daily_activity_id == DailyActivity.id)
            .join(Device, DailyActivity.device_id == Device.id)
            .where(
                Device.platform != Platform.WEB.value,
                Device.user_id == user_id,
                UsageTimeline.end_time > interval.start,
                UsageTimeline.start_time < interval.end
            )
            .order_by(UsageTimeline.start_time)
        )
        result = await self.db.execute(stmt)

        segments = [interval]
        for start_time, end_time, app_name in result.all():
            if self.classifier.is_browser_app(app_name):
                continue
            logger.debug(f"[FILTER] Blocking app [{app_name}] {start_time} - {end_time}")
            segments = subtract(segments, Interval(start_time, end_time))
            if not segments:
                break

        if segments and total_duration_ms(segments) != interval.duration_ms:
            logger.info(
                f"[FILTER] Web session {interval.start} - {interval.end} kept "
                f"{total_duration_ms(segments)}ms in {len(segments)} segment(s)"
            )
        return segments

    # ------------------------------------------------------------------
    # Dimensional upserts
    # ------------------------------------------------------------------

    async def _find_device(self, external_device_id: str) -> Optional[Device]:
        stmt = (
            select(Device)
            .where(Device.external_device_id == external_device_id)
            .with_for_update()
        )
        result = await self.db.execute(stmt)
        return result.scalars().first()

    @staticmethod
    def _check_ownership(device: Device, user_id: str) -> None:
        if device.user_id and device.user_id != user_id:
            logger.warning(f"Device {device.external_device_id} belongs to another user; rejecting report from {user_id}")
            raise DeviceConflict()

    async def _ensure_device(self, device: Optional[Device], report: SessionReport, platform: Platform) -> Device:
        if device is None:
            device, created = await self._insert_or_reload(
                Device(
                    external_device_id=report.device_external_id,
                    platform=platform.value,
                    user_id=report.user_id
                ),
                select(Device).where(Device.external_device_id == report.device_external_id)
            )
            if created:
                logger.info(f"Created new device: {report.device_external_id} ({platform.value})")
            else:
                self._check_ownership(device, report.user_id)

        if device.user_id is None:
            device.user_id = report.user_id
            await self.db.flush()
            logger.info(f"Linked existing device {report.device_external_id} to user {report.user_id}")

        return device

    async def _ensure_daily_activity(self, device: Device, day: date) -> DailyActivity:
        return await self._get_or_create(DailyActivity, device_id=device.id, date=day)

    async def _ensure_app(self, app_name: str) -> App:
        return await self._get_or_create(App, name=app_name)

    async def _ensure_app_usage(self, daily: DailyActivity, app: App) -> AppUsage:
        return await self._get_or_create(AppUsage, daily_activity_id=daily.id, app_id=app.id)

    async def _get_or_create(self, model, **lookup):
        stmt = select(model).filter_by(**lookup)
        result = await self.db.execute(stmt)
        instance = result.scalars().first()
        if instance is not None:
            return instance

        instance, created = await self._insert_or_reload(model(**lookup), stmt)
        if created:
            logger.debug(f"Created {model.__tablename__} row {lookup}")
        return instance

    async def _insert_or_reload(self, instance, reload_stmt):
        """Insert inside a savepoint; on a unique-key race, read back the row that won."""
        try:
            async with self.db.begin_nested():
                self.db.add(instance)
            return instance, True
        except IntegrityError:
            result = await self.db.execute(reload_stmt)
            return result.scalars().one(), False

    async def _insert_timelines(self, usage: AppUsage, segments: List[Interval]) -> int:
        for segment in segments:
            self.db.add(UsageTimeline(
                app_usage_id=usage.id,
                start_time=segment.start,
                end_time=segment.end
            ))

        duration_ms = total_duration_ms(segments)
        await self.db.execute(
            update(AppUsage)
            .where(AppUsage.id == usage.id)
            .values(total_time_ms=AppUsage.total_time_ms + duration_ms)
            .execution_options(synchronize_session=False)
        )
        await self.db.flush()
        self.db.expire(usage, ["total_time_ms"])
        return duration_ms
