"""
Usage Stats API Schemas
"""
from datetime import date, datetime
from typing import Dict, List, Optional

from pydantic import Field, model_validator

from app.core.intervals import to_ms
from app.enums import AppCategory
from app.schemas.base import CamelModel


class TimelineSegment(CamelModel):
    """Part of a usage timeline that falls inside one local hour"""
    device_id: str
    start_time: datetime
    end_time: datetime

    @model_validator(mode="after")
    def check_range(self):
        if self.start_time >= self.end_time:
            raise ValueError("startTime must be before endTime")
        return self

    @property
    def duration_ms(self) -> int:
        return to_ms(self.end_time - self.start_time)


class HourlyAppEntry(CamelModel):
    """One app's segments within one local hour"""
    app_id: str
    total_time_ms: int = 0
    timelines: List[TimelineSegment] = []


class AppMetadata(CamelModel):
    app_id: str
    app_name: str
    category: AppCategory = AppCategory.UNCATEGORIZED
    auto_suggested: bool = False
    platforms: List[str] = []


class DailyAppTotal(CamelModel):
    app_id: str
    total_time_ms: int


class StatsSummary(CamelModel):
    total_time_ms: int = 0
    productive_ms: int = 0
    productivity_score: int = 0  # percentage


class CategorySlice(CamelModel):
    name: AppCategory
    value: int  # milliseconds


class ActivityProfileRow(CamelModel):
    """Minutes per category within one local hour"""
    hour: int
    label: str
    productive: float = 0
    distracting: float = 0
    neutral: float = 0
    uncategorized: float = 0


class StatsData(CamelModel):
    """Per-hour and per-day usage for a date range in one timezone"""
    from_date: date
    to_date: date
    time_zone: str

    # Metadata only for apps the caller did not declare as known
    apps: Dict[str, AppMetadata] = {}

    # Local hour (0-23) -> app entries, hours without usage omitted
    hourly: Dict[int, List[HourlyAppEntry]] = {}
    daily: List[DailyAppTotal] = []

    # Max end time among returned timelines; pass back as `since`
    cursor: Optional[datetime] = None

    # Derived roll-ups
    summary: StatsSummary = Field(default_factory=StatsSummary)
    category_distribution: List[CategorySlice] = []
    activity_profile: List[ActivityProfileRow] = []
    top_apps: List[DailyAppTotal] = []


class StatsResponse(CamelModel):
    success: bool = True
    data: StatsData


class KnownAppsInput(CamelModel):
    """App ids whose metadata the caller already caches"""
    known_app_ids: List[str] = []
