from sqlalchemy import Column, String, ForeignKey, BigInteger, UniqueConstraint
from sqlalchemy.orm import relationship
from app.database.base import Base
import cuid


class AppUsage(Base):
    """
    Per (daily activity, app) aggregate.

    total_time_ms always equals the summed duration of the timelines that
    reference this row; it is adjusted by the exact delta of every timeline
    insert/delete and never recomputed by scanning.
    """
    __tablename__ = "app_usages"

    id = Column(String(25), primary_key=True, index=True, default=lambda: cuid.cuid())
    daily_activity_id = Column(String(25), ForeignKey("daily_activities.id"), nullable=False, index=True)
    app_id = Column(String(25), ForeignKey("apps.id"), nullable=False, index=True)
    total_time_ms = Column(BigInteger, nullable=False, default=0)

    daily_activity = relationship("DailyActivity", back_populates="app_usages")
    app = relationship("App", back_populates="usages")
    timelines = relationship("UsageTimeline", back_populates="app_usage")

    __table_args__ = (
        UniqueConstraint("daily_activity_id", "app_id", name="uq_app_usage_daily_app"),
    )
