from sqlalchemy import Column, String, ForeignKey, DateTime, Index
from sqlalchemy.orm import relationship
from app.database.base import Base
import cuid


class UsageTimeline(Base):
    """
    A concrete usage interval [start_time, end_time) attributed to one AppUsage.
    """
    __tablename__ = "usage_timelines"

    id = Column(String(25), primary_key=True, index=True, default=lambda: cuid.cuid())
    app_usage_id = Column(String(25), ForeignKey("app_usages.id"), nullable=False, index=True)

    start_time = Column(DateTime, nullable=False)  # inclusive, UTC
    end_time = Column(DateTime, nullable=False)    # exclusive, UTC

    app_usage = relationship("AppUsage", back_populates="timelines")

    __table_args__ = (
        Index("ix_usage_timeline_range", "start_time", "end_time"),
        Index("ix_usage_timeline_end", "end_time"),
    )
