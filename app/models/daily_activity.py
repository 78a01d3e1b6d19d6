from sqlalchemy import Column, String, ForeignKey, Date, UniqueConstraint
from sqlalchemy.orm import relationship
from app.database.base import Base
import cuid


class DailyActivity(Base):
    """
    One row per device per local calendar date. The date is taken in the
    reporting request's timezone at ingestion time.
    """
    __tablename__ = "daily_activities"

    id = Column(String(25), primary_key=True, index=True, default=lambda: cuid.cuid())
    device_id = Column(String(25), ForeignKey("devices.id"), nullable=False, index=True)
    date = Column(Date, nullable=False, index=True)

    device = relationship("Device", back_populates="daily_activities")
    app_usages = relationship("AppUsage", back_populates="daily_activity")

    __table_args__ = (
        UniqueConstraint("device_id", "date", name="uq_daily_activity_device_date"),
    )
