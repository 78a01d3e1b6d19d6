from sqlalchemy import Column, String, ForeignKey, DateTime, Index
from sqlalchemy.orm import relationship
from datetime import datetime
from app.database.base import Base
import cuid


class Device(Base):
    """
    A reporting agent: desktop tracker, mobile app or browser extension.
    Created on first report; owner is assigned once and never reassigned.
    """
    __tablename__ = "devices"

    id = Column(String(25), primary_key=True, index=True, default=lambda: cuid.cuid())
    external_device_id = Column(String(255), nullable=False, unique=True)
    platform = Column(String(20), nullable=False)  # web | windows | macos | linux | ios | android
    user_id = Column(String(25), ForeignKey("users.id"), nullable=True, index=True)  # null until claimed

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship("User", back_populates="devices")
    daily_activities = relationship("DailyActivity", back_populates="device")

    __table_args__ = (
        Index("ix_device_user_platform", "user_id", "platform"),
    )
