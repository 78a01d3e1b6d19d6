from sqlalchemy import Column, String, Boolean, DateTime
from sqlalchemy.orm import relationship
from datetime import datetime
from app.database.base import Base
import cuid


class App(Base):
    """Global dictionary of reported application names (not per user)."""
    __tablename__ = "apps"

    id = Column(String(25), primary_key=True, index=True, default=lambda: cuid.cuid())
    name = Column(String(255), nullable=False, unique=True)
    category = Column(String(20), nullable=False, default="uncategorized")  # productive | distracting | neutral | uncategorized
    auto_suggested = Column(Boolean, nullable=False, default=False)  # False = set manually

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    usages = relationship("AppUsage", back_populates="app")
