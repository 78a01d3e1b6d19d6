"""
Models package for the application.
"""

from .user import User
from .device import Device
from .daily_activity import DailyActivity
from .application import App
from .app_usage import AppUsage
from .usage_timeline import UsageTimeline

__all__ = [
    "User",
    "Device",
    "DailyActivity",
    "App",
    "AppUsage",
    "UsageTimeline",
]
