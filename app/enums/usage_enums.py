"""
Usage-tracking enums shared by models, schemas and services.
"""

from enum import Enum


class Platform(str, Enum):
    WEB = "web"
    WINDOWS = "windows"
    MACOS = "macos"
    LINUX = "linux"
    IOS = "ios"
    ANDROID = "android"


class AppCategory(str, Enum):
    PRODUCTIVE = "productive"
    DISTRACTING = "distracting"
    NEUTRAL = "neutral"
    UNCATEGORIZED = "uncategorized"


# Fixed ordering used by category roll-ups
CATEGORY_ORDER = [
    AppCategory.PRODUCTIVE,
    AppCategory.DISTRACTING,
    AppCategory.NEUTRAL,
    AppCategory.UNCATEGORIZED,
]
