"""
Shared enums for the application.
"""

from .usage_enums import (
    Platform,
    AppCategory,
    CATEGORY_ORDER
)

__all__ = [
    "Platform",
    "AppCategory",
    "CATEGORY_ORDER"
]
