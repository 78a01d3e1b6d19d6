"""
Browser classification table.

Native agents see the real foreground app while browser extensions only see
that a tab is open, so anything classified here as browser-like never acts as
ground truth during reconciliation.
"""

from typing import Iterable

from app.core.config import settings
from app.enums import Platform


class BrowserClassifier:
    """Case-insensitive substring match of app names against known browser process names."""

    def __init__(self, keywords: Iterable[str]):
        self.keywords = tuple(k.strip().lower() for k in keywords if k and k.strip())

    def is_browser_app(self, app_name: str) -> bool:
        name = (app_name or "").lower()
        return any(keyword in name for keyword in self.keywords)

    def is_browser_like(self, platform: Platform, app_name: str) -> bool:
        return Platform(platform) == Platform.WEB or self.is_browser_app(app_name)


default_classifier = BrowserClassifier(settings.BROWSER_APP_KEYWORDS)
