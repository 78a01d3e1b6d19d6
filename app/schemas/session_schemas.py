"""
Session ingestion API schemas
"""
from datetime import datetime
from typing import Optional

from pydantic import ConfigDict, Field

from app.enums import Platform
from app.schemas.base import CamelModel


class LogSessionInput(CamelModel):
    """One usage interval reported by a device"""
    device_id: str = Field(..., min_length=1, max_length=255, description="Device identifier chosen by the reporting agent")
    device_platform: Platform = Field(..., description="web, windows, macos, linux, ios or android")
    app_name: str = Field(..., min_length=1, max_length=255, description="Process name or site host")
    start_time: datetime = Field(..., description="ISO 8601 start instant (inclusive)")
    end_time: datetime = Field(..., description="ISO 8601 end instant (exclusive)")
    time_zone: str = Field(..., description="IANA timezone of the reporting device")
    url: Optional[str] = Field(default=None, description="Tab URL for web reports; accepted but not stored")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "deviceId": "desktop-7f3a",
                "devicePlatform": "windows",
                "appName": "Code.exe",
                "startTime": "2025-10-22T09:00:00.000Z",
                "endTime": "2025-10-22T09:25:00.000Z",
                "timeZone": "Europe/Berlin"
            }
        }
    )


class LogSessionResponse(CamelModel):
    """Result of one ingestion; filtered=True is a success, not an error"""
    success: bool = True
    filtered: bool = False
    duration_added_ms: int = 0
