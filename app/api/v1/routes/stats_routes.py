from datetime import date, datetime
from typing import List, Optional

from fastapi import APIRouter, Body, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.controllers.stats_controller import StatsController
from app.database.connection import get_db
from app.middlewares.clerk_auth import get_authenticated_user
from app.models.user import User
from app.schemas.stats_schemas import KnownAppsInput

router = APIRouter(tags=["Stats"])


@router.get("/stats")
async def get_stats(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_authenticated_user),
    from_date: Optional[date] = Query(None, alias="from", description="First local date (defaults to today)"),
    to_date: Optional[date] = Query(None, alias="to", description="Last local date (defaults to today)"),
    time_zone: Optional[str] = Query(None, alias="timeZone", description="IANA timezone, UTC if missing or invalid"),
    since: Optional[datetime] = Query(None, description="Cursor from a previous response"),
    known_app_ids: List[str] = Query([], alias="knownAppIds", description="App ids whose metadata is cached")
):
    """
    Get hourly usage buckets and daily per-app totals.

    Pass the previous `cursor` as `since` to receive only timelines that
    ended after it.
    """
    return await StatsController.get_stats(
        db, current_user, from_date, to_date, time_zone, since, known_app_ids
    )


@router.post("/stats")
async def post_stats(
    payload: Optional[KnownAppsInput] = Body(None),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_authenticated_user),
    from_date: Optional[date] = Query(None, alias="from"),
    to_date: Optional[date] = Query(None, alias="to"),
    time_zone: Optional[str] = Query(None, alias="timeZone"),
    since: Optional[datetime] = Query(None)
):
    """Same as GET /stats, with known app ids sent in the body for long lists."""
    known_app_ids = payload.known_app_ids if payload else []
    return await StatsController.get_stats(
        db, current_user, from_date, to_date, time_zone, since, known_app_ids
    )
