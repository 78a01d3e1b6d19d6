"""
Stats Controller
"""
from datetime import date, datetime
from typing import Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.logger import get_logger
from app.exceptions.errors import ApplicationException, StorageUnavailable
from app.models.user import User
from app.schemas.stats_schemas import StatsResponse
from app.services.hourly_aggregation_service import HourlyAggregationService

logger = get_logger("stats_controller")


class StatsController:
    """Controller for hourly usage stats."""

    @staticmethod
    async def get_stats(
        db: AsyncSession,
        user: User,
        from_date: Optional[date],
        to_date: Optional[date],
        time_zone: Optional[str],
        since: Optional[datetime],
        known_app_ids: List[str]
    ) -> Dict:
        try:
            service = HourlyAggregationService(db)
            data = await service.get_stats(
                user_id=user.id,
                from_date=from_date,
                to_date=to_date,
                time_zone=time_zone,
                since=since,
                known_app_ids=known_app_ids
            )
            return StatsResponse(success=True, data=data).model_dump(by_alias=True, mode="json")

        except ApplicationException:
            raise
        except SQLAlchemyError as e:
            logger.error(f"❌ Error getting stats for user {user.id}: {e}")
            raise StorageUnavailable()
