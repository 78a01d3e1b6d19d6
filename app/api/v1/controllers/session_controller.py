"""
Session Controller
Handles HTTP request/response logic for usage session ingestion
"""

from typing import Dict

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.logger import get_logger
from app.exceptions.errors import ApplicationException, StorageUnavailable
from app.models.user import User
from app.schemas.session_schemas import LogSessionInput, LogSessionResponse
from app.services.session_ingestion_service import SessionIngestionService, SessionReport

logger = get_logger("session_controller")


class SessionController:
    """Controller for usage session ingestion."""

    @staticmethod
    async def log_session(db: AsyncSession, user: User, payload: LogSessionInput) -> Dict:
        """Reconcile and store one reported session for the authenticated user."""
        try:
            service = SessionIngestionService(db)
            result = await service.ingest_session(SessionReport(
                device_external_id=payload.device_id,
                device_platform=payload.device_platform.value,
                app_name=payload.app_name,
                start_time=payload.start_time,
                end_time=payload.end_time,
                time_zone=payload.time_zone,
                user_id=user.id
            ))

            return LogSessionResponse(
                success=result.success,
                filtered=result.filtered,
                duration_added_ms=result.duration_added_ms
            ).model_dump(by_alias=True)

        except ApplicationException:
            raise
        except SQLAlchemyError as e:
            logger.error(f"Storage error while logging session for user {user.id}: {e}")
            raise StorageUnavailable()
