"""
Apps Controller
"""
from typing import Dict

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.logger import get_logger
from app.exceptions.errors import ApplicationException, StorageUnavailable
from app.schemas.app_schemas import AppOut, UpdateCategoryInput, UpdateCategoryResponse
from app.services.app_category_service import AppCategoryService

logger = get_logger("apps_controller")


class AppsController:

    @staticmethod
    async def update_category(db: AsyncSession, app_id: str, payload: UpdateCategoryInput) -> Dict:
        try:
            app = await AppCategoryService(db).update_category(
                app_id,
                payload.category,
                auto_suggested=bool(payload.auto_suggested)
            )
            return UpdateCategoryResponse(
                success=True,
                data=AppOut(
                    app_id=app.id,
                    app_name=app.name,
                    category=app.category,
                    auto_suggested=app.auto_suggested
                )
            ).model_dump(by_alias=True, mode="json")

        except ApplicationException:
            raise
        except SQLAlchemyError as e:
            logger.error(f"Error updating category of app {app_id}: {e}")
            raise StorageUnavailable()
