"""
App Category Service
Manual (or auto-suggested) classification of entries in the global app dictionary.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.logger import get_logger
from app.enums import AppCategory
from app.exceptions.errors import AppNotFound
from app.models.application import App

logger = get_logger("app_category_service")


class AppCategoryService:
    """Service for updating app categories"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def update_category(self, app_id: str, category: AppCategory, auto_suggested: bool = False) -> App:
        """Set category; auto_suggested=False marks a manual choice."""
        async with self.db.begin():
            app = await self.db.get(App, app_id)
            if app is None:
                raise AppNotFound(f"App {app_id} not found")

            app.category = AppCategory(category).value
            app.auto_suggested = bool(auto_suggested)

        logger.info(f"App {app.name} categorized as {app.category} (auto_suggested={app.auto_suggested})")
        return app
