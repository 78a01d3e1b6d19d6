from fastapi import APIRouter, Depends, Path
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.controllers.apps_controller import AppsController
from app.database.connection import get_db
from app.middlewares.clerk_auth import get_authenticated_user
from app.models.user import User
from app.schemas.app_schemas import UpdateCategoryInput

router = APIRouter(prefix="/apps", tags=["Apps"])


@router.patch("/{app_id}/category")
async def update_app_category(
    payload: UpdateCategoryInput,
    app_id: str = Path(..., description="App id from the stats `apps` map"),
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_authenticated_user)
):
    """Set the productivity category of an app."""
    return await AppsController.update_category(db, app_id, payload)
