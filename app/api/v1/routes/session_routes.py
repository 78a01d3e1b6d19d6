from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.controllers.session_controller import SessionController
from app.database.connection import get_db
from app.middlewares.clerk_auth import get_authenticated_user
from app.models.user import User
from app.schemas.session_schemas import LogSessionInput

router = APIRouter(tags=["Sessions"])


@router.post("/log-session")
async def log_session(
    payload: LogSessionInput,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_authenticated_user)
):
    """
    Log one usage session from a device.

    - Native reports remove overlapping web time on the user's other devices
    - Web reports are trimmed against native time and may be filtered entirely
    - `filtered: true` means nothing was recorded; it is not an error
    """
    return await SessionController.log_session(db, current_user, payload)
