from typing import List, Optional
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse
from sqlalchemy.future import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from clerk_backend_api import Clerk
from clerk_backend_api.security.types import AuthenticateRequestOptions
from httpx import Request as HttpxRequest
from app.core.config import settings
from app.database.connection import async_session
from app.exceptions.errors import StorageUnavailable, Unauthorized
from app.models.user import User
from app.core.logger import get_logger

logger = get_logger("clerk_auth_middleware")

whitelisted_routes = [
    "/docs", "/openapi.json", "/redoc", "/favicon.ico",
    "/api/v1/health",
]


def _unauthorized(message: str) -> JSONResponse:
    return Unauthorized(message).to_response()


async def link_or_create_user(db: AsyncSession, clerk_user_id: str, email: Optional[str]) -> User:
    """Create the local user for a new Clerk id, relinking by email when the Clerk account was recreated."""
    if email:
        email_result = await db.execute(select(User).where(User.email == email))
        existing_user = email_result.scalar_one_or_none()
        if existing_user:
            existing_user.clerk_id = clerk_user_id
            existing_user.is_active = True
            existing_user.is_deleted = False
            await db.commit()
            await db.refresh(existing_user)
            logger.info(f"Updated existing user's Clerk ID: {existing_user.email} (New Clerk ID: {clerk_user_id})")
            return existing_user

    user = User(
        clerk_id=clerk_user_id,
        email=email,
        type="user",
        is_active=True,
        is_deleted=False
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    logger.info(f"Created new user: {user.email or '<no email>'} (Clerk ID: {clerk_user_id})")
    return user


class ClerkAuthMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, whitelisted_routes: List[str] = None):
        super().__init__(app)
        self.clerk_sdk = Clerk(bearer_auth=settings.CLERK_SECRET_KEY)
        self.whitelisted_routes = whitelisted_routes or []

    def _is_whitelisted(self, path: str) -> bool:
        """Check if the route is whitelisted (public)"""
        for route in self.whitelisted_routes:
            if path.startswith(route):
                return True
        return False

    def _verify(self, request: Request) -> Optional[str]:
        """Verify the Clerk JWT and return the Clerk user id, or None."""
        httpx_request = HttpxRequest(
            method=request.method,
            url=str(request.url),
            headers=dict(request.headers)
        )
        request_state = self.clerk_sdk.authenticate_request(
            httpx_request,
            AuthenticateRequestOptions()
        )
        if not request_state.is_signed_in:
            logger.warning(f"Invalid Clerk token: {request_state.reason}")
            return None
        return request_state.payload.get("sub") if request_state.payload else None

    def _email_of(self, clerk_user_id: str) -> Optional[str]:
        clerk_user = self.clerk_sdk.users.get(user_id=clerk_user_id)
        return clerk_user.email_addresses[0].email_address if clerk_user.email_addresses else None

    async def dispatch(self, request: Request, call_next):
        """Verifies Clerk JWT tokens and attaches the local user to request.state"""

        if self._is_whitelisted(request.url.path):
            logger.debug(f"Whitelisted route: {request.url.path}")
            return await call_next(request)

        # CORS preflight
        if request.method == "OPTIONS":
            return await call_next(request)

        auth_header = request.headers.get("Authorization")
        if not auth_header or not auth_header.startswith("Bearer "):
            logger.warning(f"Missing or invalid Authorization header for: {request.url.path}")
            return _unauthorized("Missing or invalid authorization token")

        try:
            clerk_user_id = self._verify(request)
        except Exception as e:
            logger.error(f"Authentication error: {e}")
            return _unauthorized("Authentication failed")

        if not clerk_user_id:
            return _unauthorized("Invalid authentication token")

        try:
            async with async_session() as db:
                result = await db.execute(select(User).where(User.clerk_id == clerk_user_id))
                user = result.scalar_one_or_none()
                if user is None:
                    user = await link_or_create_user(db, clerk_user_id, self._email_of(clerk_user_id))
        except SQLAlchemyError as e:
            logger.error(f"Could not load user for Clerk ID {clerk_user_id}: {e}")
            return StorageUnavailable().to_response()

        if user.is_deleted or not user.is_active:
            return _unauthorized("User account is disabled")

        request.state.user = user
        request.state.clerk_user_id = clerk_user_id
        logger.debug(f"Authenticated user: {user.id}")

        return await call_next(request)


async def get_authenticated_user(request: Request) -> User:
    """FastAPI dependency to get authenticated user"""
    user = getattr(request.state, "user", None)
    if user is None:
        raise Unauthorized()
    return user
