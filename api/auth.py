from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from core.exceptions import AuthenticationError, PermissionDeniedError
from core.security import verify_token
from core.logger import logger
from db.session import get_db
from models.user import User
from services.user_service import UserService


def _extract_token(authorization: str, x_auth_token: str):
    if authorization and authorization.lower().startswith("bearer "):
        return authorization.split(" ", 1)[1].strip()
    return x_auth_token


async def get_optional_user(
    request: Request,
    authorization: str = Header(None),
    x_auth_token: str = Header(None),
    db: AsyncSession = Depends(get_db),
):
    token = _extract_token(authorization, x_auth_token)
    if not token:
        return None

    settings = request.app.state.settings
    user_id = verify_token(token, settings.SECRET_KEY, settings.TOKEN_TTL_SECONDS)
    if not user_id:
        return None
    return await UserService(db).get_user(user_id)


async def get_current_user(user: User = Depends(get_optional_user)) -> User:
    if user is None:
        logger.warning("Auth failed: Missing or invalid credentials")
        raise AuthenticationError("Unauthorized")
    return user


async def require_admin(user: User = Depends(get_current_user)) -> User:
    if not user.is_admin:
        raise PermissionDeniedError("Admin privileges required")
    return user
