from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from pos_backend.core.db import get_db
from pos_backend.core.exceptions import AppException
from pos_backend.core.security import decode_access_token
from pos_backend.constants.error_codes import ErrorCode
from pos_backend.models.users.user_models import User
from pos_backend.utils.logger import get_logger

logger = get_logger("auth.guard")


async def get_current_user(
    request: Request,
    authorization: str = Header(...),
    db: AsyncSession = Depends(get_db),
) -> User:
    if not authorization.startswith("Bearer "):
        logger.warning("Missing bearer token")
        raise AppException(401, "Invalid authorization header", ErrorCode.UNAUTHORIZED)

    token = authorization[len("Bearer "):].strip()
    payload = decode_access_token(token)

    username = payload.get("sub")
    token_version = payload.get("token_version")

    user = await db.scalar(select(User).where(User.username == username))

    if not user:
        logger.warning("Token user not found", extra={"username": username})
        raise AppException(401, "User not found", ErrorCode.UNAUTHORIZED)

    if not user.is_active:
        logger.warning("Inactive user access blocked", extra={"user_id": user.id})
        raise AppException(403, "User account is inactive", ErrorCode.PERMISSION_DENIED)

    if user.token_version != token_version:
        logger.warning("Token version mismatch", extra={"user_id": user.id})
        raise AppException(401, "Session expired", ErrorCode.UNAUTHORIZED)

    request.state.user = user
    return user
