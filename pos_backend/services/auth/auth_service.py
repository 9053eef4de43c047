from datetime import datetime, timedelta, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from pos_backend.models.users.user_models import User
from pos_backend.core.security import verify_password, hash_password, create_access_token
from pos_backend.core.config import ACCESS_TOKEN_EXPIRE_MINUTES
from pos_backend.core.exceptions import AppException
from pos_backend.constants.error_codes import ErrorCode
from pos_backend.constants import roles
from pos_backend.constants.activity_codes import ActivityCode
from pos_backend.schemas.auth.auth_schemas import TokenResponse
from pos_backend.utils.activity_helpers import emit_activity
from pos_backend.utils.logger import get_logger

logger = get_logger("auth.service")

VALID_ROLES = {roles.ADMIN, roles.MANAGER, roles.INVENTORY, roles.CASHIER}


# =====================================================
# LOGIN
# =====================================================
async def login_user(db: AsyncSession, username: str, password: str) -> TokenResponse:
    logger.info("Authenticating user", extra={"username": username})

    user = await db.scalar(select(User).where(User.username == username))

    if not user or not verify_password(password, user.password_hash):
        logger.warning("Invalid credentials", extra={"username": username})
        raise AppException(401, "Invalid credentials", ErrorCode.UNAUTHORIZED)

    if not user.is_active:
        logger.warning("Inactive user login blocked", extra={"username": username})
        raise AppException(403, "User account is inactive", ErrorCode.PERMISSION_DENIED)

    user.last_login = datetime.now(timezone.utc)

    access_token = create_access_token(
        subject=user.username,
        token_version=user.token_version,
        expires_delta=timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES),
    )

    await emit_activity(db, user=user, code=ActivityCode.LOGIN)
    await db.commit()

    logger.info("Login successful", extra={"user_id": user.id})

    return TokenResponse(
        access_token=access_token,
        role=user.role,
        store_id=user.store_id,
    )


# =====================================================
# USERS (bootstrap / fixtures)
# =====================================================
async def create_user(
    db: AsyncSession,
    *,
    username: str,
    password: str,
    role: str,
    store_id: int | None = None,
    full_name: str | None = None,
) -> User:
    """Add a user to the session without committing."""
    if role not in VALID_ROLES:
        raise AppException(400, f"Unknown role '{role}'", ErrorCode.VALIDATION_ERROR)

    user = User(
        username=username,
        password_hash=hash_password(password),
        role=role,
        store_id=store_id,
        full_name=full_name,
    )
    db.add(user)
    await db.flush()
    return user


async def ensure_admin_user(db: AsyncSession, username: str, password: str) -> None:
    exists = await db.scalar(select(User.id).where(User.username == username))
    if exists:
        return
    await create_user(db, username=username, password=password, role=roles.ADMIN)
    await db.commit()
    logger.info("Bootstrap admin created", extra={"username": username})
