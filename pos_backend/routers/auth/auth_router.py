from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from pos_backend.core.db import get_db
from pos_backend.schemas.auth.auth_schemas import LoginRequest, TokenResponse
from pos_backend.services.auth.auth_service import login_user
from pos_backend.utils.response import APIResponse, success_response
from pos_backend.utils.logger import get_logger

logger = get_logger("auth.router")

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post("/login", response_model=APIResponse[TokenResponse])
async def login(
    payload: LoginRequest,
    db: AsyncSession = Depends(get_db),
):
    logger.info("Login attempt", extra={"username": payload.username})
    return success_response("Login successful", await login_user(db, payload.username, payload.password))
