from fastapi import Depends
from pos_backend.core.exceptions import AppException
from pos_backend.constants.error_codes import ErrorCode
from pos_backend.utils.get_user import get_current_user
from pos_backend.models.users.user_models import User


def require_role(roles: list[str]):
    allowed = {r.lower() for r in roles}

    async def role_checker(user: User = Depends(get_current_user)):
        if user.role.lower() not in allowed:
            raise AppException(403, "Permission denied", ErrorCode.PERMISSION_DENIED)
        return user
    return role_checker
