from sqlalchemy.ext.asyncio import AsyncSession
from pos_backend.models.support.activity_models import UserActivity
from pos_backend.constants.activity_templates import ACTIVITY_TEMPLATES
from pos_backend.constants.activity_codes import ActivityCode


def actor_context(user) -> dict:
    return {
        "actor_role": user.role.capitalize(),
        "actor_email": user.username,
    }


async def emit_activity(
    db: AsyncSession,
    *,
    user,
    code: ActivityCode,
    **context,
):
    """Queue an audit row on the caller's transaction. Never commits."""
    template = ACTIVITY_TEMPLATES.get(code)
    if not template:
        raise ValueError(f"No activity template for code {code}")

    try:
        message = template.format(**actor_context(user), **context)
    except KeyError as e:
        raise ValueError(
            f"Missing activity context key: {e.args[0]} for {code}"
        )

    db.add(
        UserActivity(
            user_id=user.id,
            username_snapshot=user.username,
            code=code.value,
            message=message,
        )
    )
