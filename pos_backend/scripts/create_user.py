import argparse
import asyncio
import os

from pos_backend.core.db import AsyncSessionLocal
from pos_backend.constants import roles
from pos_backend.services.auth.auth_service import create_user, ensure_admin_user


async def main(args):
    async with AsyncSessionLocal() as session:
        if args.role == roles.ADMIN and args.store_id is None:
            await ensure_admin_user(session, args.username, args.password)
        else:
            await create_user(
                session,
                username=args.username,
                password=args.password,
                role=args.role,
                store_id=args.store_id,
            )
            await session.commit()
        print(f"User {args.username} ({args.role}) ready")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create a POS user")
    parser.add_argument("username")
    parser.add_argument("--password", default=os.getenv("ADMIN_PASSWORD", "admin123"))
    parser.add_argument(
        "--role",
        default=roles.ADMIN,
        choices=[roles.ADMIN, roles.MANAGER, roles.INVENTORY, roles.CASHIER],
    )
    parser.add_argument("--store-id", type=int, default=None)
    asyncio.run(main(parser.parse_args()))
