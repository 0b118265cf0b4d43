"""Create the initial administrator account.

Safe to run repeatedly: an existing account with the same email is left
untouched. Credentials come from ADMIN_EMAIL / ADMIN_PASSWORD or the
command line.
"""

import argparse
import asyncio
import os

from giftcard_api.core.security import hash_password
from giftcard_api.db.session import AsyncSessionLocal, dispose_engine
from giftcard_api.models.enums import UserRole
from giftcard_api.models.user import User
from giftcard_api.repositories.user import UserRepository

DEFAULT_ADMIN_EMAIL = "admin@thnxdigital.com"


async def seed_admin(email: str, password: str, name: str) -> bool:
    """Create the admin if missing. Returns True when a user was created."""
    async with AsyncSessionLocal() as db:
        repo = UserRepository(db)
        if await repo.email_exists(email):
            print(f"Admin already exists: {email}")
            return False

        await repo.create(
            User(
                email=email.lower(),
                password_hash=hash_password(password),
                name=name,
                role=UserRole.ADMIN,
                email_verified=True,
                is_active=True,
                is_first_time=False,
                merchant_profile=None,
            )
        )
    print(f"✅ Admin created: {email}")
    return True


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Seed the initial admin account")
    parser.add_argument("--email", default=os.environ.get("ADMIN_EMAIL", DEFAULT_ADMIN_EMAIL))
    parser.add_argument("--password", default=os.environ.get("ADMIN_PASSWORD"))
    parser.add_argument("--name", default="Super Admin")
    return parser.parse_args()


async def main() -> None:
    args = parse_args()
    if not args.password:
        raise SystemExit("Set ADMIN_PASSWORD or pass --password")
    try:
        await seed_admin(args.email, args.password, args.name)
    finally:
        await dispose_engine()


if __name__ == "__main__":
    asyncio.run(main())
