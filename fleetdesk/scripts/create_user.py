"""
Create a user (e.g. the first admin). Run from project root:
  python -m fleetdesk.scripts.create_user USERNAME EMAIL PASSWORD [role]
Example:
  python -m fleetdesk.scripts.create_user dispatch dispatch@example.com your-secure-password admin

This is the only way to create an admin; the API always registers role 'user'.
"""
import argparse
import asyncio
import logging
import sys

from fleetdesk.core.config import get_settings
from fleetdesk.core.database import SessionLocal, engine
from fleetdesk.core.security import (
    EMAIL_MAX_LEN,
    PASSWORD_MAX_LEN,
    PASSWORD_MIN_LEN,
    USERNAME_MAX_LEN,
    hash_password,
)
from fleetdesk.models.user import Role
from fleetdesk.services.errors import DuplicateUserError
from fleetdesk.services.user_store import UserStore

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)


async def create_user(username: str, email: str, password: str, role: Role) -> int:
    settings = get_settings()
    try:
        async with SessionLocal() as db:
            store = UserStore(db, timeout=settings.DATABASE_TIMEOUT_SEC)
            if await store.exists_username_or_email(username, email):
                print(f"User '{username}' or email '{email}' already exists.", file=sys.stderr)
                return 1
            password_hash = await asyncio.to_thread(
                hash_password, password, settings.BCRYPT_ROUNDS
            )
            try:
                user = await store.add(username, email, password_hash, role=role)
            except DuplicateUserError:
                print(f"User '{username}' or email '{email}' already exists.", file=sys.stderr)
                return 1
            print(f"Created user '{user.username}' (id={user.id}) with role '{user.role.value}'.")
            return 0
    finally:
        await engine.dispose()


def main() -> int:
    parser = argparse.ArgumentParser(description="Create a Fleetdesk user (admin bootstrap).")
    parser.add_argument("username", help=f"Username (1-{USERNAME_MAX_LEN} chars)")
    parser.add_argument("email", help="Email address")
    parser.add_argument("password", help=f"Password ({PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} chars)")
    parser.add_argument(
        "role",
        nargs="?",
        default=Role.USER.value,
        choices=[r.value for r in Role],
    )
    args = parser.parse_args()

    username = args.username.strip()
    email = args.email.strip()
    if not username or len(username) > USERNAME_MAX_LEN:
        print("Invalid username length.", file=sys.stderr)
        return 1
    if not email or "@" not in email or len(email) > EMAIL_MAX_LEN:
        print("Invalid email address.", file=sys.stderr)
        return 1
    if not (PASSWORD_MIN_LEN <= len(args.password) <= PASSWORD_MAX_LEN):
        print(
            f"Password must be {PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} characters.",
            file=sys.stderr,
        )
        return 1

    try:
        return asyncio.run(create_user(username, email, args.password, Role(args.role)))
    except Exception as e:
        logger.exception("User creation failed: %s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
