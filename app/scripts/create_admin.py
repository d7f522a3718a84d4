"""
Provision a user (e.g. the first admin). Run from project root:
  python -m app.scripts.create_admin USERNAME PASSWORD [role] [--first-name ...]
Example:
  python -m app.scripts.create_admin admin 'Temp-Passw0rd!' admin --first-name Site --last-name Admin

The account must change its password on first login.
"""
import argparse
import sys

from dotenv import load_dotenv

from app.core.config import get_settings
from app.core.database import Database
from app.core.errors import AppError
from app.models.user import ROLE_ADMIN, VALID_ROLES
from app.services import credentials


def main(argv: list[str] | None = None) -> int:
    load_dotenv()
    parser = argparse.ArgumentParser(description="Create a PM Tracker user (no registration UI).")
    parser.add_argument("username", help="Username (1-255 chars)")
    parser.add_argument("password", help="Temporary password (must satisfy the strength policy)")
    parser.add_argument("role", nargs="?", default=ROLE_ADMIN, choices=list(VALID_ROLES))
    parser.add_argument("--first-name", default="")
    parser.add_argument("--middle-name", default="")
    parser.add_argument("--last-name", default="")
    parser.add_argument("--position", default="")
    args = parser.parse_args(argv)

    username = args.username.strip()
    if not username or len(username) > 255:
        print("Invalid username length.", file=sys.stderr)
        return 1

    settings = get_settings()
    database = Database(settings)
    database.create_all()
    db = database.session()
    try:
        credentials.create_user(
            db,
            settings,
            username=username,
            password=args.password,
            role=args.role,
            first_name=args.first_name,
            middle_name=args.middle_name,
            last_name=args.last_name,
            position=args.position,
        )
    except AppError as e:
        print(f"{e.message} ({e.code.value})", file=sys.stderr)
        return 1
    finally:
        db.close()
        database.dispose()
    print(f"Created user '{username}' with role '{args.role}'. Password must be changed on first login.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
