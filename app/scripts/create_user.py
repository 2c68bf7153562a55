"""
Create a user (e.g. a stored admin). Run from project root:
  python -m app.scripts.create_user NAME EMAIL PASSWORD [role]
Example:
  python -m app.scripts.create_user alice alice@example.com 'a-secure-password' admin
"""
import argparse
import logging
import sys

from pydantic import ValidationError

from app.core.database import SessionLocal
from app.core.roles import Role
from app.schemas.user import UserCreate
from app.services.errors import ServiceError
from app.services.users import register_user

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create a Journal API user.")
    parser.add_argument("name", help="Account name (1-255 chars; 'admin' is reserved)")
    parser.add_argument("email", help="Email address (unique)")
    parser.add_argument("password", help="Password (1-128 chars)")
    parser.add_argument(
        "role",
        nargs="?",
        default=Role.USER.value,
        choices=[r.value for r in Role],
    )
    args = parser.parse_args(argv)

    try:
        body = UserCreate(name=args.name, email=args.email, password=args.password)
    except ValidationError as e:
        print(f"Invalid user data: {e}", file=sys.stderr)
        return 1

    db = SessionLocal()
    try:
        user = register_user(db, body, role=Role(args.role))
        logger.info("Created user '%s' (id=%s) with role '%s'.", user.name, user.id, args.role)
        return 0
    except ServiceError as e:
        print(e.message, file=sys.stderr)
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
