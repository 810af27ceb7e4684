"""
Create a user (e.g. the first admin, which sign-up cannot create). Run from project root:
  python -m app.scripts.create_user EMAIL PASSWORD [role]
Example:
  python -m app.scripts.create_user admin@example.com your-secure-password admin
"""
import argparse
import logging
import sys

from pydantic import ValidationError

from app.core.database import SessionLocal
from app.core.errors import ConflictError, ServiceUnavailableError
from app.core.logging import configure_logging
from app.core.security import hash_password
from app.models.user import Role, User
from app.schemas.users import UserUpdateRequest
from app.services.user_store import UserStore

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create a user account (any role, including admin).")
    parser.add_argument("email", help="Email address")
    parser.add_argument("password", help="Password (6-128 chars)")
    parser.add_argument("role", nargs="?", default=Role.USER.value, choices=[r.value for r in Role])
    args = parser.parse_args(argv)

    configure_logging("INFO")

    # Reuse the API's field rules for email and password.
    try:
        fields = UserUpdateRequest(email=args.email, password=args.password, role=args.role)
    except ValidationError as e:
        for err in e.errors():
            field = ".".join(str(p) for p in err["loc"]) or "input"
            print(f"Invalid {field}: {err['msg']}", file=sys.stderr)
        return 1

    db = SessionLocal()
    try:
        store = UserStore(db)
        if store.get_by_email(fields.email) is not None:
            print(f"User '{fields.email}' already exists.", file=sys.stderr)
            return 1
        user = store.add(
            User(
                email=fields.email,
                password_hash=hash_password(args.password),
                role=Role(args.role).value,
            )
        )
        print(f"Created user '{user.email}' (id={user.id}) with role '{user.role}'.")
        return 0
    except (ConflictError, ServiceUnavailableError) as e:
        logger.error("create_user failed: %s", e.message)
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
