"""
Create a user (e.g. the first admin; signup only ever creates role 'user'). Run from project root:
  python -m smartlink.scripts.create_user USERNAME EMAIL PASSWORD [role]
Example:
  python -m smartlink.scripts.create_user admin admin@example.com your-secure-password admin
"""
import argparse
import sys

from smartlink.core.database import SessionLocal
from smartlink.core.security import PASSWORD_MAX_LEN, PASSWORD_MIN_LEN, ROLES
from smartlink.services.users import create_user, find_conflicting_user


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create a Smart Link user.")
    parser.add_argument("username", help="Username (1-255 chars)")
    parser.add_argument("email", help="Email address used to log in")
    parser.add_argument("password", help=f"Password ({PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} chars)")
    parser.add_argument("role", nargs="?", default="user", choices=list(ROLES))
    args = parser.parse_args(argv)

    username = args.username.strip()
    email = args.email.strip().lower()
    if not username or len(username) > 255:
        print("Invalid username length.", file=sys.stderr)
        return 1
    if "@" not in email or len(email) > 255:
        print("Invalid email address.", file=sys.stderr)
        return 1
    if not (PASSWORD_MIN_LEN <= len(args.password) <= PASSWORD_MAX_LEN):
        print(f"Password must be {PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} characters.", file=sys.stderr)
        return 1

    db = SessionLocal()
    try:
        if find_conflicting_user(db, username, email) is not None:
            print(f"A user with username '{username}' or email '{email}' already exists.", file=sys.stderr)
            return 1
        create_user(db, username, email, args.password, role=args.role)
        print(f"Created user '{username}' <{email}> with role '{args.role}'.")
        return 0
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
