"""User accessors for signup, login and the create_user script."""

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from smartlink.core.security import ROLE_USER, hash_password
from smartlink.models import User


def find_user_by_email(db: Session, email: str) -> User | None:
    return db.scalars(select(User).where(User.email == email.strip().lower())).first()


def find_conflicting_user(db: Session, username: str, email: str) -> User | None:
    """Return an existing user holding this username or email, if any."""
    stmt = select(User).where(
        or_(User.email == email.strip().lower(), User.username == username.strip())
    )
    return db.scalars(stmt).first()


def create_user(
    db: Session,
    username: str,
    email: str,
    password: str,
    role: str = ROLE_USER,
) -> User:
    """Persist a new user with a bcrypt-hashed password."""
    user = User(
        username=username.strip(),
        email=email.strip().lower(),
        password=hash_password(password),
        role=role,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user
