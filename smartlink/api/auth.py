"""Signup/login routes and the bearer-token authorization gate (get_current_user, require_roles)."""

import logging
from collections.abc import Callable
from typing import Annotated

import jwt
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from smartlink.core.database import get_db
from smartlink.core.security import (
    ROLE_ADMIN,
    burn_password_check,
    create_access_token,
    decode_access_token,
    verify_password,
)
from smartlink.schemas.auth import (
    CurrentUser,
    LoginRequest,
    LoginResponse,
    LoginUser,
    SignupRequest,
    SignupResponse,
    UserOut,
)
from smartlink.services.users import create_user, find_conflicting_user, find_user_by_email

logger = logging.getLogger(__name__)

router = APIRouter()
security = HTTPBearer(auto_error=False)

# Same message for unknown email and wrong password so responses do not reveal which accounts exist.
INVALID_CREDENTIALS = "Invalid email or password"


@router.post("/signup", response_model=SignupResponse, status_code=status.HTTP_201_CREATED)
def signup(
    body: SignupRequest,
    db: Annotated[Session, Depends(get_db)],
) -> SignupResponse:
    """Register a new account with role 'user'."""
    existing = find_conflicting_user(db, body.username, body.email)
    if existing is not None:
        detail = "Email already exists" if existing.email == body.email else "Username already exists"
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=detail)
    try:
        user = create_user(db, body.username, body.email, body.password)
    except IntegrityError:
        # Lost a race with a concurrent signup for the same email/username.
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already exists")
    logger.info("User signed up", extra={"user_id": user.id})
    return SignupResponse(message="User created", user=UserOut.model_validate(user))


@router.post("/login", response_model=LoginResponse)
def login(
    body: LoginRequest,
    db: Annotated[Session, Depends(get_db)],
) -> LoginResponse:
    """
    Authenticate with email and password; returns a JWT valid for JWT_EXPIRE_MINUTES.
    Include the token in the Authorization header as: Bearer <token>
    """
    user = find_user_by_email(db, body.email)
    if user is None:
        burn_password_check(body.password)
    if user is None or not verify_password(body.password, user.password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=INVALID_CREDENTIALS,
        )
    token = create_access_token(sub=user.id, role=user.role)
    return LoginResponse(
        message="Login successful",
        token=token,
        user=LoginUser(id=user.id, email=user.email, role=user.role),
    )


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
) -> CurrentUser:
    """Dependency: require a valid Bearer JWT. Raises 401 if missing or invalid; no database lookup."""
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    try:
        claims = decode_access_token(credentials.credentials)
    except jwt.PyJWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return CurrentUser(id=claims.sub, role=claims.role)


def require_roles(*roles: str) -> Callable[..., CurrentUser]:
    """
    Dependency factory: authenticated caller whose role is in `roles`.
    With no roles any authenticated caller passes. Raises 403 for other roles.
    Usage: Depends(require_roles("admin"))
    """
    allowed = frozenset(roles)

    def role_checker(
        current_user: Annotated[CurrentUser, Depends(get_current_user)],
    ) -> CurrentUser:
        if allowed and current_user.role not in allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Access denied",
            )
        return current_user

    return role_checker


require_admin = require_roles(ROLE_ADMIN)
