"""Request/response schemas for auth endpoints."""

from datetime import datetime

from pydantic import BaseModel, Field, field_validator


class SignupRequest(BaseModel):
    """New account details. Accounts are always created with role 'user'."""

    username: str = Field(..., min_length=1, max_length=255, description="Username")
    email: str = Field(..., min_length=3, max_length=255, description="Email address")
    password: str = Field(..., min_length=8, max_length=128, description="Password")

    @field_validator("username", "email")
    @classmethod
    def strip_and_require(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v

    @field_validator("email")
    @classmethod
    def validate_email_shape(cls, v: str) -> str:
        local, sep, domain = v.rpartition("@")
        if not sep or not local or "." not in domain:
            raise ValueError("must be a valid email address")
        return v.lower()


class LoginRequest(BaseModel):
    """Credentials for login."""

    # No length rules: any mismatch must surface as the same 401 as a wrong password.
    email: str = Field(..., description="Email address")
    password: str = Field(..., description="Password")

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()


class UserOut(BaseModel):
    """Public view of a user (no password)."""

    id: int
    username: str
    email: str
    role: str
    created_at: datetime | None = None
    updated_at: datetime | None = None

    class Config:
        from_attributes = True


class SignupResponse(BaseModel):
    message: str = "User created"
    user: UserOut


class LoginUser(BaseModel):
    id: int
    email: str
    role: str

    class Config:
        from_attributes = True


class LoginResponse(BaseModel):
    """JWT returned after successful login. Send it as: Authorization: Bearer <token>"""

    message: str = "Login successful"
    token: str = Field(..., description="JWT access token")
    user: LoginUser


class TokenClaims(BaseModel):
    """Verified claims carried by an access token."""

    sub: int
    role: str


class CurrentUser(BaseModel):
    """Authenticated caller (id, role) for dependency injection."""

    id: int
    role: str
