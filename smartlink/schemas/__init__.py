"""Pydantic request/response schemas."""

from smartlink.schemas.ai import DescriptionRequest, DescriptionResponse
from smartlink.schemas.auth import (
    CurrentUser,
    LoginRequest,
    LoginResponse,
    LoginUser,
    SignupRequest,
    SignupResponse,
    TokenClaims,
    UserOut,
)
from smartlink.schemas.health import HealthResponse
from smartlink.schemas.site import (
    ImageInfo,
    ImageUploadResponse,
    MessageResponse,
    SiteCreate,
    SiteOut,
    SiteUpdate,
)

__all__ = [
    "CurrentUser",
    "DescriptionRequest",
    "DescriptionResponse",
    "HealthResponse",
    "ImageInfo",
    "ImageUploadResponse",
    "LoginRequest",
    "LoginResponse",
    "LoginUser",
    "MessageResponse",
    "SignupRequest",
    "SignupResponse",
    "SiteCreate",
    "SiteOut",
    "SiteUpdate",
    "TokenClaims",
    "UserOut",
]
