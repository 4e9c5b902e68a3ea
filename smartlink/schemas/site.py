"""Schemas for site entries and image uploads."""

from datetime import datetime

from pydantic import BaseModel, Field, field_validator


def _require_text(v: str | None) -> str | None:
    if v is None:
        return v
    if not v.strip():
        raise ValueError("must not be empty")
    return v


class SiteCreate(BaseModel):
    """
    Fields for a new site. Oversized title/category/site_url are truncated by the
    API rather than rejected, so no max_length is declared here.
    """

    title: str = Field(..., min_length=1, description="Website title")
    site_url: str = Field(..., min_length=1, description="Website URL")
    category: str = Field(..., min_length=1, description="Website category")
    description: str = Field(..., description="Site description (required, non-empty)")
    cover_image: str | None = Field(
        default=None,
        description="Hosted image URL, or a data URI that is uploaded before saving",
    )

    @field_validator("title", "site_url", "category", "description")
    @classmethod
    def require_text(cls, v: str | None) -> str | None:
        return _require_text(v)


class SiteUpdate(BaseModel):
    """Partial update; only supplied fields change."""

    title: str | None = None
    site_url: str | None = None
    category: str | None = None
    description: str | None = None
    cover_image: str | None = None

    @field_validator("title", "site_url", "category", "description")
    @classmethod
    def require_text(cls, v: str | None) -> str | None:
        return _require_text(v)


class SiteOut(BaseModel):
    id: int
    site_url: str
    title: str
    cover_image: str
    description: str
    category: str
    created_at: datetime | None = None
    updated_at: datetime | None = None

    class Config:
        from_attributes = True


class MessageResponse(BaseModel):
    message: str


class ImageInfo(BaseModel):
    url: str
    public_id: str
    width: int | None = None
    height: int | None = None
    format: str | None = None


class ImageUploadResponse(BaseModel):
    message: str = "Image uploaded successfully"
    image: ImageInfo
