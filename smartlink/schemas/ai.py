"""Schemas for AI description generation."""

from pydantic import BaseModel, Field, field_validator


class DescriptionRequest(BaseModel):
    title: str = Field(..., min_length=1, description="Website title")
    category: str = Field(..., min_length=1, description="Website category")
    link: str = Field(..., min_length=1, description="Website URL")

    @field_validator("title", "category", "link")
    @classmethod
    def strip_and_require(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v


class DescriptionResponse(BaseModel):
    success: bool = True
    description: str
