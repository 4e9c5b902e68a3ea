"""Health check response."""

from typing import Literal

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    status: Literal["ok"] = "ok"
    environment: str
    database: Literal["connected", "disconnected"]
    image_store: Literal["configured", "unconfigured"] = Field(
        description="Whether Cloudinary credentials are present; uploads fail with 400 otherwise",
    )
