"""AI endpoint: generate a site description from title, category and link (admin only)."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request

from smartlink.api.auth import require_admin
from smartlink.core.config import get_settings
from smartlink.core.errors import read_json_body
from smartlink.schemas.ai import DescriptionRequest, DescriptionResponse
from smartlink.schemas.auth import CurrentUser
from smartlink.services.description import generate_description

router = APIRouter()


@router.post(
    "/generate-description",
    response_model=DescriptionResponse,
    openapi_extra={
        "requestBody": {
            "required": True,
            "content": {"application/json": {"schema": DescriptionRequest.model_json_schema()}},
        }
    },
)
async def post_generate_description(
    request: Request,
    _admin: Annotated[CurrentUser, Depends(require_admin)],
) -> DescriptionResponse:
    """
    Write a short (2-3 sentence) description for a website via the local LLM.

    When the LLM is unreachable or returns nothing usable, a fixed description
    for the category is returned instead, so this endpoint does not fail on
    upstream errors.
    """
    body = await read_json_body(request, DescriptionRequest)
    description = await generate_description(
        body.title,
        body.category,
        body.link,
        get_settings(),
    )
    return DescriptionResponse(success=True, description=description)
