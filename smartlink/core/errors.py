"""Exception handlers that render every error response as a JSON object with a `message` field."""

import json
import logging
from typing import Any, TypeVar

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


def _field_name(loc: tuple | list, error_type: str | None = None) -> str:
    if error_type == "json_invalid":
        return "body"
    # Drop the "body"/"query"/"path" prefix FastAPI adds to error locations.
    parts = [str(p) for p in loc if p not in ("body", "query", "path", "header")]
    return ".".join(parts) or "request"


def validation_message(errors: list[dict]) -> str:
    """Summarise pydantic errors as 'field: reason; field: reason'."""
    if not errors:
        return "Invalid request."
    return "; ".join(
        f"{_field_name(e.get('loc', ()), e.get('type'))}: {e.get('msg', 'invalid')}" for e in errors
    )


def validated(model: type[ModelT], data: Any) -> ModelT:
    """Validate already-parsed request data, reporting failures like FastAPI body validation."""
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise RequestValidationError(e.errors(include_url=False)) from e


async def read_json_body(request: Request, model: type[ModelT]) -> ModelT:
    """
    Parse and validate a JSON request body inside the route, so dependencies
    such as the authorization gate run before the body is looked at.
    """
    try:
        data = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise RequestValidationError(
            [{"type": "json_invalid", "loc": ("body",), "msg": "JSON decode error", "input": {}}]
        ) from e
    return validated(model, data)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    detail = exc.detail
    if isinstance(detail, dict) and "message" in detail:
        content = detail
    else:
        content = {"message": detail if isinstance(detail, str) else str(detail)}
    return JSONResponse(
        status_code=exc.status_code,
        content=content,
        headers=getattr(exc, "headers", None),
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = list(exc.errors())
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "message": validation_message(errors),
            "fields": [_field_name(e.get("loc", ()), e.get("type")) for e in errors],
        },
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"message": "Internal server error", "error": str(exc)},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Attach the JSON error envelope to the application."""
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
