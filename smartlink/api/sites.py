"""Site routes: public listing and admin CRUD with optional cover image upload."""

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, Request, UploadFile, status
from sqlalchemy.orm import Session

from smartlink.api.auth import require_admin
from smartlink.core.config import Settings, get_settings
from smartlink.core.database import get_db
from smartlink.core.errors import read_json_body, validated
from smartlink.models.site import (
    CATEGORY_MAX_LEN,
    COVER_IMAGE_MAX_LEN,
    SITE_URL_MAX_LEN,
    TITLE_MAX_LEN,
)
from smartlink.schemas.auth import CurrentUser
from smartlink.schemas.site import (
    ImageInfo,
    ImageUploadResponse,
    MessageResponse,
    SiteCreate,
    SiteOut,
    SiteUpdate,
)
from smartlink.services import sites as site_repo
from smartlink.services.image_store import (
    ImageDeleteError,
    ImageUploadError,
    delete_image,
    extract_public_id,
    is_data_uri,
    upload_image,
)

logger = logging.getLogger(__name__)

router = APIRouter()

# Oversized values are cut to the column width instead of rejected.
TRUNCATED_FIELDS = {
    "title": TITLE_MAX_LEN,
    "category": CATEGORY_MAX_LEN,
    "site_url": SITE_URL_MAX_LEN,
}
IMAGE_FIELD = "image"

AdminUser = Annotated[CurrentUser, Depends(require_admin)]
DbSession = Annotated[Session, Depends(get_db)]


def _truncate_fields(fields: dict[str, Any]) -> dict[str, Any]:
    out = dict(fields)
    for name, limit in TRUNCATED_FIELDS.items():
        value = out.get(name)
        if isinstance(value, str) and len(value) > limit:
            out[name] = value[:limit]
    return out


def _check_cover_image(value: str | None) -> None:
    """Only an empty string or a short http(s) URL may be persisted as cover_image."""
    if not value:
        return
    if len(value) > COVER_IMAGE_MAX_LEN or not value.lower().startswith(("http://", "https://")):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=(
                "cover_image too long or not a URL. Please upload the image via the upload "
                "endpoint or send an externally-hosted URL."
            ),
        )


def _is_upload_file(obj: object) -> bool:
    """True if obj is an uploaded file (UploadFile or file-like with filename and read)."""
    if isinstance(obj, UploadFile):
        return True
    return (
        hasattr(obj, "read")
        and callable(getattr(obj, "read", None))
        and hasattr(obj, "filename")
    )


async def _read_image_part(form: Any, settings: Settings, required: bool) -> bytes | None:
    """Return the bytes of the multipart 'image' part after type and size checks."""
    file = form.get(IMAGE_FIELD)
    if file is None or not _is_upload_file(file):
        if required:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"No image file provided in the '{IMAGE_FIELD}' field.",
            )
        return None
    content_type = (getattr(file, "content_type", None) or "").lower()
    if not content_type.startswith("image/"):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Only image files are allowed!",
        )
    content = await file.read()
    if len(content) > settings.MAX_IMAGE_BYTES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"File too large. Maximum size is {settings.MAX_IMAGE_BYTES // (1024 * 1024)}MB.",
        )
    if not content:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Uploaded image is empty.",
        )
    return content


def _require_multipart(request: Request) -> None:
    content_type = request.headers.get("content-type", "").split(";")[0].strip().lower()
    if content_type != "multipart/form-data":
        raise HTTPException(
            status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
            detail="Content-Type must be multipart/form-data.",
        )


def _form_limits(settings: Settings) -> dict[str, int]:
    # Text parts may carry a base64 data URI for cover_image, which is larger than the raw image.
    return {"max_part_size": settings.MAX_IMAGE_BYTES * 2}


def _form_fields(form: Any, names: tuple[str, ...]) -> dict[str, str]:
    return {name: form[name] for name in names if isinstance(form.get(name), str)}


async def _upload_cover(data: bytes | str, settings: Settings) -> str:
    """Upload a cover image and return its hosted URL; upload failures reject the request."""
    try:
        uploaded = await upload_image(data, settings)
    except ImageUploadError as e:
        logger.warning("Cover image upload failed: %s", e.message)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"message": "Invalid cover_image or upload failed", "error": e.message},
        ) from e
    return uploaded.url


async def _discard_image(url: str | None, settings: Settings) -> None:
    """Best-effort removal of a hosted image; failures are logged, never raised."""
    public_id = extract_public_id(url)
    if public_id is None:
        return
    try:
        removed = await delete_image(public_id, settings)
    except ImageDeleteError as e:
        logger.warning("Could not delete image %s: %s", public_id, e.message)
        return
    if not removed:
        logger.warning("Image store did not confirm removal of %s", public_id)


async def _prepare_fields(
    fields: dict[str, Any],
    settings: Settings,
    image_bytes: bytes | None = None,
) -> dict[str, Any]:
    """Truncate, resolve the cover image to a hosted URL, and validate it."""
    fields = _truncate_fields(fields)
    cover = fields.get("cover_image")
    if image_bytes is None and cover is not None and not is_data_uri(cover):
        _check_cover_image(cover)
    if image_bytes is not None:
        fields["cover_image"] = await _upload_cover(image_bytes, settings)
    elif is_data_uri(cover):
        fields["cover_image"] = await _upload_cover(cover, settings)
    if "cover_image" in fields:
        fields["cover_image"] = fields["cover_image"] or ""
        _check_cover_image(fields["cover_image"])
    return fields


def _update_fields(body: SiteUpdate) -> dict[str, Any]:
    # Explicit nulls mean "leave unchanged"; send "" to clear cover_image.
    return {k: v for k, v in body.model_dump(exclude_unset=True).items() if v is not None}


async def _create(db: Session, body: SiteCreate, settings: Settings, image_bytes: bytes | None) -> SiteOut:
    fields = await _prepare_fields(body.model_dump(), settings, image_bytes)
    site = site_repo.create_site(db, fields)
    logger.info("Site created", extra={"site_id": site.id})
    return SiteOut.model_validate(site)


async def _update(
    db: Session,
    site_id: int,
    body: SiteUpdate,
    settings: Settings,
    image_bytes: bytes | None,
) -> SiteOut:
    existing = site_repo.get_site(db, site_id)
    if existing is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Site not found")
    previous_cover = existing.cover_image
    fields = await _prepare_fields(_update_fields(body), settings, image_bytes)
    site = site_repo.update_site(db, site_id, fields)
    if site is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Site not found")
    if "cover_image" in fields and previous_cover and previous_cover != site.cover_image:
        await _discard_image(previous_cover, settings)
    logger.info("Site updated", extra={"site_id": site.id})
    return SiteOut.model_validate(site)


def _json_body_doc(model: type[SiteCreate] | type[SiteUpdate]) -> dict[str, Any]:
    """OpenAPI request body for routes that parse JSON themselves after the admin check."""
    return {
        "requestBody": {
            "required": True,
            "content": {"application/json": {"schema": model.model_json_schema()}},
        }
    }


@router.get("", response_model=list[SiteOut])
def get_sites(db: DbSession) -> list[SiteOut]:
    """All sites, newest first."""
    return [SiteOut.model_validate(s) for s in site_repo.list_sites(db)]


@router.post("/upload-image", response_model=ImageUploadResponse)
async def upload_site_image(
    request: Request,
    _admin: AdminUser,
) -> ImageUploadResponse:
    """Upload an image (multipart field `image`, image/* only, size-limited) and return its hosted URL."""
    settings = get_settings()
    _require_multipart(request)
    async with request.form(**_form_limits(settings)) as form:
        content = await _read_image_part(form, settings, required=True)
    try:
        uploaded = await upload_image(content, settings)
    except ImageUploadError as e:
        logger.warning("Image upload failed: %s", e.message)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"message": "Failed to upload image", "error": e.message},
        ) from e
    return ImageUploadResponse(
        message="Image uploaded successfully",
        image=ImageInfo(
            url=uploaded.url,
            public_id=uploaded.public_id,
            width=uploaded.width,
            height=uploaded.height,
            format=uploaded.format,
        ),
    )


@router.post("/with-image", response_model=SiteOut, status_code=status.HTTP_201_CREATED)
async def create_site_with_image(
    request: Request,
    db: DbSession,
    _admin: AdminUser,
) -> SiteOut:
    """
    Create a site from multipart form fields. An optional `image` file part is
    uploaded and used as the cover image instead of any `cover_image` field.
    """
    settings = get_settings()
    _require_multipart(request)
    async with request.form(**_form_limits(settings)) as form:
        body = validated(SiteCreate, _form_fields(form, tuple(SiteCreate.model_fields)))
        image_bytes = await _read_image_part(form, settings, required=False)
    return await _create(db, body, settings, image_bytes)


@router.get("/{site_id}", response_model=SiteOut)
def get_site(site_id: int, db: DbSession) -> SiteOut:
    site = site_repo.get_site(db, site_id)
    if site is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Site not found")
    return SiteOut.model_validate(site)


@router.post(
    "",
    response_model=SiteOut,
    status_code=status.HTTP_201_CREATED,
    openapi_extra=_json_body_doc(SiteCreate),
)
async def create_site_link(
    request: Request,
    db: DbSession,
    _admin: AdminUser,
) -> SiteOut:
    """
    Create a site (admin only).

    - **description** is required and must be non-empty.
    - **title**, **category** and **site_url** longer than 200/50/500 characters are truncated.
    - **cover_image** may be a hosted URL or a data URI; data URIs are uploaded first.
    """
    body = await read_json_body(request, SiteCreate)
    return await _create(db, body, get_settings(), None)


@router.put("/{site_id}", response_model=SiteOut, openapi_extra=_json_body_doc(SiteUpdate))
async def update_site_link(
    site_id: int,
    request: Request,
    db: DbSession,
    _admin: AdminUser,
) -> SiteOut:
    """Update any subset of title, site_url, category, description, cover_image (admin only)."""
    body = await read_json_body(request, SiteUpdate)
    return await _update(db, site_id, body, get_settings(), None)


@router.put("/{site_id}/with-image", response_model=SiteOut)
async def update_site_with_image(
    site_id: int,
    request: Request,
    db: DbSession,
    _admin: AdminUser,
) -> SiteOut:
    """Multipart variant of update; an `image` file part replaces the cover image."""
    settings = get_settings()
    _require_multipart(request)
    async with request.form(**_form_limits(settings)) as form:
        body = validated(SiteUpdate, _form_fields(form, tuple(SiteUpdate.model_fields)))
        image_bytes = await _read_image_part(form, settings, required=False)
    return await _update(db, site_id, body, settings, image_bytes)


@router.delete("/{site_id}", response_model=MessageResponse)
async def delete_site_link(
    site_id: int,
    db: DbSession,
    _admin: AdminUser,
) -> MessageResponse:
    """Delete a site (admin only). Its hosted cover image is removed first, best-effort."""
    settings = get_settings()
    site = site_repo.get_site(db, site_id)
    if site is not None and site.cover_image:
        await _discard_image(site.cover_image, settings)
    site_repo.delete_site(db, site_id)
    logger.info("Site deleted", extra={"site_id": site_id})
    return MessageResponse(message="Site deleted")
