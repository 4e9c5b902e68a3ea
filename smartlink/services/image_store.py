"""Image store adapter: upload and delete cover images through the Cloudinary upload API."""

from __future__ import annotations

import hashlib
import logging
import re
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import httpx

if TYPE_CHECKING:
    from smartlink.core.config import Settings

logger = logging.getLogger(__name__)

# Applied on upload: fill an 800x600 box, automatic quality, then automatic delivery format.
UPLOAD_TRANSFORMATION = "c_fill,h_600,q_auto,w_800/f_auto"

# Hosted URLs look like .../image/upload/v1712345678/smart-links/abc123.jpg
PUBLIC_ID_PATTERN = re.compile(r"/v\d+/(.+)\.(jpg|jpeg|png|gif|webp)$")


class ImageUploadError(Exception):
    """Raised when an image cannot be stored (not configured, unreachable, or rejected)."""

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        self.message = message
        self.cause = cause
        super().__init__(message)


class ImageDeleteError(Exception):
    """Raised when the image store cannot be asked to delete an image."""

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        self.message = message
        self.cause = cause
        super().__init__(message)


@dataclass(frozen=True)
class UploadedImage:
    public_id: str
    url: str
    width: int | None
    height: int | None
    format: str | None


def is_data_uri(value: object) -> bool:
    return isinstance(value, str) and value.startswith("data:")


def extract_public_id(url: str | None) -> str | None:
    """Return the public id embedded in a hosted image URL, or None if the URL is not one."""
    if not url:
        return None
    match = PUBLIC_ID_PATTERN.search(url)
    return match.group(1) if match else None


def is_configured(settings: Settings) -> bool:
    if not settings.CLOUDINARY_CLOUD_NAME or not settings.CLOUDINARY_CLOUD_NAME.strip():
        return False
    if not settings.CLOUDINARY_API_KEY or not settings.CLOUDINARY_API_KEY.strip():
        return False
    if settings.CLOUDINARY_API_SECRET is None:
        return False
    return bool(settings.CLOUDINARY_API_SECRET.get_secret_value().strip())


def sign_params(params: dict[str, Any], api_secret: str) -> str:
    """SHA-1 request signature: sorted key=value pairs joined by '&', followed by the secret."""
    to_sign = "&".join(
        f"{key}={params[key]}" for key in sorted(params) if params[key] not in (None, "")
    )
    return hashlib.sha1(f"{to_sign}{api_secret}".encode("utf-8")).hexdigest()


def _signed_form(params: dict[str, Any], settings: Settings) -> dict[str, Any]:
    secret = settings.CLOUDINARY_API_SECRET.get_secret_value()  # type: ignore[union-attr]
    form = {**params, "timestamp": str(int(time.time()))}
    form["signature"] = sign_params(form, secret)
    form["api_key"] = settings.CLOUDINARY_API_KEY
    return form


def _endpoint(settings: Settings, action: str) -> str:
    return f"{settings.CLOUDINARY_BASE_URL}/{settings.CLOUDINARY_CLOUD_NAME}/image/{action}"


def _remote_error(resp: httpx.Response) -> str:
    try:
        body = resp.json()
        message = (body.get("error") or {}).get("message")
        if message:
            return str(message)
    except Exception:
        pass
    return resp.text[:500] if resp.text else f"HTTP {resp.status_code}"


async def upload_image(
    data: bytes | str,
    settings: Settings,
    folder: str | None = None,
) -> UploadedImage:
    """
    Upload raw image bytes or a data URI and return the hosted asset.

    Raises ImageUploadError with a summary of the remote error on any failure.
    """
    if not is_configured(settings):
        raise ImageUploadError(
            "Image upload failed: image storage is not configured "
            "(set CLOUDINARY_CLOUD_NAME, CLOUDINARY_API_KEY and CLOUDINARY_API_SECRET)."
        )
    form = _signed_form(
        {
            "folder": folder or settings.CLOUDINARY_FOLDER,
            "transformation": UPLOAD_TRANSFORMATION,
        },
        settings,
    )
    files = None
    if isinstance(data, bytes):
        files = {"file": ("upload", data, "application/octet-stream")}
    else:
        form["file"] = data

    start = time.perf_counter()
    try:
        async with httpx.AsyncClient(timeout=settings.CLOUDINARY_REQUEST_TIMEOUT_SEC) as client:
            resp = await client.post(_endpoint(settings, "upload"), data=form, files=files)
    except httpx.HTTPError as e:
        logger.info(
            "Image upload request failed",
            extra={"latency_seconds": time.perf_counter() - start, "status": "error"},
        )
        raise ImageUploadError(f"Image upload failed: {e!s}", cause=e) from e

    if resp.status_code >= 400:
        raise ImageUploadError(f"Image upload failed: {_remote_error(resp)}")
    try:
        body = resp.json()
        uploaded = UploadedImage(
            public_id=body["public_id"],
            url=body["secure_url"],
            width=body.get("width"),
            height=body.get("height"),
            format=body.get("format"),
        )
    except (ValueError, KeyError, TypeError) as e:
        raise ImageUploadError("Image upload failed: unexpected response from image store.", cause=e) from e

    logger.info(
        "Image uploaded",
        extra={
            "latency_seconds": time.perf_counter() - start,
            "public_id": uploaded.public_id,
        },
    )
    return uploaded


async def delete_image(public_id: str, settings: Settings) -> bool:
    """Ask the image store to remove an asset. True only when it confirms removal."""
    if not is_configured(settings):
        raise ImageDeleteError("Image delete failed: image storage is not configured.")
    form = _signed_form({"public_id": public_id}, settings)
    try:
        async with httpx.AsyncClient(timeout=settings.CLOUDINARY_REQUEST_TIMEOUT_SEC) as client:
            resp = await client.post(_endpoint(settings, "destroy"), data=form)
    except httpx.HTTPError as e:
        raise ImageDeleteError(f"Image delete failed: {e!s}", cause=e) from e
    if resp.status_code >= 400:
        raise ImageDeleteError(f"Image delete failed: {_remote_error(resp)}")
    try:
        return resp.json().get("result") == "ok"
    except ValueError as e:
        raise ImageDeleteError("Image delete failed: unexpected response from image store.", cause=e) from e
