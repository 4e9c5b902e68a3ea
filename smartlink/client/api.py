"""Async HTTP client for the Smart Link REST API, holding the caller's bearer token."""

from __future__ import annotations

import logging
from typing import Any

import httpx

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """Non-2xx response from the API; `message` is the server's error message."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(message)


def _error_message(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return resp.text[:500] if resp.text else f"Request failed with status {resp.status_code}"
    if isinstance(body, dict):
        message = body.get("message") or body.get("detail")
        if message:
            return str(message)
    return f"Request failed with status {resp.status_code}"


class SmartLinkClient:
    """
    Thin wrapper over httpx.AsyncClient for every API endpoint.

    `login` stores the returned token and user; `logout` forgets them. Any 401
    response also drops the token, since it is no longer usable.
    """

    def __init__(
        self,
        base_url: str = "http://localhost:3001/api",
        token: str | None = None,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.token = token
        self.user: dict[str, Any] | None = None
        self._http = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> SmartLinkClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    @property
    def is_authenticated(self) -> bool:
        return self.token is not None

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        headers = dict(kwargs.pop("headers", None) or {})
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        try:
            resp = await self._http.request(method, path, headers=headers, **kwargs)
        except httpx.HTTPError as e:
            raise ApiError(f"Could not reach the API: {e!s}") from e
        if resp.status_code == 401:
            self.logout()
        if resp.status_code >= 400:
            raise ApiError(_error_message(resp), resp.status_code)
        try:
            return resp.json()
        except ValueError as e:
            raise ApiError("Unexpected non-JSON response from the API", resp.status_code) from e

    # Auth

    async def signup(self, username: str, email: str, password: str) -> dict[str, Any]:
        return await self._request(
            "POST",
            "/auth/signup",
            json={"username": username, "email": email, "password": password},
        )

    async def login(self, email: str, password: str) -> dict[str, Any]:
        data = await self._request("POST", "/auth/login", json={"email": email, "password": password})
        self.token = data["token"]
        self.user = data.get("user")
        return data

    def logout(self) -> None:
        """Client-side logout: tokens are not revocable server-side."""
        self.token = None
        self.user = None

    # Sites

    async def get_sites(self) -> list[dict[str, Any]]:
        return await self._request("GET", "/sites")

    async def get_site(self, site_id: int) -> dict[str, Any]:
        return await self._request("GET", f"/sites/{site_id}")

    async def create_site(self, data: dict[str, Any]) -> dict[str, Any]:
        return await self._request("POST", "/sites", json=data)

    async def update_site(self, site_id: int, data: dict[str, Any]) -> dict[str, Any]:
        return await self._request("PUT", f"/sites/{site_id}", json=data)

    async def delete_site(self, site_id: int) -> dict[str, Any]:
        return await self._request("DELETE", f"/sites/{site_id}")

    async def upload_image(
        self,
        content: bytes,
        filename: str = "image.jpg",
        content_type: str = "image/jpeg",
    ) -> dict[str, Any]:
        return await self._request(
            "POST",
            "/sites/upload-image",
            files={"image": (filename, content, content_type)},
        )

    async def create_site_with_image(
        self,
        data: dict[str, str],
        image: tuple[str, bytes, str] | None = None,
    ) -> dict[str, Any]:
        files = {"image": image} if image else None
        # httpx only sends multipart when files are present; force it for field-only posts.
        return await self._request("POST", "/sites/with-image", data=data, files=files or {"_": ("", b"")})

    async def update_site_with_image(
        self,
        site_id: int,
        data: dict[str, str],
        image: tuple[str, bytes, str] | None = None,
    ) -> dict[str, Any]:
        files = {"image": image} if image else None
        return await self._request(
            "PUT",
            f"/sites/{site_id}/with-image",
            data=data,
            files=files or {"_": ("", b"")},
        )

    # AI

    async def generate_description(self, title: str, category: str, link: str) -> str:
        data = await self._request(
            "POST",
            "/ai/generate-description",
            json={"title": title, "category": category, "link": link},
        )
        return data["description"]
