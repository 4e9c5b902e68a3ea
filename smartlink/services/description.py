"""Description generator: ask the local LLM (Ollama) for a short site blurb, with canned fallbacks."""

import logging
import time
from typing import TYPE_CHECKING

import httpx

if TYPE_CHECKING:
    from smartlink.core.config import Settings

logger = logging.getLogger(__name__)

# One fixed blurb per known category; {title} is substituted.
FALLBACK_DESCRIPTIONS: dict[str, str] = {
    "Technology": "A cutting-edge {title} solution that leverages modern technology to provide innovative features and seamless user experience.",
    "Design": "A beautifully crafted {title} platform that showcases exceptional design principles and user-centered approach.",
    "News": "Stay informed with {title}, your reliable source for the latest news and updates in the industry.",
    "Education": "Enhance your learning experience with {title}, a comprehensive educational resource designed for knowledge seekers.",
    "Entertainment": "Discover endless entertainment possibilities with {title}, your gateway to fun and engaging content.",
    "Business": "Boost your business productivity with {title}, a professional tool designed for modern enterprises.",
    "Health": "Take control of your wellness journey with {title}, a trusted resource for health and fitness information.",
    "Travel": "Explore the world with {title}, your ultimate travel companion for discovering new destinations and experiences.",
}

GENERIC_FALLBACK = (
    "Discover {title}, a valuable resource in the {category} category "
    "that offers unique insights and practical solutions."
)


class DescriptionServiceError(Exception):
    """Raised internally when the LLM cannot produce a description."""

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        self.message = message
        self.cause = cause
        super().__init__(message)


def fallback_description(title: str, category: str) -> str:
    """Deterministic description for when the LLM is unavailable. Never fails."""
    template = FALLBACK_DESCRIPTIONS.get(category)
    if template is None:
        return GENERIC_FALLBACK.format(title=title, category=category)
    return template.format(title=title)


def _build_prompt(title: str, category: str, link: str) -> str:
    return (
        f'Write a short, engaging description (2-3 sentences) for a website titled "{title}" '
        f'in the "{category}" category, available at {link}. The description should be '
        "informative, concise, and appealing to users. Focus on what makes this website "
        "valuable and unique. Respond with the description text only."
    )


async def _request_description(
    title: str,
    category: str,
    link: str,
    settings: "Settings",
) -> str:
    """Single attempt against Ollama. Raises DescriptionServiceError on any failure."""
    url = f"{settings.OLLAMA_BASE_URL.rstrip('/')}/api/generate"
    payload = {
        "model": settings.OLLAMA_MODEL,
        "prompt": _build_prompt(title, category, link),
        "stream": False,
        "options": {"temperature": settings.OLLAMA_TEMPERATURE},
    }
    timeout = httpx.Timeout(settings.OLLAMA_REQUEST_TIMEOUT_SEC)
    start = time.perf_counter()
    try:
        async with httpx.AsyncClient(timeout=timeout) as client:
            response = await client.post(url, json=payload)
    except httpx.HTTPError as e:
        raise DescriptionServiceError(f"Ollama request failed: {e!s}", cause=e) from e

    logger.info(
        "LLM description request completed",
        extra={
            "llm_latency_seconds": time.perf_counter() - start,
            "model": settings.OLLAMA_MODEL,
            "status_code": response.status_code,
        },
    )
    if response.status_code != 200:
        raise DescriptionServiceError(f"Ollama returned status {response.status_code}.")
    try:
        body = response.json()
    except ValueError as e:
        raise DescriptionServiceError("Ollama response body is not valid JSON.", cause=e) from e

    text = body.get("response") if isinstance(body, dict) else None
    if not isinstance(text, str) or not text.strip():
        raise DescriptionServiceError("Ollama returned an empty description.")
    return text.strip()


async def generate_description(
    title: str,
    category: str,
    link: str,
    settings: "Settings",
) -> str:
    """
    Generate a site description from its title, category and link.

    Upstream failures are logged and replaced by the category fallback, so this
    always returns a non-empty string.
    """
    try:
        return await _request_description(title, category, link, settings)
    except DescriptionServiceError as e:
        logger.warning("Falling back to canned description: %s", e.message)
        return fallback_description(title, category)
