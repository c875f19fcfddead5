"""Client for the image generation service."""

import logging
from dataclasses import dataclass, field
from typing import Any

import httpx

from contentops.config import settings
from contentops.core.exceptions import ImageGenerationError
from contentops.core.retry import retry_with_backoff

logger = logging.getLogger(__name__)

DEFAULT_NEGATIVE_PROMPT = "blurry, low quality, watermark, text overlay, logo"


@dataclass
class ImageRequest:
    """Parameters for one generated image."""

    prompt: str
    style: str = "photographic"
    aspect_ratio: str = "16:9"
    width: int = 1920
    height: int = 1080
    quality: str = "high"
    negative_prompt: str = DEFAULT_NEGATIVE_PROMPT
    tags: list[str] = field(default_factory=list)

    def to_payload(self) -> dict[str, Any]:
        return {
            "prompt": self.prompt,
            "style": self.style,
            "aspect_ratio": self.aspect_ratio,
            "width": self.width,
            "height": self.height,
            "quality": self.quality,
            "negative_prompt": self.negative_prompt,
            "tags": self.tags,
        }


@dataclass
class RenderedImage:
    """An image returned by the service."""

    image_id: str
    url: str
    width: int
    height: int
    format: str = "png"


def build_featured_prompt(topic: str, keywords: list[str]) -> str:
    keyword_text = f" featuring {', '.join(keywords[:3])}" if keywords else ""
    return (
        f"Professional blog post featured image: {topic}{keyword_text}, "
        "high quality, modern design, clean background"
    )


def build_thumbnail_prompt(topic: str) -> str:
    return f"Square thumbnail illustration for a blog post about {topic}, simple composition"


def build_inline_prompt(topic: str, heading: str) -> str:
    return f"Blog post illustration for the section '{heading}' of an article about {topic}"


class ImageClient:
    """Generate images over HTTP.

    ``generate_image`` returns ``None`` when the service answers but produces
    nothing usable, and raises ``ImageGenerationError`` when the request
    itself fails after retries.
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        retry_attempts: int = 2,
        retry_backoff_ms: int = 1000,
    ) -> None:
        self.api_key = api_key or settings.image_api_key
        self.base_url = (base_url or settings.image_api_base_url).rstrip("/")
        self.timeout = timeout or settings.image_api_timeout
        self.retry_attempts = retry_attempts
        self.retry_backoff_ms = retry_backoff_ms
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "ImageClient":
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            headers=headers,
        )
        return self

    async def __aexit__(self, *args: Any) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            raise RuntimeError("Client must be used as async context manager")
        return self._client

    async def generate_image(self, request: ImageRequest) -> RenderedImage | None:
        """Generate one image.

        Args:
            request: Prompt and dimensions

        Returns:
            The first generated image, or None when the service returned none
        """
        try:
            response = await retry_with_backoff(
                attempts=self.retry_attempts,
                backoff_ms=self.retry_backoff_ms,
                coro_factory=lambda: self.client.post(
                    "/images/generate", json=request.to_payload()
                ),
                retry_on=(httpx.TransportError,),
            )
        except httpx.HTTPError as e:
            logger.warning("Image generation HTTP error", extra={"error": str(e)})
            raise ImageGenerationError(str(e)) from e

        if response.status_code != 200:
            logger.warning(
                "Image generation API error",
                extra={"status": response.status_code, "prompt": request.prompt[:80]},
            )
            raise ImageGenerationError(f"API error: {response.status_code} - {response.text}")

        try:
            data = response.json()
        except ValueError as e:
            raise ImageGenerationError("Invalid JSON response") from e

        images = data.get("images") or []
        if not data.get("success", True) or not images:
            logger.warning(
                "Image generation returned no images",
                extra={"error": data.get("error_message")},
            )
            return None

        first = images[0]
        url = first.get("image_url")
        if not url:
            logger.warning("Generated image has no URL", extra={"image_id": first.get("image_id")})
            return None

        return RenderedImage(
            image_id=str(first.get("image_id") or ""),
            url=str(url),
            width=int(first.get("width") or request.width),
            height=int(first.get("height") or request.height),
            format=str(first.get("format") or "png"),
        )
