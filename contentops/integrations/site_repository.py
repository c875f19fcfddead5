"""Client for the site content repository (Webflow Data API v2 shape)."""

import logging
from dataclasses import dataclass, field
from typing import Any

import httpx

from contentops.config import settings
from contentops.core.exceptions import (
    APIKeyMissingError,
    ExternalAPIError,
    RateLimitExceededError,
)

logger = logging.getLogger(__name__)


@dataclass
class SiteCollection:
    """A CMS collection on the site."""

    id: str
    name: str
    slug: str


@dataclass
class ItemPage:
    """One page of collection items."""

    items: list[dict[str, Any]] = field(default_factory=list)
    total: int | None = None


class SiteContentRepository:
    """Read-only access to a site's CMS collections and items."""

    API_NAME = "Site content"

    def __init__(
        self,
        api_token: str,
        base_url: str | None = None,
        timeout: float | None = None,
    ) -> None:
        if not api_token:
            raise APIKeyMissingError(self.API_NAME)
        self.api_token = api_token
        self.base_url = (base_url or settings.site_api_base_url).rstrip("/")
        self.timeout = timeout or settings.site_api_timeout
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "SiteContentRepository":
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            headers={
                "Authorization": f"Bearer {self.api_token}",
                "Accept": "application/json",
            },
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

    async def list_collections(self, site_id: str) -> list[SiteCollection]:
        """List CMS collections for a site."""
        data = await self._get_json(f"/sites/{site_id}/collections")
        collections: list[SiteCollection] = []
        for raw in data.get("collections") or []:
            if not isinstance(raw, dict) or not raw.get("id"):
                continue
            slug = str(raw.get("slug") or raw["id"])
            collections.append(
                SiteCollection(
                    id=str(raw["id"]),
                    name=str(raw.get("displayName") or raw.get("name") or slug),
                    slug=slug,
                )
            )
        logger.info(
            "Listed site collections",
            extra={"site_id": site_id, "collection_count": len(collections)},
        )
        return collections

    async def list_items(
        self,
        collection_id: str,
        *,
        limit: int = 100,
        offset: int = 0,
    ) -> ItemPage:
        """Fetch one page of collection items."""
        data = await self._get_json(
            f"/collections/{collection_id}/items",
            params={"limit": limit, "offset": offset},
        )
        items = [item for item in data.get("items") or [] if isinstance(item, dict)]
        pagination = data.get("pagination") or {}
        total = pagination.get("total")
        return ItemPage(items=items, total=int(total) if total is not None else None)

    async def get_item(self, collection_id: str, item_id: str) -> dict[str, Any]:
        """Fetch a single item with its full field data."""
        return await self._get_json(f"/collections/{collection_id}/items/{item_id}")

    async def _get_json(
        self,
        path: str,
        params: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        try:
            response = await self.client.get(path, params=params)
        except httpx.HTTPError as e:
            logger.warning("Site content HTTP error", extra={"path": path, "error": str(e)})
            raise ExternalAPIError(self.API_NAME, str(e)) from e

        if response.status_code == 429:
            raise RateLimitExceededError(self.API_NAME)
        if response.status_code != 200:
            logger.warning(
                "Site content API error",
                extra={"path": path, "status": response.status_code},
            )
            raise ExternalAPIError(
                self.API_NAME,
                f"API error: {response.status_code} - {response.text[:200]}",
            )

        try:
            data = response.json()
        except ValueError as e:
            raise ExternalAPIError(self.API_NAME, "Invalid JSON response") from e
        if not isinstance(data, dict):
            raise ExternalAPIError(self.API_NAME, "Unexpected response shape")
        return data
