"""Site crawler that turns CMS collection items into plain-text pages."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any

from contentops.config import settings
from contentops.core.exceptions import (
    CrawlCollectionError,
    CrawlItemParseError,
    ExternalAPIError,
)
from contentops.integrations.site_repository import SiteCollection, SiteContentRepository
from contentops.services.interlinking.engine import ContentLoader
from contentops.services.interlinking.models import (
    CrawledCollection,
    CrawledContent,
    CrawledPage,
    IndexedContent,
    PageMetadata,
)
from contentops.services.text_utils import (
    build_excerpt,
    count_words,
    html_to_text,
    title_topics,
    top_keywords,
)

logger = logging.getLogger(__name__)

TITLE_FIELDS = ("name", "title", "post-title")
CONTENT_FIELDS = ("content", "body", "post-body", "main-content")
EXCERPT_FIELDS = ("excerpt", "summary", "post-summary")
PUBLISHED_FIELDS = ("publish-date", "published-date")
AUTHOR_FIELDS = ("author", "author-name")


def _first_text(field_data: dict[str, Any], keys: tuple[str, ...]) -> str:
    for key in keys:
        value = field_data.get(key)
        if isinstance(value, str) and value.strip():
            return value
    return ""


def _parse_datetime(value: Any) -> datetime | None:
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _string_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [str(item) for item in value if item is not None and str(item).strip()]


def parse_item(item: Any, collection: SiteCollection) -> CrawledPage:
    """Parse one raw repository item.

    Raises:
        CrawlItemParseError: If the item has no usable id or field data
    """
    if not isinstance(item, dict):
        raise CrawlItemParseError(None, "item is not an object")
    item_id = item.get("id")
    if not item_id:
        raise CrawlItemParseError(None, "item has no id")
    field_data = item.get("fieldData") or {}
    if not isinstance(field_data, dict):
        raise CrawlItemParseError(str(item_id), "fieldData is not an object")

    title = _first_text(field_data, TITLE_FIELDS) or "Untitled"
    text = html_to_text(_first_text(field_data, CONTENT_FIELDS))
    raw_excerpt = html_to_text(_first_text(field_data, EXCERPT_FIELDS))
    slug = str(field_data.get("slug") or item.get("slug") or "")

    published_at = None
    for key in PUBLISHED_FIELDS:
        published_at = _parse_datetime(field_data.get(key))
        if published_at:
            break
    published_at = (
        published_at
        or _parse_datetime(item.get("lastPublished"))
        or _parse_datetime(item.get("publishedOn"))
    )
    updated_at = _parse_datetime(item.get("lastUpdated")) or published_at

    author = _first_text(field_data, AUTHOR_FIELDS) or None

    return CrawledPage(
        id=str(item_id),
        url=f"/{collection.slug}/{slug or item_id}",
        title=title,
        content=text,
        excerpt=raw_excerpt or build_excerpt(text),
        metadata=PageMetadata(
            type="cms",
            collection_id=collection.id,
            collection_name=collection.name,
            slug=slug or None,
            published_at=published_at,
            updated_at=updated_at,
            tags=_string_list(field_data.get("tags")),
            categories=_string_list(field_data.get("categories")),
            author=author,
        ),
        keywords=top_keywords(f"{title} {text}", limit=10),
        topics=title_topics(title),
        word_count=count_words(text),
    )


class SiteCrawler:
    """Crawl every collection of a site through a ``SiteContentRepository``.

    Collections are crawled concurrently (bounded by ``concurrency``) and the
    resulting pages keep collection order. A failing item or collection is
    logged and skipped; failing to list collections propagates.
    """

    def __init__(
        self,
        repository: SiteContentRepository,
        page_size: int | None = None,
        max_items_per_collection: int | None = None,
        concurrency: int | None = None,
    ) -> None:
        self.repository = repository
        self.page_size = page_size or settings.crawl_page_size
        self.max_items_per_collection = (
            max_items_per_collection or settings.crawl_max_items_per_collection
        )
        self.concurrency = concurrency or settings.crawl_concurrency

    async def crawl_collections(self, site_id: str) -> list[CrawledPage]:
        """Crawl all collections and return their pages."""
        result = await self.crawl_website(site_id)
        return result.pages

    async def crawl_website(self, site_id: str) -> CrawledContent:
        collections = await self.repository.list_collections(site_id)
        semaphore = asyncio.Semaphore(self.concurrency)

        async def crawl_one(collection: SiteCollection) -> list[CrawledPage]:
            async with semaphore:
                return await self.crawl_collection(collection)

        outcomes = await asyncio.gather(
            *(crawl_one(collection) for collection in collections),
            return_exceptions=True,
        )

        pages: list[CrawledPage] = []
        crawled_collections: list[CrawledCollection] = []
        for collection, outcome in zip(collections, outcomes):
            if isinstance(outcome, Exception):
                logger.warning(
                    "Skipping collection",
                    extra={"collection_id": collection.id, "error": str(outcome)},
                )
                continue
            if isinstance(outcome, BaseException):
                raise outcome
            pages.extend(outcome)
            crawled_collections.append(
                CrawledCollection(
                    id=collection.id,
                    name=collection.name,
                    slug=collection.slug,
                    item_count=len(outcome),
                )
            )

        logger.info(
            "Site crawl completed",
            extra={
                "site_id": site_id,
                "collections": len(crawled_collections),
                "pages": len(pages),
            },
        )
        return CrawledContent(
            pages=pages,
            collections=crawled_collections,
            crawled_at=datetime.now(timezone.utc),
        )

    async def crawl_collection(self, collection: SiteCollection) -> list[CrawledPage]:
        """Paginate one collection and parse its items.

        Raises:
            CrawlCollectionError: If a page of items cannot be fetched
        """
        pages: list[CrawledPage] = []
        offset = 0
        while offset < self.max_items_per_collection:
            limit = min(self.page_size, self.max_items_per_collection - offset)
            try:
                batch = await self.repository.list_items(
                    collection.id, limit=limit, offset=offset
                )
            except ExternalAPIError as e:
                raise CrawlCollectionError(collection.id, e.message) from e

            for item in batch.items:
                try:
                    pages.append(parse_item(item, collection))
                except CrawlItemParseError as e:
                    logger.warning(
                        "Skipping unparseable item",
                        extra={"collection_id": collection.id, "error": e.message},
                    )

            offset += len(batch.items)
            if len(batch.items) < limit:
                break
            if batch.total is not None and offset >= batch.total:
                break

        logger.debug(
            "Collection crawled",
            extra={"collection_id": collection.id, "pages": len(pages)},
        )
        return pages


def build_content_loader(repository: SiteContentRepository) -> ContentLoader:
    """Fetch the full body of an indexed page from its collection."""

    async def load(page: IndexedContent) -> str | None:
        if not page.metadata.collection_id:
            return None
        item = await repository.get_item(page.metadata.collection_id, page.page_id)
        field_data = item.get("fieldData") or {}
        if not isinstance(field_data, dict):
            return None
        return _first_text(field_data, CONTENT_FIELDS) or None

    return load
