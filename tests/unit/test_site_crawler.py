"""Unit tests for the site crawler and content indexer."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from contentops.core.exceptions import CrawlItemParseError, ExternalAPIError
from contentops.integrations.site_repository import ItemPage, SiteCollection
from contentops.services.interlinking.crawler import (
    SiteCrawler,
    build_content_loader,
    parse_item,
)
from contentops.services.interlinking.indexer import ContentIndexer

BLOG = SiteCollection(id="col_blog", name="Blog", slug="blog")
GUIDES = SiteCollection(id="col_guides", name="Guides", slug="guides")


def _item(item_id: str, name: str, body: str = "<p>Brush your dog weekly.</p>") -> dict:
    return {
        "id": item_id,
        "lastPublished": "2024-05-01T10:00:00Z",
        "fieldData": {
            "name": name,
            "slug": name.lower().replace(" ", "-"),
            "post-body": body,
            "tags": ["dogs", None, ""],
        },
    }


class _FakeRepository:
    def __init__(
        self,
        items: dict[str, list],
        *,
        failing: set[str] | None = None,
        full_bodies: dict[str, dict] | None = None,
    ) -> None:
        self.items = items
        self.failing = failing or set()
        self.full_bodies = full_bodies or {}
        self.calls: list[tuple[str, int, int]] = []

    async def list_collections(self, site_id: str) -> list[SiteCollection]:
        return [BLOG, GUIDES]

    async def list_items(
        self, collection_id: str, *, limit: int = 100, offset: int = 0
    ) -> ItemPage:
        self.calls.append((collection_id, limit, offset))
        if collection_id in self.failing:
            raise ExternalAPIError("Site content", "API error: 500 - boom")
        items = self.items.get(collection_id, [])
        return ItemPage(items=items[offset : offset + limit], total=len(items))

    async def get_item(self, collection_id: str, item_id: str) -> dict:
        return self.full_bodies[item_id]


def test_parse_item_extracts_text_and_metadata() -> None:
    page = parse_item(_item("item_1", "Dog Grooming Guide"), BLOG)

    assert page.id == "item_1"
    assert page.url == "/blog/dog-grooming-guide"
    assert page.title == "Dog Grooming Guide"
    assert page.content == "Brush your dog weekly."
    assert page.excerpt == "Brush your dog weekly."
    assert page.word_count == 4
    assert page.topics == ["grooming", "guide"]
    assert page.metadata.collection_id == "col_blog"
    assert page.metadata.tags == ["dogs"]
    assert page.metadata.published_at == datetime(2024, 5, 1, 10, 0, tzinfo=timezone.utc)


def test_parse_item_keeps_function_words_in_topics_and_keywords() -> None:
    page = parse_item(_item("item_2", "Grooming With Your Puppy Today"), BLOG)

    assert page.topics == ["grooming", "with", "your"]
    assert page.keywords[:3] == ["your", "grooming", "with"]
    assert "weekly" in page.keywords


def test_parse_item_rejects_malformed_items() -> None:
    with pytest.raises(CrawlItemParseError):
        parse_item("not an item", BLOG)
    with pytest.raises(CrawlItemParseError):
        parse_item({"fieldData": {}}, BLOG)
    with pytest.raises(CrawlItemParseError):
        parse_item({"id": "x", "fieldData": ["bad"]}, BLOG)


@pytest.mark.asyncio
async def test_crawl_website_skips_bad_items_and_failing_collections() -> None:
    repository = _FakeRepository(
        {"col_blog": [_item("item_1", "Dog Grooming Guide"), "broken", {"fieldData": {}}]},
        failing={"col_guides"},
    )

    result = await SiteCrawler(repository).crawl_website("site_1")

    assert [page.id for page in result.pages] == ["item_1"]
    assert [collection.id for collection in result.collections] == ["col_blog"]
    assert result.total_pages == 1


@pytest.mark.asyncio
async def test_crawl_collection_paginates_until_short_page() -> None:
    items = [_item(f"item_{index}", f"Post {index}") for index in range(5)]
    repository = _FakeRepository({"col_blog": items})
    crawler = SiteCrawler(repository, page_size=2)

    pages = await crawler.crawl_collection(BLOG)

    assert [page.id for page in pages] == [f"item_{index}" for index in range(5)]
    assert [offset for _, _, offset in repository.calls] == [0, 2, 4]


@pytest.mark.asyncio
async def test_crawl_collection_respects_item_cap() -> None:
    items = [_item(f"item_{index}", f"Post {index}") for index in range(5)]
    repository = _FakeRepository({"col_blog": items})
    crawler = SiteCrawler(repository, page_size=2, max_items_per_collection=3)

    pages = await crawler.crawl_collection(BLOG)

    assert len(pages) == 3
    assert repository.calls == [("col_blog", 2, 0), ("col_blog", 1, 2)]


@pytest.mark.asyncio
async def test_content_loader_reads_full_body() -> None:
    repository = _FakeRepository(
        {},
        full_bodies={"item_1": {"fieldData": {"post-body": "<p>Full body</p>"}}},
    )
    page = ContentIndexer().index_content([parse_item(_item("item_1", "Guide"), BLOG)])[0]

    body = await build_content_loader(repository)(page)

    assert body == "<p>Full body</p>"


def test_indexer_normalizes_terms_and_copies_metadata() -> None:
    page = parse_item(_item("item_1", "Dog Grooming Guide"), BLOG)
    page.keywords = ["Grooming", "grooming", "Dogs"]
    indexed_at = datetime(2024, 6, 1, tzinfo=timezone.utc)

    [entry] = ContentIndexer().index_content([page], indexed_at=indexed_at)

    assert entry.id == "idx_item_1"
    assert entry.page_id == "item_1"
    assert entry.keywords == ["Grooming", "Dogs"]
    assert entry.indexed_at == indexed_at
    assert entry.metadata == page.metadata
    assert entry.metadata is not page.metadata
