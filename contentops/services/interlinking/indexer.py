"""Content indexer: crawled pages to normalized, deduplicated index entries."""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone

from contentops.services.interlinking.models import CrawledPage, IndexedContent
from contentops.services.text_utils import unique_casefold


class ContentIndexer:
    """Pure 1:1 mapping from ``CrawledPage`` to ``IndexedContent``."""

    def index_content(
        self,
        pages: list[CrawledPage],
        indexed_at: datetime | None = None,
    ) -> list[IndexedContent]:
        timestamp = indexed_at or datetime.now(timezone.utc)
        return [self.index_page(page, timestamp) for page in pages]

    @staticmethod
    def index_page(page: CrawledPage, indexed_at: datetime) -> IndexedContent:
        return IndexedContent(
            id=f"idx_{page.id}",
            page_id=page.id,
            url=page.url,
            title=page.title,
            content=page.content,
            excerpt=page.excerpt,
            topics=unique_casefold(page.topics),
            keywords=unique_casefold(page.keywords),
            word_count=max(0, page.word_count),
            metadata=replace(page.metadata),
            indexed_at=indexed_at,
        )
