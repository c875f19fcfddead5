"""Value objects shared by the interlinking services."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal

PageType = Literal["cms", "static", "external"]
Placement = Literal["introduction", "body", "conclusion"]


@dataclass
class PageMetadata:
    type: PageType = "cms"
    collection_id: str | None = None
    collection_name: str | None = None
    slug: str | None = None
    published_at: datetime | None = None
    updated_at: datetime | None = None
    tags: list[str] = field(default_factory=list)
    categories: list[str] = field(default_factory=list)
    author: str | None = None


@dataclass
class CrawledPage:
    """One repository item parsed into plain text."""

    id: str
    url: str
    title: str
    content: str
    excerpt: str
    metadata: PageMetadata
    keywords: list[str] = field(default_factory=list)
    topics: list[str] = field(default_factory=list)
    word_count: int = 0


@dataclass
class CrawledCollection:
    id: str
    name: str
    slug: str
    item_count: int


@dataclass
class CrawledContent:
    """Result of crawling a whole site."""

    pages: list[CrawledPage]
    collections: list[CrawledCollection]
    crawled_at: datetime

    @property
    def total_pages(self) -> int:
        return len(self.pages)


@dataclass
class IndexedContent:
    """A crawled page normalized for similarity lookups."""

    id: str
    page_id: str
    url: str
    title: str
    content: str
    excerpt: str
    topics: list[str]
    keywords: list[str]
    word_count: int
    metadata: PageMetadata
    indexed_at: datetime


@dataclass
class ContentCluster:
    """A topical grouping of indexed pages."""

    id: str
    name: str
    pillar: IndexedContent | None
    supporting: list[IndexedContent]
    long_tail: list[IndexedContent]
    topics: list[str]
    keywords: list[str]
    authority_score: float
    total_content: int
    content_gaps: list[str] = field(default_factory=list)

    @property
    def members(self) -> list[IndexedContent]:
        pillar = [self.pillar] if self.pillar else []
        return [*pillar, *self.supporting, *self.long_tail]


@dataclass
class ClusterAnalysis:
    clusters: list[ContentCluster]
    total_clusters: int
    total_pillars: int
    total_supporting: int
    total_long_tail: int
    average_authority: float
    recommendations: list[str] = field(default_factory=list)


@dataclass
class DraftContent:
    """The article being linked."""

    title: str
    content: str
    keywords: list[str]
    topics: list[str]


@dataclass
class LinkOpportunity:
    """A candidate internal or cluster link."""

    page_id: str
    url: str
    title: str
    anchor_text: str
    placement: Placement
    relevance_score: float
    authority_score: float
    link_value: float
    context: str
    reason: str
    link_type: Literal["internal", "cluster"] = "internal"


@dataclass
class InterlinkingAnalysis:
    internal_links: list[LinkOpportunity]
    cluster_links: list[LinkOpportunity]
    candidates_considered: int
    deep_analyzed: int = 0

    @property
    def all_links(self) -> list[LinkOpportunity]:
        """Internal then cluster opportunities, without repeating a page."""
        seen: set[str] = set()
        merged: list[LinkOpportunity] = []
        for link in [*self.internal_links, *self.cluster_links]:
            if link.page_id in seen:
                continue
            seen.add(link.page_id)
            merged.append(link)
        return merged


@dataclass
class ExternalLinkOpportunity:
    """A candidate outbound link."""

    url: str
    domain: str
    title: str
    description: str
    anchor_text: str
    relevance_score: float
    authority_score: float
    link_type: Literal["authority", "citation", "resource"]
    reason: str
    context: str

    @property
    def rank_score(self) -> float:
        return self.relevance_score + self.authority_score


@dataclass
class ExternalLinkAnalysis:
    opportunities: list[ExternalLinkOpportunity]
    authority_links: list[ExternalLinkOpportunity]
    citation_links: list[ExternalLinkOpportunity]
    resource_links: list[ExternalLinkOpportunity]
