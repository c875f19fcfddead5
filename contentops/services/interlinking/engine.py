"""Relevance-scored internal link recommendations for a draft article."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import replace
from datetime import datetime, timezone

from contentops.config import settings
from contentops.services.interlinking.models import (
    DraftContent,
    IndexedContent,
    InterlinkingAnalysis,
    LinkOpportunity,
    Placement,
)
from contentops.services.text_utils import html_to_text, jaccard_overlap

logger = logging.getLogger(__name__)

# Returns the full body of an indexed page, or None when it is unavailable.
ContentLoader = Callable[[IndexedContent], Awaitable[str | None]]


def leading_words(text: str, limit: int) -> list[str]:
    """First ``limit`` lowercase words longer than three characters."""
    return [word for word in text.lower().split() if len(word) > 3][:limit]


def title_similarity(left: str, right: str) -> float:
    return jaccard_overlap(left.lower().split(), right.lower().split())


def shared_terms(left: list[str], right: list[str]) -> list[str]:
    right_set = {term.lower() for term in right}
    return [term for term in left if term.lower() in right_set]


class InterlinkingEngine:
    """Score indexed pages against a draft and rank internal link candidates.

    Shallow relevance (0.0-1.0):
        0.4 keyword Jaccard + 0.3 topic Jaccard + 0.2 title-word Jaccard
        + 0.1 Jaccard of the first 50 content words

    Deep relevance, computed only for the top candidates when a content
    loader is configured, swaps topics for the full page body:
        0.4 keyword Jaccard + 0.2 title-word Jaccard
        + 0.4 Jaccard of the first 100 content words
    A deep score only ever replaces a lower shallow score.
    """

    WEIGHT_KEYWORDS = 0.4
    WEIGHT_TOPICS = 0.3
    WEIGHT_TITLE = 0.2
    WEIGHT_CONTENT = 0.1

    DEEP_WEIGHT_KEYWORDS = 0.4
    DEEP_WEIGHT_TITLE = 0.2
    DEEP_WEIGHT_CONTENT = 0.4

    WEIGHT_LINK_RELEVANCE = 0.6
    WEIGHT_LINK_AUTHORITY = 0.4

    SHALLOW_CONTENT_WORDS = 50
    DEEP_CONTENT_WORDS = 100
    CLUSTER_MIN_RELEVANCE = 0.4

    def __init__(
        self,
        min_relevance_score: float | None = None,
        max_internal_links: int = 5,
        include_cluster_links: bool = True,
        content_loader: ContentLoader | None = None,
        deep_top_n: int | None = None,
        now: datetime | None = None,
    ) -> None:
        """Initialize the engine.

        Args:
            min_relevance_score: Minimum shallow relevance for an internal link
            max_internal_links: Cap for internal and for cluster opportunities
            include_cluster_links: Whether to emit same-cluster opportunities
            content_loader: Enables deep analysis of the top candidates
            deep_top_n: How many candidates deep analysis may fetch
            now: Reference time for recency scoring
        """
        self.min_relevance_score = (
            settings.interlinking_min_relevance
            if min_relevance_score is None
            else min_relevance_score
        )
        self.max_internal_links = max_internal_links
        self.include_cluster_links = include_cluster_links
        self.content_loader = content_loader
        self.deep_top_n = deep_top_n or settings.interlinking_deep_top_n
        self.now = now

    async def analyze_interlinking(
        self,
        draft: DraftContent,
        indexed: list[IndexedContent],
    ) -> InterlinkingAnalysis:
        """Rank internal and cluster link opportunities for ``draft``."""
        draft_text = html_to_text(draft.content)
        candidates = [
            page for page in indexed
            if page.title.strip().lower() != draft.title.strip().lower()
        ]

        scored: list[LinkOpportunity] = []
        for page in candidates:
            relevance = self.relevance_score(draft, draft_text, page)
            scored.append(self.build_opportunity(draft, page, relevance))

        internal = self.rank(
            [link for link in scored if link.relevance_score >= self.min_relevance_score]
        )

        deep_analyzed = 0
        loader = self.content_loader
        if loader is not None and internal:
            internal, deep_analyzed = await self.deepen(
                draft, draft_text, internal, candidates, loader
            )

        cluster_links: list[LinkOpportunity] = []
        if self.include_cluster_links:
            cluster_links = self.cluster_opportunities(draft, candidates, scored)

        analysis = InterlinkingAnalysis(
            internal_links=self.dedupe(internal)[: self.max_internal_links],
            cluster_links=self.dedupe(cluster_links)[: self.max_internal_links],
            candidates_considered=len(candidates),
            deep_analyzed=deep_analyzed,
        )
        logger.info(
            "Interlinking analysis completed",
            extra={
                "candidates": len(candidates),
                "internal_links": len(analysis.internal_links),
                "cluster_links": len(analysis.cluster_links),
                "deep_analyzed": deep_analyzed,
            },
        )
        return analysis

    def relevance_score(
        self,
        draft: DraftContent,
        draft_text: str,
        page: IndexedContent,
    ) -> float:
        score = (
            jaccard_overlap(draft.keywords, page.keywords) * self.WEIGHT_KEYWORDS
            + jaccard_overlap(draft.topics, page.topics) * self.WEIGHT_TOPICS
            + title_similarity(draft.title, page.title) * self.WEIGHT_TITLE
            + jaccard_overlap(
                leading_words(draft_text, self.SHALLOW_CONTENT_WORDS),
                leading_words(page.content, self.SHALLOW_CONTENT_WORDS),
            )
            * self.WEIGHT_CONTENT
        )
        return min(1.0, score)

    def deep_relevance_score(
        self,
        draft: DraftContent,
        draft_text: str,
        page: IndexedContent,
        full_text: str,
    ) -> float:
        score = (
            jaccard_overlap(draft.keywords, page.keywords) * self.DEEP_WEIGHT_KEYWORDS
            + title_similarity(draft.title, page.title) * self.DEEP_WEIGHT_TITLE
            + jaccard_overlap(
                leading_words(draft_text, self.DEEP_CONTENT_WORDS),
                leading_words(full_text, self.DEEP_CONTENT_WORDS),
            )
            * self.DEEP_WEIGHT_CONTENT
        )
        return min(1.0, score)

    def authority_score(self, page: IndexedContent) -> float:
        score = 0.5
        if page.word_count > 2000:
            score += 0.2
        elif page.word_count > 1000:
            score += 0.1

        published_at = page.metadata.published_at
        if published_at is not None:
            now = self.now or datetime.now(timezone.utc)
            if published_at.tzinfo is None:
                published_at = published_at.replace(tzinfo=timezone.utc)
            age_days = (now - published_at).total_seconds() / 86400
            if age_days < 90:
                score += 0.1
            elif age_days < 365:
                score += 0.05

        if page.metadata.type == "cms":
            score += 0.1
        return min(1.0, score)

    @staticmethod
    def placement_for(relevance: float) -> Placement:
        if relevance > 0.7:
            return "introduction"
        if relevance > 0.4:
            return "body"
        return "conclusion"

    def build_opportunity(
        self,
        draft: DraftContent,
        page: IndexedContent,
        relevance: float,
    ) -> LinkOpportunity:
        authority = self.authority_score(page)
        topic = draft.topics[0] if draft.topics else draft.title
        return LinkOpportunity(
            page_id=page.page_id,
            url=page.url,
            title=page.title,
            anchor_text=page.title,
            placement=self.placement_for(relevance),
            relevance_score=relevance,
            authority_score=authority,
            link_value=self.link_value(relevance, authority),
            context=f"For more information about {topic}, see {page.title}.",
            reason=self.reason(draft, page, relevance),
        )

    def link_value(self, relevance: float, authority: float) -> float:
        return relevance * self.WEIGHT_LINK_RELEVANCE + authority * self.WEIGHT_LINK_AUTHORITY

    @staticmethod
    def reason(draft: DraftContent, page: IndexedContent, relevance: float) -> str:
        parts: list[str] = []
        if relevance > 0.7:
            parts.append("Highly relevant content")

        if jaccard_overlap(draft.topics, page.topics) > 0.5:
            parts.append(f"Shares topics: {', '.join(shared_terms(draft.topics, page.topics))}")
        if jaccard_overlap(draft.keywords, page.keywords) > 0.3:
            parts.append(
                f"Shares keywords: {', '.join(shared_terms(draft.keywords, page.keywords))}"
            )
        if page.word_count > 2000:
            parts.append("Comprehensive content")
        return "; ".join(parts) if parts else "Related content"

    def cluster_opportunities(
        self,
        draft: DraftContent,
        candidates: list[IndexedContent],
        scored: list[LinkOpportunity],
    ) -> list[LinkOpportunity]:
        """Pages sharing a topic or keyword with the draft and clearing the cluster bar."""
        threshold = max(self.CLUSTER_MIN_RELEVANCE, self.min_relevance_score)
        by_page = {link.page_id: link for link in scored}
        opportunities: list[LinkOpportunity] = []
        for page in candidates:
            if not (
                shared_terms(draft.topics, page.topics)
                or shared_terms(draft.keywords, page.keywords)
            ):
                continue
            link = by_page[page.page_id]
            if link.relevance_score < threshold:
                continue
            opportunities.append(
                replace(
                    link,
                    link_type="cluster",
                    reason=(
                        "Related content in the same topic cluster: "
                        f"{', '.join(page.topics)}"
                    ),
                )
            )
        return self.rank(opportunities)

    async def deepen(
        self,
        draft: DraftContent,
        draft_text: str,
        ranked: list[LinkOpportunity],
        candidates: list[IndexedContent],
        loader: ContentLoader,
    ) -> tuple[list[LinkOpportunity], int]:
        """Re-score the top candidates from their full body; failures keep shallow scores."""
        pages = {page.page_id: page for page in candidates}
        head = ranked[: self.deep_top_n]

        bodies = await asyncio.gather(
            *(loader(pages[link.page_id]) for link in head),
            return_exceptions=True,
        )

        deepened: list[LinkOpportunity] = []
        analyzed = 0
        for link, body in zip(head, bodies):
            if isinstance(body, Exception):
                logger.warning(
                    "Deep analysis failed for candidate",
                    extra={"page_id": link.page_id, "error": str(body)},
                )
                deepened.append(link)
                continue
            if isinstance(body, BaseException):
                raise body
            if not body:
                deepened.append(link)
                continue

            analyzed += 1
            page = pages[link.page_id]
            deep_score = self.deep_relevance_score(draft, draft_text, page, html_to_text(body))
            if deep_score > link.relevance_score:
                deepened.append(
                    replace(
                        link,
                        relevance_score=deep_score,
                        link_value=self.link_value(deep_score, link.authority_score),
                        placement=self.placement_for(deep_score),
                        reason=f"{link.reason}; Enhanced with full content analysis",
                    )
                )
            else:
                deepened.append(link)

        return self.rank([*deepened, *ranked[self.deep_top_n:]]), analyzed

    @staticmethod
    def rank(links: list[LinkOpportunity]) -> list[LinkOpportunity]:
        """Descending relevance, then link value, then URL."""
        return sorted(
            links,
            key=lambda link: (-link.relevance_score, -link.link_value, link.url),
        )

    @staticmethod
    def dedupe(links: list[LinkOpportunity]) -> list[LinkOpportunity]:
        seen: set[str] = set()
        unique: list[LinkOpportunity] = []
        for link in links:
            if link.page_id in seen:
                continue
            seen.add(link.page_id)
            unique.append(link)
        return unique
