"""Unit tests for internal link scoring and ranking."""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timedelta, timezone

import pytest

from contentops.services.interlinking.engine import InterlinkingEngine
from contentops.services.interlinking.models import (
    DraftContent,
    IndexedContent,
    InterlinkingAnalysis,
    LinkOpportunity,
    PageMetadata,
)

NOW = datetime(2024, 6, 1, tzinfo=timezone.utc)
DRAFT_CONTENT = "<p>Regular pet grooming keeps dogs healthy and clean</p>"


def _draft() -> DraftContent:
    return DraftContent(
        title="Best Pet Grooming Services",
        content=DRAFT_CONTENT,
        keywords=["pet grooming", "dog grooming"],
        topics=["grooming", "pets"],
    )


def _indexed(
    page_id: str,
    *,
    title: str | None = None,
    topics: list[str] | None = None,
    keywords: list[str] | None = None,
    content: str = "",
    word_count: int = 600,
    published_at: datetime | None = None,
) -> IndexedContent:
    return IndexedContent(
        id=f"idx_{page_id}",
        page_id=page_id,
        url=f"/blog/{page_id}",
        title=title or f"Page {page_id}",
        content=content,
        excerpt="",
        topics=topics or [],
        keywords=keywords or [],
        word_count=word_count,
        metadata=PageMetadata(collection_id="col_blog", published_at=published_at),
        indexed_at=NOW,
    )


def _ladder(count: int = 10) -> list[IndexedContent]:
    """Pages whose topic overlap with the draft decreases with their index."""
    return [
        _indexed(
            f"page_{index}",
            topics=["grooming", *(f"extra{extra}" for extra in range(index))],
        )
        for index in range(count)
    ]


def _link(page_id: str, link_type: str = "internal") -> LinkOpportunity:
    return LinkOpportunity(
        page_id=page_id,
        url=f"/blog/{page_id}",
        title=page_id,
        anchor_text=page_id,
        placement="body",
        relevance_score=0.5,
        authority_score=0.5,
        link_value=0.5,
        context="",
        reason="",
        link_type=link_type,
    )


def test_relevance_score_weights() -> None:
    engine = InterlinkingEngine(now=NOW)
    page = _indexed(
        "twin",
        title="Best Pet Grooming Services Guide",
        topics=["grooming", "pets"],
        keywords=["pet grooming", "dog grooming"],
        content="Regular pet grooming keeps dogs healthy and clean",
    )

    draft_text = "Regular pet grooming keeps dogs healthy and clean"

    score = engine.relevance_score(_draft(), draft_text, page)

    assert score == pytest.approx(0.4 + 0.3 + 0.2 * 4 / 5 + 0.1)
    assert engine.placement_for(score) == "introduction"


def test_authority_score_rewards_length_recency_and_cms() -> None:
    engine = InterlinkingEngine(now=NOW)
    page = _indexed("long", word_count=2500, published_at=NOW - timedelta(days=30))

    assert engine.authority_score(page) == pytest.approx(0.9)


@pytest.mark.asyncio
async def test_caps_internal_links_and_ranks_by_relevance() -> None:
    engine = InterlinkingEngine(min_relevance_score=0.0, max_internal_links=5, now=NOW)
    pages = [*_ladder(10), _indexed("self", title="best pet grooming services ")]

    analysis = await engine.analyze_interlinking(_draft(), pages)

    assert analysis.candidates_considered == 10
    assert [link.page_id for link in analysis.internal_links] == [
        f"page_{index}" for index in range(5)
    ]
    scores = [link.relevance_score for link in analysis.internal_links]
    assert scores == sorted(scores, reverse=True)
    assert analysis.cluster_links == []


@pytest.mark.asyncio
async def test_min_relevance_filters_candidates() -> None:
    engine = InterlinkingEngine(min_relevance_score=0.08, now=NOW)

    analysis = await engine.analyze_interlinking(_draft(), _ladder(4))

    # 0.3 * 1/2 and 0.3 * 1/3 clear the bar; 0.3 * 1/4 does not.
    assert [link.page_id for link in analysis.internal_links] == ["page_0", "page_1"]


@pytest.mark.asyncio
async def test_deep_analysis_never_lowers_a_score() -> None:
    async def unrelated(page: IndexedContent) -> str:
        return "<p>completely unrelated words about furniture</p>"

    shallow = await InterlinkingEngine(min_relevance_score=0.0, now=NOW).analyze_interlinking(
        _draft(), _ladder(6)
    )
    deep = await InterlinkingEngine(
        min_relevance_score=0.0,
        content_loader=unrelated,
        deep_top_n=3,
        now=NOW,
    ).analyze_interlinking(_draft(), _ladder(6))

    shallow_scores = {link.page_id: link.relevance_score for link in shallow.internal_links}
    assert deep.deep_analyzed == 3
    for link in deep.internal_links:
        assert link.relevance_score >= shallow_scores[link.page_id]


@pytest.mark.asyncio
async def test_deep_analysis_promotes_matching_body() -> None:
    async def loader(page: IndexedContent) -> str | None:
        return DRAFT_CONTENT if page.page_id == "page_4" else None

    engine = InterlinkingEngine(min_relevance_score=0.0, content_loader=loader, now=NOW)

    analysis = await engine.analyze_interlinking(_draft(), _ladder(6))

    top = analysis.internal_links[0]
    assert analysis.deep_analyzed == 1
    assert top.page_id == "page_4"
    assert top.relevance_score == pytest.approx(0.4)
    assert top.reason.endswith("Enhanced with full content analysis")


@pytest.mark.asyncio
async def test_failing_loader_keeps_shallow_scores() -> None:
    async def failing(page: IndexedContent) -> str:
        raise RuntimeError("repository unavailable")

    engine = InterlinkingEngine(min_relevance_score=0.0, content_loader=failing, now=NOW)

    analysis = await engine.analyze_interlinking(_draft(), _ladder(3))

    assert analysis.deep_analyzed == 0
    assert [link.page_id for link in analysis.internal_links] == ["page_0", "page_1", "page_2"]


@pytest.mark.asyncio
async def test_cluster_links_require_shared_terms_and_relevance() -> None:
    twin = _indexed(
        "twin",
        title="Pet Grooming Services Near You",
        topics=["grooming", "pets"],
        keywords=["pet grooming"],
    )
    engine = InterlinkingEngine(now=NOW)

    analysis = await engine.analyze_interlinking(_draft(), [twin, *_ladder(2)])

    assert [link.page_id for link in analysis.cluster_links] == ["twin"]
    assert analysis.cluster_links[0].link_type == "cluster"
    assert analysis.cluster_links[0].reason.startswith("Related content in the same topic cluster")
    assert [link.page_id for link in analysis.all_links].count("twin") == 1


def test_all_links_prefers_internal_and_skips_repeated_pages() -> None:
    analysis = InterlinkingAnalysis(
        internal_links=[_link("a")],
        cluster_links=[_link("a", "cluster"), _link("b", "cluster")],
        candidates_considered=2,
    )

    assert [(link.page_id, link.link_type) for link in analysis.all_links] == [
        ("a", "internal"),
        ("b", "cluster"),
    ]


def test_rank_breaks_relevance_ties_by_link_value() -> None:
    low = replace(_link("low"), link_value=0.2)
    high = replace(_link("high"), link_value=0.8)

    assert [link.page_id for link in InterlinkingEngine.rank([low, high])] == ["high", "low"]


def test_rank_falls_back_to_url_when_scores_tie() -> None:
    links = [_link("zebra"), _link("apple"), _link("mango")]

    ranked = InterlinkingEngine.rank(links)

    assert [link.url for link in ranked] == ["/blog/apple", "/blog/mango", "/blog/zebra"]
