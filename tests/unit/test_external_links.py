"""Unit tests for external link discovery and the link-source catalog."""

from __future__ import annotations

from pathlib import Path

import pytest

from contentops.core.exceptions import LinkSourceCatalogError
from contentops.services.interlinking.external_links import (
    ExternalLinkFinder,
    TopicCategory,
    classify_topic,
    load_link_source_catalog,
)
from contentops.services.interlinking.models import DraftContent


def _draft(topics: list[str], keywords: list[str]) -> DraftContent:
    return DraftContent(title="Draft", content="", keywords=keywords, topics=topics)


@pytest.fixture
def catalog():
    return load_link_source_catalog()


def test_packaged_catalog_loads(catalog) -> None:
    assert catalog.version == 1
    assert catalog.category(TopicCategory.GENERAL) is not None
    assert catalog.scores["authority"].authority == 0.9


def test_classify_topic_uses_first_matching_category(catalog) -> None:
    assert classify_topic("Software tools", catalog) == TopicCategory.TECHNOLOGY
    assert classify_topic("healthy dogs", catalog) == TopicCategory.HEALTH
    assert classify_topic("seo for tech startups", catalog) == TopicCategory.TECHNOLOGY
    assert classify_topic("grooming", catalog) == TopicCategory.GENERAL


def test_find_external_links_ranks_and_caps(catalog) -> None:
    analysis = ExternalLinkFinder(catalog).find_external_links(
        _draft(["grooming"], ["pet grooming", "dogs"]),
        max_links=3,
    )

    assert [link.link_type for link in analysis.opportunities] == [
        "authority",
        "authority",
        "citation",
    ]
    assert [link.url for link in analysis.opportunities] == [
        "https://en.wikipedia.org/wiki/grooming",
        "https://www.britannica.com/search?query=grooming",
        "https://scholar.google.com/scholar?q=pet+grooming",
    ]
    assert analysis.opportunities[0].anchor_text == "Learn more about grooming"
    assert analysis.opportunities[2].anchor_text == "research on pet grooming"
    assert [link.domain for link in analysis.resource_links] == ["wikipedia.org"]


def test_rank_scores_are_non_increasing(catalog) -> None:
    analysis = ExternalLinkFinder(catalog).find_external_links(
        _draft(["software", "marketing", "grooming"], ["software testing", "content marketing"]),
        max_links=5,
    )

    scores = [link.rank_score for link in analysis.opportunities]
    assert len(scores) == 5
    assert scores == sorted(scores, reverse=True)


def test_max_links_zero_returns_nothing(catalog) -> None:
    analysis = ExternalLinkFinder(catalog).find_external_links(
        _draft(["grooming"], ["pet grooming"]),
        max_links=0,
    )

    assert analysis.opportunities == []
    assert analysis.authority_links == []


def test_category_restricted_citations_need_a_matching_topic(catalog) -> None:
    finder = ExternalLinkFinder(catalog)

    health = finder.citation_links(["nutrition"], ["health"])
    general = finder.citation_links(["nutrition"], ["grooming"])

    assert [link.domain for link in health] == [
        "scholar.google.com",
        "pubmed.ncbi.nlm.nih.gov",
    ]
    assert health[1].url == "https://pubmed.ncbi.nlm.nih.gov/?term=nutrition"
    assert [link.domain for link in general] == ["scholar.google.com"]


def test_short_keywords_are_not_cited(catalog) -> None:
    assert ExternalLinkFinder(catalog).citation_links(["dogs", "cats"], ["grooming"]) == []


def test_missing_catalog_file_raises(tmp_path: Path) -> None:
    with pytest.raises(LinkSourceCatalogError):
        load_link_source_catalog(tmp_path / "missing.yaml")


def test_non_mapping_catalog_raises(tmp_path: Path) -> None:
    path = tmp_path / "catalog.yaml"
    path.write_text("- wikipedia.org\n- britannica.com\n", encoding="utf-8")

    with pytest.raises(LinkSourceCatalogError):
        load_link_source_catalog(path)


def test_catalog_with_unknown_category_raises(tmp_path: Path) -> None:
    path = tmp_path / "catalog.yaml"
    path.write_text(
        "version: 1\n"
        "categories:\n"
        "  - name: astrology\n"
        "scores:\n"
        "  authority: {relevance: 0.7, authority: 0.9}\n"
        "  resource: {relevance: 0.5, authority: 0.7}\n",
        encoding="utf-8",
    )

    with pytest.raises(LinkSourceCatalogError):
        load_link_source_catalog(path)


def test_catalog_without_resource_scores_raises(tmp_path: Path) -> None:
    path = tmp_path / "catalog.yaml"
    path.write_text(
        "version: 1\n"
        "categories: []\n"
        "scores:\n"
        "  authority: {relevance: 0.7, authority: 0.9}\n",
        encoding="utf-8",
    )

    with pytest.raises(LinkSourceCatalogError, match="resource"):
        load_link_source_catalog(path)
