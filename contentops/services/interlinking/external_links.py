"""External authority, citation and resource link discovery.

Domains, URL templates and scores come from a versioned link-source catalog
(``contentops/data/link_sources.yaml`` unless another path is configured).
"""

from __future__ import annotations

import logging
from enum import Enum
from functools import lru_cache
from pathlib import Path
from urllib.parse import quote, quote_plus

import yaml
from pydantic import BaseModel, Field, ValidationError

from contentops.config import settings
from contentops.core.exceptions import LinkSourceCatalogError
from contentops.services.interlinking.models import (
    DraftContent,
    ExternalLinkAnalysis,
    ExternalLinkOpportunity,
)

logger = logging.getLogger(__name__)

DEFAULT_CATALOG_PATH = Path(__file__).resolve().parents[2] / "data" / "link_sources.yaml"


class TopicCategory(str, Enum):
    TECHNOLOGY = "technology"
    BUSINESS = "business"
    MARKETING = "marketing"
    HEALTH = "health"
    EDUCATION = "education"
    GENERAL = "general"


class CategorySources(BaseModel):
    name: TopicCategory
    match: list[str] = Field(default_factory=list)
    authority_domains: list[str] = Field(default_factory=list)
    resource_domains: list[str] = Field(default_factory=list)


class CitationSource(BaseModel):
    name: str
    domain: str
    url_template: str
    relevance: float = Field(ge=0.0, le=1.0)
    authority: float = Field(ge=0.0, le=1.0)
    categories: list[TopicCategory] = Field(default_factory=list)


class LinkScores(BaseModel):
    relevance: float = Field(ge=0.0, le=1.0)
    authority: float = Field(ge=0.0, le=1.0)


class LinkSourceCatalog(BaseModel):
    """Validated link-source catalog."""

    version: int
    default_url_template: str = "https://{domain}/search?q={query}"
    url_templates: dict[str, str] = Field(default_factory=dict)
    categories: list[CategorySources]
    citation_sources: list[CitationSource] = Field(default_factory=list)
    scores: dict[str, LinkScores]

    def category(self, name: TopicCategory) -> CategorySources | None:
        return next((entry for entry in self.categories if entry.name == name), None)

    def url_for(self, domain: str, topic: str) -> str:
        template = self.url_templates.get(domain, self.default_url_template)
        return template.format(
            domain=domain,
            query=quote_plus(topic),
            path=quote(topic.strip().replace(" ", "_")),
        )


def load_link_source_catalog(path: str | Path | None = None) -> LinkSourceCatalog:
    """Load and validate a catalog file.

    Raises:
        LinkSourceCatalogError: If the file is missing or does not validate
    """
    catalog_path = Path(path or settings.link_sources_path or DEFAULT_CATALOG_PATH)
    try:
        payload = yaml.safe_load(catalog_path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as e:
        raise LinkSourceCatalogError(
            f"Cannot read link-source catalog: {catalog_path}", {"error": str(e)}
        ) from e
    if not isinstance(payload, dict):
        raise LinkSourceCatalogError(f"Link-source catalog must be a mapping: {catalog_path}")

    try:
        catalog = LinkSourceCatalog.model_validate(payload)
    except ValidationError as e:
        raise LinkSourceCatalogError(
            f"Invalid link-source catalog: {catalog_path}", {"errors": e.errors()}
        ) from e

    for required in ("authority", "resource"):
        if required not in catalog.scores:
            raise LinkSourceCatalogError(f"Link-source catalog is missing '{required}' scores")
    return catalog


@lru_cache
def get_default_catalog() -> LinkSourceCatalog:
    return load_link_source_catalog()


def classify_topic(topic: str, catalog: LinkSourceCatalog) -> TopicCategory:
    """First catalog category whose match terms occur in ``topic``."""
    lowered = topic.lower()
    for entry in catalog.categories:
        if any(term.lower() in lowered for term in entry.match):
            return entry.name
    return TopicCategory.GENERAL


class ExternalLinkFinder:
    """Suggest outbound links for a draft from the link-source catalog.

    Per draft:
    - authority: up to 2 category domains per topic
    - citation: scholarly searches for the first two long keywords, plus
      category-restricted sources (e.g. PubMed) when a topic falls in their category
    - resource: 1 community/resource link for each of the first two topics
    Everything is ranked by relevance + authority and cut to ``max_links``.
    """

    AUTHORITY_LINKS_PER_TOPIC = 2
    CITATION_KEYWORDS = 2
    CITATION_KEYWORD_MIN_LENGTH = 6
    RESOURCE_TOPICS = 2

    def __init__(self, catalog: LinkSourceCatalog | None = None) -> None:
        self.catalog = catalog or get_default_catalog()

    def find_external_links(
        self,
        draft: DraftContent,
        max_links: int = 3,
    ) -> ExternalLinkAnalysis:
        authority_links = self.authority_links(draft.topics)[:max_links]
        citation_links = self.citation_links(draft.keywords, draft.topics)[:max_links]
        resource_links = self.resource_links(draft.topics)[:max_links]

        ranked = sorted(
            [*authority_links, *citation_links, *resource_links],
            key=lambda link: -link.rank_score,
        )[:max_links]

        logger.info(
            "External link discovery completed",
            extra={
                "topics": len(draft.topics),
                "authority": len(authority_links),
                "citation": len(citation_links),
                "resource": len(resource_links),
                "selected": len(ranked),
            },
        )
        return ExternalLinkAnalysis(
            opportunities=ranked,
            authority_links=authority_links,
            citation_links=citation_links,
            resource_links=resource_links,
        )

    def authority_links(self, topics: list[str]) -> list[ExternalLinkOpportunity]:
        scores = self.catalog.scores["authority"]
        links: list[ExternalLinkOpportunity] = []
        for topic in topics:
            category = classify_topic(topic, self.catalog)
            sources = self.catalog.category(category)
            if sources is None:
                continue
            for domain in sources.authority_domains[: self.AUTHORITY_LINKS_PER_TOPIC]:
                links.append(
                    ExternalLinkOpportunity(
                        url=self.catalog.url_for(domain, topic),
                        domain=domain,
                        title=f"{topic} - {domain}",
                        description=f"Authoritative {category.value} reference on {topic}",
                        anchor_text=f"Learn more about {topic}",
                        relevance_score=scores.relevance,
                        authority_score=scores.authority,
                        link_type="authority",
                        reason=f"High-authority {category.value} source",
                        context=f"For an in-depth overview of {topic}, see {domain}.",
                    )
                )
        return links

    def citation_links(
        self,
        keywords: list[str],
        topics: list[str],
    ) -> list[ExternalLinkOpportunity]:
        categories = {classify_topic(topic, self.catalog) for topic in topics}
        research_terms = [
            keyword for keyword in keywords
            if len(keyword) >= self.CITATION_KEYWORD_MIN_LENGTH
        ][: self.CITATION_KEYWORDS]

        links: list[ExternalLinkOpportunity] = []
        for term in research_terms:
            for source in self.catalog.citation_sources:
                if source.categories and not categories.intersection(source.categories):
                    continue
                links.append(
                    ExternalLinkOpportunity(
                        url=source.url_template.format(query=quote_plus(term)),
                        domain=source.domain,
                        title=f"{source.name}: {term}",
                        description=f"Research and studies about {term}",
                        anchor_text=f"research on {term}",
                        relevance_score=source.relevance,
                        authority_score=source.authority,
                        link_type="citation",
                        reason=f"Citation source for {term}",
                        context=f"Studies on {term} are collected on {source.name}.",
                    )
                )
        return links

    def resource_links(self, topics: list[str]) -> list[ExternalLinkOpportunity]:
        scores = self.catalog.scores["resource"]
        links: list[ExternalLinkOpportunity] = []
        for topic in topics[: self.RESOURCE_TOPICS]:
            category = classify_topic(topic, self.catalog)
            sources = self.catalog.category(category) or self.catalog.category(
                TopicCategory.GENERAL
            )
            if sources is None or not sources.resource_domains:
                continue
            domain = sources.resource_domains[0]
            links.append(
                ExternalLinkOpportunity(
                    url=self.catalog.url_for(domain, topic),
                    domain=domain,
                    title=f"{topic} resources",
                    description=f"Community resources about {topic}",
                    anchor_text=f"Explore {topic} resources",
                    relevance_score=scores.relevance,
                    authority_score=scores.authority,
                    link_type="resource",
                    reason=f"Helpful {category.value} resource",
                    context=f"More {topic} resources are available on {domain}.",
                )
            )
        return links
