"""Deterministic SEO metadata derivation for generated articles."""

from __future__ import annotations

import re
from typing import Any

from contentops.services.text_utils import KEYWORD_STOPWORDS, html_to_text, top_keywords

SLUG_MAX_LENGTH = 60
SEO_TITLE_MAX_LENGTH = 60
META_DESCRIPTION_MAX_LENGTH = 160
META_SENTENCE_MIN_LENGTH = 20

_SLUG_SEPARATORS = re.compile(r"[\s_]+")
_SLUG_INVALID = re.compile(r"[^a-z0-9-]")
_SLUG_REPEATED_DASH = re.compile(r"-{2,}")
_SENTENCE_BREAK = re.compile(r"[.!?]+")


def generate_slug(title: str) -> str:
    """Lowercase, hyphen-separated ASCII slug of at most 60 characters."""
    slug = _SLUG_SEPARATORS.sub("-", title.strip().lower())
    slug = _SLUG_INVALID.sub("", slug)
    slug = _SLUG_REPEATED_DASH.sub("-", slug).strip("-")
    return slug[:SLUG_MAX_LENGTH].rstrip("-")


def generate_seo_title(title: str, keywords: list[str], *, append_keyword: bool = True) -> str:
    """Title capped at 60 characters that mentions the primary keyword."""
    primary = keywords[0] if keywords else ""
    if not append_keyword or not primary or primary.lower() in title.lower():
        if len(title) > SEO_TITLE_MAX_LENGTH:
            return f"{title[:SEO_TITLE_MAX_LENGTH - 3]}..."
        return title
    return f"{title} | {primary}"[:SEO_TITLE_MAX_LENGTH]


def generate_meta_description(content: str, keywords: list[str]) -> str:
    """First two substantial sentences of the body, capped at 160 characters."""
    text = html_to_text(content)
    sentences = [
        sentence.strip()
        for sentence in _SENTENCE_BREAK.split(text)
        if len(sentence.strip()) > META_SENTENCE_MIN_LENGTH
    ]
    if not sentences:
        subject = keywords[0] if keywords else "this topic"
        return f"Learn about {subject} in our comprehensive guide."

    description = ". ".join(sentences[:2])
    if len(description) > META_DESCRIPTION_MAX_LENGTH:
        return f"{description[:META_DESCRIPTION_MAX_LENGTH - 3]}..."
    return description


def generate_structured_data(
    title: str,
    keywords: list[str],
    *,
    description: str | None = None,
    image_url: str | None = None,
) -> dict[str, Any]:
    """schema.org Article JSON-LD payload."""
    data: dict[str, Any] = {
        "@context": "https://schema.org",
        "@type": "Article",
        "headline": title,
        "keywords": ", ".join(keywords),
        "articleSection": keywords[0] if keywords else "General",
        "inLanguage": "en",
    }
    if description:
        data["description"] = description
    if image_url:
        data["image"] = image_url
    return data


def extract_topics(title: str, content: str, limit: int = 5) -> list[str]:
    """Most frequent significant words of the draft, used as interlinking topics."""
    return top_keywords(
        f"{title} {html_to_text(content)}",
        limit=limit,
        stopwords=KEYWORD_STOPWORDS,
    )
