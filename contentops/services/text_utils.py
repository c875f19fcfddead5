"""Shared text helpers: HTML stripping, tokenization, overlap and excerpts."""

from __future__ import annotations

import re
from collections import Counter
from collections.abc import Iterable

from bs4 import BeautifulSoup

NON_ALNUM_PATTERN = re.compile(r"[^a-z0-9]")
WHITESPACE_PATTERN = re.compile(r"\s+")
SENTENCE_SPLIT_PATTERN = re.compile(r"[.!?]+")

# Function words long enough to pass the length filter; dropped from draft topics.
KEYWORD_STOPWORDS = frozenset(
    {
        "about",
        "also",
        "been",
        "before",
        "being",
        "both",
        "does",
        "each",
        "from",
        "have",
        "here",
        "into",
        "just",
        "more",
        "most",
        "much",
        "only",
        "other",
        "over",
        "same",
        "some",
        "such",
        "than",
        "that",
        "their",
        "them",
        "then",
        "there",
        "these",
        "they",
        "this",
        "those",
        "very",
        "were",
        "what",
        "when",
        "where",
        "which",
        "while",
        "will",
        "with",
        "your",
    }
)


def html_to_text(html: str | None, separator: str = " ") -> str:
    """Strip scripts, styles and tags, returning whitespace-collapsed text."""
    if not html:
        return ""
    soup = BeautifulSoup(html, "lxml")
    for element in soup(["script", "style"]):
        element.decompose()
    text = soup.get_text(separator=separator)
    if separator == "\n":
        lines = (WHITESPACE_PATTERN.sub(" ", line).strip() for line in text.splitlines())
        return "\n".join(line for line in lines if line)
    return WHITESPACE_PATTERN.sub(" ", text).strip()


def count_words(text: str) -> int:
    """Count whitespace-separated words."""
    return len(text.split())


def significant_words(
    text: str,
    min_length: int = 4,
    stopwords: frozenset[str] = frozenset(),
) -> list[str]:
    """Lowercase alphanumeric words of at least ``min_length`` characters, in order."""
    words: list[str] = []
    for raw in (text or "").lower().split():
        word = NON_ALNUM_PATTERN.sub("", raw)
        if len(word) >= min_length and word not in stopwords:
            words.append(word)
    return words


def top_keywords(
    text: str,
    limit: int = 10,
    stopwords: frozenset[str] = frozenset(),
) -> list[str]:
    """Most frequent significant words; ties keep first-occurrence order."""
    counts = Counter(significant_words(text, stopwords=stopwords))
    return [word for word, _ in counts.most_common(limit)]


def title_topics(title: str, limit: int = 3) -> list[str]:
    """Leading significant words of a title."""
    return significant_words(title)[:limit]


def normalized_set(values: Iterable[str]) -> set[str]:
    return {value.strip().lower() for value in values if value and value.strip()}


def jaccard_overlap(a: Iterable[str], b: Iterable[str]) -> float:
    """Case-insensitive Jaccard similarity; 0.0 when either side is empty."""
    left = normalized_set(a)
    right = normalized_set(b)
    if not left or not right:
        return 0.0
    return len(left & right) / len(left | right)


def unique_casefold(values: Iterable[str]) -> list[str]:
    """Drop case-insensitive duplicates, keeping the first spelling."""
    seen: set[str] = set()
    unique: list[str] = []
    for value in values:
        cleaned = (value or "").strip()
        key = cleaned.lower()
        if not cleaned or key in seen:
            continue
        seen.add(key)
        unique.append(cleaned)
    return unique


def split_sentences(text: str) -> list[str]:
    return [part.strip() for part in SENTENCE_SPLIT_PATTERN.split(text) if part.strip()]


def build_excerpt(text: str, max_length: int = 200) -> str:
    """Cut ``text`` to ``max_length``, preferring a sentence end past 70% of the limit."""
    cleaned = WHITESPACE_PATTERN.sub(" ", text or "").strip()
    if len(cleaned) <= max_length:
        return cleaned

    truncated = cleaned[:max_length]
    last_sentence_end = max(truncated.rfind("."), truncated.rfind("!"), truncated.rfind("?"))
    if last_sentence_end > max_length * 0.7:
        return truncated[: last_sentence_end + 1]
    return f"{truncated.rstrip()}..."


def heading_texts(html: str | None, level: int = 2) -> list[str]:
    """Text of every ``<h{level}>`` in document order."""
    if not html:
        return []
    soup = BeautifulSoup(html, "lxml")
    texts = (
        WHITESPACE_PATTERN.sub(" ", tag.get_text(" ")).strip()
        for tag in soup.find_all(f"h{level}")
    )
    return [text for text in texts if text]
