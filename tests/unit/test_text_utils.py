"""Unit tests for shared text helpers."""

from __future__ import annotations

from contentops.services.text_utils import (
    build_excerpt,
    heading_texts,
    html_to_text,
    KEYWORD_STOPWORDS,
    jaccard_overlap,
    title_topics,
    top_keywords,
    unique_casefold,
)


def test_jaccard_overlap_is_symmetric_and_case_insensitive() -> None:
    left = ["Grooming", "dogs", "cats"]
    right = ["grooming", "DOGS", "birds", "fish"]

    assert jaccard_overlap(left, right) == jaccard_overlap(right, left)
    assert jaccard_overlap(left, right) == 2 / 5
    assert jaccard_overlap(left, left) == 1.0


def test_jaccard_overlap_is_zero_when_either_side_is_empty() -> None:
    assert jaccard_overlap([], ["grooming"]) == 0.0
    assert jaccard_overlap(["grooming"], ["", "  "]) == 0.0


def test_html_to_text_drops_scripts_and_collapses_whitespace() -> None:
    html = "<p>Brush   your dog</p><script>track()</script><p>every week.</p>"

    assert html_to_text(html) == "Brush your dog every week."
    assert html_to_text(None) == ""


def test_top_keywords_skips_short_words_and_keeps_function_words() -> None:
    text = "dogs with grooming dogs need grooming dogs with cats and with"

    assert top_keywords(text, limit=3) == ["dogs", "with", "grooming"]


def test_top_keywords_drops_stopwords_when_given() -> None:
    text = "dogs with grooming dogs need grooming dogs with cats and with"

    assert top_keywords(text, limit=2, stopwords=KEYWORD_STOPWORDS) == ["dogs", "grooming"]


def test_title_topics_take_leading_long_words_without_filtering() -> None:
    assert title_topics("Grooming With Your Puppy Today") == ["grooming", "with", "your"]
    assert title_topics("A Dog Spa") == []


def test_unique_casefold_keeps_first_spelling() -> None:
    assert unique_casefold(["Grooming", "grooming", " Dogs ", "", "dogs"]) == ["Grooming", "Dogs"]


def test_build_excerpt_prefers_late_sentence_end() -> None:
    text = "a" * 150 + ". " + "b" * 100

    assert build_excerpt(text) == "a" * 150 + "."


def test_build_excerpt_truncates_with_ellipsis_without_sentence_end() -> None:
    excerpt = build_excerpt("word " * 60)

    assert excerpt.endswith("...")
    assert len(excerpt) <= 203
    assert build_excerpt("Short text.") == "Short text."


def test_heading_texts_returns_requested_level_in_order() -> None:
    html = "<h2>First   part</h2><p>x</p><h3>Nested</h3><h2> Second </h2><h2></h2>"

    assert heading_texts(html) == ["First part", "Second"]
    assert heading_texts(html, level=3) == ["Nested"]
    assert heading_texts("") == []
