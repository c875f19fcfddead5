"""Unit tests for SEO metadata derivation."""

from __future__ import annotations

from contentops.services.seo_metadata import (
    extract_topics,
    generate_meta_description,
    generate_seo_title,
    generate_slug,
    generate_structured_data,
)


def test_generate_slug_is_lowercase_ascii() -> None:
    assert generate_slug("Best Pet Grooming Services!") == "best-pet-grooming-services"
    assert generate_slug("  Dogs_and  cats -- care ") == "dogs-and-cats-care"


def test_generate_slug_caps_length_without_trailing_dash() -> None:
    slug = generate_slug("word " * 20)

    assert len(slug) <= 60
    assert not slug.endswith("-")


def test_generate_seo_title_keeps_title_containing_keyword() -> None:
    title = "Best Pet Grooming Services"

    assert generate_seo_title(title, ["pet grooming"]) == title


def test_generate_seo_title_appends_missing_keyword() -> None:
    title = "Best Pet Grooming Services"

    assert generate_seo_title(title, ["dog care"]) == "Best Pet Grooming Services | dog care"
    assert generate_seo_title(title, ["dog care"], append_keyword=False) == title


def test_generate_seo_title_truncates_long_titles() -> None:
    title = "A very long article title about grooming dogs cats and rabbits at home"

    seo_title = generate_seo_title(title, [])

    assert len(seo_title) == 60
    assert seo_title.endswith("...")


def test_generate_meta_description_uses_first_two_sentences() -> None:
    content = (
        "<p>Regular grooming keeps your dog healthy and happy. "
        "Professional groomers know breed specific cuts. "
        "A third sentence that should not appear.</p>"
    )

    assert generate_meta_description(content, []) == (
        "Regular grooming keeps your dog healthy and happy. "
        "Professional groomers know breed specific cuts"
    )


def test_generate_meta_description_falls_back_to_keyword() -> None:
    assert generate_meta_description("<p>Short.</p>", ["pet grooming"]) == (
        "Learn about pet grooming in our comprehensive guide."
    )
    assert generate_meta_description("", []) == (
        "Learn about this topic in our comprehensive guide."
    )


def test_generate_structured_data_article_payload() -> None:
    data = generate_structured_data(
        "Best Pet Grooming Services",
        ["pet grooming", "dog grooming"],
        description="Guide",
        image_url="https://img.example.com/1.png",
    )

    assert data["@type"] == "Article"
    assert data["headline"] == "Best Pet Grooming Services"
    assert data["keywords"] == "pet grooming, dog grooming"
    assert data["articleSection"] == "pet grooming"
    assert data["image"] == "https://img.example.com/1.png"
    assert "image" not in generate_structured_data("Title", [])


def test_extract_topics_ranks_frequent_words() -> None:
    topics = extract_topics("Grooming Guide", "<p>Grooming dogs. Grooming cats.</p>")

    assert topics[0] == "grooming"
    assert len(topics) <= 5
