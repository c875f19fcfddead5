"""Deterministic content quality scoring.

Scores an HTML body for readability (Flesch reading ease), SEO (point budget
normalized to 0-100), overall quality, and the E-E-A-T style engagement,
accessibility and authority heuristics. No external calls are made.
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass
from typing import Any

from bs4 import BeautifulSoup

from contentops.schemas.content import ContentAnalysisResult, ContentStructure
from contentops.services.text_utils import (
    count_words,
    html_to_text,
    split_sentences,
    unique_casefold,
)

logger = logging.getLogger(__name__)

WORD_PATTERN = re.compile(r"\b\w+\b")
VOWEL_GROUP_PATTERN = re.compile(r"[aeiouy]+")
NON_DESCRIPTIVE_ANCHORS = frozenset({"click here", "here", "read more", "link", "this", "more"})


def clamp_score(value: float) -> float:
    return max(0.0, min(100.0, value))


def round_score(value: float) -> int:
    """Round half up and clamp to the 0-100 score range."""
    return int(math.floor(clamp_score(value) + 0.5))


@dataclass
class ContentFacts:
    """Raw structural counts extracted once from the HTML."""

    text: str
    word_count: int
    headings: dict[int, int]
    heading_text: str
    heading_sequence: list[int]
    link_count: int
    descriptive_link_count: int
    image_count: int
    images_with_alt: int
    paragraph_count: int
    list_count: int

    @property
    def flat_text(self) -> str:
        return " ".join(self.text.split())

    @property
    def heading_count(self) -> int:
        return sum(self.headings.values())

    @property
    def alt_text_ratio(self) -> float | None:
        if self.image_count == 0:
            return None
        return self.images_with_alt / self.image_count

    @property
    def has_clean_heading_outline(self) -> bool:
        """Exactly one H1 and no skipped level going deeper."""
        if self.headings.get(1, 0) != 1:
            return False
        previous = 0
        for level in self.heading_sequence:
            if previous and level > previous + 1:
                return False
            previous = level
        return True


def extract_content_facts(content: str) -> ContentFacts:
    soup = BeautifulSoup(content or "", "lxml")

    headings = {level: 0 for level in range(1, 7)}
    heading_sequence: list[int] = []
    heading_parts: list[str] = []
    for tag in soup.find_all(re.compile(r"^h[1-6]$")):
        level = int(tag.name[1])
        headings[level] += 1
        heading_sequence.append(level)
        if level <= 3:
            heading_parts.append(tag.get_text(" ", strip=True))

    link_count = 0
    descriptive_links = 0
    for anchor in soup.find_all("a", href=True):
        if not str(anchor["href"]).strip():
            continue
        link_count += 1
        if anchor.get_text(" ", strip=True).lower() not in NON_DESCRIPTIVE_ANCHORS:
            descriptive_links += 1

    images = soup.find_all("img")
    images_with_alt = sum(1 for image in images if str(image.get("alt") or "").strip())

    text = html_to_text(content, separator="\n")
    return ContentFacts(
        text=text,
        word_count=count_words(text),
        headings=headings,
        heading_text=" ".join(heading_parts),
        heading_sequence=heading_sequence,
        link_count=link_count,
        descriptive_link_count=descriptive_links,
        image_count=len(images),
        images_with_alt=images_with_alt,
        paragraph_count=len(soup.find_all("p")),
        list_count=len(soup.find_all(["ul", "ol"])),
    )


def count_syllables(word: str) -> int:
    stripped = re.sub(r"e$", "", word.lower())
    return max(1, len(VOWEL_GROUP_PATTERN.findall(stripped)))


def count_occurrences(text: str, phrase: str) -> int:
    return len(re.findall(re.escape(phrase.lower()), text.lower()))


class ContentQualityScorer:
    """Score content quality using fixed, documented formulas.

    Quality blends the readability/SEO average with a structure score:
    quality = 0.6 * avg(readability, seo) + 0.4 * structure.
    """

    WORDS_PER_MINUTE = 200

    WEIGHT_QUALITY_CONTENT = 0.6
    WEIGHT_QUALITY_STRUCTURE = 0.4

    OPTIMAL_TITLE_RANGE = (30, 60)
    ACCEPTABLE_TITLE_RANGE = (20, 70)
    OPTIMAL_META_RANGE = (120, 160)
    ACCEPTABLE_META_RANGE = (100, 180)

    def analyze_content(
        self,
        content: str,
        *,
        title: str | None = None,
        meta_description: str | None = None,
        keywords: list[str] | None = None,
        target_keyword: str | None = None,
        featured_image: str | None = None,
    ) -> ContentAnalysisResult:
        """Analyze an HTML body.

        Args:
            content: HTML content
            title: Article title, if known
            meta_description: Meta description, if known
            keywords: Keywords expected in the content
            target_keyword: Primary keyword used for density and placement checks
            featured_image: Featured image URL, if any

        Returns:
            ContentAnalysisResult with six integer scores in [0, 100]
        """
        facts = extract_content_facts(content)
        tracked_keywords = unique_casefold(
            [target_keyword or "", *(keywords or [])]
        )

        readability = self.readability_score(facts)
        seo = self.seo_score(
            facts,
            title=title,
            meta_description=meta_description,
            target_keyword=target_keyword,
            featured_image=featured_image,
        )
        quality = self.quality_score(facts, readability, seo)
        engagement = self.engagement_score(facts, readability)
        accessibility = self.accessibility_score(facts, readability)
        authority = self.authority_score(
            facts,
            has_title=bool(title),
            has_meta_description=bool(meta_description),
        )

        keyword_density = self.keyword_density(facts, tracked_keywords)
        missing_keywords = [
            keyword for keyword in tracked_keywords
            if keyword.lower() not in facts.flat_text.lower()
        ]
        recommendations = self.recommendations(
            facts,
            readability=readability,
            quality=quality,
            missing_keywords=missing_keywords,
            has_title=bool(title),
            has_meta_description=bool(meta_description),
            has_featured_image=bool(featured_image),
        )

        logger.debug(
            "Content analyzed",
            extra={
                "word_count": facts.word_count,
                "readability": round(readability, 2),
                "seo": round(seo, 2),
                "quality": round(quality, 2),
            },
        )

        return ContentAnalysisResult(
            readability_score=round_score(readability),
            seo_score=round_score(seo),
            quality_score=round_score(quality),
            engagement_score=round_score(engagement),
            accessibility_score=round_score(accessibility),
            authority_score=round_score(authority),
            word_count=facts.word_count,
            reading_time=math.ceil(facts.word_count / self.WORDS_PER_MINUTE),
            heading_count=facts.heading_count,
            link_count=facts.link_count,
            image_count=facts.image_count,
            images_with_alt=facts.images_with_alt,
            keyword_density=keyword_density,
            missing_keywords=missing_keywords,
            recommendations=recommendations,
            content_structure=ContentStructure(
                h1=facts.headings[1],
                h2=facts.headings[2],
                h3=facts.headings[3],
                h4=facts.headings[4],
                paragraphs=facts.paragraph_count,
                lists=facts.list_count,
            ),
        )

    def readability_score(self, facts: ContentFacts) -> float:
        """Flesch reading ease, clamped to [0, 100]."""
        sentences = split_sentences(facts.text)
        if not sentences or facts.word_count == 0:
            return 0.0

        words = WORD_PATTERN.findall(facts.text.lower())
        syllables = sum(count_syllables(word) for word in words)
        average_sentence_length = facts.word_count / len(sentences)
        average_syllables = syllables / facts.word_count
        score = 206.835 - 1.015 * average_sentence_length - 84.6 * average_syllables
        return clamp_score(score)

    def seo_score(
        self,
        facts: ContentFacts,
        *,
        title: str | None,
        meta_description: str | None,
        target_keyword: str | None,
        featured_image: str | None,
    ) -> float:
        """Sum the SEO point budget and normalize to 0-100.

        Keyword bonuses extend both the score and the budget when they hit.
        """
        score = 0.0
        max_score = 0.0
        keyword = (target_keyword or "").lower()

        max_score += 15
        if title:
            score += self._range_points(
                len(title), self.OPTIMAL_TITLE_RANGE, self.ACCEPTABLE_TITLE_RANGE, (15, 10, 5)
            )
            if keyword and keyword in title.lower():
                score += 5
                max_score += 5

        max_score += 10
        if meta_description:
            score += self._range_points(
                len(meta_description),
                self.OPTIMAL_META_RANGE,
                self.ACCEPTABLE_META_RANGE,
                (10, 7, 3),
            )
            if keyword and keyword in meta_description.lower():
                score += 3
                max_score += 3

        max_score += 15
        if facts.word_count >= 2000:
            score += 15
        elif facts.word_count >= 1000:
            score += 12
        elif facts.word_count >= 500:
            score += 8
        elif facts.word_count >= 300:
            score += 5
        else:
            score += 2

        max_score += 15
        if facts.headings[1] == 1:
            score += 5
        if facts.headings[2] >= 2:
            score += 5
        if facts.headings[3] >= 1:
            score += 5
        if keyword and keyword in facts.heading_text.lower():
            score += 5
            max_score += 5

        max_score += 15
        if keyword:
            density = (
                count_occurrences(facts.flat_text, keyword) / facts.word_count * 100
                if facts.word_count
                else 0.0
            )
            if 0.5 <= density <= 2.5:
                score += 15
            elif 0.3 <= density <= 3.0:
                score += 10
            elif 0 < density < 0.3:
                score += 5
            else:
                score += 2
        else:
            score += 5

        max_score += 10
        if facts.link_count >= 3:
            score += 10
        elif facts.link_count >= 1:
            score += 6
        else:
            score += 2

        max_score += 10
        ratio = facts.alt_text_ratio
        if ratio is None:
            score += 2
        elif ratio == 1:
            score += 10
        elif ratio >= 0.7:
            score += 7
        else:
            score += 3

        max_score += 5
        if featured_image:
            score += 5

        return clamp_score(score / max_score * 100)

    def quality_score(self, facts: ContentFacts, readability: float, seo: float) -> float:
        structure = min(
            100.0,
            (20 if facts.heading_count >= 3 else facts.heading_count * 6.67)
            + (20 if facts.link_count >= 2 else facts.link_count * 10)
            + (20 if facts.image_count >= 1 else 0)
            + (40 if facts.word_count >= 1000 else facts.word_count / 25),
        )
        blended = (
            (readability + seo) / 2 * self.WEIGHT_QUALITY_CONTENT
            + structure * self.WEIGHT_QUALITY_STRUCTURE
        )
        return clamp_score(blended)

    def engagement_score(self, facts: ContentFacts, readability: float) -> float:
        """Visual and structural variety plus a comfortable length."""
        score = min(30, facts.image_count * 10)
        score += min(25, facts.heading_count * 5)
        score += min(15, facts.list_count * 5)
        if 800 <= facts.word_count <= 2500:
            score += 20
        elif facts.word_count >= 500:
            score += 12
        else:
            score += 5
        score += 10 if readability >= 60 else readability / 6
        return clamp_score(score)

    def accessibility_score(self, facts: ContentFacts, readability: float) -> float:
        """Alt text, heading outline, plain language and descriptive anchors."""
        ratio = facts.alt_text_ratio
        score = 40 if ratio is None else ratio * 40
        if facts.has_clean_heading_outline:
            score += 20
        score += 25 if readability >= 60 else readability * 25 / 60
        if facts.link_count == 0:
            score += 15
        else:
            score += facts.descriptive_link_count / facts.link_count * 15
        return clamp_score(score)

    def authority_score(
        self,
        facts: ContentFacts,
        *,
        has_title: bool,
        has_meta_description: bool,
    ) -> float:
        """Depth of coverage and supporting references."""
        if facts.word_count >= 2000:
            score = 35
        elif facts.word_count >= 1000:
            score = 25
        elif facts.word_count >= 500:
            score = 15
        else:
            score = 5
        score += min(25, facts.link_count * 5)
        if facts.headings[2] >= 2:
            score += 10
        if facts.headings[3] >= 1:
            score += 10
        score += min(10, facts.image_count * 5)
        if has_title and has_meta_description:
            score += 10
        return clamp_score(score)

    def keyword_density(self, facts: ContentFacts, keywords: list[str]) -> dict[str, float]:
        """Occurrences per hundred words for each tracked keyword."""
        if facts.word_count == 0:
            return {}
        text = facts.flat_text
        return {
            keyword: round(count_occurrences(text, keyword) / facts.word_count * 100, 2)
            for keyword in keywords
        }

    def recommendations(
        self,
        facts: ContentFacts,
        *,
        readability: float,
        quality: float,
        missing_keywords: list[str],
        has_title: bool,
        has_meta_description: bool,
        has_featured_image: bool,
    ) -> list[str]:
        recommendations: list[str] = []

        if readability < 60:
            recommendations.append(
                "Improve readability by using shorter sentences and simpler words"
            )
        if readability < 40:
            recommendations.append(
                "Content is difficult to read. Consider breaking up long paragraphs"
            )

        if not has_title:
            recommendations.append("Add a title optimized for SEO (30-60 characters)")
        if not has_meta_description:
            recommendations.append("Add a meta description (120-160 characters)")
        if not has_featured_image:
            recommendations.append("Add a featured image to improve engagement")
        if facts.heading_count < 3:
            recommendations.append("Add more headings (H2, H3) to improve content structure")
        if facts.link_count < 2:
            recommendations.append("Add internal and external links to improve SEO")
        if facts.image_count == 0:
            recommendations.append("Add images to break up text and improve engagement")

        if facts.word_count < 500:
            recommendations.append(
                "Content is too short. Aim for at least 500 words for better SEO"
            )
        elif facts.word_count < 1000:
            recommendations.append(
                "Consider expanding content to 1000+ words for better ranking potential"
            )

        if missing_keywords:
            recommendations.append(f"Include these keywords: {', '.join(missing_keywords[:3])}")

        if quality < 60:
            recommendations.append(
                "Overall content quality needs improvement. Review SEO and readability scores"
            )
        return recommendations

    @staticmethod
    def _range_points(
        length: int,
        optimal: tuple[int, int],
        acceptable: tuple[int, int],
        points: tuple[int, int, int],
    ) -> int:
        if optimal[0] <= length <= optimal[1]:
            return points[0]
        if acceptable[0] <= length <= acceptable[1]:
            return points[1]
        return points[2]


def analyze_content(content: str, **kwargs: Any) -> ContentAnalysisResult:
    """Analyze content with a default scorer."""
    return ContentQualityScorer().analyze_content(content, **kwargs)
