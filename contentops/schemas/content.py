"""Content analysis schemas."""

from pydantic import BaseModel, Field


class ContentStructure(BaseModel):
    """Heading and block counts of an HTML body."""

    h1: int = 0
    h2: int = 0
    h3: int = 0
    h4: int = 0
    paragraphs: int = 0
    lists: int = 0


class ContentAnalysisResult(BaseModel):
    """Scores and structural facts for one piece of content.

    All scores are integers in [0, 100].
    """

    readability_score: int = Field(ge=0, le=100)
    seo_score: int = Field(ge=0, le=100)
    quality_score: int = Field(ge=0, le=100)
    engagement_score: int = Field(ge=0, le=100)
    accessibility_score: int = Field(ge=0, le=100)
    authority_score: int = Field(ge=0, le=100)

    word_count: int = 0
    reading_time: int = 0  # minutes
    heading_count: int = 0
    link_count: int = 0
    image_count: int = 0
    images_with_alt: int = 0

    keyword_density: dict[str, float] = Field(default_factory=dict)
    missing_keywords: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)
    content_structure: ContentStructure = Field(default_factory=ContentStructure)
